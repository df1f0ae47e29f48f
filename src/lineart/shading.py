from __future__ import annotations
from typing import Optional

import logging

import numpy as np

from .codec import decode_asset
from .config import PipelineConfig, Quality
from .lines import LineExtractor, LineResult

log = logging.getLogger(__name__)

NO_TONE = 255
TONE_DEPTH = 160  # darkest band = 255 - TONE_DEPTH


class ShadingStage:
    """Posterized tone layer under the lines.

    Luminance >= shade_limit is paper, <= shade_light is the darkest band, the
    range between is split evenly over the remaining tone_count - 1 bands.
    Band 0 is the lightest. With a pencil texture, each band's darkness is
    modulated by the (tiled) grain instead of being a flat gray.
    """

    def __init__(self, config: Optional[PipelineConfig] = None) -> None:
        self.config = config or PipelineConfig()
        self.texture = self._load_texture(self.config.pencil_texture)

    @property
    def enabled(self) -> bool:
        return self.config.shade and self.config.quality is not Quality.SKETCH

    @staticmethod
    def _load_texture(data: Optional[bytes]) -> Optional[np.ndarray]:
        if not data:
            return None
        rgba = decode_asset(data)
        if rgba is None:
            log.debug("pencil texture could not be decoded; using flat tones")
            return None
        return LineExtractor.to_luminance(rgba)

    @staticmethod
    def band_levels(tone_count: int) -> np.ndarray:
        """Flat gray for each band, lightest first; all distinct for 1..10 bands."""
        return np.array(
            [NO_TONE - int(round((i + 1) * TONE_DEPTH / tone_count)) for i in range(tone_count)],
            dtype=np.uint8,
        )

    def bands(self, lum: np.ndarray) -> np.ndarray:
        """Band index per pixel; -1 means no tone."""
        n = self.config.tone_count
        lo, hi = self.config.shade_light, self.config.shade_limit
        idx = np.full(lum.shape, -1, dtype=np.int16)
        toned = lum < hi
        if n == 1:
            idx[toned] = 0
            return idx

        idx[toned & (lum <= lo)] = n - 1
        mid = toned & (lum > lo)
        if hi > lo and mid.any():
            t = (lum[mid].astype(np.float32) - lo) / float(hi - lo)
            bucket = np.clip(np.floor(t * (n - 1)), 0, n - 2).astype(np.int16)
            idx[mid] = (n - 2) - bucket
        return idx

    def _grain(self, shape) -> np.ndarray:
        """Tiled texture darkness normalised to mean 1 (so average tone holds)."""
        h, w = shape
        th, tw = self.texture.shape
        reps = (-(-h // th), -(-w // tw))
        tile = np.tile(self.texture, reps)[:h, :w]
        dark = 1.0 - tile.astype(np.float32) / 255.0
        m = float(dark.mean())
        if m < 1e-3:
            return np.ones((h, w), np.float32)
        return np.clip(dark / m, 0.0, 2.0)

    def tone_layer(self, lum: np.ndarray) -> np.ndarray:
        idx = self.bands(lum)
        levels = self.band_levels(self.config.tone_count)
        layer = np.full(lum.shape, NO_TONE, dtype=np.uint8)
        toned = idx >= 0
        layer[toned] = levels[idx[toned]]
        if self.texture is not None and toned.any():
            depth = (NO_TONE - layer.astype(np.float32)) * self._grain(lum.shape)
            textured = np.clip(np.rint(NO_TONE - depth), 0, 255).astype(np.uint8)
            layer = np.where(toned, textured, layer)
        return layer

    @staticmethod
    def composite(line_gray: np.ndarray, tone: np.ndarray) -> np.ndarray:
        """Multiply: lines stay on top of tone, paper shows the tone."""
        prod = line_gray.astype(np.uint32) * tone.astype(np.uint32)
        return ((prod + 127) // 255).astype(np.uint8)

    def run(self, lines: LineResult) -> np.ndarray:
        """LineResult -> gray composite (uint8). Lines only when disabled."""
        if not self.enabled:
            return lines.gray
        return self.composite(lines.gray, self.tone_layer(lines.luminance))
