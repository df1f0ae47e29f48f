from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

import logging

import cv2
import numpy as np

from .codec import decode_asset
from .config import PipelineConfig

log = logging.getLogger(__name__)

LANDSCAPE_ASPECT = 1.1


@dataclass(frozen=True)
class WatermarkPreset:
    name: str
    sprite_row: int           # asset is a 2-row sprite: 0 = top half, 1 = bottom half
    landscape_height: float   # mark height as a fraction of canvas height (wide canvases)
    portrait_width: float     # mark width as a fraction of canvas width (otherwise)
    margin_x: float           # in units of mark height
    margin_y: float
    opacity: float            # multiplies the mark's own alpha
    corner: str               # 'bottom-right' | 'bottom-left'


DEFAULT_PRESET = WatermarkPreset(
    name="default", sprite_row=0, landscape_height=0.15, portrait_width=0.30,
    margin_x=0.2, margin_y=0.16, opacity=1.0, corner="bottom-right",
)
HAJIMEI_PRESET = WatermarkPreset(
    name="hajimei", sprite_row=1, landscape_height=0.12, portrait_width=0.24,
    margin_x=0.2, margin_y=0.16, opacity=0.85, corner="bottom-left",
)


class WatermarkStage:
    """Alpha-composite the logo into a bottom corner. Never fails the pipeline:
    a missing or undecodable asset simply leaves the canvas untouched."""

    def __init__(self, config: Optional[PipelineConfig] = None) -> None:
        self.config = config or PipelineConfig()
        self.preset = HAJIMEI_PRESET if self.config.hajimei else DEFAULT_PRESET

    @property
    def enabled(self) -> bool:
        return bool(self.config.watermark and self.config.watermark_image)

    def mark(self) -> Optional[np.ndarray]:
        """Decoded sprite row for the active preset (RGBA), or None."""
        sprite = decode_asset(self.config.watermark_image)
        if sprite is None:
            log.debug("watermark asset missing or undecodable; skipping")
            return None
        half = sprite.shape[0] // 2
        if half == 0:
            return sprite
        row = self.preset.sprite_row
        return sprite[row * half:(row + 1) * half]

    def layout(self, canvas_w: int, canvas_h: int, mark_w: int, mark_h: int) -> Tuple[int, int, int, int]:
        """(x, y, w, h) of the scaled mark on the canvas."""
        p = self.preset
        if canvas_w / canvas_h > LANDSCAPE_ASPECT:
            h = int(canvas_h * p.landscape_height)
            w = int(h / mark_h * mark_w)
        else:
            w = int(canvas_w * p.portrait_width)
            h = int(w / mark_w * mark_h)
        # extreme aspect ratios: keep the scaled mark inside the canvas
        if w > canvas_w:
            h, w = int(h * canvas_w / w), canvas_w
        if h > canvas_h:
            w, h = int(w * canvas_h / h), canvas_h
        mx = int(h * p.margin_x)
        my = int(h * p.margin_y)
        if p.corner == "bottom-left":
            x = min(mx, max(0, canvas_w - w))
        else:
            x = max(0, canvas_w - (w + mx))
        y = max(0, canvas_h - (h + my))
        return x, y, w, h

    def blend(self, canvas: np.ndarray, mark: np.ndarray, x: int, y: int) -> np.ndarray:
        out = canvas.copy()
        h = min(mark.shape[0], canvas.shape[0] - y)
        w = min(mark.shape[1], canvas.shape[1] - x)
        if h <= 0 or w <= 0:
            return out
        src = mark[:h, :w].astype(np.float32)
        dst = out[y:y + h, x:x + w, :3].astype(np.float32)
        a = src[..., 3:4] / 255.0 * self.preset.opacity
        out[y:y + h, x:x + w, :3] = np.clip(np.rint(src[..., :3] * a + dst * (1.0 - a)), 0, 255).astype(np.uint8)
        return out

    def run(self, rgba: np.ndarray) -> np.ndarray:
        if not self.enabled:
            return rgba
        mark = self.mark()
        if mark is None:
            return rgba
        ch, cw = rgba.shape[:2]
        x, y, w, h = self.layout(cw, ch, mark.shape[1], mark.shape[0])
        if w < 1 or h < 1:
            log.debug("canvas %dx%d too small for watermark", cw, ch)
            return rgba
        try:
            interp = cv2.INTER_AREA if w <= mark.shape[1] else cv2.INTER_LANCZOS4
            scaled = cv2.resize(mark, (w, h), interpolation=interp)
        except (cv2.error, MemoryError) as e:
            log.warning("watermark resize failed, skipping: %s", e)
            return rgba
        log.debug("watermark %s at (%d, %d) size %dx%d", self.preset.name, x, y, w, h)
        return self.blend(rgba, scaled, x, y)
