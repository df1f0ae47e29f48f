"""Line extraction: luminance -> per-mode response map -> band threshold -> line mask.

Every operator produces a *response* map on the same scale: flat regions read
128 and pixels darker than their surroundings read lower. The
``[dark_cut, 255 - light_cut]`` band then decides line weight: responses at or
below ``dark_cut`` are full-strength ink, responses at or above the upper edge
are paper, and the band between is linear.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional

import cv2
import numpy as np
from skimage.filters import sobel, unsharp_mask

from .config import PipelineConfig, Quality

FLAT = 128

# Rec. 601 luma weights, x1000
LUMA_WEIGHTS_1000 = (299, 587, 114)

DENOISE_KSIZE = 3
DENOISE_SIGMA = 0.8
SHARPEN_RADIUS = 1.0
SHARPEN_AMOUNT = 1.5

# top-left -> bottom-right relief
EMBOSS_KERNEL = np.array([[-1, -1, 0],
                          [-1,  0, 1],
                          [ 0,  1, 1]], np.float32)


@dataclass(frozen=True)
class QualityProfile:
    operator: str            # 'highpass' | 'emboss' | 'outline'
    kernel: int = 0          # box size for 'highpass'
    min_gradient: int = 0    # |deviation| at or below this is flattened to 128
    gain: float = 1.0


QUALITY_PROFILES: Dict[Quality, QualityProfile] = {
    Quality.FINE: QualityProfile("highpass", kernel=5),
    Quality.NORMAL: QualityProfile("highpass", kernel=7),
    Quality.COARSE: QualityProfile("highpass", kernel=9, min_gradient=2),
    Quality.SUPER_COARSE: QualityProfile("highpass", kernel=11, min_gradient=4),
    Quality.EXTRA_COARSE: QualityProfile("highpass", kernel=13, min_gradient=6),
    Quality.EMBOSS: QualityProfile("emboss", min_gradient=2, gain=0.5),
    Quality.SKETCH: QualityProfile("outline", min_gradient=8, gain=1.0),
}


@dataclass
class LineResult:
    mask: np.ndarray        # uint8, 0 = no line, 255 = full line
    luminance: np.ndarray   # uint8, post light/denoise (feeds shading)
    response: np.ndarray    # uint8, operator output before the band cut

    @property
    def gray(self) -> np.ndarray:
        """Lines as black-on-white gray image."""
        return (255 - self.mask).astype(np.uint8)


class LineExtractor:
    """RGBA in, LineResult out. Parameterised by quality/denoise/cuts/light."""

    def __init__(self, config: Optional[PipelineConfig] = None) -> None:
        self.config = config or PipelineConfig()
        self.profile = QUALITY_PROFILES[self.config.quality]

    @staticmethod
    def to_luminance(rgba: np.ndarray) -> np.ndarray:
        """floor(0.299 R + 0.587 G + 0.114 B), in integer math so white stays 255."""
        rgb = rgba[..., :3].astype(np.int32)
        wr, wg, wb = LUMA_WEIGHTS_1000
        lum = (rgb[..., 0] * wr + rgb[..., 1] * wg + rgb[..., 2] * wb) // 1000
        return lum.astype(np.uint8)

    def adjust_light(self, lum: np.ndarray) -> np.ndarray:
        light = self.config.light
        if light == 0:
            return lum
        v = lum.astype(np.float32)
        return np.clip(v + v * (light / 100.0), 0, 255).astype(np.uint8)

    def denoise(self, lum: np.ndarray) -> np.ndarray:
        if not self.config.denoise:
            return lum
        k = DENOISE_KSIZE
        return cv2.GaussianBlur(lum, (k, k), DENOISE_SIGMA, borderType=cv2.BORDER_REPLICATE)

    def _floor(self, deviation: np.ndarray) -> np.ndarray:
        if self.profile.min_gradient > 0:
            deviation = np.where(np.abs(deviation) <= self.profile.min_gradient, 0.0, deviation)
        return deviation

    def response(self, lum: np.ndarray) -> np.ndarray:
        """Operator output on the shared scale (flat = 128, ink < 128)."""
        p = self.profile
        f = lum.astype(np.float32)
        if p.operator == "highpass":
            mean = cv2.blur(f, (p.kernel, p.kernel), borderType=cv2.BORDER_REPLICATE)
            dev = self._floor(f - mean) * p.gain
        elif p.operator == "emboss":
            relief = cv2.filter2D(f, -1, EMBOSS_KERNEL, borderType=cv2.BORDER_REPLICATE)
            dev = self._floor(relief * p.gain)
        elif p.operator == "outline":
            mag = sobel(f / 255.0) * 255.0
            dev = -self._floor(mag.astype(np.float32)) * p.gain
        else:
            raise ValueError(f"Unknown operator: {p.operator}")
        return np.clip(np.rint(FLAT + dev), 0, 255).astype(np.uint8)

    def band_upper(self) -> int:
        return max(255 - self.config.light_cut, self.config.dark_cut + 1)

    def threshold(self, response: np.ndarray) -> np.ndarray:
        """Map the response through the cut band. Returns gray (255 = paper).

        Integer arithmetic keeps the paper/ink boundary exact: a pixel is a
        line pixel iff response < band_upper().
        """
        dark = self.config.dark_cut
        span = self.band_upper() - dark
        out = (response.astype(np.int32) - dark) * 255 // span
        return np.clip(out, 0, 255).astype(np.uint8)

    @staticmethod
    def sharpen(gray: np.ndarray) -> np.ndarray:
        out = unsharp_mask(gray, radius=SHARPEN_RADIUS, amount=SHARPEN_AMOUNT, preserve_range=True)
        return np.clip(np.rint(out), 0, 255).astype(np.uint8)

    def run(self, rgba: np.ndarray) -> LineResult:
        """RGBA -> luminance -> light -> denoise -> response -> cut -> sharpen."""
        lum = self.denoise(self.adjust_light(self.to_luminance(rgba)))
        resp = self.response(lum)
        gray = self.sharpen(self.threshold(resp))
        return LineResult(mask=(255 - gray).astype(np.uint8), luminance=lum, response=resp)
