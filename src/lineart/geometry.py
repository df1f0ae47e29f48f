from __future__ import annotations
from typing import Optional, Tuple

import math

import cv2
import numpy as np

# Working-canvas ceiling; zoom=4 on a large photo would otherwise explode memory.
MAX_CANVAS_PIXELS = 36_000_000


class GeometryStage:
    """Zoom (scale first) then optional centre square-crop."""

    def __init__(
        self,
        zoom: float = 1.0,
        cover: bool = False,
        max_side: Optional[int] = None,     # cap on the longest side, None = off
        max_pixels: int = MAX_CANVAS_PIXELS,
    ) -> None:
        if zoom <= 0:
            raise ValueError("zoom must be > 0")
        self.zoom = zoom
        self.cover = cover
        self.max_side = max_side
        self.max_pixels = int(max_pixels)

    def target_size(self, width: int, height: int) -> Tuple[int, int]:
        """floor(dims * zoom), min 1px, then the optional caps."""
        w = max(1, math.floor(width * self.zoom))
        h = max(1, math.floor(height * self.zoom))

        if self.max_side and max(w, h) > self.max_side:
            s = self.max_side / max(w, h)
            w, h = max(1, math.floor(w * s)), max(1, math.floor(h * s))
        if w * h > self.max_pixels:
            s = math.sqrt(self.max_pixels / (w * h))
            w, h = max(1, math.floor(w * s)), max(1, math.floor(h * s))
        return w, h

    def scale(self, rgba: np.ndarray) -> np.ndarray:
        h, w = rgba.shape[:2]
        nw, nh = self.target_size(w, h)
        if (nw, nh) == (w, h):
            return rgba.copy()
        # area averaging when shrinking, lanczos when enlarging
        interp = cv2.INTER_AREA if nw <= w and nh <= h else cv2.INTER_LANCZOS4
        return cv2.resize(rgba, (nw, nh), interpolation=interp)

    @staticmethod
    def crop_square(rgba: np.ndarray) -> np.ndarray:
        h, w = rgba.shape[:2]
        side = min(h, w)
        y0 = (h - side) // 2
        x0 = (w - side) // 2
        return np.ascontiguousarray(rgba[y0:y0 + side, x0:x0 + side])

    def run(self, rgba: np.ndarray) -> np.ndarray:
        out = self.scale(rgba)
        if self.cover:
            out = self.crop_square(out)
        return out
