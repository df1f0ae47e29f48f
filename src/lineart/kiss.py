from __future__ import annotations
from typing import Tuple

import numpy as np

# (position, (r, g, b)) along the top-left -> bottom-right diagonal
GRADIENT_STOPS: Tuple[Tuple[float, Tuple[int, int, int]], ...] = (
    (0.0, (251, 186, 48)),
    (0.4, (252, 114, 53)),
    (0.6, (252, 53, 78)),
    (0.7, (207, 54, 223)),
    (0.8, (55, 181, 217)),
    (1.0, (62, 182, 218)),
)


class KissStage:
    """Colour wash: ink darkness becomes the alpha of a fixed diagonal gradient,
    composited over white. Disabled -> plain gray expanded to opaque RGBA."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    @staticmethod
    def gradient(width: int, height: int) -> np.ndarray:
        """(h, w, 3) float32 gradient, t = (x + y) / (w + h)."""
        pos = np.array([p for p, _ in GRADIENT_STOPS], np.float32)
        cols = np.array([c for _, c in GRADIENT_STOPS], np.float32)
        t = (np.arange(width, dtype=np.float32)[None, :] + np.arange(height, dtype=np.float32)[:, None])
        t = np.minimum(t / float(width + height), 1.0)
        out = np.empty((height, width, 3), np.float32)
        for c in range(3):
            out[..., c] = np.floor(np.interp(t, pos, cols[:, c]))
        return out

    @staticmethod
    def _opaque(rgb: np.ndarray) -> np.ndarray:
        alpha = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([rgb.astype(np.uint8), alpha], axis=2)

    def run(self, gray: np.ndarray) -> np.ndarray:
        if not self.enabled:
            return self._opaque(np.repeat(gray[..., None], 3, axis=2))
        h, w = gray.shape
        alpha = (255.0 - gray.astype(np.float32))[..., None] / 255.0
        colour = self.gradient(w, h)
        rgb = np.minimum(colour * alpha + 255.0 * (1.0 - alpha), 255.0)
        return self._opaque(np.floor(rgb))
