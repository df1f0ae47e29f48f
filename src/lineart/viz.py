from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .lines import LineResult

Panel = Tuple[np.ndarray, str, Dict[str, Any]]


class Visualizer:
    """Preview figures for --show. Library code paths never open windows."""

    def __init__(self, figsize: Tuple[int, int] = (16, 5), show: bool = True) -> None:
        self.figsize = figsize
        self.show = show

    def _panels(self, panels: List[Panel]) -> plt.Figure:
        fig, axes = plt.subplots(1, len(panels), figsize=self.figsize, squeeze=False)
        for ax, (img, title, kw) in zip(axes[0], panels):
            ax.imshow(img, **kw)
            ax.set_title(title)
            ax.axis("off")
        fig.tight_layout()
        if self.show:
            plt.show()
        return fig

    def compare(
        self,
        original: np.ndarray,
        result: np.ndarray,
        title: str = "Line art",
        lines: Optional[LineResult] = None,
    ) -> plt.Figure:
        """Original | [response | lines] | result."""
        panels: List[Panel] = [(original, "Original", {})]
        if lines is not None:
            # diverging map: red below the flat 128, gray above
            panels.append((lines.response, "Response", {"cmap": "RdGy", "vmin": 0, "vmax": 255}))
            panels.append((lines.gray, "Lines", {"cmap": "gray", "vmin": 0, "vmax": 255}))
        panels.append((result, title, {}))
        return self._panels(panels)
