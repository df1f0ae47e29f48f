from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from conftest import make_fake_photo  # noqa: E402
from lineart.config import PipelineConfig  # noqa: E402
from lineart.lines import LineExtractor  # noqa: E402
from lineart.viz import Visualizer  # noqa: E402


def _rgba() -> np.ndarray:
    return np.dstack([make_fake_photo(5, 40, 60), np.full((40, 60), 255, np.uint8)])


def test_compare_two_panels():
    img = _rgba()
    fig = Visualizer(show=False).compare(img, img, title="fine")
    titles = [ax.get_title() for ax in fig.axes]
    assert titles == ["Original", "fine"]
    plt.close(fig)


def test_compare_with_line_layers():
    img = _rgba()
    lines = LineExtractor(PipelineConfig()).run(img)
    fig = Visualizer(show=False).compare(img, img, lines=lines)
    assert [ax.get_title() for ax in fig.axes] == ["Original", "Response", "Lines", "Line art"]
    plt.close(fig)
