from __future__ import annotations

import math

import numpy as np
import pytest

from lineart.geometry import GeometryStage


def _rgba(h: int, w: int) -> np.ndarray:
    img = np.zeros((h, w, 4), np.uint8)
    img[..., 0] = np.arange(w, dtype=np.uint8)[None, :]
    img[..., 3] = 255
    return img


@pytest.mark.parametrize("zoom", [0.5, 0.7, 1.0, 1.5, 2.3, 4.0])
def test_target_size_floors(zoom):
    assert GeometryStage(zoom=zoom).target_size(101, 51) == (
        max(1, math.floor(101 * zoom)), max(1, math.floor(51 * zoom)))


def test_minimum_one_pixel():
    assert GeometryStage(zoom=0.5).target_size(1, 1) == (1, 1)
    out = GeometryStage(zoom=0.5).run(_rgba(1, 3))
    assert out.shape == (1, 1, 4)


def test_scale_shape():
    out = GeometryStage(zoom=2.0).run(_rgba(30, 40))
    assert out.shape == (60, 80, 4)
    out = GeometryStage(zoom=0.5).run(_rgba(30, 40))
    assert out.shape == (15, 20, 4)


def test_cover_crops_centre():
    img = _rgba(60, 100)
    out = GeometryStage(zoom=1.0, cover=True).run(img)
    assert out.shape == (60, 60, 4)
    # 20 columns trimmed each side
    assert np.array_equal(out[:, 0], img[:, 20])
    assert np.array_equal(out[:, -1], img[:, 79])


def test_scale_happens_before_crop():
    out = GeometryStage(zoom=0.5, cover=True).run(_rgba(60, 100))
    assert out.shape == (30, 30, 4)


def test_max_side_cap():
    assert GeometryStage(zoom=2.0, max_side=120).target_size(100, 50) == (120, 60)


def test_canvas_pixel_cap():
    assert GeometryStage(zoom=1.0, max_pixels=100).target_size(20, 20) == (10, 10)


def test_identity_zoom_returns_a_copy():
    img = _rgba(8, 8)
    out = GeometryStage().run(img)
    assert out is not img
    out[...] = 0
    assert img[..., 3].max() == 255


def test_rejects_non_positive_zoom():
    with pytest.raises(ValueError):
        GeometryStage(zoom=0)
