from __future__ import annotations

import logging

import cv2
import numpy as np

from conftest import encode
from lineart.config import PipelineConfig
from lineart.watermark import HAJIMEI_PRESET, WatermarkStage


def _white(h: int, w: int) -> np.ndarray:
    return np.full((h, w, 4), 255, np.uint8)


def test_no_asset_is_a_no_op():
    canvas = _white(100, 200)
    assert WatermarkStage(PipelineConfig()).run(canvas) is canvas


def test_disabled_is_a_no_op(sprite_bytes):
    canvas = _white(100, 200)
    stage = WatermarkStage(PipelineConfig(watermark=False, watermark_image=sprite_bytes))
    assert stage.run(canvas) is canvas


def test_default_mark_bottom_right(sprite_bytes):
    stage = WatermarkStage(PipelineConfig(watermark_image=sprite_bytes))
    assert stage.layout(200, 100, 40, 10) == (137, 83, 60, 15)

    out = stage.run(_white(100, 200))
    # top sprite row is red
    assert np.abs(out[90, 167, :3].astype(int) - [255, 0, 0]).max() <= 1
    assert (out[:80] == 255).all()
    assert (out[..., 3] == 255).all()


def test_hajimei_mark_bottom_left_and_translucent(sprite_bytes):
    stage = WatermarkStage(PipelineConfig(watermark_image=sprite_bytes, hajimei=True))
    assert stage.preset is HAJIMEI_PRESET
    x, y, w, h = stage.layout(100, 200, 40, 10)
    assert x == 1 and 20 <= w <= 24 and y + h <= 200

    out = stage.run(_white(200, 100))
    r, g, b = out[y + h // 2, x + w // 2, :3].astype(int)
    # bottom sprite row is blue, blended at 0.85 over white
    assert abs(r - 38) <= 1 and abs(g - 38) <= 1 and b >= 254
    assert (out[:, 60:] == 255).all()


def test_undecodable_asset_is_skipped():
    canvas = _white(100, 200)
    assert WatermarkStage(PipelineConfig(watermark_image=b"garbage")).run(canvas) is canvas


def test_tiny_canvas_is_skipped(sprite_bytes):
    canvas = _white(4, 4)
    assert WatermarkStage(PipelineConfig(watermark_image=sprite_bytes)).run(canvas) is canvas


def test_extreme_aspect_marks_stay_inside_the_canvas():
    stage = WatermarkStage(PipelineConfig())
    x, y, w, h = stage.layout(200, 100, 200000, 10)
    assert w <= 200 and h <= 100
    x, y, w, h = stage.layout(100, 200, 10, 100000)
    assert w <= 100 and h <= 200


def test_extremely_wide_sprite_is_skipped():
    strip = np.zeros((2, 4000, 4), np.uint8)
    strip[..., 2:] = 255
    canvas = _white(100, 200)
    stage = WatermarkStage(PipelineConfig(watermark_image=encode(strip)))
    assert stage.run(canvas) is canvas


def test_resize_failure_leaves_canvas_untouched(sprite_bytes, monkeypatch, caplog):
    def oom(*_args, **_kwargs):
        raise MemoryError("cannot allocate")

    monkeypatch.setattr(cv2, "resize", oom)
    canvas = _white(100, 200)
    with caplog.at_level(logging.WARNING, logger="lineart.watermark"):
        out = WatermarkStage(PipelineConfig(watermark_image=sprite_bytes)).run(canvas)
    assert out is canvas
    assert any("resize failed" in rec.getMessage() for rec in caplog.records)
