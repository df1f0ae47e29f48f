from __future__ import annotations

import cv2
import numpy as np
import pytest


def encode(img: np.ndarray, ext: str = ".png") -> bytes:
    """Encode an OpenCV-ordered (gray / BGR / BGRA) array."""
    ok, buf = cv2.imencode(ext, img)
    assert ok
    return buf.tobytes()


def make_fake_photo(seed: int = 0, h: int = 120, w: int = 160) -> np.ndarray:
    """Synthetic BGR 'photo': gradient sky, a few filled shapes, mild noise."""
    rng = np.random.default_rng(seed)
    yy, xx = np.mgrid[0:h, 0:w].astype(np.float32)
    img = np.zeros((h, w, 3), np.float32)
    img[..., 0] = 200 - 80 * yy / h
    img[..., 1] = 170 + 40 * xx / w
    img[..., 2] = 150 + 30 * (xx + yy) / (w + h)
    for _ in range(6):
        cy, cx = int(rng.integers(0, h)), int(rng.integers(0, w))
        r = int(rng.integers(8, 25))
        color = tuple(float(c) for c in rng.integers(0, 120, size=3))
        cv2.circle(img, (cx, cy), r, color, thickness=-1)
    cv2.rectangle(img, (w // 4, h // 2), (w // 2, h - 10), (30.0, 40.0, 50.0), thickness=-1)
    img = cv2.GaussianBlur(img, (3, 3), 0.8)
    img += rng.normal(0, 2.0, size=img.shape).astype(np.float32)
    return np.clip(img, 0, 255).astype(np.uint8)


def make_sprite(w: int = 40, h: int = 20) -> np.ndarray:
    """2-row BGRA watermark sprite: top half red, bottom half blue, opaque."""
    sprite = np.zeros((h, w, 4), np.uint8)
    sprite[: h // 2] = (0, 0, 255, 255)
    sprite[h // 2:] = (255, 0, 0, 255)
    return sprite


@pytest.fixture
def photo_bytes() -> bytes:
    return encode(make_fake_photo())


@pytest.fixture
def photo_jpg_bytes() -> bytes:
    return encode(make_fake_photo(seed=1), ".jpg")


@pytest.fixture
def gray_512_bytes() -> bytes:
    return encode(np.full((512, 512), 128, np.uint8))


@pytest.fixture
def sprite_bytes() -> bytes:
    return encode(make_sprite())


@pytest.fixture
def texture_bytes() -> bytes:
    # 8x8 checker of 0/255 cells, 4px each
    tile = np.kron(np.array([[0, 255], [255, 0]], np.uint8), np.ones((4, 4), np.uint8))
    return encode(tile)


@pytest.fixture
def plain_config() -> dict:
    """Line-only run: every optional layer off."""
    return {"shade": False, "kiss": False, "watermark": False}
