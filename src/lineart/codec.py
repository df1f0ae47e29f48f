from __future__ import annotations
from typing import Optional, Tuple

import io
import logging

import cv2
import numpy as np
from PIL import Image

from .errors import DecodeError, EncodeError

log = logging.getLogger(__name__)

# Hard ceiling against decompression bombs; ordinary photos are far below it.
MAX_DECODE_PIXELS = 64_000_000
PNG_COMPRESSION = 1  # fast; output is re-encoded by most chat hosts anyway

# (magic prefix, mime) -- checked in order
_MAGIC = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
)


def detect_mime(data: bytes) -> str:
    """Best-effort mime sniffing from magic bytes."""
    head = bytes(data[:16])
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"
    if head[4:12] in (b"ftypavif", b"ftypavis"):
        return "image/avif"
    for magic, mime in _MAGIC:
        if head.startswith(magic):
            return mime
    return "application/octet-stream"


def _to_uint8(img: np.ndarray) -> np.ndarray:
    if img.dtype == np.uint8:
        return img
    if img.dtype == np.uint16:
        return (img >> 8).astype(np.uint8)
    if np.issubdtype(img.dtype, np.floating):
        return (np.clip(np.nan_to_num(img), 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
    raise DecodeError(f"unsupported sample type {img.dtype}")


def _check_pixels(w: int, h: int) -> None:
    if w * h > MAX_DECODE_PIXELS:
        raise DecodeError(f"{w}x{h} exceeds the {MAX_DECODE_PIXELS} pixel ceiling")


def probe_size(data: bytes) -> Optional[Tuple[int, int]]:
    """(width, height) from the container header without decoding pixels.

    None when Pillow does not recognise the container; OpenCV gets the
    final say on those.
    """
    try:
        with Image.open(io.BytesIO(data)) as im:
            return im.size
    except Image.DecompressionBombError as e:
        raise DecodeError(str(e)) from e
    except (OSError, ValueError, SyntaxError):
        return None


def decode_image(data: bytes) -> np.ndarray:
    """Encoded bytes -> RGBA uint8 array of shape (h, w, 4). Raises DecodeError.

    The pixel ceiling is checked on the header first, so an oversized image
    is rejected before any pixel buffer is allocated.
    """
    if not data:
        raise DecodeError("empty input")
    size = probe_size(data)
    if size is not None:
        _check_pixels(*size)
    else:
        log.debug("container not identified from header; leaving it to OpenCV")

    buf = np.frombuffer(data, dtype=np.uint8)
    try:
        img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise DecodeError(f"decoder rejected input: {e}") from e
    if img is None or img.size == 0:
        raise DecodeError("unrecognised or corrupt image container")

    h, w = img.shape[:2]
    _check_pixels(w, h)

    img = _to_uint8(img)
    if img.ndim == 2:
        rgba = cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    elif img.shape[2] == 1:
        rgba = cv2.cvtColor(img[..., 0], cv2.COLOR_GRAY2RGBA)
    elif img.shape[2] == 2:
        # gray + alpha
        rgba = np.dstack([img[..., 0], img[..., 0], img[..., 0], img[..., 1]])
    elif img.shape[2] == 3:
        rgba = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    elif img.shape[2] == 4:
        rgba = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    else:
        raise DecodeError(f"unsupported channel count {img.shape[2]}")
    return np.ascontiguousarray(rgba, dtype=np.uint8)


def decode_asset(data: Optional[bytes]) -> Optional[np.ndarray]:
    """Like decode_image, but None on any failure (assets are optional)."""
    if not data:
        return None
    try:
        return decode_image(data)
    except DecodeError:
        return None


def encode_png(rgba: np.ndarray) -> bytes:
    """RGBA uint8 (h, w, 4) -> PNG bytes. Raises EncodeError on bad buffers."""
    if not isinstance(rgba, np.ndarray) or rgba.dtype != np.uint8:
        raise EncodeError("buffer must be a uint8 ndarray")
    if rgba.ndim != 3 or rgba.shape[2] != 4 or rgba.shape[0] < 1 or rgba.shape[1] < 1:
        raise EncodeError(f"buffer shape {rgba.shape} is not (h, w, 4)")
    try:
        bgra = cv2.cvtColor(np.ascontiguousarray(rgba), cv2.COLOR_RGBA2BGRA)
        ok, buf = cv2.imencode(".png", bgra, [cv2.IMWRITE_PNG_COMPRESSION, PNG_COMPRESSION])
    except cv2.error as e:
        raise EncodeError(f"PNG encoder failed: {e}") from e
    if not ok:
        raise EncodeError("PNG encoder returned no data")
    return buf.tobytes()
