from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from time import perf_counter
from typing import Iterator, Optional, Tuple, Union

import logging

import cv2
import numpy as np

from .codec import decode_image, detect_mime, encode_png
from .config import ConfigInput, PipelineConfig, resolve_config
from .errors import DecodeError, EncodeError, PipelineError, ProcessingError
from .geometry import GeometryStage
from .kiss import KissStage
from .lines import LineExtractor
from .shading import ShadingStage
from .watermark import WatermarkStage

log = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True)
class PipelineResult:
    data: bytes                            # PNG on success, the untouched input otherwise
    ok: bool
    mime: str
    size: Optional[Tuple[int, int]] = None  # (width, height) of the rendered image
    error: Optional[PipelineError] = None


@contextmanager
def _stage(name: str) -> Iterator[None]:
    """Time a stage and funnel library failures into ProcessingError."""
    t0 = perf_counter()
    try:
        yield
    except PipelineError:
        raise
    except (cv2.error, MemoryError, ValueError, FloatingPointError) as e:
        raise ProcessingError(name, f"{type(e).__name__}: {e}") from e
    log.debug("stage %-9s %.1f ms", name, (perf_counter() - t0) * 1000.0)


class LineArtPipeline:
    """End-to-end orchestration: decode -> geometry -> lines -> shading ->
    kiss -> watermark -> encode. All-or-nothing: on decode/encode/processing
    failure the caller gets the original bytes back."""

    def __init__(self, config: ConfigInput = None) -> None:
        self.config: PipelineConfig = resolve_config(config)  # ConfigError surfaces here
        self.geometry = GeometryStage(
            zoom=self.config.zoom,
            cover=self.config.cover,
            max_side=self.config.max_side,
        )
        self.lines = LineExtractor(self.config)
        self.shading = ShadingStage(self.config)
        self.kiss = KissStage(self.config.kiss)
        self.watermark = WatermarkStage(self.config)

    def render(self, data: BytesLike) -> np.ndarray:
        """Bytes -> final RGBA array. Raises DecodeError / ProcessingError."""
        with _stage("decode"):
            rgba = decode_image(bytes(data))
        log.debug("decoded %dx%d", rgba.shape[1], rgba.shape[0])

        with _stage("geometry"):
            canvas = self.geometry.run(rgba)
        with _stage("lines"):
            lines = self.lines.run(canvas)
        with _stage("shading"):
            gray = self.shading.run(lines)
        with _stage("kiss"):
            out = self.kiss.run(gray)
        with _stage("watermark"):
            out = self.watermark.run(out)
        return out

    def run(self, data: BytesLike) -> PipelineResult:
        original = bytes(data)
        try:
            out = self.render(original)
            with _stage("encode"):
                png = encode_png(out)
        except EncodeError as e:
            log.error("encode failed, returning original bytes: %s", e)
            return self._fallback(original, e)
        except (DecodeError, ProcessingError) as e:
            log.warning("%s stage failed, returning original bytes: %s", e.stage, e.message)
            return self._fallback(original, e)

        h, w = out.shape[:2]
        log.info("rendered %dx%d (%s) -> %d bytes", w, h, self.config.quality.value, len(png))
        return PipelineResult(data=png, ok=True, mime="image/png", size=(w, h))

    @staticmethod
    def _fallback(original: bytes, error: PipelineError) -> PipelineResult:
        return PipelineResult(data=original, ok=False, mime=detect_mime(original), error=error)


def one_last_image(data: BytesLike, config: ConfigInput = None) -> bytes:
    """Convert an image to line art. Returns PNG bytes, or ``data`` unchanged
    if it cannot be decoded/encoded. Raises ConfigError for a malformed config."""
    return LineArtPipeline(config).run(data).data
