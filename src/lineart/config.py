from __future__ import annotations

import base64
import binascii
import json
import logging
import math
import os
import re
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Mapping, Optional, Union

from .errors import ConfigError

log = logging.getLogger(__name__)


class Quality(str, Enum):
    """Line-extraction variant. Values match the option strings users type."""

    FINE = "fine"
    NORMAL = "normal"
    COARSE = "coarse"
    SUPER_COARSE = "superCoarse"
    EXTRA_COARSE = "extraCoarse"
    EMBOSS = "emboss"
    SKETCH = "sketch"

    @classmethod
    def parse(cls, value: Any) -> "Quality":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ConfigError(f"quality must be a string, got {type(value).__name__}")
        key = value.replace("_", "").replace("-", "").strip().lower()
        for q in cls:
            if q.value.lower() == key:
                return q
        choices = ", ".join(q.value for q in cls)
        raise ConfigError(f"unknown quality {value!r} (expected one of: {choices})")


# Config dataclass (immutable; built once per call by resolve_config)

@dataclass(frozen=True)
class PipelineConfig:
    zoom: float = 1.0                        # [0.5, 4.0]
    cover: bool = False                      # square centre-crop after scaling
    quality: Quality = Quality.NORMAL
    denoise: bool = True
    light_cut: int = 128                     # band upper edge is 255 - light_cut
    dark_cut: int = 118                      # at/below -> full line strength
    shade: bool = True
    shade_limit: int = 108                   # at/above -> no tone
    shade_light: int = 80                    # at/below -> darkest tone
    tone_count: int = 3                      # [1, 10]
    light: float = 0.0                       # percent, [-100, 100]
    kiss: bool = True
    watermark: bool = True
    hajimei: bool = False
    watermark_image: Optional[bytes] = None  # encoded sprite (PNG/JPEG)
    pencil_texture: Optional[bytes] = None   # encoded grain texture
    max_side: Optional[int] = None           # None -> no cap on the longest side

    def __repr__(self) -> str:
        # keep asset blobs out of logs
        parts = []
        for f in fields(self):
            v = getattr(self, f.name)
            if isinstance(v, bytes):
                v = f"<{len(v)} bytes>"
            elif isinstance(v, Quality):
                v = v.value
            parts.append(f"{f.name}={v!r}")
        return f"PipelineConfig({', '.join(parts)})"


# (type, low, high) for clamped numeric fields
_NUMERIC = {
    "zoom": (float, 0.5, 4.0),
    "light_cut": (int, 0, 255),
    "dark_cut": (int, 0, 255),
    "shade_limit": (int, 0, 255),
    "shade_light": (int, 0, 255),
    "tone_count": (int, 1, 10),
    "light": (float, -100.0, 100.0),
}
_BOOLS = ("cover", "denoise", "shade", "kiss", "watermark", "hajimei")
_ASSETS = ("watermark_image", "pencil_texture")
_MAX_SIDE_RANGE = (16, 32768)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}
_DATA_URI = re.compile(r"^data:[^;,]*;base64,", re.IGNORECASE)
_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")

ConfigInput = Union[None, str, bytes, Mapping[str, Any], PipelineConfig]


def _snake(key: str) -> str:
    return _CAMEL.sub("_", key).lower()


def _coerce_number(name: str, value: Any) -> float:
    if isinstance(value, str):
        value = value.strip()
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None
    if math.isnan(out):
        raise ConfigError(f"{name} must be a number, got NaN")
    return out


def _coerce_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _TRUE:
            return True
        if v in _FALSE:
            return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _coerce_asset(name: str, value: Any) -> Optional[bytes]:
    """Raw bytes pass through; strings are base64 (optionally a data URI)."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
        return data or None
    if isinstance(value, str):
        text = _DATA_URI.sub("", value.strip())
        if not text:
            return None
        try:
            return base64.b64decode(text, validate=True) or None
        except (binascii.Error, ValueError):
            log.debug("%s is not valid base64; treating as absent", name)
            return None
    raise ConfigError(f"{name} must be bytes or a base64 string, got {type(value).__name__}")


def _clamp(name: str, value: float) -> float:
    kind, lo, hi = _NUMERIC[name]
    clamped = min(max(value, lo), hi)
    if clamped != value:
        log.debug("%s=%s clamped to %s", name, value, clamped)
    return kind(round(clamped)) if kind is int else float(clamped)


def resolve_config(raw: ConfigInput = None) -> PipelineConfig:
    """Validate and default a sparse config (camelCase or snake_case keys).

    Accepts None, a mapping, JSON text, or an existing PipelineConfig.
    Out-of-range numbers are clamped; only structurally invalid input raises
    ConfigError.
    """
    if raw is None:
        return PipelineConfig()
    if isinstance(raw, PipelineConfig):
        return raw
    if isinstance(raw, (str, bytes)):
        if not raw.strip():
            return PipelineConfig()
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise ConfigError(f"config is not valid JSON: {e}") from e
    if not isinstance(raw, Mapping):
        raise ConfigError(f"config must be a mapping, got {type(raw).__name__}")

    known = {f.name for f in fields(PipelineConfig)}
    values: dict[str, Any] = {}
    for key, value in raw.items():
        if not isinstance(key, str):
            raise ConfigError(f"config keys must be strings, got {key!r}")
        name = _snake(key)
        if name not in known:
            log.debug("ignoring unknown config key %r", key)
            continue
        if value is None and name not in _ASSETS and name != "max_side":
            continue  # explicit null -> default

        if name == "quality":
            values[name] = Quality.parse(value)
        elif name in _NUMERIC:
            values[name] = _clamp(name, _coerce_number(name, value))
        elif name in _BOOLS:
            values[name] = _coerce_bool(name, value)
        elif name in _ASSETS:
            values[name] = _coerce_asset(name, value)
        elif name == "max_side":
            if value is None:
                values[name] = None
            else:
                lo, hi = _MAX_SIDE_RANGE
                values[name] = int(min(max(_coerce_number(name, value), lo), hi))

    return PipelineConfig(**values)


def read_config_file(path: str | os.PathLike) -> dict[str, Any]:
    """Read a JSON config file into a plain dict (keys left as written)."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except ValueError as e:
            raise ConfigError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    log.info("Loaded config from %s", path)
    return data


def load_config(path: str | os.PathLike) -> PipelineConfig:
    """Read a JSON config file and resolve it. Raises on unreadable files."""
    return resolve_config(read_config_file(path))
