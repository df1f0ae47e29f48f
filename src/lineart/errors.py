from __future__ import annotations


class PipelineError(Exception):
    """Base error for the line-art pipeline; remembers which stage failed."""

    def __init__(self, stage: str, message: str = "") -> None:
        self.stage = stage
        self.message = message or "failed"
        super().__init__(f"[{stage}] {self.message}")


class ConfigError(PipelineError):
    """Configuration is structurally invalid (bad enum, uncoercible value)."""

    def __init__(self, message: str) -> None:
        super().__init__("config", message)


class DecodeError(PipelineError):
    """Input bytes are not a readable image."""

    def __init__(self, message: str) -> None:
        super().__init__("decode", message)


class EncodeError(PipelineError):
    """Final buffer could not be serialised; indicates a broken invariant."""

    def __init__(self, message: str) -> None:
        super().__init__("encode", message)


class ProcessingError(PipelineError):
    """Unexpected failure inside a pixel stage (OpenCV error, allocation)."""
