from .config import PipelineConfig, Quality, resolve_config, load_config
from .errors import PipelineError, ConfigError, DecodeError, EncodeError, ProcessingError
from .codec import decode_image, encode_png, detect_mime
from .geometry import GeometryStage
from .lines import LineExtractor, LineResult
from .shading import ShadingStage
from .kiss import KissStage
from .watermark import WatermarkStage, WatermarkPreset
from .pipeline import LineArtPipeline, PipelineResult, one_last_image

__all__ = [
    "PipelineConfig", "Quality", "resolve_config", "load_config",
    "PipelineError", "ConfigError", "DecodeError", "EncodeError", "ProcessingError",
    "decode_image", "encode_png", "detect_mime",
    "GeometryStage",
    "LineExtractor", "LineResult",
    "ShadingStage",
    "KissStage",
    "WatermarkStage", "WatermarkPreset",
    "LineArtPipeline", "PipelineResult", "one_last_image",
]
