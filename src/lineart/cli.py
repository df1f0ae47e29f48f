from __future__ import annotations
import argparse
import logging
from typing import Any, Dict, Optional, Sequence

from .codec import decode_image
from .config import Quality, read_config_file
from .errors import ConfigError
from .helpers import ensure_dir, list_images, output_path_for, read_bytes
from .pipeline import LineArtPipeline, PipelineResult
from .viz import Visualizer

log = logging.getLogger(__name__)


def setup_logging(verbosity: int = 0) -> None:
    level = [logging.WARNING, logging.INFO, logging.DEBUG][min(verbosity, 2)]
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    )


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="lineart", description="Photo to line-art converter")
    g_io = p.add_argument_group("I/O")
    g_io.add_argument("--image", type=str, help="Path to a single image")
    g_io.add_argument("--dir", type=str, help="Path to a directory of images")
    g_io.add_argument("--save_dir", type=str, default=None, help="Output folder (default: next to input)")
    g_io.add_argument("--show", action="store_true", help="Display original vs result")
    g_io.add_argument("--config", type=str, default=None, help="JSON config file")
    g_io.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug")

    # flags default to None so that only explicit ones override --config
    g_geo = p.add_argument_group("Geometry")
    g_geo.add_argument("--zoom", type=float, default=None)
    g_geo.add_argument("--cover", action="store_const", const=True, default=None,
                       help="Centre-crop to a square")
    g_geo.add_argument("--max_side", type=int, default=None)

    g_line = p.add_argument_group("Lines")
    g_line.add_argument("--quality", type=str, default=None, choices=[q.value for q in Quality])
    g_line.add_argument("--no_denoise", dest="denoise", action="store_const", const=False, default=None)
    g_line.add_argument("--light_cut", type=int, default=None)
    g_line.add_argument("--dark_cut", type=int, default=None)
    g_line.add_argument("--light", type=float, default=None, help="Brightness adjustment in percent")

    g_tone = p.add_argument_group("Shading")
    g_tone.add_argument("--no_shade", dest="shade", action="store_const", const=False, default=None)
    g_tone.add_argument("--shade_limit", type=int, default=None)
    g_tone.add_argument("--shade_light", type=int, default=None)
    g_tone.add_argument("--tone_count", type=int, default=None)
    g_tone.add_argument("--pencil_texture", type=str, default=None, help="Texture image path")

    g_fx = p.add_argument_group("Kiss / Watermark")
    g_fx.add_argument("--no_kiss", dest="kiss", action="store_const", const=False, default=None)
    g_fx.add_argument("--no_watermark", dest="watermark", action="store_const", const=False, default=None)
    g_fx.add_argument("--hajimei", action="store_const", const=True, default=None)
    g_fx.add_argument("--watermark_image", type=str, default=None, help="Watermark sprite path")
    return p


_OVERRIDES = (
    "zoom", "cover", "max_side", "quality", "denoise", "light_cut", "dark_cut", "light",
    "shade", "shade_limit", "shade_light", "tone_count", "kiss", "watermark", "hajimei",
)


def build_config(args: argparse.Namespace) -> Dict[str, Any]:
    """--config file first, explicit flags on top, asset paths read as bytes."""
    cfg: Dict[str, Any] = read_config_file(args.config) if args.config else {}
    for name in _OVERRIDES:
        value = getattr(args, name)
        if value is not None:
            cfg[name] = value
    if args.watermark_image:
        cfg["watermark_image"] = read_bytes(args.watermark_image)
    if args.pencil_texture:
        cfg["pencil_texture"] = read_bytes(args.pencil_texture)
    return cfg


def _process_one(path: str, pipeline: LineArtPipeline, save_dir: Optional[str],
                 viz: Optional[Visualizer]) -> PipelineResult:
    data = read_bytes(path)
    result = pipeline.run(data)
    if not result.ok:
        log.warning("%s: not converted (%s)", path, result.error)
        return result

    out_path = output_path_for(path, save_dir)
    ensure_dir(out_path.parent)
    out_path.write_bytes(result.data)
    log.info("%s -> %s", path, out_path)

    if viz is not None:
        original = decode_image(data)
        lines = pipeline.lines.run(pipeline.geometry.run(original))
        viz.compare(original, decode_image(result.data), title=pipeline.config.quality.value, lines=lines)
    return result


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_argparser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not args.image and not args.dir:
        parser.error("Provide either --image or --dir")

    try:
        pipeline = LineArtPipeline(build_config(args))
    except ConfigError as e:
        parser.error(str(e))
    log.debug("%r", pipeline.config)

    viz = Visualizer() if args.show else None
    paths = [args.image] if args.image else list_images(args.dir)
    failed = 0
    for path in paths:
        if not _process_one(path, pipeline, args.save_dir, viz).ok:
            failed += 1

    if failed:
        raise SystemExit(f"{failed} of {len(paths)} image(s) could not be converted")
