from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Tuple

import os

IMAGE_EXTENSIONS: Tuple[str, ...] = (".png", ".jpg", ".jpeg", ".bmp", ".webp", ".tif", ".tiff")


# I/O & filesystem helpers

def ensure_dir(path: str | os.PathLike) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def read_bytes(path: str | os.PathLike) -> bytes:
    """Read a whole file. Raises FileNotFoundError with the path on failure."""
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Could not read file: {path}")
    return p.read_bytes()


def list_images(
    dir_path: str | os.PathLike,
    extensions: Tuple[str, ...] = IMAGE_EXTENSIONS,
) -> List[str]:
    p = Path(dir_path)
    return [
        str(fp) for fp in sorted(p.iterdir())
        if fp.is_file() and fp.suffix.lower() in extensions
    ]


def output_path_for(src: str | os.PathLike, save_dir: Optional[str | os.PathLike] = None,
                    suffix: str = "_lineart") -> Path:
    """<save_dir or src dir>/<stem><suffix>.png"""
    src = Path(src)
    out_dir = Path(save_dir) if save_dir else src.parent
    return out_dir / f"{src.stem}{suffix}.png"
