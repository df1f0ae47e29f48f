from __future__ import annotations

import json
import logging

import pytest

from lineart.cli import build_argparser, build_config, main
from lineart.codec import decode_image


@pytest.fixture
def photo_file(tmp_path, photo_bytes):
    path = tmp_path / "photo.png"
    path.write_bytes(photo_bytes)
    return path


def test_single_image_written_next_to_input(photo_file):
    main(["--image", str(photo_file)])
    out = photo_file.with_name("photo_lineart.png")
    assert out.is_file()
    assert decode_image(out.read_bytes()).shape == (120, 160, 4)


def test_save_dir_and_flags(photo_file, tmp_path):
    save_dir = tmp_path / "out" / "nested"
    main(["--image", str(photo_file), "--save_dir", str(save_dir), "--zoom", "0.5", "--cover", "--no_kiss"])
    out = decode_image((save_dir / "photo_lineart.png").read_bytes())
    assert out.shape == (60, 60, 4)


def test_directory_mode_skips_non_images(tmp_path, photo_bytes, photo_jpg_bytes):
    (tmp_path / "a.png").write_bytes(photo_bytes)
    (tmp_path / "b.jpg").write_bytes(photo_jpg_bytes)
    (tmp_path / "notes.txt").write_text("not an image")
    main(["--dir", str(tmp_path), "--save_dir", str(tmp_path / "out")])
    written = sorted(p.name for p in (tmp_path / "out").iterdir())
    assert written == ["a_lineart.png", "b_lineart.png"]


def test_requires_an_input():
    with pytest.raises(SystemExit) as ei:
        main([])
    assert ei.value.code == 2


def test_flags_override_config_file(tmp_path, sprite_bytes):
    cfg_path = tmp_path / "cfg.json"
    cfg_path.write_text(json.dumps({"quality": "sketch", "zoom": 2, "kiss": True}), encoding="utf-8")
    sprite = tmp_path / "mark.png"
    sprite.write_bytes(sprite_bytes)

    args = build_argparser().parse_args([
        "--image", "x.png", "--config", str(cfg_path), "--quality", "fine", "--no_kiss",
        "--watermark_image", str(sprite),
    ])
    cfg = build_config(args)
    assert cfg["quality"] == "fine"
    assert cfg["zoom"] == 2
    assert cfg["kiss"] is False
    assert cfg["watermark_image"] == sprite_bytes
    assert "shade" not in cfg


def test_invalid_config_exits(tmp_path, photo_file):
    cfg_path = tmp_path / "cfg.json"
    cfg_path.write_text(json.dumps({"quality": "watercolour"}), encoding="utf-8")
    with pytest.raises(SystemExit) as ei:
        main(["--image", str(photo_file), "--config", str(cfg_path)])
    assert ei.value.code == 2


def test_unconvertible_file_is_reported(tmp_path, photo_bytes):
    (tmp_path / "bad.png").write_bytes(b"definitely not a png")
    (tmp_path / "good.png").write_bytes(photo_bytes)
    save_dir = tmp_path / "out"
    with pytest.raises(SystemExit) as ei:
        main(["--dir", str(tmp_path), "--save_dir", str(save_dir)])
    assert "1 of 2" in str(ei.value.code)
    assert (save_dir / "good_lineart.png").is_file()
    assert not (save_dir / "bad_lineart.png").exists()


def test_skipped_files_are_logged_by_the_cli_module(tmp_path, caplog):
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"not a png")
    with caplog.at_level(logging.WARNING):
        with pytest.raises(SystemExit):
            main(["--image", str(bad)])
    assert any(rec.name == "lineart.cli" and "not converted" in rec.getMessage()
               for rec in caplog.records)
