from __future__ import annotations

import io
import logging

import pytest
from PIL import Image

from _store_publisher.stage_2_normalize_icon import normalize_icon
from _store_publisher.store_errors import ArtifactReadError, IconDecodeError

from tests.helpers import write_image


def _decoded(content: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(content))
    img.load()
    return img


def test_exact_size_passes_through_unchanged(tmp_path):
    path = write_image(tmp_path / "plugin.png", (256, 256))

    icon = normalize_icon(path)

    assert icon.resized is False
    assert icon.content == path.read_bytes()
    assert icon.filename == "plugin.png"
    assert icon.original_size == (256, 256)


def test_exact_size_jpeg_is_not_reencoded(tmp_path):
    path = write_image(tmp_path / "plugin.jpg", (256, 256), fmt="JPEG")

    icon = normalize_icon(path)

    assert icon.content == path.read_bytes()
    assert icon.filename == "plugin.jpg"


def test_wrong_size_is_resized_to_png(tmp_path):
    path = write_image(tmp_path / "plugin.png", (512, 256))

    icon = normalize_icon(path)

    assert icon.resized is True
    assert icon.original_size == (512, 256)
    img = _decoded(icon.content)
    assert img.format == "PNG"
    assert img.size == (256, 256)


@pytest.mark.parametrize("fmt, suffix", [("JPEG", "jpg"), ("GIF", "gif")])
def test_other_formats_are_reencoded_as_png(tmp_path, fmt, suffix):
    path = write_image(tmp_path / f"icon.{suffix}", (100, 300), fmt=fmt)

    icon = normalize_icon(path)

    assert icon.filename == "icon.png"
    img = _decoded(icon.content)
    assert img.format == "PNG"
    assert img.size == (256, 256)


def test_accepts_open_file_object(tmp_path):
    path = write_image(tmp_path / "plugin.png", (64, 64))

    with open(path, "rb") as f:
        icon = normalize_icon(f)

    assert icon.resized is True
    assert _decoded(icon.content).size == (256, 256)


def test_logs_resize_and_copy(tmp_path, caplog):
    caplog.set_level(logging.DEBUG, logger="_store_publisher.stage_2_normalize_icon")

    normalize_icon(write_image(tmp_path / "big.png", (512, 256)))
    normalize_icon(write_image(tmp_path / "exact.png", (256, 256)))

    assert "Resizing store icon image from 512x256 to 256x256" in caplog.text
    assert "already 256x256, copying original file" in caplog.text


def test_missing_file_raises_read_error(tmp_path):
    with pytest.raises(ArtifactReadError) as exc_info:
        normalize_icon(tmp_path / "missing.png")

    assert exc_info.value.label == "normalize_icon"


def test_garbage_bytes_raise_decode_error(tmp_path):
    path = tmp_path / "plugin.png"
    path.write_bytes(b"definitely not an image")

    with pytest.raises(IconDecodeError) as exc_info:
        normalize_icon(path)

    assert exc_info.value.path == str(path)
