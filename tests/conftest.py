"""Shared fixtures: HEIC files encoded with pillow-heif, EXIF payloads, JPEG bytes."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pillow_heif
import pytest
from PIL import Image

pillow_heif.register_heif_opener()

SIZE = (64, 48)
MAKE_TAG = 0x010F
MODEL_TAG = 0x0110
ORIENTATION_TAG = 0x0112


def gradient_image(size=SIZE) -> Image.Image:
    w, h = size
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[..., 0] = np.linspace(0, 255, w, dtype=np.uint8)[None, :]
    arr[..., 1] = np.linspace(0, 255, h, dtype=np.uint8)[:, None]
    arr[..., 2] = 128
    return Image.fromarray(arr)


def make_tiff(make: str = "heictojpeg", model: str = "Test Camera", orientation: int | None = None) -> bytes:
    """Build a TIFF-structured EXIF payload (no 'Exif\\0\\0' prefix)."""
    exif = Image.Exif()
    exif[MAKE_TAG] = make
    exif[MODEL_TAG] = model
    if orientation is not None:
        exif[ORIENTATION_TAG] = orientation
    data = exif.tobytes()
    return data[6:] if data.startswith(b"Exif\x00\x00") else data


def write_heic(path: Path, exif: bytes | None = None, size=SIZE) -> Path:
    """Encode a gradient image as HEIC with pillow-heif."""
    kwargs = {"format": "HEIF", "quality": 90}
    if exif is not None:
        kwargs["exif"] = b"Exif\x00\x00" + exif
    gradient_image(size).save(path, **kwargs)
    return path


@pytest.fixture
def tiff() -> bytes:
    return make_tiff()


@pytest.fixture
def jpeg_bytes() -> bytes:
    from heictojpeg.image_io import encode_jpeg
    return encode_jpeg(gradient_image())


@pytest.fixture
def heic_dir(tmp_path: Path) -> Path:
    """a.heic (EXIF), b.heif (no EXIF), c.txt, d.heic (truncated), folder.heic/ (dir)."""
    a = write_heic(tmp_path / "a.heic", exif=make_tiff())
    write_heic(tmp_path / "b.heif")
    (tmp_path / "c.txt").write_text("not an image")
    (tmp_path / "d.heic").write_bytes(a.read_bytes()[:40])
    (tmp_path / "folder.heic").mkdir()
    return tmp_path
