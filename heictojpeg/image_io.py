"""
Image decoding and JPEG encoding for heictojpeg.

HEIC/HEIF is decoded with pillow-heif; AVIF goes through Pillow's own plugin.
JPEG encoding happens in memory so EXIF can be spliced in before writing.
"""

import io

import pillow_heif
from PIL import Image

from .utils import AVIF_EXTS


def decode_image(data: bytes, ext: str = ".heic") -> Image.Image:
    """
    Decode container bytes to an RGB Pillow image.

    The primary image is decoded with its container transformations
    (rotation/mirror) applied. The ICC profile, if any, is kept in
    ``img.info['icc_profile']``.

    Args:
        data: Full file contents
        ext: Source extension, used to pick the decoder

    Returns:
        PIL Image in RGB mode
    """
    if ext.lower() in AVIF_EXTS:
        with Image.open(io.BytesIO(data)) as im0:
            im0.load()
            icc = im0.info.get("icc_profile")
            img = im0.convert("RGB")
    else:
        heif = pillow_heif.open_heif(io.BytesIO(data), convert_hdr_to_8bit=True)
        im0 = heif.to_pillow()
        icc = im0.info.get("icc_profile")
        img = im0.convert("RGB")
    if icc:
        img.info["icc_profile"] = icc
    return img


def encode_jpeg(img: Image.Image, quality: int = 95) -> bytes:
    """
    Encode an image as JPEG bytes, attaching the ICC profile if present.

    EXIF is not written here; see metadata.transplant_exif.

    Args:
        img: Source PIL Image
        quality: JPEG quality (1-100)

    Returns:
        Encoded JPEG bytes
    """
    save_kwargs = dict(format="JPEG", quality=quality, optimize=True)
    if img.info.get("icc_profile"):
        save_kwargs["icc_profile"] = img.info["icc_profile"]
    buf = io.BytesIO()
    img.convert("RGB").save(buf, **save_kwargs)
    return buf.getvalue()
