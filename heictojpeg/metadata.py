"""
EXIF handling for heictojpeg.

Reads the EXIF block of a HEIF/AVIF file through its decoder library and
splices it into an encoded JPEG as an APP1 segment.
"""

import io
import struct
from typing import Optional

import pillow_heif
from PIL import Image

from .errors import MetadataParseError
from .utils import AVIF_EXTS

EXIF_HEADER = b"Exif\x00\x00"
TIFF_HEADERS = (b"II*\x00", b"MM\x00*")
ORIENTATION_TAG = 0x0112

SOI = b"\xff\xd8"
APP1 = 0xE1
SOS = 0xDA
# Markers without a length field
STANDALONE_MARKERS = {0x01, 0xD8} | set(range(0xD0, 0xD8))
# 16-bit segment length includes its own two bytes
MAX_APP1_PAYLOAD = 0xFFFF - 2


def _container_exif(source: bytes, ext: str) -> Optional[bytes]:
    """Open the container with its library and return ``info['exif']``."""
    try:
        if ext.lower() in AVIF_EXTS:
            with Image.open(io.BytesIO(source)) as im:
                return im.info.get("exif")
        heif = pillow_heif.open_heif(io.BytesIO(source))
        return heif.info.get("exif")
    except Exception as e:
        raise MetadataParseError(f"cannot parse container: {e}") from e


def extract_exif(source: bytes, ext: str = ".heic") -> Optional[bytes]:
    """
    Extract the EXIF payload from a HEIF/AVIF file.

    Args:
        source: Full container bytes
        ext: Source extension, used to pick the library

    Returns:
        TIFF-structured EXIF bytes (starting with 'II*\\0' or 'MM\\0*'),
        or None if the file carries no EXIF

    Raises:
        MetadataParseError: if the container cannot be parsed or its EXIF
            block holds no TIFF structure
    """
    exif = _container_exif(source, ext)
    if not exif:
        return None
    if exif.startswith(EXIF_HEADER):
        exif = exif[len(EXIF_HEADER):]
    elif not exif.startswith(TIFF_HEADERS) and len(exif) > 4:
        # Raw Exif item: 4-byte offset to the TIFF header comes first
        offset = struct.unpack_from(">I", exif, 0)[0]
        exif = exif[4 + offset:]
        if exif.startswith(EXIF_HEADER):
            exif = exif[len(EXIF_HEADER):]
    if not exif.startswith(TIFF_HEADERS):
        raise MetadataParseError("EXIF block does not hold a TIFF header")
    return exif


def reset_exif_orientation(tiff: bytes) -> bytes:
    """Rewrite a non-trivial Orientation tag to 1 (top-left)."""
    exif = Image.Exif()
    exif.load(tiff)
    if exif.get(ORIENTATION_TAG) in (None, 1):
        return tiff
    exif[ORIENTATION_TAG] = 1
    out = exif.tobytes()
    return out[len(EXIF_HEADER):] if out.startswith(EXIF_HEADER) else out


def build_app1_segment(tiff: bytes) -> bytes:
    """Wrap a TIFF EXIF payload in a JPEG APP1 segment."""
    payload = EXIF_HEADER + tiff
    if len(payload) > MAX_APP1_PAYLOAD:
        raise MetadataParseError(f"EXIF block of {len(tiff)} bytes does not fit in one APP1 segment")
    return bytes([0xFF, APP1]) + struct.pack(">H", len(payload) + 2) + payload


def insert_after_soi(jpeg: bytes, segment: bytes) -> bytes:
    """Splice a marker segment directly after the JPEG start-of-image marker."""
    if not jpeg.startswith(SOI):
        raise MetadataParseError("encoded data is not a JPEG (missing SOI marker)")
    return SOI + segment + jpeg[len(SOI):]


def transplant_exif(
        source: bytes,
        jpeg: bytes,
        reset_orientation: bool = False,
        ext: str = ".heic",
) -> bytes:
    """
    Copy the EXIF block of a HEIF/AVIF container into an encoded JPEG.

    Args:
        source: Original container bytes
        jpeg: Encoded JPEG bytes (without EXIF)
        reset_orientation: Rewrite the Orientation tag to 1, for pixels that
            were already rotated by the decoder
        ext: Source extension

    Returns:
        JPEG bytes with an Exif APP1 segment after SOI, or ``jpeg`` unchanged
        when the source has no EXIF

    Raises:
        MetadataParseError: if the container is malformed
    """
    tiff = extract_exif(source, ext)
    if tiff is None:
        return jpeg
    if reset_orientation:
        tiff = reset_exif_orientation(tiff)
    return insert_after_soi(jpeg, build_app1_segment(tiff))


def read_jpeg_exif(jpeg: bytes) -> Optional[bytes]:
    """
    Return the TIFF payload of the first Exif APP1 segment of a JPEG.

    Walks marker segments up to start-of-scan.

    Raises:
        MetadataParseError: if the marker structure is broken
    """
    if not jpeg.startswith(SOI):
        raise MetadataParseError("not a JPEG (missing SOI marker)")
    pos = 2
    end = len(jpeg)
    while pos < end:
        if jpeg[pos] != 0xFF:
            raise MetadataParseError(f"expected marker at offset {pos}")
        marker = jpeg[pos + 1] if pos + 1 < end else None
        if marker is None:
            break
        if marker == 0xFF:
            # fill byte
            pos += 1
            continue
        if marker in STANDALONE_MARKERS:
            pos += 2
            continue
        if marker == SOS:
            break
        if pos + 4 > end:
            raise MetadataParseError("truncated JPEG segment header")
        length = struct.unpack_from(">H", jpeg, pos + 2)[0]
        if length < 2 or pos + 2 + length > end:
            raise MetadataParseError(f"JPEG segment at offset {pos} overruns the file")
        payload = jpeg[pos + 4:pos + 2 + length]
        if marker == APP1 and payload.startswith(EXIF_HEADER):
            return payload[len(EXIF_HEADER):]
        pos += 2 + length
    return None
