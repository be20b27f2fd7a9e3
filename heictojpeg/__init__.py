"""
heictojpeg - HEIC/HEIF to JPEG converter with EXIF preservation.

Batch converter: resolves a file or directory, converts every HEIC/HEIF in
parallel, carries the EXIF block over, and reports per-file results.
"""

__version__ = "1.0.0"

# Core functionality
from .pipeline import process_batch, convert_one, run_conversion, save_logs
from .image_io import decode_image, encode_jpeg
from .metadata import extract_exif, transplant_exif, read_jpeg_exif, reset_exif_orientation
from .results import ConversionResult, count_results
from .sources import ConversionTarget, SingleFileEntry, list_entries, resolve_input
from .verify import verify_output, verify_results
from .errors import (
    HeicToJpegError,
    NotFoundError,
    StatError,
    DirectoryCreateError,
    MetadataParseError,
    OutputCollisionError,
)
from .utils import (
    ensure_output_dir,
    output_dir_for,
    jpeg_output_path,
    is_eligible,
    supported_exts,
    human_readable_size,
    HEIF_EXTS,
    AVIF_EXTS,
)

__all__ = [
    # Version
    "__version__",
    # Pipeline
    "process_batch",
    "convert_one",
    "run_conversion",
    "save_logs",
    # Image I/O
    "decode_image",
    "encode_jpeg",
    # Metadata
    "extract_exif",
    "transplant_exif",
    "read_jpeg_exif",
    "reset_exif_orientation",
    # Results
    "ConversionResult",
    "count_results",
    # Sources
    "ConversionTarget",
    "SingleFileEntry",
    "list_entries",
    "resolve_input",
    # Verification
    "verify_output",
    "verify_results",
    # Errors
    "HeicToJpegError",
    "NotFoundError",
    "StatError",
    "DirectoryCreateError",
    "MetadataParseError",
    "OutputCollisionError",
    # Utils
    "ensure_output_dir",
    "output_dir_for",
    "jpeg_output_path",
    "is_eligible",
    "supported_exts",
    "human_readable_size",
    "HEIF_EXTS",
    "AVIF_EXTS",
]
