"""
Utility functions for heictojpeg.

File extension filtering, output path handling and size formatting.
"""

import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Optional, Set

from .errors import DirectoryCreateError

# File extension constants
HEIF_EXTS: Set[str] = {".heic", ".heif"}
AVIF_EXTS: Set[str] = {".avif"}

OUTPUT_DIR_NAME = "jpegs"
LOG_FILE_NAME = "logs.txt"


def supported_exts(include_avif: bool = False) -> Set[str]:
    """Return the set of source extensions eligible for conversion."""
    if include_avif:
        return HEIF_EXTS | AVIF_EXTS
    return set(HEIF_EXTS)


def is_eligible(name: str, is_dir: bool = False, exts: Optional[Set[str]] = None) -> bool:
    """
    Decide whether an entry should be converted.

    Shared by the batch orchestrator and the per-file converter so that what
    gets dispatched and what gets reported never diverge.

    Args:
        name: Entry basename
        is_dir: Whether the entry is a directory
        exts: Eligible extensions (lowercase, with dot), default HEIC/HEIF

    Returns:
        True if the entry is a file with an eligible extension
    """
    if is_dir:
        return False
    if exts is None:
        exts = HEIF_EXTS
    return Path(name).suffix.lower() in exts


def output_dir_for(source_dir: Path) -> Path:
    """Compute the JPEG output directory for a source directory."""
    return Path(source_dir) / OUTPUT_DIR_NAME


def ensure_output_dir(output_dir: Path) -> Path:
    """
    Create the output directory (and parents) if missing.

    Raises:
        DirectoryCreateError: if the directory cannot be created
    """
    output_dir = Path(output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreateError(f"cannot create output directory {output_dir}: {e}") from e
    return output_dir


def jpeg_output_path(output_dir: Path, name: str) -> Path:
    """Return output_dir/<stem>.jpg for a source filename."""
    return Path(output_dir) / f"{Path(name).stem}.jpg"


def human_readable_size(num_bytes: int) -> str:
    """Format a byte count as e.g. '500B', '1.5KB', '2.0MB'."""
    units = ["B", "KB", "MB", "GB", "TB"]
    size = float(num_bytes)
    idx = 0
    while size >= 1024.0 and idx < len(units) - 1:
        size /= 1024.0
        idx += 1
    if idx == 0:
        return f"{num_bytes}B"
    return f"{size:.1f}{units[idx]}"


def find_output_collisions(names: Iterable[str]) -> Dict[str, str]:
    """
    Find sources that map to the same <stem>.jpg output.

    Output names are compared case-insensitively, since common filesystems
    fold case.

    Args:
        names: Source basenames, in dispatch order

    Returns:
        Mapping of duplicate name -> first name claiming the output
    """
    seen: Dict[str, str] = {}
    dups: Dict[str, str] = {}
    for name in names:
        key = f"{Path(name).stem}.jpg".lower()
        if key in seen:
            dups[name] = seen[key]
        else:
            seen[key] = name
    return dups


def write_atomic(path: Path, data: bytes) -> None:
    """
    Write bytes to a sibling temp file, then rename it over ``path``.

    A failed write leaves neither a partial ``path`` nor the temp file.
    """
    path = Path(path)
    tmp = tempfile.NamedTemporaryFile(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False)
    tmp_path = Path(tmp.name)
    try:
        with tmp:
            tmp.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
