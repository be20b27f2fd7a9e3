"""
Input resolution for heictojpeg.

Turns the single path argument into a working directory and the list of
candidate entries to consider for conversion.
"""

import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

from .errors import NotFoundError, StatError


class ConversionTarget(Protocol):
    """An entry with a basename that may or may not be a directory.

    ``os.DirEntry`` satisfies this directly; ``SingleFileEntry`` covers a
    file passed on the command line.
    """

    name: str

    def is_dir(self) -> bool:
        ...


@dataclass(frozen=True)
class SingleFileEntry:
    """Synthetic entry wrapping the basename of a single-file argument."""
    name: str

    def is_dir(self) -> bool:
        return False


def list_entries(directory: Path) -> List[os.DirEntry]:
    """
    List a directory non-recursively, sorted by name.

    Raises:
        NotFoundError: if the directory does not exist
        StatError: if the directory cannot be read
    """
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except FileNotFoundError as e:
        raise NotFoundError(f"path not found: {directory}") from e
    except OSError as e:
        raise StatError(f"cannot list {directory}: {e}") from e
    entries.sort(key=lambda e: e.name)
    return entries


def resolve_input(path: Optional[str] = None) -> Tuple[Path, List[ConversionTarget]]:
    """
    Resolve the input argument to (source_dir, candidates).

    Args:
        path: Directory or file path; None means the current directory

    Returns:
        (source directory, candidate entries)

    Raises:
        NotFoundError: if the path does not exist
        StatError: if the path cannot be inspected
    """
    p = Path(path).expanduser() if path else Path(".")
    try:
        st = p.stat()
    except FileNotFoundError as e:
        raise NotFoundError(f"path not found: {p}") from e
    except OSError as e:
        raise StatError(f"cannot stat {p}: {e}") from e

    if stat.S_ISDIR(st.st_mode):
        return p, list_entries(p)
    return p.parent, [SingleFileEntry(p.name)]
