"""
Per-file conversion results.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

STAGES = ("output", "read", "decode", "encode", "metadata", "write", "worker")


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of converting one file."""
    ok: bool
    message: str
    stage: Optional[str] = None  # failing stage, None on success
    src_size: int = 0
    dst_size: int = 0

    @classmethod
    def success(cls, src_size: int = 0, dst_size: int = 0) -> "ConversionResult":
        return cls(ok=True, message="converted", src_size=src_size, dst_size=dst_size)

    @classmethod
    def failure(cls, stage: str, err: BaseException, src_size: int = 0) -> "ConversionResult":
        if stage not in STAGES:
            raise ValueError(f"unknown stage: {stage}")
        return cls(ok=False, message=f"{stage} failed: {err}", stage=stage, src_size=src_size)


def count_results(results: Dict[str, ConversionResult]) -> Tuple[int, int]:
    """Return (converted, failed) counts."""
    done = sum(1 for r in results.values() if r.ok)
    return done, len(results) - done
