"""
Output verification for heictojpeg.

Checks that a converted JPEG carries the source EXIF block unchanged and
matches the decoded source in size and (roughly) content.
"""

import io
from pathlib import Path
from typing import Dict, List

import numpy as np
from PIL import Image

from .image_io import decode_image
from .metadata import extract_exif, read_jpeg_exif, reset_exif_orientation
from .results import ConversionResult
from .utils import jpeg_output_path

# Mean absolute difference (0-255) above which the pixels are flagged
MAX_MEAN_ABS_DIFF = 12.0


def _issue(field: str, src_value, dst_value, severity: str) -> Dict:
    return {"field": field, "src_value": src_value, "dst_value": dst_value, "severity": severity}


def verify_output(src_path: Path, dst_path: Path, reset_orientation: bool = True) -> List[Dict]:
    """
    Compare a converted JPEG against its source container.

    Args:
        src_path: Source HEIC/HEIF/AVIF file
        dst_path: Converted JPEG
        reset_orientation: Whether the conversion reset EXIF orientation

    Returns:
        List of issue dicts with keys: field, src_value, dst_value, severity
    """
    issues = []
    src_data = Path(src_path).read_bytes()
    dst_data = Path(dst_path).read_bytes()

    try:
        dst_img = Image.open(io.BytesIO(dst_data))
        dst_img.load()
    except Exception as e:
        return [_issue("JPEG", "readable", f"unreadable ({e})", "CRITICAL")]

    src_exif = extract_exif(src_data, Path(src_path).suffix)
    if src_exif is not None and reset_orientation:
        src_exif = reset_exif_orientation(src_exif)
    dst_exif = read_jpeg_exif(dst_data)
    if src_exif is not None and dst_exif is None:
        issues.append(_issue("EXIF", f"{len(src_exif)} bytes", "MISSING", "CRITICAL"))
    elif src_exif is not None and src_exif != dst_exif:
        issues.append(_issue("EXIF", f"{len(src_exif)} bytes", f"{len(dst_exif)} bytes differ", "CRITICAL"))

    src_img = decode_image(src_data, Path(src_path).suffix)
    if src_img.size != dst_img.size:
        issues.append(_issue("Dimensions", src_img.size, dst_img.size, "CRITICAL"))
    else:
        diff = np.abs(np.asarray(src_img, dtype=np.int16) -
                      np.asarray(dst_img.convert("RGB"), dtype=np.int16)).mean()
        if diff > MAX_MEAN_ABS_DIFF:
            issues.append(_issue("Pixels", "source", f"mean abs diff {diff:.1f}", "WARNING"))

    return issues


def verify_results(
        source_dir: Path,
        output_dir: Path,
        results: Dict[str, ConversionResult],
        reset_orientation: bool = True,
) -> Dict[str, List[Dict]]:
    """
    Verify every successful conversion and print a short report.

    Returns:
        Mapping of source filename -> issues (only files with issues)
    """
    found: Dict[str, List[Dict]] = {}
    ok_names = sorted(name for name, res in results.items() if res.ok)
    for name in ok_names:
        src = Path(source_dir) / name
        dst = jpeg_output_path(output_dir, name)
        try:
            issues = verify_output(src, dst, reset_orientation=reset_orientation)
        except Exception as e:
            issues = [_issue("VERIFY", "N/A", f"failed: {e}", "ERROR")]
        if issues:
            found[name] = issues
            for issue in issues:
                print(f"[VERIFY] {name} [{issue['severity']}] {issue['field']}: "
                      f"{issue['src_value']} -> {issue['dst_value']}")

    print(f"[VERIFY] {len(ok_names) - len(found)}/{len(ok_names)} output(s) verified")
    return found

