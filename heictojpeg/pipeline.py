"""
Processing pipeline orchestration for heictojpeg.

Converts single files and whole directories, with multiprocessing support.
"""

import os
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from datetime import timedelta
from pathlib import Path
from typing import Dict, Iterable, Optional

from tqdm.auto import tqdm

from .errors import OutputCollisionError
from .image_io import decode_image, encode_jpeg
from .metadata import transplant_exif
from .results import ConversionResult, count_results
from .sources import ConversionTarget, resolve_input
from .utils import (
    LOG_FILE_NAME,
    OUTPUT_DIR_NAME,
    ensure_output_dir,
    find_output_collisions,
    human_readable_size,
    is_eligible,
    jpeg_output_path,
    output_dir_for,
    supported_exts,
    write_atomic,
)
from .verify import verify_results


def convert_one(
        name: str,
        source_dir: str,
        output_dir: str,
        quality: int = 95,
        reset_orientation: bool = True,
        include_avif: bool = False,
) -> Optional[ConversionResult]:
    """
    Convert a single file to JPEG, carrying its EXIF block over.

    Args:
        name: Source file basename (as string for multiprocessing)
        source_dir: Directory holding the source file
        output_dir: Directory receiving <stem>.jpg
        quality: JPEG quality
        reset_orientation: Reset EXIF orientation to 1 in the output
        include_avif: Treat .avif as eligible

    Returns:
        ConversionResult, or None if the file is not eligible
    """
    if not is_eligible(name, exts=supported_exts(include_avif)):
        return None

    src_path = Path(source_dir) / name
    dst_path = jpeg_output_path(Path(output_dir), name)

    try:
        data = src_path.read_bytes()
    except OSError as e:
        return ConversionResult.failure("read", e)
    src_size = len(data)

    try:
        img = decode_image(data, src_path.suffix)
    except Exception as e:
        return ConversionResult.failure("decode", e, src_size)

    try:
        jpeg = encode_jpeg(img, quality=quality)
    except Exception as e:
        return ConversionResult.failure("encode", e, src_size)

    try:
        final = transplant_exif(data, jpeg, reset_orientation=reset_orientation, ext=src_path.suffix)
    except Exception as e:
        return ConversionResult.failure("metadata", e, src_size)

    try:
        write_atomic(dst_path, final)
    except OSError as e:
        return ConversionResult.failure("write", e, src_size)

    return ConversionResult.success(src_size, len(final))


def _print_result(name: str, res: ConversionResult):
    if res.ok:
        stem = Path(name).stem
        print(f"[OK] {name} -> {OUTPUT_DIR_NAME}/{stem}.jpg  "
              f"{human_readable_size(res.src_size)} -> {human_readable_size(res.dst_size)}")
    else:
        print(f"[ERR] {name}: {res.message}")


def process_batch(
        source_dir: Path,
        output_dir: Path,
        candidates: Iterable[ConversionTarget],
        workers: Optional[int] = None,
        quality: int = 95,
        reset_orientation: bool = True,
        include_avif: bool = False,
        show_progress: bool = False,
) -> Dict[str, ConversionResult]:
    """
    Convert every eligible candidate, in parallel.

    Ineligible entries (directories, other extensions) get no entry in the
    result. The output directory is created once before dispatch. When two
    sources share a stem, the first one in candidate order is converted and
    the others fail at the ``output`` stage without being dispatched.

    Args:
        source_dir: Directory holding the candidates
        output_dir: Directory receiving JPEGs
        candidates: Entries exposing ``name`` and ``is_dir()``
        workers: Parallel workers (default: CPU count)
        quality: JPEG quality
        reset_orientation: Reset EXIF orientation to 1 in outputs
        include_avif: Treat .avif as eligible
        show_progress: Show progress bar

    Returns:
        Mapping of source filename -> ConversionResult

    Raises:
        DirectoryCreateError: if the output directory cannot be created
    """
    exts = supported_exts(include_avif)
    names = [c.name for c in candidates if is_eligible(c.name, c.is_dir(), exts)]
    ensure_output_dir(output_dir)

    results: Dict[str, ConversionResult] = {}
    if not names:
        return results

    pbar = tqdm(total=len(names), unit="img") if show_progress else None

    collisions = find_output_collisions(names)
    for dup, first in collisions.items():
        err = OutputCollisionError(
            f"{OUTPUT_DIR_NAME}/{Path(dup).stem}.jpg is also the output of {first}")
        res = ConversionResult.failure("output", err)
        _print_result(dup, res)
        if pbar is not None:
            pbar.update(1)
        results[dup] = res
    names = [n for n in names if n not in collisions]

    if workers is None:
        workers = os.cpu_count() or 1
    workers = max(1, min(workers, len(names)))

    task_kwargs = dict(
        source_dir=str(source_dir),
        output_dir=str(output_dir),
        quality=quality,
        reset_orientation=reset_orientation,
        include_avif=include_avif,
    )

    if workers == 1:
        for name in names:
            res = convert_one(name, **task_kwargs)
            _print_result(name, res)
            if pbar is not None:
                pbar.update(1)
            results[name] = res
    else:
        with ProcessPoolExecutor(max_workers=workers) as ex:
            futs = {ex.submit(convert_one, name, **task_kwargs): name for name in names}
            for fut in as_completed(futs):
                name = futs[fut]
                try:
                    res = fut.result()
                except Exception as e:
                    res = ConversionResult.failure("worker", e)
                _print_result(name, res)
                if pbar is not None:
                    pbar.update(1)
                results[name] = res

    if pbar is not None:
        pbar.close()

    return results


def save_logs(
        output_dir: Path,
        results: Dict[str, ConversionResult],
        duration: timedelta,
) -> Path:
    """
    Write a conversion log to output_dir/logs.txt.

    One line per file in name order, followed by totals.

    Returns:
        Path of the log file
    """
    lines = []
    total_src = 0
    total_dst = 0
    for name in sorted(results):
        res = results[name]
        total_src += res.src_size
        total_dst += res.dst_size
        if res.ok:
            lines.append(f"{name} {human_readable_size(res.src_size)} > Converted > "
                         f"{OUTPUT_DIR_NAME}/{Path(name).stem}.jpg {human_readable_size(res.dst_size)}")
        else:
            lines.append(f"{name} > Error: {res.message}")

    count = len(results)
    avg = duration / count if count else duration
    lines.append("")
    lines.append(f"{count} Files")
    lines.append(f"Total Time Taken=={duration}")
    lines.append(f"Average Time Per File=={avg}")
    lines.append(f"Total HEIC File Size=={human_readable_size(total_src)}")
    lines.append(f"Total JPEG Folder Size=={human_readable_size(total_dst)}")

    log_path = Path(output_dir) / LOG_FILE_NAME
    log_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return log_path


def run_conversion(
        input_path: Optional[str] = None,
        workers: Optional[int] = None,
        quality: int = 95,
        reset_orientation: bool = True,
        include_avif: bool = False,
        show_progress: bool = True,
        write_log: bool = True,
        verify: bool = False,
) -> Dict[str, ConversionResult]:
    """
    Resolve the input, convert everything eligible and report.

    Args:
        (see process_batch for most parameters)
        input_path: File or directory; None for the current directory
        write_log: Write jpegs/logs.txt
        verify: Re-read outputs and compare EXIF and dimensions

    Returns:
        Mapping of source filename -> ConversionResult

    Raises:
        NotFoundError, StatError: if the input cannot be resolved
        DirectoryCreateError: if the output directory cannot be created
    """
    source_dir, candidates = resolve_input(input_path)
    exts = supported_exts(include_avif)
    eligible = [c for c in candidates if is_eligible(c.name, c.is_dir(), exts)]
    if not eligible:
        print("No HEIC files found.")
        return {}
    n_workers = min(workers or os.cpu_count() or 1, len(eligible))
    print(f"Found {len(eligible)} HEIC file(s). Processing with {n_workers} worker(s)...")

    output_dir = output_dir_for(source_dir)
    start = time.monotonic()
    results = process_batch(
        source_dir,
        output_dir,
        eligible,
        workers=workers,
        quality=quality,
        reset_orientation=reset_orientation,
        include_avif=include_avif,
        show_progress=show_progress,
    )
    duration = timedelta(seconds=time.monotonic() - start)

    if write_log:
        log_path = save_logs(output_dir, results, duration)
        print(f"[INFO] Saved log to {log_path}")

    if verify:
        verify_results(source_dir, output_dir, results, reset_orientation=reset_orientation)

    done, failed = count_results(results)
    print("\n=== Summary ===")
    print(f"Source dir:  {source_dir}")
    print(f"Output dir:  {output_dir}")
    print(f"Converted:   {done}  |  Failed: {failed}  |  Took: {duration}")

    return results
