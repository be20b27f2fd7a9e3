"""
Command-line entry point for heictojpeg.
"""

import sys
from typing import List, Optional

from .config import parse_args, save_config
from .errors import DirectoryCreateError, NotFoundError, StatError
from .pipeline import run_conversion

RED = "\x1b[31m"
RESET = "\x1b[0m"


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the converter.

    Returns:
        0 once the batch completed (even with per-file failures), 1 when the
        input cannot be resolved or the output directory cannot be created
    """
    args = parse_args(argv)

    if args.save_config:
        save_config(args.save_config, args)
        return 0

    try:
        run_conversion(
            input_path=args.path,
            workers=args.workers,
            quality=args.quality,
            reset_orientation=not args.keep_orientation,
            include_avif=args.include_avif,
            show_progress=not args.no_progress,
            write_log=not args.no_log,
            verify=args.verify,
        )
    except (NotFoundError, StatError, DirectoryCreateError) as e:
        print(f"{RED}[ERROR] {e}{RESET}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
