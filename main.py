#!/usr/bin/env python3
"""
HEIC/HEIF to JPEG converter; EXIF preserved; multiprocessing; logs to jpegs/logs.txt.

Usage examples:
  python main.py                      # convert every HEIC in the current directory
  python main.py ~/Photos --workers 8
  python main.py photo.heic --quality 90
  python main.py ~/Photos --config heictojpeg.yaml --verify
"""

import sys

from heictojpeg.cli import main

if __name__ == "__main__":
    sys.exit(main())
