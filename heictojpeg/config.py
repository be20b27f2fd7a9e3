"""
Configuration and argument parsing for heictojpeg.

Handles YAML config files and command-line argument parsing.
"""

import argparse
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from . import __version__

# Keys never written to or read from a config file
NON_CONFIG_KEYS = {"path", "config", "save_config", "help", "version"}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load YAML config file and return dict of settings.

    Args:
        config_path: Path to config file

    Returns:
        Dict of configuration settings (empty if missing or unreadable)
    """
    p = Path(config_path).expanduser()
    if not p.exists():
        print(f"[WARNING] Config file not found: {config_path}")
        return {}

    try:
        with open(p, "r") as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        print(f"[WARNING] Failed to load config {p}: {e}")
        return {}
    if config is not None and not isinstance(config, dict):
        print(f"[WARNING] Ignoring config {p}: expected a mapping")
        return {}
    print(f"[CONFIG] Loaded: {p}")
    return config or {}


def save_config(config_path: str, args: argparse.Namespace) -> Path:
    """
    Save current args to a YAML config file.

    Args:
        config_path: Path to save config file
        args: Parsed arguments namespace

    Returns:
        Path written
    """
    config = {key: value for key, value in vars(args).items()
              if key not in NON_CONFIG_KEYS and value is not None}

    p = Path(config_path).expanduser()
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w") as f:
        yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
    print(f"[CONFIG] Saved to: {p}")
    return p


def _quality(value: str) -> int:
    q = int(value)
    if not 1 <= q <= 100:
        raise argparse.ArgumentTypeError(f"quality must be between 1 and 100, got {q}")
    return q


def _workers(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"workers must be at least 1, got {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="heictojpeg",
        description=("Convert HEIC/HEIF images to JPEG, preserving EXIF. Outputs go to a "
                     "'jpegs/' folder next to the sources; a log is saved as jpegs/logs.txt."),
    )
    p.add_argument("path", nargs="?", default=None,
                   help="Directory of HEIC files or a single HEIC file (default: current directory).")
    p.add_argument("--workers", type=_workers, default=os.cpu_count() or 1,
                   help="Parallel workers (default: number of CPUs).")
    p.add_argument("--quality", type=_quality, default=os.environ.get("HEICTOJPEG_QUALITY", "95"),
                   help="JPEG quality 1-100 (default: 95, or $HEICTOJPEG_QUALITY).")
    p.add_argument("--avif", dest="include_avif", action="store_true",
                   help="Also convert .avif files.")
    p.add_argument("--keep-orientation", action="store_true",
                   help="Copy the EXIF Orientation tag as-is instead of resetting it to 1.")
    p.add_argument("--no-log", action="store_true", help="Do not write jpegs/logs.txt.")
    p.add_argument("--no-progress", action="store_true", help="Disable progress bar.")
    p.add_argument("--verify", action="store_true",
                   help="Re-read outputs and check EXIF and dimensions against the sources.")
    p.add_argument("--config", type=str, default=None,
                   help="Load settings from YAML config file.")
    p.add_argument("--save-config", type=str, default=None,
                   help="Save current settings to YAML config file and exit.")
    p.add_argument("--version", "-v", action="version", version=f"heictojpeg {__version__}")
    return p


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments with config file support.

    Supports two-pass parsing: loads config file first, then CLI args override.

    Returns:
        Parsed arguments namespace
    """
    p = build_parser()

    # First pass: parse to check for --config
    args_temp, _ = p.parse_known_args(argv)

    if args_temp.config:
        config_dict = load_config(args_temp.config)
        dests = {action.dest for action in p._actions}
        unknown = sorted(set(config_dict) - dests)
        if unknown:
            print(f"[WARNING] Unknown config keys ignored: {', '.join(unknown)}")
        p.set_defaults(**{k: v for k, v in config_dict.items()
                          if k in dests and k not in NON_CONFIG_KEYS})

    # Second pass: parse all args (CLI args override config)
    args = p.parse_args(argv)

    # Non-string config values skip type= conversion
    for dest, check in (("quality", _quality), ("workers", _workers)):
        try:
            setattr(args, dest, check(getattr(args, dest)))
        except (argparse.ArgumentTypeError, TypeError, ValueError) as e:
            p.error(f"argument --{dest}: {e}")
    return args
