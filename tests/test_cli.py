"""Tests for argument parsing, YAML config and the CLI entry point."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from heictojpeg import __version__
from heictojpeg.cli import main
from heictojpeg.config import load_config, parse_args, save_config


def test_main_converts_directory(heic_dir: Path) -> None:
    code = main([str(heic_dir), "--workers", "1", "--no-progress"])

    assert code == 0
    assert (heic_dir / "jpegs" / "a.jpg").exists()
    assert (heic_dir / "jpegs" / "b.jpg").exists()
    assert (heic_dir / "jpegs" / "logs.txt").exists()


def test_main_exits_zero_despite_file_failures(tmp_path: Path) -> None:
    (tmp_path / "broken.heic").write_bytes(b"mock content")
    assert main([str(tmp_path), "--no-progress", "--no-log"]) == 0
    assert not (tmp_path / "jpegs" / "logs.txt").exists()


def test_main_missing_path_is_fatal(tmp_path: Path, capsys) -> None:
    assert main([str(tmp_path / "nope")]) == 1
    assert "[ERROR]" in capsys.readouterr().err


def test_main_uncreatable_output_dir_is_fatal(heic_dir: Path, capsys) -> None:
    (heic_dir / "jpegs").write_text("occupied")
    assert main([str(heic_dir), "--no-progress"]) == 1
    assert "cannot create output directory" in capsys.readouterr().err


def test_version_flag(capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        parse_args(["--version"])
    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out


@pytest.mark.parametrize("argv", [["--quality", "0"], ["--quality", "101"], ["--workers", "0"]])
def test_invalid_numbers_rejected(argv) -> None:
    with pytest.raises(SystemExit):
        parse_args(argv)


def test_defaults() -> None:
    args = parse_args([])
    assert args.path is None
    assert args.quality == 95
    assert args.workers >= 1
    assert not args.include_avif
    assert not args.keep_orientation


def test_config_sets_defaults_and_cli_overrides(tmp_path: Path) -> None:
    cfg = tmp_path / "settings.yaml"
    cfg.write_text(yaml.safe_dump({"quality": 80, "include_avif": True, "bogus": 1}))

    args = parse_args(["--config", str(cfg)])
    assert args.quality == 80
    assert args.include_avif is True

    args = parse_args(["--config", str(cfg), "--quality", "70"])
    assert args.quality == 70


def test_save_config_round_trip(tmp_path: Path) -> None:
    target = tmp_path / "conf" / "saved.yaml"
    args = parse_args(["photos", "--quality", "88", "--keep-orientation"])

    save_config(str(target), args)
    loaded = load_config(str(target))

    assert loaded["quality"] == 88
    assert loaded["keep_orientation"] is True
    assert "path" not in loaded
    assert "save_config" not in loaded


def test_main_save_config_exits_without_converting(tmp_path: Path) -> None:
    target = tmp_path / "out.yaml"
    (tmp_path / "broken.heic").write_bytes(b"mock content")

    assert main([str(tmp_path), "--save-config", str(target)]) == 0
    assert target.exists()
    assert not (tmp_path / "jpegs").exists()


def test_load_config_missing_or_invalid(tmp_path: Path, capsys) -> None:
    assert load_config(str(tmp_path / "none.yaml")) == {}
    bad = tmp_path / "bad.yaml"
    bad.write_text("quality: [unclosed")
    assert load_config(str(bad)) == {}
    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("42")
    assert load_config(str(scalar)) == {}
    assert "[WARNING]" in capsys.readouterr().out


@pytest.mark.parametrize("settings", [{"quality": 500}, {"quality": "high"}, {"workers": -3}, {"workers": None}])
def test_config_values_are_validated(tmp_path: Path, settings: dict) -> None:
    cfg = tmp_path / "settings.yaml"
    cfg.write_text(yaml.safe_dump(settings))
    with pytest.raises(SystemExit) as exc:
        parse_args(["--config", str(cfg)])
    assert exc.value.code == 2


def test_quality_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("HEICTOJPEG_QUALITY", "80")
    assert parse_args([]).quality == 80


@pytest.mark.parametrize("value", ["abc", "0"])
def test_bad_quality_environment_is_a_usage_error(monkeypatch, capsys, value: str) -> None:
    monkeypatch.setenv("HEICTOJPEG_QUALITY", value)
    with pytest.raises(SystemExit) as exc:
        parse_args([])
    assert exc.value.code == 2
    assert "--quality" in capsys.readouterr().err
