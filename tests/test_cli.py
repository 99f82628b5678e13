from pathlib import Path
import logging
import os
import sys

import pytest

from dtree.cli import main
from dtree.run_service import EXIT_FAILURE, EXIT_SUCCESS


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.fixture(autouse=True)
def _reset_dtree_logger():
    yield
    logger = logging.getLogger("dtree")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def test_count_files_prints_total(tmp_path: Path, capsys) -> None:
    _write(tmp_path / "src" / "a.txt", "0123456789")
    _write(tmp_path / "src" / "sub" / "b.log", "abcde")

    exit_code = main(["count-files", str(tmp_path / "src")])

    assert exit_code == EXIT_SUCCESS
    assert capsys.readouterr().out == "Total files: 2\n"


def test_total_size_prints_bytes(tmp_path: Path, capsys) -> None:
    _write(tmp_path / "src" / "a.txt", "0123456789")
    _write(tmp_path / "src" / "sub" / "b.log", "abcde")

    exit_code = main(["total-size", str(tmp_path / "src")])

    assert exit_code == EXIT_SUCCESS
    assert capsys.readouterr().out == "Total size: 15 bytes\n"


def test_copy_with_exclude_extension(tmp_path: Path) -> None:
    _write(tmp_path / "src" / "a.txt", "a")
    _write(tmp_path / "src" / "sub" / "b.log", "b")
    destination = tmp_path / "dst"

    exit_code = main(["copy", str(tmp_path / "src"), str(destination), ".log"])

    assert exit_code == EXIT_SUCCESS
    assert (destination / "a.txt").exists()
    assert (destination / "sub").is_dir()
    assert not (destination / "sub" / "b.log").exists()


def test_missing_arguments_is_usage_error(tmp_path: Path, capsys) -> None:
    exit_code = main(["delete", str(tmp_path)])

    assert exit_code == EXIT_FAILURE
    assert "usage:" in capsys.readouterr().err


def test_extension_without_dot_is_usage_error(tmp_path: Path, capsys) -> None:
    exit_code = main(["by-extension", str(tmp_path), "txt"])

    err = capsys.readouterr().err
    assert exit_code == EXIT_FAILURE
    assert "must begin with '.'" in err


def test_root_that_is_not_a_directory_fails(tmp_path: Path, capsys) -> None:
    missing = tmp_path / "missing"

    exit_code = main(["list", str(missing)])

    captured = capsys.readouterr()
    assert exit_code == EXIT_FAILURE
    assert captured.out == ""
    assert f"{missing} is not a directory" in captured.err


def test_move_failure_to_remove_root_is_only_a_warning(tmp_path: Path, capsys) -> None:
    source = tmp_path / "src"
    _write(source / "a.txt", "a")
    (source / "link").symlink_to(source / "a.txt")

    exit_code = main(["move", str(source), str(tmp_path / "dst")])

    err = capsys.readouterr().err
    assert exit_code == EXIT_SUCCESS
    assert (tmp_path / "dst" / "a.txt").exists()
    assert source.is_dir()
    assert "WARNING" in err
    assert "Unable to delete source" in err


def test_help_exits_cleanly(capsys) -> None:
    assert main(["--help"]) == EXIT_SUCCESS
    assert "by-extension" in capsys.readouterr().out


def test_settings_file_is_applied(tmp_path: Path, capsys) -> None:
    _write(tmp_path / "src" / "a.txt", "a")
    settings_file = tmp_path / "dtree.yaml"
    settings_file.write_text("logLevel: INFO\n", encoding="utf-8")

    exit_code = main(["--config", str(settings_file), "count-directories", str(tmp_path / "src")])

    captured = capsys.readouterr()
    assert exit_code == EXIT_SUCCESS
    assert captured.out == "Total directories: 1\n"
    assert "INFO count-directories" in captured.err


def test_invalid_settings_file_fails(tmp_path: Path, capsys) -> None:
    settings_file = tmp_path / "dtree.yaml"
    settings_file.write_text("chunkSize: -1\n", encoding="utf-8")

    exit_code = main(["--config", str(settings_file), "list", str(tmp_path)])

    assert exit_code == EXIT_FAILURE
    assert "Invalid settings" in capsys.readouterr().err


@pytest.mark.skipif(sys.platform in ("darwin", "win32"), reason="file system requires valid UTF-8 names")
def test_list_prints_undecodable_file_names(tmp_path: Path, capsysbinary) -> None:
    source = tmp_path / "src"
    source.mkdir()
    (source / os.fsdecode(b"bad\xff.txt")).write_bytes(b"x")

    exit_code = main(["list", str(source)])

    out = capsysbinary.readouterr().out
    assert exit_code == EXIT_SUCCESS
    assert os.fsencode(source / os.fsdecode(b"bad\xff.txt")) + b"\n" in out
    assert os.fsencode(source) + b"\n" in out
