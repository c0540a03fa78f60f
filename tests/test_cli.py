"""Tests for multiupload CLI helpers."""
import asyncio
import logging
import os
from pathlib import Path

import pytest
from rich.console import Console

from multiupload.cli import (
    CLIError,
    _chunk_size_option,
    _drop_option,
    _load_env_file,
    _normalize_dest,
    _parse_env_line,
    _resolve_default_env_file,
    _resolve_log_level,
    _run_upload,
    _setup_logging,
    run_cli,
)
from multiupload.cli_progress import ConsoleUploadListener, RichProgressBars, _human_size
from multiupload.coordinator.indicators import ProgressIndicator


ENV_KEYS = (
    "LOG_LEVEL",
    "MULTIUPLOAD_DEST",
    "MULTIUPLOAD_CHUNK_SIZE",
    "MULTIUPLOAD_DROP",
    "MULTIUPLOAD_ENV_FILE",
    "OTHER_TOOL_TOKEN",
)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.disable(logging.NOTSET)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv first so monkeypatch restores whatever was there before
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


@pytest.fixture
def quiet_console():
    return Console(file=open(os.devnull, "w"), force_terminal=False)


def test_normalize_dest(tmp_path):
    assert _normalize_dest(None) is None
    assert _normalize_dest("") is None
    assert _normalize_dest("  ") is None
    assert _normalize_dest(str(tmp_path)) == tmp_path
    assert _normalize_dest("~/uploads") == Path("~/uploads").expanduser()


@pytest.mark.parametrize(
    "line, expected",
    [
        ("MULTIUPLOAD_DEST='/srv/uploads'", ("MULTIUPLOAD_DEST", "/srv/uploads")),
        ("export LOG_LEVEL=DEBUG", ("LOG_LEVEL", "DEBUG")),
        ("MULTIUPLOAD_DROP=1  # drop mode", ("MULTIUPLOAD_DROP", "1")),
        ('MULTIUPLOAD_DEST="/a b # c"', ("MULTIUPLOAD_DEST", "/a b # c")),
        ("# comment", None),
        ("not a pair", None),
        ("=value", None),
        ("", None),
    ],
)
def test_parse_env_line(line, expected):
    assert _parse_env_line(line) == expected


def test_load_env_file(tmp_path):
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "# comment",
                "MULTIUPLOAD_DEST='/srv/uploads'",
                "export LOG_LEVEL=DEBUG",
                "OTHER_TOOL_TOKEN=secret",
                "not a pair",
            ]
        ),
        encoding="utf-8",
    )

    applied = _load_env_file(env_path)

    assert applied == {"MULTIUPLOAD_DEST": "/srv/uploads", "LOG_LEVEL": "DEBUG"}
    assert os.environ["MULTIUPLOAD_DEST"] == "/srv/uploads"
    assert os.environ["LOG_LEVEL"] == "DEBUG"
    assert "OTHER_TOOL_TOKEN" not in os.environ


def test_load_env_file_keeps_existing_values(tmp_path, monkeypatch):
    env_path = tmp_path / ".env"
    env_path.write_text("MULTIUPLOAD_CHUNK_SIZE=16\n", encoding="utf-8")
    monkeypatch.setenv("MULTIUPLOAD_CHUNK_SIZE", "32")

    assert _load_env_file(env_path) == {}
    assert os.environ["MULTIUPLOAD_CHUNK_SIZE"] == "32"

    assert _load_env_file(env_path, override=True) == {"MULTIUPLOAD_CHUNK_SIZE": "16"}
    assert os.environ["MULTIUPLOAD_CHUNK_SIZE"] == "16"


def test_load_env_file_missing(tmp_path):
    with pytest.raises(CLIError):
        _load_env_file(tmp_path / "missing.env")
    with pytest.raises(CLIError):
        _load_env_file(tmp_path)


def test_default_env_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert _resolve_default_env_file() is None

    (tmp_path / ".env").write_text("", encoding="utf-8")
    assert _resolve_default_env_file() == Path(".env")

    monkeypatch.setenv("MULTIUPLOAD_ENV_FILE", str(tmp_path / "upload.env"))
    assert _resolve_default_env_file() == tmp_path / "upload.env"


@pytest.mark.parametrize(
    "debug, log_level, env_level, expected",
    [
        (False, None, None, None),
        (True, "ERROR", None, logging.DEBUG),
        (False, "warning", None, logging.WARNING),
        (False, None, "error", logging.ERROR),
        (False, "loud", None, logging.INFO),
    ],
)
def test_resolve_log_level(monkeypatch, debug, log_level, env_level, expected):
    if env_level:
        monkeypatch.setenv("LOG_LEVEL", env_level)
    assert _resolve_log_level(debug, log_level) == expected


def test_setup_logging_defaults_to_silent():
    mode = _setup_logging(debug=False, silent=False, log_level=None)
    assert mode == "silent"


def test_setup_logging_debug_mode():
    mode = _setup_logging(debug=True, silent=False, log_level=None)
    assert mode == "DEBUG"
    assert logging.getLogger().isEnabledFor(logging.DEBUG) is True


def test_setup_logging_from_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    mode = _setup_logging(debug=False, silent=False, log_level=None)
    assert mode == "WARNING"


def test_setup_logging_silent_wins(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert _setup_logging(debug=True, silent=True, log_level=None) == "silent"


def test_chunk_size_option(monkeypatch):
    assert _chunk_size_option(None) == 64 * 1024
    assert _chunk_size_option(10) == 10

    monkeypatch.setenv("MULTIUPLOAD_CHUNK_SIZE", "4096")
    assert _chunk_size_option(None) == 4096
    assert _chunk_size_option(8) == 8

    monkeypatch.setenv("MULTIUPLOAD_CHUNK_SIZE", "big")
    with pytest.raises(CLIError):
        _chunk_size_option(None)
    with pytest.raises(CLIError):
        _chunk_size_option(0)


@pytest.mark.parametrize("value, expected", [("1", True), ("Yes", True), ("0", False), ("", False)])
def test_drop_option_from_env(monkeypatch, value, expected):
    monkeypatch.setenv("MULTIUPLOAD_DROP", value)
    assert _drop_option(False) is expected
    assert _drop_option(True) is True


def test_human_size():
    assert _human_size(512) == "512 B"
    assert _human_size(2048) == "2.00 KB"
    assert _human_size(-1) == "0 B"


class TestRichProgressBars:
    def test_tracks_indicators(self, quiet_console):
        bars = RichProgressBars(quiet_console)
        indicator = ProgressIndicator(caption="a.txt")

        bars.add_indicator(indicator)
        indicator.value = 0.5
        bars.indicator_changed(indicator)
        assert len(bars) == 1

        bars.remove_indicator(indicator)
        bars.remove_indicator(indicator)
        assert len(bars) == 0


def test_console_listener_counts(quiet_console):
    listener = ConsoleUploadListener(quiet_console)
    listener.file_upload_started("a.txt", 1)
    listener.file_upload_finished("a.txt", 1)
    listener.file_upload_error("b.txt", 0)
    assert listener.stats == {"started": 1, "finished": 1, "failed": 1}


@pytest.mark.parametrize("drop", [False, True])
def test_run_upload_copies_files(tmp_path, quiet_console, drop):
    sources = []
    for name in ("a.txt", "b.txt"):
        path = tmp_path / name
        path.write_text(name, encoding="utf-8")
        sources.append(path)
    dest = tmp_path / "dest"

    stats = asyncio.run(_run_upload(sources, dest, drop, 4, out=quiet_console))

    assert stats == {"total_files": 2, "uploaded": 2, "failed": 0}
    assert (dest / "a.txt").read_text(encoding="utf-8") == "a.txt"
    assert (dest / "b.txt").read_text(encoding="utf-8") == "b.txt"


def test_run_upload_rejects_file_dest(tmp_path, quiet_console):
    dest = tmp_path / "not_a_dir"
    dest.write_text("x", encoding="utf-8")
    with pytest.raises(CLIError):
        asyncio.run(_run_upload([], dest, False, 4, out=quiet_console))


def test_run_cli_without_sources(capsys):
    assert run_cli(["--silent"]) == 0
    assert "usage" in capsys.readouterr().out


def test_run_cli_missing_source(tmp_path, capsys):
    assert run_cli(["--silent", str(tmp_path / "missing.txt")]) == 1
    assert "not a file" in capsys.readouterr().err


def test_run_cli_rejects_bad_chunk_size(tmp_path, capsys):
    src = tmp_path / "a.txt"
    src.write_text("a", encoding="utf-8")
    assert run_cli(["--silent", "--chunk-size", "0", str(src)]) == 1


def test_run_upload_counts_unwritable_target_as_failed(tmp_path, quiet_console):
    src = tmp_path / "a.txt"
    src.write_text("a", encoding="utf-8")
    dest = tmp_path / "dest"
    (dest / "a.txt").mkdir(parents=True)

    stats = asyncio.run(_run_upload([src], dest, False, 4, out=quiet_console))

    assert stats == {"total_files": 1, "uploaded": 0, "failed": 1}


def test_run_cli_reports_unwritable_target(tmp_path, capsys):
    src = tmp_path / "a.txt"
    src.write_text("a", encoding="utf-8")
    dest = tmp_path / "dest"
    (dest / "a.txt").mkdir(parents=True)

    assert run_cli(["--silent", "-g", str(dest), str(src)]) == 1
    assert "Traceback" not in capsys.readouterr().err


def test_run_cli_reads_settings_from_env_file(tmp_path, capsys):
    src = tmp_path / "a.txt"
    src.write_text("abc", encoding="utf-8")
    env_path = tmp_path / "upload.env"
    env_path.write_text(f"MULTIUPLOAD_DEST={tmp_path / 'inbox'}\nMULTIUPLOAD_DROP=1\n", encoding="utf-8")

    assert run_cli(["--silent", "--env-file", str(env_path), str(src)]) == 0
    assert (tmp_path / "inbox" / "a.txt").read_text(encoding="utf-8") == "abc"
    assert "drop" in capsys.readouterr().out


def test_run_cli_rejects_bad_env_chunk_size(tmp_path, monkeypatch, capsys):
    src = tmp_path / "a.txt"
    src.write_text("a", encoding="utf-8")
    monkeypatch.setenv("MULTIUPLOAD_CHUNK_SIZE", "lots")
    assert run_cli(["--silent", str(src)]) == 1
    assert "MULTIUPLOAD_CHUNK_SIZE" in capsys.readouterr().err
