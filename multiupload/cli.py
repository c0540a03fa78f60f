"""Command line interface for multiupload package."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.logging import RichHandler

from .cli_progress import (
    ConsoleUploadListener,
    RichProgressBars,
    render_configuration_summary,
    render_finish,
    render_received,
)
from .models import ReceivedFile, UploadConfig
from .services.channel import DEFAULT_CHUNK_SIZE, LocalDroppedFile
from .widget import MultiFileUpload


ENV_PREFIX = "MULTIUPLOAD_"
ENV_FILE_VAR = "MULTIUPLOAD_ENV_FILE"
LOG_LEVEL_VAR = "LOG_LEVEL"
TRUE_VALUES = {"1", "true", "yes", "on"}


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _resolve_log_level(debug: bool, log_level: Optional[str]) -> Optional[int]:
    """Level asked for by --debug, --log-level or LOG_LEVEL; None keeps logging silent."""
    if debug:
        return logging.DEBUG
    name = (log_level or os.getenv(LOG_LEVEL_VAR) or "").strip()
    if not name:
        return None
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Route log records through rich, or switch logging off.

    Returns the effective level name, or "silent".
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    logging.disable(logging.NOTSET)

    level = None if silent else _resolve_log_level(debug, log_level)
    if level is None:
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    handler = RichHandler(rich_tracebacks=True, markup=True, show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return logging.getLevelName(level)


def _normalize_dest(dest: Optional[str]) -> Optional[Path]:
    if dest is None:
        return None
    value = dest.strip()
    if not value:
        return None
    return Path(value).expanduser()


def _is_known_env_key(key: str) -> bool:
    return key == LOG_LEVEL_VAR or (key.startswith(ENV_PREFIX) and key != ENV_FILE_VAR)


def _parse_env_line(raw_line: str) -> Optional[Tuple[str, str]]:
    """Split one ``KEY=value`` line; None for blanks, comments and junk."""
    line = raw_line.strip()
    if line.startswith("export "):
        line = line[len("export ") :].lstrip()
    if not line or line.startswith("#") or "=" not in line:
        return None

    key, value = (part.strip() for part in line.split("=", 1))
    if not key:
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        value = value[1:-1]
    elif " #" in value:
        value = value.split(" #", 1)[0].rstrip()
    return key, value


def _load_env_file(path: Path, override: bool = False) -> Dict[str, str]:
    """
    Export the multiupload settings found in a .env file.

    Keys other than ``MULTIUPLOAD_*`` and ``LOG_LEVEL`` are skipped. Variables
    that are already set win unless ``override`` is true.

    Returns the variables that were applied.
    """
    if not path.exists():
        raise CLIError(f"env file not found: {path}")
    if not path.is_file():
        raise CLIError(f"env path is not a file: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    applied: Dict[str, str] = {}
    for raw_line in content.splitlines():
        pair = _parse_env_line(raw_line)
        if pair is None or not _is_known_env_key(pair[0]):
            continue
        key, value = pair
        if override or key not in os.environ:
            os.environ[key] = value
            applied[key] = value
    return applied


def _resolve_default_env_file() -> Optional[Path]:
    configured = os.getenv(ENV_FILE_VAR)
    if configured:
        return Path(configured).expanduser()
    default_env = Path(".env")
    return default_env if default_env.is_file() else None


def _chunk_size_option(value: Optional[int]) -> int:
    if value is None:
        raw = os.getenv("MULTIUPLOAD_CHUNK_SIZE", "").strip()
        if not raw:
            return DEFAULT_CHUNK_SIZE
        try:
            value = int(raw)
        except ValueError:
            raise CLIError(f"MULTIUPLOAD_CHUNK_SIZE is not a number: {raw!r}") from None
    if value <= 0:
        raise CLIError("--chunk-size must be positive")
    return value


def _drop_option(flag: bool) -> bool:
    return flag or os.getenv("MULTIUPLOAD_DROP", "").strip().lower() in TRUE_VALUES


class ReceivingUpload(MultiFileUpload):
    """Upload widget that records and reports every received file."""

    def __init__(self, config: UploadConfig, progress_bars=None, out: Optional[Console] = None):
        self.received: List[ReceivedFile] = []
        self._out = out
        super().__init__(config, progress_bars=progress_bars)

    def handle_file(self, file, file_name, mime_type, length) -> None:
        self.received.append(ReceivedFile(file, file_name, mime_type, length))
        render_received(file_name, length, file, out=self._out)


async def _run_upload(
    sources: Sequence[Path],
    dest: Optional[Path],
    drop: bool,
    chunk_size: int,
    out: Optional[Console] = None,
) -> Dict[str, int]:
    if dest is not None and dest.exists() and not dest.is_dir():
        raise CLIError(f"destination is not a directory: {dest}")

    config = UploadConfig(root_directory=dest, chunk_size=chunk_size)
    bars = RichProgressBars(out)
    widget = ReceivingUpload(config, progress_bars=bars, out=out)
    listener = ConsoleUploadListener(out)
    widget.add_upload_action_listener(listener)

    bars.start()
    try:
        if drop:
            files = [LocalDroppedFile(path, chunk_size=chunk_size) for path in sources]
            widget.drop(files)
            stats = {"total_files": len(files), "uploaded": 0, "failed": 0}
            for dropped in files:
                if await dropped.transfer():
                    stats["uploaded"] += 1
                else:
                    stats["failed"] += 1
        else:
            stats = await widget.channel.submit(sources)
    finally:
        bars.stop()
        widget.remove_upload_action_listener(listener)

    render_finish(stats, out=out)
    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multiupload",
        description="Stream local files through the multi-file upload widget.",
    )
    parser.add_argument("sources", nargs="*", type=Path, help="Files to upload")
    parser.add_argument(
        "-g",
        "--dest",
        default=None,
        help="Directory to receive the files into (default from MULTIUPLOAD_DEST or temp files)",
    )
    parser.add_argument(
        "-d",
        "--drop",
        action="store_true",
        help="Hand the files over as a drag-and-drop instead of a queued batch (or MULTIUPLOAD_DROP=1)",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help=f"Bytes per progress step (default MULTIUPLOAD_CHUNK_SIZE or {DEFAULT_CHUNK_SIZE})",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load MULTIUPLOAD_* settings from this .env file (default MULTIUPLOAD_ENV_FILE or ./.env)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="multiupload 0.1.0",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _resolve_default_env_file()
    env_loaded: Dict[str, str] = {}
    if used_env_file is not None:
        try:
            env_loaded = _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    if not args.sources:
        parser.print_help()
        return 0

    try:
        chunk_size = _chunk_size_option(args.chunk_size)
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    drop = _drop_option(args.drop)

    sources = [Path(source).expanduser() for source in args.sources]
    missing = [source for source in sources if not source.is_file()]
    if missing:
        print(f"ERROR: not a file: {missing[0]}", file=sys.stderr)
        return 1

    dest = _normalize_dest(args.dest or os.getenv("MULTIUPLOAD_DEST"))
    render_configuration_summary(
        {
            "Files": len(sources),
            "Mode": "drop" if drop else "queued batch",
            "Dest": str(dest) if dest else "(temp files)",
            "Chunk Size": chunk_size,
            "Env File": f"{used_env_file} ({len(env_loaded)} set)" if used_env_file else "-",
            "Logging": effective_log_mode,
        }
    )

    try:
        stats = asyncio.run(_run_upload(sources, dest, drop, chunk_size))
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130
    return 0 if stats["failed"] == 0 else 1


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
