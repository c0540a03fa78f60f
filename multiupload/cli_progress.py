"""Console rendering and progress helpers for the multiupload CLI."""
from __future__ import annotations

from typing import Any, Dict, Optional
import time

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from .coordinator.indicators import ProgressIndicator

console = Console()


def _human_size(value: int) -> str:
    size = float(max(value, 0))
    units = ["B", "KB", "MB", "GB", "TB"]
    unit_idx = 0
    while size >= 1024.0 and unit_idx < len(units) - 1:
        size /= 1024.0
        unit_idx += 1
    if unit_idx == 0:
        return f"{int(size)} {units[unit_idx]}"
    return f"{size:.2f} {units[unit_idx]}"


def render_configuration_summary(config: Dict[str, Any], out: Optional[Console] = None) -> None:
    """Render startup configuration summary."""
    out = out or console
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]multiupload[/bold green]",
        subtitle="[dim]multi-file upload[/dim]",
        border_style="blue",
    )
    out.print(panel)


def _emit_timeline(out: Console, status: str, name: str, detail: Optional[str] = None) -> None:
    stamp = time.strftime("%H:%M:%S")
    palette = {
        "DONE": "green",
        "FAIL": "red",
        "START": "cyan",
    }
    color = palette.get(status, "white")
    suffix = f" [dim]{detail}[/dim]" if detail else ""
    out.print(f"[dim]{stamp}[/dim] [{color}]{status:<5}[/{color}] {name}{suffix}")


class RichProgressBars:
    """Indicator area drawn as rich progress bars, one task per indicator."""

    def __init__(self, out: Optional[Console] = None):
        self._console = out or console
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold cyan]{task.fields[label]}", justify="left"),
            BarColumn(bar_width=42),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            expand=False,
            console=self._console,
        )
        self._tasks: Dict[int, TaskID] = {}
        self._live: Optional[Live] = None

    def start(self) -> None:
        if self._live is not None:
            return
        self._live = Live(
            self._progress,
            console=self._console,
            refresh_per_second=8,
            vertical_overflow="visible",
        )
        self._live.start()

    def stop(self) -> None:
        if self._live is None:
            return
        self._live.stop()
        self._live = None

    def __len__(self) -> int:
        return len(self._tasks)

    def add_indicator(self, indicator: ProgressIndicator) -> None:
        self._tasks[id(indicator)] = self._progress.add_task(
            "upload",
            label=indicator.caption[:60],
            total=100,
            completed=indicator.value * 100,
        )

    def indicator_changed(self, indicator: ProgressIndicator) -> None:
        task_id = self._tasks.get(id(indicator))
        if task_id is not None:
            self._progress.update(task_id, completed=indicator.value * 100)

    def remove_indicator(self, indicator: ProgressIndicator) -> None:
        task_id = self._tasks.pop(id(indicator), None)
        if task_id is not None:
            self._progress.remove_task(task_id)


class ConsoleUploadListener:
    """Upload action listener printing a timeline line per file event."""

    def __init__(self, out: Optional[Console] = None):
        self._console = out or console
        self.stats: Dict[str, int] = {"started": 0, "finished": 0, "failed": 0}

    def file_upload_started(self, file_name: str, pending_count: int) -> None:
        self.stats["started"] += 1
        _emit_timeline(self._console, "START", file_name, f"{pending_count} pending")

    def file_upload_finished(self, file_name: str, pending_count: int) -> None:
        self.stats["finished"] += 1
        _emit_timeline(self._console, "DONE", file_name, f"{pending_count} pending")

    def file_upload_error(self, file_name: str, pending_count: int) -> None:
        self.stats["failed"] += 1
        _emit_timeline(self._console, "FAIL", file_name, f"{pending_count} pending")


def render_received(file_name: str, length: int, target: Any, out: Optional[Console] = None) -> None:
    (out or console).print(f"[green]Received:[/green] {file_name} ({_human_size(length)}) -> {target}")


def render_finish(stats: Dict[str, int], out: Optional[Console] = None) -> None:
    (out or console).print(
        f"[bold]Finished[/bold] uploaded={stats.get('uploaded', 0)} "
        f"total={stats.get('total_files', 0)} failed={stats.get('failed', 0)}"
    )
