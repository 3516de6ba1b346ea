"""Console and logging configuration module for telnet session tools.

A single Rich console is shared by log output, the batch progress bar and the result
table. Log records are printed above the progress bar while it is live, so a long run
against many devices keeps its progress pinned to the bottom of the terminal.
"""

from __future__ import annotations

import logging
import threading
import time
from logging import INFO, getLogger
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Iterable

console = Console()

progress_lock = threading.RLock()
progress = Progress(
    SpinnerColumn(),
    TextColumn("[bold blue]{task.description}"),
    BarColumn(),
    MofNCompleteColumn(),
    TimeElapsedColumn(),
    console=console,
    expand=True,
)

live_display = Live(
    progress,
    console=console,
    refresh_per_second=10,
    transient=False,
    auto_refresh=False,
)

# Progress task handles by caller-chosen name
_active_tasks: dict[str, TaskID] = {}


class LiveDisplayHandler(RichHandler):
    """Rich log handler that prints above the live progress display."""

    def emit(self, record: logging.LogRecord) -> None:
        """Render a record, keeping the progress bar intact if it is showing."""
        with progress_lock:
            # The shared console prints above an active Live render
            super().emit(record)
            if live_display.is_started:
                live_display.refresh()


logging.basicConfig(
    level=INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[LiveDisplayHandler(console=console, rich_tracebacks=True, show_time=True)],
    force=True,
)

log = getLogger("telnet_session")


def start_live_display() -> None:
    """Start the live display if it is not already running."""
    with progress_lock:
        if not live_display.is_started:
            live_display.start()


def stop_live_display() -> None:
    """Stop the live display once no progress tasks remain."""
    with progress_lock:
        if live_display.is_started and not _active_tasks:
            live_display.stop()


def create_progress(description: str, total: int = 100, task_id: str | None = None) -> str:
    """Add a progress bar, starting the live display if needed.

    Args:
        description: Label shown next to the bar
        total: Number of steps in the task
        task_id: Name for the task, generated if not provided

    Returns:
        The task name to pass to update_progress and complete_progress
    """
    with progress_lock:
        start_live_display()
        if task_id is None:
            task_id = f"task_{time.time()}"
        _active_tasks[task_id] = progress.add_task(description, total=total)
        live_display.refresh()
        return task_id


def update_progress(
    task_id: str,
    advance: float | None = None,
    completed: float | None = None,
    description: str | None = None,
    **kwargs: Any,
) -> None:
    """Move a progress bar along or relabel it."""
    with progress_lock:
        if task_id not in _active_tasks:
            log.warning("Attempted to update non-existent progress task: %s", task_id)
            return

        changes: dict[str, Any] = dict(kwargs)
        if advance is not None:
            changes["advance"] = advance
        if completed is not None:
            changes["completed"] = completed
        if description is not None:
            changes["description"] = description
        progress.update(_active_tasks[task_id], **changes)

        if live_display.is_started:
            live_display.refresh()


def complete_progress(task_id: str, description: str | None = None) -> None:
    """Fill a progress bar and drop it, stopping the display after the last one."""
    with progress_lock:
        if task_id not in _active_tasks:
            log.warning("Attempted to complete non-existent progress task: %s", task_id)
            return

        handle = _active_tasks.pop(task_id)
        if description is not None:
            progress.update(handle, description=description)
        progress.update(handle, completed=progress.tasks[handle].total)

        if live_display.is_started:
            live_display.refresh()
        stop_live_display()


def print_results(rows: Iterable[dict[str, Any]]) -> None:
    """Print result rows as a table on the shared console."""
    rows = list(rows)
    if not rows:
        console.print("No results")
        return

    table = Table(show_lines=True)
    headers = list(rows[0].keys())
    for header in headers:
        table.add_column(header)
    for row in rows:
        table.add_row(*("" if row.get(header) is None else str(row.get(header)) for header in headers))
    console.print(table)
