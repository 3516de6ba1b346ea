"""Unit tests for the console, logging and progress helpers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest

from telnet_session.cli.console import (
    LiveDisplayHandler,
    _active_tasks,  # noqa: PLC2701
    complete_progress,
    create_progress,
    log,
    print_results,
    update_progress,
)

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def reset_progress_state() -> Generator[None]:
    """Isolate the module-level task registry between tests."""
    saved = dict(_active_tasks)
    _active_tasks.clear()
    yield
    _active_tasks.clear()
    _active_tasks.update(saved)


@pytest.fixture
def mock_live() -> Generator[MagicMock]:
    """Fixture providing a mock live display."""
    with patch("telnet_session.cli.console.live_display") as mock:
        mock.is_started = False
        yield mock


@pytest.fixture
def mock_progress() -> Generator[MagicMock]:
    """Fixture providing a mock progress instance."""
    with patch("telnet_session.cli.console.progress") as mock:
        mock.add_task.return_value = 7
        mock.tasks = {7: MagicMock(total=3)}
        yield mock


def test_package_logger_name() -> None:
    """Test that library modules log under the package logger."""
    if log.name != "telnet_session":
        pytest.fail(f"Unexpected logger name: {log.name!r}")


def test_progress_lifecycle(mock_live: MagicMock, mock_progress: MagicMock) -> None:
    """Test create, update and complete of a progress task."""
    task_id = create_progress("Running telnet sessions", total=3, task_id="batch")
    if task_id != "batch" or _active_tasks.get("batch") != 7:  # noqa: PLR2004
        pytest.fail(f"Task not registered: {_active_tasks!r}")
    mock_live.start.assert_called_once()
    mock_progress.add_task.assert_called_once_with("Running telnet sessions", total=3)

    mock_live.is_started = True
    update_progress("batch", advance=1)
    mock_progress.update.assert_called_with(7, advance=1)

    complete_progress("batch", description="done")
    mock_progress.update.assert_called_with(7, completed=3)
    if "batch" in _active_tasks:
        pytest.fail("Completed task still registered")
    mock_live.stop.assert_called_once()


def test_unknown_task_warns(mock_progress: MagicMock) -> None:
    """Test that updating or completing an unknown task only warns."""
    with patch("telnet_session.cli.console.log") as mock_log:
        update_progress("missing", advance=1)
        complete_progress("missing")

    if mock_log.warning.call_count != 2:  # noqa: PLR2004
        pytest.fail(f"Expected two warnings, got {mock_log.warning.call_count}")
    mock_progress.update.assert_not_called()


def test_handler_refreshes_live_display(mock_live: MagicMock) -> None:
    """Test that log records refresh an active live display."""
    handler = LiveDisplayHandler(console=MagicMock(), show_time=False)
    record = logging.LogRecord("telnet_session", logging.INFO, __file__, 1, "Connected", None, None)

    mock_live.is_started = True
    with patch("rich.logging.RichHandler.emit") as mock_emit:
        handler.emit(record)

    mock_emit.assert_called_once_with(record)
    mock_live.refresh.assert_called_once()


def test_print_results() -> None:
    """Test rendering result rows as a table."""
    with patch("telnet_session.cli.console.console") as mock_console:
        print_results([{"host": "10.0.0.1", "success": True, "error": None}])
        print_results([])

    if mock_console.print.call_count != 2:  # noqa: PLR2004
        pytest.fail(f"Expected two prints, got {mock_console.print.call_count}")
    table = mock_console.print.call_args_list[0].args[0]
    if [column.header for column in table.columns] != ["host", "success", "error"]:
        pytest.fail(f"Unexpected table columns: {[column.header for column in table.columns]!r}")
    mock_console.print.assert_called_with("No results")
