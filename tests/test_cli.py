"""Unit tests for the CLI argument parser and batch runner."""

from __future__ import annotations

import json
from asyncio import IncompleteReadError
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

import pytest

from telnet_session.cli.args import parse_args
from telnet_session.cli.main import build_targets, main, run_target, run_targets, split_commands

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


class ScriptedReader:
    """StreamReader stand-in serving a fixed device conversation."""

    def __init__(self, data: bytes) -> None:
        """Initialise with the bytes the device sends."""
        self.data = data
        self.pos = 0

    async def readexactly(self, n: int) -> bytes:
        """Return the next n bytes or signal EOF."""
        if self.pos + n > len(self.data):
            raise IncompleteReadError(partial=b"", expected=n)
        chunk = self.data[self.pos : self.pos + n]
        self.pos += n
        return chunk


class RecordingWriter:
    """StreamWriter stand-in recording written bytes."""

    def __init__(self) -> None:
        """Initialise with nothing written."""
        self.written = b""
        self.closed = False

    def write(self, data: bytes) -> None:
        """Record written bytes."""
        self.written += data

    async def drain(self) -> None:
        """Mock drain operation."""

    def close(self) -> None:
        """Mark writer as closed."""
        self.closed = True

    async def wait_closed(self) -> None:
        """Mock wait_closed operation."""


@pytest.fixture(autouse=True)
def mock_logging() -> Generator[None]:
    """Silence logging and progress output during tests."""
    with (
        patch("telnet_session.clients.telnet.client.log"),
        patch("telnet_session.clients.telnet.negotiate.log"),
        patch("telnet_session.cli.main.log"),
        patch("telnet_session.cli.main.create_progress", return_value="task"),
        patch("telnet_session.cli.main.update_progress"),
        patch("telnet_session.cli.main.complete_progress"),
    ):
        yield


def open_device(data: bytes) -> AsyncMock:
    """Patchable open_connection that returns a scripted device."""
    return AsyncMock(side_effect=lambda *_: (ScriptedReader(data), RecordingWriter()))


def test_split_commands() -> None:
    """Test splitting command cells on newlines and semicolons."""
    if split_commands("uptime; df -h\n\nwho") != ["uptime", "df -h", "who"]:
        pytest.fail("Commands not split on ';' and newlines")
    if split_commands(["ls", " "]) != ["ls"]:
        pytest.fail("List input should drop blank commands")
    if split_commands(None) != []:
        pytest.fail("None should mean no commands")


def test_parse_args_verbosity() -> None:
    """Test that -v flags set the package log level."""
    with patch("telnet_session.cli.args.log") as mock_log:
        args = parse_args(["-H", "10.0.0.1", "-x", "uptime", "-x", "who", "-vv"])

    mock_log.setLevel.assert_called_once_with("DEBUG")
    if args.execute != ["uptime", "who"]:
        pytest.fail(f"Unexpected commands: {args.execute!r}")
    if (args.port, args.timeout, args.prompt, args.err_prompt) != (23, 10.0, "$", "ERROR"):
        pytest.fail(f"Unexpected defaults: {args!r}")


def test_parse_args_requires_target() -> None:
    """Test that either --host or --input must be given."""
    with pytest.raises(SystemExit):
        parse_args(["-x", "uptime"])


def test_parse_args_rejects_bad_port() -> None:
    """Test the port range check."""
    with pytest.raises(SystemExit):
        parse_args(["-H", "10.0.0.1", "-p", "70000"])


def test_parse_args_no_arguments_prints_help() -> None:
    """Test that running without arguments prints help and exits cleanly."""
    with pytest.raises(SystemExit) as exc_info:
        parse_args([])
    if exc_info.value.code != 0:
        pytest.fail(f"Expected exit code 0, got {exc_info.value.code!r}")


def test_build_targets_from_file(tmp_path: Path) -> None:
    """Test that file rows override command line defaults."""
    path = tmp_path / "targets.csv"
    path.write_text('host,port,commands,prompt\n10.0.0.1,,"uptime;who",\n10.0.0.2,2323,,#\n,24,,\n')

    with patch("telnet_session.cli.args.log"):
        args = parse_args(["-i", str(path), "-x", "show version", "-u", "admin", "-P", "secret"])
    targets = build_targets(args)

    if len(targets) != 2:  # noqa: PLR2004
        pytest.fail(f"Expected the row without a host to be skipped, got {targets!r}")
    first, second = targets
    if (first["port"], first["commands"], first["prompt"]) != (23, ["uptime", "who"], "$"):
        pytest.fail(f"Unexpected first target: {first!r}")
    if (second["port"], second["commands"], second["prompt"]) != ("2323", ["show version"], "#"):
        pytest.fail(f"Unexpected second target: {second!r}")
    if second["username"] != "admin" or second["password"] != "secret":
        pytest.fail(f"Credentials not carried over: {second!r}")


@pytest.mark.asyncio
async def test_run_target_success() -> None:
    """Test a full login and command run against a scripted device."""
    device = b"Login:Password:OK\r\nuptime\r\n 10:00 up 3 days\r\n$"
    target = {"host": "10.0.0.1", "port": 23, "username": "admin", "password": "admin", "commands": ["uptime"]}

    with patch("telnet_session.clients.telnet.client.open_connection", open_device(device)):
        result = await run_target(target, capture_transcript=True)

    if not result.success or result.error is not None:
        pytest.fail(f"Expected success, got {result!r}")
    if result.output != ["uptime\r\n 10:00 up 3 days"]:
        pytest.fail(f"Unexpected output: {result.output!r}")
    if not result.transcript.startswith("Login:admin\rPassword:admin\rOK"):
        pytest.fail(f"Unexpected transcript: {result.transcript!r}")


@pytest.mark.asyncio
async def test_run_target_failure() -> None:
    """Test that a failing command is reported in the result, not raised."""
    target = {"host": "10.0.0.1", "port": 23, "commands": ["reboot"]}

    with patch("telnet_session.clients.telnet.client.open_connection", open_device(b"denied ERROR")):
        result = await run_target(target)

    if result.success:
        pytest.fail("Expected failure for error prompt")
    if result.error != "command returned error status":
        pytest.fail(f"Unexpected error: {result.error!r}")
    if result.transcript is not None:
        pytest.fail("Transcript should only be captured on request")


@pytest.mark.asyncio
async def test_run_targets_keeps_order() -> None:
    """Test that concurrent runs return results in target order."""
    targets = [{"host": f"10.0.0.{i}", "port": 23, "commands": ["id"]} for i in range(1, 5)]

    with patch("telnet_session.clients.telnet.client.open_connection", open_device(b"id\nuid=0\n$")):
        results = await run_targets(targets, concurrency=2)

    if [result.host for result in results] != [target["host"] for target in targets]:
        pytest.fail(f"Results out of order: {[result.host for result in results]!r}")
    if not all(result.output == ["id\nuid=0"] for result in results):
        pytest.fail(f"Unexpected outputs: {[result.output for result in results]!r}")


@pytest.mark.asyncio
async def test_main_writes_output(tmp_path: Path) -> None:
    """Test the CLI entry point writing JSON results."""
    output = tmp_path / "results.json"
    argv = ["-H", "10.0.0.9", "-x", "hostname", "-o", str(output), "-of", "json"]

    with (
        patch("telnet_session.cli.args.log"),
        patch("telnet_session.clients.telnet.client.open_connection", open_device(b"hostname\nsw-01\n$")),
    ):
        status = await main(argv)

    if status != 0:
        pytest.fail(f"Expected exit status 0, got {status}")
    rows = json.loads(output.read_text())
    expected = [{"host": "10.0.0.9", "port": 23, "success": True, "output": "hostname\nsw-01", "error": None}]
    if rows != expected:
        pytest.fail(f"Unexpected JSON results.\nExpected: {expected!r}\nGot: {rows!r}")


@pytest.mark.asyncio
async def test_run_targets_reports_invalid_rows() -> None:
    """Test that a row with bad settings fails alone and the other rows still run."""
    targets = [
        {"host": "10.0.0.1", "port": "abc", "commands": ["id"]},
        {"host": "10.0.0.2", "port": 23, "encoding": "no-such-codec", "commands": ["id"]},
        {"host": "10.0.0.3", "port": 23, "commands": ["id"]},
    ]

    with patch("telnet_session.clients.telnet.client.open_connection", open_device(b"id\nuid=0\n$")) as mock_open:
        results = await run_targets(targets, concurrency=2)

    if [result.success for result in results] != [False, False, True]:
        pytest.fail(f"Unexpected outcomes: {results!r}")
    if results[0].error != "Invalid port: 'abc'":
        pytest.fail(f"Unexpected port error: {results[0].error!r}")
    if "no-such-codec" not in results[1].error:
        pytest.fail(f"Unexpected encoding error: {results[1].error!r}")
    if results[2].output != ["id\nuid=0"]:
        pytest.fail(f"Unexpected output for the valid row: {results[2].output!r}")
    if mock_open.await_count != 1:
        pytest.fail(f"Only the valid row should connect, got {mock_open.await_count} connections")
