"""Prompt-driven telnet session package.

This package provides an asyncio telnet client for line-oriented devices such as
routers, switches and embedded controllers. A session logs in through the usual
Login:/Password: challenge, sends commands and reads their output up to the device
prompt, refusing every telnet option the device proposes along the way.

A command line batch runner is included for running the same commands against many
devices, reading targets from CSV, JSON or XLSX files and writing the results back out.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .cli import (
    complete_progress,
    console,
    create_progress,
    log,
    parse_args,
    update_progress,
)
from .clients.telnet import (
    LoginError,
    PromptTimeoutError,
    ProtocolError,
    RemoteError,
    ResolutionError,
    StreamError,
    TelnetConnectionError,
    TelnetError,
    TelnetSession,
)
from .types import SessionResult

__all__ = [
    "LoginError",
    "PromptTimeoutError",
    "ProtocolError",
    "RemoteError",
    "ResolutionError",
    "SessionResult",
    "StreamError",
    "TelnetConnectionError",
    "TelnetError",
    "TelnetSession",
    "complete_progress",
    "console",
    "create_progress",
    "log",
    "parse_args",
    "update_progress",
]

try:
    __version__ = version("telnet-session")
except PackageNotFoundError:
    __version__ = "0.0.0"
