"""Constants for telnet session tools."""

from __future__ import annotations

from pathlib import Path
from typing import Any

# Network protocol constants

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 23
DEFAULT_TIMEOUT = 10.0
DEFAULT_PROMPT = "$"
DEFAULT_ERR_PROMPT = "ERROR"
MIN_PORT = 1
MAX_PORT = 65535

# CLI constants

CLI_ARGUMENTS: dict[str, list[tuple[Any]]] = {
    "connection": [
        (["-H", "--host"], {"help": "Host name or IPv4 address of a single target"}),
        (["-p", "--port"], {"type": int, "default": DEFAULT_PORT, "metavar": f"<{DEFAULT_PORT}>"}),
        (["-t", "--timeout"], {"type": float, "default": DEFAULT_TIMEOUT, "metavar": "<10>"}),
        (["--prompt"], {"default": DEFAULT_PROMPT, "metavar": f"<{DEFAULT_PROMPT}>"}),
        (["--err-prompt"], {"default": DEFAULT_ERR_PROMPT, "metavar": f"<{DEFAULT_ERR_PROMPT}>"}),
        (["-u", "--username"], {"help": "Answer the Login:/Password: challenge with this user"}),
        (["-P", "--password"], {"help": "Password used with --username"}),
    ],
    "operations": [
        (
            ["-x", "--execute"],
            {"action": "append", "default": [], "metavar": "COMMAND", "help": "Command to run (repeatable)"},
        ),
        (["-c", "--concurrency"], {"type": int, "default": 10, "metavar": "<10>"}),
        (["--transcript"], {"action": "store_true", "help": "Include the session transcript in results"}),
        (["-v", "--verbose"], {"action": "count", "default": 0, "help": "Increase log verbosity"}),
    ],
    "files": [
        (["-i", "--input"], {"help": "Targets file path", "type": Path}),
        (
            ["-if", "--input-format"],
            {"choices": ["csv", "json", "xlsx"], "default": "csv", "metavar": "<csv>|json|xlsx"},
        ),
        (["-o", "--output"], {"help": "Output file path (default: stdout)", "type": Path}),
        (
            ["-of", "--output-format"],
            {
                "choices": ["csv", "json", "plain", "xlsx"],
                "default": "plain",
                "metavar": "csv|json|<plain>|xlsx",
            },
        ),
    ],
}
CLI_HELP_DESCRIPTION: str = """Telnet session: log in to line-oriented devices and run commands.

Each target is reached over telnet, every option the device proposes is
refused, and command output is read until the device prompt appears (or
fails as soon as the error prompt does). Targets come from --host or from
an input file with one row per device.
"""
CLI_HELP_EPILOGUE: str | None = "If an argument has a default, it's shown in <parentheses>."
CLI_HELP_NAME: str = "telnet_session"
