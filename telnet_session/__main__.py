"""Main entry point for telnet session tools."""

from __future__ import annotations

from asyncio import run as asyncio_run
from sys import exit as sys_exit

from .cli import main


def launch() -> None:
    """Launch the telnet session CLI and exit with its status."""
    sys_exit(asyncio_run(main()))


if __name__ == "__main__":
    launch()
