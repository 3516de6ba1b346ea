"""Command line interface components for telnet session tools.

This module provides CLI-related functionality including console output, logging,
progress tracking, file input/output and the batch runner behind the
``telnet-session`` command.
"""

from __future__ import annotations

from .console import complete_progress, console, create_progress, log, print_results, update_progress
from .args import parse_args
from .files import FileReader, FileWriter
from .main import main

__all__ = [
    "FileReader",
    "FileWriter",
    "complete_progress",
    "console",
    "create_progress",
    "log",
    "main",
    "parse_args",
    "print_results",
    "update_progress",
]
