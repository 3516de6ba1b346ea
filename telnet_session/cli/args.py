"""Command line argument parser for telnet session tools.

The parser is built from the CLI_ARGUMENTS table in telnet_session.constants, one
argument group per table entry, so new options are added as data rather than code.
"""

from __future__ import annotations

from argparse import (
    ArgumentParser,
    Namespace as Arguments,
    RawDescriptionHelpFormatter as Formatter,
)
from sys import argv as sys_argv, exit as sys_exit

from telnet_session.constants import (
    CLI_ARGUMENTS,
    CLI_HELP_DESCRIPTION,
    CLI_HELP_EPILOGUE,
    CLI_HELP_NAME,
    MAX_PORT,
    MIN_PORT,
)

from .console import log


def build_parser() -> ArgumentParser:
    """Create the argument parser with every group from CLI_ARGUMENTS.

    Returns:
        Configured ArgumentParser instance
    """
    parser = ArgumentParser(
        description=CLI_HELP_DESCRIPTION,
        epilog=CLI_HELP_EPILOGUE,
        prog=CLI_HELP_NAME,
        formatter_class=Formatter,
    )
    for category_name, args in CLI_ARGUMENTS.items():
        category = parser.add_argument_group(category_name)
        for flags, kwargs in args:
            category.add_argument(*flags, **kwargs)
    return parser


def parse_args(argv: list[str] | None = None) -> Arguments:
    """Parse command line arguments and apply the requested log verbosity.

    Args:
        argv: Arguments to parse, defaults to sys.argv[1:]

    Returns:
        The parsed arguments
    """
    if argv is None:
        argv = sys_argv[1:]
    parser = build_parser()

    # Check if no arguments are provided
    if not argv:
        parser.print_help()
        sys_exit(0)

    parsed_args = parser.parse_args(argv)

    if not parsed_args.host and not parsed_args.input:
        parser.error("one of --host or --input is required")
    if not MIN_PORT <= parsed_args.port <= MAX_PORT:
        parser.error(f"--port must be between {MIN_PORT} and {MAX_PORT}")
    if parsed_args.concurrency < 1:
        parser.error("--concurrency must be at least 1")

    # Handle verbosity
    if parsed_args.verbose >= 2:  # noqa: PLR2004
        log.setLevel("DEBUG")
    elif parsed_args.verbose == 1:
        log.setLevel("INFO")
    else:
        log.setLevel("WARNING")

    return parsed_args
