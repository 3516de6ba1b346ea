"""Main entry point for the telnet session CLI.

Every target gets its own TelnetSession: connect, optionally log in, run the commands
in order, disconnect. Targets are processed concurrently up to the --concurrency limit.
"""

from __future__ import annotations

from asyncio import Semaphore, gather as asyncio_gather
from re import split as re_split
from typing import TYPE_CHECKING, Any

from telnet_session.clients.telnet import TelnetError, TelnetSession
from telnet_session.types import SessionResult

from .args import parse_args
from .console import complete_progress, create_progress, log, print_results, update_progress
from .files import FileReader, FileWriter

if TYPE_CHECKING:
    from argparse import Namespace as Arguments


def split_commands(value: Any) -> list[str]:
    """Split a commands cell on newlines or semicolons, dropping blanks.

    Returns:
        The individual commands
    """
    if value is None:
        return []
    if isinstance(value, list):
        return [str(item) for item in value if str(item).strip()]
    return [part.strip() for part in re_split(r"[\n;]", str(value)) if part.strip()]


def build_targets(args: Arguments) -> list[dict[str, Any]]:
    """Combine the input file rows (or --host) with the command line defaults.

    Returns:
        One configuration dictionary per target
    """
    defaults: dict[str, Any] = {
        "port": args.port,
        "timeout": args.timeout,
        "prompt": args.prompt,
        "err_prompt": args.err_prompt,
        "username": args.username,
        "password": args.password,
        "commands": list(args.execute),
    }
    rows = FileReader(path=args.input, type=args.input_format).data if args.input else [{"host": args.host}]

    targets = []
    for row in rows:
        target = dict(defaults)
        target.update({key: value for key, value in row.items() if value is not None and value != ""})
        target["commands"] = split_commands(target["commands"])
        if not target.get("host"):
            log.warning("Skipping row without a host: %s", row)
            continue
        targets.append(target)
    return targets


async def run_target(target: dict[str, Any], capture_transcript: bool = False) -> SessionResult:
    """Run one target's commands in its own session.

    Returns:
        SessionResult with the command outputs or the error that stopped the run
    """
    try:
        session = TelnetSession.from_config(target)
    except (ValueError, LookupError) as exc:
        log.error("Invalid settings for target %s: %s", target.get("host"), exc)
        return SessionResult(host=str(target.get("host")), port=target.get("port"), success=False, error=str(exc))
    result = SessionResult(host=session.host, port=session.port, success=False)
    try:
        async with session:
            if target.get("username"):
                await session.login(str(target["username"]), str(target.get("password") or ""))
            for command in target["commands"]:
                result.output.append(await session.execute(command))
    except TelnetError as exc:
        log.exception("Target %s:%d failed", session.host, session.port)
        result.error = str(exc)
    else:
        result.success = True
    if capture_transcript:
        result.transcript = session.get_transcript()
    return result


async def run_targets(
    targets: list[dict[str, Any]], concurrency: int = 10, capture_transcript: bool = False
) -> list[SessionResult]:
    """Run all targets with bounded concurrency, tracking progress.

    Returns:
        Results in the same order as the targets
    """
    semaphore = Semaphore(concurrency)
    task_id = create_progress("Running telnet sessions", total=len(targets))

    async def _bounded(target: dict[str, Any]) -> SessionResult:
        async with semaphore:
            result = await run_target(target, capture_transcript)
        update_progress(task_id, advance=1)
        return result

    try:
        return list(await asyncio_gather(*(_bounded(target) for target in targets)))
    finally:
        complete_progress(task_id, description="Telnet sessions finished")


async def main(argv: list[str] | None = None) -> int:
    """Main entry point for the telnet session CLI.

    Returns:
        Exit status: 0 when every target succeeded, 1 otherwise
    """
    args = parse_args(argv)
    targets = build_targets(args)
    if not targets:
        log.error("No targets to run")
        return 1

    results = await run_targets(targets, args.concurrency, args.transcript)
    rows = [result.as_dict() for result in results]

    if args.output:
        FileWriter(path=args.output, type=args.output_format, data=rows)
        log.info("Wrote %d results to %s", len(rows), args.output)
    else:
        print_results(rows)

    return 0 if all(result.success for result in results) else 1
