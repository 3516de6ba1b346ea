"""Telnet protocol negotiation helper class."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from telnet_session.cli.console import log

from .errors import ProtocolError
from .types import NegotiationResponse, TelnetCommand, TelnetOption

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


@dataclass(slots=True)
class TelnetNegotiator:
    """Refuses every option the remote proposes.

    The negotiator does no I/O of its own: it pulls bytes through the ``read_byte``
    coroutine and pushes replies through ``send`` (both supplied by the session), so
    every consumed byte ends up in the session transcript and every reply is flushed
    before the read loop continues.
    """

    read_byte: Callable[[], Awaitable[int]]
    send: Callable[[bytes], Awaitable[None]]

    # Tracking refused options
    refused_local: set[int] = field(default_factory=set)  # DO/DONT: what we'd do
    refused_remote: set[int] = field(default_factory=set)  # WILL/WONT: what they'd do

    async def negotiate(self) -> None:
        """Handle the sequence following an IAC byte that was already consumed.

        Reads the command byte and, for DO/DONT/WILL/WONT, the option byte, then sends
        exactly one three byte refusal.

        Raises:
            ProtocolError: If the command byte is IAC or not a negotiation verb
        """
        cmd = await self.read_byte()

        if cmd == TelnetCommand.IAC:
            msg = "unexpected escaped IAC"
            raise ProtocolError(msg, byte=cmd)
        if not TelnetCommand.is_negotiation(cmd):
            msg = f"unknown control character {cmd}"
            raise ProtocolError(msg, byte=cmd)

        option = await self.read_byte()
        await self.send(NegotiationResponse.reject(cmd, option))
        self._record_refusal(cmd, option)

    def _record_refusal(self, cmd: int, option: int) -> None:
        """Remember which side an option was refused for."""
        match cmd:
            case TelnetCommand.DO | TelnetCommand.DONT:
                self.refused_local.add(option)
                reply = TelnetCommand.WONT
            case _:  # WILL or WONT
                self.refused_remote.add(option)
                reply = TelnetCommand.DONT
        log.debug(
            "Refused %s %s with %s",
            TelnetCommand(cmd).name,
            TelnetOption.describe(option),
            reply.name,
        )
