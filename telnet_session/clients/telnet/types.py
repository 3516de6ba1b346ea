"""Telnet protocol types module."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, TypeAlias

from .errors import (
    PromptTimeoutError,
    ProtocolError,
    RemoteError,
    StreamError,
    TelnetConnectionError,
    TelnetError,
)

IAC_BYTE = 0xFF  # Interpret As Command byte


class TelnetCommand(IntEnum):
    """Telnet protocol commands."""

    IAC = 255  # Interpret As Command
    DONT = 254
    DO = 253
    WONT = 252
    WILL = 251

    @classmethod
    def is_negotiation(cls, cmd: int) -> bool:
        """Check if a command byte is a negotiation command.

        Returns:
            True if the command is a negotiation command, False otherwise
        """
        return cmd in {cls.DO, cls.DONT, cls.WILL, cls.WONT}

    @classmethod
    def get_refusal_command(cls, cmd: int) -> int:
        """Get the refusing reply verb for a negotiation request.

        Returns:
            WONT for DO/DONT, DONT for WILL/WONT, 0 for anything else
        """
        return {
            cls.DO: cls.WONT,  # We won't enable anything asked of us
            cls.DONT: cls.WONT,
            cls.WILL: cls.DONT,  # They shouldn't enable anything they offer
            cls.WONT: cls.DONT,
        }.get(cmd, 0)


class ControlByte(IntEnum):
    """Non-command control bytes seen on the data stream."""

    NUL = 0
    CR = 13
    DC1 = 17


class TelnetOption(IntEnum):
    """Well known telnet options, used to name options in log output."""

    BINARY = 0
    ECHO = 1
    SGA = 3  # Suppress Go Ahead
    STATUS = 5
    TIMING_MARK = 6
    TERMINAL_TYPE = 24
    NAWS = 31  # Negotiate About Window Size
    TERMINAL_SPEED = 32
    LINEMODE = 34
    NEW_ENVIRON = 39

    @classmethod
    def describe(cls, option: int) -> str:
        """Return a readable name for an option code.

        Returns:
            The option name if known, otherwise its numeric value
        """
        try:
            return cls(option).name
        except ValueError:
            return str(option)


class NegotiationResponse:
    """Helper class for building negotiation responses."""

    @staticmethod
    def create_command(command: int, option: int) -> bytes:
        """Create a three byte IAC command sequence.

        Returns:
            The created command sequence
        """
        return bytes([TelnetCommand.IAC, command, option])

    @staticmethod
    def reject(command: int, option: int) -> bytes:
        """Refuse a negotiation request.

        The reply is always negative, whatever was asked:
        - WONT in response to DO or DONT
        - DONT in response to WILL or WONT

        Args:
            command: The received command (DO, DONT, WILL, WONT)
            option: The option being negotiated

        Returns:
            The three byte refusal sequence

        Raises:
            ValueError: If the command is not a negotiation verb
        """
        reply = TelnetCommand.get_refusal_command(command)
        if not reply:
            msg = f"Not a negotiation command: {command}"
            raise ValueError(msg)
        return NegotiationResponse.create_command(reply, option)


class ErrorKind(Enum):
    """Failure kinds a prompt read can end with."""

    NOT_CONNECTED = "not_connected"
    STREAM = "stream"
    TIMEOUT = "timeout"
    PROTOCOL = "protocol"
    REMOTE = "remote"

    @property
    def exception_class(self) -> type[TelnetError]:
        """Exception class raised when a failure of this kind is unwrapped."""
        return _KIND_EXCEPTIONS[self]

    @classmethod
    def from_exception(cls, exc: TelnetError) -> ErrorKind:
        """Map a raised error back to its failure kind.

        Returns:
            The kind whose exception class matches the error

        Raises:
            ValueError: If the error has no corresponding kind
        """
        for kind, exc_class in _KIND_EXCEPTIONS.items():
            if type(exc) is exc_class:
                return kind
        msg = f"No failure kind for {type(exc).__name__}"
        raise ValueError(msg)


_KIND_EXCEPTIONS: dict[ErrorKind, type[TelnetError]] = {
    ErrorKind.NOT_CONNECTED: TelnetConnectionError,
    ErrorKind.STREAM: StreamError,
    ErrorKind.TIMEOUT: PromptTimeoutError,
    ErrorKind.PROTOCOL: ProtocolError,
    ErrorKind.REMOTE: RemoteError,
}


@dataclass(slots=True, frozen=True)
class ReadSuccess:
    """A read that ended on the success prompt."""

    text: str
    ok: bool = field(default=True, init=False)

    def unwrap(self) -> str:
        """Return the text read before the prompt."""
        return self.text


@dataclass(slots=True, frozen=True)
class ReadFailure:
    """A read that ended on anything other than the success prompt."""

    kind: ErrorKind
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    cause: BaseException | None = field(default=None)
    ok: bool = field(default=False, init=False)

    def unwrap(self) -> str:
        """Raise the exception matching this failure.

        Raises:
            TelnetError: The subclass selected by the failure kind
        """
        error = self.kind.exception_class(self.message, **self.context)
        raise error from self.cause


ReadOutcome: TypeAlias = ReadSuccess | ReadFailure
