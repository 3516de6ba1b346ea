"""Exceptions raised by the telnet session.

Every error derives from TelnetError and keeps the keyword context it was raised with
(prompt, partial buffer, host and so on) as attributes, so callers can inspect what the
session was doing when it failed.
"""

from __future__ import annotations

from typing import Any


class TelnetError(Exception):
    """Base class for telnet session errors."""

    def __init__(self, message: str, **context: Any) -> None:
        """Store the message and any context attributes."""
        super().__init__(message)
        self.message = message
        self.context = context
        for key, value in context.items():
            setattr(self, key, value)


class ResolutionError(TelnetError):
    """The host name could not be resolved."""


class TelnetConnectionError(TelnetError, ConnectionError):
    """Opening or closing the connection failed, or the session is not connected."""


class StreamError(TelnetError):
    """Reading from or writing to the stream failed, including EOF mid-read."""


class PromptTimeoutError(TelnetError, TimeoutError):
    """The expected prompt did not arrive before the deadline."""


class ProtocolError(TelnetError):
    """The remote sent a malformed or unsupported control sequence."""


class RemoteError(TelnetError):
    """The remote printed the error prompt."""


class LoginError(TelnetError):
    """The login exchange failed; the original error is chained as __cause__."""
