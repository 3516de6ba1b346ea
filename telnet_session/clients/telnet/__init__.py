"""Telnet Client Module.

This module provides an asyncio-based telnet session for line-oriented devices: it
sends commands, refuses every telnet option the device proposes and reads until the
device prompt appears.

Example usage:
    ```python
    import asyncio
    from telnet_session.clients.telnet import TelnetSession

    async def main():
        async with TelnetSession("device.example.com", 23, prompt="#") as session:
            await session.login("admin", "admin")
            print(await session.execute("show version"))

    asyncio.run(main())
    ```
"""

from __future__ import annotations

from .client import SessionBuffers, TelnetSession
from .errors import (
    LoginError,
    PromptTimeoutError,
    ProtocolError,
    RemoteError,
    ResolutionError,
    StreamError,
    TelnetConnectionError,
    TelnetError,
)
from .negotiate import TelnetNegotiator
from .types import ErrorKind, ReadFailure, ReadSuccess

__all__ = [
    "ErrorKind",
    "LoginError",
    "PromptTimeoutError",
    "ProtocolError",
    "ReadFailure",
    "ReadSuccess",
    "RemoteError",
    "ResolutionError",
    "SessionBuffers",
    "StreamError",
    "TelnetConnectionError",
    "TelnetError",
    "TelnetNegotiator",
    "TelnetSession",
]
