"""Prompt-driven telnet session module.

This module provides a telnet client for line-oriented devices: it writes a command,
then reads until the device prints its prompt (or its error marker), refusing every
telnet option the device tries to negotiate along the way.

The TelnetSession class keeps two buffers: the per-command buffer, cleared at the start
of every read and write, and the transcript of every byte sent or received during the
session's lifetime.
"""

from __future__ import annotations

from asyncio import (
    IncompleteReadError,
    StreamReader,
    StreamWriter,
    get_running_loop as asyncio_get_running_loop,
    open_connection,
    timeout as asyncio_timeout,
)
from codecs import lookup as codec_lookup
from dataclasses import dataclass, field
from ipaddress import AddressValueError, IPv4Address
from socket import AF_INET, SOCK_STREAM, gaierror as socket_gaierror
from typing import TYPE_CHECKING, Any, ClassVar, Self

from telnet_session.cli.console import log
from telnet_session.constants import (
    DEFAULT_ERR_PROMPT,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_PROMPT,
    DEFAULT_TIMEOUT,
)

from .errors import (
    LoginError,
    ResolutionError,
    StreamError,
    TelnetConnectionError,
    TelnetError,
)
from .negotiate import TelnetNegotiator
from .types import (
    IAC_BYTE,
    ControlByte,
    ErrorKind,
    ReadFailure,
    ReadSuccess,
    TelnetCommand,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .types import ReadOutcome


@dataclass(slots=True)
class SessionBuffers:
    """Byte buffers owned by one session."""

    command: bytearray = field(default_factory=bytearray)
    transcript: bytearray = field(default_factory=bytearray)

    def clear_command(self) -> None:
        """Start a fresh per-command buffer; the transcript is kept."""
        self.command.clear()

    def record(self, data: bytes) -> None:
        """Append bytes sent or received to the transcript."""
        self.transcript.extend(data)


@dataclass(slots=True)
class TelnetSession:
    """Telnet client that reads until a prompt, refusing all option negotiation.

    Examples:
        Using the async context manager:

        ```python
        async with TelnetSession("router.example.com", prompt="#") as session:
            await session.login("admin", "secret")
            print(await session.execute("show version"))
        ```

        Manual connection management:

        ```python
        session = TelnetSession("192.0.2.10", 23, timeout=5)
        await session.connect()
        try:
            output = await session.execute("ls", prompt="$")
        finally:
            await session.disconnect()
        ```
    """

    host: str = field(default=DEFAULT_HOST)
    port: int = field(default=DEFAULT_PORT)
    timeout: float = field(default=DEFAULT_TIMEOUT)
    prompt: str = field(default=DEFAULT_PROMPT)
    err_prompt: str = field(default=DEFAULT_ERR_PROMPT)
    encoding: str = field(default="utf-8")
    reader: StreamReader | None = field(default=None)
    writer: StreamWriter | None = field(default=None)

    buffers: SessionBuffers = field(default_factory=SessionBuffers, repr=False)
    negotiator: TelnetNegotiator = field(init=False, repr=False)

    # Fixed challenge prompts used by login()
    LOGIN_PROMPT: ClassVar[str] = "Login:"
    PASSWORD_PROMPT: ClassVar[str] = "Password:"
    LOGIN_OK_PROMPT: ClassVar[str] = "OK"

    # Keys recognised by from_config, mapped to field names
    CONFIG_KEYS: ClassVar[dict[str, str]] = {
        "host": "host",
        "port": "port",
        "timeout": "timeout",
        "prompt": "prompt",
        "err_prompt": "err_prompt",
        "errPrompt": "err_prompt",
        "encoding": "encoding",
    }

    def __post_init__(self) -> None:
        """Wire the negotiator to this session's byte reader and sender."""
        self.negotiator = TelnetNegotiator(read_byte=self._getc, send=self._send)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> Self:
        """Create a session from a configuration mapping.

        Unknown keys are ignored and empty values fall back to the defaults, so rows read
        from CSV or spreadsheet files can be passed straight in.

        Returns:
            A new, disconnected TelnetSession

        Raises:
            ValueError: If the port or timeout is not a number
            LookupError: If the encoding is unknown
        """
        kwargs: dict[str, Any] = {}
        for key, name in cls.CONFIG_KEYS.items():
            value = config.get(key)
            if value is None or value == "":
                continue
            try:
                match name:
                    case "port":
                        kwargs[name] = int(value)
                    case "timeout":
                        kwargs[name] = float(value)
                    case _:
                        kwargs[name] = str(value)
            except (TypeError, ValueError) as exc:
                msg = f"Invalid {key}: {value!r}"
                raise ValueError(msg) from exc
        if "encoding" in kwargs:
            codec_lookup(kwargs["encoding"])
        return cls(**kwargs)

    @classmethod
    async def connect_to(cls, host: str, port: int = 23, **kwargs: Any) -> Self:
        """Create a session and connect it in one step.

        Returns:
            A connected TelnetSession instance

        Raises:
            ResolutionError: If the host name cannot be resolved
            TelnetConnectionError: If the connection attempt fails
        """
        session = cls(host=host, port=port, **kwargs)
        await session.connect()
        return session

    async def __aenter__(self) -> Self:
        """Enter the async context manager, connecting if needed.

        Returns:
            The connected session
        """
        await self.connect()
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        """Exit the async context manager, closing the connection."""
        await self.disconnect()

    @property
    def is_connected(self) -> bool:
        """Check if the session currently holds an open stream."""
        return self.reader is not None and self.writer is not None

    @property
    def transcript(self) -> bytes:
        """Every byte sent and received so far, in order."""
        return bytes(self.buffers.transcript)

    def get_transcript(self) -> str:
        """Return the transcript decoded with the session encoding."""
        return self._decode(self.buffers.transcript)

    def set_prompt(self, prompt: str = "$") -> None:
        """Set the default success prompt."""
        self.prompt = prompt

    def set_err_prompt(self, err_prompt: str = "ERROR") -> None:
        """Set the default error prompt; an empty string disables error detection."""
        self.err_prompt = err_prompt

    async def connect(self) -> None:
        """Resolve the host if needed and open the connection.

        Raises:
            ResolutionError: If the host is a name that does not resolve
            TelnetConnectionError: If the TCP connection cannot be opened
        """
        if self.is_connected:
            return

        try:
            async with asyncio_timeout(self.timeout):
                log.info("Connecting with telnet to %s:%d", self.host, self.port)
                address = await self._resolve()
                self.reader, self.writer = await open_connection(address, self.port)
        except (TimeoutError, OSError) as exc:
            msg = f"Cannot connect to {self.host} on port {self.port}"
            raise TelnetConnectionError(msg, host=self.host, port=self.port) from exc
        log.debug("Connected with telnet to %s:%d (%s)", self.host, self.port, address)

    async def _resolve(self) -> str:
        """Return the IPv4 address to connect to.

        Raises:
            ResolutionError: If the lookup fails or returns no IPv4 address
        """
        try:
            return str(IPv4Address(self.host))
        except AddressValueError:
            pass

        try:
            infos = await asyncio_get_running_loop().getaddrinfo(
                self.host, self.port, family=AF_INET, type=SOCK_STREAM
            )
        except (socket_gaierror, UnicodeError) as exc:
            msg = f"Cannot resolve {self.host}"
            raise ResolutionError(msg, host=self.host) from exc
        if not infos:
            msg = f"Cannot resolve {self.host}"
            raise ResolutionError(msg, host=self.host)
        return infos[0][4][0]

    async def disconnect(self) -> None:
        """Close the connection; does nothing if already closed.

        Raises:
            TelnetConnectionError: If closing the stream fails
        """
        if not self.writer:
            self.reader = None
            return

        try:
            self.writer.close()
            await self.writer.wait_closed()
        except OSError as exc:
            msg = "Error while closing telnet socket"
            raise TelnetConnectionError(msg, host=self.host, port=self.port) from exc
        finally:
            self.writer = None
            self.reader = None
            log.debug("Closed telnet connection to %s:%d", self.host, self.port)

    async def execute(self, command: str, prompt: str | None = None, err_prompt: str | None = None) -> str:
        """Send a command and return its output.

        The last line of the output (the device prompt line) is dropped and the
        remainder stripped of surrounding whitespace.

        Returns:
            The command output
        """
        await self.write(command)
        output = await self.read(prompt, err_prompt)
        return "\n".join(output.split("\n")[:-1]).strip()

    async def login(self, username: str, password: str) -> None:
        """Answer the Login:/Password: challenge and wait for OK.

        Raises:
            LoginError: Wrapping whichever error interrupted the exchange
        """
        try:
            await self.read(self.LOGIN_PROMPT)
            await self.write(str(username))
            await self.read(self.PASSWORD_PROMPT)
            await self.write(str(password))
            await self.read(self.LOGIN_OK_PROMPT)
        except TelnetError as exc:
            msg = "Login failed."
            raise LoginError(msg, host=self.host, username=username) from exc
        log.info("Logged in to %s:%d as %s", self.host, self.port, username)

    async def write(self, command: str | bytes, append_terminator: bool = True) -> None:
        """Send a command, terminated with CR unless told otherwise.

        Literal IAC bytes are doubled so the remote reads them as data.

        Raises:
            TelnetConnectionError: If the session is not connected
            StreamError: If the command cannot be encoded or written
        """
        if not self.is_connected:
            msg = "Telnet connection closed"
            raise TelnetConnectionError(msg, host=self.host, port=self.port)

        self.buffers.clear_command()

        data = command if isinstance(command, bytes) else self._encode(command)
        if append_terminator:
            data += bytes([ControlByte.CR])
        if IAC_BYTE in data:
            data = data.replace(bytes([IAC_BYTE]), bytes([IAC_BYTE, IAC_BYTE]))

        log.debug("Sending %r to %s:%d", data, self.host, self.port)
        await self._send(data)

    async def read(self, prompt: str | None = None, err_prompt: str | None = None) -> str:
        """Read until the prompt and return everything before it.

        Returns:
            The text received before the prompt

        Raises:
            TelnetConnectionError: If the session is not connected
            PromptTimeoutError: If the prompt does not arrive within the timeout
            StreamError: If the stream ends or fails before the prompt
            ProtocolError: If the remote sends a malformed control sequence
            RemoteError: If the error prompt arrives before the prompt
        """
        outcome = await self.try_read(prompt, err_prompt)
        return outcome.unwrap()

    async def try_read(self, prompt: str | None = None, err_prompt: str | None = None) -> ReadOutcome:
        """Read until the prompt, returning a tagged outcome instead of raising.

        Returns:
            ReadSuccess with the text before the prompt, or ReadFailure describing why
            the read ended
        """
        if prompt is None:
            prompt = self.prompt
        if err_prompt is None:
            err_prompt = self.err_prompt

        if not self.is_connected:
            return ReadFailure(ErrorKind.NOT_CONNECTED, "Telnet connection closed", {"prompt": prompt})

        self.buffers.clear_command()
        try:
            encoded = self._encode(prompt), self._encode(err_prompt)
        except StreamError as exc:
            outcome = ReadFailure(ErrorKind.STREAM, exc.message, {"prompt": prompt}, cause=exc)
        else:
            outcome = await self._read_until(*encoded)
        if isinstance(outcome, ReadFailure):
            log.warning("Read from %s:%d failed: %s", self.host, self.port, outcome.message)
        return outcome

    async def _read_until(self, prompt: bytes, err_prompt: bytes) -> ReadOutcome:
        """Run the read loop over the stream until one of its terminal states."""
        buffer = self.buffers.command
        loop = asyncio_get_running_loop()
        deadline = loop.time() + self.timeout
        prompt_text = self._decode(prompt)
        # The first byte is always waited for, even with a zero timeout
        remaining = float(self.timeout)

        while True:
            if remaining < 0:
                return self._timed_out(prompt_text)

            try:
                async with asyncio_timeout(remaining):
                    byte = await self._getc()
                    negotiated = byte == TelnetCommand.IAC
                    if negotiated:
                        await self.negotiator.negotiate()
            except TimeoutError:
                return self._timed_out(prompt_text)
            except StreamError as exc:
                partial = self._decode(buffer)
                return ReadFailure(
                    ErrorKind.STREAM,
                    f'Couldn\'t find the requested: "{prompt_text}", it was not in the data '
                    f"returned from server: {partial}",
                    {"prompt": prompt_text, "buffer": partial},
                    cause=exc,
                )
            except TelnetError as exc:
                context = {**exc.context, "prompt": prompt_text, "buffer": self._decode(buffer)}
                return ReadFailure(ErrorKind.from_exception(exc), exc.message, context, cause=exc)

            remaining = deadline - loop.time()
            if negotiated:
                continue
            buffer.append(byte)

            if buffer.endswith(prompt):
                log.debug("Matched prompt %r from %s:%d", prompt_text, self.host, self.port)
                return ReadSuccess(self._decode(buffer[: len(buffer) - len(prompt)]))
            if err_prompt and buffer.endswith(err_prompt):
                return ReadFailure(
                    ErrorKind.REMOTE,
                    "command returned error status",
                    {"prompt": prompt_text, "err_prompt": self._decode(err_prompt), "buffer": self._decode(buffer)},
                )

    def _timed_out(self, prompt_text: str) -> ReadFailure:
        """Build the failure for a read that ran out of time."""
        return ReadFailure(
            ErrorKind.TIMEOUT,
            f'Couldn\'t find the requested: "{prompt_text}" within {self.timeout} seconds',
            {"prompt": prompt_text, "timeout": self.timeout, "buffer": self._decode(self.buffers.command)},
        )

    async def _getc(self) -> int:
        """Read one byte from the stream and record it in the transcript.

        Raises:
            StreamError: If the stream is at EOF or the read fails
        """
        try:
            data = await self.reader.readexactly(1)
        except IncompleteReadError as exc:
            msg = "Connection closed by remote before the prompt was found"
            raise StreamError(msg) from exc
        except OSError as exc:
            msg = f"Error reading from socket: {exc}"
            raise StreamError(msg) from exc
        self.buffers.record(data)
        return data[0]

    async def _send(self, data: bytes) -> None:
        """Record bytes in the transcript, write them and wait for the flush.

        Raises:
            StreamError: If writing to the stream fails
        """
        self.buffers.record(data)
        try:
            self.writer.write(data)
            await self.writer.drain()
        except OSError as exc:
            msg = f"Error writing to socket: {exc}"
            raise StreamError(msg) from exc

    def _encode(self, text: str) -> bytes:
        """Encode outgoing text or a prompt with the session encoding.

        Raises:
            StreamError: If the text cannot be represented in the encoding
        """
        try:
            return text.encode(self.encoding)
        except UnicodeEncodeError as exc:
            msg = f"Cannot encode {text!r} as {self.encoding}"
            raise StreamError(msg) from exc

    def _decode(self, data: bytes | bytearray) -> str:
        """Decode received bytes, replacing anything undecodable."""
        return bytes(data).decode(self.encoding, errors="replace")
