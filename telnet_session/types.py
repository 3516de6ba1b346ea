"""Type definitions module for telnet session tools.

This module contains dataclass definitions and type hints shared by the CLI and the
batch runner.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypeAlias

JSON_TYPE: TypeAlias = bool | dict[str, "JSON_TYPE"] | float | int | list["JSON_TYPE"] | str | None


@dataclass(slots=True)
class SessionResult:
    """Outcome of running a batch of commands against one target."""

    host: str
    port: int
    success: bool
    output: list[str] = field(default_factory=list)
    error: str | None = None
    transcript: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Convert the result to a flat dictionary.

        Returns:
            Dictionary representation of the result, omitting the transcript unless it
            was captured
        """
        row: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "success": self.success,
            "output": "\n".join(self.output),
            "error": self.error,
        }
        if self.transcript is not None:
            row["transcript"] = self.transcript
        return row
