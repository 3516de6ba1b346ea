"""File handling modules for CLI tools.

Targets are read from CSV, JSON or XLSX files as lists of row dictionaries, and batch
results are written back out as CSV, JSON, plain text or XLSX.
"""

from __future__ import annotations

from csv import DictReader, DictWriter
from dataclasses import dataclass, field
from json import dumps as json_dumps, loads as json_loads
from typing import TYPE_CHECKING, Literal

from openpyxl import load_workbook as openpyxl_load_workbook
from openpyxl.workbook import Workbook as OpenPyXLWorkbook

if TYPE_CHECKING:
    from pathlib import Path

    from telnet_session.types import JSON_TYPE


@dataclass(slots=True)
class FileReader:
    """Read target rows from a file."""

    path: Path
    type: Literal["csv", "json", "xlsx"]
    data: list[dict[str, JSON_TYPE]] = field(init=False)

    def __post_init__(self) -> None:
        """Load the file according to its type.

        Raises:
            ValueError: If the file type is invalid or the content is not a list of rows
        """
        match self.type:
            case "csv":
                self._read_csv()
            case "json":
                self._read_json()
            case "xlsx":
                self._read_xlsx()
            case _:
                msg = f"Invalid file type: {self.type}"
                raise ValueError(msg)

    def _read_csv(self) -> None:
        """Read rows from a CSV file with a header line."""
        self.data = list(DictReader(self.path.read_text().splitlines()))

    def _read_json(self) -> None:
        """Read rows from a JSON file holding a list of objects.

        Raises:
            ValueError: If the document is not a list of objects
        """
        data = json_loads(self.path.read_text())
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            msg = f"Expected a list of objects in {self.path}"
            raise ValueError(msg)
        self.data = data

    def _read_xlsx(self) -> None:
        """Read rows from the active worksheet, using the first row as headers."""
        worksheet = openpyxl_load_workbook(filename=self.path, data_only=True, read_only=True).active
        rows = worksheet.iter_rows(values_only=True)
        headers = [str(value) for value in next(rows, ())]
        self.data = [
            dict(zip(headers, row, strict=False))
            for row in rows
            if any(value is not None for value in row)
        ]


@dataclass(slots=True)
class FileWriter:
    """Write result rows to a file in various formats."""

    path: Path
    type: Literal["csv", "json", "plain", "xlsx"]
    data: list[dict[str, JSON_TYPE]]

    def __post_init__(self) -> None:
        """Write the file according to its type.

        Raises:
            ValueError: If the file type is invalid.
        """
        match self.type:
            case "csv":
                self._write_csv()
            case "json":
                self._write_json()
            case "plain":
                self._write_plain()
            case "xlsx":
                self._write_xlsx()
            case _:
                msg = f"Invalid file type: {self.type}"
                raise ValueError(msg)

    def _fieldnames(self) -> list[str]:
        """Collect column names across all rows, in first-seen order."""
        names: dict[str, None] = {}
        for row in self.data:
            names.update(dict.fromkeys(row))
        return list(names)

    def _write_csv(self) -> None:
        """Write rows to a CSV file with a header line."""
        with self.path.open("w", newline="") as handle:
            writer = DictWriter(handle, fieldnames=self._fieldnames())
            writer.writeheader()
            writer.writerows(self.data)

    def _write_json(self) -> None:
        """Write rows to a JSON file."""
        self.path.write_text(json_dumps(self.data, indent=2))

    def _write_plain(self) -> None:
        """Write one block per row, each field as a "key: value" line."""
        blocks = ["\n".join(f"{key}: {value}" for key, value in row.items()) for row in self.data]
        self.path.write_text("\n\n".join(blocks))

    def _write_xlsx(self) -> None:
        """Write rows to an Excel XLSX file.

        Raises:
            ValueError: If the data is empty.
        """
        if not self.data:
            msg = "No data to write to file"
            raise ValueError(msg)

        workbook = OpenPyXLWorkbook()
        worksheet = workbook.active
        headers = self._fieldnames()
        worksheet.append(headers)
        for row in self.data:
            worksheet.append([row.get(header) for header in headers])
        workbook.save(self.path)
