"""Small CSV helpers shared by the glossary rules.

Rules receive raw bytes; these helpers decode them, parse semicolon-separated
records with their source line numbers, and serialize corrected tables back to
bytes with the file's original line terminator.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Final

from glossary_guard.constants import GLOSSARY_DELIMITER

BOM: Final[str] = "\ufeff"
MAX_LISTED: Final[int] = 10


class GlossaryFormatError(ValueError):
    """Raised when a buffer cannot be parsed as a delimited table."""


@dataclass(slots=True)
class Row:
    line: int
    cells: list[str]

    def get(self, index: int) -> str:
        if index < 0 or index >= len(self.cells):
            return ""
        return self.cells[index]

    @property
    def blank(self) -> bool:
        return all(not cell.strip() for cell in self.cells)


@dataclass(slots=True)
class GlossaryTable:
    header: list[str]
    rows: list[Row] = field(default_factory=list)
    terminator: str = "\n"

    @property
    def columns(self) -> list[str]:
        return [normalize_column(name) for name in self.header]

    def column_index(self, name: str) -> int | None:
        wanted = name.lower()
        for index, column in enumerate(self.columns):
            if column == wanted:
                return index
        return None

    def to_bytes(self) -> bytes:
        return write_records([self.header, *(row.cells for row in self.rows)], self.terminator)


def decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def line_terminator(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` without yielding a phantom trailing line."""

    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line.rstrip("\r") for line in lines]


def normalize_column(name: str) -> str:
    return name.strip().lstrip(BOM).strip().lower()


def read_records(text: str, delimiter: str = GLOSSARY_DELIMITER) -> list[Row]:
    """Parse ``text`` into rows tagged with the line each record starts on.

    Blank physical lines come back as rows with no cells.
    """

    reader = csv.reader(
        io.StringIO(text, newline=""),
        delimiter=delimiter,
        skipinitialspace=True,
        strict=True,
    )
    rows: list[Row] = []
    next_line = 1
    try:
        for record in reader:
            rows.append(Row(line=next_line, cells=list(record)))
            next_line = reader.line_num + 1
    except csv.Error as exc:
        raise GlossaryFormatError(f"line {reader.line_num}: {exc}") from exc
    return rows


def parse_table(data: bytes, delimiter: str = GLOSSARY_DELIMITER) -> GlossaryTable:
    text = decode(data)
    records = [row for row in read_records(text, delimiter) if row.cells]
    if not records:
        raise GlossaryFormatError("file is empty")
    header, *rows = records
    return GlossaryTable(header=header.cells, rows=rows, terminator=line_terminator(text))


def write_records(records: Iterable[Sequence[str]], terminator: str = "\n") -> bytes:
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, delimiter=GLOSSARY_DELIMITER, lineterminator=terminator)
    writer.writerows(records)
    return buffer.getvalue().encode("utf-8")


def format_limited(items: Sequence[str], limit: int = MAX_LISTED) -> str:
    """Join up to ``limit`` items, noting how many were left out."""

    shown = ", ".join(items[:limit])
    if len(items) > limit:
        shown += f", …and {len(items) - limit} more"
    return shown


__all__ = [
    "BOM",
    "GlossaryFormatError",
    "GlossaryTable",
    "MAX_LISTED",
    "Row",
    "decode",
    "format_limited",
    "line_terminator",
    "normalize_column",
    "parse_table",
    "read_records",
    "split_lines",
    "write_records",
]
