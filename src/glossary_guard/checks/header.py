"""
Header and row-shape rule.

Checks, in order: the header uses ``;`` only, starts with ``term;description``
(case-insensitive, BOM tolerated), no blank lines follow it, every data record
parses with the header's field count, and at least one data row exists.
"""

from __future__ import annotations

import csv
import io

from glossary_guard.checks.base import CheckResult, FixResult
from glossary_guard.checks.csvdata import (
    GlossaryFormatError,
    decode,
    format_limited,
    line_terminator,
    normalize_column,
    read_records,
    split_lines,
    write_records,
)
from glossary_guard.constants import GLOSSARY_DELIMITER, REQUIRED_COLUMNS

_PARSE_ERROR_PREFIX = "CSV parse error on data (check delimiter/quoting)"


class EnsureHeaderAndRows:
    name = "ensure-header-and-rows"
    priority = 3
    fail_fast = True

    def evaluate(self, data: bytes, path: str, langs: tuple[str, ...]) -> CheckResult:
        text = decode(data)
        lines = split_lines(text)
        header_line = lines[0] if lines else ""
        if not header_line:
            return CheckResult.failed(self.name, "Empty file: header row is required")

        delimiter_problem = _delimiter_problem(header_line)
        if delimiter_problem is not None:
            return CheckResult.failed(self.name, delimiter_problem)

        try:
            header_rows = read_records(header_line)
        except GlossaryFormatError as exc:
            return CheckResult.failed(self.name, f"cannot parse header: {exc}")
        header = header_rows[0].cells if header_rows else []
        if len(header) < 2:
            return CheckResult.failed(
                self.name, "Malformed header: expected at least 2 semicolon-separated columns"
            )

        columns = [normalize_column(name) for name in header]
        order_problem = _column_problem(columns)
        if order_problem is not None:
            return CheckResult.failed(self.name, order_problem)

        blank_lines = [
            str(number)
            for number, line in enumerate(lines[1:], start=2)
            if not line.strip()
        ]
        if blank_lines:
            return CheckResult.failed(
                self.name,
                "Blank lines are not allowed after header. Found at row(s): "
                + format_limited(blank_lines),
            )

        try:
            records = read_records(text)
        except GlossaryFormatError as exc:
            return CheckResult.failed(self.name, f"{_PARSE_ERROR_PREFIX}: {exc}")

        data_rows = [row for row in records[1:] if row.cells]
        for row in data_rows:
            if len(row.cells) != len(header):
                return CheckResult.failed(
                    self.name,
                    f"{_PARSE_ERROR_PREFIX}: record on line {row.line}: wrong number of fields "
                    f"(expected {len(header)}, got {len(row.cells)})",
                )
            if row.blank:
                return CheckResult.failed(
                    self.name, f"Blank data row is not allowed (line {row.line})"
                )

        if not data_rows:
            return CheckResult.failed(self.name, "No data rows found after header")

        return CheckResult.passed(
            self.name,
            "Header valid; required columns present; ';' delimiter confirmed; "
            "no blank lines; data parsed successfully",
        )

    def fix(self, data: bytes, path: str, langs: tuple[str, ...]) -> FixResult:
        text = decode(data)
        lines = split_lines(text)
        if not lines:
            return FixResult(data=data, note="nothing to fix in an empty file")

        notes: list[str] = []
        terminator = line_terminator(text)
        source_delimiter = _single_foreign_delimiter(lines[0])
        if source_delimiter is not None:
            try:
                records = list(
                    csv.reader(io.StringIO(text, newline=""), delimiter=source_delimiter)
                )
            except csv.Error as exc:
                return FixResult(data=data, note=f"cannot convert delimiter: {exc}")
            kept = [record for record in records if any(cell.strip() for cell in record)]
            shown = "TAB" if source_delimiter == "\t" else repr(source_delimiter)
            notes.append(f"converted {shown} delimiter to ';'")
            if len(kept) != len(records):
                notes.append(f"dropped {len(records) - len(kept)} blank line(s)")
            return FixResult(data=write_records(kept, terminator), note="; ".join(notes))

        header, body = lines[0], lines[1:]
        kept_lines = [line for line in body if line.strip()]
        dropped = len(body) - len(kept_lines)
        if dropped == 0:
            return FixResult(data=data, note="no automatic fix available")
        rebuilt = terminator.join([header, *kept_lines]) + terminator
        return FixResult(
            data=rebuilt.encode("utf-8"), note=f"dropped {dropped} blank line(s) after header"
        )


def _delimiter_problem(header_line: str) -> str | None:
    has_semicolon = GLOSSARY_DELIMITER in header_line
    has_comma = "," in header_line
    has_tab = "\t" in header_line
    if not has_semicolon:
        if has_comma:
            return "Header appears to use ',' as delimiter. Expected ';'."
        if has_tab:
            return "Header appears to use TAB as delimiter. Expected ';'."
        return "Header missing semicolons: expected ';' as delimiter"
    if has_comma or has_tab:
        return "Header uses mixed delimiters. Expected semicolons (';') only"
    return None


def _single_foreign_delimiter(header_line: str) -> str | None:
    if GLOSSARY_DELIMITER in header_line:
        return None
    has_comma = "," in header_line
    has_tab = "\t" in header_line
    if has_comma and not has_tab:
        return ","
    if has_tab and not has_comma:
        return "\t"
    return None


def _column_problem(columns: list[str]) -> str | None:
    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        return f"Header missing required columns: {', '.join(missing)}"

    expected = list(REQUIRED_COLUMNS)
    if columns[: len(expected)] == expected:
        return None
    term_position = columns.index("term") + 1
    description_position = columns.index("description") + 1
    return (
        "Invalid header order: expected first two columns to be 'term;description', "
        f"got '{columns[0]};{columns[1]}' "
        f"(found term at #{term_position}, description at #{description_position})"
    )


__all__ = ["EnsureHeaderAndRows"]
