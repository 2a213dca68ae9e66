"""Boolean flag column rule for ``casesensitive``/``translatable``/``forbidden``."""

from __future__ import annotations

from typing import Final

from glossary_guard.checks.base import CheckResult, FixResult
from glossary_guard.checks.csvdata import (
    GlossaryFormatError,
    GlossaryTable,
    format_limited,
    parse_table,
)
from glossary_guard.constants import FLAG_COLUMNS, FLAG_VALUES

_FLAG_ALIASES: Final[dict[str, str]] = {
    "y": "Y",
    "yes": "Y",
    "true": "Y",
    "1": "Y",
    "n": "N",
    "no": "N",
    "false": "N",
    "0": "N",
}


def normalize_flag(value: str) -> str | None:
    """Canonical ``Y``/``N`` for a recognised spelling, ``None`` otherwise."""

    return _FLAG_ALIASES.get(value.strip().lower())


def _flag_indexes(table: GlossaryTable) -> list[tuple[str, int]]:
    indexes: list[tuple[str, int]] = []
    for column in FLAG_COLUMNS:
        index = table.column_index(column)
        if index is not None:
            indexes.append((column, index))
    return indexes


class EnsureFlagValues:
    name = "ensure-flag-values"
    priority = 7
    fail_fast = False

    def evaluate(self, data: bytes, path: str, langs: tuple[str, ...]) -> CheckResult:
        try:
            table = parse_table(data)
        except GlossaryFormatError as exc:
            return CheckResult.errored(self.name, f"csv parse error: {exc}")

        indexes = _flag_indexes(table)
        if not indexes:
            return CheckResult.passed(self.name, "No flag columns present")

        invalid: list[str] = []
        for row in table.rows:
            for column, index in indexes:
                value = row.get(index)
                if value.strip() and value not in FLAG_VALUES:
                    invalid.append(f"{column}={value!r} (line {row.line})")
        if invalid:
            return CheckResult.failed(
                self.name,
                f"Flag columns accept only {'/'.join(FLAG_VALUES)}; invalid value(s): "
                + format_limited(invalid),
            )
        columns = ", ".join(column for column, _ in indexes)
        return CheckResult.passed(self.name, f"Flag values valid in: {columns}")

    def fix(self, data: bytes, path: str, langs: tuple[str, ...]) -> FixResult:
        table = parse_table(data)
        indexes = _flag_indexes(table)
        changed = 0
        for row in table.rows:
            for _, index in indexes:
                value = row.get(index)
                canonical = normalize_flag(value)
                if canonical is not None and canonical != value:
                    row.cells[index] = canonical
                    changed += 1
        if changed == 0:
            return FixResult(data=data, note="no recognisable flag values to normalize")
        return FixResult(data=table.to_bytes(), note=f"normalized {changed} flag value(s) to Y/N")


__all__ = ["EnsureFlagValues", "normalize_flag"]
