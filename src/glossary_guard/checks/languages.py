"""Declared language column rule.

Every language passed with ``--langs`` needs a translation column named after
the language code and a ``<code>_description`` column next to it.
"""

from __future__ import annotations

from glossary_guard.checks.base import CheckResult, FixResult
from glossary_guard.checks.csvdata import GlossaryFormatError, GlossaryTable, parse_table
from glossary_guard.constants import LANG_DESCRIPTION_SUFFIX


def expected_language_columns(langs: tuple[str, ...]) -> list[str]:
    columns: list[str] = []
    for lang in langs:
        columns.extend((lang, f"{lang}{LANG_DESCRIPTION_SUFFIX}"))
    return columns


def missing_language_columns(table: GlossaryTable, langs: tuple[str, ...]) -> list[str]:
    present = set(table.columns)
    return [column for column in expected_language_columns(langs) if column.lower() not in present]


class EnsureLangColumns:
    name = "ensure-lang-columns"
    priority = 5
    fail_fast = False

    def evaluate(self, data: bytes, path: str, langs: tuple[str, ...]) -> CheckResult:
        if not langs:
            return CheckResult.passed(self.name, "No languages declared; nothing to check")
        try:
            table = parse_table(data)
        except GlossaryFormatError as exc:
            return CheckResult.errored(self.name, f"csv parse error: {exc}")

        missing = missing_language_columns(table, langs)
        if missing:
            return CheckResult.failed(
                self.name, f"Missing language column(s): {', '.join(missing)}"
            )
        return CheckResult.passed(
            self.name, f"All declared language columns present: {', '.join(langs)}"
        )

    def fix(self, data: bytes, path: str, langs: tuple[str, ...]) -> FixResult:
        table = parse_table(data)
        missing = missing_language_columns(table, langs)
        if not missing:
            return FixResult(data=data, note="no language columns missing")

        table.header.extend(missing)
        for row in table.rows:
            row.cells.extend("" for _ in missing)
        return FixResult(
            data=table.to_bytes(), note=f"added empty column(s): {', '.join(missing)}"
        )


__all__ = ["EnsureLangColumns", "expected_language_columns", "missing_language_columns"]
