"""Term column rules: presence and uniqueness."""

from __future__ import annotations

from collections import Counter, defaultdict

from glossary_guard.checks.base import CheckResult
from glossary_guard.checks.csvdata import GlossaryFormatError, format_limited, parse_table


class EnsureNonEmptyTerm:
    name = "ensure-non-empty-term"
    priority = 4
    fail_fast = False

    def evaluate(self, data: bytes, path: str, langs: tuple[str, ...]) -> CheckResult:
        try:
            table = parse_table(data)
        except GlossaryFormatError as exc:
            return CheckResult.errored(self.name, f"csv parse error: {exc}")

        term_index = table.column_index("term")
        if term_index is None:
            return CheckResult.errored(self.name, "header does not contain 'term' column")

        for row in table.rows:
            if len(row.cells) <= term_index:
                continue
            if not row.get(term_index).strip():
                return CheckResult.failed(
                    self.name, f"term value is required (blank found at line {row.line})"
                )
        return CheckResult.passed(self.name, "All term values are present")


class EnsureUniqueTerms:
    """Lokalise merges rows sharing a term, so duplicates silently lose data."""

    name = "ensure-unique-terms"
    priority = 6
    fail_fast = False

    def evaluate(self, data: bytes, path: str, langs: tuple[str, ...]) -> CheckResult:
        try:
            table = parse_table(data)
        except GlossaryFormatError as exc:
            return CheckResult.errored(self.name, f"csv parse error: {exc}")

        column_counts = Counter(column for column in table.columns if column)
        duplicate_columns = sorted(name for name, count in column_counts.items() if count > 1)
        if duplicate_columns:
            return CheckResult.failed(
                self.name, f"Duplicate header column(s): {', '.join(duplicate_columns)}"
            )

        term_index = table.column_index("term")
        if term_index is None:
            return CheckResult.errored(self.name, "header does not contain 'term' column")

        lines_by_term: dict[str, list[int]] = defaultdict(list)
        for row in table.rows:
            term = row.get(term_index).strip()
            if term:
                lines_by_term[term].append(row.line)

        duplicates = [
            f"'{term}' (lines {', '.join(str(line) for line in lines)})"
            for term, lines in lines_by_term.items()
            if len(lines) > 1
        ]
        if duplicates:
            return CheckResult.failed(self.name, f"Duplicate term(s): {format_limited(duplicates)}")
        return CheckResult.passed(self.name, "All terms are unique")


__all__ = ["EnsureNonEmptyTerm", "EnsureUniqueTerms"]
