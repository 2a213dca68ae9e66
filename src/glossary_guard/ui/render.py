"""Report rendering for ``glossary-guard validate``.

Purpose
- Turn per-file summaries and batch totals into the human-readable report.
- Color statuses and headings with ``rich`` styles when color is allowed.

Functional requirements
- Rendering never prints; every method returns text so that file reports can be
  produced concurrently and emitted in input order.
- Every check message and fix note is collapsed to a single line.
- Color is off under ``--no-color``, a non-empty ``NO_COLOR``, or a non-TTY stdout.
"""

from __future__ import annotations

import io
import os
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from rich.console import Console
from rich.style import Style
from rich.text import Text

from glossary_guard.checks.base import CheckStatus
from glossary_guard.constants import REPORT_SEPARATOR_WIDTH
from glossary_guard.engine.models import Verdict
from glossary_guard.utils.text import one_line

if TYPE_CHECKING:
    from glossary_guard.engine.models import BatchResult, Outcome, RunOptions, Summary

SEPARATOR: Final[str] = "─" * REPORT_SEPARATOR_WIDTH

# Console width only bounds rich's layout; report lines are never wrapped.
_CONSOLE_WIDTH: Final[int] = 4096

_S_PASS = Style(color="green")
_S_WARN = Style(color="yellow")
_S_FAIL = Style(color="red")
_S_HEADING = Style(color="cyan")
_S_PLAIN = Style()

_STATUS_STYLES: Final[dict[CheckStatus, Style]] = {
    CheckStatus.PASS: _S_PASS,
    CheckStatus.WARN: _S_WARN,
    CheckStatus.FAIL: _S_FAIL,
    CheckStatus.ERROR: _S_FAIL,
}

_VERDICT_STYLES: Final[dict[Verdict, Style]] = {
    Verdict.PASSED: _S_PASS,
    Verdict.PASSED_WITH_WARNINGS: _S_WARN,
    Verdict.FAILED: _S_FAIL,
}


def _color_allowed(no_color_flag: bool) -> bool:
    """Check whether color output should be attempted."""

    if no_color_flag:
        return False
    if os.environ.get("NO_COLOR", ""):
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


@dataclass(frozen=True, slots=True)
class FixedFileNote:
    """Where the fixed copy of a file went, or why writing it failed."""

    path: str
    size: int = 0
    error: str | None = None


class _Block:
    """Accumulates styled lines for one report block."""

    def __init__(self, *, color: bool) -> None:
        self._buffer = io.StringIO()
        self._console = Console(
            file=self._buffer,
            force_terminal=color,
            color_system="standard" if color else None,
            no_color=not color,
            width=_CONSOLE_WIDTH,
            highlight=False,
            markup=False,
            emoji=False,
            soft_wrap=True,
        )

    def line(self, *parts: str | tuple[str, Style]) -> None:
        self._console.print(Text.assemble(*parts))

    def blank(self) -> None:
        self._buffer.write("\n")

    def text(self) -> str:
        return self._buffer.getvalue()


class ReportRenderer:
    """Builds per-file report blocks and the batch footer.

    Blocks for every file after the first start with an empty line, so
    concatenating the rendered blocks in input order gives the full report.
    """

    def __init__(self, *, no_color: bool = False) -> None:
        self._color = _color_allowed(no_color)

    @property
    def color(self) -> bool:
        return self._color

    def file_report(
        self,
        summary: Summary,
        options: RunOptions,
        *,
        index: int = 0,
        fixed_file: FixedFileNote | None = None,
    ) -> str:
        block = self._open(summary.path, options, index=index)

        for outcome in summary.outcomes:
            self._outcome_lines(block, outcome)

        counts = summary.counts
        block.blank()
        block.line(
            f"Summary for {summary.path}: ",
            (str(counts.passed), _S_PASS),
            " passed, ",
            (str(counts.warned), _S_WARN),
            " warning(s), ",
            (str(counts.failed), _S_FAIL),
            " failed, ",
            (str(counts.errored), _S_FAIL),
            " errors",
        )

        if summary.early_exit:
            early_status = summary.early_status.value if summary.early_status else "?"
            block.line(
                ("Stopped early", _S_FAIL),
                f' due to fail-fast in check "{summary.early_check}" ({early_status}).'
                f" Skipped {summary.skipped} remaining check(s).",
            )

        if fixed_file is not None:
            if fixed_file.error is not None:
                block.line(("ERROR", _S_FAIL), f" writing fixed file: {one_line(fixed_file.error)}")
            else:
                block.line(
                    ("Info", _S_HEADING),
                    f" wrote fixed file: {fixed_file.path} (bytes={fixed_file.size})",
                )

        verdict = summary.verdict
        block.line((f"Result: {verdict.value}", _VERDICT_STYLES[verdict]))
        block.line(SEPARATOR)
        return block.text()

    def error_report(
        self,
        path: str,
        options: RunOptions,
        error: str,
        *,
        index: int = 0,
    ) -> str:
        """Block for a file that could not be validated at all."""

        block = self._open(path, options, index=index)
        block.line(("ERROR", _S_FAIL), f": {one_line(error)}")
        block.line(SEPARATOR)
        return block.text()

    def footer(self, batch: BatchResult, elapsed_seconds: float) -> str:
        block = _Block(color=self._color)
        if len(batch.outcomes) > 1:
            warnings = sum(
                item.summary.counts.warned for item in batch.outcomes if item.summary is not None
            )
            block.blank()
            block.line(
                "Overall: ",
                (str(sum(item.passed for item in batch.outcomes)), _S_PASS),
                " passed, ",
                (str(warnings), _S_WARN),
                " warning(s), ",
                (str(sum(item.failed for item in batch.outcomes)), _S_FAIL),
                " failed, ",
                (str(sum(item.errored for item in batch.outcomes)), _S_FAIL),
                " error(s)",
            )
        block.blank()
        block.line(f"Total time: {elapsed_seconds:.3f}s")
        return block.text()

    def notice(self, message: str) -> str:
        """Single red line for batch-level problems such as an empty registry."""

        block = _Block(color=self._color)
        block.line((one_line(message), _S_FAIL))
        return block.text()

    def _open(self, path: str, options: RunOptions, *, index: int) -> _Block:
        block = _Block(color=self._color)
        if index > 0:
            block.blank()
        block.line(SEPARATOR)
        block.line(("Validating", _S_HEADING), f": {path}")
        block.line(SEPARATOR)
        block.blank()
        block.line(options.describe())
        block.blank()
        return block

    def _outcome_lines(self, block: _Block, outcome: Outcome) -> None:
        tag = "CRIT" if outcome.fail_fast else "NORM"
        status = outcome.status
        changed = " [changed]" if outcome.fix.did_change else ""
        block.line(
            f"→ [{tag}] {outcome.name} ... ",
            (status.value, _STATUS_STYLES.get(status, _S_PLAIN)),
            changed,
        )

        message = one_line(outcome.result.message) or "-"
        note = one_line(outcome.fix.note)
        if note:
            message = f"{message} | note: {note}"
        block.line(f"   {message}")


__all__ = ["SEPARATOR", "FixedFileNote", "ReportRenderer"]
