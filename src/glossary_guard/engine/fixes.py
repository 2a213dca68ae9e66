"""
glossary-guard — fix application and rerun control

Purpose
- Invoke a check's fix capability and decide whether the candidate counts as a change.
- Re-validate corrected buffers once, with fixes disabled, when rerun is enabled.
- Derive the sibling path fixed files are written to.

Contracts
- A candidate counts as a change when its bytes differ from the input or it
  moves the logical path. Anything else leaves the buffer untouched.
- A fix that raises never changes the buffer; the failure is kept in the note.
- At most one rerun happens per file, and the rerun Summary is authoritative.
"""

from __future__ import annotations

import asyncio
import os.path
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

import structlog

from glossary_guard.checks.base import Check, FixableCheck, FixResult
from glossary_guard.constants import DEFAULT_FIXED_SUFFIX
from glossary_guard.engine.models import FixRecord, RunOptions, Summary
from glossary_guard.utils.concurrency import call_maybe_async
from glossary_guard.utils.text import one_line

if TYPE_CHECKING:
    from collections.abc import Iterable

    from glossary_guard.engine.runner import CheckRunner


@dataclass(frozen=True, slots=True)
class FixAttempt:
    """Buffer and path to continue with, plus the record shown in reports."""

    data: bytes
    path: str
    record: FixRecord


async def attempt_fix(
    check: Check,
    data: bytes,
    path: str,
    langs: tuple[str, ...],
    timeout_seconds: float | None = None,
) -> FixAttempt:
    unchanged = FixAttempt(data=data, path=path, record=FixRecord())
    if not isinstance(check, FixableCheck):
        return unchanged

    try:
        candidate = await call_maybe_async(
            check.fix, data, path, langs, timeout_seconds=timeout_seconds
        )
    except asyncio.CancelledError:
        raise
    except Exception as exc:  # noqa: BLE001
        if isinstance(exc, TimeoutError) and timeout_seconds is not None:
            note = f"fix timed out after {timeout_seconds:.3f}s"
        else:
            note = one_line(f"fix failed: {type(exc).__name__}: {exc}")
        return replace(unchanged, record=FixRecord(note=note))

    if not isinstance(candidate, FixResult):
        note = f"fix returned {type(candidate).__name__}, expected FixResult"
        return replace(unchanged, record=FixRecord(note=note))

    new_path = candidate.path if candidate.path else path
    did_change = candidate.data != data or new_path != path
    if not did_change:
        return replace(unchanged, record=FixRecord(note=candidate.note))
    return FixAttempt(
        data=candidate.data,
        path=new_path,
        record=FixRecord(did_change=True, note=candidate.note),
    )


class FixController:
    """Run a file through the runner and, when fixes applied, verify the result once more."""

    def __init__(self, runner: CheckRunner, *, logger: Any | None = None) -> None:
        self._runner = runner
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def runner(self) -> CheckRunner:
        return self._runner

    async def validate(
        self,
        data: bytes,
        path: str,
        langs: Iterable[str] = (),
        options: RunOptions | None = None,
    ) -> Summary:
        options = options if options is not None else RunOptions()
        langs = tuple(langs)
        first = await self._runner.run(data, path, langs, options)
        if not (options.fixing and options.rerun_after_fix and first.applied_fixes):
            return first

        final_data = first.final_data if first.final_data is not None else data
        final_path = first.final_path if first.final_path is not None else path
        self._logger.info(
            "check_rerun",
            path=path,
            final_path=final_path,
            first_pass=first.counts.to_dict(),
        )
        second = await self._runner.run(final_data, final_path, langs, options.without_fixes())
        records = {outcome.name: outcome.fix for outcome in first.outcomes}
        return replace(
            second.with_fix_records(records),
            path=path,
            applied_fixes=True,
            final_data=final_data,
            final_path=final_path,
            rerun=True,
            pre_fix=first,
        )


def fixed_path(path: str, suffix: str = DEFAULT_FIXED_SUFFIX) -> str:
    """Insert ``suffix`` before the extension unless the base name already ends with it.

    >>> fixed_path("a.csv")
    'a_fixed.csv'
    >>> fixed_path("a_fixed.csv")
    'a_fixed.csv'
    """

    if not suffix:
        raise ValueError("fixed-file suffix must be non-empty")
    root, extension = os.path.splitext(path)
    if root.endswith(suffix):
        return path
    return f"{root}{suffix}{extension}"


__all__ = ["FixAttempt", "FixController", "attempt_fix", "fixed_path"]
