"""
glossary-guard — check runner

Purpose
- Execute a frozen registry's checks against one file's bytes and return an
  ordered, tallied ``Summary``.

Normative behavior
- Critical (fail-fast) checks run sequentially in ``(priority, name)`` order.
  Any non-PASS final status stops the file; nothing after it runs.
- Normal checks run concurrently against one read-only snapshot of the buffer
  and are presented sorted by ``(name, status)`` after the critical outcomes.
- With ``FixMode.IF_NOT_PASS`` critical fixes apply inline; normal fixes are
  deferred until every normal evaluation has finished and then applied one at a
  time in presentation order.
- A check that raises, times out, or reports an unknown status is recorded as a
  single ERROR outcome. ``asyncio.CancelledError`` is never swallowed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

import structlog

from glossary_guard.checks.base import (
    Check,
    CheckRegistry,
    CheckResult,
    CheckStatus,
    coerce_status,
    is_fixable,
)
from glossary_guard.engine.fixes import attempt_fix
from glossary_guard.engine.models import FixRecord, Outcome, RunOptions, Summary
from glossary_guard.utils.concurrency import call_maybe_async
from glossary_guard.utils.text import one_line


@dataclass(slots=True)
class _WorkingCopy:
    data: bytes
    path: str
    changed: bool = False


class CheckRunner:
    """Run every registered check against one in-memory file."""

    def __init__(self, registry: CheckRegistry, *, logger: Any | None = None) -> None:
        self._registry = registry if registry.frozen else registry.snapshot()
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def registry(self) -> CheckRegistry:
        return self._registry

    async def run(
        self,
        data: bytes,
        path: str,
        langs: Iterable[str] = (),
        options: RunOptions | None = None,
    ) -> Summary:
        options = options if options is not None else RunOptions()
        langs = tuple(langs)
        split = self._registry.split()
        working = _WorkingCopy(data=data, path=path)
        outcomes: list[Outcome] = []

        for check in split.critical:
            outcome = await self._run_critical(check, working, langs, options)
            outcomes.append(outcome)
            if outcome.status is CheckStatus.PASS:
                continue
            skipped = split.total - len(outcomes)
            if skipped == 0:
                break
            self._logger.info(
                "check_early_exit",
                path=path,
                check=check.name,
                status=outcome.status.value,
                skipped=skipped,
            )
            return self._summary(
                path,
                outcomes,
                split.total,
                working,
                early_exit=True,
                early_check=check.name,
                early_status=outcome.status,
            )

        if split.normal:
            outcomes.extend(await self._run_normal(split.normal, working, langs, options))

        return self._summary(path, outcomes, split.total, working)

    async def evaluate(
        self, check: Check, data: bytes, path: str, langs: tuple[str, ...], options: RunOptions
    ) -> CheckResult:
        """Evaluate one check with fault containment; the result status is always canonical."""

        timeout = options.check_timeout_seconds
        try:
            raw = await call_maybe_async(
                check.evaluate, data, path, langs, timeout_seconds=timeout
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            if isinstance(exc, TimeoutError) and timeout is not None:
                return CheckResult.errored(check.name, f"check timed out after {timeout:.3f}s")
            return CheckResult.errored(
                check.name, one_line(f"check raised {type(exc).__name__}: {exc}")
            )
        return _normalize_result(check, raw)

    async def _run_critical(
        self,
        check: Check,
        working: _WorkingCopy,
        langs: tuple[str, ...],
        options: RunOptions,
    ) -> Outcome:
        result = await self.evaluate(check, working.data, working.path, langs, options)
        fix = FixRecord()
        if _wants_fix(check, result, options):
            result, fix = await self._fix_and_reevaluate(check, result, working, langs, options)
        return Outcome(result=result, fix=fix, fail_fast=True)

    async def _run_normal(
        self,
        checks: tuple[Check, ...],
        working: _WorkingCopy,
        langs: tuple[str, ...],
        options: RunOptions,
    ) -> list[Outcome]:
        snapshot, snapshot_path = working.data, working.path
        results = await asyncio.gather(
            *(self.evaluate(check, snapshot, snapshot_path, langs, options) for check in checks)
        )
        evaluated = sorted(zip(checks, results, strict=True), key=_presentation_key)

        outcomes: list[Outcome] = []
        for check, result in evaluated:
            fix = FixRecord()
            if _wants_fix(check, result, options):
                result, fix = await self._fix_and_reevaluate(
                    check, result, working, langs, options
                )
            outcomes.append(Outcome(result=result, fix=fix, fail_fast=False))
        return outcomes

    async def _fix_and_reevaluate(
        self,
        check: Check,
        result: CheckResult,
        working: _WorkingCopy,
        langs: tuple[str, ...],
        options: RunOptions,
    ) -> tuple[CheckResult, FixRecord]:
        attempt = await attempt_fix(
            check, working.data, working.path, langs, options.check_timeout_seconds
        )
        if not attempt.record.did_change:
            return result, attempt.record

        working.data = attempt.data
        working.path = attempt.path
        working.changed = True
        self._logger.info(
            "check_fix_applied",
            check=check.name,
            path=working.path,
            note=attempt.record.note,
            size=len(attempt.data),
        )
        refreshed = await self.evaluate(check, working.data, working.path, langs, options)
        return refreshed, attempt.record

    def _summary(
        self,
        path: str,
        outcomes: list[Outcome],
        total: int,
        working: _WorkingCopy,
        *,
        early_exit: bool = False,
        early_check: str | None = None,
        early_status: CheckStatus | None = None,
    ) -> Summary:
        return Summary(
            path=path,
            outcomes=tuple(outcomes),
            total_checks=total,
            early_exit=early_exit,
            early_check=early_check,
            early_status=early_status,
            applied_fixes=working.changed,
            final_data=working.data if working.changed else None,
            final_path=working.path if working.changed else None,
        )


def _wants_fix(check: Check, result: CheckResult, options: RunOptions) -> bool:
    return options.fixing and result.status is not CheckStatus.PASS and is_fixable(check)


def _presentation_key(item: tuple[Check, CheckResult]) -> tuple[str, int]:
    check, result = item
    return (check.name, CheckStatus(result.status).severity)


def _normalize_result(check: Check, raw: object) -> CheckResult:
    if not isinstance(raw, CheckResult):
        return CheckResult.errored(
            check.name, f"check returned {type(raw).__name__}, expected CheckResult"
        )
    status = coerce_status(raw.status)
    if status is None:
        return CheckResult.errored(
            check.name,
            one_line(f"unknown status {raw.status!r} recorded as ERROR: {raw.message}"),
        )
    if status is raw.status and raw.name == check.name:
        return raw
    return replace(raw, name=check.name, status=status)


__all__ = ["CheckRunner"]
