"""
glossary-guard — engine data model

Purpose
- Immutable records exchanged between the runner, the fix controller, the file
  scheduler, and the renderers.

Contracts
- ``Summary.counts`` always equals the tally of ``Summary.outcomes``.
- ``Summary.early_exit`` implies ``len(outcomes) < total_checks``.
- ``FileOutcome`` carries rendered text opaquely; the engine never parses it.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum

from glossary_guard.checks.base import CheckResult, CheckStatus


class Verdict(StrEnum):
    """Per-file result line shown at the end of a report."""

    PASSED = "PASSED"
    PASSED_WITH_WARNINGS = "PASSED WITH WARNINGS"
    FAILED = "FAILED"


class FixMode(StrEnum):
    """Whether non-passing checks get a chance to repair the buffer."""

    NONE = "none"
    IF_NOT_PASS = "if_not_pass"


@dataclass(frozen=True, slots=True)
class RunOptions:
    fix_mode: FixMode = FixMode.NONE
    rerun_after_fix: bool = True
    hard_fail_on_error: bool = False
    check_timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fix_mode", FixMode(self.fix_mode))
        timeout = self.check_timeout_seconds
        if timeout is not None and (not math.isfinite(timeout) or timeout <= 0):
            raise ValueError("RunOptions.check_timeout_seconds must be > 0 when provided")

    @property
    def fixing(self) -> bool:
        return self.fix_mode is FixMode.IF_NOT_PASS

    def without_fixes(self) -> RunOptions:
        return replace(self, fix_mode=FixMode.NONE)

    def describe(self) -> str:
        return (
            f"Mode: FixMode={self.fix_mode.value}, RerunAfterFix={self.rerun_after_fix}, "
            f"HardFailOnErr={self.hard_fail_on_error}"
        )


@dataclass(frozen=True, slots=True)
class FixRecord:
    did_change: bool = False
    note: str = ""


@dataclass(frozen=True, slots=True)
class Outcome:
    """One check's result plus its fix record for a single run."""

    result: CheckResult
    fix: FixRecord = field(default_factory=FixRecord)
    fail_fast: bool = False

    @property
    def name(self) -> str:
        return self.result.name

    @property
    def status(self) -> CheckStatus:
        # The runner only stores normalized statuses.
        return CheckStatus(self.result.status)

    def to_dict(self) -> dict[str, object]:
        return {
            **self.result.to_dict(),
            "fail_fast": self.fail_fast,
            "changed": self.fix.did_change,
            "note": self.fix.note,
        }


@dataclass(frozen=True, slots=True)
class StatusCounts:
    passed: int = 0
    warned: int = 0
    failed: int = 0
    errored: int = 0

    @classmethod
    def tally(cls, statuses: Iterable[CheckStatus]) -> StatusCounts:
        counts = {status: 0 for status in CheckStatus}
        for status in statuses:
            counts[status] += 1
        return cls(
            passed=counts[CheckStatus.PASS],
            warned=counts[CheckStatus.WARN],
            failed=counts[CheckStatus.FAIL],
            errored=counts[CheckStatus.ERROR],
        )

    @property
    def total(self) -> int:
        return self.passed + self.warned + self.failed + self.errored

    def to_dict(self) -> dict[str, int]:
        return {
            "pass": self.passed,
            "warn": self.warned,
            "fail": self.failed,
            "error": self.errored,
        }


@dataclass(frozen=True, slots=True)
class Summary:
    """Ordered report of every outcome recorded for one file."""

    path: str
    outcomes: tuple[Outcome, ...] = ()
    total_checks: int = 0
    early_exit: bool = False
    early_check: str | None = None
    early_status: CheckStatus | None = None
    applied_fixes: bool = False
    final_data: bytes | None = None
    final_path: str | None = None
    rerun: bool = False
    pre_fix: Summary | None = None
    counts: StatusCounts = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "outcomes", tuple(self.outcomes))
        object.__setattr__(
            self, "counts", StatusCounts.tally(outcome.status for outcome in self.outcomes)
        )
        if self.early_exit and len(self.outcomes) >= self.total_checks:
            raise ValueError("Summary.early_exit requires a strict prefix of the check set")

    @property
    def skipped(self) -> int:
        return max(0, self.total_checks - len(self.outcomes)) if self.early_exit else 0

    @property
    def critical_failure(self) -> bool:
        """A fail-fast check ended on a non-PASS status, whether or not checks were skipped."""

        return any(
            outcome.fail_fast and outcome.status is not CheckStatus.PASS
            for outcome in self.outcomes
        )

    @property
    def validation_failed(self) -> bool:
        return (
            self.early_exit
            or self.critical_failure
            or self.counts.failed > 0
            or self.counts.errored > 0
        )

    @property
    def verdict(self) -> Verdict:
        if self.validation_failed:
            return Verdict.FAILED
        if self.counts.warned > 0:
            return Verdict.PASSED_WITH_WARNINGS
        return Verdict.PASSED

    def outcome(self, name: str) -> Outcome | None:
        for outcome in self.outcomes:
            if outcome.name == name:
                return outcome
        return None

    def with_fix_records(self, records: Mapping[str, FixRecord]) -> Summary:
        """Copy with fix records replaced by name; outcomes without a record are unchanged."""

        outcomes = tuple(
            replace(outcome, fix=records[outcome.name]) if outcome.name in records else outcome
            for outcome in self.outcomes
        )
        return replace(self, outcomes=outcomes)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "path": self.path,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "counts": self.counts.to_dict(),
            "total_checks": self.total_checks,
            "early_exit": self.early_exit,
            "early_check": self.early_check,
            "early_status": self.early_status.value if self.early_status else None,
            "skipped": self.skipped,
            "applied_fixes": self.applied_fixes,
            "final_path": self.final_path,
            "rerun": self.rerun,
        }
        if self.pre_fix is not None:
            payload["pre_fix"] = self.pre_fix.to_dict()
        return payload


@dataclass(frozen=True, slots=True)
class FileJob:
    index: int
    path: str


@dataclass(frozen=True, slots=True)
class FileOutcome:
    index: int
    path: str
    output: str = ""
    passed: int = 0
    warned: int = 0
    failed: int = 0
    errored: int = 0
    operation_error: bool = False
    validation_failure: bool = False
    cancelled: bool = False
    error: str | None = None
    summary: Summary | None = None

    @classmethod
    def cancelled_job(cls, job: FileJob) -> FileOutcome:
        return cls(
            index=job.index,
            path=job.path,
            errored=1,
            operation_error=True,
            cancelled=True,
            error="cancelled before dispatch",
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "passed": self.passed,
            "warned": self.warned,
            "failed": self.failed,
            "errored": self.errored,
            "had_op_err": self.operation_error,
            "had_val_fail": self.validation_failure,
            "cancelled": self.cancelled,
            "error": self.error,
            "summary": self.summary.to_dict() if self.summary is not None else None,
        }


@dataclass(frozen=True, slots=True)
class BatchResult:
    outcomes: tuple[FileOutcome, ...] = ()
    any_operation_error: bool = False
    any_validation_failure: bool = False

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[FileOutcome]) -> BatchResult:
        collected = tuple(outcomes)
        return cls(
            outcomes=collected,
            any_operation_error=any(item.operation_error for item in collected),
            any_validation_failure=any(item.validation_failure for item in collected),
        )

    @property
    def any_check_error(self) -> bool:
        return any(
            item.summary is not None and item.summary.counts.errored > 0
            for item in self.outcomes
        )


__all__ = [
    "BatchResult",
    "FileJob",
    "FileOutcome",
    "FixMode",
    "FixRecord",
    "Outcome",
    "RunOptions",
    "StatusCounts",
    "Summary",
    "Verdict",
]
