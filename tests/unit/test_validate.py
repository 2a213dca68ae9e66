"""File validation pipeline: per-file outcomes, fixed-file writes, and exit codes."""

from __future__ import annotations

from pathlib import Path

import pytest

from glossary_guard.checks import CheckResult, default_registry
from glossary_guard.engine import (
    BatchResult,
    CheckRunner,
    FileJob,
    FileOutcome,
    FixController,
    FixMode,
    Outcome,
    RunOptions,
    Summary,
)
from glossary_guard.main import ExitCode
from glossary_guard.validate import FileValidator, exit_code_for, validate_files

FIX = RunOptions(fix_mode=FixMode.IF_NOT_PASS)


class _Recorder:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, object]]] = []

    def error(self, event: str, **fields: object) -> None:
        self.events.append(("error", event, fields))

    def info(self, event: str, **fields: object) -> None:
        self.events.append(("info", event, fields))


def _validator(options: RunOptions = RunOptions(), **kwargs: object) -> FileValidator:
    controller = FixController(CheckRunner(default_registry()))
    return FileValidator(controller, options=options, **kwargs)  # type: ignore[arg-type]


@pytest.mark.unit
async def test_clean_file_counts_as_passed(tmp_path: Path) -> None:
    path = tmp_path / "glossary.csv"
    path.write_text("term;description\nsun;star\n", encoding="utf-8")

    outcome = await _validator().process(FileJob(index=0, path=str(path)))

    assert (outcome.passed, outcome.warned, outcome.failed, outcome.errored) == (1, 0, 0, 0)
    assert not outcome.operation_error
    assert not outcome.validation_failure
    assert outcome.summary is not None
    assert outcome.summary.counts.passed == 7
    assert "Result: PASSED" in outcome.output


@pytest.mark.unit
async def test_failing_file_counts_once_regardless_of_check_count(tmp_path: Path) -> None:
    path = tmp_path / "glossary.csv"
    path.write_text("term;description;forbidden\n;star;maybe\n", encoding="utf-8")

    outcome = await _validator().process(FileJob(index=0, path=str(path)))

    assert (outcome.passed, outcome.warned, outcome.failed, outcome.errored) == (0, 0, 1, 0)
    assert outcome.validation_failure
    assert outcome.summary is not None
    assert outcome.summary.counts.failed >= 2


@pytest.mark.unit
async def test_unreadable_file_is_an_operation_error(tmp_path: Path) -> None:
    recorder = _Recorder()
    missing = str(tmp_path / "missing.csv")

    outcome = await _validator(logger=recorder).process(FileJob(index=3, path=missing))

    assert outcome.index == 3
    assert outcome.operation_error
    assert outcome.errored == 1
    assert outcome.summary is None
    assert outcome.error
    assert outcome.output.startswith("\n")
    assert "ERROR: " in outcome.output
    assert [(level, event) for level, event, _ in recorder.events] == [
        ("error", "file_operation_error")
    ]


@pytest.mark.unit
async def test_fix_writes_sibling_and_reports_it(tmp_path: Path) -> None:
    path = tmp_path / "glossary.csv"
    path.write_text("term;description;forbidden\nsun;star;yes\n", encoding="utf-8")
    recorder = _Recorder()

    outcome = await _validator(FIX, logger=recorder).process(FileJob(index=0, path=str(path)))

    fixed = tmp_path / "glossary_fixed.csv"
    assert fixed.read_bytes() == b"term;description;forbidden\nsun;star;Y\n"
    assert outcome.passed == 1
    assert not outcome.operation_error
    assert f"wrote fixed file: {fixed} (bytes={fixed.stat().st_size})" in outcome.output
    assert recorder.events[-1][1] == "fixed_file_written"


@pytest.mark.unit
async def test_failed_fixed_write_keeps_results_and_flags_operation_error(
    tmp_path: Path,
) -> None:
    path = tmp_path / "glossary.csv"
    path.write_text("term;description;forbidden\nsun;star;yes\n", encoding="utf-8")
    (tmp_path / "glossary_fixed.csv").mkdir()
    recorder = _Recorder()

    outcome = await _validator(FIX, logger=recorder).process(FileJob(index=0, path=str(path)))

    assert outcome.operation_error
    assert outcome.errored == 1
    assert outcome.passed == 1
    assert outcome.summary is not None
    assert outcome.summary.applied_fixes
    assert "ERROR writing fixed file:" in outcome.output
    assert recorder.events[-1][1] == "fixed_file_write_failed"


@pytest.mark.unit
async def test_no_fixed_file_without_fix_mode(tmp_path: Path) -> None:
    path = tmp_path / "glossary.csv"
    path.write_text("term;description;forbidden\nsun;star;yes\n", encoding="utf-8")

    outcome = await _validator().process(FileJob(index=0, path=str(path)))

    assert outcome.failed == 1
    assert not (tmp_path / "glossary_fixed.csv").exists()


@pytest.mark.unit
def test_validator_rejects_empty_suffix() -> None:
    with pytest.raises(ValueError, match="fixed_suffix"):
        _validator(fixed_suffix="")


@pytest.mark.unit
async def test_validate_files_keeps_input_order(tmp_path: Path) -> None:
    names = ["c.csv", "a.csv", "b.csv"]
    for name in names:
        (tmp_path / name).write_text("term;description\nsun;star\n", encoding="utf-8")

    batch = await validate_files(
        [str(tmp_path / name) for name in names], registry=default_registry(), parallelism=3
    )

    assert [Path(outcome.path).name for outcome in batch.outcomes] == names
    assert exit_code_for(batch) is ExitCode.SUCCESS


def _batch(
    *, op_error: bool = False, val_fail: bool = False, check_error: bool = False
) -> BatchResult:
    summary = None
    if check_error:
        summary = Summary(
            path="g.csv",
            outcomes=(Outcome(result=CheckResult.errored("x", "boom")),),
            total_checks=1,
        )
    outcome = FileOutcome(
        index=0,
        path="g.csv",
        operation_error=op_error,
        validation_failure=val_fail or check_error,
        summary=summary,
    )
    return BatchResult.from_outcomes([outcome])


@pytest.mark.unit
@pytest.mark.parametrize(
    "flags, hard_fail, expected",
    [
        ({"op_error": True, "check_error": True}, True, ExitCode.OPERATION_ERROR),
        ({"check_error": True}, True, ExitCode.CHECK_ERROR),
        ({"check_error": True}, False, ExitCode.VALIDATION_FAILED),
        ({"val_fail": True}, True, ExitCode.VALIDATION_FAILED),
        ({}, True, ExitCode.SUCCESS),
    ],
)
def test_exit_code_precedence(
    flags: dict[str, bool], hard_fail: bool, expected: ExitCode
) -> None:
    assert exit_code_for(_batch(**flags), hard_fail_on_error=hard_fail) is expected
