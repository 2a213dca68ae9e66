"""
glossary-guard — file validation pipeline

Purpose
- Process one glossary file end to end: read, validate through the fix
  controller, write the fixed sibling, render the report block.
- Run a batch of files through the scheduler and turn the batch into an exit code.

Contracts
- A read failure is an operation error with no check outcomes.
- A failed fixed-file write is an operation error that keeps the validation results.
- File-level counts follow the per-file verdict: exactly one of passed, warned,
  failed is 1 for every file that was validated.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

import structlog

from glossary_guard.checks.base import CheckRegistry
from glossary_guard.constants import DEFAULT_FIXED_SUFFIX
from glossary_guard.engine.fixes import FixController, fixed_path
from glossary_guard.engine.models import (
    BatchResult,
    FileJob,
    FileOutcome,
    RunOptions,
    Summary,
    Verdict,
)
from glossary_guard.engine.runner import CheckRunner
from glossary_guard.engine.scheduler import FileScheduler
from glossary_guard.main import ExitCode
from glossary_guard.observability.logging import correlation_scope
from glossary_guard.ui.render import FixedFileNote, ReportRenderer
from glossary_guard.utils.concurrency import CancellationToken
from glossary_guard.utils.fs import atomic_write, read_bytes
from glossary_guard.utils.text import one_line


class FileValidator:
    """Default file processor used by the scheduler."""

    def __init__(
        self,
        controller: FixController,
        *,
        langs: Iterable[str] = (),
        options: RunOptions | None = None,
        renderer: ReportRenderer | None = None,
        fixed_suffix: str = DEFAULT_FIXED_SUFFIX,
        logger: Any | None = None,
    ) -> None:
        if not fixed_suffix:
            raise ValueError("fixed_suffix must be non-empty")
        self._controller = controller
        self._langs = tuple(langs)
        self._options = options if options is not None else RunOptions()
        self._renderer = renderer if renderer is not None else ReportRenderer(no_color=True)
        self._fixed_suffix = fixed_suffix
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def options(self) -> RunOptions:
        return self._options

    async def process(self, job: FileJob) -> FileOutcome:
        with correlation_scope(path=job.path):
            return await self._process(job)

    async def _process(self, job: FileJob) -> FileOutcome:
        try:
            data = await asyncio.to_thread(read_bytes, job.path)
        except OSError as exc:
            message = one_line(str(exc)) or type(exc).__name__
            self._logger.error("file_operation_error", path=job.path, error=message)
            return FileOutcome(
                index=job.index,
                path=job.path,
                output=self._renderer.error_report(
                    job.path, self._options, message, index=job.index
                ),
                errored=1,
                operation_error=True,
                error=message,
            )

        summary = await self._controller.validate(data, job.path, self._langs, self._options)

        note: FixedFileNote | None = None
        if self._options.fixing and summary.applied_fixes:
            note = await self._write_fixed(job, summary)
        write_error = note.error if note is not None else None

        verdict = summary.verdict
        return FileOutcome(
            index=job.index,
            path=job.path,
            output=self._renderer.file_report(
                summary, self._options, index=job.index, fixed_file=note
            ),
            passed=int(verdict is Verdict.PASSED),
            warned=int(verdict is Verdict.PASSED_WITH_WARNINGS),
            failed=int(verdict is Verdict.FAILED),
            errored=int(write_error is not None),
            operation_error=write_error is not None,
            validation_failure=summary.validation_failed,
            error=write_error,
            summary=summary,
        )

    async def _write_fixed(self, job: FileJob, summary: Summary) -> FixedFileNote:
        target = fixed_path(summary.final_path or job.path, self._fixed_suffix)
        payload = summary.final_data if summary.final_data is not None else b""
        try:
            await asyncio.to_thread(atomic_write, target, payload)
        except OSError as exc:
            message = one_line(str(exc)) or type(exc).__name__
            self._logger.error(
                "fixed_file_write_failed", path=job.path, target=target, error=message
            )
            return FixedFileNote(path=target, error=message)
        self._logger.info("fixed_file_written", path=job.path, target=target, size=len(payload))
        return FixedFileNote(path=target, size=len(payload))


async def validate_files(
    paths: Iterable[str],
    *,
    registry: CheckRegistry,
    langs: Iterable[str] = (),
    options: RunOptions | None = None,
    parallelism: int = 1,
    renderer: ReportRenderer | None = None,
    fixed_suffix: str = DEFAULT_FIXED_SUFFIX,
    cancel_token: CancellationToken | None = None,
) -> BatchResult:
    """Validate ``paths`` with a frozen view of ``registry``; outcomes keep input order."""

    controller = FixController(CheckRunner(registry))
    validator = FileValidator(
        controller,
        langs=langs,
        options=options,
        renderer=renderer,
        fixed_suffix=fixed_suffix,
    )
    scheduler = FileScheduler(validator, parallelism)
    return await scheduler.run(paths, cancel_token)


def exit_code_for(batch: BatchResult, *, hard_fail_on_error: bool = False) -> ExitCode:
    """Operation errors win over check errors, which win over validation failures."""

    if batch.any_operation_error:
        return ExitCode.OPERATION_ERROR
    if hard_fail_on_error and batch.any_check_error:
        return ExitCode.CHECK_ERROR
    if batch.any_validation_failure:
        return ExitCode.VALIDATION_FAILED
    return ExitCode.SUCCESS


__all__ = ["FileValidator", "exit_code_for", "validate_files"]
