"""
glossary-guard — file scheduler

Purpose
- Fan file jobs out to a fixed-size pool of asyncio workers and fan the results
  back in, in input order.

Normative behavior
- Worker count is ``min(parallelism, len(paths))`` and never below 1.
- A single dispatcher feeds a bounded queue; each job is consumed by exactly one worker.
- Each worker writes only the result slot at its job's index; slots are read after
  every worker has joined.
- Once the cancellation token fires, no further job is dispatched. Jobs already
  queued still run. Paths never dispatched come back as cancelled outcomes flagged
  as operation errors.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from contextlib import suppress
from dataclasses import replace
from typing import Any, Protocol

import structlog

from glossary_guard.engine.models import BatchResult, FileJob, FileOutcome
from glossary_guard.utils.concurrency import CancellationToken
from glossary_guard.utils.text import one_line


class FileProcessor(Protocol):
    """Turns one file job into its outcome. Implementations own their I/O errors."""

    async def process(self, job: FileJob) -> FileOutcome: ...


class FileScheduler:
    def __init__(
        self,
        processor: FileProcessor,
        parallelism: int,
        *,
        logger: Any | None = None,
    ) -> None:
        if isinstance(parallelism, bool) or not isinstance(parallelism, int) or parallelism < 1:
            raise ValueError("parallelism must be an integer >= 1")
        self._processor = processor
        self._parallelism = parallelism
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def parallelism(self) -> int:
        return self._parallelism

    def worker_count(self, job_count: int) -> int:
        return max(1, min(self._parallelism, job_count))

    async def run(
        self,
        paths: Iterable[str],
        cancel_token: CancellationToken | None = None,
    ) -> BatchResult:
        jobs = [FileJob(index=index, path=path) for index, path in enumerate(paths)]
        if not jobs:
            return BatchResult()

        token = cancel_token or CancellationToken()
        workers = self.worker_count(len(jobs))
        job_queue: asyncio.Queue[FileJob | None] = asyncio.Queue(maxsize=workers)
        slots: list[FileOutcome | None] = [None] * len(jobs)

        async def worker() -> None:
            while True:
                job = await job_queue.get()
                if job is None:
                    return
                slots[job.index] = await self._process(job)

        async def dispatch() -> None:
            try:
                for job in jobs:
                    if not await _put_unless_cancelled(job_queue, job, token):
                        break
            finally:
                for _ in range(workers):
                    await job_queue.put(None)

        await asyncio.gather(dispatch(), *(worker() for _ in range(workers)))

        outcomes: list[FileOutcome] = []
        never_dispatched = 0
        for job, slot in zip(jobs, slots, strict=True):
            if slot is None:
                never_dispatched += 1
                slot = FileOutcome.cancelled_job(job)
            outcomes.append(slot)
        if never_dispatched:
            self._logger.warning(
                "scheduler_dispatch_cancelled",
                cancelled=never_dispatched,
                total=len(jobs),
            )
        return BatchResult.from_outcomes(outcomes)

    async def _process(self, job: FileJob) -> FileOutcome:
        try:
            outcome = await self._processor.process(job)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            message = one_line(f"{type(exc).__name__}: {exc}")
            self._logger.error("file_operation_error", path=job.path, error=message)
            return FileOutcome(
                index=job.index,
                path=job.path,
                errored=1,
                operation_error=True,
                error=message,
            )
        if outcome.index != job.index:
            outcome = replace(outcome, index=job.index)
        return outcome


async def _put_unless_cancelled(
    job_queue: asyncio.Queue[FileJob | None],
    job: FileJob,
    token: CancellationToken,
) -> bool:
    """Enqueue ``job`` unless the token fires first; report whether it was enqueued."""

    if token.is_cancelled:
        return False
    put_task = asyncio.create_task(job_queue.put(job))
    cancel_task = asyncio.create_task(token.wait())
    try:
        await asyncio.wait({put_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        cancel_task.cancel()
        with suppress(asyncio.CancelledError):
            await cancel_task
    if put_task.done():
        return not put_task.cancelled()
    put_task.cancel()
    with suppress(asyncio.CancelledError):
        await put_task
    # The put may have completed while being cancelled.
    return put_task.done() and not put_task.cancelled()


__all__ = ["FileProcessor", "FileScheduler"]
