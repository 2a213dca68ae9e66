"""Check-orchestration engine: runner, fix/rerun controller, and file scheduler."""

from glossary_guard.engine.fixes import FixAttempt, FixController, attempt_fix, fixed_path
from glossary_guard.engine.models import (
    BatchResult,
    FileJob,
    FileOutcome,
    FixMode,
    FixRecord,
    Outcome,
    RunOptions,
    StatusCounts,
    Summary,
    Verdict,
)
from glossary_guard.engine.runner import CheckRunner
from glossary_guard.engine.scheduler import FileProcessor, FileScheduler

__all__ = [
    "BatchResult",
    "CheckRunner",
    "FileJob",
    "FileOutcome",
    "FileProcessor",
    "FileScheduler",
    "FixAttempt",
    "FixController",
    "FixMode",
    "FixRecord",
    "Outcome",
    "RunOptions",
    "StatusCounts",
    "Summary",
    "Verdict",
    "attempt_fix",
    "fixed_path",
]
