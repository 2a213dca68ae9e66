"""Utility exports for filesystem, text, and concurrency helpers."""

from glossary_guard.utils.concurrency import CancellationToken, call_maybe_async, run_with_timeout
from glossary_guard.utils.fs import atomic_write, expand_file_patterns, read_bytes
from glossary_guard.utils.text import one_line

__all__ = [
    "CancellationToken",
    "atomic_write",
    "call_maybe_async",
    "expand_file_patterns",
    "one_line",
    "read_bytes",
    "run_with_timeout",
]
