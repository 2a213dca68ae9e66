"""
glossary-guard — filesystem utilities

Purpose
- Read glossary files, write fixed copies atomically, and expand the ``--files``
  patterns into an ordered, duplicate-free path list.

Functional requirements
- Atomic writes use a temp file in the destination directory and replace in one step.
- Glob matches are sorted and directories among them are skipped; literal paths are
  kept as given so a missing file surfaces later as an operation error.
"""

from __future__ import annotations

import contextlib
import glob
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable

PathLike = str | os.PathLike[str]

_GLOB_CHARACTERS: Final[frozenset[str]] = frozenset("*?[]")

__all__ = [
    "atomic_write",
    "expand_file_patterns",
    "has_glob",
    "read_bytes",
]


def read_bytes(path: PathLike) -> bytes:
    """Read a whole file, rejecting directories with a clear error."""

    target = Path(path)
    if target.is_dir():
        raise IsADirectoryError(f"path points to a directory: {target}")
    return target.read_bytes()


def atomic_write(path: PathLike, data: bytes | str, *, encoding: str = "utf-8") -> None:
    """
    Atomically write ``data`` to ``path``.

    The write strategy is:
    1. create temp file in the same directory,
    2. write + flush + fsync file data,
    3. replace target via ``os.replace``.
    """

    target = Path(path)
    target_parent = target.parent.resolve(strict=True)
    if not target_parent.is_dir():
        raise NotADirectoryError(f"{target_parent!s} is not a directory")

    payload = data if isinstance(data, bytes) else data.encode(encoding)
    fd, temp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=str(target_parent),
    )
    temp_path = Path(temp_name)

    try:
        with os.fdopen(fd, "wb") as file_handle:
            file_handle.write(payload)
            file_handle.flush()
            os.fsync(file_handle.fileno())
        os.replace(temp_path, target)
        _fsync_directory(target_parent)
    except Exception:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise


def has_glob(pattern: str) -> bool:
    return any(char in _GLOB_CHARACTERS for char in pattern)


def expand_file_patterns(values: Iterable[str]) -> list[str]:
    """Split comma-separated values, expand globs, and drop duplicates in first-seen order.

    Raises ``ValueError`` when nothing remains.
    """

    seen: set[str] = set()
    paths: list[str] = []

    def _add(candidate: str) -> None:
        if candidate not in seen:
            seen.add(candidate)
            paths.append(candidate)

    for value in values:
        for raw in value.split(","):
            pattern = raw.strip()
            if not pattern:
                continue
            if not has_glob(pattern):
                _add(pattern)
                continue
            for match in sorted(glob.glob(pattern)):
                if os.path.isfile(match):
                    _add(match)

    if not paths:
        raise ValueError("no files matched the provided patterns")
    return paths


def _fsync_directory(path: Path) -> None:
    """Best-effort directory fsync for metadata durability after ``os.replace``."""

    if os.name == "nt":
        return

    flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY

    try:
        dir_fd = os.open(path, flags)
    except OSError:
        return

    try:
        os.fsync(dir_fd)
    except OSError:
        return
    finally:
        os.close(dir_fd)
