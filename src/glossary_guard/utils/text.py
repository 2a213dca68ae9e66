"""Text normalization helpers for report lines."""

from __future__ import annotations


def one_line(text: str) -> str:
    """Collapse every run of whitespace, newlines included, to a single space."""

    return " ".join(text.split())


__all__ = ["one_line"]
