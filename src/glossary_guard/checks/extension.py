"""File extension rule."""

from __future__ import annotations

import os.path

from glossary_guard.checks.base import CheckResult, FixResult
from glossary_guard.constants import GLOSSARY_EXTENSION


class EnsureCsvExtension:
    """Glossaries are uploaded as ``.csv``; anything else is rejected up front."""

    name = "ensure-csv-extension"
    priority = 1
    fail_fast = True

    def evaluate(self, data: bytes, path: str, langs: tuple[str, ...]) -> CheckResult:
        extension = os.path.splitext(path)[1].lower()
        if extension == GLOSSARY_EXTENSION:
            return CheckResult.passed(self.name, f"File extension OK: {GLOSSARY_EXTENSION}")
        shown = extension or "(none)"
        return CheckResult.failed(
            self.name, f"Invalid file extension: {shown} (expected {GLOSSARY_EXTENSION})"
        )

    def fix(self, data: bytes, path: str, langs: tuple[str, ...]) -> FixResult:
        root, _ = os.path.splitext(path)
        renamed = root + GLOSSARY_EXTENSION
        return FixResult(data=data, path=renamed, note=f"renamed to {os.path.basename(renamed)}")


__all__ = ["EnsureCsvExtension"]
