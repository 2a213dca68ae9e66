"""UTF-8 encoding rule."""

from __future__ import annotations

from typing import Final

from glossary_guard.checks.base import CheckResult, FixResult

# Legacy encodings tried in order when re-encoding; latin-1 accepts any byte.
_FALLBACK_ENCODINGS: Final[tuple[str, ...]] = ("cp1252", "latin-1")


class EnsureUtf8Encoding:
    name = "ensure-utf8-encoding"
    priority = 2
    fail_fast = True

    def evaluate(self, data: bytes, path: str, langs: tuple[str, ...]) -> CheckResult:
        try:
            data.decode("utf-8")
        except UnicodeDecodeError as exc:
            return CheckResult.failed(
                self.name,
                f"File encoding is not valid UTF-8 (first invalid byte at offset {exc.start})",
            )
        return CheckResult.passed(self.name, "File encoding is valid UTF-8")

    def fix(self, data: bytes, path: str, langs: tuple[str, ...]) -> FixResult:
        try:
            data.decode("utf-8")
        except UnicodeDecodeError:
            pass
        else:
            return FixResult(data=data, note="already valid UTF-8")

        for encoding in _FALLBACK_ENCODINGS:
            try:
                text = data.decode(encoding)
            except UnicodeDecodeError:
                continue
            return FixResult(data=text.encode("utf-8"), note=f"re-encoded from {encoding} to UTF-8")
        return FixResult(data=data, note="no fallback encoding could decode the file")


__all__ = ["EnsureUtf8Encoding"]
