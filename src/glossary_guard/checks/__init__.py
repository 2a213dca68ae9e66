"""
glossary-guard — built-in glossary checks

Purpose
- Expose the check contracts and the built-in Lokalise glossary rules.
- Build the default registry handed to the engine.

Built-in rules (priority order)
- ensure-csv-extension, ensure-utf8-encoding, ensure-header-and-rows (fail-fast)
- ensure-non-empty-term, ensure-lang-columns, ensure-unique-terms, ensure-flag-values
"""

from glossary_guard.checks.base import (
    Check,
    CheckRegistrationError,
    CheckRegistry,
    CheckResult,
    CheckSplit,
    CheckStatus,
    FixableCheck,
    FixResult,
    RegistryFrozenError,
    coerce_status,
    is_fixable,
    worst_status,
)
from glossary_guard.checks.encoding import EnsureUtf8Encoding
from glossary_guard.checks.extension import EnsureCsvExtension
from glossary_guard.checks.flags import EnsureFlagValues
from glossary_guard.checks.header import EnsureHeaderAndRows
from glossary_guard.checks.languages import EnsureLangColumns
from glossary_guard.checks.terms import EnsureNonEmptyTerm, EnsureUniqueTerms

BUILTIN_CHECKS: tuple[type[Check], ...] = (
    EnsureCsvExtension,
    EnsureUtf8Encoding,
    EnsureHeaderAndRows,
    EnsureNonEmptyTerm,
    EnsureLangColumns,
    EnsureUniqueTerms,
    EnsureFlagValues,
)


def default_registry() -> CheckRegistry:
    """Fresh frozen registry holding one instance of every built-in rule."""

    return CheckRegistry(check_type() for check_type in BUILTIN_CHECKS).freeze()


__all__ = [
    "BUILTIN_CHECKS",
    "Check",
    "CheckRegistrationError",
    "CheckRegistry",
    "CheckResult",
    "CheckSplit",
    "CheckStatus",
    "EnsureCsvExtension",
    "EnsureFlagValues",
    "EnsureHeaderAndRows",
    "EnsureLangColumns",
    "EnsureNonEmptyTerm",
    "EnsureUniqueTerms",
    "EnsureUtf8Encoding",
    "FixResult",
    "FixableCheck",
    "RegistryFrozenError",
    "coerce_status",
    "default_registry",
    "is_fixable",
    "worst_status",
]
