"""
glossary-guard — check contracts and registry

Purpose
- Define the check interface: inputs (file bytes, logical path, declared languages)
  and outputs (``CheckResult``), plus the optional fix capability.
- Provide the explicit, passed-by-reference ``CheckRegistry`` used by the runner.

Contracts
- A check's name is unique within a registry; registering the same name again
  replaces the earlier definition.
- ``split()`` partitions into critical (fail-fast) and normal checks, each ordered
  by ``(priority, name)``. Returned tuples are fresh and never alias registry state.
- A frozen registry is read-only; the runner only ever sees frozen registries.
"""

from __future__ import annotations

from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Final, NoReturn, Protocol, runtime_checkable

_MAX_NAME_LENGTH: Final[int] = 128


class CheckRegistrationError(ValueError):
    """Raised when a check cannot be registered or the registry is inconsistent."""


class RegistryFrozenError(CheckRegistrationError):
    """Raised when mutating a registry after ``freeze()``."""


class CheckStatus(StrEnum):
    """Canonical check statuses."""

    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"
    ERROR = "ERROR"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @property
    def is_failure(self) -> bool:
        return self in (CheckStatus.FAIL, CheckStatus.ERROR)


_SEVERITY: Final[dict[CheckStatus, int]] = {
    CheckStatus.PASS: 0,
    CheckStatus.WARN: 1,
    CheckStatus.FAIL: 2,
    CheckStatus.ERROR: 3,
}


def coerce_status(value: object) -> CheckStatus | None:
    """Return the matching ``CheckStatus`` or ``None`` for unknown values."""

    if isinstance(value, CheckStatus):
        return value
    if isinstance(value, str):
        try:
            return CheckStatus(value.strip().upper())
        except ValueError:
            return None
    return None


def worst_status(statuses: Iterable[CheckStatus]) -> CheckStatus:
    """Most severe status in ``statuses``; ``PASS`` for an empty iterable."""

    return max(statuses, key=lambda item: item.severity, default=CheckStatus.PASS)


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Result envelope returned by every check evaluation.

    ``status`` accepts plain strings; the runner records any value outside
    ``CheckStatus`` as ERROR.
    """

    name: str
    status: CheckStatus | str
    message: str = ""

    @classmethod
    def passed(cls, name: str, message: str = "") -> CheckResult:
        return cls(name=name, status=CheckStatus.PASS, message=message)

    @classmethod
    def warned(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, status=CheckStatus.WARN, message=message)

    @classmethod
    def failed(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, status=CheckStatus.FAIL, message=message)

    @classmethod
    def errored(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, status=CheckStatus.ERROR, message=message)

    def to_dict(self) -> dict[str, str]:
        status = self.status.value if isinstance(self.status, CheckStatus) else str(self.status)
        return {"name": self.name, "status": status, "message": self.message}


@dataclass(frozen=True, slots=True)
class FixResult:
    """Candidate correction produced by a fixable check.

    ``path`` is set when the fix also changes the logical file path (for example a
    corrected extension); ``None`` keeps the current path.
    """

    data: bytes
    note: str = ""
    path: str | None = None


@runtime_checkable
class Check(Protocol):
    """Check protocol implemented by every built-in rule and by test doubles."""

    name: str
    priority: int
    fail_fast: bool

    def evaluate(
        self, data: bytes, path: str, langs: tuple[str, ...]
    ) -> CheckResult | Awaitable[CheckResult]: ...


@runtime_checkable
class FixableCheck(Check, Protocol):
    """Optional second capability: propose a corrected buffer."""

    def fix(
        self, data: bytes, path: str, langs: tuple[str, ...]
    ) -> FixResult | Awaitable[FixResult]: ...


def is_fixable(check: Check) -> bool:
    return isinstance(check, FixableCheck)


@dataclass(frozen=True, slots=True)
class CheckSplit:
    """Critical and normal partitions, each ordered by ``(priority, name)``."""

    critical: tuple[Check, ...]
    normal: tuple[Check, ...]

    @property
    def total(self) -> int:
        return len(self.critical) + len(self.normal)


class CheckRegistry:
    """Explicit, name-keyed check registry with a freeze lifecycle."""

    def __init__(self, checks: Iterable[Check] = ()) -> None:
        self._checks: dict[str, Check] = {}
        self._frozen = False
        for check in checks:
            self.register(check)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, check: Check) -> None:
        """Insert ``check`` or replace the existing check with the same name."""

        self._require_mutable()
        if not isinstance(check, Check):
            _fail(f"{type(check).__name__} does not implement the Check protocol")
        name = _validate_name(check.name)
        if not isinstance(check.fail_fast, bool):
            _fail(f"check {name!r}: fail_fast must be a boolean")
        if isinstance(check.priority, bool) or not isinstance(check.priority, int):
            _fail(f"check {name!r}: priority must be an integer")
        self._checks[name] = check

    def all(self) -> tuple[Check, ...]:
        return tuple(sorted(self._checks.values(), key=_order_key))

    def split(self) -> CheckSplit:
        critical = tuple(check for check in self.all() if check.fail_fast)
        normal = tuple(check for check in self.all() if not check.fail_fast)
        overlap = {check.name for check in critical} & {check.name for check in normal}
        if overlap:
            _fail(f"checks registered as both critical and normal: {sorted(overlap)}")
        return CheckSplit(critical=critical, normal=normal)

    def lookup(self, name: str) -> Check | None:
        return self._checks.get(name)

    def names(self) -> tuple[str, ...]:
        return tuple(check.name for check in self.all())

    def freeze(self) -> CheckRegistry:
        """Mark this registry read-only and return it."""

        self._frozen = True
        return self

    def snapshot(self) -> CheckRegistry:
        """Return an independent frozen copy of the current registrations."""

        return CheckRegistry(self._checks.values()).freeze()

    def reset(self) -> None:
        """Drop every registration. Intended for tests building registries by hand."""

        self._require_mutable()
        self._checks.clear()

    def _require_mutable(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("check registry is frozen")

    def __len__(self) -> int:
        return len(self._checks)

    def __contains__(self, name: object) -> bool:
        return name in self._checks

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "mutable"
        return f"CheckRegistry({state}, checks={list(self.names())})"


def _order_key(check: Check) -> tuple[int, str]:
    return (check.priority, check.name)


def _validate_name(value: object) -> str:
    if not isinstance(value, str):
        _fail(f"check name must be a string, got {type(value).__name__}")
    name = value.strip()
    if not name:
        _fail("check name must be non-empty")
    if len(name) > _MAX_NAME_LENGTH:
        _fail(f"check name must be <= {_MAX_NAME_LENGTH} characters")
    if name != value:
        _fail(f"check name {value!r} must not have surrounding whitespace")
    return name


def _fail(message: str) -> NoReturn:
    raise CheckRegistrationError(message)


__all__ = [
    "Check",
    "CheckRegistrationError",
    "CheckRegistry",
    "CheckResult",
    "CheckSplit",
    "CheckStatus",
    "FixResult",
    "FixableCheck",
    "RegistryFrozenError",
    "coerce_status",
    "is_fixable",
    "worst_status",
]
