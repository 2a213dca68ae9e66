"""Unit tests for the check contracts and ``CheckRegistry``."""

from __future__ import annotations

from dataclasses import dataclass

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from glossary_guard.checks import (
    BUILTIN_CHECKS,
    CheckRegistrationError,
    CheckRegistry,
    CheckResult,
    CheckStatus,
    RegistryFrozenError,
    coerce_status,
    default_registry,
)
from glossary_guard.checks.base import is_fixable, worst_status


@dataclass
class _Check:
    name: str
    priority: int = 10
    fail_fast: bool = False
    label: str = ""

    def evaluate(self, data: bytes, path: str, langs: tuple[str, ...]) -> CheckResult:
        return CheckResult.passed(self.name, self.label)


@dataclass
class _FixableCheck(_Check):
    def fix(self, data: bytes, path: str, langs: tuple[str, ...]) -> None:
        return None


_NAMES = st.text(alphabet="abcdefghijklmnopqrstuvwxyz-", min_size=1, max_size=12).filter(
    lambda value: value.strip("-") == value
)


@pytest.mark.unit
def test_register_same_name_replaces_definition() -> None:
    registry = CheckRegistry()
    registry.register(_Check("dup", label="first"))
    registry.register(_Check("dup", label="second"))

    assert len(registry) == 1
    found = registry.lookup("dup")
    assert isinstance(found, _Check)
    assert found.label == "second"


@pytest.mark.unit
@settings(max_examples=50, deadline=None)
@given(names=st.lists(_NAMES, min_size=1, max_size=20))
def test_registry_holds_one_entry_per_distinct_name(names: list[str]) -> None:
    registry = CheckRegistry(_Check(name, label=str(index)) for index, name in enumerate(names))

    assert len(registry) == len(set(names))
    for name in set(names):
        last_index = max(index for index, value in enumerate(names) if value == name)
        found = registry.lookup(name)
        assert isinstance(found, _Check)
        assert found.label == str(last_index)


@pytest.mark.unit
def test_split_orders_by_priority_then_name_and_partitions() -> None:
    registry = CheckRegistry(
        [
            _Check("b-normal", priority=2),
            _Check("a-normal", priority=2),
            _Check("z-critical", priority=1, fail_fast=True),
            _Check("first-normal", priority=0),
            _Check("y-critical", priority=5, fail_fast=True),
        ]
    )

    split = registry.split()

    assert [check.name for check in split.critical] == ["z-critical", "y-critical"]
    assert [check.name for check in split.normal] == ["first-normal", "a-normal", "b-normal"]
    assert split.total == len(registry)
    assert {check.name for check in split.critical}.isdisjoint(
        check.name for check in split.normal
    )


@pytest.mark.unit
def test_split_returns_fresh_tuples_that_do_not_alias_registry() -> None:
    registry = CheckRegistry([_Check("one"), _Check("two", fail_fast=True)])
    first = registry.split()

    registry.register(_Check("three"))
    second = registry.split()

    assert [check.name for check in first.normal] == ["one"]
    assert [check.name for check in second.normal] == ["one", "three"]
    assert first.normal is not second.normal


@pytest.mark.unit
def test_frozen_registry_rejects_mutation() -> None:
    registry = CheckRegistry([_Check("one")]).freeze()

    with pytest.raises(RegistryFrozenError):
        registry.register(_Check("two"))
    with pytest.raises(RegistryFrozenError):
        registry.reset()
    assert registry.names() == ("one",)


@pytest.mark.unit
def test_snapshot_is_independent_and_frozen() -> None:
    registry = CheckRegistry([_Check("one")])
    snapshot = registry.snapshot()

    registry.register(_Check("two"))

    assert snapshot.frozen
    assert snapshot.names() == ("one",)
    assert registry.names() == ("one", "two")


@pytest.mark.unit
@pytest.mark.parametrize(
    "check, message",
    [
        (_Check(""), "non-empty"),
        (_Check(" padded "), "surrounding whitespace"),
        (_Check("x" * 200), "<= 128"),
        (_Check("flag", fail_fast="yes"), "fail_fast must be a boolean"),  # type: ignore[arg-type]
        (_Check("prio", priority=True), "priority must be an integer"),
    ],
)
def test_register_rejects_invalid_checks(check: _Check, message: str) -> None:
    registry = CheckRegistry()

    with pytest.raises(CheckRegistrationError, match=message):
        registry.register(check)
    assert len(registry) == 0


@pytest.mark.unit
def test_register_rejects_objects_without_check_protocol() -> None:
    with pytest.raises(CheckRegistrationError, match="Check protocol"):
        CheckRegistry().register(object())  # type: ignore[arg-type]


@pytest.mark.unit
def test_fix_capability_is_detected_structurally() -> None:
    assert is_fixable(_FixableCheck("fixable"))
    assert not is_fixable(_Check("plain"))


@pytest.mark.unit
def test_default_registry_holds_builtin_rules_in_priority_order() -> None:
    registry = default_registry()

    assert registry.frozen
    assert len(registry) == len(BUILTIN_CHECKS)
    assert registry.names() == (
        "ensure-csv-extension",
        "ensure-utf8-encoding",
        "ensure-header-and-rows",
        "ensure-non-empty-term",
        "ensure-lang-columns",
        "ensure-unique-terms",
        "ensure-flag-values",
    )
    split = registry.split()
    assert [check.name for check in split.critical] == [
        "ensure-csv-extension",
        "ensure-utf8-encoding",
        "ensure-header-and-rows",
    ]
    assert default_registry() is not registry


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("pass", CheckStatus.PASS),
        (" Warn ", CheckStatus.WARN),
        (CheckStatus.FAIL, CheckStatus.FAIL),
        ("ERROR", CheckStatus.ERROR),
        ("SKIPPED", None),
        (3, None),
    ],
)
def test_coerce_status(raw: object, expected: CheckStatus | None) -> None:
    assert coerce_status(raw) is expected


@pytest.mark.unit
def test_worst_status_uses_severity() -> None:
    assert worst_status([]) is CheckStatus.PASS
    assert worst_status([CheckStatus.WARN, CheckStatus.PASS]) is CheckStatus.WARN
    mixed = [CheckStatus.FAIL, CheckStatus.ERROR, CheckStatus.WARN]
    assert worst_status(mixed) is CheckStatus.ERROR
    assert CheckStatus.ERROR.is_failure
    assert not CheckStatus.WARN.is_failure
