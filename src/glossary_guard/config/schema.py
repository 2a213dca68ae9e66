"""
glossary-guard — configuration schema and validation.

Purpose
- Define authoritative configuration defaults and strict validation rules for
  ``glossary-guard.toml``.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Reject unknown keys so typos never silently fall back to defaults.
- Provide deterministic deep-merge used for the file/env/CLI precedence chain.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from glossary_guard.constants import CONFIG_SCHEMA_VERSION, DEFAULT_FIXED_SUFFIX

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION
OUTPUT_FORMATS: Final[tuple[str, ...]] = ("text", "json")
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS: Final[tuple[str, ...]] = ("json", "text")

# Config paths normalized relative to the config file location.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (("observability", "log_file"),)


class MetaConfig(TypedDict):
    schema_version: int


class ValidateConfig(TypedDict):
    parallel: int
    langs: list[str]
    fix: bool
    rerun_after_fix: bool
    hard_fail_on_error: bool
    output_format: Literal["text", "json"]
    no_color: bool
    fixed_suffix: str
    check_timeout_seconds: float | None


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_format: Literal["json", "text"]
    log_file: str | None


class GuardConfig(TypedDict):
    meta: MetaConfig
    validate: ValidateConfig
    observability: ObservabilityConfig


DEFAULT_CONFIG: Final[GuardConfig] = {
    "meta": {
        "schema_version": ConfigSchemaVersion,
    },
    "validate": {
        "parallel": 0,
        "langs": [],
        "fix": False,
        "rerun_after_fix": True,
        "hard_fail_on_error": False,
        "output_format": "text",
        "no_color": False,
        "fixed_suffix": DEFAULT_FIXED_SUFFIX,
        "check_timeout_seconds": None,
    },
    "observability": {
        "log_level": "WARNING",
        "log_format": "text",
        "log_file": None,
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> GuardConfig:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade glossary-guard.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade glossary-guard"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    _reject_unknown_keys(root, {"meta", "validate", "observability"}, "", issues)
    normalized: dict[str, Any] = {}
    for key, validator in (
        ("meta", _validate_meta),
        ("validate", _validate_validate),
        ("observability", _validate_observability),
    ):
        if key not in root:
            issues.add(key, "missing required section")
            continue
        section = _as_object(root[key], key, issues)
        if section is not None:
            normalized[key] = validator(section, key, issues)

    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _validate_meta(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"schema_version"}, path, issues)
    _require_keys(payload, {"schema_version"}, path, issues)

    out: dict[str, Any] = {}
    if "schema_version" in payload:
        parsed = _as_int(
            payload["schema_version"], _join(path, "schema_version"), issues, minimum=1
        )
        if parsed is not None:
            out["schema_version"] = parsed
            if parsed != ConfigSchemaVersion:
                issues.add(_join(path, "schema_version"), migration_guidance(parsed))
    return out


def _validate_validate(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = set(DEFAULT_CONFIG["validate"])
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed - {"check_timeout_seconds"}, path, issues)

    out: dict[str, Any] = {}
    if "parallel" in payload:
        parallel = _as_int(payload["parallel"], _join(path, "parallel"), issues, minimum=0)
        if parallel is not None:
            out["parallel"] = parallel

    if "langs" in payload:
        langs = _as_str_list(payload["langs"], _join(path, "langs"), issues)
        if langs is not None:
            out["langs"] = langs

    for flag in ("fix", "rerun_after_fix", "hard_fail_on_error", "no_color"):
        if flag in payload:
            parsed_flag = _as_bool(payload[flag], _join(path, flag), issues)
            if parsed_flag is not None:
                out[flag] = parsed_flag

    if "output_format" in payload:
        output_format = _as_enum(
            payload["output_format"],
            _join(path, "output_format"),
            issues,
            allowed_values=OUTPUT_FORMATS,
        )
        if output_format is not None:
            out["output_format"] = output_format

    if "fixed_suffix" in payload:
        suffix = _as_str(payload["fixed_suffix"], _join(path, "fixed_suffix"), issues)
        if suffix is not None:
            if "/" in suffix or "\\" in suffix:
                issues.add(_join(path, "fixed_suffix"), "must not contain path separators")
            else:
                out["fixed_suffix"] = suffix

    timeout = payload.get("check_timeout_seconds")
    if timeout is None:
        out["check_timeout_seconds"] = None
    else:
        parsed_timeout = _as_float(timeout, _join(path, "check_timeout_seconds"), issues)
        if parsed_timeout is not None:
            if parsed_timeout <= 0:
                issues.add(_join(path, "check_timeout_seconds"), "must be > 0")
            else:
                out["check_timeout_seconds"] = parsed_timeout
    return out


def _validate_observability(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"log_level", "log_format", "log_file"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, {"log_level", "log_format"}, path, issues)

    out: dict[str, Any] = {}
    if "log_level" in payload:
        raw_level = payload["log_level"]
        level = raw_level.upper() if isinstance(raw_level, str) else raw_level
        parsed_level = _as_enum(
            level, _join(path, "log_level"), issues, allowed_values=LOG_LEVELS
        )
        if parsed_level is not None:
            out["log_level"] = parsed_level

    if "log_format" in payload:
        parsed_format = _as_enum(
            payload["log_format"], _join(path, "log_format"), issues, allowed_values=LOG_FORMATS
        )
        if parsed_format is not None:
            out["log_format"] = parsed_format

    log_file = payload.get("log_file")
    if log_file is None:
        out["log_file"] = None
    else:
        parsed_file = _as_path_text(log_file, _join(path, "log_file"), issues)
        if parsed_file is not None:
            out["log_file"] = parsed_file
    return out


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_path_text(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if "\x00" in parsed:
        issues.add(path, "must not contain NUL bytes")
        return None
    return parsed


def _as_str_list(value: object, path: str, issues: _IssueCollector) -> list[str] | None:
    if isinstance(value, str) or not isinstance(value, Sequence):
        issues.add(path, f"expected list of strings, got {type(value).__name__}")
        return None
    out: list[str] = []
    for index, item in enumerate(value):
        parsed = _as_str(item, f"{path}[{index}]", issues)
        if parsed is not None:
            out.append(parsed)
    return out


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    return value


def _as_float(value: object, path: str, issues: _IssueCollector) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        issues.add(path, f"expected number, got {type(value).__name__}")
        return None
    parsed = float(value)
    if not math.isfinite(parsed):
        issues.add(path, "must be finite")
        return None
    return parsed


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    return {key: copy.deepcopy(value[key]) for key in sorted(value)}


__all__ = [
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "GuardConfig",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "OUTPUT_FORMATS",
    "PATH_FIELDS",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
