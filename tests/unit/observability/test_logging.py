"""
glossary-guard — unit tests for observability logging

Purpose
- Validate queue-backed JSON/text logging, correlation metadata, and structlog routing.

What this test file should cover
- JSON line validity and extra-field capture.
- Correlation field propagation into records emitted inside a scope.
- structlog events reaching the package handlers with their keys as fields.
- Queue drain and idempotent shutdown.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest
import structlog

from glossary_guard.observability.logging import (
    LoggingConfig,
    correlation_scope,
    get_active_logging_handle,
    get_correlation_context,
    setup_logging,
    shutdown_logging,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _cleanup_logging() -> Iterator[None]:
    yield
    shutdown_logging()
    structlog.reset_defaults()


def _read_json_lines(path: Path) -> list[dict[str, object]]:
    lines = path.read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines]


@pytest.mark.unit
def test_json_logging_writes_one_object_per_record(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "guard.jsonl"
    handle = setup_logging(LoggingConfig(level="INFO", log_format="json", log_file=log_file))

    logger = logging.getLogger("glossary_guard.tests.logging")
    logger.debug("dropped below level")
    with correlation_scope(path="data/glossary.csv"):
        logger.info("file_started", extra={"checks": 7})
    logger.warning("outside scope")

    shutdown_logging(handle)

    events = _read_json_lines(log_file)
    assert [event["message"] for event in events] == ["file_started", "outside scope"]
    first, second = events
    assert first["level"] == "INFO"
    assert first["path"] == "data/glossary.csv"
    assert first["fields"] == {"checks": 7}
    assert str(first["timestamp"]).endswith("Z")
    assert "path" not in second


@pytest.mark.unit
def test_structlog_events_are_routed_to_package_handlers(tmp_path: Path) -> None:
    log_file = tmp_path / "guard.jsonl"
    handle = setup_logging(LoggingConfig(level="INFO", log_format="json", log_file=log_file))

    log = structlog.get_logger("glossary_guard.engine.runner")
    with correlation_scope(path="a.csv"):
        log.info("check_finished", check="ensure-csv-extension", status="PASS")
    log.debug("check_started", check="ignored")

    shutdown_logging(handle)

    events = _read_json_lines(log_file)
    assert len(events) == 1
    event = events[0]
    assert event["message"] == "check_finished"
    assert event["logger"] == "glossary_guard.engine.runner"
    assert event["path"] == "a.csv"
    assert event["fields"] == {"check": "ensure-csv-extension", "status": "PASS"}


@pytest.mark.unit
def test_text_format_renders_key_value_pairs(tmp_path: Path) -> None:
    log_file = tmp_path / "guard.log"
    handle = setup_logging(LoggingConfig(level="WARNING", log_format="text", log_file=log_file))

    logger = logging.getLogger("glossary_guard.tests.text")
    with correlation_scope(path="b.csv"):
        logger.error("fixed_file_write_failed", extra={"target": "b_fixed.csv"})

    shutdown_logging(handle)

    (line,) = log_file.read_text(encoding="utf-8").splitlines()
    assert "ERROR glossary_guard.tests.text: fixed_file_write_failed" in line
    assert line.endswith('path="b.csv" target="b_fixed.csv"')


@pytest.mark.unit
def test_correlation_scope_nests_and_restores() -> None:
    assert get_correlation_context() == {}

    with correlation_scope(path="outer.csv"):
        with correlation_scope(path="inner.csv", check="x"):
            assert get_correlation_context() == {"path": "inner.csv", "check": "x"}
        assert get_correlation_context() == {"path": "outer.csv"}

    assert get_correlation_context() == {}


@pytest.mark.unit
def test_correlation_scope_rejects_blank_values() -> None:
    with pytest.raises(ValueError, match="non-empty"):
        with correlation_scope(path="   "):
            pass


@pytest.mark.unit
def test_setup_replaces_previous_handle_and_shutdown_is_idempotent(tmp_path: Path) -> None:
    first = setup_logging(LoggingConfig(log_file=tmp_path / "first.jsonl"))
    second = setup_logging(LoggingConfig(log_file=tmp_path / "second.jsonl"))

    assert first.is_shutdown
    assert get_active_logging_handle() is second

    shutdown_logging(second)
    shutdown_logging(second)

    assert second.is_shutdown
    assert get_active_logging_handle() is None


@pytest.mark.unit
def test_logging_config_from_mapping_tolerates_missing_keys() -> None:
    config = LoggingConfig.from_mapping({"log_level": "DEBUG", "log_file": ""})

    assert config.level == "DEBUG"
    assert config.log_format == "json"
    assert config.log_file is None


@pytest.mark.unit
@pytest.mark.parametrize(
    "config, message",
    [
        (LoggingConfig(log_format="xml"), "log_format"),
        (LoggingConfig(level="LOUD"), "unsupported logging level"),
        (LoggingConfig(queue_size=0), "queue_size"),
    ],
)
def test_setup_rejects_invalid_settings(config: LoggingConfig, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        setup_logging(config)
