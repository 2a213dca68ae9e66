"""Public observability primitives: logging setup and correlation context."""

from glossary_guard.observability.logging import (
    LoggingConfig,
    LoggingHandle,
    configure_structlog,
    correlation_scope,
    get_active_logging_handle,
    get_correlation_context,
    reset_correlation_fields,
    set_correlation_fields,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "LoggingConfig",
    "LoggingHandle",
    "configure_structlog",
    "correlation_scope",
    "get_active_logging_handle",
    "get_correlation_context",
    "reset_correlation_fields",
    "set_correlation_fields",
    "setup_logging",
    "shutdown_logging",
]
