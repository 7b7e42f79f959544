"""Per-run structured logging and correlation context."""

from manifest_validator.observability.logging import (
    RunLogHandle,
    RunLogSettings,
    active_run_logging,
    configure_structlog,
    correlation_scope,
    current_correlation,
    redact,
    setup_logging,
    shutdown_logging,
    start_run_logging,
)

__all__ = [
    "RunLogHandle",
    "RunLogSettings",
    "active_run_logging",
    "configure_structlog",
    "correlation_scope",
    "current_correlation",
    "redact",
    "setup_logging",
    "shutdown_logging",
    "start_run_logging",
]
