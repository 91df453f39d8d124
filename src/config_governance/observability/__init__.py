"""Observability exports."""

from config_governance.observability.logging import (
    correlation_scope,
    get_correlation_context,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "correlation_scope",
    "get_correlation_context",
    "setup_logging",
    "shutdown_logging",
]
