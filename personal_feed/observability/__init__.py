"""Observability module for structured logging."""

from personal_feed.observability.logging import (
    FeedLogger,
    bind_run_context,
    clear_run_context,
    configure_logging,
    get_logger,
)


__all__ = [
    "FeedLogger",
    "bind_run_context",
    "clear_run_context",
    "configure_logging",
    "get_logger",
]
