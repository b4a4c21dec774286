"""Structured logging configuration.

Pipeline components depend only on the ``FeedLogger`` protocol, a small
subset of the structlog bound-logger interface. Any object offering
``bind`` and the leveled methods can be injected, which keeps the core
independent of the configured backend.
"""

import logging
import sys
from typing import Any, Protocol, TextIO, runtime_checkable

import structlog


@runtime_checkable
class FeedLogger(Protocol):
    """Leveled, structured logger accepted by pipeline components."""

    def bind(self, **new_values: Any) -> "FeedLogger":
        """Return a logger with additional context bound."""
        ...

    def debug(self, event: str, **kw: Any) -> Any:
        """Log a debug event."""
        ...

    def info(self, event: str, **kw: Any) -> Any:
        """Log an info event."""
        ...

    def warning(self, event: str, **kw: Any) -> Any:
        """Log a warning event."""
        ...

    def error(self, event: str, **kw: Any) -> Any:
        """Log an error event."""
        ...


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Logging level (default: INFO).
        output: Output stream (default: stderr).
        json_format: Whether to use JSON format (default: True).
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=output.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=output,
        level=level,
    )


def get_logger(name: str | None = None) -> FeedLogger:
    """Get a bound logger instance.

    Args:
        name: Optional logger name.

    Returns:
        Bound logger instance.
    """
    logger: FeedLogger = structlog.get_logger(name)
    return logger


def bind_run_context(run_id: str) -> None:
    """Bind the run identifier to all subsequent log messages in this context.

    Args:
        run_id: Unique run identifier.
    """
    structlog.contextvars.bind_contextvars(run_id=run_id)


def clear_run_context() -> None:
    """Clear run context from log messages."""
    structlog.contextvars.unbind_contextvars("run_id")
