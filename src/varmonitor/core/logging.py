"""Structured logging infrastructure.

Console output for local runs and notebooks, JSON lines for batch jobs.

Usage:
    from varmonitor.core.logging import get_logger, configure_logging

    # Configure at startup (done at import from VARMONITOR_LOG_LEVEL and
    # VARMONITOR_LOG_FORMAT; call again to override)
    configure_logging(log_level="INFO", log_format="console")

    # Get logger in any module
    logger = get_logger(__name__)

    # Log with structured context
    logger.info("numeric_summary_started", variable="balance", rows=1000)

    # Use context managers for automatic context propagation
    with log_context(variable="balance"):
        logger.info("buckets_aggregated", buckets=12)
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, cast

import structlog
from structlog.typing import FilteringBoundLogger

from varmonitor.core.config import Settings, get_settings

# Context variables for correlation
_run_context: ContextVar[dict[str, Any] | None] = ContextVar("run_context", default=None)


@dataclass
class SummaryMetrics:
    """Metrics collected while summarizing one variable."""

    variable: str
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None

    # Counters
    rows_processed: int = 0
    rows_sampled: int = 0
    buckets_processed: int = 0

    # Sub-operation timings (seconds)
    timings: dict[str, float] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        """Get duration in seconds."""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return (datetime.now(UTC) - self.start_time).total_seconds()

    def record_timing(self, operation: str, seconds: float) -> None:
        """Record timing for a sub-operation."""
        self.timings[operation] = self.timings.get(operation, 0.0) + seconds

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "variable": self.variable,
            "duration_seconds": self.duration_seconds,
            "rows_processed": self.rows_processed,
            "rows_sampled": self.rows_sampled,
            "buckets_processed": self.buckets_processed,
            "timings": self.timings,
        }


# Metrics storage (per-invocation)
_current_metrics: ContextVar[SummaryMetrics | None] = ContextVar("current_metrics", default=None)


def start_summary_metrics(variable: str) -> SummaryMetrics:
    """Start collecting metrics for one variable."""
    metrics = SummaryMetrics(variable=variable)
    _current_metrics.set(metrics)
    return metrics


def get_summary_metrics() -> SummaryMetrics | None:
    """Get current summary metrics."""
    return _current_metrics.get()


def end_summary_metrics() -> SummaryMetrics | None:
    """End metrics collection and clear it from the current context."""
    metrics = _current_metrics.get()
    if metrics:
        metrics.end_time = datetime.now(UTC)
        _current_metrics.set(None)
    return metrics


def _add_run_context(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Processor to add run context to log events."""
    context = _run_context.get()
    if context:
        event_dict.update(context)
    return event_dict


def _add_metrics_context(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Processor to add current metrics context."""
    metrics = _current_metrics.get()
    if metrics:
        event_dict["_variable"] = metrics.variable
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    show_timestamps: bool = True,
    color: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Output format ("console" for development, "json" for batch jobs)
        show_timestamps: Whether to show timestamps in console mode
        color: Whether to use colors in console mode
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_run_context,
        _add_metrics_context,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if show_timestamps:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))

    if log_format == "json":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=color,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Also configure stdlib logging for libraries
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def configure_logging_from_settings(settings: Settings | None = None) -> None:
    """Configure logging from VARMONITOR_LOG_LEVEL and VARMONITOR_LOG_FORMAT."""
    settings = settings or get_settings()
    configure_logging(log_level=settings.log_level, log_format=settings.log_format)


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Get a structured logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Bound structlog logger
    """
    return cast(FilteringBoundLogger, structlog.get_logger(name))


class LogContext:
    """Context manager for adding context to logs within a scope."""

    def __init__(self, **context: Any):
        """Initialize with context key-value pairs."""
        self.context = context
        self.token: Any = None

    def __enter__(self) -> LogContext:
        """Enter context, adding values to log context."""
        current = _run_context.get() or {}
        new_context = {**current, **self.context}
        self.token = _run_context.set(new_context)
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context, restoring previous values."""
        if self.token:
            _run_context.reset(self.token)


def log_context(**context: Any) -> LogContext:
    """Create a context manager for scoped logging context.

    Usage:
        with log_context(variable="balance"):
            logger.info("processing")  # Will include variable
    """
    return LogContext(**context)


def record_rows_processed(count: int) -> None:
    """Record rows processed in current metrics."""
    metrics = _current_metrics.get()
    if metrics:
        metrics.rows_processed += count


def record_rows_sampled(count: int) -> None:
    """Record rows drawn for the distribution sample."""
    metrics = _current_metrics.get()
    if metrics:
        metrics.rows_sampled += count


def record_buckets_processed(count: int) -> None:
    """Record buckets aggregated in current metrics."""
    metrics = _current_metrics.get()
    if metrics:
        metrics.buckets_processed += count


def record_operation_timing(operation: str, seconds: float) -> None:
    """Record timing for a sub-operation in current metrics."""
    metrics = _current_metrics.get()
    if metrics:
        metrics.record_timing(operation, seconds)


# Initialize from environment settings
configure_logging_from_settings()
