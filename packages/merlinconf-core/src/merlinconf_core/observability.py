"""Structured logging and OpenTelemetry spans for merlinconf.

This module provides:
- Structured logging setup via structlog
- A span helper wrapping elaboration and merge in an OpenTelemetry span

Only the OpenTelemetry API is used; without a configured SDK the spans are
no-ops.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer

TRACER_NAME = "merlinconf"

logger = structlog.get_logger(TRACER_NAME)


def get_tracer() -> Tracer:
    """Get the OpenTelemetry tracer for merlinconf."""
    return trace.get_tracer(TRACER_NAME)


def configure_logging(
    *,
    log_level: str = "WARNING",
    json_format: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for merlinconf.

    Logs go to stderr so they never mix with configuration printed on
    stdout.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output JSON format. If False, output human-readable.
        add_timestamp: If True, add ISO timestamp to log entries.

    Example:
        >>> configure_logging(log_level="DEBUG", json_format=False)
    """
    processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
        force=True,
    )


@contextmanager
def span(name: str, *, attributes: dict[str, Any] | None = None) -> Iterator[Span]:
    """Run a block inside an OpenTelemetry span, logging start and end.

    Args:
        name: Span name (e.g., "elaborate", "merge").
        attributes: Optional span attributes, also bound to the log events.

    Example:
        >>> with span("merge", attributes={"artifacts": 3}):
        ...     merged = merge_artifacts(artifacts)
    """
    attrs = attributes or {}
    log = logger.bind(span=name, **attrs)
    start = time.monotonic()
    log.debug("span_started")

    with get_tracer().start_as_current_span(name, attributes=attrs) as current:
        try:
            yield current
        except Exception as e:
            # the span context manager records the exception itself
            log.debug("span_failed", error=str(e))
            raise
        duration_ms = int((time.monotonic() - start) * 1000)
        current.set_status(Status(StatusCode.OK))
        log.debug("span_completed", duration_ms=duration_ms)
