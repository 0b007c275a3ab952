"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

_FORMATS = ("json", "console")


def setup_logging(level: str = "info", fmt: str = "json") -> None:
    """Configure structlog for JSON (or human-readable console) output to stderr."""
    if fmt not in _FORMATS:
        raise ValueError(f"Invalid log format: {fmt}. Must be one of {_FORMATS}")
    log_level = getattr(logging, level.upper(), logging.INFO)
    renderer: structlog.typing.Processor = (
        structlog.processors.JSONRenderer() if fmt == "json" else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]


@contextmanager
def exposure_context(name: str, namespace: str) -> Iterator[None]:
    """Tag every log line emitted inside the block with the exposure identity."""
    with structlog.contextvars.bound_contextvars(exposure=name, namespace=namespace):
        yield
