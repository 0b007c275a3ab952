"""Bounded retry of read-modify-write cycles on optimistic-concurrency conflicts."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from lbverify.errors import ConflictError, ConflictExhaustedError
from lbverify.models.config import ConflictRetryConfig
from lbverify.observability.logging import get_logger

_log = get_logger("verify.retry")

T = TypeVar("T")


def backoff_delays(config: ConflictRetryConfig) -> list[float]:
    """Return the sleep before each retry (one fewer than ``config.steps``)."""
    delays: list[float] = []
    delay = config.initial_delay
    for _ in range(max(config.steps - 1, 0)):
        delays.append(min(delay, config.max_delay))
        delay *= config.factor
    return delays


async def retry_on_conflict(
    attempt: Callable[[], Awaitable[T]],
    config: ConflictRetryConfig,
    name: str,
    namespace: str,
) -> T:
    """Run *attempt* until it stops raising ConflictError.

    *attempt* must re-read the object on every call so that each try carries
    the latest resource version. Any other exception propagates immediately.

    Raises:
        ConflictExhaustedError: every one of ``config.steps`` attempts conflicted.
    """
    delays = backoff_delays(config)
    last_conflict: ConflictError | None = None
    for step in range(config.steps):
        try:
            return await attempt()
        except ConflictError as exc:
            last_conflict = exc
            _log.info("update_conflict", name=name, namespace=namespace, attempt=step + 1, steps=config.steps)
            if step < len(delays):
                await asyncio.sleep(delays[step])
    raise ConflictExhaustedError(name, namespace, config.steps) from last_conflict
