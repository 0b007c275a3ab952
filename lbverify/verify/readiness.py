"""Endpoint readiness polling.

A service object exists as soon as the create call returns, but the
endpoints controller only fills in backing addresses once the selected pods
are ready. The poller waits for that second step.
"""

from __future__ import annotations

import asyncio

from lbverify.client import ResourceReader
from lbverify.errors import BackendError, EndpointsNotReadyError
from lbverify.models.config import ReadinessConfig
from lbverify.models.exposure import EndpointSnapshot
from lbverify.observability.logging import get_logger

_log = get_logger("verify.readiness")


class ReadinessPoller:
    """Blocks until the exposure is backed by at least one ready address."""

    def __init__(
        self,
        endpoints: ResourceReader[EndpointSnapshot],
        name: str,
        namespace: str,
        config: ReadinessConfig | None = None,
    ) -> None:
        self._endpoints = endpoints
        self._name = name
        self._namespace = namespace
        self._config = config or ReadinessConfig()

    async def wait_ready(self) -> EndpointSnapshot:
        """Return the first snapshot that has a live address.

        Raises:
            EndpointsNotReadyError: the attempt budget ran out. The last
                backend error, if any, is chained as ``__cause__``.
        """
        attempts = self._config.max_attempts
        last_error: BackendError | None = None
        for attempt in range(1, attempts + 1):
            try:
                snapshot = await self._endpoints.get(self._name, self._namespace)
            except BackendError as exc:
                last_error = exc
                _log.debug("endpoints_read_failed", name=self._name, attempt=attempt, error=str(exc))
            else:
                last_error = None
                if snapshot.has_live_address:
                    _log.info("endpoints_ready", name=self._name, namespace=self._namespace, attempt=attempt)
                    return snapshot

            _log.info("waiting_for_endpoints", name=self._name, namespace=self._namespace, attempt=attempt)
            if attempt < attempts:
                await asyncio.sleep(self._config.interval_seconds)

        raise EndpointsNotReadyError(self._name, self._namespace, attempts) from last_error
