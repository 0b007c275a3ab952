"""External address resolution."""

from __future__ import annotations

import asyncio

from lbverify.client import ResourceReader
from lbverify.errors import BackendError, ExternalAddressTimeoutError
from lbverify.models.config import ResolverConfig
from lbverify.models.exposure import ExposureRecord
from lbverify.observability.logging import get_logger

_log = get_logger("verify.resolver")


class AddressResolver:
    """Polls an exposure until the load balancer publishes an ingress address."""

    def __init__(self, services: ResourceReader[ExposureRecord], config: ResolverConfig | None = None) -> None:
        self._services = services
        self._config = config or ResolverConfig()

    async def resolve_external_addresses(self, name: str, namespace: str) -> ExposureRecord:
        """Return the record once its ingress list is non-empty.

        The first check is immediate. Read errors count as "not ready yet",
        and each read is cut off at the deadline so a stalled backend cannot
        hold the caller past it.

        Raises:
            ExternalAddressTimeoutError: the deadline passed first. Raised no
                earlier than the deadline and no later than one interval after.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._config.timeout_seconds
        attempt = 0
        last_error: BackendError | None = None
        while True:
            attempt += 1
            read_deadline = asyncio.timeout_at(deadline)
            try:
                async with read_deadline:
                    record = await self._services.get(name, namespace)
            except TimeoutError:
                if not read_deadline.expired():
                    raise
                _log.debug("service_read_timed_out", name=name, namespace=namespace, attempt=attempt)
                break
            except BackendError as exc:
                last_error = exc
                _log.debug("service_read_failed", name=name, namespace=namespace, attempt=attempt, error=str(exc))
            else:
                if record.ingress:
                    _log.info(
                        "external_address_resolved",
                        name=name,
                        namespace=namespace,
                        addresses=[item.address for item in record.ingress],
                        attempt=attempt,
                    )
                    return record

            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            _log.debug("waiting_for_external_address", name=name, namespace=namespace, attempt=attempt)
            await asyncio.sleep(min(self._config.interval_seconds, remaining))

        _log.warning("external_address_timeout", name=name, namespace=namespace, attempts=attempt)
        raise ExternalAddressTimeoutError(name, namespace, self._config.timeout_seconds) from last_error
