"""Create, update and delete of the exposure under test.

UpsertCoordinator owns the one LoadBalancer service per namespace that the
harness verifies. Create fails fast; update runs a read-modify-write cycle
under conflict retry after clearing stale provisioning events. Both wait for
the service to be backed by ready endpoints before returning, and update also
waits for the load balancer to converge.
"""

from __future__ import annotations

from typing import Protocol

from lbverify.client import EventStream, ResourceReader, ResourceWriter
from lbverify.models.config import LBVerifyConfig
from lbverify.models.exposure import (
    EXPOSURE_NAME,
    ConvergenceEvent,
    ConvergenceOutcome,
    EndpointSnapshot,
    ExposureRecord,
    ExposureRequest,
    PortMapping,
    TransportProtocol,
)
from lbverify.observability.logging import get_logger
from lbverify.verify.convergence import ConvergenceWatcher
from lbverify.verify.readiness import ReadinessPoller
from lbverify.verify.retry import retry_on_conflict

_log = get_logger("verify.upsert")


class ServiceStore(ResourceReader[ExposureRecord], ResourceWriter[ExposureRecord], Protocol):
    """Read and write access to exposure records."""


def default_ports() -> tuple[PortMapping, ...]:
    """Port mapping of the test-server workload."""
    return (PortMapping(name="http-1", port=80, target_port=8080, protocol=TransportProtocol.TCP),)


def build_record(
    request: ExposureRequest,
    namespace: str,
    app: str,
    resource_version: str = "",
    cluster_ip: str = "",
) -> ExposureRecord:
    """Desired record for *request*; backend-owned fields are passed in, never taken from the request."""
    return ExposureRecord(
        name=EXPOSURE_NAME,
        namespace=namespace,
        ports=request.ports,
        selector=dict(request.selector),
        annotations=dict(request.annotations),
        labels={"app": f"test-server-{app}"},
        session_affinity=request.session_affinity,
        resource_version=resource_version,
        cluster_ip=cluster_ip,
    )


class UpsertCoordinator:
    """Writes the exposure and blocks until the backend has acted on it."""

    def __init__(
        self,
        services: ServiceStore,
        endpoints: ResourceReader[EndpointSnapshot],
        events: EventStream[ConvergenceEvent],
        namespace: str,
        app: str,
        config: LBVerifyConfig | None = None,
    ) -> None:
        self._services = services
        self._namespace = namespace
        self._app = app
        self._config = config or LBVerifyConfig()
        self.readiness = ReadinessPoller(endpoints, EXPOSURE_NAME, namespace, self._config.readiness)
        self.convergence = ConvergenceWatcher(events, namespace, self._config.convergence, name=EXPOSURE_NAME)

    @property
    def name(self) -> str:
        return EXPOSURE_NAME

    @property
    def namespace(self) -> str:
        return self._namespace

    async def create(self, request: ExposureRequest) -> ExposureRecord:
        """Create the exposure, then wait for ready endpoints.

        Backend errors (name collision, validation) propagate unretried.
        """
        record = build_record(request, self._namespace, self._app)
        created = await self._services.create(record)
        _log.info("service_created", name=created.name, namespace=created.namespace, ports=len(created.ports))
        await self.readiness.wait_ready()
        return created

    async def update(self, request: ExposureRequest) -> tuple[ExposureRecord, ConvergenceOutcome]:
        """Replace the exposure's spec, then wait for endpoints and convergence.

        Events from earlier operations are deleted first so they cannot be
        mistaken for the outcome of this one.
        """
        await self.convergence.clear_history()

        async def _read_modify_write() -> ExposureRecord:
            current = await self._services.get(EXPOSURE_NAME, self._namespace)
            desired = build_record(
                request,
                self._namespace,
                self._app,
                resource_version=current.resource_version,
                cluster_ip=current.cluster_ip,
            )
            return await self._services.update(desired)

        updated = await retry_on_conflict(
            _read_modify_write,
            self._config.conflict_retry,
            EXPOSURE_NAME,
            self._namespace,
        )
        _log.info(
            "service_updated",
            name=updated.name,
            namespace=updated.namespace,
            resource_version=updated.resource_version,
        )
        await self.readiness.wait_ready()
        outcome = await self.convergence.wait_converged()
        return updated, outcome

    async def delete(self) -> None:
        """Delete the exposure."""
        await self._services.delete(EXPOSURE_NAME, self._namespace)
        _log.info("service_deleted", name=EXPOSURE_NAME, namespace=self._namespace)
