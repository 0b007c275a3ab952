"""Load-balancer verification harness.

Wires the verification components for one namespace:

    create/update -> (convergence watch, update only) -> address resolution
                  -> URL derivation -> optional reachability probe

``LoadBalancerHarness.from_kubernetes`` builds the harness on
kubernetes-asyncio; tests construct it directly from in-memory doubles.
"""

from __future__ import annotations

from typing import Any

import httpx

from lbverify.client import EventStream, ResourceReader
from lbverify.errors import ReachabilityError
from lbverify.models.config import LBVerifyConfig
from lbverify.models.exposure import (
    ConvergenceEvent,
    ConvergenceOutcome,
    EndpointSnapshot,
    ExposureRecord,
    ExposureRequest,
)
from lbverify.observability.logging import exposure_context, get_logger
from lbverify.verify.probe import ProbeResult, probe_urls
from lbverify.verify.resolver import AddressResolver
from lbverify.verify.upsert import ServiceStore, UpsertCoordinator, default_ports
from lbverify.verify.urls import derive_urls

_log = get_logger("harness")


class LoadBalancerHarness:
    """Runs one verification pass per call against the namespace's exposure."""

    def __init__(
        self,
        services: ServiceStore,
        endpoints: ResourceReader[EndpointSnapshot],
        events: EventStream[ConvergenceEvent],
        config: LBVerifyConfig | None = None,
        probe_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or LBVerifyConfig()
        self.coordinator = UpsertCoordinator(
            services,
            endpoints,
            events,
            namespace=self.config.namespace,
            app=self.config.app,
            config=self.config,
        )
        self.resolver = AddressResolver(services, self.config.resolver)
        self._probe_transport = probe_transport
        self._api_client: Any | None = None

    @classmethod
    async def from_kubernetes(cls, config: LBVerifyConfig) -> LoadBalancerHarness:
        """Build a harness backed by the cluster in the current kube context."""
        from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

        from lbverify.client.kubernetes import (
            KubeEndpointsClient,
            KubeEventClient,
            KubeServiceClient,
            load_kubernetes_config,
        )

        await load_kubernetes_config(config.kubeconfig)
        api_client = k8s_client.ApiClient()
        v1 = k8s_client.CoreV1Api(api_client)
        harness = cls(KubeServiceClient(v1), KubeEndpointsClient(v1), KubeEventClient(v1), config=config)
        harness._api_client = api_client
        return harness

    async def close(self) -> None:
        """Release the kubernetes-asyncio connection pool, if one was opened."""
        if self._api_client is None:
            return
        try:
            await self._api_client.close()
        except Exception as exc:
            _log.debug("k8s client close raised (non-fatal)", error=str(exc))
        self._api_client = None

    async def __aenter__(self) -> LoadBalancerHarness:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.coordinator.name

    @property
    def namespace(self) -> str:
        return self.coordinator.namespace

    def default_request(self, selector: dict[str, str] | None = None) -> ExposureRequest:
        """Request for the test-server workload's default port mapping."""
        return ExposureRequest(
            ports=default_ports(),
            selector=selector if selector is not None else {"app": self.config.app},
        )

    async def create_service(self, request: ExposureRequest) -> ExposureRecord:
        with exposure_context(self.name, self.namespace):
            return await self.coordinator.create(request)

    async def update_service(self, request: ExposureRequest) -> ConvergenceOutcome:
        with exposure_context(self.name, self.namespace):
            _, outcome = await self.coordinator.update(request)
            return outcome

    async def delete_service(self) -> None:
        with exposure_context(self.name, self.namespace):
            await self.coordinator.delete()

    async def get_service_with_load_balancer_status(self) -> ExposureRecord:
        with exposure_context(self.name, self.namespace):
            return await self.resolver.resolve_external_addresses(self.name, self.namespace)

    async def get_load_balancer_urls(self) -> list[str]:
        """Wait for ingress addresses and return every reachable-port URL."""
        record = await self.get_service_with_load_balancer_status()
        urls = derive_urls(record)
        _log.info("load_balancer_urls", name=self.name, namespace=self.namespace, urls=urls)
        return urls

    async def verify_reachable(self, urls: list[str]) -> list[ProbeResult]:
        """Probe *urls*; raise when ``probe.require_all`` is set and any failed."""
        with exposure_context(self.name, self.namespace):
            results = await probe_urls(urls, self.config.probe, transport=self._probe_transport)
        failures = {result.url: result.error for result in results if not result.reachable}
        if failures and self.config.probe.require_all:
            raise ReachabilityError(self.name, self.namespace, failures)
        return results
