"""kubernetes-asyncio adapters for the capability interfaces.

KubeServiceClient   -- read/write v1.Service as ExposureRecord.
KubeEndpointsClient -- read v1.Endpoints as EndpointSnapshot.
KubeEventClient     -- watch and clear v1.Event as ConvergenceEvent.

API failures are translated into lbverify errors: HTTP 409 becomes
ConflictError, every other API or transport failure becomes BackendError.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Iterator
from contextlib import contextmanager
from typing import Any

import aiohttp
from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio import watch as k8s_watch  # type: ignore[import-untyped]
from kubernetes_asyncio.client.rest import ApiException  # type: ignore[import-untyped]

from lbverify.errors import BackendError, ConflictError, MalformedEventError
from lbverify.models.exposure import (
    EXPOSURE_NAME,
    ConvergenceEvent,
    EndpointSnapshot,
    EndpointSubset,
    ExposureRecord,
    IngressAddress,
    PortMapping,
    SessionAffinity,
    TransportProtocol,
)
from lbverify.observability.logging import get_logger

_log = get_logger("client.kubernetes")

_LOAD_BALANCER = "LoadBalancer"


async def load_kubernetes_config(kubeconfig: str = "") -> None:
    """Configure kubernetes-asyncio from in-cluster config or a kubeconfig file."""
    import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]

    if kubeconfig:
        await k8s_config.load_kube_config(config_file=kubeconfig)
        _log.info("k8s client configured from kubeconfig", path=kubeconfig)
        return
    try:
        # load_incluster_config() is synchronous in kubernetes-asyncio
        k8s_config.load_incluster_config()
        _log.info("k8s client configured from in-cluster service account")
    except k8s_config.ConfigException:
        await k8s_config.load_kube_config()
        _log.info("k8s client configured from kubeconfig")


@contextmanager
def _translate_errors(action: str, name: str, namespace: str) -> Iterator[None]:
    try:
        yield
    except ApiException as exc:
        message = f"{action} {name}/{namespace} failed: {exc.status} {exc.reason}"
        if exc.status == 409:
            raise ConflictError(message, name=name, namespace=namespace, status=exc.status) from exc
        raise BackendError(message, name=name, namespace=namespace, status=exc.status) from exc
    except aiohttp.ClientError as exc:
        raise BackendError(f"{action} {name}/{namespace} failed: {exc}", name=name, namespace=namespace) from exc


# ---------------------------------------------------------------------------
# Service <-> ExposureRecord
# ---------------------------------------------------------------------------


def _target_port(value: Any, default: int) -> int | str:
    if value is None:
        return default
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value  # type: ignore[no-any-return]


def record_from_service(svc: Any) -> ExposureRecord:
    """Map a V1Service onto an ExposureRecord."""
    meta = svc.metadata
    spec = svc.spec
    ingress: tuple[IngressAddress, ...] = ()
    if svc.status is not None and svc.status.load_balancer is not None:
        ingress = tuple(
            IngressAddress(ip=item.ip or "", hostname=item.hostname or "")
            for item in svc.status.load_balancer.ingress or []
        )
    ports = tuple(
        PortMapping(
            name=port.name or "",
            port=port.port,
            target_port=_target_port(port.target_port, port.port),
            protocol=TransportProtocol(port.protocol or TransportProtocol.TCP),
            node_port=port.node_port or 0,
        )
        for port in spec.ports or []
    )
    return ExposureRecord(
        name=meta.name,
        namespace=meta.namespace,
        ports=ports,
        selector=dict(spec.selector or {}),
        annotations=dict(meta.annotations or {}),
        labels=dict(meta.labels or {}),
        session_affinity=SessionAffinity(spec.session_affinity or SessionAffinity.NONE),
        resource_version=meta.resource_version or "",
        cluster_ip=spec.cluster_ip or "",
        ingress=ingress,
    )


def service_from_record(record: ExposureRecord) -> Any:
    """Build the V1Service request body for *record*."""
    return k8s_client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=k8s_client.V1ObjectMeta(
            name=record.name,
            namespace=record.namespace,
            annotations=dict(record.annotations) or None,
            labels=dict(record.labels) or None,
            resource_version=record.resource_version or None,
        ),
        spec=k8s_client.V1ServiceSpec(
            type=_LOAD_BALANCER,
            selector=dict(record.selector) or None,
            session_affinity=str(record.session_affinity),
            cluster_ip=record.cluster_ip or None,
            ports=[
                k8s_client.V1ServicePort(
                    name=port.name,
                    port=port.port,
                    target_port=port.target_port,
                    protocol=str(port.protocol),
                    node_port=port.node_port or None,
                )
                for port in record.ports
            ],
        ),
    )


class KubeServiceClient:
    """Reads and writes LoadBalancer services."""

    def __init__(self, api: Any) -> None:
        self._api = api

    async def get(self, name: str, namespace: str) -> ExposureRecord:
        with _translate_errors("get service", name, namespace):
            svc = await self._api.read_namespaced_service(name, namespace)
        return record_from_service(svc)

    async def create(self, obj: ExposureRecord) -> ExposureRecord:
        with _translate_errors("create service", obj.name, obj.namespace):
            svc = await self._api.create_namespaced_service(obj.namespace, service_from_record(obj))
        return record_from_service(svc)

    async def update(self, obj: ExposureRecord) -> ExposureRecord:
        with _translate_errors("update service", obj.name, obj.namespace):
            svc = await self._api.replace_namespaced_service(obj.name, obj.namespace, service_from_record(obj))
        return record_from_service(svc)

    async def delete(self, name: str, namespace: str) -> None:
        with _translate_errors("delete service", name, namespace):
            await self._api.delete_namespaced_service(name, namespace)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


def snapshot_from_endpoints(ep: Any) -> EndpointSnapshot:
    """Map a V1Endpoints onto an EndpointSnapshot."""
    subsets = tuple(
        EndpointSubset(
            addresses=tuple(addr.ip for addr in subset.addresses or []),
            not_ready_addresses=tuple(addr.ip for addr in subset.not_ready_addresses or []),
        )
        for subset in ep.subsets or []
    )
    return EndpointSnapshot(name=ep.metadata.name, namespace=ep.metadata.namespace, subsets=subsets)


class KubeEndpointsClient:
    """Reads the endpoints object backing a service."""

    def __init__(self, api: Any) -> None:
        self._api = api

    async def get(self, name: str, namespace: str) -> EndpointSnapshot:
        with _translate_errors("get endpoints", name, namespace):
            ep = await self._api.read_namespaced_endpoints(name, namespace)
        return snapshot_from_endpoints(ep)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def event_from_core_event(obj: Any, raw: dict[str, Any]) -> ConvergenceEvent:
    """Map a CoreV1Event onto a ConvergenceEvent, keeping the raw payload."""
    involved = obj.involved_object
    timestamp = obj.last_timestamp or obj.event_time or obj.metadata.creation_timestamp
    return ConvergenceEvent(
        reason=obj.reason or "",
        message=obj.message or "",
        namespace=obj.metadata.namespace or "",
        involved_kind=involved.kind or "",
        involved_name=involved.name or "",
        timestamp=timestamp,
        raw=raw,
    )


class KubeEventClient:
    """Watches and clears events about one involved-object kind.

    Failures are reported against *exposure_name*, the object the events
    describe, with the kind kept in the message.
    """

    def __init__(self, api: Any, exposure_name: str = EXPOSURE_NAME) -> None:
        self._api = api
        self._exposure_name = exposure_name

    async def delete_collection(self, namespace: str, involved_kind: str) -> None:
        with _translate_errors(f"delete {involved_kind} events for", self._exposure_name, namespace):
            await self._api.delete_collection_namespaced_event(
                namespace,
                field_selector=f"involvedObject.kind={involved_kind}",
            )
        _log.debug("events cleared", namespace=namespace, involved_kind=involved_kind)

    async def watch(self, namespace: str, involved_kind: str) -> AsyncGenerator[ConvergenceEvent, None]:
        """Yield events as they arrive until the server closes the stream.

        The caller bounds the watch by cancelling it; no server-side timeout
        is requested.
        """
        with _translate_errors(f"watch {involved_kind} events for", self._exposure_name, namespace):
            async with k8s_watch.Watch().stream(
                self._api.list_namespaced_event,
                namespace,
                field_selector=f"involvedObject.kind={involved_kind}",
            ) as stream:
                async for item in stream:
                    obj = item.get("object")
                    if item.get("type") == "ERROR":
                        raw = obj if isinstance(obj, dict) else {}
                        resource = f"{self._exposure_name}/{namespace}"
                        raise BackendError(
                            f"watch {involved_kind} events for {resource} failed: {raw.get('message', raw)}",
                            name=self._exposure_name,
                            namespace=namespace,
                            status=raw.get("code"),
                        )
                    if not isinstance(obj, k8s_client.CoreV1Event):
                        raise MalformedEventError(
                            f"unexpected object on {involved_kind} event stream: {type(obj).__name__}",
                            name=self._exposure_name,
                            namespace=namespace,
                        )
                    yield event_from_core_event(obj, item.get("raw_object") or {})
