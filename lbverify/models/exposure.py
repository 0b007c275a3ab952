"""Service exposure data structures and enumerations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

# Every exposure is created and looked up under this name in its namespace.
EXPOSURE_NAME = "test-server"
EXPOSURE_KIND = "Service"


class TransportProtocol(StrEnum):
    """Transport protocol of a port mapping."""

    TCP = "TCP"
    UDP = "UDP"
    SCTP = "SCTP"


class SessionAffinity(StrEnum):
    """Load-balancer session affinity."""

    NONE = "None"
    CLIENT_IP = "ClientIP"


class LoadBalancerEventReason(StrEnum):
    """Event reasons emitted by the cloud provider's service controller."""

    ENSURED = "EnsuredLoadBalancer"
    CREATE_FAILED = "CreatingLoadBalancerFailed"


class ConvergenceOutcome(StrEnum):
    """Terminal states of a convergence watch."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class PortMapping:
    """A single exposed port.

    ``node_port`` is assigned by the backend; 0 means unassigned.
    """

    name: str
    port: int
    target_port: int | str
    protocol: TransportProtocol = TransportProtocol.TCP
    node_port: int = 0


@dataclass(frozen=True)
class ExposureRequest:
    """Desired state for one create or update call."""

    ports: tuple[PortMapping, ...]
    selector: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    client_ip_affinity: bool = False

    def __post_init__(self) -> None:
        if not self.ports:
            raise ValueError("ExposureRequest requires at least one port mapping")
        # Store private copies so later changes to the caller's objects do not leak in
        object.__setattr__(self, "ports", tuple(self.ports))
        object.__setattr__(self, "selector", dict(self.selector))
        object.__setattr__(self, "annotations", dict(self.annotations))

    @property
    def session_affinity(self) -> SessionAffinity:
        return SessionAffinity.CLIENT_IP if self.client_ip_affinity else SessionAffinity.NONE


@dataclass(frozen=True)
class IngressAddress:
    """An externally reachable address assigned by the load balancer."""

    ip: str = ""
    hostname: str = ""

    @property
    def address(self) -> str:
        return self.ip or self.hostname


@dataclass(frozen=True)
class ExposureRecord:
    """Backend representation of an exposure.

    ``resource_version`` and ``cluster_ip`` are backend-owned and must be
    echoed back unchanged on every update.
    """

    name: str
    namespace: str
    ports: tuple[PortMapping, ...] = ()
    selector: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    session_affinity: SessionAffinity = SessionAffinity.NONE
    resource_version: str = ""
    cluster_ip: str = ""
    ingress: tuple[IngressAddress, ...] = ()


@dataclass(frozen=True)
class EndpointSubset:
    """One subset of an endpoints object."""

    addresses: tuple[str, ...] = ()
    not_ready_addresses: tuple[str, ...] = ()


@dataclass(frozen=True)
class EndpointSnapshot:
    """Live set of addresses backing an exposure."""

    name: str
    namespace: str
    subsets: tuple[EndpointSubset, ...] = ()

    @property
    def has_live_address(self) -> bool:
        return any(subset.addresses for subset in self.subsets)


@dataclass(frozen=True)
class ConvergenceEvent:
    """A provisioning event tied to an exposure.

    ``raw`` holds the full event payload as returned by the backend and is
    what gets surfaced when provisioning fails.
    """

    reason: str
    namespace: str
    involved_kind: str
    involved_name: str
    message: str = ""
    timestamp: datetime | None = None
    raw: dict[str, object] = field(default_factory=dict)
