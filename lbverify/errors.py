"""Exception hierarchy for lbverify.

Every error carries the name and namespace of the exposure it concerns so
that a failure can be diagnosed without re-querying the cluster.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lbverify.models.exposure import ConvergenceEvent


class LBVerifyError(Exception):
    """Base class for every error raised by lbverify."""

    def __init__(self, message: str, name: str = "", namespace: str = "") -> None:
        super().__init__(message)
        self.name = name
        self.namespace = namespace

    @property
    def resource(self) -> str:
        return f"{self.name}/{self.namespace}"


class BackendError(LBVerifyError):
    """The cluster API rejected a request or could not be reached."""

    def __init__(self, message: str, name: str = "", namespace: str = "", status: int | None = None) -> None:
        super().__init__(message, name=name, namespace=namespace)
        self.status = status


class ConflictError(BackendError):
    """A write carried a stale resource version."""


class ConflictExhaustedError(LBVerifyError):
    """Every attempt of a read-modify-write cycle hit a conflict."""

    def __init__(self, name: str, namespace: str, attempts: int) -> None:
        super().__init__(
            f"update of {name}/{namespace} still conflicting after {attempts} attempts",
            name=name,
            namespace=namespace,
        )
        self.attempts = attempts


class EndpointsNotReadyError(LBVerifyError):
    """No live endpoint address appeared within the attempt budget."""

    def __init__(self, name: str, namespace: str, attempts: int) -> None:
        super().__init__(
            f"no ready endpoint addresses for {name}/{namespace} after {attempts} attempts",
            name=name,
            namespace=namespace,
        )
        self.attempts = attempts


class ProvisioningFailedError(LBVerifyError):
    """The backend reported that provisioning the load balancer failed."""

    def __init__(self, event: ConvergenceEvent) -> None:
        self.payload = json.dumps(event.raw, indent="\t", sort_keys=True, default=str)
        super().__init__(
            f"Received failure: {self.payload}",
            name=event.involved_name,
            namespace=event.namespace,
        )
        self.event = event


class MalformedEventError(LBVerifyError):
    """The event stream yielded an object that is not an event."""


class WatchInProgressError(LBVerifyError):
    """A convergence watch is already running for this exposure."""


class ExternalAddressTimeoutError(LBVerifyError):
    """The load balancer never reported an ingress address."""

    def __init__(self, name: str, namespace: str, timeout_seconds: float) -> None:
        super().__init__(
            f"failed to get Status.LoadBalancer.Ingress for service {name}/{namespace} "
            f"within {timeout_seconds:g}s",
            name=name,
            namespace=namespace,
        )
        self.timeout_seconds = timeout_seconds


class URLDerivationError(LBVerifyError):
    """A derived endpoint is not a valid URL."""


class ReachabilityError(LBVerifyError):
    """One or more derived URLs did not answer."""

    def __init__(self, name: str, namespace: str, failures: dict[str, str]) -> None:
        listing = ", ".join(f"{url} ({reason})" for url, reason in failures.items())
        super().__init__(f"unreachable endpoints for {name}/{namespace}: {listing}", name=name, namespace=namespace)
        self.failures = failures
