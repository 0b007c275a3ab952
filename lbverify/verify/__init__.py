"""Convergence verification for load-balanced service exposures.

Submodules
----------
upsert      -- UpsertCoordinator: create / conflict-retried update / delete.
readiness   -- ReadinessPoller: wait for a ready endpoint address.
convergence -- ConvergenceWatcher: time-bounded watch of provisioning events.
resolver    -- AddressResolver: poll until an ingress address is published.
urls        -- derive_urls: ports x ingress addresses as http URLs.
probe       -- probe_urls: HTTP reachability check of derived URLs.
"""

from lbverify.verify.convergence import ConvergenceWatcher
from lbverify.verify.probe import ProbeResult, probe_urls
from lbverify.verify.readiness import ReadinessPoller
from lbverify.verify.resolver import AddressResolver
from lbverify.verify.retry import retry_on_conflict
from lbverify.verify.upsert import UpsertCoordinator, build_record, default_ports
from lbverify.verify.urls import derive_urls

__all__ = [
    "AddressResolver",
    "ConvergenceWatcher",
    "ProbeResult",
    "ReadinessPoller",
    "UpsertCoordinator",
    "build_record",
    "default_ports",
    "derive_urls",
    "probe_urls",
    "retry_on_conflict",
]
