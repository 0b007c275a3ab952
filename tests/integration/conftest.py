"""Shared fixtures for lbverify integration tests.

Wires the harness to an in-memory cluster with millisecond-scale retry,
poll and watch budgets so full create/update/resolve flows run without a
real Kubernetes API.
"""

from __future__ import annotations

import pytest

from lbverify.harness import LoadBalancerHarness
from lbverify.models.config import (
    ConflictRetryConfig,
    ConvergenceConfig,
    LBVerifyConfig,
    ReadinessConfig,
    ResolverConfig,
)
from lbverify.models.exposure import ExposureRequest, PortMapping
from tests.fakes import FakeCluster


@pytest.fixture()
def cluster() -> FakeCluster:
    """Empty fake cluster with one ready endpoint address."""
    return FakeCluster()


@pytest.fixture()
def fast_config() -> LBVerifyConfig:
    """LBVerifyConfig with budgets small enough for unit-speed tests."""
    return LBVerifyConfig(
        namespace="default",
        app="nginx",
        conflict_retry=ConflictRetryConfig(steps=4, initial_delay=0.001, factor=2.0, max_delay=0.004),
        readiness=ReadinessConfig(max_attempts=5, interval_seconds=0.005),
        convergence=ConvergenceConfig(timeout_seconds=0.2),
        resolver=ResolverConfig(interval_seconds=0.01, timeout_seconds=0.5),
    )


@pytest.fixture()
def harness(cluster: FakeCluster, fast_config: LBVerifyConfig) -> LoadBalancerHarness:
    """Harness wired to the fake cluster."""
    return LoadBalancerHarness(cluster.services, cluster.endpoints, cluster.events, config=fast_config)


@pytest.fixture()
def request_v2() -> ExposureRequest:
    """A second revision of the exposure: extra port, new annotation, sticky sessions."""
    return ExposureRequest(
        ports=(
            PortMapping(name="http-1", port=80, target_port=8080),
            PortMapping(name="http-2", port=8989, target_port=9090),
        ),
        selector={"app": "nginx", "track": "stable"},
        annotations={"service.beta.kubernetes.io/load-balancer-protocol": "tcp"},
        client_ip_affinity=True,
    )
