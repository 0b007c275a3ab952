"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

from lbverify.models.exposure import EXPOSURE_KIND, LoadBalancerEventReason


@dataclass
class ConflictRetryConfig:
    """Backoff for read-modify-write cycles that hit a stale resource version."""

    steps: int = 10
    initial_delay: float = 0.05
    factor: float = 2.0
    max_delay: float = 1.0


@dataclass
class ReadinessConfig:
    """Endpoint readiness polling."""

    max_attempts: int = 50
    interval_seconds: float = 5.0


@dataclass
class ConvergenceConfig:
    """Load-balancer event watch."""

    timeout_seconds: float = 30.0
    involved_kind: str = EXPOSURE_KIND
    success_reason: str = LoadBalancerEventReason.ENSURED
    failure_reason: str = LoadBalancerEventReason.CREATE_FAILED


@dataclass
class ResolverConfig:
    """External address polling."""

    interval_seconds: float = 2.0
    timeout_seconds: float = 1200.0


@dataclass
class ProbeConfig:
    """HTTP reachability probe of derived URLs."""

    timeout_seconds: float = 10.0
    require_all: bool = True


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "json"


@dataclass
class LBVerifyConfig:
    """Top-level lbverify configuration."""

    namespace: str = "default"
    app: str = "lbverify"
    kubeconfig: str = ""
    conflict_retry: ConflictRetryConfig = field(default_factory=ConflictRetryConfig)
    readiness: ReadinessConfig = field(default_factory=ReadinessConfig)
    convergence: ConvergenceConfig = field(default_factory=ConvergenceConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    log: LogConfig = field(default_factory=LogConfig)
