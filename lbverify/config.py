"""Configuration loading from environment variables."""

from __future__ import annotations

import os
import re

from lbverify.models.config import (
    ConflictRetryConfig,
    ConvergenceConfig,
    LBVerifyConfig,
    LogConfig,
    ProbeConfig,
    ReadinessConfig,
    ResolverConfig,
)

# RFC 1123 label, the shape Kubernetes requires for namespace names
_RE_NAMESPACE = re.compile(r"^[a-z0-9]([-a-z0-9]{0,61}[a-z0-9])?$")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"LBVERIFY_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    return val


def _validate_namespace(value: str) -> str:
    if not _RE_NAMESPACE.match(value):
        raise ValueError(f"Invalid namespace: {value!r}")
    return value


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_log_format(value: str) -> str:
    if value.lower() not in ("json", "console"):
        raise ValueError(f"Invalid log format: {value}. Must be json or console")
    return value.lower()


def load_config() -> LBVerifyConfig:
    """Load configuration from LBVERIFY_* environment variables."""
    convergence_defaults = ConvergenceConfig()
    return LBVerifyConfig(
        namespace=_validate_namespace(_env("NAMESPACE", "default")),
        app=_env("APP", "lbverify"),
        kubeconfig=_env("KUBECONFIG", ""),
        conflict_retry=ConflictRetryConfig(
            steps=_env_int("CONFLICT_RETRY_STEPS", 10, min_val=1, max_val=50),
            initial_delay=_env_float("CONFLICT_RETRY_INITIAL_DELAY", 0.05, min_val=0.0),
            factor=_env_float("CONFLICT_RETRY_FACTOR", 2.0, min_val=1.0),
            max_delay=_env_float("CONFLICT_RETRY_MAX_DELAY", 1.0, min_val=0.0),
        ),
        readiness=ReadinessConfig(
            max_attempts=_env_int("READINESS_MAX_ATTEMPTS", 50, min_val=1),
            interval_seconds=_env_float("READINESS_INTERVAL", 5.0, min_val=0.0),
        ),
        convergence=ConvergenceConfig(
            timeout_seconds=_env_float("CONVERGENCE_TIMEOUT", 30.0, min_val=0.0),
            involved_kind=_env("CONVERGENCE_INVOLVED_KIND", convergence_defaults.involved_kind),
            success_reason=_env("CONVERGENCE_SUCCESS_REASON", convergence_defaults.success_reason),
            failure_reason=_env("CONVERGENCE_FAILURE_REASON", convergence_defaults.failure_reason),
        ),
        resolver=ResolverConfig(
            interval_seconds=_env_float("RESOLVER_INTERVAL", 2.0, min_val=0.0),
            timeout_seconds=_env_float("RESOLVER_TIMEOUT", 1200.0, min_val=0.0),
        ),
        probe=ProbeConfig(
            timeout_seconds=_env_float("PROBE_TIMEOUT", 10.0, min_val=0.1),
            require_all=_env_bool("PROBE_REQUIRE_ALL", True),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
            format=_validate_log_format(_env("LOG_FORMAT", "json")),
        ),
    )
