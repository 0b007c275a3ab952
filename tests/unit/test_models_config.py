"""Tests for the exposure data model, error types, environment config and logging helpers."""

from __future__ import annotations

import dataclasses

import pytest
import structlog

from lbverify.config import load_config
from lbverify.errors import ConflictError, ProvisioningFailedError, ReachabilityError
from lbverify.models.exposure import (
    EndpointSnapshot,
    ExposureRequest,
    IngressAddress,
    PortMapping,
    SessionAffinity,
    TransportProtocol,
)
from lbverify.observability.logging import exposure_context, setup_logging
from lbverify.verify.upsert import build_record, default_ports
from tests.fakes import make_event

# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


class TestExposureRequest:
    def test_requires_a_port(self) -> None:
        with pytest.raises(ValueError, match="at least one port"):
            ExposureRequest(ports=())

    def test_ports_are_stored_as_tuple(self) -> None:
        request = ExposureRequest(ports=[PortMapping(name="http", port=80, target_port=80)])  # type: ignore[arg-type]
        assert isinstance(request.ports, tuple)

    def test_caller_mappings_are_copied(self) -> None:
        selector = {"app": "nginx"}
        annotations = {"lb.example.com/proxy-protocol": "v2"}
        request = ExposureRequest(ports=default_ports(), selector=selector, annotations=annotations)

        selector["app"] = "other"
        annotations.clear()

        assert request.selector == {"app": "nginx"}
        assert request.annotations == {"lb.example.com/proxy-protocol": "v2"}

    def test_request_is_immutable(self) -> None:
        request = ExposureRequest(ports=default_ports())
        with pytest.raises(dataclasses.FrozenInstanceError):
            request.client_ip_affinity = True  # type: ignore[misc]

    @pytest.mark.parametrize(
        ("flag", "expected"),
        [(True, SessionAffinity.CLIENT_IP), (False, SessionAffinity.NONE)],
    )
    def test_session_affinity(self, flag: bool, expected: SessionAffinity) -> None:
        assert ExposureRequest(ports=default_ports(), client_ip_affinity=flag).session_affinity is expected


class TestDefaults:
    def test_default_port_mapping(self) -> None:
        assert default_ports() == (
            PortMapping(name="http-1", port=80, target_port=8080, protocol=TransportProtocol.TCP),
        )

    def test_build_record_never_takes_backend_fields_from_request(self) -> None:
        request = ExposureRequest(ports=default_ports(), selector={"app": "web"}, annotations={"a": "b"})
        record = build_record(request, "demo", "web")
        assert record.name == "test-server"
        assert record.namespace == "demo"
        assert record.labels == {"app": "test-server-web"}
        assert record.resource_version == ""
        assert record.cluster_ip == ""

    def test_ingress_address_prefers_ip(self) -> None:
        assert IngressAddress(ip="203.0.113.9", hostname="lb.example.com").address == "203.0.113.9"
        assert IngressAddress(hostname="lb.example.com").address == "lb.example.com"

    def test_empty_endpoints_have_no_live_address(self) -> None:
        assert not EndpointSnapshot(name="test-server", namespace="default").has_live_address


class TestErrors:
    def test_conflict_is_a_backend_error_with_status(self) -> None:
        err = ConflictError("stale", name="test-server", namespace="default", status=409)
        assert err.status == 409
        assert err.resource == "test-server/default"

    def test_provisioning_failure_payload_is_tab_indented(self) -> None:
        err = ProvisioningFailedError(make_event("CreatingLoadBalancerFailed"))
        assert str(err).startswith("Received failure: {\n\t")
        assert err.namespace == "default"

    def test_reachability_lists_failures(self) -> None:
        err = ReachabilityError("test-server", "default", {"http://203.0.113.1:80": "timeout"})
        assert "http://203.0.113.1:80 (timeout)" in str(err)


# ---------------------------------------------------------------------------
# Environment config
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for key in (
            "LBVERIFY_NAMESPACE",
            "LBVERIFY_LOG_LEVEL",
            "LBVERIFY_RESOLVER_TIMEOUT",
            "LBVERIFY_CONFLICT_RETRY_STEPS",
        ):
            monkeypatch.delenv(key, raising=False)
        config = load_config()
        assert config.namespace == "default"
        assert config.conflict_retry.steps == 10
        assert config.readiness.interval_seconds == 5.0
        assert config.convergence.timeout_seconds == 30.0
        assert config.convergence.success_reason == "EnsuredLoadBalancer"
        assert config.convergence.failure_reason == "CreatingLoadBalancerFailed"
        assert config.resolver.interval_seconds == 2.0
        assert config.resolver.timeout_seconds == 1200.0
        assert config.log.level == "info"

    def test_overrides_and_clamping(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LBVERIFY_NAMESPACE", "lb-e2e")
        monkeypatch.setenv("LBVERIFY_CONFLICT_RETRY_STEPS", "500")
        monkeypatch.setenv("LBVERIFY_RESOLVER_TIMEOUT", "90")
        monkeypatch.setenv("LBVERIFY_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("LBVERIFY_PROBE_REQUIRE_ALL", "no")
        config = load_config()
        assert config.namespace == "lb-e2e"
        assert config.conflict_retry.steps == 50
        assert config.resolver.timeout_seconds == 90.0
        assert config.log.level == "debug"
        assert config.probe.require_all is False

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("LBVERIFY_NAMESPACE", "Not_A_Namespace"),
            ("LBVERIFY_LOG_LEVEL", "verbose"),
            ("LBVERIFY_LOG_FORMAT", "xml"),
        ],
    )
    def test_invalid_values_raise(self, monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
        monkeypatch.setenv(key, value)
        with pytest.raises(ValueError):
            load_config()


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestLogging:
    def test_unknown_format_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="log format"):
            setup_logging("info", "xml")

    def test_exposure_context_binds_identity(self) -> None:
        with exposure_context("test-server", "demo"):
            assert structlog.contextvars.get_contextvars() == {"exposure": "test-server", "namespace": "demo"}
        assert structlog.contextvars.get_contextvars() == {}
