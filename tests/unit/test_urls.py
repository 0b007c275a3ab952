"""Tests for derive_urls and its helpers."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lbverify.errors import URLDerivationError
from lbverify.models.exposure import ExposureRecord, IngressAddress, PortMapping
from lbverify.verify.urls import derive_urls, ingress_addresses, routable_ports


def _make_record(ports: list[PortMapping], ingress: list[IngressAddress]) -> ExposureRecord:
    return ExposureRecord(name="test-server", namespace="default", ports=tuple(ports), ingress=tuple(ingress))


def _port(port: int, node_port: int = 31000, name: str = "") -> PortMapping:
    return PortMapping(name=name or f"p{port}", port=port, target_port=8080, node_port=node_port)


class TestDeriveUrls:
    def test_two_addresses_one_port(self) -> None:
        record = _make_record([_port(80)], [IngressAddress(ip="A"), IngressAddress(ip="B")])
        assert derive_urls(record) == ["http://A:80", "http://B:80"]

    def test_ports_are_the_outer_loop(self) -> None:
        record = _make_record(
            [_port(80), _port(443, node_port=31443)],
            [IngressAddress(ip="203.0.113.1"), IngressAddress(ip="203.0.113.2")],
        )
        assert derive_urls(record) == [
            "http://203.0.113.1:80",
            "http://203.0.113.2:80",
            "http://203.0.113.1:443",
            "http://203.0.113.2:443",
        ]

    def test_ports_without_node_port_are_excluded(self) -> None:
        record = _make_record([_port(80, node_port=0), _port(8080)], [IngressAddress(ip="203.0.113.1")])
        assert derive_urls(record) == ["http://203.0.113.1:8080"]

    def test_no_qualifying_ports_yields_empty_list(self) -> None:
        record = _make_record([_port(80, node_port=0)], [IngressAddress(ip="203.0.113.1")])
        assert derive_urls(record) == []

    def test_hostname_ingress_is_used_when_no_ip(self) -> None:
        record = _make_record([_port(80)], [IngressAddress(hostname="a1b2.elb.example.com")])
        assert derive_urls(record) == ["http://a1b2.elb.example.com:80"]

    def test_ipv6_address_is_bracketed(self) -> None:
        record = _make_record([_port(80)], [IngressAddress(ip="2001:db8::10")])
        assert derive_urls(record) == ["http://[2001:db8::10]:80"]

    def test_empty_ingress_entries_are_skipped(self) -> None:
        record = _make_record([_port(80)], [IngressAddress(), IngressAddress(ip="203.0.113.1")])
        assert ingress_addresses(record) == ["203.0.113.1"]

    def test_invalid_url_raises(self) -> None:
        record = _make_record([_port(80)], [IngressAddress(hostname="bad\nhost")])
        with pytest.raises(URLDerivationError) as exc_info:
            derive_urls(record)
        assert exc_info.value.resource == "test-server/default"

    def test_routable_ports_keep_spec_order(self) -> None:
        record = _make_record([_port(9000), _port(80, node_port=0), _port(81)], [])
        assert routable_ports(record) == [9000, 81]


_octet = st.integers(min_value=0, max_value=255)
_ipv4 = st.tuples(_octet, _octet, _octet, _octet).map(lambda parts: ".".join(map(str, parts)))


@given(
    ports=st.lists(st.integers(min_value=1, max_value=65535), max_size=5),
    ips=st.lists(_ipv4, max_size=5),
)
def test_cross_product_size_and_order(ports: list[int], ips: list[str]) -> None:
    record = _make_record([_port(port) for port in ports], [IngressAddress(ip=ip) for ip in ips])
    urls = derive_urls(record)
    assert len(urls) == len(ports) * len(ips)
    assert urls == [f"http://{ip}:{port}" for port in ports for ip in ips]
