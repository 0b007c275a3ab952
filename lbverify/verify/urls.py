"""Endpoint URL derivation from a resolved exposure."""

from __future__ import annotations

import httpx

from lbverify.errors import URLDerivationError
from lbverify.models.exposure import ExposureRecord

_SCHEME = "http"


def routable_ports(record: ExposureRecord) -> list[int]:
    """Exposed ports the backend has assigned a node port to, in spec order."""
    return [mapping.port for mapping in record.ports if mapping.node_port > 0]


def ingress_addresses(record: ExposureRecord) -> list[str]:
    """Ingress addresses in status order, skipping entries with neither IP nor hostname."""
    return [item.address for item in record.ingress if item.address]


def _host(address: str) -> str:
    # IPv6 literals must be bracketed in the authority component
    if ":" in address and not address.startswith("["):
        return f"[{address}]"
    return address


def derive_urls(record: ExposureRecord) -> list[str]:
    """Cross every routable port with every ingress address.

    Ports form the outer loop and addresses the inner loop, so the result is
    stable for stable input ordering.

    Raises:
        URLDerivationError: a combination does not form a valid URL.
    """
    urls: list[str] = []
    addresses = ingress_addresses(record)
    for port in routable_ports(record):
        for address in addresses:
            url = f"{_SCHEME}://{_host(address)}:{port}"
            try:
                httpx.URL(url)
            except httpx.InvalidURL as exc:
                raise URLDerivationError(
                    f"invalid endpoint URL {url!r}: {exc}",
                    name=record.name,
                    namespace=record.namespace,
                ) from exc
            urls.append(url)
    return urls
