"""HTTP reachability probe for derived endpoint URLs."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from lbverify.models.config import ProbeConfig
from lbverify.observability.logging import get_logger

_log = get_logger("verify.probe")


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one GET against a derived URL."""

    url: str
    status_code: int | None = None
    error: str = ""

    @property
    def reachable(self) -> bool:
        # Any HTTP answer proves the load balancer forwards traffic
        return self.status_code is not None


async def probe_urls(
    urls: list[str],
    config: ProbeConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[ProbeResult]:
    """GET every URL once and report what came back, in input order."""
    config = config or ProbeConfig()
    results: list[ProbeResult] = []
    async with httpx.AsyncClient(timeout=config.timeout_seconds, transport=transport) as client:
        for url in urls:
            try:
                response = await client.get(url)
            except httpx.TimeoutException:
                _log.warning("probe_timeout", url=url)
                results.append(ProbeResult(url=url, error="timeout"))
            except httpx.HTTPError as exc:
                _log.warning("probe_http_error", url=url, error=str(exc))
                results.append(ProbeResult(url=url, error=str(exc) or type(exc).__name__))
            else:
                _log.info("probe_response", url=url, status_code=response.status_code)
                results.append(ProbeResult(url=url, status_code=response.status_code))
    return results
