"""Click commands driving one verification pass against a cluster."""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Awaitable, Callable
from typing import Any

import click

from lbverify.config import load_config
from lbverify.errors import LBVerifyError
from lbverify.harness import LoadBalancerHarness
from lbverify.models.config import LBVerifyConfig, LogConfig
from lbverify.models.exposure import ExposureRequest, PortMapping, TransportProtocol
from lbverify.observability.logging import get_logger, setup_logging
from lbverify.verify.upsert import default_ports


def _parse_pairs(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {value!r}", ctx=ctx, param=param)
        pairs[key] = val
    return pairs


def parse_port(value: str) -> PortMapping:
    """Parse ``NAME:PORT:TARGET[/PROTO]`` into a PortMapping."""
    spec, _, proto = value.partition("/")
    parts = spec.split(":")
    if len(parts) != 3:
        raise ValueError(f"expected NAME:PORT:TARGET[/PROTO], got {value!r}")
    name, port, target = parts
    target_port: int | str = int(target) if target.isdigit() else target
    return PortMapping(
        name=name,
        port=int(port),
        target_port=target_port,
        protocol=TransportProtocol((proto or "TCP").upper()),
    )


def _parse_ports(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> tuple[PortMapping, ...]:
    try:
        return tuple(parse_port(value) for value in values) or default_ports()
    except ValueError as exc:
        raise click.BadParameter(str(exc), ctx=ctx, param=param) from exc


def _request_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    options = [
        click.option("--selector", multiple=True, callback=_parse_pairs, help="Pod selector KEY=VALUE."),
        click.option("--annotation", multiple=True, callback=_parse_pairs, help="Service annotation KEY=VALUE."),
        click.option(
            "--port",
            "ports",
            multiple=True,
            callback=_parse_ports,
            help="Port mapping NAME:PORT:TARGET[/PROTO]. Defaults to http-1:80:8080/TCP.",
        ),
        click.option("--client-ip-affinity", is_flag=True, help="Use ClientIP session affinity."),
        click.option("--probe", is_flag=True, help="GET every derived URL once it resolves."),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _run(config: LBVerifyConfig, action: Callable[[LoadBalancerHarness], Awaitable[None]]) -> None:
    async def _main() -> None:
        harness = await LoadBalancerHarness.from_kubernetes(config)
        async with harness:
            await action(harness)

    try:
        asyncio.run(_main())
    except LBVerifyError as exc:
        get_logger("cli").error("verification failed", error=str(exc), resource=exc.resource)
        raise SystemExit(1) from exc


async def _report_urls(harness: LoadBalancerHarness, probe: bool) -> None:
    urls = await harness.get_load_balancer_urls()
    for url in urls:
        click.echo(url)
    if probe:
        for result in await harness.verify_reachable(urls):
            click.echo(f"{result.url} {result.status_code or result.error}")


@click.group()
@click.option("--namespace", "-n", default=None, help="Namespace of the exposure (LBVERIFY_NAMESPACE).")
@click.option("--app", default=None, help="Application label suffix (LBVERIFY_APP).")
@click.option("--kubeconfig", default=None, type=click.Path(dir_okay=False), help="Kubeconfig file.")
@click.option("--log-level", default=None, type=click.Choice(["debug", "info", "warning", "error"]))
@click.option("--log-format", default=None, type=click.Choice(["json", "console"]))
@click.pass_context
def cli(
    ctx: click.Context,
    namespace: str | None,
    app: str | None,
    kubeconfig: str | None,
    log_level: str | None,
    log_format: str | None,
) -> None:
    """Verify that a LoadBalancer service converges to reachable endpoints."""
    config = load_config()
    overrides = {"namespace": namespace, "app": app, "kubeconfig": kubeconfig}
    config = dataclasses.replace(config, **{key: val for key, val in overrides.items() if val is not None})
    config.log = LogConfig(level=log_level or config.log.level, format=log_format or config.log.format)
    setup_logging(config.log.level, config.log.format)
    ctx.obj = config


@cli.command()
@_request_options
@click.pass_obj
def create(
    config: LBVerifyConfig,
    selector: dict[str, str],
    annotation: dict[str, str],
    ports: tuple[PortMapping, ...],
    client_ip_affinity: bool,
    probe: bool,
) -> None:
    """Create the service and print its load-balancer URLs."""
    request = ExposureRequest(
        ports=ports,
        selector=selector or {"app": config.app},
        annotations=annotation,
        client_ip_affinity=client_ip_affinity,
    )

    async def _action(harness: LoadBalancerHarness) -> None:
        await harness.create_service(request)
        await _report_urls(harness, probe)

    _run(config, _action)


@cli.command()
@_request_options
@click.pass_obj
def update(
    config: LBVerifyConfig,
    selector: dict[str, str],
    annotation: dict[str, str],
    ports: tuple[PortMapping, ...],
    client_ip_affinity: bool,
    probe: bool,
) -> None:
    """Update the service, wait for the load balancer, and print its URLs."""
    request = ExposureRequest(
        ports=ports,
        selector=selector or {"app": config.app},
        annotations=annotation,
        client_ip_affinity=client_ip_affinity,
    )

    async def _action(harness: LoadBalancerHarness) -> None:
        outcome = await harness.update_service(request)
        click.echo(f"convergence: {outcome}")
        await _report_urls(harness, probe)

    _run(config, _action)


@cli.command()
@click.pass_obj
def delete(config: LBVerifyConfig) -> None:
    """Delete the service."""

    async def _action(harness: LoadBalancerHarness) -> None:
        await harness.delete_service()

    _run(config, _action)


@cli.command()
@click.option("--probe", is_flag=True, help="GET every derived URL once it resolves.")
@click.pass_obj
def urls(config: LBVerifyConfig, probe: bool) -> None:
    """Wait for ingress addresses and print the service's URLs."""

    async def _action(harness: LoadBalancerHarness) -> None:
        await _report_urls(harness, probe)

    _run(config, _action)
