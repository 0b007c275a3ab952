"""Event-driven convergence watch for load-balancer provisioning.

The service controller reports provisioning progress through events on the
service. This module opens one time-bounded watch and classifies what it
sees:

    WATCHING -> SUCCEEDED   success reason observed
    WATCHING -> FAILED      failure reason observed (ProvisioningFailedError)
    WATCHING -> TIMED_OUT   stream closed or deadline hit with neither

TIMED_OUT is returned, not raised. Events can be dropped in transit, so the
absence of a success event is left for address resolution to settle.
"""

from __future__ import annotations

import asyncio
from contextlib import aclosing

from lbverify.client import EventStream
from lbverify.errors import MalformedEventError, ProvisioningFailedError, WatchInProgressError
from lbverify.models.config import ConvergenceConfig
from lbverify.models.exposure import EXPOSURE_NAME, ConvergenceEvent, ConvergenceOutcome
from lbverify.observability.logging import get_logger

_log = get_logger("verify.convergence")


class ConvergenceWatcher:
    """Watches provisioning events for exposures of one kind in a namespace.

    Errors are reported against *name*, the exposure being provisioned.
    """

    def __init__(
        self,
        events: EventStream[ConvergenceEvent],
        namespace: str,
        config: ConvergenceConfig | None = None,
        name: str = EXPOSURE_NAME,
    ) -> None:
        self._events = events
        self._name = name
        self._namespace = namespace
        self._config = config or ConvergenceConfig()
        self._watching = False
        self.outcome: ConvergenceOutcome | None = None

    async def clear_history(self) -> None:
        """Delete accumulated events so a later watch only sees new ones."""
        await self._events.delete_collection(self._namespace, self._config.involved_kind)
        _log.info("event_history_cleared", namespace=self._namespace, involved_kind=self._config.involved_kind)

    async def wait_converged(self) -> ConvergenceOutcome:
        """Watch until a terminal event arrives, the stream ends, or the deadline passes.

        Returns:
            SUCCEEDED or TIMED_OUT.

        Raises:
            ProvisioningFailedError: a failure event was observed.
            MalformedEventError: the stream yielded something other than an event.
            WatchInProgressError: another watch is already running on this watcher.
        """
        if self._watching:
            raise WatchInProgressError(
                f"{self._config.involved_kind} convergence watch already in progress",
                name=self._name,
                namespace=self._namespace,
            )
        self._watching = True
        self.outcome = None
        try:
            self.outcome = await self._watch()
            return self.outcome
        except ProvisioningFailedError:
            self.outcome = ConvergenceOutcome.FAILED
            raise
        finally:
            self._watching = False

    async def _watch(self) -> ConvergenceOutcome:
        deadline = asyncio.timeout(self._config.timeout_seconds)
        stream = self._events.watch(self._namespace, self._config.involved_kind)
        try:
            async with deadline, aclosing(stream):
                async for event in stream:
                    if not isinstance(event, ConvergenceEvent):
                        raise MalformedEventError(
                            f"unexpected object on {self._config.involved_kind} event stream: {type(event).__name__}",
                            name=self._name,
                            namespace=self._namespace,
                        )
                    if event.reason == self._config.failure_reason:
                        _log.warning(
                            "load_balancer_failed",
                            name=event.involved_name,
                            namespace=self._namespace,
                            message=event.message,
                        )
                        raise ProvisioningFailedError(event)
                    if event.reason == self._config.success_reason:
                        _log.info("load_balancer_ensured", name=event.involved_name, namespace=self._namespace)
                        return ConvergenceOutcome.SUCCEEDED
                    _log.debug("event_ignored", reason=event.reason, name=event.involved_name)
        except TimeoutError:
            if not deadline.expired():
                raise
            _log.info(
                "convergence_watch_deadline",
                namespace=self._namespace,
                timeout_seconds=self._config.timeout_seconds,
            )
            return ConvergenceOutcome.TIMED_OUT

        _log.info("convergence_watch_closed", namespace=self._namespace)
        return ConvergenceOutcome.TIMED_OUT
