"""
Bounded polling.

One Poller run probes on a fixed interval until ``done`` holds for the
latest snapshot or the deadline passes. There is no backoff; read errors
during a probe count as "not yet".
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Generic, Optional, TypeVar

from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from ...config import Settings
from ...core.logging import get_logger
from ...exceptions import WaitTimeoutError

logger = get_logger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS = (ApiException, HTTPError)


@dataclass
class Poller(Generic[T]):
    interval: float
    timeout: float
    description: str = "condition"
    clock: Callable[[], float] = field(default=time.monotonic)
    sleep: Callable[[float], Any] = field(default=time.sleep)

    def run(
        self,
        probe: Callable[[], T],
        done: Callable[[T], bool],
        on_tick: Optional[Callable[[T], None]] = None,
    ) -> T:
        """
        Probe until ``done(snapshot)`` or timeout.

        Returns the snapshot that satisfied ``done``. Raises WaitTimeoutError
        carrying the last successfully probed snapshot (None if no probe
        succeeded) once the deadline has passed.
        """
        deadline = self.clock() + self.timeout
        last: Optional[T] = None
        ticks = 0

        while True:
            remaining = deadline - self.clock()
            if remaining <= 0:
                logger.warning("polling.timeout", target=self.description, timeout=self.timeout, ticks=ticks)
                raise WaitTimeoutError(
                    f"timed out after {self.timeout:g}s waiting for {self.description}",
                    last_snapshot=last,
                    details={"timeout": self.timeout, "ticks": ticks},
                )
            # the first probe also waits one interval; callers just issued a write
            self.sleep(min(self.interval, remaining))
            if self.clock() >= deadline:
                continue
            ticks += 1
            try:
                snapshot = probe()
            except TRANSIENT_ERRORS as exc:
                logger.warning("polling.probe_error", target=self.description, error=str(exc))
                continue

            last = snapshot
            if on_tick is not None:
                on_tick(snapshot)
            if done(snapshot):
                logger.debug("polling.done", target=self.description, ticks=ticks)
                return snapshot


def make_poller(settings: Settings, timeout: float, description: str) -> Poller:
    return Poller(interval=settings.poll_interval_seconds, timeout=timeout, description=description)


def wait_poller(
    settings: Settings,
    timeout: Optional[float],
    default_timeout: float,
    description: str,
    poller: Optional[Poller] = None,
) -> Poller:
    """
    Poller for one wait. An explicit ``timeout`` bounds the wait even when a
    preconfigured ``poller`` is supplied; otherwise the poller's own timeout,
    or ``default_timeout``, applies.
    """
    if poller is not None:
        return poller if timeout is None else replace(poller, timeout=timeout)
    return make_poller(settings, timeout if timeout is not None else default_timeout, description)
