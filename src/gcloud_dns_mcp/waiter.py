"""
Change waiter — poll a submitted change until Cloud DNS reports it done.

Cloud DNS applies changes asynchronously and offers no push signal, so the
only way to know a mutation has propagated is to poll it:

  PENDING ──(status == "done")──────────────▶ DONE     (return the Change)
     │
     └──(elapsed ≥ timeout, still pending)──▶ TIMEOUT  (ChangeTimeoutError)

Polling uses tenacity's AsyncRetrying with a result predicate: a pending
change is "retried" after a fixed, cooperative asyncio sleep. Errors raised
by the poll itself are not retried — they propagate unmodified.

A timeout is a client-side give-up: the change may still be applied later,
and the caller has to re-query to find out.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable

import structlog
from tenacity import AsyncRetrying, RetryCallState, RetryError, retry_if_result, wait_fixed

from gcloud_dns_mcp.domain.models import Change
from gcloud_dns_mcp.domain.ports import ChangeSource
from gcloud_dns_mcp.errors import ChangeTimeoutError

log = structlog.get_logger()

DEFAULT_TIMEOUT_MS = 300_000
DEFAULT_POLL_INTERVAL_SECONDS = 2.0


class ChangeWaiter:
    """
    Wait for changes to reach `done`, bounded by a timeout.

    `sleep` and `clock` are injectable so tests can drive the loop with a
    simulated clock; in production they are asyncio.sleep and time.monotonic.
    """

    def __init__(
        self,
        source: ChangeSource,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._poll_interval = poll_interval
        self._timeout_ms = timeout_ms
        self._sleep = sleep
        self._clock = clock

    async def wait(self, zone: str, change_id: str, timeout_ms: int | None = None) -> Change:
        """
        Poll `change_id` in `zone` until its status is `done`.

        Returns the completed Change. Raises ChangeTimeoutError carrying the
        change id and elapsed milliseconds once `timeout_ms` has passed.
        """
        limit_ms = self._timeout_ms if timeout_ms is None else timeout_ms
        started = self._clock()

        def elapsed_ms() -> int:
            return int(round((self._clock() - started) * 1000))

        def out_of_time(retry_state: RetryCallState) -> bool:
            return elapsed_ms() >= limit_ms

        def log_pending(retry_state: RetryCallState) -> None:
            log.debug(
                "change.pending",
                zone=zone,
                change_id=change_id,
                attempt=retry_state.attempt_number,
                elapsed_ms=elapsed_ms(),
            )

        retrying = AsyncRetrying(
            retry=retry_if_result(lambda change: not change.is_done),
            wait=wait_fixed(self._poll_interval),
            stop=out_of_time,
            sleep=self._sleep,
            before_sleep=log_pending,
            reraise=True,
        )

        try:
            change: Change = await retrying(self._source.get_change, zone, change_id)
        except RetryError as e:
            waited = elapsed_ms()
            log.warning(
                "change.timeout",
                zone=zone,
                change_id=change_id,
                elapsed_ms=waited,
                timeout_ms=limit_ms,
            )
            raise ChangeTimeoutError(zone, change_id, waited, limit_ms) from e

        log.info("change.done", zone=zone, change_id=change_id, elapsed_ms=elapsed_ms())
        return change
