"""
Bounded polling for the enriched company record.

The enrichment workflow writes its record some time after the webhook
acknowledges (typically 10-30s), so the submitter polls the lookup on a
fixed interval:

    IDLE -> POLLING -> FOUND | TIMED_OUT | CANCELLED | FAILED

NOT_FOUND and TRANSIENT_ERROR outcomes are retried until max_attempts
lookups have been made; FATAL_ERROR stops immediately. cancel() interrupts
the pending wait or aborts the lookup in flight, and no lookup is issued
after it.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from models import CompanyRecord, LookupOutcome, LookupStatus

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[LookupOutcome]]

DEFAULT_INTERVAL_SECONDS = 2.0
DEFAULT_MAX_ATTEMPTS = 15


class PollState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    FOUND = "found"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_STATES = {PollState.FOUND, PollState.TIMED_OUT, PollState.CANCELLED, PollState.FAILED}


@dataclass
class PollResult:
    state: PollState
    record: Optional[CompanyRecord] = None
    attempts: int = 0
    waited_seconds: float = 0.0
    message: Optional[str] = None


class CompanyPoller:
    """Single-use poller; start a fresh one for every submission."""

    def __init__(
        self,
        fetch: Fetcher,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        abort_on_transient: bool = False,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.fetch = fetch
        self.interval = interval
        self.max_attempts = max_attempts
        self.abort_on_transient = abort_on_transient
        self.state = PollState.IDLE
        self._cancelled = asyncio.Event()

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    def cancel(self) -> None:
        if self.done:
            return
        self._cancelled.set()
        if self.state == PollState.IDLE:
            self.state = PollState.CANCELLED

    async def _wait(self) -> bool:
        """Sleep one interval; True if cancelled meanwhile."""
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=self.interval)
            return True
        except asyncio.TimeoutError:
            return False

    async def _fetch(self, name: str) -> Optional[LookupOutcome]:
        """Run one lookup; None if cancel() won the race and the lookup was aborted."""
        fetch_task = asyncio.ensure_future(self.fetch(name))
        cancel_wait = asyncio.ensure_future(self._cancelled.wait())
        try:
            await asyncio.wait({fetch_task, cancel_wait}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_wait.cancel()
            if not fetch_task.done():
                fetch_task.cancel()
                await asyncio.wait({fetch_task})
        if fetch_task.cancelled():
            return None
        return fetch_task.result()

    async def run(self, name: str) -> PollResult:
        if self.state == PollState.CANCELLED:
            return PollResult(PollState.CANCELLED)
        if self.state != PollState.IDLE:
            raise RuntimeError("Poller has already run; create a new one per submission")

        self.state = PollState.POLLING
        attempts = 0
        waited = 0.0
        try:
            while True:
                attempts += 1
                outcome = await self._fetch(name)
                if outcome is None or self._cancelled.is_set():
                    return self._finish(PollState.CANCELLED, attempts, waited)

                if outcome.status == LookupStatus.FOUND:
                    return self._finish(PollState.FOUND, attempts, waited, record=outcome.record)

                if outcome.status == LookupStatus.FATAL_ERROR or (
                    outcome.status == LookupStatus.TRANSIENT_ERROR and self.abort_on_transient
                ):
                    return self._finish(PollState.FAILED, attempts, waited, message=outcome.message)

                if attempts >= self.max_attempts:
                    return self._finish(PollState.TIMED_OUT, attempts, waited, message=outcome.message)

                logger.debug(
                    "Attempt %d/%d for %r: %s, retrying in %ss",
                    attempts, self.max_attempts, name, outcome.status.value, self.interval,
                )
                if await self._wait():
                    return self._finish(PollState.CANCELLED, attempts, waited)
                waited += self.interval
        except asyncio.CancelledError:
            self.state = PollState.CANCELLED
            raise

    def _finish(self, state: PollState, attempts: int, waited: float, record=None, message=None) -> PollResult:
        self.state = state
        logger.info("Polling ended in %s after %d attempts (%.1fs waiting)", state.value, attempts, waited)
        return PollResult(state, record=record, attempts=attempts, waited_seconds=waited, message=message)
