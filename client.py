"""
HTTP client for the lead lookup API.

Submits a lead, then polls /api/company/{name} until the enrichment workflow
has written the record. Only one poll is outstanding per client: a new
submission supersedes whatever the previous one was waiting for.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from errors import (
    PollCancelledError,
    PollFailedError,
    PollTimeoutError,
    RelayError,
)
from models import CompanyRecord, LookupOutcome, SubmissionAck, SubmissionRequest
from services.poller import (
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    CompanyPoller,
    PollState,
)

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or body)
    return str(body)


class LeadCaptureClient:
    def __init__(
        self,
        base_url: str,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.interval = interval
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.transport = transport
        self._active: Optional[CompanyPoller] = None
        self._generation = 0

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def submit(self, request: SubmissionRequest) -> SubmissionAck:
        async with self._client() as client:
            try:
                response = await client.post("/api/submit", json=request.model_dump())
            except httpx.RequestError as e:
                raise RelayError(f"Failed to reach lead API: {e}") from e
        if response.status_code != 200:
            raise RelayError(_error_message(response), status_code=response.status_code)
        return SubmissionAck(**response.json())

    async def fetch_company(self, name: str) -> LookupOutcome:
        path = f"/api/company/{quote(name, safe='')}"
        async with self._client() as client:
            try:
                response = await client.get(path)
            except httpx.RequestError as e:
                return LookupOutcome.transient(f"Failed to reach lead API: {e}")

        if response.status_code == 200:
            return LookupOutcome.found(CompanyRecord(**response.json()))
        if response.status_code == 404:
            return LookupOutcome.not_found()
        if response.status_code == 400:
            return LookupOutcome.fatal(_error_message(response))
        return LookupOutcome.transient(_error_message(response))

    def clear(self) -> None:
        """Abandon the outstanding submission, if any."""
        self._generation += 1
        if self._active is not None:
            self._active.cancel()
            self._active = None

    async def submit_and_wait(self, request: SubmissionRequest) -> CompanyRecord:
        """
        Submit the lead and wait for its enriched company record.

        Raises RelayError if the submission fails, PollTimeoutError if no
        record shows up within max_attempts lookups, PollCancelledError if a
        newer submission or clear() superseded this one and PollFailedError
        if the API rejected the lookup outright.
        """
        self.clear()
        generation = self._generation

        await self.submit(request)
        if generation != self._generation:
            raise PollCancelledError("Superseded by a newer submission")

        poller = CompanyPoller(self.fetch_company, interval=self.interval, max_attempts=self.max_attempts)
        self._active = poller
        try:
            result = await poller.run(request.companyName)
        finally:
            if self._active is poller:
                self._active = None

        if result.state == PollState.FOUND:
            return result.record
        if result.state == PollState.TIMED_OUT:
            raise PollTimeoutError(request.companyName, result.attempts, result.waited_seconds)
        if result.state == PollState.FAILED:
            raise PollFailedError(result.message or "Lookup failed")
        raise PollCancelledError("Superseded by a newer submission")
