"""Tests for the submit-then-poll client, run against the app in-process."""

import asyncio

import httpx
import pytest

from client import LeadCaptureClient
from config import Settings
from db import InMemoryCompanyStore
from errors import PollCancelledError, PollFailedError, PollTimeoutError, RelayError
from main import create_app
from models import LookupStatus, SubmissionRequest
from services.relay import WebhookRelay

WEBHOOK_URL = "https://example.n8n.cloud/webhook/tech"


class EnrichingStore(InMemoryCompanyStore):
    """Stand-in for the workflow: the document lands after a few lookups."""

    def __init__(self, document, appear_after=3):
        super().__init__()
        self.pending = document
        self.appear_after = appear_after
        self.lookups = 0

    async def find_exact(self, name):
        self.lookups += 1
        if self.pending is not None and self.lookups >= self.appear_after:
            self.add(self.pending)
            self.pending = None
        return await super().find_exact(name)


def lead_client(store, webhook_transport, **kwargs) -> LeadCaptureClient:
    settings = Settings(webhook_url=WEBHOOK_URL, store_backend="memory")
    app = create_app(
        settings=settings,
        store=store,
        relay=WebhookRelay(WEBHOOK_URL, transport=webhook_transport),
    )
    kwargs.setdefault("interval", 0.01)
    return LeadCaptureClient("http://testserver", transport=httpx.ASGITransport(app=app), **kwargs)


class TestSubmitAndWait:
    async def test_end_to_end_substring_match(self, acme_document, lead_payload, ok_webhook, webhook_calls):
        store = EnrichingStore(acme_document, appear_after=3)
        client = lead_client(store, ok_webhook)

        record = await client.submit_and_wait(SubmissionRequest(**lead_payload))

        assert len(webhook_calls) == 1
        assert record.name == "Acme"
        assert record.references == "Ref A"
        assert store.lookups == 3

    async def test_times_out(self, lead_payload, ok_webhook):
        client = lead_client(InMemoryCompanyStore(), ok_webhook, max_attempts=3)
        with pytest.raises(PollTimeoutError) as exc_info:
            await client.submit_and_wait(SubmissionRequest(**lead_payload))

        assert exc_info.value.attempts == 3
        assert "workflow is active" in str(exc_info.value)

    async def test_relay_failure_skips_polling(self, lead_payload):
        store = EnrichingStore({"name": "Acme"})
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        client = lead_client(store, transport)

        with pytest.raises(RelayError):
            await client.submit_and_wait(SubmissionRequest(**lead_payload))
        assert store.lookups == 0

    async def test_rejected_lookup_fails_fast(self, lead_payload):
        lookups = []

        def handler(request):
            if request.url.path == "/api/submit":
                return httpx.Response(200, json={"status": "submitted"})
            lookups.append(request)
            return httpx.Response(400, json={"error": "Company name must not be empty"})

        client = LeadCaptureClient("http://testserver", interval=0.01, transport=httpx.MockTransport(handler))
        with pytest.raises(PollFailedError, match="must not be empty"):
            await client.submit_and_wait(SubmissionRequest(**lead_payload))
        assert len(lookups) == 1

    async def test_clear_cancels_outstanding_poll(self, lead_payload, ok_webhook):
        client = lead_client(InMemoryCompanyStore(), ok_webhook, interval=30.0)
        task = asyncio.create_task(client.submit_and_wait(SubmissionRequest(**lead_payload)))
        await asyncio.sleep(0.05)

        client.clear()
        with pytest.raises(PollCancelledError):
            await asyncio.wait_for(task, timeout=1.0)

    async def test_new_submission_supersedes_previous(self, acme_document, lead_payload, ok_webhook):
        store = InMemoryCompanyStore([{"name": "Initech", "industry": "Software"}])
        client = lead_client(store, ok_webhook, interval=30.0)

        first = asyncio.create_task(client.submit_and_wait(SubmissionRequest(**lead_payload)))
        await asyncio.sleep(0.05)
        second = await client.submit_and_wait(
            SubmissionRequest(**{**lead_payload, "companyName": "initech"})
        )

        assert second.name == "Initech"
        with pytest.raises(PollCancelledError):
            await asyncio.wait_for(first, timeout=1.0)


class TestFetchCompany:
    async def test_maps_statuses(self, store, ok_webhook):
        client = lead_client(store, ok_webhook)
        assert (await client.fetch_company("Acme")).status == LookupStatus.FOUND
        assert (await client.fetch_company("Umbrella")).status == LookupStatus.NOT_FOUND
        assert (await client.fetch_company(" ")).status == LookupStatus.FATAL_ERROR

    async def test_server_error_is_transient(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "boom"}))
        client = LeadCaptureClient("http://testserver", transport=transport)
        outcome = await client.fetch_company("Acme")
        assert outcome.status == LookupStatus.TRANSIENT_ERROR
        assert outcome.message == "boom"

    async def test_unreachable_api_is_transient(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = LeadCaptureClient("http://testserver", transport=httpx.MockTransport(handler))
        outcome = await client.fetch_company("Acme")
        assert outcome.status == LookupStatus.TRANSIENT_ERROR
