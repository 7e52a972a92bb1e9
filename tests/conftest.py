"""Shared test fixtures."""

import os
import sys
from pathlib import Path

import httpx
import pytest


def pytest_configure():
    # Ensure project root is on sys.path for flat imports like 'services.matcher'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    os.environ.setdefault("STORE_BACKEND", "memory")


@pytest.fixture
def acme_document() -> dict:
    return {
        "_id": "65f0c0ffee",
        "name": "Acme",
        "foundedYear": 1999,
        "industry": "Manufacturing",
        "location": "Springfield",
        "size": "51-200",
        "email": "",
        "phone": None,
        "website": "acme.com",
        "linkedin": "https://linkedin.com/company/acme",
        "rating": 4.2,
        "reviewSource": "Glassdoor",
        "pros": ["Good pay", None, ["Flexible hours"]],
        "cons": [],
        "services": ["Anvils", "Rockets"],
        "topReferences": [],
        "references": ["Ref A", None, ""],
        "timestamp": "2025-01-01T00:00:00Z",
        "embedding": [0.1, 0.2, 0.3],
        "summary": "Makes everything.",
    }


@pytest.fixture
def store(acme_document):
    from db import InMemoryCompanyStore

    return InMemoryCompanyStore([
        acme_document,
        {"name": "Globex Corporation", "industry": "Energy"},
        {"name": "Initech", "industry": "Software"},
    ])


@pytest.fixture
def lead_payload() -> dict:
    return {
        "name": "J Doe",
        "email": "j@x.com",
        "companyName": "Acme Inc",
        "companyUrl": "acme.com",
    }


@pytest.fixture
def webhook_calls():
    return []


@pytest.fixture
def ok_webhook(webhook_calls):
    """Webhook transport that records each call and acknowledges it."""

    def handler(request: httpx.Request) -> httpx.Response:
        webhook_calls.append(request)
        return httpx.Response(200, json={"message": "Workflow was started"})

    return httpx.MockTransport(handler)
