"""Shared fixtures: in-memory stand-ins for Gemini, the image fetcher and the blob store.

No test talks to Gemini, Firebase or the network.
"""

import json

import pytest
from fastapi.testclient import TestClient

from scamcheck.config import Settings, get_settings
from scamcheck.dependencies import get_analysis_service, get_blob_store
from scamcheck.main import app
from scamcheck.services.analysis_service import AnalysisService

IMAGE_URL = "https://storage.googleapis.com/test-bucket/uploads/abc123-chat.png"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

FULL_REPORT = {
    "scenario": "romance",
    "confidence": 0.82,
    "risk_level": "high",
    "summary": "The contact may be using a fake profile to build trust before asking for money.",
    "red_flags": [
        {
            "title": "Request for gift cards",
            "severity": "high",
            "description": "Asking for gift cards is consistent with common scams.",
            "evidence": ["Can you buy me two Apple gift cards?"],
        }
    ],
    "inconsistencies": [
        {
            "type": "job",
            "description": "Claims to be an offshore engineer and a surgeon.",
            "why_it_matters": "Changing stories can suggest a scripted persona.",
            "suggested_questions": ["Which company do you work for?"],
        }
    ],
    "next_steps": [
        {"category": "payment_safety", "steps": ["Do not send gift cards or crypto."]},
        {"category": "reporting", "steps": ["Report to the Canadian Anti-Fraud Centre."]},
    ],
    "safety_notes": ["You did nothing wrong by asking for a second opinion."],
}


class FakeGateway:
    def __init__(self, reply: str = "", error: Exception = None) -> None:
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete(self, prompt_text, image=None):
        self.calls.append((prompt_text, image))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeFetcher:
    def __init__(self, outcome=None) -> None:
        self.outcome = outcome
        self.urls = []

    async def fetch(self, url):
        self.urls.append(url)
        return self.outcome


class FakeBlobStore:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.deleted = []
        self.uploaded = []

    async def upload(self, data, mime_type, filename):
        self.uploaded.append((data, mime_type, filename))
        pathname = f"uploads/abc123-{filename}"
        return f"https://storage.googleapis.com/test-bucket/{pathname}?X-Goog-Signature=sig", pathname

    async def delete(self, url):
        self.deleted.append(url)
        if self.fail:
            raise RuntimeError("bucket unavailable")


@pytest.fixture
def settings():
    return Settings(_env_file=None, gemini_api_key="test-key", firebase_storage_bucket="test-bucket")


@pytest.fixture
def gateway():
    return FakeGateway(reply=json.dumps(FULL_REPORT))


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def client(settings, gateway, fetcher, blob_store):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_analysis_service] = lambda: AnalysisService(
        settings, gateway=gateway, fetcher=fetcher, blob_store=blob_store
    )
    yield TestClient(app)
    app.dependency_overrides.clear()
