"""
Pytest fixtures for PrepDeck tests.

The backend client talks to an in-memory FastAPI app through
httpx.ASGITransport, so every test makes real HTTP requests without a
running server.
"""
from datetime import date

import httpx
import pytest
import pytest_asyncio

from prepdeck.services import (
    BackendClient,
    BackendConfig,
    GenerationCoordinator,
    MemoryNotificationSink,
    QuotaStore,
)
from fake_backend import FakeBackend, create_app

USER_ID = "user_123"
TODAY = date(2025, 3, 14)
BASE_URL = "http://backend.test"


@pytest.fixture
def backend() -> FakeBackend:
    """Fresh backend state for each test."""
    return FakeBackend()


@pytest_asyncio.fixture
async def client(backend: FakeBackend):
    """Backend client wired to the fake app."""
    transport = httpx.ASGITransport(app=create_app(backend))
    async with BackendClient(BackendConfig(base_url=BASE_URL), transport=transport) as client:
        yield client


@pytest.fixture
def notifier() -> MemoryNotificationSink:
    return MemoryNotificationSink()


@pytest.fixture
def quota() -> QuotaStore:
    """Quota store with the default limit of 5, pinned to TODAY."""
    return QuotaStore(limit=5, today=lambda: TODAY)


@pytest.fixture
def coordinator(client: BackendClient, quota: QuotaStore, notifier: MemoryNotificationSink) -> GenerationCoordinator:
    return GenerationCoordinator(client, quota, notifier, user_id=USER_ID, track_server_quota=True)


@pytest.fixture
def company(backend: FakeBackend) -> dict:
    return backend.add_company("Acme", USER_ID)


@pytest.fixture
def technical_round(backend: FakeBackend, company: dict) -> dict:
    return backend.add_round(company["id"], "Technical Interview")


@pytest.fixture
def seeded_round(backend: FakeBackend, company: dict, technical_round: dict) -> dict:
    """A technical round holding two python questions and one go question."""
    backend.add_question(company["id"], technical_round["id"], "Explain Python decorators", "easy", "python")
    backend.add_question(company["id"], technical_round["id"], "What is the GIL?", "hard", "python")
    backend.add_question(company["id"], technical_round["id"], "How do goroutines work?", "medium", "go")
    return technical_round
