"""
Integration test fixtures for Nuroo.

Provides fixtures specific to integration testing:
- FastAPI test clients wired to the temp-storage services
- An onboarded user ready for generation
"""

from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from nuroo.api.main import create_app


# ─────────────────────────────────────────────────────────────────────────────
# API Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def api_app(services):
    """FastAPI app using the shared test services."""
    return create_app(services)


@pytest.fixture
def test_client(api_app) -> Generator[TestClient, None, None]:
    """Synchronous client; runs the app lifespan."""
    with TestClient(api_app) as client:
        yield client


@pytest_asyncio.fixture
async def async_test_client(api_app) -> AsyncGenerator[AsyncClient, None]:
    """Async client for tests that also await services directly."""
    async with AsyncClient(transport=ASGITransport(app=api_app), base_url="http://test") as client:
        yield client


# ─────────────────────────────────────────────────────────────────────────────
# User Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def onboarding_payload() -> dict:
    return {
        "name": "Alice",
        "age": "5",
        "diagnosis": "Autism spectrum",
        "development_areas": ["speech", "social"],
        "preferred_language": "en",
        "onboarding_completed": True,
    }


@pytest_asyncio.fixture
async def onboarded_user(services, sample_profile, mock_user_id) -> str:
    await services.store.merge_profile(mock_user_id, sample_profile)
    return mock_user_id
