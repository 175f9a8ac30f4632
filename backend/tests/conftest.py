"""
Pytest fixtures for the company sync tests.

Record data and ``FakeBackend`` live in ``tests/fixtures/company_fixtures.py``.
"""
from typing import Any, Dict, List

import httpx
import pytest

from outreach_sync.core.config import get_settings
from outreach_sync.schemas.company import Actor, Role
from outreach_sync.services.gateway import RestGateway
from outreach_sync.services.orchestrator import CompanySyncOrchestrator

from tests.fixtures.company_fixtures import BASE_URL, FakeBackend, raw_companies


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("API_AUTH_TOKEN", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def raw_records() -> List[Dict[str, Any]]:
    return raw_companies()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def unauthorized_calls() -> List[int]:
    return []


@pytest.fixture
def gateway(backend, unauthorized_calls) -> RestGateway:
    return RestGateway(
        base_url=BASE_URL,
        token_provider=lambda: "test-token",
        on_unauthorized=lambda: unauthorized_calls.append(1),
        read_attempts=1,
        transport=httpx.MockTransport(backend.handler),
    )


@pytest.fixture
def admin() -> Actor:
    return Actor(id="admin-1", role=Role.ADMIN, name="Admin User")


@pytest.fixture
def employee() -> Actor:
    return Actor(id="user-1", role=Role.EMPLOYEE, name="Ada")


@pytest.fixture
def developer() -> Actor:
    return Actor(id="dev-1", role=Role.DEVELOPER)


@pytest.fixture
def orchestrator(gateway, admin) -> CompanySyncOrchestrator:
    return CompanySyncOrchestrator(gateway=gateway, actor=admin)
