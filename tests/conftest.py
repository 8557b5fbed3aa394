"""Pytest configuration and fixtures for StatsProxy tests.

This module provides reusable fixtures for:
- Settings overrides
- A respx router standing in for the analytics service
- A test application with services wired to the mocked upstream
- Async test client
"""

from collections.abc import AsyncGenerator, Iterator

import httpx
import pytest
import respx
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from statsproxy.config import Settings
from statsproxy.main import create_app, init_services
from tests.mocks.analytics_responses import ANALYTICS_URL
from tests.mocks.clock import FakeClock

# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Create test-specific settings pointing at the mocked upstream."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        app_env="development",  # type: ignore[arg-type]
        debug=True,
        log_level="DEBUG",  # type: ignore[arg-type]
        log_format="console",  # type: ignore[arg-type]
        analytics_base_url=ANALYTICS_URL,
        analytics_username="admin",
        analytics_password="s3cret",  # type: ignore[arg-type]
    )


# =============================================================================
# Upstream Fixtures
# =============================================================================


@pytest.fixture
def upstream() -> Iterator[respx.MockRouter]:
    """Mock the analytics service.

    Usage:
        def test_login(upstream: respx.MockRouter):
            upstream.post(LOGIN_PATH).respond(200, json={"token": "T1"})
    """
    with respx.mock(base_url=ANALYTICS_URL, assert_all_called=False) as router:
        yield router


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock for cache expiry."""
    return FakeClock()


@pytest.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client the services use to reach the (mocked) upstream."""
    async with httpx.AsyncClient() as client:
        yield client


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def app(
    test_settings: Settings,
    http_client: httpx.AsyncClient,
    clock: FakeClock,
) -> FastAPI:
    """Create a test FastAPI application with services initialised.

    ``ASGITransport`` does not run the lifespan, so the services it would
    build are wired here instead.
    """
    application = create_app(settings=test_settings)
    init_services(application, test_settings, http_client, clock=clock)
    return application


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing.

    This client makes requests to the test app without starting a server.

    Usage:
        async def test_endpoint(async_client: AsyncClient):
            response = await async_client.get("/health/live")
            assert response.status_code == 200
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
