"""
Pytest configuration and fixtures for the auth service tests.
"""

from __future__ import annotations

import os

# Set test environment variables before importing config
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only-0123456789")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("CLEANUP_INTERVAL_SECONDS", "0")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from hubauth.config import Settings  # noqa: E402
from hubauth.main import create_app  # noqa: E402
from hubauth.services.registration_service import RegistrationService  # noqa: E402
from hubauth.tests.fakes import (  # noqa: E402
    FakeClock,
    FakeIdentityProvider,
    InMemoryTokenStore,
    RecordingMailer,
)


@pytest.fixture
def settings():
    """Settings isolated from the process environment."""
    test_settings = Settings()
    test_settings.JWT_SECRET = "test-secret-key-for-testing-only-0123456789"
    test_settings.ENVIRONMENT = "testing"
    test_settings.CLEANUP_INTERVAL_SECONDS = 0
    test_settings.REGISTRATION_EXPIRY_HOURS = 24
    test_settings.REGISTRATION_RATE_LIMIT_PER_IP = 100
    test_settings.VERIFY_RATE_LIMIT_PER_IP = 100
    return test_settings


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryTokenStore()


@pytest.fixture
def service(store, settings, clock):
    return RegistrationService(store, settings, clock=clock)


@pytest.fixture
def identity():
    return FakeIdentityProvider()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def app(settings, store, identity, mailer, clock):
    return create_app(
        settings,
        store=store,
        identity=identity,
        profiles=identity,
        mailer=mailer,
        clock=clock,
    )


@pytest_asyncio.fixture(loop_scope="session")
async def async_client(app):
    """Async HTTP client against the ASGI app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
