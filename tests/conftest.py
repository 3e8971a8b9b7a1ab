"""Shared test fixtures.

Provides a controllable clock, an HTTP client over the ASGI app, and
resets for the process-wide token store, monitoring service, link sender
and rate limiter.
"""

from collections.abc import AsyncGenerator, Iterator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr

from falcon_core.core.config import settings
from falcon_core.core.portal_links import (
    LoggingLinkSender,
    PortalLinkMessage,
    set_link_sender,
)

# Security: Test-only admin key. Production reads ADMIN_API_KEY from env.
TEST_ADMIN_KEY = "test-admin-key-for-monitoring"  # nosec B105  # gitleaks:allow

CLOCK_START = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock for expiry and window tests."""

    def __init__(self, start: datetime = CLOCK_START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        """Move time forward by a timedelta built from kwargs."""
        self.now += timedelta(**kwargs)


class RecordingLinkSender:
    """Link sender that keeps every message instead of delivering it."""

    def __init__(self) -> None:
        self.messages: list[PortalLinkMessage] = []

    async def send(self, message: PortalLinkMessage) -> None:
        self.messages.append(message)

    @property
    def last_token(self) -> str:
        """Token from the most recent link."""
        return self.messages[-1].link.rsplit("token=", 1)[1]


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at CLOCK_START until advanced."""
    return FakeClock()


@pytest.fixture(autouse=True)
def reset_process_state() -> Iterator[None]:
    """Reset the process-wide token store and monitoring service.

    The ASGI test transport does not run the lifespan, so each test
    starts without a monitoring service and with an empty token store.
    """
    from falcon_core.services.monitoring_worker import set_monitoring_service
    from falcon_core.services.token_store import reset_token_store

    reset_token_store()
    set_monitoring_service(None)
    yield
    reset_token_store()
    set_monitoring_service(None)
    set_link_sender(LoggingLinkSender())


@pytest.fixture(autouse=True)
def disable_rate_limiting() -> Iterator[None]:
    """Disable rate limiting during tests.

    Security: Rate limiting is tested separately; disable for other tests
    to avoid flaky failures from rate limit triggers.

    Yields:
        None (autouse fixture).
    """
    from falcon_core.core.rate_limiting import limiter

    original_enabled = limiter.enabled
    limiter.enabled = False

    yield

    limiter.enabled = original_enabled


@pytest.fixture
def link_sender() -> RecordingLinkSender:
    """Capture magic-link messages handed to the delivery hook."""
    sender = RecordingLinkSender()
    set_link_sender(sender)
    return sender


@pytest.fixture
def admin_key() -> Iterator[str]:
    """Configure the monitoring admin key, restore after test."""
    original = settings.admin_api_key
    settings.admin_api_key = SecretStr(TEST_ADMIN_KEY)
    yield TEST_ADMIN_KEY
    settings.admin_api_key = original


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the application.

    Yields:
        AsyncClient using the ASGI transport.
    """
    from falcon_core.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
