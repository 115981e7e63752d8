"""API test fixtures: app with a manual clock and an async test client."""

# Third-Party
import pytest
from httpx import ASGITransport, AsyncClient

# Local
from dealer_api.app import create_app
from dealer_api.config import Settings
from dealer_api.policies import PolicyRegistry, RateLimitPolicy

TIGHT_POLICIES = [
    RateLimitPolicy(name="general", window_ms=60000, max_requests=3),
    RateLimitPolicy(
        name="notification",
        window_ms=60000,
        max_requests=2,
        message="Too many notification requests, please try again later",
    ),
    RateLimitPolicy(
        name="fcm_token",
        window_ms=60000,
        max_requests=1,
        message="Too many FCM token updates, please try again later",
    ),
    RateLimitPolicy(
        name="test_notification",
        window_ms=10000,
        max_requests=1,
        message="Too many test notifications, please try again later",
    ),
]


@pytest.fixture
def app(clock):
    """App with small limits so tests can exhaust them quickly."""

    return create_app(
        settings=Settings(),
        policies=PolicyRegistry(list(TIGHT_POLICIES)),
        clock=clock,
    )


@pytest.fixture
async def client(app):
    """Async HTTP client bound to the app, with lifespan events run."""

    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
