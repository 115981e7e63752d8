"""HTTP tests for rate limited routes."""

# Standard Library
import logging

# Third-Party
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

# Local
from dealer_api.app import create_app, main
from dealer_api.config import ConfigurationError, Settings
from dealer_api.policies import PolicyRegistry, RateLimitPolicy

pytestmark = pytest.mark.api


async def test_health_ok(client):
    """Health answers under the limit."""

    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_health_rejected_over_general_limit(client, clock):
    """The fourth call in a window gets the 429 envelope."""

    for _ in range(3):
        assert (await client.get("/api/health")).status_code == 200

    clock.advance(20000)
    resp = await client.get("/api/health")
    assert resp.status_code == 429
    assert resp.headers["retry-after"] == "40"
    assert resp.json() == {
        "success": False,
        "message": "Too many requests, please try again later",
        "retryAfter": 40,
    }


async def test_window_expiry_allows_again(client, clock):
    """After the window ends the caller is allowed again."""

    for _ in range(3):
        await client.get("/api/health")
    assert (await client.get("/api/health")).status_code == 429

    clock.advance(60000)
    assert (await client.get("/api/health")).status_code == 200


async def test_policies_are_independent_per_route(client):
    """Exhausting one policy does not block routes under another."""

    assert (await client.post("/api/notifications/test")).status_code == 200
    resp = await client.post("/api/notifications/test")
    assert resp.status_code == 429
    assert resp.json()["message"] == "Too many test notifications, please try again later"
    assert resp.json()["retryAfter"] == 10

    assert (await client.get("/api/health")).status_code == 200


async def test_fcm_token_limit(client):
    """FCM token updates are limited to one per window here."""

    resp = await client.post("/api/notifications/fcm-token", json={"token": "abc"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "FCM token updated"}

    resp = await client.post("/api/notifications/fcm-token", json={"token": "abc"})
    assert resp.status_code == 429


async def test_blank_fcm_token_is_validation_error(client):
    """A whitespace token is a 400, not a 500."""

    resp = await client.post("/api/notifications/fcm-token", json={"token": "   "})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "FCM token is required"}


async def test_history_pagination(client):
    """History returns the parsed pagination."""

    resp = await client.get("/api/notifications/history", params={"page": "2", "limit": "5"})
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "data": [],
        "pagination": {"page": 2, "limit": 5, "skip": 5},
    }


async def test_history_bad_pagination(client):
    """Invalid pagination maps to a 400 envelope."""

    resp = await client.get("/api/notifications/history", params={"limit": "500"})
    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "message": "Limit must be between 1 and 100",
    }


async def test_lifespan_manages_sweeper(app):
    """The sweeper runs only while the app is up."""

    limiter = app.state.rate_limiter
    assert not limiter.running
    async with app.router.lifespan_context(app):
        assert limiter.running
    assert not limiter.running


async def test_disabled_rate_limiting(clock):
    """RATE_LIMIT_ENABLED=false lets every request through."""

    app = create_app(
        settings=Settings(rate_limit_enabled=False),
        policies=PolicyRegistry(
            [
                RateLimitPolicy(name="general", window_ms=60000, max_requests=1),
                RateLimitPolicy(name="notification", window_ms=60000, max_requests=1),
                RateLimitPolicy(name="fcm_token", window_ms=60000, max_requests=1),
                RateLimitPolicy(name="test_notification", window_ms=60000, max_requests=1),
            ]
        ),
        clock=clock,
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        for _ in range(3):
            assert (await ac.get("/api/health")).status_code == 200


def test_missing_policy_fails_at_startup(clock):
    """An app without a required policy cannot be built."""

    with pytest.raises(KeyError):
        create_app(settings=Settings(), policies=PolicyRegistry(), clock=clock)


def test_invalid_override_fails_at_startup(monkeypatch, clock):
    """A zero override in the environment stops the app from being built."""

    monkeypatch.setenv("RATE_LIMIT_GENERAL_MAX_REQUESTS", "0")
    with pytest.raises(ConfigurationError):
        create_app(settings=Settings(), clock=clock)


def test_main_builds_app_and_sets_log_level(monkeypatch):
    """The ASGI factory reads the environment and applies LOG_LEVEL."""

    root = logging.getLogger()
    previous = root.level
    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.setenv("RATE_LIMIT_GENERAL_MAX_REQUESTS", "9")

    try:
        app = main()
        assert root.level == logging.WARNING
    finally:
        root.setLevel(previous)

    assert isinstance(app, FastAPI)
    assert app.state.settings.log_level == "warning"
    assert app.state.policies.get("general").max_requests == 9
