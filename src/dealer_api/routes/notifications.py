"""Notification routes, each bound to its own rate limit policy."""

# Standard Library
from typing import Any

# Third-Party
from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

# Local
from dealer_api.policies import PolicyRegistry
from dealer_api.rate_limit import RateLimiter
from dealer_api.response import success
from dealer_api.validators import ValidationError, sanitize_string, validate_pagination


class FCMTokenInput(BaseModel):
    """Device token registration payload.

    Attributes:
        token: Firebase Cloud Messaging registration token.
    """

    token: str


def build_router(limiter: RateLimiter, policies: PolicyRegistry) -> APIRouter:
    """Create the notification router.

    Args:
        limiter: Shared rate limiter owned by the app.
        policies: Registry holding notification, fcm_token and
            test_notification policies.

    Returns:
        Router for history, FCM token and test notification endpoints.
    """

    router = APIRouter()

    @router.get("/history")
    @limiter.limit(policies.get("notification"))
    async def notification_history(
        *,
        request: Request,
        page: str | None = Query(None),
        limit: str | None = Query(None),
    ) -> dict[str, Any]:
        """Return an empty page of notification history."""

        pagination = validate_pagination(page, limit)
        return success(
            [],
            pagination={
                "page": pagination.page,
                "limit": pagination.limit,
                "skip": pagination.skip,
            },
        )

    @router.post("/fcm-token")
    @limiter.limit(policies.get("fcm_token"))
    async def update_fcm_token(
        *, request: Request, payload: FCMTokenInput
    ) -> dict[str, Any]:
        """Accept a device token."""

        token = sanitize_string(payload.token)
        if not token:
            raise ValidationError("FCM token is required")
        return success(message="FCM token updated")

    @router.post("/test")
    @limiter.limit(policies.get("test_notification"))
    async def send_test_notification(*, request: Request) -> dict[str, Any]:
        """Acknowledge a test notification request."""

        return success(message="Test notification queued")

    return router
