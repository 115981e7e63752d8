"""Request validation routes for registration and login payloads."""

# Standard Library
from typing import Any

# Third-Party
from fastapi import APIRouter, Body, Request

# Local
from dealer_api.policies import PolicyRegistry
from dealer_api.rate_limit import RateLimiter
from dealer_api.response import failure, success
from dealer_api.validators import (
    ValidationResult,
    validate_login_request,
    validate_register_request,
)


def _respond(result: ValidationResult) -> Any:
    if not result.is_valid:
        return failure("Validation failed", 400, errors=result.errors)
    return success()


def build_router(limiter: RateLimiter, policies: PolicyRegistry) -> APIRouter:
    """Create the auth validation router guarded by the general policy.

    Args:
        limiter: Shared rate limiter owned by the app.
        policies: Registry holding the general policy.

    Returns:
        Router with validate-register and validate-login endpoints.
    """

    router = APIRouter()
    general = limiter.limit(policies.get("general"))

    @router.post("/validate-register")
    @general
    async def validate_register(
        *, request: Request, payload: dict[str, Any] = Body(...)
    ) -> Any:
        """Check a registration body without creating a user."""

        return _respond(validate_register_request(payload))

    @router.post("/validate-login")
    @general
    async def validate_login(
        *, request: Request, payload: dict[str, Any] = Body(...)
    ) -> Any:
        """Check a login body without authenticating."""

        return _respond(validate_login_request(payload))

    return router
