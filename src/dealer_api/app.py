"""Dealer REST API application."""

# Standard Library
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

# Third-Party
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

# Local
from dealer_api.config import Settings, configure_logging
from dealer_api.policies import PolicyRegistry, default_registry
from dealer_api.rate_limit import Clock, RateLimiter
from dealer_api.response import failure
from dealer_api.routes import auth, notifications
from dealer_api.validators import ValidationError

load_dotenv()

logger = logging.getLogger(__name__)


async def _validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return failure(str(exc), 400)


def create_app(
    settings: Settings | None = None,
    policies: PolicyRegistry | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """Build the API with its own rate limiter and policies.

    Args:
        settings: Process settings. Read from the environment when omitted.
        policies: Policy registry. Defaults plus environment overrides when
            omitted.
        clock: Time source for the rate limiter.

    Returns:
        Configured FastAPI application.

    Raises:
        ConfigurationError: If a setting or policy is invalid.
    """

    if settings is None:
        settings = Settings.from_env()
    if policies is None:
        policies = default_registry()
    limiter = RateLimiter(
        clock,
        cleanup_interval=settings.cleanup_interval,
        enabled=settings.rate_limit_enabled,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Start the rate limit sweeper and stop it on shutdown.

        Args:
            app: FastAPI application instance.

        Yields:
            None. The limiter is available on app.state.rate_limiter.
        """

        limiter.start()
        logger.info("Rate limiting on for policies: %s", ", ".join(policies.names()))
        yield
        await limiter.stop()

    app = FastAPI(
        title="Dealer API",
        version="1.0.0",
        description="REST API for dealership management",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.policies = policies
    app.state.rate_limiter = limiter

    app.add_exception_handler(ValidationError, _validation_error_handler)

    app.include_router(
        auth.build_router(limiter, policies), prefix="/api/auth", tags=["Auth"]
    )
    app.include_router(
        notifications.build_router(limiter, policies),
        prefix="/api/notifications",
        tags=["Notifications"],
    )

    @app.get("/api/health")
    @limiter.limit(policies.get("general"))
    async def health(*, request: Request) -> dict[str, str]:
        """Health check endpoint.

        Returns:
            Dict with status ok.
        """

        return {"status": "ok"}

    return app


def main() -> FastAPI:
    """ASGI application factory that also configures logging.

    Serve with ``uvicorn --factory dealer_api.app:main``.

    Returns:
        Application built from environment settings.
    """

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    return create_app(settings)
