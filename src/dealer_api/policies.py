"""Named rate limit policies for the Dealer API."""

# Standard Library
import os
from collections.abc import Mapping
from typing import Any

# Third-Party
from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

# Local
from dealer_api.config import ConfigurationError, env_int

DEFAULT_MESSAGE = "Too many requests, please try again later"

MINUTE_MS = 60 * 1000


class RateLimitPolicy(BaseModel):
    """Immutable fixed-window policy.

    Attributes:
        name: Registry name, also used in log lines.
        window_ms: Window length in milliseconds.
        max_requests: Requests allowed per key per window.
        message: Text returned to the client on rejection.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = "default"
    window_ms: StrictInt = Field(gt=0)
    max_requests: StrictInt = Field(gt=0)
    message: str = DEFAULT_MESSAGE

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or "policy"
            raise ConfigurationError(
                f"Invalid rate limit policy {data.get('name', 'default')!r}: "
                f"{field} {first['msg']}"
            ) from exc


DEFAULT_POLICIES: tuple[RateLimitPolicy, ...] = (
    RateLimitPolicy(
        name="notification",
        window_ms=15 * MINUTE_MS,
        max_requests=100,
        message="Too many notification requests, please try again later",
    ),
    RateLimitPolicy(
        name="fcm_token",
        window_ms=MINUTE_MS,
        max_requests=10,
        message="Too many FCM token updates, please try again later",
    ),
    RateLimitPolicy(
        name="test_notification",
        window_ms=MINUTE_MS,
        max_requests=5,
        message="Too many test notifications, please try again later",
    ),
    RateLimitPolicy(
        name="general",
        window_ms=15 * MINUTE_MS,
        max_requests=200,
        message=DEFAULT_MESSAGE,
    ),
)


class PolicyRegistry:
    """Read-only-after-startup mapping of policy names to policies."""

    def __init__(self, policies: list[RateLimitPolicy] | None = None) -> None:
        self._policies: dict[str, RateLimitPolicy] = {}
        for policy in policies or []:
            self.register(policy)

    def register(self, policy: RateLimitPolicy) -> None:
        """Add a policy.

        Raises:
            ConfigurationError: If the name is already registered.
        """

        if policy.name in self._policies:
            raise ConfigurationError(f"Duplicate rate limit policy: {policy.name}")
        self._policies[policy.name] = policy

    def get(self, name: str) -> RateLimitPolicy:
        """Return a policy by name.

        Raises:
            KeyError: If no policy has that name.
        """

        try:
            return self._policies[name]
        except KeyError:
            raise KeyError(f"Unknown rate limit policy: {name}")

    def names(self) -> list[str]:
        return list(self._policies)

    def __contains__(self, name: object) -> bool:
        return name in self._policies

    def __len__(self) -> int:
        return len(self._policies)


def _apply_overrides(
    policy: RateLimitPolicy, environ: Mapping[str, str]
) -> RateLimitPolicy:
    prefix = f"RATE_LIMIT_{policy.name.upper()}"
    return RateLimitPolicy(
        name=policy.name,
        window_ms=env_int(environ, f"{prefix}_WINDOW_MS", policy.window_ms),
        max_requests=env_int(environ, f"{prefix}_MAX_REQUESTS", policy.max_requests),
        message=policy.message,
    )


def default_registry(environ: Mapping[str, str] | None = None) -> PolicyRegistry:
    """Build the dealership policies, applying environment overrides.

    Args:
        environ: Mapping with optional RATE_LIMIT_<NAME>_WINDOW_MS and
            RATE_LIMIT_<NAME>_MAX_REQUESTS values. Defaults to os.environ.

    Returns:
        Registry holding notification, fcm_token, test_notification and general.

    Raises:
        ConfigurationError: If an override is not a positive integer.
    """

    env = os.environ if environ is None else environ
    return PolicyRegistry([_apply_overrides(p, env) for p in DEFAULT_POLICIES])
