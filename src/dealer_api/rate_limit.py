"""In-memory fixed window rate limiter."""

# Standard Library
import asyncio
import contextlib
import logging
import math
import threading
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from functools import wraps
from typing import Any, Protocol

# Third-Party
from fastapi import Request

# Local
from dealer_api.config import DEFAULT_CLEANUP_INTERVAL, ConfigurationError
from dealer_api.policies import RateLimitPolicy
from dealer_api.response import rate_limited

logger = logging.getLogger(__name__)

Handler = Callable[..., Coroutine[Any, Any, Any]]
KeyFunc = Callable[[Request], str]


class Clock(Protocol):
    """Time source returning integer milliseconds since the epoch."""

    def now_ms(self) -> int: ...


class SystemClock:
    """Wall clock backed by time.time()."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


@dataclass
class RateLimitEntry:
    """Counter for one key in its current window."""

    key: str
    count: int
    window_reset_at: int


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single check_and_record call.

    Attributes:
        allowed: Whether the request may proceed.
        count: Requests recorded in the current window.
        limit: The policy's max_requests.
        reset_at_ms: Absolute time the current window ends.
        retry_after_seconds: Backoff hint, 0 when allowed.
    """

    allowed: bool
    count: int
    limit: int
    reset_at_ms: int
    retry_after_seconds: int = 0

    @property
    def remaining(self) -> int:
        return max(self.limit - self.count, 0)


class WindowStore:
    """Mapping of rate limit keys to their entries."""

    def __init__(self) -> None:
        self._entries: dict[str, RateLimitEntry] = {}

    def get(self, key: str) -> RateLimitEntry | None:
        return self._entries.get(key)

    def set(self, key: str, entry: RateLimitEntry) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def all_keys(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def rate_limit_key(request: Request) -> str:
    """Derive the rate limit key for a request.

    Uses the authenticated user's Firebase UID when an auth layer has put a
    user on request.state, otherwise the client address.

    Args:
        request: Incoming request.

    Returns:
        "user:<uid>" or "ip:<host>".
    """

    user = getattr(request.state, "user", None)
    if isinstance(user, dict):
        uid = user.get("firebase_uid")
    else:
        uid = getattr(user, "firebase_uid", None)
    if uid:
        return f"user:{uid}"
    host = request.client.host if request.client else None
    return f"ip:{host or 'unknown'}"


class RateLimiter:
    """Fixed window limiter owning its store, lock and cleanup task.

    Args:
        clock: Time source, SystemClock by default.
        cleanup_interval: Seconds between background sweeps.
        enabled: When False, limit() decorators pass every request through.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        *,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL,
        enabled: bool = True,
    ) -> None:
        if cleanup_interval <= 0:
            raise ConfigurationError("cleanup_interval must be positive")
        self.clock = clock or SystemClock()
        self.cleanup_interval = cleanup_interval
        self.enabled = enabled
        self.store = WindowStore()
        self._lock = threading.Lock()
        self._sweeper: asyncio.Task[None] | None = None
        self._bound: dict[str, RateLimitPolicy] = {}

    def check_and_record(
        self, key: str, policy: RateLimitPolicy, now_ms: int | None = None
    ) -> RateLimitResult:
        """Decide whether a request is allowed and record it.

        Args:
            key: Caller key from rate_limit_key or similar.
            policy: Policy to enforce.
            now_ms: Current time; read from the clock when omitted.

        Returns:
            Allowed or denied RateLimitResult.
        """

        now = self.clock.now_ms() if now_ms is None else now_ms
        with self._lock:
            entry = self.store.get(key)
            if entry is None or entry.window_reset_at <= now:
                entry = RateLimitEntry(
                    key=key, count=1, window_reset_at=now + policy.window_ms
                )
                self.store.set(key, entry)
                return RateLimitResult(
                    allowed=True,
                    count=1,
                    limit=policy.max_requests,
                    reset_at_ms=entry.window_reset_at,
                )

            if entry.count < policy.max_requests:
                entry.count += 1
                return RateLimitResult(
                    allowed=True,
                    count=entry.count,
                    limit=policy.max_requests,
                    reset_at_ms=entry.window_reset_at,
                )

            retry_after = math.ceil((entry.window_reset_at - now) / 1000)
            result = RateLimitResult(
                allowed=False,
                count=entry.count,
                limit=policy.max_requests,
                reset_at_ms=entry.window_reset_at,
                retry_after_seconds=retry_after,
            )

        logger.info(
            "Rate limit exceeded for %s on policy %s, retry in %ss",
            key,
            policy.name,
            retry_after,
        )
        return result

    def sweep(self, now_ms: int | None = None) -> int:
        """Evict entries whose window has ended.

        Returns:
            Number of evicted keys.
        """

        now = self.clock.now_ms() if now_ms is None else now_ms
        removed = 0
        with self._lock:
            for key in self.store.all_keys():
                entry = self.store.get(key)
                if entry is not None and entry.window_reset_at <= now:
                    self.store.delete(key)
                    removed += 1
        if removed:
            logger.debug("Swept %d expired rate limit entries", removed)
        return removed

    async def _run_sweeper(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            self.sweep()

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        """Start the periodic sweeper on the running event loop."""

        if self.running:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._run_sweeper())
        logger.debug("Rate limit sweeper started every %ss", self.cleanup_interval)

    async def stop(self) -> None:
        """Cancel the sweeper and wait for it to finish."""

        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("Rate limit sweeper stopped")

    def limit(
        self, policy: RateLimitPolicy, key_func: KeyFunc = rate_limit_key
    ) -> Callable[[Handler], Handler]:
        """Create a rate limiting decorator for async route handlers.

        The decorated handler must accept a keyword ``request: Request``.

        Args:
            policy: Policy enforced for every request to the handler.
            key_func: Derives the caller key from the request.

        Returns:
            Decorator that answers 429 instead of calling the handler once
            the caller is over the limit.

        Raises:
            ConfigurationError: If another policy with the same name is
                already bound to this limiter.
        """

        if not isinstance(policy, RateLimitPolicy):
            raise ConfigurationError(f"Expected RateLimitPolicy, got {policy!r}")
        bound = self._bound.setdefault(policy.name, policy)
        if bound != policy:
            raise ConfigurationError(
                f"Policy name {policy.name!r} is already bound to a different policy"
            )

        def decorator(func: Handler) -> Handler:
            @wraps(func)
            async def wrapper(*args: Any, request: Request, **kwargs: Any) -> Any:
                if self.enabled:
                    # One counter per policy and caller.
                    key = f"{policy.name}:{key_func(request)}"
                    result = self.check_and_record(key, policy)
                    if not result.allowed:
                        return rate_limited(
                            policy.message, result.retry_after_seconds
                        )
                return await func(*args, request=request, **kwargs)

            return wrapper

        return decorator
