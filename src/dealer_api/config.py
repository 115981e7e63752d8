"""Environment-driven settings for the Dealer API."""

# Standard Library
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_CLEANUP_INTERVAL = 5 * 60

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class ConfigurationError(ValueError):
    """Raised at startup when a setting or rate limit policy is invalid."""


def env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    """Read an integer from the environment.

    Args:
        environ: Environment mapping to read from.
        name: Variable name.
        default: Value used when the variable is unset or blank.

    Returns:
        Parsed integer.

    Raises:
        ConfigurationError: If the value is not an integer.
    """

    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    """Read a boolean flag from the environment."""

    raw = environ.get(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup.

    Attributes:
        cleanup_interval: Seconds between rate limit sweeps.
        rate_limit_enabled: When False, rate limit decorators pass through.
        log_level: Root log level name.
    """

    cleanup_interval: int = DEFAULT_CLEANUP_INTERVAL
    rate_limit_enabled: bool = True
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.cleanup_interval <= 0:
            raise ConfigurationError(
                "RATE_LIMIT_CLEANUP_INTERVAL_SECONDS must be positive"
            )
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigurationError(f"Unknown LOG_LEVEL: {self.log_level}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Returns:
            Validated Settings instance.
        """

        env = os.environ if environ is None else environ
        return cls(
            cleanup_interval=env_int(
                env, "RATE_LIMIT_CLEANUP_INTERVAL_SECONDS", DEFAULT_CLEANUP_INTERVAL
            ),
            rate_limit_enabled=env_bool(env, "RATE_LIMIT_ENABLED", True),
            log_level=env.get("LOG_LEVEL", "INFO").strip() or "INFO",
        )


def configure_logging(level: str = "INFO") -> None:
    """Install a basic root handler once and set the root level."""

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(level.upper())
