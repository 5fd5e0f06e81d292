"""
Configuration Provider.

Reads the service configuration from the environment (optionally seeded
from a project-root ``.env`` file) once at process start. Values are
exposed through dot-notation lookups such as ``config.get("security.api_key")``
and are read-only afterwards.

Malformed numeric or boolean values fall back to their defaults with a
warning instead of aborting startup; ``validate()`` reports settings that
leave the service unable to accept webhooks.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

SIGNATURE_MODES = ("raw", "canonical")
SSL_MODES = ("disable", "require", "verify-full")


class IConfigurationProvider(Protocol):
    """Protocol for configuration access."""

    def get(self, key: str, default: Any = None) -> Any:
        ...


# =============================================================================
# Environment parsing
# =============================================================================

def _env_str(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    logger.warning(f"Invalid boolean for {name}: '{raw}'. Using {default}.")
    return default


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: '{raw}'. Using {default}.")
        return default
    if value < minimum:
        logger.warning(f"{name} must be >= {minimum}, got {value}. Using {default}.")
        return default
    return value


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid number for {name}: '{raw}'. Using {default}.")
        return default
    if value < minimum:
        logger.warning(f"{name} must be >= {minimum}, got {value}. Using {default}.")
        return default
    return value


def _read_environment() -> dict[str, dict[str, Any]]:
    """Snapshot of every setting the service reads, grouped by section."""
    return {
        "server": {
            "host": _env_str("SERVER_HOST", "127.0.0.1"),
            "port": _env_int("SERVER_PORT", 3000, minimum=1),
            "base_url": _env_str("BASE_URL").rstrip("/"),
        },
        "app": {
            "debug": _env_bool("APP_DEBUG", False),
            "log_level": _env_str("APP_LOG_LEVEL", "INFO").upper(),
        },
        "database": {
            "url": _env_str("DATABASE_URL"),
            "ssl_mode": _env_str("DATABASE_SSL_MODE", "require").lower(),
            "ssl_cert_path": _env_str("DATABASE_SSL_CERT_PATH"),
        },
        "security": {
            # Secrets are taken verbatim, surrounding whitespace included
            "api_key": os.getenv("API_KEY", ""),
            "webhook_secret": os.getenv("WEBHOOK_SECRET", ""),
            "signature_mode": _env_str("WEBHOOK_SIGNATURE_MODE", "raw").lower(),
        },
        "idempotency": {
            "ttl_hours": _env_float("IDEMPOTENCY_TTL_HOURS", 24.0),
        },
        "throttle": {
            "ttl": _env_int("THROTTLE_TTL", 60, minimum=1),
            "limit": _env_int("THROTTLE_LIMIT", 100, minimum=1),
        },
    }


# =============================================================================
# Provider
# =============================================================================

@dataclass
class ConfigurationProvider:
    """
    Read-only view over the service configuration.

    Example:
        config = ConfigurationProvider().load()
        config.get("throttle.limit")       # 100
        config.get("missing.key", "n/a")   # "n/a"
    """

    _config: dict[str, dict[str, Any]] = field(default_factory=dict)
    _loaded: bool = field(default=False)

    def load(self, env_path: Optional[str] = None) -> "ConfigurationProvider":
        """
        Read configuration from the environment.

        Args:
            env_path: Explicit .env file; defaults to ``<project root>/.env``
                      when present. Existing environment variables win.

        Returns:
            Self for method chaining
        """
        if self._loaded:
            return self

        dotenv_file = Path(env_path) if env_path else Path(__file__).parent.parent / ".env"
        if dotenv_file.exists():
            load_dotenv(dotenv_file)

        self._config = _read_environment()
        self._loaded = True
        return self

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dot-separated key (e.g. ``"server.port"``)."""
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def is_security_configured(self) -> bool:
        """Check if both the API key and the signing secret are set."""
        return bool(self.get("security.api_key")) and bool(self.get("security.webhook_secret"))

    def validate(self) -> list[str]:
        """
        Describe settings that stop the service from working as deployed.

        Returns:
            One message per problem; empty when the configuration is usable.
        """
        problems = []
        if not self.get("database.url"):
            problems.append("DATABASE_URL is not set")
        if not self.get("security.api_key"):
            problems.append("API_KEY is not set; authenticated routes will reject every request")
        if not self.get("security.webhook_secret"):
            problems.append("WEBHOOK_SECRET is not set; signed requests will be rejected")
        if self.get("security.signature_mode") not in SIGNATURE_MODES:
            problems.append(
                f"WEBHOOK_SIGNATURE_MODE must be one of {', '.join(SIGNATURE_MODES)}"
            )
        if self.get("database.ssl_mode") not in SSL_MODES:
            problems.append(f"DATABASE_SSL_MODE must be one of {', '.join(SSL_MODES)}")
        return problems


_configuration_provider: Optional[ConfigurationProvider] = None


def get_configuration_provider() -> ConfigurationProvider:
    """Process-wide provider, loaded on first use."""
    global _configuration_provider
    if _configuration_provider is None:
        _configuration_provider = ConfigurationProvider().load()
    return _configuration_provider


def reset_configuration_provider() -> None:
    """Drop the cached provider so the next call re-reads the environment (for testing)."""
    global _configuration_provider
    _configuration_provider = None
