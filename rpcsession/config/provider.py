"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

_DISABLED = {"", "none", "off", "false", "disabled", "0"}


def _get_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None


def parse_timeout(raw: Optional[str]) -> Optional[float]:
    """Parse a session timeout; empty, 'none', 'off' or '0' disable expiry."""
    if raw is None or raw.strip().lower() in _DISABLED:
        return None
    try:
        timeout = float(raw)
    except ValueError:
        raise ValueError(f"SESSION_TIMEOUT must be a number of seconds, got {raw!r}") from None
    return timeout if timeout > 0 else None


@dataclass
class SessionConfig:
    """Session core configuration."""
    timeout: Optional[float] = None
    sweep_interval: float = 5.0
    prefix: str = "session"

    @property
    def expires(self) -> bool:
        return self.timeout is not None


@dataclass
class APIConfig:
    """API configuration."""
    port: int = 8080
    host: str = "0.0.0.0"
    debug: bool = False
    log_level: str = "INFO"


@dataclass
class AuthConfig:
    """Authentication configuration."""
    api_keys: List[str] = field(default_factory=list)
    admin_users: List[str] = field(default_factory=list)


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_session_config(self) -> SessionConfig:
        ...

    def get_api_config(self) -> APIConfig:
        ...

    def get_auth_config(self) -> AuthConfig:
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_session_config(self) -> SessionConfig:
        """Get session configuration from environment variables."""
        sweep_interval = _get_float("SESSION_SWEEP_INTERVAL", "5")
        if sweep_interval <= 0:
            raise ValueError(f"SESSION_SWEEP_INTERVAL must be positive, got {sweep_interval}")

        return SessionConfig(
            timeout=parse_timeout(os.getenv("SESSION_TIMEOUT")),
            sweep_interval=sweep_interval,
            prefix=os.getenv("SESSION_RPC_PREFIX", "session").strip("/"),
        )

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        port_env = os.getenv("API_PORT", "8080")
        try:
            port = int(port_env)
        except ValueError:
            raise ValueError(f"API_PORT must be an integer, got {port_env!r}") from None

        return APIConfig(
            port=port,
            host=os.getenv("API_HOST", "0.0.0.0"),
            debug=os.getenv("API_DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration from environment variables."""
        api_keys = os.getenv("API_KEYS", "").split(",")
        admin_users = os.getenv("ADMIN_USERS", "").split(",")

        return AuthConfig(
            api_keys=[key.strip() for key in api_keys if key.strip()],
            admin_users=[user.strip() for user in admin_users if user.strip()],
        )
