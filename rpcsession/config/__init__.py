from .provider import (
    APIConfig,
    AuthConfig,
    ConfigProvider,
    EnvConfigProvider,
    SessionConfig,
    parse_timeout,
)

__all__ = [
    "APIConfig",
    "AuthConfig",
    "ConfigProvider",
    "EnvConfigProvider",
    "SessionConfig",
    "parse_timeout",
]
