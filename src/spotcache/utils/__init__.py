"""Configuration and caller-side helpers."""

from .config import API_BASE_URL, TOKEN_URL, AuthConfig, CacheConfig, ClientConfig, HttpConfig
from .retry import with_rate_limit_retries

__all__ = [
    "API_BASE_URL",
    "TOKEN_URL",
    "AuthConfig",
    "CacheConfig",
    "ClientConfig",
    "HttpConfig",
    "with_rate_limit_retries",
]
