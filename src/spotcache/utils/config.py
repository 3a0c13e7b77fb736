from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Optional

TOKEN_URL = "https://accounts.spotify.com/api/token"
API_BASE_URL = "https://api.spotify.com/v1"


@dataclass
class AuthConfig:
    token_url: str = TOKEN_URL
    expiry_margin_seconds: int = 60
    # Serialize check-and-refresh so concurrent callers share one refresh.
    single_flight: bool = False


@dataclass
class CacheConfig:
    ttl_seconds: float = 600.0
    max_size: Optional[int] = None


@dataclass
class HttpConfig:
    base_url: str = API_BASE_URL
    timeout_seconds: float = 15.0


@dataclass
class ClientConfig:
    auth: AuthConfig = dataclasses.field(default_factory=AuthConfig)
    cache: CacheConfig = dataclasses.field(default_factory=CacheConfig)
    http: HttpConfig = dataclasses.field(default_factory=HttpConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        def build(dc_cls, key):
            values = data.get(key, {})
            return dc_cls(**values)

        return cls(
            auth=build(AuthConfig, "auth"),
            cache=build(CacheConfig, "cache"),
            http=build(HttpConfig, "http"),
        )
