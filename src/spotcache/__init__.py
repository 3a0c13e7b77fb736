"""spotcache

Authenticated, cached access to the Spotify Web API catalog: a client
credentials token manager, a TTL response cache, and a request pipeline that
composes the two with rate-limit aware error handling.
"""

from .auth import TokenManager, TokenState
from .cache import TTLCache
from .core import RecommendationsRequest, RecommendationsResponse, RequestPipeline, SpotifyClient, extract_spotify_id
from .errors import (
    InvalidInput,
    NetworkError,
    ParseError,
    RateLimited,
    RateLimitSignal,
    SpotcacheError,
    TokenAuthenticationError,
    Unexpected,
)
from .utils import ClientConfig, with_rate_limit_retries

__all__ = [
    "SpotifyClient",
    "RequestPipeline",
    "RecommendationsRequest",
    "RecommendationsResponse",
    "TokenManager",
    "TokenState",
    "TTLCache",
    "ClientConfig",
    "with_rate_limit_retries",
    "extract_spotify_id",
    "SpotcacheError",
    "NetworkError",
    "ParseError",
    "TokenAuthenticationError",
    "RateLimited",
    "RateLimitSignal",
    "InvalidInput",
    "Unexpected",
]

__version__ = "0.1.0"
