"""Request pipeline and the catalog endpoints built on it."""

from .client import SpotifyClient, extract_spotify_id
from .models import RecommendationsRequest, RecommendationsResponse
from .pipeline import RequestPipeline

__all__ = [
    "RecommendationsRequest",
    "RecommendationsResponse",
    "RequestPipeline",
    "SpotifyClient",
    "extract_spotify_id",
]
