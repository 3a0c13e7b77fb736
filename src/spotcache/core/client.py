from __future__ import annotations

import re
import typing as t

import httpx

from spotcache.auth.token_manager import TokenManager
from spotcache.cache.ttl_cache import TTLCache
from spotcache.errors import InvalidInput, NetworkError
from spotcache.utils.config import ClientConfig

from .models import (
    Album,
    Artist,
    ArtistsResponse,
    GenreSeeds,
    NewReleases,
    Page,
    Playlist,
    RecommendationsRequest,
    RecommendationsResponse,
    SimplifiedAlbum,
    SimplifiedTrack,
    Track,
    TracksResponse,
)
from .pipeline import RequestPipeline

MAX_SEVERAL_ALBUMS = 20
MAX_SEVERAL_ARTISTS = 50
MAX_SEVERAL_TRACKS = 50
MAX_RECOMMENDATION_SEEDS = 5

_SPOTIFY_URL_RE = re.compile(r"spotify\.com/(playlist|track|album|artist)/([a-zA-Z0-9]+)")


def extract_spotify_id(url: str) -> t.Optional[t.Tuple[str, str]]:
    """Return ``(kind, id)`` for an open.spotify.com link, or None."""
    match = _SPOTIFY_URL_RE.search(url)
    if match is None:
        return None
    return match.group(1), match.group(2)


def _market_query(market: t.Optional[str]) -> t.Optional[str]:
    return f"market={market}" if market else None


class SpotifyClient:
    """Client-credentials access to the Spotify catalog.

    Every call goes through one ``RequestPipeline``, so responses are cached
    for ``config.cache.ttl_seconds`` and the bearer token is refreshed
    transparently. Errors from ``spotcache.errors`` propagate unchanged.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        config: t.Optional[ClientConfig] = None,
        http_client: t.Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self._config.http.timeout_seconds)
        self.token_manager = TokenManager(
            client_id,
            client_secret,
            http_client=self._http,
            token_url=self._config.auth.token_url,
            expiry_margin_seconds=self._config.auth.expiry_margin_seconds,
            single_flight=self._config.auth.single_flight,
        )
        self.pipeline = RequestPipeline(
            self.token_manager,
            TTLCache(ttl_seconds=self._config.cache.ttl_seconds, max_size=self._config.cache.max_size),
            http_client=self._http,
            base_url=self._config.http.base_url,
        )

    # Albums

    async def get_album(self, album_id: str) -> Album:
        return await self.pipeline.execute_cached_get(f"/albums/{album_id}", Album)

    async def get_several_albums(self, album_ids: t.Sequence[str]) -> t.List[Album]:
        return await self.pipeline.execute_cached_bulk_get(
            album_ids,
            item_path="/albums/{id}",
            batch_path="/albums",
            response_key="albums",
            shape=Album,
            max_ids=MAX_SEVERAL_ALBUMS,
        )

    async def get_album_tracks(self, album_id: str) -> Page[SimplifiedTrack]:
        return await self.pipeline.execute_cached_get(f"/albums/{album_id}/tracks", Page[SimplifiedTrack])

    async def get_new_album_releases(
        self, limit: t.Optional[int] = None, offset: t.Optional[int] = None
    ) -> NewReleases:
        limit = max(1, min(50, 20 if limit is None else limit))
        offset = max(0, offset or 0)
        return await self.pipeline.execute_cached_get(
            f"/browse/new-releases?limit={limit}&offset={offset}", NewReleases
        )

    # Artists

    async def get_artist(self, artist_id: str) -> Artist:
        return await self.pipeline.execute_cached_get(f"/artists/{artist_id}", Artist)

    async def get_several_artists(self, artist_ids: t.Sequence[str]) -> t.List[Artist]:
        return await self.pipeline.execute_cached_bulk_get(
            artist_ids,
            item_path="/artists/{id}",
            batch_path="/artists",
            response_key="artists",
            shape=Artist,
            max_ids=MAX_SEVERAL_ARTISTS,
        )

    async def get_artist_albums(self, artist_id: str) -> Page[SimplifiedAlbum]:
        return await self.pipeline.execute_cached_get(f"/artists/{artist_id}/albums", Page[SimplifiedAlbum])

    async def get_artist_top_tracks(self, artist_id: str, market: t.Optional[str] = None) -> TracksResponse:
        query = _market_query(market)
        path = f"/artists/{artist_id}/top-tracks" + (f"?{query}" if query else "")
        return await self.pipeline.execute_cached_get(path, TracksResponse)

    async def get_related_artists(self, artist_id: str) -> ArtistsResponse:
        return await self.pipeline.execute_cached_get(f"/artists/{artist_id}/related-artists", ArtistsResponse)

    # Tracks

    async def get_track(self, track_id: str, market: t.Optional[str] = None) -> Track:
        query = _market_query(market)
        path = f"/tracks/{track_id}" + (f"?{query}" if query else "")
        return await self.pipeline.execute_cached_get(path, Track)

    async def get_several_tracks(
        self, track_ids: t.Sequence[str], market: t.Optional[str] = None
    ) -> t.List[Track]:
        return await self.pipeline.execute_cached_bulk_get(
            track_ids,
            item_path="/tracks/{id}",
            batch_path="/tracks",
            response_key="tracks",
            shape=Track,
            max_ids=MAX_SEVERAL_TRACKS,
            query=_market_query(market),
        )

    # Misc

    async def get_playlist(self, playlist_id: str) -> Playlist:
        return await self.pipeline.execute_cached_get(f"/playlists/{playlist_id}", Playlist)

    async def get_genre_seeds(self) -> GenreSeeds:
        return await self.pipeline.execute_cached_get("/recommendations/available-genre-seeds", GenreSeeds)

    async def get_recommendations(self, request: RecommendationsRequest) -> RecommendationsResponse:
        seeds = request.seed_count()
        if seeds < 1:
            raise InvalidInput("At least one seed (artist, genre, or track) is required.", bound="min=1")
        if seeds > MAX_RECOMMENDATION_SEEDS:
            raise InvalidInput(
                f"No more than {MAX_RECOMMENDATION_SEEDS} seeds in total are allowed.",
                bound=f"max={MAX_RECOMMENDATION_SEEDS}",
            )
        path = f"/recommendations?{request.to_query_string()}"
        return await self.pipeline.execute_cached_get(path, RecommendationsResponse)

    async def resolve_short_url(self, short_url: str) -> str:
        """Follow redirects from a spotify.link style URL and return where it lands.

        Unauthenticated and uncached. Pair with ``extract_spotify_id``.
        """
        try:
            response = await self._http.get(short_url, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise NetworkError(f"resolving {short_url} failed: {exc}") from exc
        return str(response.url)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "SpotifyClient":
        return self

    async def __aexit__(self, *exc_info: t.Any) -> None:
        await self.aclose()
