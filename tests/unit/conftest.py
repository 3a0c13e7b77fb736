"""Shared fixtures and fakes for unit tests."""

from __future__ import annotations

import typing as t

import httpx
import pytest

from spotcache.auth.token_manager import TokenManager
from spotcache.cache.ttl_cache import TTLCache
from spotcache.core.pipeline import RequestPipeline

TOKEN_URL = "https://accounts.spotify.com/api/token"


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSpotify:
    """httpx transport standing in for both the accounts and the catalog API.

    Catalog responses are looked up by path+query in ``routes``; anything
    unrouted answers 404. Every request is recorded.
    """

    def __init__(self) -> None:
        self.requests: t.List[httpx.Request] = []
        self.routes: t.Dict[str, httpx.Response] = {}
        self.token_response = httpx.Response(
            200, json={"access_token": "token-1", "token_type": "Bearer", "expires_in": 3600}
        )
        self._token_count = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == TOKEN_URL:
            self._token_count += 1
            if self.token_response.status_code == 200:
                return httpx.Response(
                    200,
                    json={"access_token": f"token-{self._token_count}", "token_type": "Bearer", "expires_in": 3600},
                )
            rejected = self.token_response
            return httpx.Response(rejected.status_code, headers=rejected.headers, content=rejected.content)
        key = request.url.raw_path.decode()
        if key.startswith("/v1"):
            key = key[len("/v1"):]
        routed = self.routes.get(key)
        if routed is None:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(routed.status_code, headers=routed.headers, content=routed.content)

    @property
    def token_requests(self) -> t.List[httpx.Request]:
        return [r for r in self.requests if str(r.url) == TOKEN_URL]

    @property
    def api_requests(self) -> t.List[httpx.Request]:
        return [r for r in self.requests if str(r.url) != TOKEN_URL]


def track_payload(track_id: str, name: str = "Song") -> dict:
    artist = {"id": "ar1", "name": "Artist", "external_urls": {"spotify": "https://open.spotify.com/artist/ar1"}}
    return {
        "id": track_id,
        "name": name,
        "duration_ms": 200000,
        "preview_url": None,
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
        "artists": [artist],
        "album": {
            "id": "al1",
            "name": "Album",
            "album_type": "album",
            "total_tracks": 10,
            "release_date": "2020-01-01",
            "artists": [artist],
            "external_urls": {"spotify": "https://open.spotify.com/album/al1"},
            "images": [],
        },
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_spotify():
    return FakeSpotify()


@pytest.fixture
def http_client(fake_spotify):
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_spotify.handler))


@pytest.fixture
def token_manager(http_client, clock):
    return TokenManager("client-id", "client-secret", http_client=http_client, clock=clock)


@pytest.fixture
def pipeline(token_manager, http_client):
    return RequestPipeline(token_manager, TTLCache(ttl_seconds=600), http_client=http_client)


@pytest.fixture
def make_track():
    return track_payload
