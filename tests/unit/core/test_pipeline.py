"""Unit tests for RequestPipeline.execute_cached_get."""

from __future__ import annotations

import typing as t
from unittest.mock import AsyncMock

import httpx
import pytest
from pydantic import BaseModel

from spotcache.cache.ttl_cache import TTLCache
from spotcache.core.models import Track
from spotcache.core.pipeline import RequestPipeline
from spotcache.errors import NetworkError, ParseError, RateLimited, TokenAuthenticationError, Unexpected


class Genres(BaseModel):
    genres: t.List[str]


@pytest.mark.asyncio
class TestExecuteCachedGet:
    async def test_fetches_with_bearer_token_and_caches(self, pipeline, fake_spotify, make_track):
        """Test a miss fetches with a bearer token and caches the result."""
        fake_spotify.routes["/tracks/abc"] = httpx.Response(200, json=make_track("abc"))

        track = await pipeline.execute_cached_get("/tracks/abc", Track)

        assert isinstance(track, Track)
        assert track.id == "abc"
        [request] = fake_spotify.api_requests
        assert str(request.url) == "https://api.spotify.com/v1/tracks/abc"
        assert request.headers["Authorization"] == "Bearer token-1"
        assert pipeline.cache_get("/tracks/abc")["id"] == "abc"

    async def test_cached_value_is_json_representation(self, pipeline, fake_spotify, make_track):
        """Test the cache stores the JSON form of the response."""
        fake_spotify.routes["/tracks/abc"] = httpx.Response(200, json=make_track("abc"))

        await pipeline.execute_cached_get("/tracks/abc", Track)

        cached = pipeline.cache_get("/tracks/abc")
        assert isinstance(cached, dict)
        assert cached["album"]["id"] == "al1"

    async def test_cache_hit_skips_token_and_network(self):
        """Test a cache hit needs neither a token nor the network."""
        token_manager = AsyncMock()
        http_client = AsyncMock()
        pipeline = RequestPipeline(token_manager, TTLCache(), http_client=http_client)
        pipeline.cache_set("/recommendations/available-genre-seeds", {"genres": ["jazz"]})

        result = await pipeline.execute_cached_get("/recommendations/available-genre-seeds", Genres)

        assert result == Genres(genres=["jazz"])
        token_manager.get_valid_token.assert_not_called()
        http_client.get.assert_not_called()

    async def test_second_call_served_from_cache(self, pipeline, fake_spotify, make_track):
        """Test a repeated call is served from the cache."""
        fake_spotify.routes["/tracks/abc"] = httpx.Response(200, json=make_track("abc"))

        first = await pipeline.execute_cached_get("/tracks/abc", Track)
        second = await pipeline.execute_cached_get("/tracks/abc", Track)

        assert first == second
        assert len(fake_spotify.api_requests) == 1
        assert len(fake_spotify.token_requests) == 1

    async def test_cached_value_of_wrong_shape_is_a_miss(self, pipeline, fake_spotify, make_track):
        """Test a cached value that fails validation is refetched."""
        pipeline.cache_set("/tracks/abc", {"unrelated": True})
        fake_spotify.routes["/tracks/abc"] = httpx.Response(200, json=make_track("abc"))

        track = await pipeline.execute_cached_get("/tracks/abc", Track)

        assert track.id == "abc"
        assert len(fake_spotify.api_requests) == 1

    async def test_expired_entry_refetches(self, token_manager, http_client, fake_spotify, clock, make_track):
        """Test an expired entry is fetched again."""
        pipeline = RequestPipeline(token_manager, TTLCache(ttl_seconds=60, clock=clock), http_client=http_client)
        fake_spotify.routes["/tracks/abc"] = httpx.Response(200, json=make_track("abc"))

        await pipeline.execute_cached_get("/tracks/abc", Track)
        clock.advance(61)
        await pipeline.execute_cached_get("/tracks/abc", Track)

        assert len(fake_spotify.api_requests) == 2

    async def test_untyped_shape_returns_raw_json(self, pipeline, fake_spotify):
        """Test the default shape returns the decoded JSON as is."""
        fake_spotify.routes["/me/raw"] = httpx.Response(200, json={"a": [1, 2]})

        assert await pipeline.execute_cached_get("/me/raw") == {"a": [1, 2]}

    async def test_rate_limited_with_retry_after(self, pipeline, fake_spotify):
        """Test a 429 with Retry-After raises RateLimited."""
        fake_spotify.routes["/tracks/abc"] = httpx.Response(429, headers={"Retry-After": "5"})

        with pytest.raises(RateLimited) as excinfo:
            await pipeline.execute_cached_get("/tracks/abc", Track)

        assert excinfo.value.retry_after_seconds == 5
        assert excinfo.value.signal.retry_after_seconds == 5
        assert pipeline.cache_get("/tracks/abc") is None

    async def test_rate_limited_without_retry_after(self, pipeline, fake_spotify):
        """Test a 429 without Retry-After is unexpected."""
        fake_spotify.routes["/tracks/abc"] = httpx.Response(429)

        with pytest.raises(Unexpected, match="no retry time provided"):
            await pipeline.execute_cached_get("/tracks/abc", Track)

    async def test_rate_limited_with_unparseable_retry_after(self, pipeline, fake_spotify):
        """Test a 429 with a non-numeric Retry-After is unexpected."""
        fake_spotify.routes["/tracks/abc"] = httpx.Response(429, headers={"Retry-After": "soon"})

        with pytest.raises(Unexpected) as excinfo:
            await pipeline.execute_cached_get("/tracks/abc", Track)
        assert excinfo.value.status == 429

    @pytest.mark.parametrize("raw", [b"\xb2", b"\xb9\xb3", b"-1", b"1.5", b"5 seconds"])
    async def test_rate_limited_with_non_integer_retry_after(self, pipeline, fake_spotify, raw):
        """Test a 429 whose Retry-After is not ASCII digits is unexpected."""
        fake_spotify.routes["/tracks/abc"] = httpx.Response(429, headers=[(b"Retry-After", raw)])

        with pytest.raises(Unexpected) as excinfo:
            await pipeline.execute_cached_get("/tracks/abc", Track)
        assert excinfo.value.status == 429

    async def test_other_status_is_unexpected_with_code(self, pipeline, fake_spotify):
        """Test other error statuses raise Unexpected with the code."""
        with pytest.raises(Unexpected, match="404") as excinfo:
            await pipeline.execute_cached_get("/tracks/missing", Track)
        assert excinfo.value.status == 404

    async def test_malformed_json_is_parse_error(self, pipeline, fake_spotify):
        """Test an undecodable body is a parse error and is not cached."""
        fake_spotify.routes["/tracks/abc"] = httpx.Response(200, content=b"{not json")

        with pytest.raises(ParseError):
            await pipeline.execute_cached_get("/tracks/abc", Track)
        assert pipeline.cache_get("/tracks/abc") is None

    async def test_wrong_shape_on_success_is_parse_error(self, pipeline, fake_spotify):
        """Test a body of the wrong shape is a parse error."""
        fake_spotify.routes["/tracks/abc"] = httpx.Response(200, json={"id": "abc"})

        with pytest.raises(ParseError):
            await pipeline.execute_cached_get("/tracks/abc", Track)

    async def test_auth_failure_propagates_unchanged(self, pipeline, fake_spotify):
        """Test token errors reach the caller before any API request."""
        fake_spotify.token_response = httpx.Response(400, text="invalid_client")

        with pytest.raises(TokenAuthenticationError):
            await pipeline.execute_cached_get("/tracks/abc", Track)
        assert fake_spotify.api_requests == []

    async def test_transport_failure_is_network_error(self, token_manager):
        """Test a transport failure becomes NetworkError."""
        token_manager.get_valid_token = AsyncMock(return_value="tok")

        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        pipeline = RequestPipeline(
            token_manager, TTLCache(), http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        with pytest.raises(NetworkError) as excinfo:
            await pipeline.execute_cached_get("/tracks/abc", Track)
        assert isinstance(excinfo.value.__cause__, httpx.ReadTimeout)

    async def test_base_url_trailing_slash(self, token_manager, http_client, fake_spotify, make_track):
        """Test a trailing slash on the base URL is tolerated."""
        pipeline = RequestPipeline(
            token_manager, TTLCache(), http_client=http_client, base_url="https://api.spotify.com/v1/"
        )
        fake_spotify.routes["/tracks/abc"] = httpx.Response(200, json=make_track("abc"))

        await pipeline.execute_cached_get("/tracks/abc", Track)
        assert str(fake_spotify.api_requests[0].url) == "https://api.spotify.com/v1/tracks/abc"
