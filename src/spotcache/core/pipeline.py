from __future__ import annotations

import logging
import re
import time
import typing as t

import httpx
from pydantic import TypeAdapter, ValidationError

from spotcache.auth.token_manager import TokenManager
from spotcache.cache.ttl_cache import TTLCache
from spotcache.errors import InvalidInput, NetworkError, ParseError, RateLimited, Unexpected
from spotcache.monitoring.metrics import cache_lookups_total, http_responses_total, request_latency_seconds
from spotcache.utils.config import API_BASE_URL

_logger = logging.getLogger(__name__)

T = t.TypeVar("T")

# ASCII digits only.
_RETRY_AFTER_RE = re.compile(r"[0-9]+")


class RequestPipeline:
    """Cache-first authenticated GETs against the catalog API.

    Requests are keyed by their path plus query string. A cache hit never
    touches the token manager or the network. Nothing is written to the cache
    until a 200 response has been parsed, so a cancelled or failed request
    leaves cached state as it was.
    """

    def __init__(
        self,
        token_manager: TokenManager,
        cache: t.Optional[TTLCache] = None,
        *,
        http_client: t.Optional[httpx.AsyncClient] = None,
        base_url: str = API_BASE_URL,
    ) -> None:
        self._tokens = token_manager
        self._cache = cache if cache is not None else TTLCache()
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient()
        self._base_url = base_url.rstrip("/")

    @property
    def cache(self) -> TTLCache:
        return self._cache

    def cache_get(self, key: str) -> t.Optional[t.Any]:
        return self._cache.get(key)

    def cache_set(self, key: str, value: t.Any) -> None:
        self._cache.set(key, value)

    def _load_cached(self, key: str, adapter: TypeAdapter) -> t.Tuple[bool, t.Any]:
        cached = self._cache.get(key)
        if cached is None:
            cache_lookups_total.inc(result="miss")
            return False, None
        try:
            value = adapter.validate_python(cached)
        except ValidationError:
            _logger.debug("Cached value for %s no longer fits the requested shape", key)
            cache_lookups_total.inc(result="stale_shape")
            return False, None
        cache_lookups_total.inc(result="hit")
        return True, value

    async def _fetch_json(self, path: str) -> t.Any:
        token = await self._tokens.get_valid_token()
        url = f"{self._base_url}{path}"
        started = time.perf_counter()
        try:
            response = await self._http.get(url, headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as exc:
            raise NetworkError(f"request to {path} failed: {exc}") from exc
        request_latency_seconds.observe(time.perf_counter() - started)
        http_responses_total.inc(status=response.status_code)

        if response.status_code == httpx.codes.OK:
            try:
                return response.json()
            except ValueError as exc:
                raise ParseError(f"failed to parse data from {path}: {exc}") from exc

        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            retry_after = response.headers.get("Retry-After", "").strip()
            if _RETRY_AFTER_RE.fullmatch(retry_after):
                seconds = int(retry_after)
                _logger.warning("Rate limited on %s, retry after %ss", path, seconds)
                raise RateLimited(seconds)
            raise Unexpected("Rate limited by Spotify Web API, but no retry time provided.", status=429)

        raise Unexpected(f"API request failed with status: {response.status_code}", status=response.status_code)

    async def execute_cached_get(self, path: str, shape: t.Any = t.Any) -> t.Any:
        """GET ``path`` and parse it into ``shape``, serving from cache when possible."""
        adapter: TypeAdapter = TypeAdapter(shape)
        hit, value = self._load_cached(path, adapter)
        if hit:
            return value

        payload = await self._fetch_json(path)
        try:
            value = adapter.validate_python(payload)
        except ValidationError as exc:
            raise ParseError(f"failed to parse data from {path}: {exc}") from exc
        self._cache.set(path, adapter.dump_python(value, mode="json"))
        return value

    async def execute_cached_bulk_get(
        self,
        ids: t.Sequence[str],
        *,
        item_path: str,
        batch_path: str,
        response_key: str,
        shape: t.Any,
        max_ids: int,
        query: t.Optional[str] = None,
    ) -> t.List[t.Any]:
        """Fetch several items by ID with one batched call for the uncached ones.

        ``item_path`` is a format string with an ``{id}`` field; it names the
        per-item cache key, shared with single-item lookups. Results come back
        cached-first, then freshly fetched, each group in request order.
        """
        if len(ids) < 1:
            raise InvalidInput("Please provide at least 1 ID.", bound="min=1")
        if len(ids) > max_ids:
            raise InvalidInput(f"Maximum of {max_ids} IDs.", bound=f"max={max_ids}")

        suffix = f"?{query}" if query else ""
        adapter: TypeAdapter = TypeAdapter(shape)
        cached: t.List[t.Any] = []
        missing: t.List[str] = []
        for item_id in dict.fromkeys(ids):
            hit, value = self._load_cached(item_path.format(id=item_id) + suffix, adapter)
            if hit:
                cached.append(value)
            else:
                missing.append(item_id)

        if not missing:
            return cached

        joined = "&" + query if query else ""
        payload = await self._fetch_json(f"{batch_path}?ids={','.join(missing)}{joined}")
        if not isinstance(payload, dict) or not isinstance(payload.get(response_key), list):
            raise ParseError(f"expected a list under '{response_key}' from {batch_path}")

        list_adapter: TypeAdapter = TypeAdapter(t.List[t.Optional[shape]])
        try:
            items = list_adapter.validate_python(payload[response_key])
        except ValidationError as exc:
            raise ParseError(f"failed to parse data from {batch_path}: {exc}") from exc

        fetched = []
        for item_id, item in zip(missing, items):
            if item is None:
                # Unknown IDs come back as null entries.
                continue
            self._cache.set(item_path.format(id=item_id) + suffix, adapter.dump_python(item, mode="json"))
            fetched.append(item)
        return cached + fetched

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "RequestPipeline":
        return self

    async def __aexit__(self, *exc_info: t.Any) -> None:
        await self.aclose()
