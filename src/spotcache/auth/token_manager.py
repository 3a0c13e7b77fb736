from __future__ import annotations

import logging
import time
import typing as t
from dataclasses import dataclass, field

import anyio
import httpx

from spotcache.errors import NetworkError, ParseError, TokenAuthenticationError
from spotcache.monitoring.metrics import token_refresh_total
from spotcache.utils.config import TOKEN_URL

_logger = logging.getLogger(__name__)


@dataclass
class TokenState:
    client_id: str
    client_secret: str = field(repr=False)
    access_token: t.Optional[str] = field(default=None, repr=False)
    # Already moved back by the safety margin.
    expires_at: t.Optional[float] = None


class TokenManager:
    """Hands out a valid client-credentials bearer token, refreshing as needed.

    Without ``single_flight`` the check-and-refresh is not serialized: callers
    racing through an expired window may each refresh. That costs an extra
    round trip, never a wrong token. Pass ``single_flight=True`` (or guard the
    shared manager with a lock yourself) to trade that for serialized checks.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        http_client: t.Optional[httpx.AsyncClient] = None,
        token_url: str = TOKEN_URL,
        expiry_margin_seconds: int = 60,
        single_flight: bool = False,
        clock: t.Callable[[], float] = time.time,
    ) -> None:
        self._state = TokenState(client_id=client_id, client_secret=client_secret)
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient()
        self._token_url = token_url
        self._margin = expiry_margin_seconds
        self._clock = clock
        self._lock: t.Optional[anyio.Lock] = anyio.Lock() if single_flight else None

    @property
    def state(self) -> TokenState:
        return self._state

    def _is_valid(self) -> bool:
        if self._state.access_token is None or self._state.expires_at is None:
            return False
        return self._clock() < self._state.expires_at

    async def _refresh(self) -> None:
        form = {
            "grant_type": "client_credentials",
            "client_id": self._state.client_id,
            "client_secret": self._state.client_secret,
        }
        try:
            response = await self._http.post(self._token_url, data=form)
        except httpx.HTTPError as exc:
            token_refresh_total.inc(outcome="network_error")
            raise NetworkError(f"token request failed: {exc}") from exc

        if not response.is_success:
            token_refresh_total.inc(outcome="rejected")
            try:
                message = response.text or "Unknown error"
            except (UnicodeDecodeError, httpx.HTTPError):
                message = "Unknown error"
            _logger.warning("Token endpoint rejected credentials with status %s", response.status_code)
            raise TokenAuthenticationError(message)

        try:
            payload = response.json()
            access_token = str(payload["access_token"])
            expires_in = int(payload["expires_in"])
        except (ValueError, KeyError, TypeError) as exc:
            token_refresh_total.inc(outcome="parse_error")
            raise ParseError(f"malformed token response: {exc}") from exc

        # Assign both fields together, after the response is fully read.
        self._state.access_token = access_token
        self._state.expires_at = self._clock() + expires_in - self._margin
        token_refresh_total.inc(outcome="ok")
        _logger.debug("Refreshed access token, valid for %ss", expires_in - self._margin)

    async def get_valid_token(self) -> str:
        if self._lock is None:
            return await self._ensure_token()
        async with self._lock:
            return await self._ensure_token()

    async def _ensure_token(self) -> str:
        if not self._is_valid():
            await self._refresh()
        assert self._state.access_token is not None
        return self._state.access_token

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
