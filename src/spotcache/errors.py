from __future__ import annotations

import typing as t
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitSignal:
    retry_after_seconds: int


class SpotcacheError(Exception):
    """Base class for every failure surfaced by the request core."""


class NetworkError(SpotcacheError):
    """The transport failed before a response was received."""


class ParseError(SpotcacheError):
    """A success response carried a body that does not fit the expected shape."""


class TokenAuthenticationError(SpotcacheError):
    """The authorization server rejected the client credentials."""

    def __init__(self, message: str) -> None:
        super().__init__(f"token authentication error: {message}")
        self.body = message


class RateLimited(SpotcacheError):
    def __init__(self, retry_after_seconds: int) -> None:
        super().__init__(f"rate limited by Spotify Web API, retry after {retry_after_seconds}s")
        self.retry_after_seconds = retry_after_seconds

    @property
    def signal(self) -> RateLimitSignal:
        return RateLimitSignal(self.retry_after_seconds)


class InvalidInput(SpotcacheError):
    """A caller-supplied argument violates a documented bound. Raised before any I/O."""

    def __init__(self, message: str, bound: t.Optional[str] = None) -> None:
        super().__init__(message)
        self.bound = bound


class Unexpected(SpotcacheError):
    def __init__(self, message: str, status: t.Optional[int] = None) -> None:
        super().__init__(f"an unexpected error occurred: {message}")
        self.status = status
