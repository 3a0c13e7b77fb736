from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, TypeVar

import anyio

from spotcache.errors import RateLimited

T = TypeVar("T")

_logger = logging.getLogger(__name__)


async def with_rate_limit_retries(
    coro_factory: Callable[[], Awaitable[T]],
    attempts: int = 3,
    max_delay_seconds: Optional[float] = None,
) -> T:
    """Re-run ``coro_factory`` after the delay carried by ``RateLimited``.

    Meant for callers of the pipeline. Any other error propagates on the first
    occurrence.
    """
    attempts = max(1, attempts)
    last_exc: RateLimited | None = None
    for attempt in range(attempts):
        try:
            return await coro_factory()
        except RateLimited as exc:
            last_exc = exc
            if attempt == attempts - 1:
                break
            delay = exc.retry_after_seconds
            if max_delay_seconds is not None and delay > max_delay_seconds:
                break
            _logger.info("Rate limited, retrying in %ss (attempt %d/%d)", delay, attempt + 1, attempts)
            await anyio.sleep(delay)
    assert last_exc is not None
    raise last_exc
