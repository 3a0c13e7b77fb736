from __future__ import annotations

import copy
import threading
import time
import typing as t
from collections import OrderedDict
from dataclasses import dataclass


@dataclass
class CacheEntry:
    value: t.Any
    expires_at: float


class TTLCache:
    """String-keyed cache with an absolute expiry per entry and optional LRU bound.

    Values are deep-copied on the way in and out, so the lock only guards the
    map itself and callers can mutate what they get back freely. The lock is a
    plain mutex: no method awaits, so it is never held across I/O.
    """

    def __init__(
        self,
        ttl_seconds: float = 600.0,
        max_size: t.Optional[int] = None,
        clock: t.Callable[[], float] = time.monotonic,
    ) -> None:
        self._store: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def default_ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> t.Optional[t.Any]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                self._store.pop(key, None)
                return None
            self._store.move_to_end(key)
            value = entry.value
        return copy.deepcopy(value)

    def set(self, key: str, value: t.Any, ttl_seconds: t.Optional[float] = None) -> None:
        ttl = self._ttl if ttl_seconds is None else ttl_seconds
        entry = CacheEntry(value=copy.deepcopy(value), expires_at=self._clock() + ttl)
        with self._lock:
            self._store[key] = entry
            self._store.move_to_end(key)
            if self._max_size is not None and self._max_size > 0:
                while len(self._store) > self._max_size:
                    self._store.popitem(last=False)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
