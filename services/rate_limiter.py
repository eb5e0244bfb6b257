"""Best-effort per-client rate limiting over an ephemeral TTL cache.

The limiter is a deterrent, not a meter. The backing cache may drop entries
before their TTL (capacity pressure, process recycling), and two concurrent
requests from the same key can both read the same count before either writes,
so one increment is lost. Both effects only ever under-count. The
read-then-write sequence in ``RateLimiter.check_and_increment`` is the
contract; it is not an atomic increment.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol

from models import ContactError, RateLimitEntry

Clock = Callable[[], float]


class RateLimitError(ContactError):
    """Raised when a client exceeds the request threshold for the window."""

    status_code = 429


class TTLCache(Protocol):
    """Ephemeral key-value store with per-entry expiry."""

    def get(self, key: str) -> RateLimitEntry | None: ...

    def put(self, key: str, entry: RateLimitEntry, ttl_seconds: float) -> None: ...


class InMemoryTTLCache:
    """Process-local TTL cache with bounded capacity and no locking."""

    def __init__(self, *, clock: Clock = time.time, max_entries: int = 10_000) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._clock = clock
        self._max_entries = max_entries
        self._entries: dict[str, tuple[RateLimitEntry, float]] = {}

    def get(self, key: str) -> RateLimitEntry | None:
        stored = self._entries.get(key)
        if stored is None:
            return None
        entry, expires_at = stored
        if expires_at <= self._clock():
            self._entries.pop(key, None)
            return None
        return entry

    def put(self, key: str, entry: RateLimitEntry, ttl_seconds: float) -> None:
        now = self._clock()
        if ttl_seconds <= 0:
            self._entries.pop(key, None)
            return
        if key not in self._entries and len(self._entries) >= self._max_entries:
            self._evict(now)
        self._entries[key] = (entry, now + ttl_seconds)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _evict(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        if len(self._entries) < self._max_entries:
            return
        # Under pressure drop whichever live entry would expire soonest.
        victim = min(self._entries, key=lambda key: self._entries[key][1])
        del self._entries[victim]


class RateLimiter:
    """Fixed-window hit counter keyed by client identifier."""

    def __init__(
        self,
        cache: TTLCache,
        *,
        max_requests: int,
        window_seconds: float,
        clock: Clock = time.time,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self._cache = cache
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock

    def check_and_increment(self, client_key: str) -> bool:
        """Count one hit for ``client_key``; ``False`` once the window is full."""
        now = self._clock()
        entry = self._cache.get(client_key)
        if entry is None or entry.window_expiry <= now:
            entry = RateLimitEntry(key=client_key, count=0, window_expiry=now + self.window_seconds)

        if entry.count >= self.max_requests:
            return False

        remaining = entry.window_expiry - now
        self._cache.put(
            client_key,
            RateLimitEntry(key=client_key, count=entry.count + 1, window_expiry=entry.window_expiry),
            remaining,
        )
        return True
