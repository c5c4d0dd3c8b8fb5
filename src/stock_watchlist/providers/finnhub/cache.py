"""Time-to-live cache for Finnhub responses."""
import time
from collections.abc import Callable
from typing import Any

DEFAULT_MAX_ENTRIES = 1024


class TTLResponseCache:
    """Cache of decoded JSON responses, each entry with its own expiry.

    Keys are request identities (path plus query, without the token). Expired
    entries are dropped on lookup and whenever a new value is stored. At most
    max_entries values are kept; the oldest stored entry is evicted first.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        """Initialize empty cache.

        Args:
            clock: Monotonic time source in seconds. Injectable for tests.
            max_entries: Upper bound on stored entries.
        """
        self._clock = clock
        self._max_entries = max(1, max_entries)
        # key -> (expires_at, value), in insertion order
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value for ttl_seconds, purging expired entries first."""
        now = self._clock()
        self._purge_expired(now)
        self._entries.pop(key, None)
        while len(self._entries) >= self._max_entries:
            del self._entries[next(iter(self._entries))]
        self._entries[key] = (now + ttl_seconds, value)

    def clear(self) -> None:
        """Clear all cached data."""
        self._entries.clear()

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
