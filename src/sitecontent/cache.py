"""Time-based cache for values loaded from the generated manifests."""

import time
from typing import Callable, Hashable


class TTLCache:
    """Mapping from key to (value, stored_at) with expiry checked on read.

    Entries older than `ttl` seconds are treated as missing and dropped the
    next time they are looked up. `clock` is injectable for tests.
    """

    _MISSING = object()

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries = {}

    def _is_fresh(self, stored_at: float) -> bool:
        return self._clock() - stored_at < self.ttl

    def get(self, key: Hashable, default=None):
        entry = self._entries.get(key)
        if entry is None:
            return default
        value, stored_at = entry
        if not self._is_fresh(stored_at):
            del self._entries[key]
            return default
        return value

    def set(self, key: Hashable, value) -> None:
        self._entries[key] = (value, self._clock())

    def get_or_compute(self, key: Hashable, compute: Callable[[], object]):
        """Return the cached value, or call compute() and cache its result.

        Exceptions from compute() propagate and nothing is cached.
        """
        value = self.get(key, self._MISSING)
        if value is self._MISSING:
            value = compute()
            self.set(key, value)
        return value

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, self._MISSING) is not self._MISSING

    def __len__(self) -> int:
        return len(self._entries)
