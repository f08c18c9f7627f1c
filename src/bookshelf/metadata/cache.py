# ABOUTME: In-process time-to-live cache keyed by string, with an injectable clock.
# ABOUTME: Each provider adapter and each import session store owns one instance.

import time
from collections.abc import Callable
from typing import Generic, TypeVar

V = TypeVar("V")

DEFAULT_TTL_SECONDS = 15 * 60


class TTLCache(Generic[V]):
    """Explicit key -> (value, stored_at) store with a fixed TTL.

    Expired entries are never returned: ``get`` evicts them on access, and
    ``sweep`` removes the rest in one pass.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[V, float]] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def _expired(self, stored_at: float) -> bool:
        return self._clock() - stored_at > self._ttl

    def get(self, key: str) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._expired(stored_at):
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: V) -> None:
        self._entries[key] = (value, self._clock())

    def pop(self, key: str) -> V | None:
        """Remove and return a live entry; expired entries come back as None."""
        entry = self._entries.pop(key, None)
        if entry is None:
            return None
        value, stored_at = entry
        return None if self._expired(stored_at) else value

    def sweep(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        stale = [key for key, (_, stored_at) in self._entries.items() if self._expired(stored_at)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
