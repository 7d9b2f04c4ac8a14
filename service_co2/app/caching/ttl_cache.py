"""
In-process TTL cache for upstream responses.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from shared.logging import get_logger


DEFAULT_TTL_SECONDS = 60 * 60


@dataclass
class CacheEntry:
    """Cached value with its absolute expiry on the cache clock."""
    expires_at: float
    value: Any


class TTLCache:
    """Key/value store with one uniform TTL and lazy expiry.

    Expiry is checked on read: an entry whose ``expires_at`` lies in the past
    is dropped by the ``get`` that finds it and reported as missing. Nothing
    sweeps the store in the background and there is no capacity bound.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Optional[Callable[[], float]] = None):
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}
        self.logger = get_logger("co2.cache")

    def set(self, key: str, value: Any) -> None:
        """Store value, replacing any existing entry."""
        self._entries[key] = CacheEntry(expires_at=self._clock() + self.ttl_seconds, value=value)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live value for key, or default if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return default

        if self._clock() > entry.expires_at:
            del self._entries[key]
            self.logger.debug("Cache entry expired", key=key)
            return default

        return entry.value

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        # Presence only; does not evict.
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
