"""
In-memory TTL cache for upstream FPL responses.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CachedEntry:
    key: str
    payload: Any
    expires_at: float


class TTLCache:
    """
    Time-bounded memoization keyed by logical resource name
    (e.g. "bootstrap-static", "entry-history-123").

    Entries are evicted lazily: an expired entry is dropped the next time
    its key is looked up. All access goes through a lock because sync
    FastAPI endpoints and the leaderboard fan-out run on worker threads.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, CachedEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached payload, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                logger.debug(f"Cache entry {key} expired")
                return None
            return entry.payload

    def set(self, key: str, payload: Any, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = CachedEntry(
                key=key,
                payload=payload,
                expires_at=self._clock() + ttl_seconds
            )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
