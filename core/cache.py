# Path: core/cache.py
# Purpose: Provide a small in-process key/value cache with an explicit lifetime per key.
# Layer: core.
# Details: Injected into services instead of living as module-level state; expired entries are dropped on read.

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

PRODUCTS_ALL_KEY = "products:all"


class TTLCache:
    """Thread-safe mapping of keys to values that expire after a per-key TTL (seconds)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() > expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
