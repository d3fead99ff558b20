"""
CacheManager module for in-process caching of parsed schema documents and metadata
Location: src/schema_registry/cache_manager.py
"""

import threading
from typing import Any, Dict, Hashable, Optional


class CacheManager:
    """Unbounded key -> value cache owned by a single SchemaStore instance"""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._entries: Dict[Hashable, Any] = {}
        self._lock = threading.Lock()

    def get(self, cache_key: Hashable) -> Optional[Any]:
        """
        Retrieve a cached value

        Args:
            cache_key: Key the value was stored under

        Returns:
            The cached value, or None on a miss or when caching is disabled
        """
        if not self.enabled:
            return None

        with self._lock:
            return self._entries.get(cache_key)

    def store(self, cache_key: Hashable, value: Any) -> None:
        if not self.enabled:
            return

        with self._lock:
            self._entries[cache_key] = value

    def invalidate(self, cache_key: Hashable) -> None:
        """Drop a single entry; a missing key is ignored"""
        with self._lock:
            self._entries.pop(cache_key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, cache_key: Hashable) -> bool:
        with self._lock:
            return cache_key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
