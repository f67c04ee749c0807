"""
In-memory cache for analysis results.

Repeated analyses of the same rows (e.g. the UI re-requesting
recommendations after a column toggle) are served from here.
"""
import hashlib
import json
import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    data: Any
    expires_at: float


class SimpleCache:
    """Thread-safe in-memory cache with per-entry TTL."""

    def __init__(self, default_ttl: float = 600):
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = Lock()
        self.default_ttl = default_ttl
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self.misses += 1
                return None
            if time.time() > entry.expires_at:
                del self._cache[key]
                self.misses += 1
                logger.debug(f"Cache entry expired: {key[:16]}...")
                return None
            self.hits += 1
            return entry.data

    def set(self, key: str, value: Any, ttl: Optional[float] = None):
        with self._lock:
            self._cache[key] = CacheEntry(data=value, expires_at=time.time() + (ttl or self.default_ttl))

    def clear(self):
        with self._lock:
            self._cache.clear()
            self.hits = 0
            self.misses = 0

    def cleanup_expired(self):
        with self._lock:
            now = time.time()
            expired = [key for key, entry in self._cache.items() if now > entry.expires_at]
            for key in expired:
                del self._cache[key]
        if expired:
            logger.debug(f"Cleaned up {len(expired)} expired cache entries")

    def get_stats(self) -> Dict[str, Any]:
        self.cleanup_expired()
        with self._lock:
            return {
                'size': len(self._cache),
                'hits': self.hits,
                'misses': self.misses,
                'default_ttl': self.default_ttl
            }


_analysis_cache = SimpleCache()


def get_analysis_cache() -> SimpleCache:
    return _analysis_cache


def generate_analysis_cache_key(
    data: Sequence[Dict[str, Any]],
    headers: Optional[Sequence[str]],
    limit: int
) -> str:
    """Content hash of the rows, the header selection and the result limit."""
    payload = json.dumps(
        {"data": data, "headers": headers, "limit": limit},
        sort_keys=True,
        default=str
    )
    return "analysis:" + hashlib.sha256(payload.encode()).hexdigest()
