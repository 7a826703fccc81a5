"""Content-addressed embedding cache with per-entry TTL.

Keys are fingerprints of normalized text (see role_matching.matching.text), so two
inputs that differ only in case or whitespace share an entry.

A single threading.Lock guards the backing dict. Scoring requests may run on
several threads (Dagster multiprocess executor threads, the CLI, tests), and the
lock is uncontended when everything runs on one event loop.

Expired entries are dropped lazily when read. Nothing sweeps them in the
background; call purge_expired() if memory matters.

The process-wide instance follows the same double-checked pattern as the engine
factory in role_matching.db. Tests should call reset_embedding_cache() or, better,
inject their own EmbeddingCache.

TTLs: PROFILE_TEXT_TTL_SECONDS is the EmbeddingService default and suits role
descriptions and candidate profiles. SESSION_TEXT_TTL_SECONDS is for short-lived
text such as CV or parse-session input; callers pass it per call with
embed_batch(texts, ttl_seconds=SESSION_TEXT_TTL_SECONDS).
"""

import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

PROFILE_TEXT_TTL_SECONDS = 24 * 60 * 60
SESSION_TEXT_TTL_SECONDS = 60 * 60


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    writes: int = 0
    expirations: int = 0


class EmbeddingCache:
    """Thread-safe map of fingerprint -> embedding vector with expiry."""

    def __init__(
        self,
        default_ttl_seconds: float = PROFILE_TEXT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be positive")
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, tuple[float, ...]]] = {}
        self.stats = CacheStats()

    def get(self, key: str) -> list[float] | None:
        """Return a copy of the cached vector, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.stats.misses += 1
                return None
            expires_at, vector = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                self.stats.expirations += 1
                self.stats.misses += 1
                return None
            self.stats.hits += 1
            return list(vector)

    def put(self, key: str, vector: Sequence[float], ttl_seconds: float | None = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            return
        frozen = tuple(float(x) for x in vector)
        with self._lock:
            self._entries[key] = (self._clock() + ttl, frozen)
            self.stats.writes += 1

    def purge_expired(self) -> int:
        """Drop every expired entry now. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
            for k in expired:
                del self._entries[k]
            self.stats.expirations += len(expired)
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.stats = CacheStats()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._clock() < entry[0]

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for expires_at, _ in self._entries.values() if now < expires_at)


_lock = threading.Lock()
_cache: EmbeddingCache | None = None


def get_embedding_cache() -> EmbeddingCache:
    """Return the process-wide cache, creating it on first call."""
    global _cache
    if _cache is None:
        with _lock:
            if _cache is None:
                _cache = EmbeddingCache()
    return _cache


def reset_embedding_cache() -> None:
    """Forget the process-wide cache; the next get_embedding_cache() builds a new one."""
    global _cache
    with _lock:
        _cache = None
