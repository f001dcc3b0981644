# 📄 File: gardenbeds/shared/core/cache.py

# 🧭 Purpose (Layman Explanation):
# A short-term memory for the garden app. When we ask the database or a plant lookup service
# the same question twice within a few minutes, the second answer comes from memory instead.

# 🧪 Purpose (Technical Summary):
# Namespaced in-process TTL cache with insertion-order eviction, a tag index for structured
# invalidation, periodic background sweeping of expired entries, hit/miss statistics, and a
# registry of independently configured named caches owned by the composition root.

# 🔗 Dependencies:
# - pydantic: CacheOptions validation
# - asyncio: Background sweeper task
# - gardenbeds.shared.utils.logging: Structured cache events

# 🔄 Connected Modules / Calls From:
# Used by: garden repositories (database reads), APIClient (response caching),
# BackendService (cache statistics and invalidation)

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from gardenbeds.shared.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_MISSING = object()

DEFAULT_CACHE_NAMES = ("database", "api", "search", "images")


class CacheOptions(BaseModel):
    """Configuration for a single TTL cache instance."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    namespace: str = Field(default="default", min_length=1)
    ttl: float = Field(default=300.0, gt=0, description="Default entry lifetime in seconds")
    max_size: int = Field(default=1000, gt=0, description="Maximum number of stored entries")
    sweep_interval: float = Field(default=60.0, gt=0, description="Seconds between sweeps")


@dataclass
class CacheEntry:
    """A stored value with its storage time, lifetime and tags."""
    value: Any
    stored_at: float
    ttl: float
    tags: FrozenSet[str] = field(default_factory=frozenset)

    def is_expired(self, now: float) -> bool:
        return now - self.stored_at > self.ttl


class TTLCache:
    """
    Namespaced key/value cache with per-entry expiry.

    Eviction is oldest-inserted first once ``max_size`` is reached; reads do
    not refresh an entry's position. Expired entries are dropped on lookup
    and by ``sweep()``, which the background sweeper runs every
    ``sweep_interval`` seconds.

    Entries may carry tags. The tag index maps each tag to the keys that
    carry it, so a write can invalidate exactly the entries that depend on
    an entity without scanning every key.
    """

    def __init__(self, options: CacheOptions, clock: Callable[[], float] = time.monotonic):
        self.options = options
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._tag_index: Dict[str, Set[str]] = {}
        # Invalidation counters, compared by cached_call before and after a load
        self._tag_generations: Dict[str, int] = {}
        self._epoch = 0
        self._sweeper: Optional[asyncio.Task] = None

        self.stats = {
            'hits': 0,
            'misses': 0,
            'evictions': 0,
            'expirations': 0,
        }

    @property
    def namespace(self) -> str:
        return self.options.namespace

    def _full_key(self, key: str) -> str:
        return f"{self.options.namespace}:{key}"

    def _strip_key(self, full_key: str) -> str:
        return full_key[len(self.options.namespace) + 1:]

    # =========================================================================
    # CORE OPERATIONS
    # =========================================================================

    def set(self, key: str, value: Any, ttl: Optional[float] = None, tags: Iterable[str] = ()) -> None:
        """
        Store a value.

        Args:
            key: Cache key (without namespace)
            value: Value to store, ``None`` included
            ttl: Lifetime in seconds, defaults to the cache's ttl
            tags: Tags used by ``invalidate_tag``
        """
        full_key = self._full_key(key)

        # Re-setting a key counts as a fresh insertion
        if full_key in self._entries:
            self._remove(full_key)
        elif len(self._entries) >= self.options.max_size:
            oldest_key = next(iter(self._entries))
            self._remove(oldest_key)
            self.stats['evictions'] += 1

        entry = CacheEntry(
            value=value,
            stored_at=self._clock(),
            ttl=self.options.ttl if ttl is None else ttl,
            tags=frozenset(tags),
        )
        self._entries[full_key] = entry
        for tag in entry.tags:
            self._tag_index.setdefault(tag, set()).add(full_key)

        logger.performance.log_cache_operation('set', self.namespace, key)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or ``default`` when missing or expired."""
        full_key = self._full_key(key)
        entry = self._entries.get(full_key)

        if entry is None:
            self.stats['misses'] += 1
            logger.performance.log_cache_operation('get', self.namespace, key, hit=False)
            return default

        if entry.is_expired(self._clock()):
            self._remove(full_key)
            self.stats['expirations'] += 1
            self.stats['misses'] += 1
            logger.performance.log_cache_operation('get', self.namespace, key, hit=False)
            return default

        self.stats['hits'] += 1
        logger.performance.log_cache_operation('get', self.namespace, key, hit=True)
        return entry.value

    def has(self, key: str) -> bool:
        """Same expiry semantics as ``get`` without returning the value."""
        full_key = self._full_key(key)
        entry = self._entries.get(full_key)
        if entry is None:
            return False
        if entry.is_expired(self._clock()):
            self._remove(full_key)
            self.stats['expirations'] += 1
            return False
        return True

    def delete(self, key: str) -> bool:
        full_key = self._full_key(key)
        if full_key not in self._entries:
            return False
        self._remove(full_key)
        return True

    def clear(self) -> None:
        self._entries.clear()
        self._tag_index.clear()
        self._epoch += 1

    def size(self) -> int:
        return len(self._entries)

    def keys(self) -> List[str]:
        return [self._strip_key(full_key) for full_key in self._entries]

    def _remove(self, full_key: str) -> None:
        entry = self._entries.pop(full_key, None)
        if entry is None:
            return
        for tag in entry.tags:
            tagged = self._tag_index.get(tag)
            if tagged is None:
                continue
            tagged.discard(full_key)
            if not tagged:
                del self._tag_index[tag]

    # =========================================================================
    # INVALIDATION
    # =========================================================================

    def invalidate_tag(self, tag: str) -> int:
        """Delete every entry carrying ``tag``. Returns the number removed."""
        self._tag_generations[tag] = self._tag_generations.get(tag, 0) + 1
        full_keys = list(self._tag_index.get(tag, ()))
        for full_key in full_keys:
            self._remove(full_key)

        if full_keys:
            logger.debug(
                f"Invalidated {len(full_keys)} entries for tag {tag}",
                extra={'cache_namespace': self.namespace, 'tag': tag}
            )
        return len(full_keys)

    def invalidate_tags(self, tags: Iterable[str]) -> int:
        return sum(self.invalidate_tag(tag) for tag in tags)

    def invalidate_pattern(self, pattern: str) -> int:
        """Delete every entry whose key contains ``pattern``."""
        self._epoch += 1
        matching = [
            full_key for full_key in self._entries
            if pattern in self._strip_key(full_key)
        ]
        for full_key in matching:
            self._remove(full_key)
        return len(matching)

    def generation(self, tags: Iterable[str] = ()) -> Tuple[int, ...]:
        """
        Invalidation counters for ``tags``.

        The value changes whenever one of the tags is invalidated, or the
        cache is cleared or pattern-invalidated.
        """
        return (self._epoch, *(self._tag_generations.get(tag, 0) for tag in sorted(set(tags))))

    # =========================================================================
    # SWEEPING
    # =========================================================================

    def sweep(self) -> int:
        """Delete all expired entries. Returns the number removed."""
        now = self._clock()
        expired = [
            full_key for full_key, entry in self._entries.items()
            if entry.is_expired(now)
        ]
        for full_key in expired:
            self._remove(full_key)

        self.stats['expirations'] += len(expired)
        if expired:
            logger.debug(
                f"Swept {len(expired)} expired entries from {self.namespace} cache",
                extra={'cache_namespace': self.namespace, 'removed': len(expired)}
            )
        return len(expired)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.options.sweep_interval)
            self.sweep()

    def start_sweeper(self) -> None:
        """Run ``sweep()`` every ``sweep_interval`` seconds on the running loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    # =========================================================================
    # STATISTICS
    # =========================================================================

    def get_stats(self) -> Dict[str, Any]:
        lookups = self.stats['hits'] + self.stats['misses']
        return {
            'namespace': self.namespace,
            'size': len(self._entries),
            'max_size': self.options.max_size,
            'hits': self.stats['hits'],
            'misses': self.stats['misses'],
            'hit_rate': self.stats['hits'] / lookups if lookups else 0.0,
            'evictions': self.stats['evictions'],
            'expirations': self.stats['expirations'],
            'tags': len(self._tag_index),
        }


class CacheRegistry:
    """
    The set of named caches used by the application.

    Built once by the composition root; every consumer receives the
    registry (or a single cache from it) explicitly.
    """

    def __init__(self, caches: Dict[str, TTLCache]):
        self._caches = dict(caches)

    @classmethod
    def create(
        cls,
        ttls: Dict[str, float],
        max_size: int = 1000,
        sweep_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic
    ) -> "CacheRegistry":
        """
        Build one cache per entry in ``ttls``.

        Args:
            ttls: Mapping of cache name to default TTL in seconds
            max_size: Maximum entries per cache
            sweep_interval: Seconds between background sweeps
            clock: Time source shared by all caches
        """
        caches = {
            name: TTLCache(
                CacheOptions(namespace=name, ttl=ttl, max_size=max_size, sweep_interval=sweep_interval),
                clock=clock,
            )
            for name, ttl in ttls.items()
        }
        return cls(caches)

    def get(self, name: str) -> TTLCache:
        try:
            return self._caches[name]
        except KeyError:
            raise KeyError(f"Unknown cache: {name}") from None

    __getitem__ = get

    def names(self) -> List[str]:
        return list(self._caches)

    @property
    def database(self) -> TTLCache:
        return self.get("database")

    @property
    def api(self) -> TTLCache:
        return self.get("api")

    @property
    def search(self) -> TTLCache:
        return self.get("search")

    @property
    def images(self) -> TTLCache:
        return self.get("images")

    def invalidate_all(self) -> None:
        for cache in self._caches.values():
            cache.clear()
        logger.info("All caches cleared")

    def invalidate_tag(self, tag: str) -> int:
        return sum(cache.invalidate_tag(tag) for cache in self._caches.values())

    def get_all_stats(self) -> Dict[str, Dict[str, Any]]:
        return {name: cache.get_stats() for name, cache in self._caches.items()}

    def start(self) -> None:
        for cache in self._caches.values():
            cache.start_sweeper()

    async def stop(self) -> None:
        for cache in self._caches.values():
            await cache.stop_sweeper()


async def cached_call(
    cache: TTLCache,
    key: str,
    loader: Callable[[], Awaitable[T]],
    ttl: Optional[float] = None,
    tags: Iterable[str] = ()
) -> T:
    """
    Read-through helper.

    Returns the cached value for ``key`` if present, otherwise awaits
    ``loader()``, stores its result and returns it. Loader errors
    propagate and nothing is stored. A cache failure is treated as a miss.

    If any of ``tags`` is invalidated while the loader runs, the result is
    returned but not stored, since a write may have landed after the read.
    """
    try:
        cached = cache.get(key, _MISSING)
    except Exception as e:
        logger.warning(f"Cache read failed for {key}: {e}", extra={'cache_namespace': cache.namespace})
        cached = _MISSING

    if cached is not _MISSING:
        return cached

    tags = tuple(tags)
    generation = cache.generation(tags)
    value = await loader()

    if cache.generation(tags) != generation:
        logger.debug(
            f"Skipped caching {key}: invalidated during load",
            extra={'cache_namespace': cache.namespace}
        )
        return value

    try:
        cache.set(key, value, ttl=ttl, tags=tags)
    except Exception as e:
        logger.warning(f"Cache write failed for {key}: {e}", extra={'cache_namespace': cache.namespace})

    return value
