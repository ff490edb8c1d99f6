"""TTL-based response cache with in-flight request deduplication."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Query parameters holding coordinates; rounded so GPS jitter shares a cache entry
COORDINATE_PARAMS = frozenset({"lat", "lon", "latitude", "longitude"})
COORDINATE_PRECISION = 4  # ~11 m


class Freshness(str, Enum):
    """Whether a cached payload holds live predictions or only timetable data."""

    REALTIME = "realtime"
    SCHEDULE = "schedule"


@dataclass
class CacheEntry(Generic[T]):
    value: T
    inserted_at: float
    expires_at: float
    freshness: Freshness


def make_cache_key(endpoint: str, params: Mapping[str, Any]) -> str:
    """Build a deterministic cache key from an endpoint and its query parameters.

    Parameters are sorted by name and coordinates are rounded to four decimal
    places, so near-duplicate requests collapse onto one key.

    Example: ("nearby_routes", {"lon": -73.56731, "lat": 45.50169})
        -> "nearby_routes?lat=45.5017&lon=-73.5673"
    """
    parts = []
    for name in sorted(params):
        value = params[name]
        if name in COORDINATE_PARAMS and value is not None:
            value = f"{float(value):.{COORDINATE_PRECISION}f}"
        parts.append(f"{name}={value}")
    return f"{endpoint}?{'&'.join(parts)}"


def _routes_of(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get("routes")
    return getattr(value, "routes", value)


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def classify_freshness(value: Any) -> Freshness:
    """Classify a normalized payload (model or plain dict) by its schedule items.

    Any schedule item with ``is_real_time`` set to True makes the whole payload
    real-time; anything unrecognised is treated as schedule data.
    """
    routes = _routes_of(value)
    if not isinstance(routes, list):
        return Freshness.SCHEDULE

    for route in routes:
        for itinerary in _field(route, "itineraries") or []:
            for item in _field(itinerary, "schedule_items") or []:
                if _field(item, "is_real_time") is True:
                    return Freshness.REALTIME
    return Freshness.SCHEDULE


class ResponseCache(Generic[T]):
    """Keyed TTL cache that coalesces concurrent fetches for the same key.

    Values are stored with a TTL chosen from their freshness: real-time data
    expires quickly, timetable data is kept longer. Expired entries are dropped
    lazily on read and by a periodic sweep, which also bounds the entry count
    by evicting the oldest insertions.

    Usage:
        cache = ResponseCache(realtime_ttl=5.0, schedule_ttl=120.0)
        cache.start()
        value = await cache.fetch(key, producer)
        await cache.stop()
    """

    def __init__(
        self,
        realtime_ttl: float = 5.0,
        schedule_ttl: float = 120.0,
        max_entries: int = 100,
        sweep_interval: float = 60.0,
        classify: Callable[[T], Freshness] = classify_freshness,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            realtime_ttl: Time-to-live in seconds for real-time payloads.
            schedule_ttl: Time-to-live in seconds for schedule-only payloads.
            max_entries: Entry count the periodic sweep trims the cache down to.
            sweep_interval: Seconds between background sweeps.
            classify: Function deciding the freshness of a fetched value.
            clock: Monotonic time source in seconds.
        """
        self._ttls = {Freshness.REALTIME: realtime_ttl, Freshness.SCHEDULE: schedule_ttl}
        self._max_entries = max_entries
        self._sweep_interval = sweep_interval
        self._classify = classify
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._pending: dict[str, asyncio.Task[T]] = {}
        self._sweep_task: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def ttl_for(self, freshness: Freshness) -> float:
        return self._ttls[freshness]

    def get(self, key: str) -> T | None:
        """Get the cached value for key if it hasn't expired.

        Returns:
            The cached value if valid, None if expired or not set.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def freshness(self, key: str) -> Freshness | None:
        """Get the freshness tag of a live entry, or None."""
        if self.get(key) is None:
            return None
        return self._entries[key].freshness

    def set(self, key: str, value: T, freshness: Freshness, ttl: float | None = None) -> None:
        """Store a value, replacing any previous entry as the newest insertion.

        Args:
            key: Cache key.
            value: The value to cache.
            freshness: Freshness tag of the value.
            ttl: Explicit TTL in seconds; defaults to the TTL for the freshness.
        """
        now = self._clock()
        if ttl is None:
            ttl = self._ttls[freshness]
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            value=value, inserted_at=now, expires_at=now + ttl, freshness=freshness
        )

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    async def fetch(self, key: str, producer: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value for key, fetching it with producer if needed.

        Concurrent callers for a key without a live entry share one producer
        call. A producer failure is raised to every waiting caller and nothing
        is cached.

        Args:
            key: Cache key (see make_cache_key).
            producer: Zero-argument coroutine function producing the value.

        Returns:
            The cached or freshly produced value.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return cached

        task = self._pending.get(key)
        if task is not None:
            logger.debug(f"Waiting on in-flight request for {key}")
        else:
            task = asyncio.ensure_future(self._produce(key, producer))
            self._pending[key] = task

        # shield so a cancelled waiter doesn't cancel the fetch other callers share
        return await asyncio.shield(task)

    async def _produce(self, key: str, producer: Callable[[], Awaitable[T]]) -> T:
        task = asyncio.current_task()
        try:
            value = await producer()
            # a clear() while in flight drops the registration; don't resurrect the entry
            if self._pending.get(key) is task:
                freshness = self._classify(value)
                self.set(key, value, freshness)
                logger.debug(f"Cached {key} as {freshness.value} for {self._ttls[freshness]}s")
            return value
        finally:
            if self._pending.get(key) is task:
                del self._pending[key]

    def evict_expired(self) -> int:
        """Delete every expired entry.

        Returns:
            Number of entries deleted.
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def enforce_max_entries(self) -> int:
        """Evict the oldest insertions until the cache is within max_entries.

        Returns:
            Number of entries evicted.
        """
        excess = len(self._entries) - self._max_entries
        if excess <= 0:
            return 0
        for key in list(self._entries)[:excess]:
            del self._entries[key]
        return excess

    def sweep(self) -> None:
        """Run one eviction pass (expired entries, then size bound)."""
        expired = self.evict_expired()
        evicted = self.enforce_max_entries()
        if expired or evicted:
            logger.debug(f"Cache sweep removed {expired} expired and {evicted} excess entries")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()

    def start(self) -> None:
        """Start the background sweep task. Must be called from a running event loop."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Cancel the background sweep and empty the cache."""
        task = self._sweep_task
        self.cleanup()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def clear(self) -> None:
        """Empty both the value cache and the in-flight registry."""
        self._entries.clear()
        self._pending.clear()

    def cleanup(self) -> None:
        """Cancel the background sweep and clear the cache (synchronous shutdown)."""
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            self._sweep_task = None
        self.clear()
