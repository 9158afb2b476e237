"""Sink registry: cache of live sink clients.

Building a sink is expensive (a Slack sink opens a Socket Mode connection
and starts a listener thread), so live sinks are cached per identity and
reused across events. Entries expire after a TTL so stale credentials are
eventually dropped, and the registry is capacity bounded.

Eviction uses adaptive replacement (ARC): identities used once live in a
recency segment, identities reused live in a frequency segment, and ghost
lists of recently evicted identities shift the balance between the two.
Expired entries are always evicted before live ones.

Usage:
    registry = SinkRegistry(capacity=32, default_ttl_seconds=3600)

    registry.put("prod/default/ops", sink, config, listener=handle)
    sink = registry.get("prod/default/ops")
    registry.remove("prod/default/ops")  # cancels handle, closes sink
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import structlog

from infrastructure.sinks.channels.base import Sink
from infrastructure.sinks.errors import CacheLookupError
from infrastructure.sinks.listener import ListenerHandle

logger = structlog.get_logger()


@dataclass
class CacheEntry:
    """One live sink and the configuration snapshot that built it.

    Attributes:
        identity: Sink identity the entry is keyed by
        sink: Live sink client, owned by this entry
        config: Configuration snapshot used to build the sink
        expires_at: Absolute expiry on the registry clock
        listener: Background listener handle owned by this entry
        hits: Number of lookups served by this entry
    """

    identity: str
    sink: Sink
    config: Any
    expires_at: float
    listener: Optional[ListenerHandle] = None
    hits: int = field(default=0)

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class SinkRegistry:
    """Thread-safe, TTL-bounded, capacity-bounded sink cache.

    All mutations happen under one global lock. Sinks leaving the cache are
    torn down (listener cancelled, then sink closed) after the lock is
    released but before the mutating call returns.

    Args:
        capacity: Maximum number of live sinks
        default_ttl_seconds: Lifetime of an entry when put() gets no TTL
        clock: Monotonic clock in seconds (injectable for tests)

    Example:
        registry = SinkRegistry(capacity=2, default_ttl_seconds=60)
        registry.put("a", sink_a, config_a)
        registry.contains("a")  # True
    """

    def __init__(
        self,
        capacity: int = 32,
        default_ttl_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be positive")

        self.capacity = capacity
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._lock = threading.RLock()

        # Live entries: seen once / reused, oldest first
        self._recent: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._frequent: "OrderedDict[str, CacheEntry]" = OrderedDict()
        # Ghosts: identities recently evicted from each segment
        self._recent_ghosts: "OrderedDict[str, None]" = OrderedDict()
        self._frequent_ghosts: "OrderedDict[str, None]" = OrderedDict()
        # Target size of the recency segment
        self._recent_target = 0.0

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, identity: str) -> Sink:
        """Return the live sink cached for identity.

        Raises:
            CacheLookupError: If nothing live is cached for identity
        """
        return self.get_entry(identity).sink

    def get_entry(self, identity: str) -> CacheEntry:
        """Return the live cache entry for identity and mark it as reused.

        Raises:
            CacheLookupError: If nothing live is cached for identity
        """
        retired: List[CacheEntry] = []
        with self._lock:
            entry = self._lookup(identity, retired)
            if entry is None:
                self._misses += 1
            else:
                self._hits += 1
                entry.hits += 1
                self._promote(identity)
        self._teardown(retired, reason="expired")

        if entry is None:
            logger.debug("sink_cache_miss", identity=identity)
            raise CacheLookupError(f"no live sink cached for {identity}")
        logger.debug("sink_cache_hit", identity=identity)
        return entry

    def contains(self, identity: str) -> bool:
        """True if a live (non-expired) entry exists. Does not count as use."""
        retired: List[CacheEntry] = []
        with self._lock:
            entry = self._lookup(identity, retired)
        self._teardown(retired, reason="expired")
        return entry is not None

    def __contains__(self, identity: str) -> bool:
        return self.contains(identity)

    def __len__(self) -> int:
        with self._lock:
            return len(self._recent) + len(self._frequent)

    def identities(self) -> List[str]:
        with self._lock:
            return list(self._recent.keys()) + list(self._frequent.keys())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def put(
        self,
        identity: str,
        sink: Sink,
        config: Any,
        ttl_seconds: Optional[float] = None,
        listener: Optional[ListenerHandle] = None,
    ) -> CacheEntry:
        """Install or replace the entry for identity.

        A replaced entry holding a different sink is torn down.

        Args:
            identity: Sink identity
            sink: Live sink client
            config: Configuration snapshot that built the sink
            ttl_seconds: Lifetime, defaults to default_ttl_seconds
            listener: Listener handle owned by the entry

        Returns:
            The installed CacheEntry
        """
        retired: List[CacheEntry] = []
        with self._lock:
            entry = self._new_entry(identity, sink, config, ttl_seconds, listener)
            self._store(entry, retired)
        self._teardown(retired, reason="replaced")
        logger.info("sink_cached", identity=identity, expires_in=entry.expires_at - self._clock())
        return entry

    def install(
        self,
        identity: str,
        sink: Sink,
        config: Any,
        ttl_seconds: Optional[float] = None,
        listener: Optional[ListenerHandle] = None,
    ) -> Tuple[CacheEntry, bool]:
        """Compare-and-set insert used by concurrent builders.

        If a live entry for identity already holds an equal configuration,
        it wins and is returned untouched; the caller must discard its own
        sink. Otherwise the new entry replaces whatever was cached.

        Returns:
            (entry now cached, True if the given sink was installed)
        """
        retired: List[CacheEntry] = []
        with self._lock:
            existing = self._lookup(identity, retired)
            if existing is not None and existing.config == config:
                self._promote(identity)
                installed = False
                entry = existing
            else:
                entry = self._new_entry(identity, sink, config, ttl_seconds, listener)
                self._store(entry, retired)
                installed = True
        self._teardown(retired, reason="replaced")

        if installed:
            logger.info("sink_cached", identity=identity)
        else:
            logger.info("sink_install_lost_race", identity=identity)
        return entry, installed

    def remove(self, identity: str) -> bool:
        """Invalidate identity, tearing down its sink before returning.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            entry = self._discard(identity)
        if entry is None:
            return False
        self._teardown([entry], reason="removed")
        return True

    def remove_if(self, identity: str, expected: CacheEntry) -> bool:
        """Remove identity only while it still maps to ``expected``.

        A builder that read a stale entry must not tear down a sink that a
        concurrent builder installed in the meantime.

        Returns:
            True if ``expected`` was removed
        """
        with self._lock:
            current = self._recent.get(identity) or self._frequent.get(identity)
            if current is not expected:
                return False
            self._discard(identity)
        self._teardown([expected], reason="removed")
        return True

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns the number dropped."""
        retired: List[CacheEntry] = []
        with self._lock:
            self._drop_expired(retired)
        self._teardown(retired, reason="expired")
        return len(retired)

    def clear(self) -> None:
        """Tear down every cached sink and forget all history."""
        with self._lock:
            retired = list(self._recent.values()) + list(self._frequent.values())
            self._recent.clear()
            self._frequent.clear()
            self._recent_ghosts.clear()
            self._frequent_ghosts.clear()
            self._recent_target = 0.0
        self._teardown(retired, reason="cleared")

    def close(self) -> None:
        """Shutdown path: tear down everything."""
        logger.info("sink_registry_closing", size=len(self))
        self.clear()

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._recent) + len(self._frequent),
                "capacity": self.capacity,
                "recent": len(self._recent),
                "frequent": len(self._frequent),
                "recent_target": self._recent_target,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "expirations": self._expirations,
            }

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _new_entry(
        self,
        identity: str,
        sink: Sink,
        config: Any,
        ttl_seconds: Optional[float],
        listener: Optional[ListenerHandle],
    ) -> CacheEntry:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")
        return CacheEntry(
            identity=identity,
            sink=sink,
            config=config,
            expires_at=self._clock() + ttl,
            listener=listener,
        )

    def _lookup(self, identity: str, retired: List[CacheEntry]) -> Optional[CacheEntry]:
        entry = self._recent.get(identity) or self._frequent.get(identity)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._discard(identity)
            self._expirations += 1
            retired.append(entry)
            return None
        return entry

    def _promote(self, identity: str) -> None:
        if identity in self._recent:
            self._frequent[identity] = self._recent.pop(identity)
        else:
            self._frequent.move_to_end(identity)

    def _discard(self, identity: str) -> Optional[CacheEntry]:
        entry = self._recent.pop(identity, None)
        if entry is None:
            entry = self._frequent.pop(identity, None)
        return entry

    def _store(self, entry: CacheEntry, retired: List[CacheEntry]) -> None:
        identity = entry.identity
        existing = self._discard(identity)
        if existing is not None:
            if existing.sink is not entry.sink:
                retired.append(existing)
            self._frequent[identity] = entry
            return

        if identity in self._recent_ghosts:
            # Evicted from recency too early: grow its share
            delta = max(len(self._frequent_ghosts) / len(self._recent_ghosts), 1.0)
            self._recent_target = min(float(self.capacity), self._recent_target + delta)
            del self._recent_ghosts[identity]
            self._make_room(retired, frequent_ghost_hit=False)
            self._frequent[identity] = entry
        elif identity in self._frequent_ghosts:
            delta = max(len(self._recent_ghosts) / len(self._frequent_ghosts), 1.0)
            self._recent_target = max(0.0, self._recent_target - delta)
            del self._frequent_ghosts[identity]
            self._make_room(retired, frequent_ghost_hit=True)
            self._frequent[identity] = entry
        else:
            self._make_room(retired, frequent_ghost_hit=False)
            self._recent[identity] = entry

        self._trim_ghosts()

    def _drop_expired(self, retired: List[CacheEntry]) -> None:
        now = self._clock()
        for segment in (self._recent, self._frequent):
            for identity in [i for i, e in segment.items() if e.is_expired(now)]:
                retired.append(segment.pop(identity))
                self._expirations += 1

    def _make_room(self, retired: List[CacheEntry], frequent_ghost_hit: bool) -> None:
        if len(self._recent) + len(self._frequent) < self.capacity:
            return

        self._drop_expired(retired)

        while len(self._recent) + len(self._frequent) >= self.capacity:
            recent_size = len(self._recent)
            evict_recent = recent_size > 0 and (
                recent_size > self._recent_target
                or (frequent_ghost_hit and recent_size == int(self._recent_target))
                or not self._frequent
            )
            if evict_recent:
                identity, entry = self._recent.popitem(last=False)
                self._recent_ghosts[identity] = None
            else:
                identity, entry = self._frequent.popitem(last=False)
                self._frequent_ghosts[identity] = None
            self._evictions += 1
            retired.append(entry)
            logger.info(
                "sink_evicted",
                identity=identity,
                segment="recent" if evict_recent else "frequent",
            )

    def _trim_ghosts(self) -> None:
        for ghosts in (self._recent_ghosts, self._frequent_ghosts):
            while len(ghosts) > self.capacity:
                ghosts.popitem(last=False)

    # ------------------------------------------------------------------
    # Teardown (lock released)
    # ------------------------------------------------------------------

    def _teardown(self, entries: List[CacheEntry], reason: str) -> None:
        for entry in entries:
            try:
                if entry.listener is not None:
                    entry.listener.cancel()
                entry.sink.close()
                logger.info("sink_torn_down", identity=entry.identity, reason=reason)
            except Exception as e:
                logger.error(
                    "sink_teardown_failed",
                    identity=entry.identity,
                    reason=reason,
                    error=str(e),
                    exc_info=True,
                )
