#!/usr/bin/env python3
"""
API Cache Store
In-memory TTL cache with in-flight request coalescing (singleflight)

Implements:
- obtain(key, operation, ttl, force_refresh) → value
- invalidate(key) / invalidate_matching(pattern) / invalidate_prefix(prefix)
- purge_expired()
- reset()
- stats() → {size, keys, hits, misses, joins, writes, failures}
"""

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar, Union

from .events import CacheEvent

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL = 5 * 60  # seconds


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A settled fetch result. Replaced wholesale, never mutated."""
    value: T
    stored_at: float
    expires_at: float

    def is_live(self, now: float) -> bool:
        return now < self.expires_at


class CacheStore:
    """
    Process-local cache of fetch results keyed by opaque strings.

    Design principles:
    - At most one outstanding operation per key; concurrent callers share it
    - Failures are surfaced to every waiter and never cached
    - TTL governs read freshness only, never execution time
    - No cancellation: reset() forgets in-flight work, it does not stop it
    """

    def __init__(self, default_ttl: float = DEFAULT_TTL,
                 listener: Optional[Callable[[CacheEvent], None]] = None):
        self.default_ttl = default_ttl
        self._listener = listener
        self._entries: Dict[str, CacheEntry[Any]] = {}
        self._in_flight: Dict[str, "asyncio.Task[Any]"] = {}

        self.counters = {
            "hits": 0,
            "misses": 0,
            "joins": 0,
            "writes": 0,
            "failures": 0,
        }

        logger.info(f"CacheStore initialized (default_ttl={default_ttl}s)")

    def _record(self, event: str, key: Optional[str], **details) -> None:
        logger.debug(f"Cache {event}: {key} {details or ''}".rstrip())
        if self._listener is None:
            return
        try:
            self._listener(CacheEvent(event=event, key=key, **details))
        except Exception:
            # Listener faults never change what obtain() returns or raises
            logger.exception(f"Cache listener failed on {event} for {key}")

    async def obtain(self, key: str, operation: Callable[[], Awaitable[T]],
                     ttl: Optional[float] = None, force_refresh: bool = False) -> T:
        """
        Return the cached value for key, or fetch it through operation.

        Args:
            key: Cache key (see key_generator.derive_key)
            operation: Zero-arg coroutine function performing the fetch
            ttl: Seconds the result stays fresh (default_ttl if None)
            force_refresh: Ignore a live entry

        Note:
            force_refresh never starts a second operation while one is
            already in flight for key; the caller joins that one instead.
        """
        ttl = self.default_ttl if ttl is None else ttl

        if not force_refresh:
            entry = self._entries.get(key)
            if entry is not None and entry.is_live(time.time()):
                self.counters["hits"] += 1
                self._record("hit", key)
                return entry.value

        pending = self._in_flight.get(key)
        if pending is not None:
            self.counters["joins"] += 1
            self._record("join", key, force_refresh=force_refresh)
            return await asyncio.shield(pending)

        self.counters["misses"] += 1
        self._record("miss", key, force_refresh=force_refresh, ttl_sec=ttl)

        task = asyncio.ensure_future(self._settle(key, operation(), ttl))
        self._in_flight[key] = task
        return await asyncio.shield(task)

    async def _settle(self, key: str, pending: Awaitable[T], ttl: float) -> T:
        """Run one operation to completion and store its result."""
        try:
            value = await pending
        except Exception as e:
            self.counters["failures"] += 1
            self._record("failure", key, error=str(e))
            raise
        else:
            now = time.time()
            self._entries[key] = CacheEntry(value=value, stored_at=now, expires_at=now + ttl)
            self.counters["writes"] += 1
            self._record("write", key, ttl_sec=ttl)
            return value
        finally:
            # A reset() may already have replaced this registration
            if self._in_flight.get(key) is asyncio.current_task():
                del self._in_flight[key]

    def invalidate(self, key: str) -> None:
        """Remove the entry for exactly this key, if any."""
        if key in self._entries:
            del self._entries[key]
            self._record("invalidate", key, removed=1)

    def invalidate_matching(self, pattern: Union[str, "re.Pattern[str]"]) -> int:
        """Remove every stored key the regular expression matches (search semantics)."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        return self._remove_where(lambda key: regex.search(key) is not None, regex.pattern)

    def invalidate_prefix(self, prefix: str) -> int:
        """Remove every stored key starting with prefix."""
        return self._remove_where(lambda key: key.startswith(prefix), prefix)

    def purge_expired(self) -> int:
        """Drop entries whose TTL has lapsed. Reads already ignore them."""
        now = time.time()
        return self._remove_where(lambda key: not self._entries[key].is_live(now), None)

    def _remove_where(self, predicate: Callable[[str], bool], label: Optional[str]) -> int:
        doomed = [key for key in list(self._entries) if predicate(key)]
        for key in doomed:
            del self._entries[key]

        if doomed:
            self._record("invalidate", label, removed=len(doomed))
            logger.info(f"Removed {len(doomed)} cache entries ({label or 'expired'})")
        return len(doomed)

    def reset(self) -> None:
        """
        Forget all entries and all in-flight registrations.

        Operations already running are not cancelled; a late success still
        writes its entry into the emptied map.
        """
        cleared = len(self._entries)
        self._entries.clear()
        self._in_flight.clear()
        self._record("reset", None, removed=cleared)
        logger.info(f"Cache reset ({cleared} entries dropped)")

    def in_flight(self) -> List[str]:
        return list(self._in_flight)

    def stats(self) -> Dict[str, Any]:
        """Entry count and keys of settled entries, plus running counters."""
        return {
            "size": len(self._entries),
            "keys": list(self._entries),
            **self.counters,
        }
