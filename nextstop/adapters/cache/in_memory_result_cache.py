from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from nextstop.app.ports.output import IResultCache
from nextstop.domain.models.cache import CacheEntry, CacheKey

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_S = 60.0


def _key(key: CacheKey | str) -> str:
    if isinstance(key, CacheKey):
        return key.value
    return CacheKey.parse(key).value


class InMemoryResultCache(IResultCache):
    """Process-local key/value cache with per-entry TTL in seconds.

    Expired entries are evicted lazily on read and proactively by a periodic
    sweep task (`start()`); `destroy()` stops the sweep and drops everything.
    """

    def __init__(
        self,
        sweep_interval_s: float = DEFAULT_SWEEP_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if sweep_interval_s <= 0:
            raise ValueError(f"sweep_interval_s must be positive, got {sweep_interval_s}")
        self._sweep_interval_s = sweep_interval_s
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._sweeper: asyncio.Task[None] | None = None
        self._destroyed = False

    def get(self, key: CacheKey | str) -> Any | None:
        k = _key(key)
        entry = self._entries.get(k)
        if entry is None:
            logger.debug("Cache miss", extra={"key": k})
            return None
        if entry.is_expired(self._clock()):
            del self._entries[k]
            logger.debug("Cache entry expired", extra={"key": k})
            return None
        logger.debug("Cache hit", extra={"key": k})
        return entry.value

    def set(self, key: CacheKey | str, value: Any, ttl_seconds: float) -> None:
        k = _key(key)
        if ttl_seconds <= 0:
            logger.debug(
                "Ignoring cache write with non-positive TTL",
                extra={"key": k, "ttl_s": ttl_seconds},
            )
            return
        self._entries[k] = CacheEntry.create(value, ttl_seconds, self._clock())

    def delete(self, key: CacheKey | str) -> bool:
        return self._entries.pop(_key(key), None) is not None

    def has(self, key: CacheKey | str) -> bool:
        k = _key(key)
        entry = self._entries.get(k)
        if entry is None:
            return False
        if entry.is_expired(self._clock()):
            del self._entries[k]
            return False
        return True

    def clear(self) -> None:
        previous = len(self._entries)
        self._entries.clear()
        logger.info("Cache cleared", extra={"previous_size": previous})

    def size(self) -> int:
        return len(self._entries)

    def sweep(self) -> int:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("Cache sweep evicted entries", extra={"evicted": len(expired)})
        return len(expired)

    def start(self) -> None:
        """Start the periodic sweep on the running event loop (no-op if running)."""

        if self._destroyed:
            raise RuntimeError("Cache has been destroyed")
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval_s)
            self.sweep()

    @property
    def sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def destroy(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            self._sweeper = None
        if not self._destroyed:
            self.clear()
        self._destroyed = True
