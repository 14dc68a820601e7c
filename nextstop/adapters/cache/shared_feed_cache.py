from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, TypeVar

from nextstop.app.ports.output import IFeedCache
from nextstop.domain.models.cache import FeedCacheStats, FeedSnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_FEED_TTL_MS = 60_000


class SharedFeedCache(IFeedCache[T]):
    """Single-slot, stale-while-revalidate cache around one shared fetch.

    - Fresh snapshot (age < TTL): returned without calling `fetch`.
    - Otherwise `fetch` runs once; concurrent callers join that refresh, or
      get the current stale snapshot when one exists.
    - A failed refresh serves the last good snapshot of any age. The error
      only propagates when no snapshot has ever been fetched.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        ttl_ms: int = DEFAULT_FEED_TTL_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_ms <= 0:
            raise ValueError(f"ttl_ms must be positive, got {ttl_ms}")
        self._fetch = fetch
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._snapshot: FeedSnapshot[T] | None = None
        self._refresh: asyncio.Task[T] | None = None

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def _age_ms(self, snapshot: FeedSnapshot[T]) -> float:
        return (self._clock() - snapshot.fetched_at) * 1000.0

    async def get(self) -> T:
        snapshot = self._snapshot
        if snapshot is not None and self._age_ms(snapshot) < self._ttl_ms:
            logger.debug("Shared feed cache hit")
            return snapshot.payload

        if self._refresh is not None and not self._refresh.done():
            if snapshot is not None:
                logger.debug("Shared feed refresh in flight, serving stale snapshot")
                return snapshot.payload
            return await asyncio.shield(self._refresh)

        task = asyncio.ensure_future(self._fetch_and_store())
        task.add_done_callback(self._on_refresh_done)
        self._refresh = task
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            stale = self._snapshot
            if stale is None:
                raise
            logger.warning(
                "Shared feed refresh failed, serving stale snapshot",
                extra={"age_s": round(self._age_ms(stale) / 1000.0, 1), "error": str(e)},
            )
            return stale.payload

    async def _fetch_and_store(self) -> T:
        logger.debug("Shared feed cache miss, fetching")
        payload = await self._fetch()
        # Only a completed fetch replaces the slot; a cancelled one never gets here.
        self._snapshot = FeedSnapshot(payload=payload, fetched_at=self._clock())
        return payload

    def _on_refresh_done(self, task: asyncio.Task[T]) -> None:
        if self._refresh is task:
            self._refresh = None
        if not task.cancelled():
            # Mark the exception as retrieved; callers handle it via shield().
            task.exception()

    def invalidate(self) -> None:
        self._snapshot = None
        logger.debug("Shared feed cache invalidated")

    def get_stats(self) -> FeedCacheStats:
        snapshot = self._snapshot
        return FeedCacheStats(
            cached=snapshot is not None,
            age_s=(
                round(self._age_ms(snapshot) / 1000.0, 3)
                if snapshot is not None
                else None
            ),
            ttl_s=self._ttl_ms / 1000.0,
        )
