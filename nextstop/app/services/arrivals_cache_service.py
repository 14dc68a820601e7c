from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping

from nextstop.app.ports.output import IResultCache
from nextstop.domain.models.cache import CacheKey
from nextstop.domain.models.transport_mode import TransportMode

logger = logging.getLogger(__name__)


def arrivals_cache_key(mode: TransportMode, stop_code: str) -> CacheKey:
    return CacheKey.from_parts(mode.value, "arrivals", stop_code)


@dataclass(slots=True)
class ArrivalsCacheService:
    """Read-through cache for per-stop upstream arrival calls.

    Keys follow `{mode}:arrivals:{stop_code}`; TTLs are per mode, in seconds.
    """

    cache: IResultCache
    ttl_seconds: Mapping[TransportMode, float] = field(default_factory=dict)

    async def get_or_fetch(
        self,
        mode: TransportMode,
        stop_code: str,
        fetch: Callable[[], Awaitable[Any]],
    ) -> Any:
        key = arrivals_cache_key(mode, stop_code)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        value = await fetch()
        ttl = self.ttl_seconds.get(mode, 0)
        if value is not None:
            self.cache.set(key, value, ttl)
        logger.debug(
            "Fetched arrivals from upstream",
            extra={"key": str(key), "ttl_s": ttl},
        )
        return value

    def invalidate(self, mode: TransportMode, stop_code: str) -> bool:
        return self.cache.delete(arrivals_cache_key(mode, stop_code))
