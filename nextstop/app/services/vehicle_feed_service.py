from __future__ import annotations

from dataclasses import dataclass

from nextstop.app.ports.output import IFeedCache
from nextstop.domain.models.cache import FeedCacheStats
from nextstop.domain.models.realtime import RealtimeVehicle


@dataclass(slots=True)
class VehicleFeedService:
    """Serves vehicle positions from the shared, stale-tolerant feed cache.

    One upstream payload answers every station of the mode.
    """

    feed_cache: IFeedCache[tuple[RealtimeVehicle, ...]]
    trip_prefix: str | None = None

    async def list_vehicles(
        self, *, route_ids: set[str] | None = None
    ) -> tuple[RealtimeVehicle, ...]:
        vehicles = await self.feed_cache.get()
        if self.trip_prefix:
            vehicles = tuple(
                v for v in vehicles if (v.trip_id or "").startswith(self.trip_prefix)
            )
        if route_ids:
            vehicles = tuple(
                v for v in vehicles if v.route_id and v.route_id in route_ids
            )
        return vehicles

    async def vehicles_at_stop(self, stop_id: str) -> tuple[RealtimeVehicle, ...]:
        vehicles = await self.list_vehicles()
        return tuple(v for v in vehicles if v.stop_id == stop_id)

    def stats(self) -> FeedCacheStats:
        return self.feed_cache.get_stats()
