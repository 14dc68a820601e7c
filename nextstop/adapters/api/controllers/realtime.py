from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from nextstop.adapters.api.dependencies import get_result_cache, get_vehicle_feed_service
from nextstop.adapters.api.schemas.realtime import (
    FeedStatsSchema,
    ResultCacheStatsSchema,
    VehicleSchema,
    VehiclesResponseSchema,
)
from nextstop.adapters.cache.in_memory_result_cache import InMemoryResultCache
from nextstop.app.services.vehicle_feed_service import VehicleFeedService

router = APIRouter(tags=["realtime"])


@router.get("/realtime/vehicles", response_model=VehiclesResponseSchema)
async def list_vehicles(
    route_id: list[str] | None = Query(default=None),
    stop_id: str | None = Query(default=None),
    service: VehicleFeedService = Depends(get_vehicle_feed_service),
) -> VehiclesResponseSchema:
    if stop_id:
        vehicles = await service.vehicles_at_stop(stop_id)
        if route_id:
            vehicles = tuple(v for v in vehicles if v.route_id in set(route_id))
    else:
        vehicles = await service.list_vehicles(
            route_ids=set(route_id) if route_id else None
        )

    return VehiclesResponseSchema(
        fetched_at=datetime.now(timezone.utc),
        feed_age_s=service.stats().age_s,
        vehicles=[
            VehicleSchema(
                vehicle_id=v.vehicle_id,
                trip_id=v.trip_id,
                route_id=v.route_id,
                lat=v.lat,
                lon=v.lon,
                bearing=v.bearing,
                speed_mps=v.speed_mps,
                timestamp=v.timestamp,
                stop_id=v.stop_id,
                current_status=v.current_status,
                label=v.label,
            )
            for v in vehicles
        ],
    )


@router.get("/realtime/feed/stats", response_model=FeedStatsSchema)
async def feed_stats(
    service: VehicleFeedService = Depends(get_vehicle_feed_service),
) -> FeedStatsSchema:
    stats = service.stats()
    return FeedStatsSchema(cached=stats.cached, age_s=stats.age_s, ttl_s=stats.ttl_s)


@router.get("/cache/stats", response_model=ResultCacheStatsSchema)
async def cache_stats(
    cache: InMemoryResultCache = Depends(get_result_cache),
) -> ResultCacheStatsSchema:
    return ResultCacheStatsSchema(size=cache.size(), sweeping=cache.sweeping)
