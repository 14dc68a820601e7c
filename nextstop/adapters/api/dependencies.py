from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from fastapi import Request

from nextstop.adapters.cache.in_memory_result_cache import InMemoryResultCache
from nextstop.adapters.cache.shared_feed_cache import SharedFeedCache
from nextstop.adapters.http.retry_policy import RetryPolicy
from nextstop.adapters.http.retrying_transport import RetryingTransport
from nextstop.adapters.persistence import SqliteScheduleRepository, build_catalog
from nextstop.adapters.realtime.http_vehicle_positions_feed import (
    HttpVehiclePositionsFeed,
    parse_headers,
)
from nextstop.app.services.arrivals_cache_service import ArrivalsCacheService
from nextstop.app.services.schedule_query_service import ScheduleQueryService
from nextstop.app.services.stop_resolver_service import StopResolverService
from nextstop.app.services.vehicle_feed_service import VehicleFeedService
from nextstop.config import Settings
from nextstop.domain.models.transport_mode import TransportMode

logger = logging.getLogger(__name__)

CATALOG_MODES = (TransportMode.UNDERGROUND, TransportMode.BUS, TransportMode.RAIL)


@dataclass(slots=True)
class Runtime:
    """Process-wide components, built once at startup."""

    settings: Settings
    schedule: SqliteScheduleRepository
    result_cache: InMemoryResultCache
    transport: RetryingTransport
    resolver: StopResolverService
    schedule_queries: ScheduleQueryService
    arrivals_cache: ArrivalsCacheService
    vehicle_feed: VehicleFeedService | None

    async def aclose(self) -> None:
        self.result_cache.destroy()
        await self.transport.aclose()
        self.schedule.close()


def build_runtime(
    settings: Settings, client: httpx.AsyncClient | None = None
) -> Runtime:
    schedule = SqliteScheduleRepository(
        db_path=settings.schedule_db_path,
        default_mode=settings.schedule_default_mode,
    )
    schedule.initialize(settings.gtfs_data_path)

    catalogs = {mode: build_catalog(schedule, mode) for mode in CATALOG_MODES}
    for mode, catalog in catalogs.items():
        logger.info(
            "Catalog built",
            extra={
                "mode": mode.value,
                "stops": catalog.stop_count(),
                "routes": catalog.route_count(),
            },
        )

    transport = RetryingTransport(
        client,
        timeout_s=settings.http_timeout_s,
        policy=RetryPolicy(
            max_retries=settings.http_max_retries,
            base_delay_s=settings.http_base_delay_s,
            max_delay_s=settings.http_max_delay_s,
        ),
    )

    vehicle_feed = None
    if settings.feed_url:
        source = HttpVehiclePositionsFeed(
            transport=transport,
            url=settings.feed_url,
            feed_format=settings.feed_format,
            headers=parse_headers(settings.feed_headers),
        )
        vehicle_feed = VehicleFeedService(
            feed_cache=SharedFeedCache(source.fetch_vehicles, ttl_ms=settings.feed_ttl_ms),
            trip_prefix=settings.feed_trip_prefix,
        )

    result_cache = InMemoryResultCache(sweep_interval_s=settings.cache_sweep_interval_s)

    return Runtime(
        settings=settings,
        schedule=schedule,
        result_cache=result_cache,
        transport=transport,
        resolver=StopResolverService(catalogs=catalogs),
        schedule_queries=ScheduleQueryService(schedule=schedule),
        arrivals_cache=ArrivalsCacheService(
            cache=result_cache, ttl_seconds=settings.cache_ttls()
        ),
        vehicle_feed=vehicle_feed,
    )


def get_runtime(request: Request) -> Runtime:
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise RuntimeError("Runtime not initialized")
    return runtime


def get_stop_resolver(request: Request) -> StopResolverService:
    return get_runtime(request).resolver


def get_schedule_query_service(request: Request) -> ScheduleQueryService:
    return get_runtime(request).schedule_queries


def get_vehicle_feed_service(request: Request) -> VehicleFeedService:
    feed = get_runtime(request).vehicle_feed
    if feed is None:
        raise RuntimeError("Realtime feed not configured")
    return feed


def get_result_cache(request: Request) -> InMemoryResultCache:
    return get_runtime(request).result_cache
