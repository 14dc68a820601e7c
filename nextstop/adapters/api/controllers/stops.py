from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from nextstop.adapters.api.dependencies import (
    get_schedule_query_service,
    get_stop_resolver,
)
from nextstop.adapters.api.schemas.stops import (
    GeoPointSchema,
    StopNotFoundSchema,
    StopSchema,
    TripScheduleSchema,
    TripStopSchema,
)
from nextstop.app.services.schedule_query_service import ScheduleQueryService
from nextstop.app.services.stop_resolver_service import StopResolverService
from nextstop.domain.models.stop import Stop
from nextstop.domain.models.transport_mode import TransportMode

router = APIRouter(tags=["stops"])


def _stop_schema(stop: Stop) -> StopSchema:
    return StopSchema(
        stop_id=stop.stop_id,
        code=stop.canonical_code,
        name=stop.name,
        mode=stop.mode.value if stop.mode else None,
        parent_station=stop.parent_station,
        location=GeoPointSchema(lat=stop.location.lat, lon=stop.location.lon),
    )


def _parse_mode(raw: str, resolver: StopResolverService) -> TransportMode:
    try:
        mode = TransportMode.parse(raw)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if mode not in resolver.modes:
        raise HTTPException(
            status_code=400, detail=f"No stop catalog for mode {mode.value!r}"
        )
    return mode


@router.get(
    "/stops/{mode}/resolve",
    response_model=StopSchema,
    responses={404: {"model": StopNotFoundSchema}},
)
async def resolve_stop(
    mode: str,
    q: str = Query(..., min_length=1),
    resolver: StopResolverService = Depends(get_stop_resolver),
) -> StopSchema:
    return _stop_schema(resolver.resolve(_parse_mode(mode, resolver), q))


@router.get("/stops/{mode}/suggest", response_model=list[StopSchema])
async def suggest_stops(
    mode: str,
    q: str = Query(..., min_length=1),
    limit: int = Query(default=3, ge=1, le=20),
    resolver: StopResolverService = Depends(get_stop_resolver),
) -> list[StopSchema]:
    return [
        _stop_schema(s) for s in resolver.suggest(_parse_mode(mode, resolver), q, limit)
    ]


@router.get("/trips/{trip_id}/stops", response_model=TripScheduleSchema)
async def trip_stops(
    trip_id: str,
    service: ScheduleQueryService = Depends(get_schedule_query_service),
) -> TripScheduleSchema:
    schedule = service.trip_schedule(trip_id)
    return TripScheduleSchema(
        trip_id=schedule.trip_id,
        destination=schedule.destination,
        stops=[
            TripStopSchema(
                stop_id=s.stop_id,
                stop_name=s.stop_name,
                stop_sequence=s.stop_sequence,
                arrival_time=s.arrival_time,
                departure_time=s.departure_time,
            )
            for s in schedule.stops
        ],
    )
