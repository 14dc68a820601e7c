from __future__ import annotations

from dataclasses import dataclass

import httpx
import pytest

from nextstop.adapters.api.dependencies import (
    get_result_cache,
    get_schedule_query_service,
    get_stop_resolver,
    get_vehicle_feed_service,
)
from nextstop.adapters.cache.in_memory_result_cache import InMemoryResultCache
from nextstop.app.services.schedule_query_service import TripSchedule
from nextstop.domain.exceptions.resolution import StopNotFound
from nextstop.domain.exceptions.schedule import NotFound
from nextstop.domain.exceptions.transport import HttpError
from nextstop.domain.models import (
    FeedCacheStats,
    GeoPoint,
    RealtimeVehicle,
    Stop,
    TransportMode,
    TripStop,
)
from nextstop.main import app


class _FakeResolver:
    modes = frozenset({TransportMode.UNDERGROUND, TransportMode.BUS, TransportMode.RAIL})

    def resolve(self, mode: TransportMode, query: str) -> Stop:
        if query == "Sol":
            return _sol(mode)
        raise StopNotFound(query, ("Sol",))

    def suggest(self, mode: TransportMode, query: str, limit: int = 3) -> tuple[Stop, ...]:
        return (_sol(mode),)[:limit] if query.lower().startswith("so") else ()


def _sol(mode: TransportMode) -> Stop:
    return Stop(
        stop_id="par_4_1",
        name="Sol",
        location=GeoPoint(lat=40.4169, lon=-3.7035),
        mode=mode,
        code="1",
    )


class _FakeScheduleQueries:
    def trip_schedule(self, trip_id: str) -> TripSchedule:
        if trip_id != "T1":
            raise NotFound("Trip", trip_id)
        return TripSchedule(
            trip_id="T1",
            destination="Alcalá de Henares",
            stops=(
                TripStop(
                    trip_id="T1",
                    stop_id="A",
                    stop_sequence=1,
                    arrival_time="08:00:00",
                    departure_time="08:00:30",
                    stop_name="Chamartín",
                ),
            ),
        )


@dataclass
class _FakeVehicleFeed:
    fail: bool = False

    async def list_vehicles(self, *, route_ids=None):
        if self.fail:
            raise HttpError(503, "https://feed.example.test", "down")
        return (
            RealtimeVehicle(
                vehicle_id="v1", trip_id="t1", route_id="C2", lat=40.0, lon=-3.0
            ),
        )

    async def vehicles_at_stop(self, stop_id: str):
        return ()

    def stats(self) -> FeedCacheStats:
        return FeedCacheStats(cached=True, age_s=4.2, ttl_s=60.0)


async def _get(path: str, **params):
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path, params=params)


@pytest.fixture(autouse=True)
def _overrides():
    app.dependency_overrides[get_stop_resolver] = lambda: _FakeResolver()
    app.dependency_overrides[get_schedule_query_service] = lambda: _FakeScheduleQueries()
    app.dependency_overrides[get_vehicle_feed_service] = lambda: _FakeVehicleFeed()
    app.dependency_overrides[get_result_cache] = lambda: InMemoryResultCache()
    yield
    app.dependency_overrides.clear()


@pytest.mark.unit
@pytest.mark.anyio
async def test_health() -> None:
    resp = await _get("/health")
    assert resp.json() == {"status": "ok"}


@pytest.mark.unit
@pytest.mark.anyio
async def test_resolve_stop_returns_stop() -> None:
    resp = await _get("/stops/metro/resolve", q="Sol")

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["stop_id"] == "par_4_1"
    assert payload["code"] == "1"
    assert payload["mode"] == "underground"


@pytest.mark.unit
@pytest.mark.anyio
async def test_resolve_stop_not_found_returns_suggestions() -> None:
    resp = await _get("/stops/underground/resolve", q="Sool")

    assert resp.status_code == 404
    assert resp.json() == {
        "detail": "Stop not found: Sool",
        "query": "Sool",
        "suggestions": ["Sol"],
    }


@pytest.mark.unit
@pytest.mark.anyio
async def test_resolve_stop_unknown_mode_is_bad_request() -> None:
    resp = await _get("/stops/ferry/resolve", q="Sol")
    assert resp.status_code == 400


@pytest.mark.unit
@pytest.mark.anyio
async def test_mode_without_catalog_is_bad_request() -> None:
    resp = await _get("/stops/light_rail/resolve", q="Sol")

    assert resp.status_code == 400
    assert "light_rail" in resp.json()["detail"]


@pytest.mark.unit
@pytest.mark.anyio
async def test_suggest_stops() -> None:
    hit = await _get("/stops/underground/suggest", q="Sool")
    miss = await _get("/stops/underground/suggest", q="Xyz")

    assert hit.status_code == 200
    assert [s["name"] for s in hit.json()] == ["Sol"]
    assert miss.json() == []


@pytest.mark.unit
@pytest.mark.anyio
async def test_trip_stops_and_not_found() -> None:
    ok = await _get("/trips/T1/stops")
    missing = await _get("/trips/T9/stops")

    assert ok.status_code == 200
    assert ok.json()["destination"] == "Alcalá de Henares"
    assert ok.json()["stops"][0]["stop_name"] == "Chamartín"
    assert missing.status_code == 404
    assert missing.json() == {"detail": "Trip not found: T9"}


@pytest.mark.unit
@pytest.mark.anyio
async def test_vehicles_and_feed_stats() -> None:
    vehicles = await _get("/realtime/vehicles")
    stats = await _get("/realtime/feed/stats")

    assert vehicles.status_code == 200
    assert vehicles.json()["feed_age_s"] == 4.2
    assert vehicles.json()["vehicles"][0]["route_id"] == "C2"
    assert stats.json() == {"cached": True, "age_s": 4.2, "ttl_s": 60.0}


@pytest.mark.unit
@pytest.mark.anyio
async def test_upstream_failure_maps_to_bad_gateway() -> None:
    app.dependency_overrides[get_vehicle_feed_service] = lambda: _FakeVehicleFeed(fail=True)

    resp = await _get("/realtime/vehicles")
    assert resp.status_code == 502


@pytest.mark.unit
@pytest.mark.anyio
async def test_cache_stats() -> None:
    resp = await _get("/cache/stats")
    assert resp.json() == {"size": 0, "sweeping": False}
