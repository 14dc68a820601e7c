from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class VehicleSchema(BaseModel):
    vehicle_id: str | None = None
    trip_id: str | None = None
    route_id: str | None = None
    lat: float
    lon: float
    bearing: float | None = None
    speed_mps: float | None = None
    timestamp: datetime | None = None
    stop_id: str | None = None
    current_status: str | None = None
    label: str | None = None


class VehiclesResponseSchema(BaseModel):
    fetched_at: datetime
    feed_age_s: float | None = None
    vehicles: list[VehicleSchema]


class FeedStatsSchema(BaseModel):
    cached: bool
    age_s: float | None = None
    ttl_s: float


class ResultCacheStatsSchema(BaseModel):
    size: int
    sweeping: bool
