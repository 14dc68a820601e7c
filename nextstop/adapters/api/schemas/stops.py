from __future__ import annotations

from pydantic import BaseModel


class GeoPointSchema(BaseModel):
    lat: float
    lon: float


class StopSchema(BaseModel):
    stop_id: str
    code: str
    name: str
    mode: str | None = None
    parent_station: str | None = None
    location: GeoPointSchema


class StopNotFoundSchema(BaseModel):
    detail: str
    query: str
    suggestions: list[str]


class TripStopSchema(BaseModel):
    stop_id: str
    stop_name: str | None = None
    stop_sequence: int
    arrival_time: str
    departure_time: str


class TripScheduleSchema(BaseModel):
    trip_id: str
    destination: str
    stops: list[TripStopSchema]
