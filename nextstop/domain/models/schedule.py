from __future__ import annotations

from dataclasses import dataclass

from .transport_mode import TransportMode


def parse_gtfs_time_to_seconds(raw: str) -> int:
    # GTFS time can be HH:MM:SS with HH possibly > 24.
    hh, mm, ss = raw.strip().split(":")
    return int(hh) * 3600 + int(mm) * 60 + int(ss)


@dataclass(frozen=True, slots=True)
class Route:
    """Transit line metadata (subset of GTFS routes.txt)."""

    route_id: str
    short_name: str | None
    long_name: str | None
    route_type: int

    def __post_init__(self) -> None:
        if not self.route_id or not self.route_id.strip():
            raise ValueError("Route id must not be empty")
        if not (self.short_name or self.long_name):
            raise ValueError(f"Route {self.route_id} has no name")

    @property
    def mode(self) -> TransportMode | None:
        return TransportMode.from_route_type(self.route_type)

    @property
    def display_name(self) -> str:
        return self.short_name or self.long_name or self.route_id


@dataclass(frozen=True, slots=True)
class Trip:
    trip_id: str
    route_id: str
    service_id: str | None = None
    headsign: str | None = None


@dataclass(frozen=True, slots=True)
class TripStop:
    """One scheduled call of a trip at a stop.

    Times are GTFS wall-clock strings (HH:MM:SS, hours may exceed 24).
    """

    trip_id: str
    stop_id: str
    stop_sequence: int
    arrival_time: str
    departure_time: str
    stop_name: str | None = None

    @property
    def arrival_s(self) -> int:
        return parse_gtfs_time_to_seconds(self.arrival_time)


@dataclass(frozen=True, slots=True)
class Transfer:
    from_stop_id: str
    to_stop_id: str
    transfer_type: int
    min_transfer_time: int | None = None
