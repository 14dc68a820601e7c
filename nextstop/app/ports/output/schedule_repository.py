from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from nextstop.domain.models.schedule import Route, Transfer, Trip, TripStop
from nextstop.domain.models.stop import Stop


class IScheduleRepository(ABC):
    """Port for the indexed static schedule (GTFS) store."""

    @abstractmethod
    def initialize(self, dataset_path: str | Path) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_trip_stops(self, trip_id: str) -> tuple[TripStop, ...]:
        raise NotImplementedError

    @abstractmethod
    def get_arrival_time(self, trip_id: str, stop_id: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def trip_goes_to_station(self, trip_id: str, stop_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_trip_destination(self, trip_id: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def get_future_stops(
        self, trip_id: str, from_sequence: int
    ) -> tuple[TripStop, ...]:
        raise NotImplementedError

    @abstractmethod
    def get_trips_by_route(self, route_id: str) -> tuple[Trip, ...]:
        raise NotImplementedError

    @abstractmethod
    def get_all_trips(self) -> tuple[Trip, ...]:
        raise NotImplementedError

    @abstractmethod
    def get_all_stops(self) -> tuple[Stop, ...]:
        raise NotImplementedError

    @abstractmethod
    def get_all_routes(self) -> tuple[Route, ...]:
        raise NotImplementedError

    @abstractmethod
    def get_all_transfers(self) -> tuple[Transfer, ...]:
        raise NotImplementedError
