from __future__ import annotations

from dataclasses import dataclass

from nextstop.app.ports.output import IScheduleRepository
from nextstop.domain.exceptions.schedule import NotFound
from nextstop.domain.models.schedule import TripStop


@dataclass(frozen=True, slots=True)
class TripSchedule:
    trip_id: str
    destination: str
    stops: tuple[TripStop, ...]


@dataclass(slots=True)
class ScheduleQueryService:
    schedule: IScheduleRepository

    def trip_schedule(self, trip_id: str) -> TripSchedule:
        stops = self.schedule.get_trip_stops(trip_id)
        destination = self.schedule.get_trip_destination(trip_id)
        if not stops or destination is None:
            raise NotFound("Trip", trip_id)
        return TripSchedule(trip_id=trip_id, destination=destination, stops=stops)

    def upcoming_stops(self, trip_id: str, stop_id: str) -> tuple[TripStop, ...]:
        """Stops the trip still calls at after `stop_id`."""

        stops = self.schedule.get_trip_stops(trip_id)
        current = next((s for s in stops if s.stop_id == stop_id), None)
        if current is None:
            raise NotFound("Trip stop", f"{trip_id}:{stop_id}")
        return self.schedule.get_future_stops(trip_id, current.stop_sequence)
