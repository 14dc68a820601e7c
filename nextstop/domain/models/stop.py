from __future__ import annotations

from dataclasses import dataclass

from .geo import GeoPoint
from .transport_mode import TransportMode


@dataclass(frozen=True, slots=True)
class Stop:
    """A boarding location as listed in stops.txt, tagged with its mode."""

    stop_id: str
    name: str
    location: GeoPoint
    mode: TransportMode | None = None
    code: str | None = None
    parent_station: str | None = None

    def __post_init__(self) -> None:
        if not self.stop_id or not self.stop_id.strip():
            raise ValueError("Stop id must not be empty")
        if not self.name or not self.name.strip():
            raise ValueError(f"Stop {self.stop_id} has an empty name")

    @property
    def canonical_code(self) -> str:
        return self.code or self.stop_id
