from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GeoPoint:
    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (-90.0 <= self.lat <= 90.0):
            raise ValueError(f"Invalid latitude: {self.lat}")
        if not (-180.0 <= self.lon <= 180.0):
            raise ValueError(f"Invalid longitude: {self.lon}")

    @staticmethod
    def parse(lat_raw: str | None, lon_raw: str | None) -> "GeoPoint":
        """Build a point from raw GTFS columns (ValueError when blank or invalid)."""

        lat_s = (lat_raw or "").strip()
        lon_s = (lon_raw or "").strip()
        if not lat_s or not lon_s:
            raise ValueError("Missing coordinates")
        return GeoPoint(lat=float(lat_s), lon=float(lon_s))
