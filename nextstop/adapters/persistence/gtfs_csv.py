from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterator, Sequence

from nextstop.domain.exceptions.schedule import StoreInitError
from nextstop.domain.models.geo import GeoPoint

StopRow = tuple[str, str, float, float, str | None, str | None, int]
RouteRow = tuple[str, str | None, str | None, int]
TripRow = tuple[str, str, str | None, str | None]
StopTimeRow = tuple[str, str, int, str, str]
TransferRow = tuple[str, str, int, int | None]

REQUIRED_COLUMNS: dict[str, tuple[str, ...]] = {
    "stops.txt": ("stop_id", "stop_name", "stop_lat", "stop_lon"),
    "routes.txt": ("route_id", "route_type"),
    "trips.txt": ("trip_id", "route_id"),
    "stop_times.txt": (
        "trip_id",
        "stop_id",
        "stop_sequence",
        "arrival_time",
        "departure_time",
    ),
    "transfers.txt": ("from_stop_id", "to_stop_id", "transfer_type"),
}


def _opt(row: dict[str, str], name: str) -> str | None:
    return (row.get(name) or "").strip() or None


# SQLite INTEGER is a signed 64-bit value.
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


def _int(raw: str | None) -> int:
    value = int((raw or "").strip())
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"Integer out of range: {raw}")
    return value


def require_columns(
    path: Path, fieldnames: Sequence[str] | None, required: Sequence[str]
) -> None:
    present = {f.strip() for f in (fieldnames or ())}
    missing = [c for c in required if c not in present]
    if missing:
        raise StoreInitError(f"{path.name} is missing columns: {', '.join(missing)}")


def iter_gtfs_rows(path: Path) -> Iterator[dict[str, str]]:
    """Yield rows of a GTFS text file, validating its header first.

    utf-8-sig tolerates the BOM some agencies ship.
    """

    try:
        fp = path.open("r", encoding="utf-8-sig", newline="")
    except OSError as e:
        raise StoreInitError(f"Cannot read {path}: {e}") from e

    with fp:
        reader = csv.DictReader(fp)
        require_columns(path, reader.fieldnames, REQUIRED_COLUMNS.get(path.name, ()))
        try:
            for row in reader:
                yield {
                    (k or "").strip(): (v or "").strip()
                    for k, v in row.items()
                    if isinstance(v, str)
                }
        except (csv.Error, UnicodeDecodeError) as e:
            raise StoreInitError(f"Malformed file {path}: {e}") from e


def map_stop_row(row: dict[str, str]) -> StopRow | None:
    stop_id = _opt(row, "stop_id")
    name = _opt(row, "stop_name")
    if not stop_id or not name:
        return None
    try:
        point = GeoPoint.parse(row.get("stop_lat"), row.get("stop_lon"))
        location_type = _int(_opt(row, "location_type") or "0")
    except ValueError:
        return None
    return (
        stop_id,
        name,
        point.lat,
        point.lon,
        _opt(row, "stop_code"),
        _opt(row, "parent_station"),
        location_type,
    )


def map_route_row(row: dict[str, str]) -> RouteRow | None:
    route_id = _opt(row, "route_id")
    short_name = _opt(row, "route_short_name")
    long_name = _opt(row, "route_long_name")
    if not route_id or not (short_name or long_name):
        return None
    try:
        route_type = _int(row.get("route_type"))
    except ValueError:
        return None
    return (route_id, short_name, long_name, route_type)


def map_trip_row(row: dict[str, str]) -> TripRow | None:
    trip_id = _opt(row, "trip_id")
    route_id = _opt(row, "route_id")
    if not trip_id or not route_id:
        return None
    return (trip_id, route_id, _opt(row, "service_id"), _opt(row, "trip_headsign"))


def map_stop_time_row(row: dict[str, str]) -> StopTimeRow | None:
    trip_id = _opt(row, "trip_id")
    stop_id = _opt(row, "stop_id")
    arrival = _opt(row, "arrival_time")
    departure = _opt(row, "departure_time") or arrival
    if not trip_id or not stop_id or not arrival or not departure:
        return None
    try:
        sequence = _int(row.get("stop_sequence"))
    except ValueError:
        return None
    return (trip_id, stop_id, sequence, arrival, departure)


def map_transfer_row(row: dict[str, str]) -> TransferRow | None:
    from_stop = _opt(row, "from_stop_id")
    to_stop = _opt(row, "to_stop_id")
    if not from_stop or not to_stop:
        return None
    try:
        transfer_type = _int(_opt(row, "transfer_type") or "0")
        raw_min = _opt(row, "min_transfer_time")
        min_time = _int(raw_min) if raw_min is not None else None
    except ValueError:
        return None
    return (from_stop, to_stop, transfer_type, min_time)
