from __future__ import annotations

from pathlib import Path

import pytest

STOPS = """stop_id,stop_code,stop_name,stop_lat,stop_lon,location_type,parent_station
par_5_17000,17000,Madrid-Chamartín,40.4722,-3.6825,0,
par_5_18000,18000,Madrid-Atocha Cercanías,40.4065,-3.6893,0,
par_5_10000,10000,Alcalá de Henares,40.4893,-3.3661,0,
"""

ROUTES = """route_id,route_short_name,route_long_name,route_type
C2,C2,Guadalajara - Chamartín,2
C7,C7,Alcalá de Henares - Príncipe Pío,2
"""

TRIPS = """trip_id,route_id,service_id,trip_headsign
T1,C2,WD,Alcalá de Henares
"""

# Deliberately out of order: the store must sort by stop_sequence.
STOP_TIMES = """trip_id,stop_id,stop_sequence,arrival_time,departure_time
T1,par_5_10000,3,08:40:00,08:40:30
T1,par_5_17000,1,08:00:00,08:00:30
T1,par_5_18000,2,08:10:00,08:11:00
"""

TRANSFERS = """from_stop_id,to_stop_id,transfer_type,min_transfer_time
par_5_18000,par_5_17000,2,300
"""


def write_gtfs(base: Path, *, transfers: bool = True, **overrides: str) -> Path:
    base.mkdir(parents=True, exist_ok=True)
    files = {
        "stops.txt": STOPS,
        "routes.txt": ROUTES,
        "trips.txt": TRIPS,
        "stop_times.txt": STOP_TIMES,
    }
    if transfers:
        files["transfers.txt"] = TRANSFERS
    for name, content in overrides.items():
        files[name.replace("_txt", ".txt")] = content
    for name, content in files.items():
        (base / name).write_text(content, encoding="utf-8")
    return base


@pytest.fixture
def gtfs_dir(tmp_path: Path) -> Path:
    return write_gtfs(tmp_path / "gtfs")


@pytest.fixture
def make_gtfs(tmp_path: Path):
    def _make(name: str = "custom", **kwargs) -> Path:
        return write_gtfs(tmp_path / name, **kwargs)

    return _make
