from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

from nextstop.adapters.cache.bounded_ttl_cache import BoundedTtlCache
from nextstop.adapters.persistence.gtfs_csv import (
    iter_gtfs_rows,
    map_route_row,
    map_stop_row,
    map_stop_time_row,
    map_transfer_row,
    map_trip_row,
)
from nextstop.app.ports.output import IScheduleRepository
from nextstop.domain.exceptions.schedule import StoreInitError
from nextstop.domain.models.geo import GeoPoint
from nextstop.domain.models.schedule import Route, Transfer, Trip, TripStop
from nextstop.domain.models.stop import Stop
from nextstop.domain.models.transport_mode import (
    DEFAULT_STOP_ID_PREFIXES,
    TransportMode,
    classify_stop_mode,
    numeric_stop_code,
)

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS stops (
    stop_id TEXT PRIMARY KEY,
    stop_name TEXT NOT NULL,
    stop_lat REAL NOT NULL,
    stop_lon REAL NOT NULL,
    stop_code TEXT,
    parent_station TEXT,
    location_type INTEGER NOT NULL DEFAULT 0,
    source_mode TEXT
);
CREATE TABLE IF NOT EXISTS routes (
    route_id TEXT PRIMARY KEY,
    route_short_name TEXT,
    route_long_name TEXT,
    route_type INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS trips (
    trip_id TEXT PRIMARY KEY,
    route_id TEXT NOT NULL,
    service_id TEXT,
    trip_headsign TEXT
);
CREATE TABLE IF NOT EXISTS stop_times (
    trip_id TEXT NOT NULL,
    stop_id TEXT NOT NULL,
    stop_sequence INTEGER NOT NULL,
    arrival_time TEXT NOT NULL,
    departure_time TEXT NOT NULL,
    PRIMARY KEY (trip_id, stop_sequence)
);
CREATE TABLE IF NOT EXISTS transfers (
    from_stop_id TEXT NOT NULL,
    to_stop_id TEXT NOT NULL,
    transfer_type INTEGER NOT NULL DEFAULT 0,
    min_transfer_time INTEGER,
    PRIMARY KEY (from_stop_id, to_stop_id)
);
"""

_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_stop_times_trip ON stop_times(trip_id);
CREATE INDEX IF NOT EXISTS idx_stop_times_stop ON stop_times(stop_id);
CREATE INDEX IF NOT EXISTS idx_stop_times_trip_stop ON stop_times(trip_id, stop_id);
CREATE INDEX IF NOT EXISTS idx_transfers_from ON transfers(from_stop_id);
CREATE INDEX IF NOT EXISTS idx_transfers_to ON transfers(to_stop_id);
"""

_TABLES = ("stops", "routes", "trips", "stop_times", "transfers")

# Written to PRAGMA user_version once a load has fully completed; any other
# value means the file holds no usable dataset.
_STORE_VERSION = 2

# Per-mode layout of a dataset root: one GTFS feed per directory.
DATASET_LAYOUT: tuple[tuple[str, TransportMode], ...] = (
    ("metro", TransportMode.UNDERGROUND),
    ("bus/emt", TransportMode.BUS),
    ("bus/urban", TransportMode.BUS),
    ("bus/interurban", TransportMode.BUS),
    ("train", TransportMode.RAIL),
)

_INSERT_STOP = (
    "INSERT OR REPLACE INTO stops "
    "(stop_id, stop_name, stop_lat, stop_lon, stop_code, parent_station, location_type, "
    "source_mode) VALUES (?, ?, ?, ?, ?, ?, ?, ?)"
)
_INSERT_ROUTE = (
    "INSERT OR REPLACE INTO routes "
    "(route_id, route_short_name, route_long_name, route_type) VALUES (?, ?, ?, ?)"
)
_INSERT_TRIP = (
    "INSERT OR REPLACE INTO trips "
    "(trip_id, route_id, service_id, trip_headsign) VALUES (?, ?, ?, ?)"
)
_INSERT_STOP_TIME = (
    "INSERT OR REPLACE INTO stop_times "
    "(trip_id, stop_id, stop_sequence, arrival_time, departure_time) "
    "VALUES (?, ?, ?, ?, ?)"
)
_INSERT_TRANSFER = (
    "INSERT OR REPLACE INTO transfers "
    "(from_stop_id, to_stop_id, transfer_type, min_transfer_time) VALUES (?, ?, ?, ?)"
)

_TRIP_STOP_COLUMNS = (
    "st.trip_id, st.stop_id, st.stop_sequence, st.arrival_time, "
    "st.departure_time, s.stop_name"
)


@dataclass(slots=True)
class SqliteScheduleRepository(IScheduleRepository):
    """GTFS static schedule backed by SQLite.

    `db_path` defaults to an in-memory database; pass a file path to keep the
    loaded dataset across restarts (a fully loaded file skips parsing).

    The dataset root is either one flat GTFS feed or the per-mode directories
    of DATASET_LAYOUT. Stops from a per-mode directory take that mode; stops
    from a flat feed are classified by stop_id prefix (`mode_prefixes`),
    falling back to `default_mode`.
    """

    db_path: str | Path = ":memory:"
    batch_size: int = 10_000
    default_mode: TransportMode | None = None
    mode_prefixes: Mapping[str, TransportMode] = field(
        default_factory=lambda: dict(DEFAULT_STOP_ID_PREFIXES)
    )

    _conn: sqlite3.Connection | None = field(default=None, init=False, repr=False)
    _initialized: bool = field(default=False, init=False, repr=False)
    _destination_cache: BoundedTtlCache = field(
        default_factory=lambda: BoundedTtlCache(maxsize=1000, ttl_seconds=3600),
        init=False,
        repr=False,
    )
    _trip_stops_cache: BoundedTtlCache = field(
        default_factory=lambda: BoundedTtlCache(maxsize=500, ttl_seconds=3600),
        init=False,
        repr=False,
    )
    _arrival_cache: BoundedTtlCache = field(
        default_factory=lambda: BoundedTtlCache(maxsize=2000, ttl_seconds=1800),
        init=False,
        repr=False,
    )
    _goes_to_cache: BoundedTtlCache = field(
        default_factory=lambda: BoundedTtlCache(maxsize=2000, ttl_seconds=3600),
        init=False,
        repr=False,
    )

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")

    # ------------------------------------------------------------------
    # Lifecycle

    def _open(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn

        target = str(self.db_path)
        if target != ":memory:":
            Path(target).parent.mkdir(parents=True, exist_ok=True)

        try:
            conn = sqlite3.connect(target, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            if target != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.Error as e:
            raise StoreInitError(f"Cannot open schedule store {target}: {e}") from e

        self._conn = conn
        return conn

    def _db(self) -> sqlite3.Connection:
        if self._conn is None or not self._initialized:
            raise RuntimeError("Schedule store is not initialized")
        return self._conn

    def initialize(self, dataset_path: str | Path) -> None:
        if self._initialized:
            return

        conn = self._open()
        try:
            version = conn.execute("PRAGMA user_version").fetchone()[0]
            if version == _STORE_VERSION:
                existing = conn.execute("SELECT COUNT(*) FROM stops").fetchone()[0]
                logger.info(
                    "Schedule store already populated, skipping GTFS parse",
                    extra={"db_path": str(self.db_path), "stops": existing},
                )
                self._initialized = True
                return
            # Interrupted or older loads are discarded and parsed again.
            self._reset(conn)
            conn.executescript(_SCHEMA)
        except sqlite3.Error as e:
            raise StoreInitError(f"Cannot create schedule schema: {e}") from e

        base = Path(dataset_path)
        if not base.is_dir():
            raise StoreInitError(f"GTFS dataset directory not found: {base}")

        try:
            self._load_dataset(conn, base)
            conn.execute(f"PRAGMA user_version = {_STORE_VERSION}")
        except (StoreInitError, sqlite3.Error, OverflowError) as e:
            self._reset(conn)
            if isinstance(e, StoreInitError):
                raise
            raise StoreInitError(f"Failed to load GTFS dataset {base}: {e}") from e

        self._initialized = True

    def _dataset_feeds(self, base: Path) -> list[tuple[Path, TransportMode | None]]:
        """A flat feed at `base`, or the per-mode directories of DATASET_LAYOUT."""

        if (base / "stops.txt").exists():
            return [(base, None)]

        feeds: list[tuple[Path, TransportMode | None]] = []
        for subdir, mode in DATASET_LAYOUT:
            feed = base / subdir
            if (feed / "stops.txt").exists():
                feeds.append((feed, mode))
            else:
                logger.warning(
                    "GTFS feed not found, skipping",
                    extra={"mode": mode.value, "path": str(feed)},
                )
        if not feeds:
            raise StoreInitError(f"No GTFS feed found under {base}")
        return feeds

    def _load_dataset(self, conn: sqlite3.Connection, base: Path) -> None:
        logger.info("Loading GTFS dataset", extra={"path": str(base)})

        totals = dict.fromkeys(_TABLES, 0)
        for feed, mode in self._dataset_feeds(base):
            for table, loaded in self._load_feed(conn, feed, mode).items():
                totals[table] += loaded

        if totals["stops"] == 0:
            raise StoreInitError(f"No stops loaded from {base}")

        try:
            conn.executescript(_INDEXES)
        except sqlite3.Error as e:
            raise StoreInitError(f"Cannot create schedule indexes: {e}") from e

        logger.info("GTFS dataset loaded", extra=totals)

    def _load_feed(
        self, conn: sqlite3.Connection, feed: Path, mode: TransportMode | None
    ) -> dict[str, int]:
        # A flat dataset must be complete; per-mode feeds may omit files.
        required = mode is None
        source_mode = mode.value if mode is not None else None

        def map_stop(row: dict[str, str]) -> tuple[Any, ...] | None:
            mapped = map_stop_row(row)
            return None if mapped is None else (*mapped, source_mode)

        files = (
            ("stops", "stops.txt", _INSERT_STOP, map_stop, True),
            ("routes", "routes.txt", _INSERT_ROUTE, map_route_row, required),
            ("trips", "trips.txt", _INSERT_TRIP, map_trip_row, required),
            ("stop_times", "stop_times.txt", _INSERT_STOP_TIME, map_stop_time_row, required),
            ("transfers", "transfers.txt", _INSERT_TRANSFER, map_transfer_row, False),
        )

        counts: dict[str, int] = {}
        for table, name, sql, mapper, must_exist in files:
            path = feed / name
            if not path.exists():
                if must_exist:
                    raise StoreInitError(f"Required GTFS file not found: {path}")
                if table != "transfers":
                    logger.warning("GTFS file not found, skipping", extra={"file": str(path)})
                counts[table] = 0
                continue
            counts[table] = self._load_file(conn, path, sql, mapper)
        return counts

    def _load_file(
        self,
        conn: sqlite3.Connection,
        path: Path,
        sql: str,
        mapper: Callable[[dict[str, str]], tuple[Any, ...] | None],
    ) -> int:
        loaded = 0
        skipped = 0
        batch: list[tuple[Any, ...]] = []

        # One transaction per file: a failure leaves none of its rows applied.
        try:
            with conn:
                for row in iter_gtfs_rows(path):
                    mapped = mapper(row)
                    if mapped is None:
                        skipped += 1
                        continue
                    batch.append(mapped)
                    if len(batch) >= self.batch_size:
                        conn.executemany(sql, batch)
                        loaded += len(batch)
                        batch.clear()
                if batch:
                    conn.executemany(sql, batch)
                    loaded += len(batch)
        except (sqlite3.Error, OverflowError) as e:
            raise StoreInitError(f"Failed to load {path}: {e}") from e

        if skipped:
            logger.warning(
                "Skipped malformed GTFS rows",
                extra={"file": str(path), "skipped": skipped},
            )
        logger.debug("Loaded GTFS file", extra={"file": str(path), "rows": loaded})
        return loaded

    def _reset(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            "".join(f"DROP TABLE IF EXISTS {table};" for table in _TABLES)
            + "PRAGMA user_version = 0;"
        )

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
        self._conn = None
        self._initialized = False
        for cache in (
            self._destination_cache,
            self._trip_stops_cache,
            self._arrival_cache,
            self._goes_to_cache,
        ):
            cache.clear()

    # ------------------------------------------------------------------
    # Mapping

    def _stop_from_row(self, row: sqlite3.Row) -> Stop:
        stop_id = row["stop_id"]
        source = row["source_mode"]
        mode = (
            TransportMode(source)
            if source
            else classify_stop_mode(stop_id, self.mode_prefixes, self.default_mode)
        )
        code = row["stop_code"]
        if not code and mode is TransportMode.RAIL:
            # Rail stations are queried by the number in their stop_id.
            code = numeric_stop_code(stop_id)
        return Stop(
            stop_id=stop_id,
            name=row["stop_name"],
            location=GeoPoint(lat=row["stop_lat"], lon=row["stop_lon"]),
            mode=mode,
            code=code,
            parent_station=row["parent_station"],
        )

    @staticmethod
    def _route_from_row(row: sqlite3.Row) -> Route:
        return Route(
            route_id=row["route_id"],
            short_name=row["route_short_name"],
            long_name=row["route_long_name"],
            route_type=int(row["route_type"]),
        )

    @staticmethod
    def _trip_from_row(row: sqlite3.Row) -> Trip:
        return Trip(
            trip_id=row["trip_id"],
            route_id=row["route_id"],
            service_id=row["service_id"],
            headsign=row["trip_headsign"],
        )

    @staticmethod
    def _trip_stop_from_row(row: sqlite3.Row) -> TripStop:
        return TripStop(
            trip_id=row["trip_id"],
            stop_id=row["stop_id"],
            stop_sequence=int(row["stop_sequence"]),
            arrival_time=row["arrival_time"],
            departure_time=row["departure_time"],
            stop_name=row["stop_name"],
        )

    @staticmethod
    def _transfer_from_row(row: sqlite3.Row) -> Transfer:
        return Transfer(
            from_stop_id=row["from_stop_id"],
            to_stop_id=row["to_stop_id"],
            transfer_type=int(row["transfer_type"]),
            min_transfer_time=row["min_transfer_time"],
        )

    # ------------------------------------------------------------------
    # Single-trip lookups (cached)

    def get_trip_stops(self, trip_id: str) -> tuple[TripStop, ...]:
        cached = self._trip_stops_cache.get(trip_id)
        if cached is not None:
            return cached

        rows = self._db().execute(
            f"SELECT {_TRIP_STOP_COLUMNS} FROM stop_times st "
            "LEFT JOIN stops s ON s.stop_id = st.stop_id "
            "WHERE st.trip_id = ? ORDER BY st.stop_sequence ASC",
            (trip_id,),
        )
        out = tuple(self._trip_stop_from_row(r) for r in rows)
        if out:
            self._trip_stops_cache.set(trip_id, out)
        return out

    def get_arrival_time(self, trip_id: str, stop_id: str) -> str | None:
        key = f"{trip_id}:{stop_id}"
        cached = self._arrival_cache.get(key)
        if cached is not None:
            return cached

        row = (
            self._db()
            .execute(
                "SELECT arrival_time FROM stop_times "
                "WHERE trip_id = ? AND stop_id = ? "
                "ORDER BY stop_sequence ASC LIMIT 1",
                (trip_id, stop_id),
            )
            .fetchone()
        )
        if row is None:
            return None
        arrival = str(row["arrival_time"])
        self._arrival_cache.set(key, arrival)
        return arrival

    def trip_goes_to_station(self, trip_id: str, stop_id: str) -> bool:
        key = f"{trip_id}:{stop_id}"
        cached = self._goes_to_cache.get(key)
        if cached is not None:
            return bool(cached)

        row = (
            self._db()
            .execute(
                "SELECT COUNT(*) AS n FROM stop_times WHERE trip_id = ? AND stop_id = ?",
                (trip_id, stop_id),
            )
            .fetchone()
        )
        goes = bool(row["n"])
        self._goes_to_cache.set(key, goes)
        return goes

    def get_trip_destination(self, trip_id: str) -> str | None:
        cached = self._destination_cache.get(trip_id)
        if cached is not None:
            return cached

        row = (
            self._db()
            .execute(
                "SELECT COALESCE(s.stop_name, st.stop_id) AS destination "
                "FROM stop_times st LEFT JOIN stops s ON s.stop_id = st.stop_id "
                "WHERE st.trip_id = ? ORDER BY st.stop_sequence DESC LIMIT 1",
                (trip_id,),
            )
            .fetchone()
        )
        if row is None:
            return None
        destination = str(row["destination"])
        self._destination_cache.set(trip_id, destination)
        return destination

    # ------------------------------------------------------------------
    # Range and listing queries

    def get_future_stops(
        self, trip_id: str, from_sequence: int
    ) -> tuple[TripStop, ...]:
        rows = self._db().execute(
            f"SELECT {_TRIP_STOP_COLUMNS} FROM stop_times st "
            "LEFT JOIN stops s ON s.stop_id = st.stop_id "
            "WHERE st.trip_id = ? AND st.stop_sequence > ? "
            "ORDER BY st.stop_sequence ASC",
            (trip_id, from_sequence),
        )
        return tuple(self._trip_stop_from_row(r) for r in rows)

    def get_trips_by_route(self, route_id: str) -> tuple[Trip, ...]:
        rows = self._db().execute(
            "SELECT * FROM trips WHERE route_id = ? ORDER BY trip_id", (route_id,)
        )
        return tuple(self._trip_from_row(r) for r in rows)

    def get_all_trips(self) -> tuple[Trip, ...]:
        rows = self._db().execute("SELECT * FROM trips ORDER BY rowid")
        return tuple(self._trip_from_row(r) for r in rows)

    def get_all_stops(self) -> tuple[Stop, ...]:
        rows = self._db().execute("SELECT * FROM stops ORDER BY rowid")
        return tuple(self._stop_from_row(r) for r in rows)

    def get_all_routes(self) -> tuple[Route, ...]:
        rows = self._db().execute("SELECT * FROM routes ORDER BY rowid")
        return tuple(self._route_from_row(r) for r in rows)

    def get_all_transfers(self) -> tuple[Transfer, ...]:
        rows = self._db().execute("SELECT * FROM transfers ORDER BY rowid")
        return tuple(self._transfer_from_row(r) for r in rows)

    def get_stop(self, stop_id: str) -> Stop | None:
        row = (
            self._db()
            .execute("SELECT * FROM stops WHERE stop_id = ?", (stop_id,))
            .fetchone()
        )
        return self._stop_from_row(row) if row is not None else None

    def get_route(self, route_id: str) -> Route | None:
        row = (
            self._db()
            .execute("SELECT * FROM routes WHERE route_id = ?", (route_id,))
            .fetchone()
        )
        return self._route_from_row(row) if row is not None else None

    def get_trip(self, trip_id: str) -> Trip | None:
        row = (
            self._db()
            .execute("SELECT * FROM trips WHERE trip_id = ?", (trip_id,))
            .fetchone()
        )
        return self._trip_from_row(row) if row is not None else None

    def get_transfers_from(self, stop_id: str) -> tuple[Transfer, ...]:
        rows = self._db().execute(
            "SELECT * FROM transfers WHERE from_stop_id = ? ORDER BY to_stop_id",
            (stop_id,),
        )
        return tuple(self._transfer_from_row(r) for r in rows)

    def counts(self) -> dict[str, int]:
        conn = self._db()
        return {
            table: int(conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0])  # nosec B608
            for table in _TABLES
        }

