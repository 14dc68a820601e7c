from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from nextstop.domain.models.transport_mode import TransportMode

DEFAULT_FEED_URL = "https://gtfsrt.renfe.com/vehicle_positions.json"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_str(name: str, default: str | None) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip() or None


@dataclass(frozen=True, slots=True)
class Settings:
    gtfs_data_path: str
    schedule_db_path: str
    schedule_default_mode: TransportMode | None
    cache_ttl_underground_s: float
    cache_ttl_bus_s: float
    cache_ttl_rail_s: float
    cache_sweep_interval_s: float
    feed_url: str | None
    feed_format: str
    feed_headers: str | None
    feed_ttl_ms: int
    feed_trip_prefix: str | None
    http_timeout_s: float
    http_max_retries: int
    http_base_delay_s: float
    http_max_delay_s: float
    log_level: str
    reveal_errors: bool

    @staticmethod
    def from_env() -> "Settings":
        raw_mode = _env_str("SCHEDULE_DEFAULT_MODE", None)
        return Settings(
            gtfs_data_path=os.getenv("GTFS_DATA_PATH", "./transport-data"),
            schedule_db_path=os.getenv("SCHEDULE_DB_PATH", ":memory:"),
            schedule_default_mode=TransportMode.parse(raw_mode) if raw_mode else None,
            cache_ttl_underground_s=_env_float("CACHE_TTL_UNDERGROUND", 30.0),
            cache_ttl_bus_s=_env_float("CACHE_TTL_BUS", 10.0),
            cache_ttl_rail_s=_env_float("CACHE_TTL_RAIL", 10.0),
            cache_sweep_interval_s=_env_float("CACHE_SWEEP_INTERVAL_S", 60.0),
            feed_url=_env_str("GTFS_RT_VEHICLE_POSITIONS_URL", DEFAULT_FEED_URL),
            feed_format=(os.getenv("GTFS_RT_FORMAT") or "json").strip().lower(),
            feed_headers=_env_str("GTFS_RT_HEADERS", None),
            feed_ttl_ms=_env_int("FEED_TTL_MS", 60_000),
            feed_trip_prefix=_env_str("GTFS_RT_TRIP_PREFIX", None),
            http_timeout_s=_env_float("HTTP_TIMEOUT_S", 10.0),
            http_max_retries=_env_int("HTTP_MAX_RETRIES", 3),
            http_base_delay_s=_env_float("HTTP_BASE_DELAY_S", 0.1),
            http_max_delay_s=_env_float("HTTP_MAX_DELAY_S", 5.0),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
            reveal_errors=_env_bool("NEXTSTOP_REVEAL_ERRORS", False),
        )

    def cache_ttls(self) -> dict[TransportMode, float]:
        return {
            TransportMode.UNDERGROUND: self.cache_ttl_underground_s,
            TransportMode.BUS: self.cache_ttl_bus_s,
            TransportMode.RAIL: self.cache_ttl_rail_s,
        }


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
