from __future__ import annotations

import re
from enum import Enum
from typing import Mapping


class TransportMode(str, Enum):
    UNDERGROUND = "underground"
    BUS = "bus"
    RAIL = "rail"
    LIGHT_RAIL = "light_rail"

    @classmethod
    def parse(cls, text: str) -> "TransportMode":
        key = (text or "").strip().lower().replace("-", "_").replace(" ", "_")
        mode = _ALIASES.get(key)
        if mode is None:
            raise ValueError(f"Unknown transport mode: {text!r}")
        return mode

    @classmethod
    def from_route_type(cls, route_type: int) -> "TransportMode | None":
        """Map a GTFS route_type (basic or extended) to a mode."""

        if route_type in (0, 5) or 900 <= route_type <= 999:
            return cls.LIGHT_RAIL
        if route_type == 1 or 400 <= route_type <= 499:
            return cls.UNDERGROUND
        if route_type == 2 or 100 <= route_type <= 199:
            return cls.RAIL
        if route_type in (3, 11) or 700 <= route_type <= 799:
            return cls.BUS
        return None


_ALIASES: dict[str, TransportMode] = {
    "underground": TransportMode.UNDERGROUND,
    "metro": TransportMode.UNDERGROUND,
    "subway": TransportMode.UNDERGROUND,
    "bus": TransportMode.BUS,
    "rail": TransportMode.RAIL,
    "train": TransportMode.RAIL,
    "cercanias": TransportMode.RAIL,
    "light_rail": TransportMode.LIGHT_RAIL,
    "tram": TransportMode.LIGHT_RAIL,
}

# Madrid CRTM stop_id convention.
DEFAULT_STOP_ID_PREFIXES: Mapping[str, TransportMode] = {
    "par_4_": TransportMode.UNDERGROUND,
    "par_6_": TransportMode.BUS,
    "par_8_": TransportMode.BUS,
    "par_9_": TransportMode.BUS,
    "par_5_": TransportMode.RAIL,
    "par_10_": TransportMode.LIGHT_RAIL,
}


def classify_stop_mode(
    stop_id: str,
    prefixes: Mapping[str, TransportMode] = DEFAULT_STOP_ID_PREFIXES,
    default: TransportMode | None = None,
) -> TransportMode | None:
    for prefix, mode in prefixes.items():
        if stop_id.startswith(prefix):
            return mode
    return default


_NUMERIC_SUFFIX = re.compile(r"_(\d+)$")


def numeric_stop_code(stop_id: str) -> str | None:
    """Public station number carried in a stop_id suffix ("par_5_18000" -> "18000")."""

    match = _NUMERIC_SUFFIX.search(stop_id)
    return match.group(1) if match else None
