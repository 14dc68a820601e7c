from .cache import CacheEntry, CacheKey, FeedCacheStats, FeedSnapshot
from .geo import GeoPoint
from .realtime import RealtimeVehicle
from .schedule import Route, Transfer, Trip, TripStop
from .stop import Stop
from .transport_mode import TransportMode

__all__ = [
    "CacheEntry",
    "CacheKey",
    "FeedCacheStats",
    "FeedSnapshot",
    "GeoPoint",
    "RealtimeVehicle",
    "Route",
    "Stop",
    "Transfer",
    "TransportMode",
    "Trip",
    "TripStop",
]
