from .catalog_index import ICatalogIndex
from .result_cache import IResultCache
from .schedule_repository import IScheduleRepository
from .vehicle_feed import IFeedCache, IVehicleFeedSource

__all__ = [
    "ICatalogIndex",
    "IFeedCache",
    "IResultCache",
    "IScheduleRepository",
    "IVehicleFeedSource",
]
