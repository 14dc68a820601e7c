from .in_memory_catalog_index import InMemoryCatalogIndex, build_catalog
from .sqlite_schedule_repository import SqliteScheduleRepository

__all__ = [
    "InMemoryCatalogIndex",
    "SqliteScheduleRepository",
    "build_catalog",
]
