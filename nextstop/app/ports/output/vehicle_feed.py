from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from nextstop.domain.models.cache import FeedCacheStats
from nextstop.domain.models.realtime import RealtimeVehicle

T = TypeVar("T")


class IVehicleFeedSource(ABC):
    """Port for fetching the shared realtime vehicle-positions feed."""

    @abstractmethod
    async def fetch_vehicles(self) -> tuple[RealtimeVehicle, ...]:
        raise NotImplementedError


class IFeedCache(ABC, Generic[T]):
    """Port for a single-slot cache around one shared upstream feed."""

    @abstractmethod
    async def get(self) -> T:
        raise NotImplementedError

    @abstractmethod
    def invalidate(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_stats(self) -> FeedCacheStats:
        raise NotImplementedError
