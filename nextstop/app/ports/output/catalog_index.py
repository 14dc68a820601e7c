from __future__ import annotations

from abc import ABC, abstractmethod

from nextstop.domain.models.schedule import Route
from nextstop.domain.models.stop import Stop
from nextstop.domain.models.transport_mode import TransportMode


class ICatalogIndex(ABC):
    """Port for fast, read-only stop/route lookups of one mode."""

    @abstractmethod
    def stops(self) -> tuple[Stop, ...]:
        raise NotImplementedError

    @abstractmethod
    def get_by_code(self, code: str) -> Stop | None:
        raise NotImplementedError

    @abstractmethod
    def get_by_exact_id(self, stop_id: str) -> Stop | None:
        raise NotImplementedError

    @abstractmethod
    def find_by_name_substring(self, query: str) -> tuple[Stop, ...]:
        raise NotImplementedError

    @abstractmethod
    def find_by_mode(self, mode: TransportMode) -> tuple[Stop, ...]:
        raise NotImplementedError

    @abstractmethod
    def get_route(self, route_id: str) -> Route | None:
        raise NotImplementedError

    @abstractmethod
    def stop_count(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def route_count(self) -> int:
        raise NotImplementedError
