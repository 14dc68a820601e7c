from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

from nextstop.app.ports.output import ICatalogIndex, IScheduleRepository
from nextstop.domain.algorithms.similarity import normalize_text
from nextstop.domain.models.schedule import Route
from nextstop.domain.models.stop import Stop
from nextstop.domain.models.transport_mode import TransportMode


@dataclass(frozen=True, slots=True)
class InMemoryCatalogIndex(ICatalogIndex):
    """Read-only stop/route lookups for one mode (or all, when `mode` is None).

    Stops keep their load order; substring search and resolution ties follow it.
    """

    mode: TransportMode | None
    _stops: tuple[Stop, ...]
    _by_id: Mapping[str, Stop]
    _by_code: Mapping[str, Stop]
    _names: tuple[tuple[str, Stop], ...] = field(repr=False)
    _routes: Mapping[str, Route] = field(repr=False)

    @staticmethod
    def build(
        stops: Iterable[Stop],
        routes: Iterable[Route] = (),
        mode: TransportMode | None = None,
    ) -> "InMemoryCatalogIndex":
        kept = tuple(s for s in stops if mode is None or s.mode == mode)

        by_id: dict[str, Stop] = {}
        by_code: dict[str, Stop] = {}
        for stop in kept:
            by_id.setdefault(stop.stop_id, stop)
            if stop.code:
                by_code.setdefault(stop.code, stop)

        routes_by_id: dict[str, Route] = {}
        for route in routes:
            if mode is None or route.mode == mode:
                routes_by_id.setdefault(route.route_id, route)

        return InMemoryCatalogIndex(
            mode=mode,
            _stops=kept,
            _by_id=MappingProxyType(by_id),
            _by_code=MappingProxyType(by_code),
            _names=tuple((normalize_text(s.name), s) for s in kept),
            _routes=MappingProxyType(routes_by_id),
        )

    def stops(self) -> tuple[Stop, ...]:
        return self._stops

    def get_by_code(self, code: str) -> Stop | None:
        return self._by_code.get(code.strip())

    def get_by_exact_id(self, stop_id: str) -> Stop | None:
        return self._by_id.get(stop_id.strip())

    def find_by_name_substring(self, query: str) -> tuple[Stop, ...]:
        needle = normalize_text(query.strip())
        if not needle:
            return ()
        return tuple(stop for name, stop in self._names if needle in name)

    def find_by_mode(self, mode: TransportMode) -> tuple[Stop, ...]:
        return tuple(s for s in self._stops if s.mode == mode)

    def get_route(self, route_id: str) -> Route | None:
        return self._routes.get(route_id)

    def find_routes_by_short_name(self, short_name: str) -> tuple[Route, ...]:
        wanted = short_name.strip().lower()
        return tuple(
            r for r in self._routes.values() if (r.short_name or "").lower() == wanted
        )

    def stop_count(self) -> int:
        return len(self._stops)

    def route_count(self) -> int:
        return len(self._routes)


def build_catalog(
    repository: IScheduleRepository, mode: TransportMode | None = None
) -> InMemoryCatalogIndex:
    return InMemoryCatalogIndex.build(
        repository.get_all_stops(), repository.get_all_routes(), mode=mode
    )
