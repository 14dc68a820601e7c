from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from nextstop.app.ports.output import ICatalogIndex
from nextstop.domain.algorithms.stop_resolution import rank_similar_stops, resolve_stop
from nextstop.domain.models.stop import Stop
from nextstop.domain.models.transport_mode import TransportMode


@dataclass(slots=True)
class StopResolverService:
    """Resolves user queries to stops using one catalog per mode."""

    catalogs: Mapping[TransportMode, ICatalogIndex] = field(default_factory=dict)

    @property
    def modes(self) -> frozenset[TransportMode]:
        return frozenset(self.catalogs)

    def catalog(self, mode: TransportMode) -> ICatalogIndex:
        try:
            return self.catalogs[mode]
        except KeyError:
            raise LookupError(f"No catalog loaded for mode {mode.value}") from None

    def resolve(self, mode: TransportMode, query: str) -> Stop:
        """Return the single stop matching `query`; raises StopNotFound otherwise."""

        return resolve_stop(self.catalog(mode).stops(), query)

    def suggest(self, mode: TransportMode, query: str, limit: int = 3) -> tuple[Stop, ...]:
        """Closest stops by name similarity, best first; empty when nothing scores."""

        return rank_similar_stops(self.catalog(mode).stops(), query, limit=limit)
