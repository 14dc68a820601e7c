from __future__ import annotations

import pytest

from nextstop.adapters.persistence import InMemoryCatalogIndex
from nextstop.app.services.stop_resolver_service import StopResolverService
from nextstop.domain.exceptions.resolution import StopNotFound
from nextstop.domain.models import GeoPoint, Stop, TransportMode


def _stop(stop_id: str, name: str) -> Stop:
    return Stop(
        stop_id=stop_id,
        name=name,
        location=GeoPoint(lat=40.4, lon=-3.7),
        mode=TransportMode.UNDERGROUND,
    )


@pytest.fixture
def service() -> StopResolverService:
    catalog = InMemoryCatalogIndex.build(
        (
            _stop("par_4_1", "Sol"),
            _stop("par_4_2", "Ópera"),
            _stop("par_4_3", "Tribunal"),
        ),
        (),
        mode=TransportMode.UNDERGROUND,
    )
    return StopResolverService(catalogs={TransportMode.UNDERGROUND: catalog})


def test_modes_lists_loaded_catalogs(service: StopResolverService) -> None:
    assert service.modes == frozenset({TransportMode.UNDERGROUND})


def test_suggest_ranks_closest_names_first(service: StopResolverService) -> None:
    names = [s.name for s in service.suggest(TransportMode.UNDERGROUND, "Opra")]
    assert names[0] == "Ópera"
    assert service.suggest(TransportMode.UNDERGROUND, "zzzz") == ()
    assert len(service.suggest(TransportMode.UNDERGROUND, "Opra", limit=1)) == 1


def test_resolve_delegates_to_catalog(service: StopResolverService) -> None:
    assert service.resolve(TransportMode.UNDERGROUND, "tribunal").stop_id == "par_4_3"
    with pytest.raises(StopNotFound):
        service.resolve(TransportMode.UNDERGROUND, "Moncloa")


def test_mode_without_catalog_raises_lookup_error(service: StopResolverService) -> None:
    with pytest.raises(LookupError):
        service.resolve(TransportMode.LIGHT_RAIL, "Sol")
