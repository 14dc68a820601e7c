from __future__ import annotations

import pytest

from nextstop.domain.algorithms.stop_resolution import rank_similar_stops, resolve_stop
from nextstop.domain.exceptions.resolution import StopNotFound
from nextstop.domain.models import GeoPoint, Stop, TransportMode


def _stop(stop_id: str, name: str, code: str | None = None) -> Stop:
    return Stop(
        stop_id=stop_id,
        name=name,
        location=GeoPoint(lat=40.4, lon=-3.7),
        mode=TransportMode.UNDERGROUND,
        code=code,
    )


CATALOG = (
    _stop("par_4_1", "Sol", code="1"),
    _stop("par_4_2", "Ópera", code="2"),
    _stop("par_4_3", "Plaza de España", code="3"),
    _stop("par_4_4", "Chamartín", code="4"),
    _stop("par_4_5", "Sol Norte", code="5"),
    _stop("par_4_6", "2", code="6"),
)


def test_exact_code_wins_over_name_matches() -> None:
    # "2" is both a stop code and another stop's name.
    assert resolve_stop(CATALOG, "2").stop_id == "par_4_2"


def test_exact_code_falls_back_to_stop_id_without_code() -> None:
    stops = (_stop("S-9", "Nine"),)
    assert resolve_stop(stops, "S-9").name == "Nine"


def test_exact_name_ignoring_case() -> None:
    assert resolve_stop(CATALOG, "sol").stop_id == "par_4_1"
    assert resolve_stop(CATALOG, "SOL NORTE").stop_id == "par_4_5"


def test_substring_match_ignores_diacritics() -> None:
    assert resolve_stop(CATALOG, "espana").stop_id == "par_4_3"
    assert resolve_stop(CATALOG, "CHAMARTIN").stop_id == "par_4_4"


def test_substring_ties_return_first_in_catalog_order() -> None:
    stops = (_stop("b", "Norte B"), _stop("a", "Norte A"))
    assert resolve_stop(stops, "norte").stop_id == "b"


def test_unrelated_query_has_no_suggestions() -> None:
    with pytest.raises(StopNotFound) as exc_info:
        resolve_stop(CATALOG, "xyzzy")

    assert exc_info.value.query == "xyzzy"
    assert exc_info.value.suggestions == ()
    assert str(exc_info.value) == "Stop not found: xyzzy"


def test_single_character_typo_is_suggested_first() -> None:
    with pytest.raises(StopNotFound) as exc_info:
        resolve_stop(CATALOG, "Chamartim")

    suggestions = exc_info.value.suggestions
    assert suggestions
    assert suggestions[0] == "Chamartín"
    assert "Sol" not in suggestions


def test_suggestions_are_capped_at_three() -> None:
    stops = tuple(_stop(f"s{i}", f"Estacion {i}") for i in range(6))
    with pytest.raises(StopNotFound) as exc_info:
        resolve_stop(stops, "Estacio X")

    assert len(exc_info.value.suggestions) == 3


def test_empty_query_and_empty_catalog() -> None:
    with pytest.raises(StopNotFound) as exc_info:
        resolve_stop(CATALOG, "   ")
    assert exc_info.value.suggestions == ()

    with pytest.raises(StopNotFound):
        resolve_stop((), "Sol")


def test_rank_similar_stops_threshold_is_exclusive() -> None:
    ranked = rank_similar_stops(CATALOG, "Plaza de Espana", threshold=0.99)
    assert [s.name for s in ranked] == ["Plaza de España"]
