from __future__ import annotations

from typing import Iterable, Sequence

from nextstop.domain.algorithms.similarity import dice_coefficient, normalize_text
from nextstop.domain.exceptions.resolution import StopNotFound
from nextstop.domain.models.stop import Stop

SUGGESTION_THRESHOLD = 0.3
MAX_SUGGESTIONS = 3


def rank_similar_stops(
    stops: Iterable[Stop],
    query: str,
    *,
    threshold: float = SUGGESTION_THRESHOLD,
    limit: int = MAX_SUGGESTIONS,
) -> tuple[Stop, ...]:
    """Return stops whose name scores above `threshold`, best first.

    Python's sort is stable, so equal scores keep catalog order.
    """

    scored = [(dice_coefficient(stop.name, query), stop) for stop in stops]
    kept = [item for item in scored if item[0] > threshold]
    kept.sort(key=lambda item: item[0], reverse=True)
    return tuple(stop for _, stop in kept[:limit])


def resolve_stop(stops: Sequence[Stop], query: str) -> Stop:
    """Resolve a code or name fragment to exactly one stop.

    Order: exact code, exact name ignoring case, normalized substring (first
    in catalog order), otherwise StopNotFound carrying ranked suggestions.
    """

    raw = query or ""
    stripped = raw.strip()

    if stripped:
        for stop in stops:
            if stop.canonical_code == stripped:
                return stop

        lowered = stripped.lower()
        for stop in stops:
            if stop.name.lower() == lowered:
                return stop

        needle = normalize_text(stripped)
        for stop in stops:
            if needle in normalize_text(stop.name):
                return stop

    suggestions = rank_similar_stops(stops, stripped)
    raise StopNotFound(raw, tuple(s.name for s in suggestions))
