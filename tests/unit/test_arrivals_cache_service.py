from __future__ import annotations

import asyncio

import pytest

from nextstop.adapters.cache.in_memory_result_cache import InMemoryResultCache
from nextstop.app.services.arrivals_cache_service import (
    ArrivalsCacheService,
    arrivals_cache_key,
)
from nextstop.domain.exceptions.cache import CacheConstructionError
from nextstop.domain.exceptions.transport import NetworkError
from nextstop.domain.models import TransportMode


def test_cache_key_convention() -> None:
    assert arrivals_cache_key(TransportMode.UNDERGROUND, "par_4_1").value == (
        "underground:arrivals:par_4_1"
    )


def test_blank_stop_code_does_not_share_a_key() -> None:
    with pytest.raises(CacheConstructionError):
        arrivals_cache_key(TransportMode.BUS, "")


def test_read_through_caches_per_mode_ttl() -> None:
    cache = InMemoryResultCache()
    svc = ArrivalsCacheService(cache=cache, ttl_seconds={TransportMode.BUS: 10})
    calls = 0

    async def fetch() -> list[int]:
        nonlocal calls
        calls += 1
        return [3, 7]

    async def scenario() -> tuple[list[int], list[int]]:
        first = await svc.get_or_fetch(TransportMode.BUS, "72", fetch)
        second = await svc.get_or_fetch(TransportMode.BUS, "72", fetch)
        return first, second

    assert asyncio.run(scenario()) == ([3, 7], [3, 7])
    assert calls == 1
    assert svc.invalidate(TransportMode.BUS, "72") is True


def test_mode_without_ttl_is_not_cached() -> None:
    cache = InMemoryResultCache()
    svc = ArrivalsCacheService(cache=cache)

    async def fetch() -> str:
        return "fresh"

    asyncio.run(svc.get_or_fetch(TransportMode.RAIL, "18000", fetch))
    assert cache.size() == 0


def test_fetch_errors_propagate_and_are_not_cached() -> None:
    cache = InMemoryResultCache()
    svc = ArrivalsCacheService(cache=cache, ttl_seconds={TransportMode.RAIL: 10})

    async def fetch() -> str:
        raise NetworkError("https://api.example.test")

    with pytest.raises(NetworkError):
        asyncio.run(svc.get_or_fetch(TransportMode.RAIL, "18000", fetch))
    assert cache.size() == 0
