from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from nextstop.adapters.cache.shared_feed_cache import SharedFeedCache
from nextstop.domain.exceptions.transport import NetworkError


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@dataclass
class FakeFetch:
    payloads: list[object] = field(default_factory=list)
    fail: bool = False
    calls: int = 0

    async def __call__(self) -> object:
        self.calls += 1
        if self.fail:
            raise NetworkError("https://feed.example/vp.json")
        return self.payloads[self.calls - 1]


def test_second_get_within_ttl_does_not_fetch() -> None:
    fetch = FakeFetch(payloads=["v1", "v2"])
    clock = FakeClock()
    cache = SharedFeedCache(fetch, ttl_ms=60_000, clock=clock)

    async def scenario() -> tuple[object, object]:
        first = await cache.get()
        clock.now += 59.9
        second = await cache.get()
        return first, second

    assert asyncio.run(scenario()) == ("v1", "v1")
    assert fetch.calls == 1


def test_expired_snapshot_is_refreshed() -> None:
    fetch = FakeFetch(payloads=["v1", "v2"])
    clock = FakeClock()
    cache = SharedFeedCache(fetch, ttl_ms=1_000, clock=clock)

    async def scenario() -> object:
        await cache.get()
        clock.now += 1.0
        return await cache.get()

    assert asyncio.run(scenario()) == "v2"
    assert fetch.calls == 2


def test_failed_refresh_serves_stale_snapshot() -> None:
    fetch = FakeFetch(payloads=["v1"])
    clock = FakeClock()
    cache = SharedFeedCache(fetch, ttl_ms=1_000, clock=clock)

    async def scenario() -> object:
        await cache.get()
        fetch.fail = True
        clock.now += 3600
        return await cache.get()

    assert asyncio.run(scenario()) == "v1"
    assert fetch.calls == 2
    assert cache.get_stats().cached is True


def test_failure_without_snapshot_propagates() -> None:
    cache = SharedFeedCache(FakeFetch(fail=True))

    with pytest.raises(NetworkError):
        asyncio.run(cache.get())
    assert cache.get_stats().cached is False


def test_invalidate_forces_fetch() -> None:
    fetch = FakeFetch(payloads=["v1", "v2"])
    cache = SharedFeedCache(fetch, ttl_ms=60_000)

    async def scenario() -> object:
        await cache.get()
        cache.invalidate()
        return await cache.get()

    assert asyncio.run(scenario()) == "v2"
    assert fetch.calls == 2


def test_stats_report_age_and_ttl() -> None:
    clock = FakeClock()
    cache = SharedFeedCache(FakeFetch(payloads=["v1"]), ttl_ms=60_000, clock=clock)

    empty = cache.get_stats()
    assert (empty.cached, empty.age_s, empty.ttl_s) == (False, None, 60.0)

    asyncio.run(cache.get())
    clock.now += 12.5
    stats = cache.get_stats()
    assert stats.cached is True
    assert stats.age_s == pytest.approx(12.5)


def test_concurrent_callers_share_one_fetch() -> None:
    calls = 0

    async def slow_fetch() -> str:
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return "payload"

    cache = SharedFeedCache(slow_fetch)

    async def scenario() -> list[str]:
        return await asyncio.gather(*(cache.get() for _ in range(5)))

    assert asyncio.run(scenario()) == ["payload"] * 5
    assert calls == 1


def test_stale_snapshot_served_while_refresh_in_flight() -> None:
    clock = FakeClock()
    gate = {"event": None}
    values = iter(["v1", "v2"])

    async def fetch() -> str:
        value = next(values)
        if value == "v2":
            await gate["event"].wait()
        return value

    cache = SharedFeedCache(fetch, ttl_ms=1_000, clock=clock)

    async def scenario() -> tuple[str, str, str]:
        gate["event"] = asyncio.Event()
        await cache.get()
        clock.now += 5
        refreshing = asyncio.create_task(cache.get())
        await asyncio.sleep(0)
        during = await cache.get()
        gate["event"].set()
        fresh = await refreshing
        return during, fresh, await cache.get()

    assert asyncio.run(scenario()) == ("v1", "v2", "v2")


def test_rejects_non_positive_ttl() -> None:
    with pytest.raises(ValueError):
        SharedFeedCache(FakeFetch(), ttl_ms=0)
