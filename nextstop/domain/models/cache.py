from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from nextstop.domain.exceptions.cache import CacheConstructionError

V = TypeVar("V")


@dataclass(frozen=True, slots=True)
class CacheKey:
    """Colon-joined, non-empty cache key; equality is exact string equality."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise CacheConstructionError("Cache key must not be empty")

    @staticmethod
    def from_parts(*parts: str) -> "CacheKey":
        segments = [str(p).strip() for p in parts]
        if not segments or not all(segments):
            raise CacheConstructionError(f"Cache key segments must not be empty: {parts!r}")
        return CacheKey(":".join(segments))

    @staticmethod
    def parse(raw: str) -> "CacheKey":
        return CacheKey((raw or "").strip())

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[V]):
    value: V
    created_at: float
    expires_at: float

    def __post_init__(self) -> None:
        if not self.expires_at > self.created_at:
            raise CacheConstructionError(
                f"Entry expiry {self.expires_at} is not after creation {self.created_at}"
            )

    @staticmethod
    def create(value: V, ttl_seconds: float, now: float) -> "CacheEntry[V]":
        if ttl_seconds <= 0:
            raise CacheConstructionError(f"TTL must be positive, got {ttl_seconds}")
        return CacheEntry(value=value, created_at=now, expires_at=now + ttl_seconds)

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass(frozen=True, slots=True)
class FeedSnapshot(Generic[V]):
    payload: V
    fetched_at: float


@dataclass(frozen=True, slots=True)
class FeedCacheStats:
    cached: bool
    age_s: float | None
    ttl_s: float
