from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from nextstop.domain.models.cache import CacheKey


class IResultCache(ABC):
    """Port for a key/value cache with per-entry TTL (seconds)."""

    @abstractmethod
    def get(self, key: CacheKey | str) -> Any | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: CacheKey | str, value: Any, ttl_seconds: float) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: CacheKey | str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def has(self, key: CacheKey | str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def size(self) -> int:
        raise NotImplementedError
