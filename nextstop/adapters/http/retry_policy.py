from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable

from nextstop.domain.exceptions.transport import (
    NetworkError,
    TransportError,
    UpstreamTimeoutError,
)


def default_should_retry(error: TransportError) -> bool:
    # HttpError is terminal: the provider answered, retrying will not help.
    return isinstance(error, (NetworkError, UpstreamTimeoutError))


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Exponential backoff with jitter.

    Delay before retry `attempt` (0-based) is
    min(base * 2**attempt + uniform(0, base), max).
    """

    max_retries: int = 3
    base_delay_s: float = 0.1
    max_delay_s: float = 5.0
    should_retry: Callable[[TransportError], bool] = default_should_retry
    jitter: Callable[[float, float], float] = field(
        default=random.uniform, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.base_delay_s < 0 or self.max_delay_s < 0:
            raise ValueError("Retry delays must be >= 0")

    def delay_for(self, attempt: int) -> float:
        exponential = self.base_delay_s * (2**attempt)
        return min(exponential + self.jitter(0.0, self.base_delay_s), self.max_delay_s)
