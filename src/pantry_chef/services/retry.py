"""Retry policy for chat completion calls."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded attempts with exponential backoff between them.

    After failed attempt ``n`` (1-based) the caller waits
    ``backoff_base_seconds ** n`` seconds, unless it was the last attempt.
    """

    max_attempts: int = 3
    backoff_base_seconds: float = 2.0
    sleep: Callable[[float], Awaitable[None]] = field(
        default=asyncio.sleep, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_base_seconds < 0:
            raise ValueError("backoff_base_seconds must not be negative")

    def delay_for(self, attempt: int) -> float:
        """Return the wait after the given failed attempt."""
        return self.backoff_base_seconds**attempt

    def delays(self) -> list[float]:
        """Return every wait a fully failing call goes through."""
        return [self.delay_for(attempt) for attempt in range(1, self.max_attempts)]

    def worst_case_seconds(self, attempt_timeout_seconds: float) -> float:
        """Upper bound on latency when every attempt times out."""
        return self.max_attempts * attempt_timeout_seconds + sum(self.delays())
