"""Exponential backoff schedule for ``execute_task_with_retry``."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ExponentialBackoff:
    """
    Exponential retry delay: attempt k waits base_delay_ms * multiplier^(k-1).
    No jitter and no cap, so the schedule is strictly increasing in k.
    """

    base_delay_ms: int = 1000
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must be >= 0")
        if self.multiplier <= 1:
            raise ValueError("multiplier must be > 1")

    def delay_ms(self, attempt: int) -> float:
        if attempt < 1:
            raise ValueError("attempt must be >= 1")
        return self.base_delay_ms * (self.multiplier ** (attempt - 1))

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        return self.delay_ms(attempt) / 1000.0

    def with_base(self, base_delay_ms: int) -> ExponentialBackoff:
        return ExponentialBackoff(base_delay_ms=base_delay_ms, multiplier=self.multiplier)
