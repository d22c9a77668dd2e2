"""
Rate limit value objects.
"""

from dataclasses import dataclass
from typing import Optional

HOUR_SECONDS = 3600
DAY_SECONDS = 86400


@dataclass(frozen=True)
class RateLimitWindow:
    """A fixed bucket of `duration_seconds`; bucket index is floor(now / duration)."""
    name: str
    duration_seconds: int
    limit: int

    def window_index(self, now: float) -> int:
        return int(now // self.duration_seconds)


@dataclass(frozen=True)
class RateLimitCounter:
    client_id: str
    window: str
    window_index: int
    count: int


@dataclass(frozen=True)
class RateLimitDecision:
    admitted: bool
    retry_after: Optional[int] = None
    message: Optional[str] = None
    window: Optional[str] = None

    @classmethod
    def admit(cls) -> "RateLimitDecision":
        return cls(admitted=True)

    @classmethod
    def reject(cls, window: RateLimitWindow, label: str) -> "RateLimitDecision":
        return cls(
            admitted=False,
            retry_after=window.duration_seconds,
            message=f"{label} upload limit of {window.limit} exceeded",
            window=window.name,
        )
