"""
Per-client upload quotas over fixed hourly and daily windows.

Admission is a read followed later by a separate increment; the two steps are
not atomic, so concurrent requests from one client can briefly exceed a quota
by the number of requests in flight. Store failures never block uploads: a
failed check admits the request and a failed increment is only logged.
"""

import time
from typing import Callable, List, Optional

from adapters.record_store import BaseRecordStore
from common.exceptions import RateLimitException
from common.logging import get_logger, log_security_event
from config.config import Settings
from entities.rate_limit import DAY_SECONDS, HOUR_SECONDS, RateLimitDecision, RateLimitWindow
from repositories.rate_limit_repository import RateLimitRepository

logger = get_logger("rate_limiter")

WINDOW_LABELS = {"hour": "Hourly", "day": "Daily"}


class RateLimiter:

    def __init__(
        self,
        record_store: Optional[BaseRecordStore],
        uploads_per_hour: int = 10,
        uploads_per_day: int = 50,
        clock: Callable[[], float] = time.time,
    ):
        self.clock = clock
        self.hourly = RateLimitWindow("hour", HOUR_SECONDS, uploads_per_hour)
        self.daily = RateLimitWindow("day", DAY_SECONDS, uploads_per_day)
        self.repositories: List[RateLimitRepository] = [
            RateLimitRepository(record_store, self.hourly),
            RateLimitRepository(record_store, self.daily),
        ]

    @property
    def limits(self) -> dict:
        return {
            "uploads_per_hour": self.hourly.limit,
            "uploads_per_day": self.daily.limit,
        }

    async def check_admission(self, client_id: str) -> RateLimitDecision:
        now = self.clock()
        try:
            for repository in self.repositories:
                window = repository.window
                count = await repository.get_count(client_id, window.window_index(now))
                if count >= window.limit:
                    return RateLimitDecision.reject(window, WINDOW_LABELS[window.name])
        except Exception as e:
            logger.warning(f"Rate limit check failed for {client_id}, admitting request: {e}")
        return RateLimitDecision.admit()

    async def record_usage(self, client_id: str) -> None:
        now = self.clock()
        for repository in self.repositories:
            index = repository.window.window_index(now)
            try:
                count = await repository.get_count(client_id, index)
                await repository.set_count(client_id, index, count + 1)
            except Exception as e:
                logger.error(f"Failed to record {repository.window.name} usage for {client_id}: {e}")

    async def enforce(self, client_id: str, ip_address: Optional[str] = None) -> None:
        """Raise RateLimitException when the client has used up either window."""
        decision = await self.check_admission(client_id)
        if decision.admitted:
            return

        log_security_event(
            "upload_rate_limited",
            client_id=client_id,
            ip_address=ip_address,
            details={"window": decision.window, "retry_after": decision.retry_after},
        )
        raise RateLimitException(
            detail=decision.message,
            retry_after=decision.retry_after,
            context={
                "retry_after": decision.retry_after,
                "window": decision.window,
                "limits": self.limits,
            },
        )


def create_rate_limiter(
    record_store: Optional[BaseRecordStore],
    settings: Settings,
    clock: Callable[[], float] = time.time,
) -> RateLimiter:
    """Factory function to create RateLimiter with configured quotas."""
    return RateLimiter(
        record_store,
        uploads_per_hour=settings.rate_limit_uploads_per_hour,
        uploads_per_day=settings.rate_limit_uploads_per_day,
        clock=clock,
    )
