import asyncio

import pytest

from adapters.record_store import InMemoryRecordStore
from common.exceptions import RateLimitException
from services.rate_limiter import RateLimiter, create_rate_limiter
from conftest import FakeClock, make_settings


def _limiter(per_hour: int = 3, per_day: int = 5) -> tuple[RateLimiter, InMemoryRecordStore, FakeClock]:
    clock = FakeClock()
    store = InMemoryRecordStore(clock=clock)
    limiter = RateLimiter(store, uploads_per_hour=per_hour, uploads_per_day=per_day, clock=clock)
    return limiter, store, clock


async def _use(limiter: RateLimiter, client_id: str, times: int) -> None:
    for _ in range(times):
        await limiter.record_usage(client_id)


class FailingRecordStore(InMemoryRecordStore):
    async def get(self, key):
        raise ConnectionError("store down")

    async def put(self, key, value, ttl_seconds=None):
        raise ConnectionError("store down")


class TestAdmission:
    def test_admits_fresh_client(self) -> None:
        limiter, _store, _clock = _limiter()

        decision = asyncio.run(limiter.check_admission("user"))

        assert decision.admitted is True

    def test_rejects_when_hourly_limit_reached(self) -> None:
        limiter, _store, _clock = _limiter(per_hour=3)
        asyncio.run(_use(limiter, "user", 3))

        decision = asyncio.run(limiter.check_admission("user"))

        assert decision.admitted is False
        assert decision.retry_after == 3600
        assert decision.message == "Hourly upload limit of 3 exceeded"

    def test_new_hour_resets_hourly_counter(self) -> None:
        limiter, _store, clock = _limiter(per_hour=3)
        asyncio.run(_use(limiter, "user", 3))

        clock.advance(3600)

        assert asyncio.run(limiter.check_admission("user")).admitted is True

    def test_daily_limit_spans_hours(self) -> None:
        limiter, _store, clock = _limiter(per_hour=3, per_day=5)
        asyncio.run(_use(limiter, "user", 3))
        clock.advance(3600)
        asyncio.run(_use(limiter, "user", 2))

        decision = asyncio.run(limiter.check_admission("user"))

        assert decision.admitted is False
        assert decision.retry_after == 86400
        assert decision.message == "Daily upload limit of 5 exceeded"

    def test_clients_are_counted_separately(self) -> None:
        limiter, _store, _clock = _limiter(per_hour=1)
        asyncio.run(_use(limiter, "user", 1))

        assert asyncio.run(limiter.check_admission("admin")).admitted is True

    def test_counters_expire_with_window(self) -> None:
        limiter, store, clock = _limiter()
        asyncio.run(_use(limiter, "user", 1))
        assert asyncio.run(store.list_keys("ratelimit:hour:"))

        clock.advance(3600)

        assert asyncio.run(store.list_keys("ratelimit:hour:")) == []
        assert asyncio.run(store.list_keys("ratelimit:day:"))


class TestEnforce:
    def test_raises_with_retry_after_and_limits(self) -> None:
        limiter, _store, _clock = _limiter(per_hour=2, per_day=5)
        asyncio.run(_use(limiter, "user", 2))

        with pytest.raises(RateLimitException) as exc_info:
            asyncio.run(limiter.enforce("user"))

        exc = exc_info.value
        assert exc.status_code == 429
        assert exc.retry_after == 3600
        assert exc.headers == {"Retry-After": "3600"}
        assert exc.context["limits"] == {"uploads_per_hour": 2, "uploads_per_day": 5}

    def test_passes_under_limit(self) -> None:
        limiter, _store, _clock = _limiter()

        asyncio.run(limiter.enforce("user"))


class TestStoreFailures:
    def test_check_fails_open(self) -> None:
        limiter = RateLimiter(FailingRecordStore(), uploads_per_hour=0, uploads_per_day=0)

        assert asyncio.run(limiter.check_admission("user")).admitted is True

    def test_record_usage_swallows_errors(self) -> None:
        limiter = RateLimiter(FailingRecordStore())

        asyncio.run(limiter.record_usage("user"))

    def test_unconfigured_store_fails_open(self) -> None:
        limiter = RateLimiter(None, uploads_per_hour=0)

        assert asyncio.run(limiter.check_admission("user")).admitted is True


def test_factory_uses_configured_limits() -> None:
    limiter = create_rate_limiter(InMemoryRecordStore(), make_settings(
        rate_limit_uploads_per_hour=7,
        rate_limit_uploads_per_day=70,
    ))

    assert limiter.limits == {"uploads_per_hour": 7, "uploads_per_day": 70}
