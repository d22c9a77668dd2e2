from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from adapters.blob_store import InMemoryBlobStore
from adapters.record_store import InMemoryRecordStore
from app import create_app
from config.config import Settings
from dependencies import get_blob_store, get_clock, get_record_store

API_KEY = "test-api-key"
ADMIN_KEY = "test-admin-key"

# Start of a UTC day plus one minute, so hour and day windows line up predictably.
START_TIME = 19675 * 86400 + 60.0

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Title (Quarterly Report) >> endobj\ntrailer\n%%EOF\n"


class FakeClock:
    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_settings(**overrides) -> Settings:
    values = {
        "api_key": API_KEY,
        "admin_key": ADMIN_KEY,
        "storage_backend": "memory",
        "http_rate_limit_enabled": False,
        "log_level": "WARNING",
        "log_format": "simple",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def bearer(key: str = API_KEY) -> dict:
    return {"Authorization": f"Bearer {key}"}


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def record_store(clock: FakeClock) -> InMemoryRecordStore:
    return InMemoryRecordStore(clock=clock)


@pytest.fixture()
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture()
def client(
    settings: Settings,
    blob_store: InMemoryBlobStore,
    record_store: InMemoryRecordStore,
    clock: FakeClock,
) -> Generator[TestClient, None, None]:
    app = create_app(settings)
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_record_store] = lambda: record_store
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
