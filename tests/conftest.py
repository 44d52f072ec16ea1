"""Shared test fixtures."""

import sys
from datetime import date
from pathlib import Path
from typing import Any

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from oura.domain.models import CredentialRecord  # noqa: E402
from oura.repository import PatientLinkRepository, credential_key  # noqa: E402
from oura.store import FileKeyStore  # noqa: E402
from shared.config import Settings  # noqa: E402
from shared.exceptions import UpstreamError  # noqa: E402

VERIFICATION_TOKEN = "test-verification-token"
CLIENT_SECRET = "test-client-secret"

ACTIVITY = {
    "data": [
        {"day": "2024-01-01", "steps": 8000, "active_calories": 500, "total_calories": 2200, "score": 80},
        {"day": "2024-01-02", "steps": 9000, "active_calories": 550, "total_calories": 2300, "score": 85},
    ]
}
SLEEP = {
    "data": [
        {"day": "2024-01-01", "score": 80, "total_sleep_duration": 27000, "efficiency": 90},
        {
            "day": "2024-01-02",
            "score": 85,
            "total_sleep_duration": 28800,
            "deep_sleep_duration": 5400,
            "rem_sleep_duration": 7200,
            "efficiency": 92,
        },
    ]
}
READINESS = {
    "data": [
        {"day": "2024-01-01", "score": 75, "temperature_deviation": 0.1},
        {"day": "2024-01-02", "score": 78, "temperature_deviation": -0.2},
    ]
}
HEART_RATE = {
    "data": [
        {"bpm": 62, "source": "ring", "timestamp": "2024-01-02T00:00:00+00:00"},
        {"bpm": 64, "source": "ring", "timestamp": "2024-01-02T01:00:00+00:00"},
    ]
}


class FakeOuraClient:
    """In-memory OuraDataSource. A collection mapped to an exception raises it."""

    def __init__(self, **collections: Any):
        self.collections = {
            "daily_activity": ACTIVITY,
            "daily_sleep": SLEEP,
            "daily_readiness": READINESS,
            "heartrate": HEART_RATE,
            **collections,
        }
        self.calls: list[tuple[str, date, date]] = []

    async def _get(self, name: str, start: date, end: date) -> dict[str, Any]:
        self.calls.append((name, start, end))
        value = self.collections[name]
        if isinstance(value, Exception):
            raise value
        return value

    async def get_daily_activity(self, start_date, end_date):
        return await self._get("daily_activity", start_date, end_date)

    async def get_daily_sleep(self, start_date, end_date):
        return await self._get("daily_sleep", start_date, end_date)

    async def get_daily_readiness(self, start_date, end_date):
        return await self._get("daily_readiness", start_date, end_date)

    async def get_heart_rate(self, start_date, end_date):
        return await self._get("heartrate", start_date, end_date)


class FakeClientFactory:
    """Maps a credential's api_key to a FakeOuraClient (default: healthy client)."""

    def __init__(self, clients: dict[str, FakeOuraClient] | None = None):
        self.clients = clients or {}
        self.default = FakeOuraClient()

    def __call__(self, credential: CredentialRecord) -> FakeOuraClient:
        return self.clients.get(credential.api_key, self.default)


def rate_limited() -> UpstreamError:
    return UpstreamError("Rate Limit Exceeded: Too many requests", upstream_status=429)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        verification_token=VERIFICATION_TOKEN,
        client_secret=CLIENT_SECRET,
        key_store_path=str(tmp_path / "oura-keys.json"),
        demo_seed=1234,
        _env_file=None,
    )


@pytest.fixture
def store(tmp_path):
    return FileKeyStore(tmp_path / "oura-keys.json")


@pytest.fixture
def links(store):
    return PatientLinkRepository(store)


@pytest.fixture
def client_factory():
    return FakeClientFactory()


async def seed_link(store, patient_id: str, api_key: str) -> None:
    record = CredentialRecord(api_key=api_key, linked_at="2024-01-01T00:00:00+00:00")
    await store.set(credential_key(patient_id), record.to_json())
