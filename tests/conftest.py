"""Shared fixtures for the mock KYC tests."""

import pytest

from mock_kyc.config import get_settings
from mock_kyc.schemas import PersonalInfo
from mock_kyc.store import InMemoryApplicationStore


class ScriptedRandom:
    """Random source that replays fixed values, then a constant fallback."""

    def __init__(self, values=None, fallback: float = 0.9):
        self.values = list(values or [])
        self.fallback = fallback
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        if self.values:
            return self.values.pop(0)
        return self.fallback


class RecordingSleep:
    """Awaitable sleep stand-in that returns immediately and records delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    for name in ("KYC_MIN_LATENCY_MS", "KYC_MAX_LATENCY_MS", "KYC_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def instant_sleep():
    return RecordingSleep()


@pytest.fixture
def clean_rng():
    # 0.9 on every draw lands every check in its clean-pass branch
    return ScriptedRandom(fallback=0.9)


@pytest.fixture
def applicant():
    return PersonalInfo(
        first_name="Jane",
        last_name="Doe",
        email="jane.doe@example.com",
        date_of_birth="1990-04-12",
        ssn="123-45-6789",
        phone="555-123-4567",
        mailing_address={"street": "1 Main St", "city": "Springfield", "state": "IL", "zip_code": "62701"},
    )


@pytest.fixture
def store():
    return InMemoryApplicationStore()
