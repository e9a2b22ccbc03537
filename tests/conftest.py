from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from guestdesk.repository.data_repository import DataRepository
from guestdesk.utils.config import get_settings


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, **delta: float) -> None:
        self._now = self._now + timedelta(**delta)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 14, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings(tmp_path):
    return replace(
        get_settings(),
        database_path=tmp_path / "guestdesk_test.db",
        offer_ttl_minutes=5,
        assignment_random_seed=1234,
        seed_demo_data=False,
        change_feed_enabled=True,
    )


@pytest.fixture
def repository(settings) -> DataRepository:
    repo = DataRepository(settings)
    repo.initialize_database()
    return repo
