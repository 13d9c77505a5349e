from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from userstore.storage import MemoryStorage
from userstore.store import UserStore


class SteppingClock:
    """Returns a strictly increasing timestamp on every call."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)) -> None:
        self._current = start
        self._step = step

    def __call__(self) -> datetime:
        value = self._current
        self._current += self._step
        return value


@pytest.fixture()
def clock() -> SteppingClock:
    return SteppingClock(datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def store(storage: MemoryStorage, clock: SteppingClock) -> UserStore:
    user_store = UserStore(storage, clock=clock)
    user_store.initialize()
    return user_store
