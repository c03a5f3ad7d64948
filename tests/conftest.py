"""Shared fixtures: temporary record stores, a fixed clock and habit factories."""

from datetime import date, datetime, timedelta

import pytest

from core.models import Habit, ReminderSchedule, UserRecord
from database.manager import JsonFileStore
from services.habit_service import HabitService
from utils.datetime_utils import UTC

DAY0 = date(2024, 3, 1)


def day(n: int) -> date:
    """Calendar day ``n`` days after DAY0"""
    return DAY0 + timedelta(days=n)


def make_habit(habit_id="h1", user_id=1, name="Read", created_at=DAY0,
               schedule: ReminderSchedule = None, **kwargs) -> Habit:
    return Habit(
        habit_id=habit_id,
        user_id=user_id,
        name=name,
        created_at=created_at.isoformat(),
        reminder_schedule=schedule,
        **kwargs,
    )


class FixedClock:
    """Callable clock that tests move forward by hand"""

    def __init__(self, instant: datetime):
        self.instant = instant

    def __call__(self) -> datetime:
        return self.instant

    def set_day(self, d: date, hour: int = 12, minute: int = 0):
        self.instant = UTC.localize(datetime(d.year, d.month, d.day, hour, minute))


@pytest.fixture
def store(tmp_path):
    return JsonFileStore(tmp_path / "data")


@pytest.fixture
def clock():
    return FixedClock(UTC.localize(datetime(DAY0.year, DAY0.month, DAY0.day, 12, 0)))


@pytest.fixture
def habit_service(store, clock):
    return HabitService(store, clock=clock)


@pytest.fixture
def user_with_habit(store):
    """User 1 with one default-schedule habit created on DAY0"""
    record = UserRecord(user_id=1, habits=[make_habit()])
    store.put(record)
    return record
