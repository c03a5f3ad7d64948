"""Tests for the persisted record shapes."""

from datetime import date

import pytest

from core.exceptions import ValidationError
from core.models import (
    Habit, ReminderSchedule, ScheduleType, UserRecord, UserPreferences, to_date,
)


def stored_habit():
    return {
        "id": "abc",
        "userId": 42,
        "name": "Stretch",
        "streak": 3,
        "createdAt": "2024-03-01T08:15:00.000Z",
        "lastCheckedDate": "2024-03-06",
        "skipped": [{"skippedDay": 2, "date": "2024-03-04"}],
        "dropped": [{"streakBeforeDrop": 5, "date": "2024-03-02"}],
        "checked": [],
        "reminderSchedule": {
            "type": "weekly", "hour": 18, "minute": 0,
            "timezone": "Europe/Paris", "daysOfWeek": [5, 1, 1],
        },
        "reminderEnabled": True,
        "disabled": False,
        "badges": [{"type": 5, "earnedAt": "2024-02-28"}],
    }


class TestHabitRecord:

    def test_loads_stored_shape(self):
        habit = Habit.from_dict(stored_habit())

        assert habit.user_id == 42
        assert habit.created_at == "2024-03-01"
        assert habit.reminder_schedule.schedule_type == ScheduleType.WEEKLY
        assert habit.reminder_schedule.days_of_week == [1, 5]
        assert habit.skipped[0].skipped_day == 2
        assert habit.dropped[0].streak_before_drop == 5
        assert habit.earned_milestones == [5]
        assert not habit.is_daily

    def test_dump_uses_stored_keys(self):
        data = Habit.from_dict(stored_habit()).to_dict()

        assert data["createdAt"] == "2024-03-01"
        assert data["reminderSchedule"] == {
            "type": "weekly", "hour": 18, "minute": 0,
            "timezone": "Europe/Paris", "daysOfWeek": [1, 5],
        }
        assert data["badges"] == [{"type": 5, "earnedAt": "2024-02-28"}]

    def test_missing_optional_fields_get_defaults(self):
        habit = Habit.from_dict({"id": "x", "userId": 1, "name": "Run", "createdAt": "2024-03-01"})

        assert habit.streak == 0
        assert habit.last_checked_date == ""
        assert habit.reminder_schedule is None
        assert habit.is_daily
        assert habit.is_active

    def test_malformed_habit_raises(self):
        with pytest.raises(ValidationError):
            Habit.from_dict({"name": "no id"})

    def test_create_validates_name(self):
        with pytest.raises(ValidationError):
            Habit.create(1, "   ", date(2024, 3, 1))
        with pytest.raises(ValidationError):
            Habit.create(1, "x" * 101, date(2024, 3, 1))

    def test_create_starts_empty(self):
        habit = Habit.create(1, "  Meditate ", date(2024, 3, 1))

        assert habit.name == "Meditate"
        assert habit.streak == 0
        assert habit.created_at == "2024-03-01"
        assert habit.skipped == habit.dropped == habit.checked == habit.badges == []


class TestSchedule:

    def test_interval_shape(self):
        schedule = ReminderSchedule.interval(3, 7, 45, "UTC", start_date="2024-03-01")
        assert schedule.to_dict() == {
            "type": "interval", "hour": 7, "minute": 45, "timezone": "UTC",
            "intervalDays": 3, "startDate": "2024-03-01",
        }

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            ReminderSchedule.from_dict({"type": "hourly", "hour": 1, "minute": 0})


class TestUserRecord:

    def test_default_timezone_is_utc(self):
        assert UserRecord(user_id=1).timezone == "UTC"

    def test_preferences_round_trip_keys(self):
        record = UserRecord(
            user_id=7,
            preferences=UserPreferences(timezone="Asia/Tokyo", first_name="Ken", blocked=True),
        )
        data = record.to_dict()

        assert data["preferences"]["firstName"] == "Ken"
        assert UserRecord.from_dict(data).preferences.blocked is True

    def test_replace_and_remove_habit(self):
        habit = Habit.from_dict(stored_habit())
        record = UserRecord(user_id=42, habits=[habit])

        record.replace_habit(Habit.from_dict({**stored_habit(), "streak": 9}))
        assert record.get_habit("abc").streak == 9
        assert len(record.habits) == 1

        assert record.remove_habit("abc")
        assert not record.remove_habit("abc")


def test_to_date_accepts_strings_and_dates():
    assert to_date("2024-03-01T10:00:00Z") == date(2024, 3, 1)
    assert to_date(date(2024, 3, 1)) == date(2024, 3, 1)
