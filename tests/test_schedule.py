"""Tests for the recurrence schedule evaluator."""

from datetime import date, datetime

import pytest

from core.exceptions import ValidationError
from core.models import ReminderSchedule, ScheduleType
from core.schedule import is_due, describe, validate_schedule, effective_schedule, ordinal
from tests.conftest import make_habit
from utils.datetime_utils import UTC


def utc(year, month, day, hour, minute):
    return UTC.localize(datetime(year, month, day, hour, minute))


class TestDaily:

    def test_due_only_at_exact_minute(self):
        habit = make_habit(schedule=ReminderSchedule.daily(9, 0, "UTC"))

        assert is_due(habit, utc(2024, 3, 4, 9, 0))
        assert not is_due(habit, utc(2024, 3, 4, 9, 1))
        assert not is_due(habit, utc(2024, 3, 4, 8, 59))

    def test_schedule_timezone_overrides_observer(self):
        # Paris is UTC+1 in March
        habit = make_habit(schedule=ReminderSchedule.daily(9, 0, "Europe/Paris"))

        assert is_due(habit, utc(2024, 3, 4, 8, 0), observer_timezone="Asia/Tokyo")
        assert not is_due(habit, utc(2024, 3, 4, 9, 0), observer_timezone="Asia/Tokyo")

    def test_default_schedule_uses_observer_timezone(self):
        habit = make_habit()

        # 22:00 in New York (UTC-5) on March 4th
        assert is_due(habit, utc(2024, 3, 5, 3, 0), observer_timezone="America/New_York")
        assert not is_due(habit, utc(2024, 3, 4, 22, 0), observer_timezone="America/New_York")

    def test_default_time_is_configurable(self):
        habit = make_habit()
        assert is_due(habit, utc(2024, 3, 4, 7, 30), default_hour=7, default_minute=30)

    def test_naive_instant_is_treated_as_utc(self):
        habit = make_habit(schedule=ReminderSchedule.daily(9, 0, "UTC"))
        assert is_due(habit, datetime(2024, 3, 4, 9, 0))


class TestDateGates:

    def test_weekly_monday_friday(self):
        habit = make_habit(schedule=ReminderSchedule.weekly([1, 5], 18, 0, "UTC"))

        assert not is_due(habit, utc(2024, 3, 6, 18, 0))   # Wednesday
        assert is_due(habit, utc(2024, 3, 4, 18, 0))       # Monday
        assert not is_due(habit, utc(2024, 3, 4, 18, 1))
        assert is_due(habit, utc(2024, 3, 8, 18, 0))       # Friday

    def test_weekly_sunday_is_zero(self):
        habit = make_habit(schedule=ReminderSchedule.weekly([0], 10, 0, "UTC"))
        assert is_due(habit, utc(2024, 3, 31, 10, 0))

    def test_weekly_uses_local_date(self):
        # Monday 23:30 UTC is already Tuesday in Tokyo
        habit = make_habit(schedule=ReminderSchedule.weekly([2], 8, 30, "Asia/Tokyo"))
        assert is_due(habit, utc(2024, 3, 4, 23, 30))

    def test_monthly_days(self):
        habit = make_habit(schedule=ReminderSchedule.monthly([1, 15], 9, 0, "UTC"))

        assert is_due(habit, utc(2024, 3, 15, 9, 0))
        assert is_due(habit, utc(2024, 4, 1, 9, 0))
        assert not is_due(habit, utc(2024, 3, 16, 9, 0))

    def test_interval_from_start_date(self):
        schedule = ReminderSchedule.interval(3, 20, 0, "UTC", start_date="2024-03-01")
        habit = make_habit(schedule=schedule)

        assert is_due(habit, utc(2024, 3, 1, 20, 0))
        assert is_due(habit, utc(2024, 3, 4, 20, 0))
        assert not is_due(habit, utc(2024, 3, 5, 20, 0))
        assert not is_due(habit, utc(2024, 2, 27, 20, 0))

    def test_interval_defaults_to_creation_date(self):
        schedule = ReminderSchedule.interval(2, 20, 0, "UTC")
        habit = make_habit(schedule=schedule, created_at=date(2024, 3, 2))

        assert is_due(habit, utc(2024, 3, 4, 20, 0))
        assert not is_due(habit, utc(2024, 3, 5, 20, 0))


class TestGating:

    def test_reminders_off_is_never_due(self):
        habit = make_habit(schedule=ReminderSchedule.daily(9, 0, "UTC"), reminder_enabled=False)
        assert not is_due(habit, utc(2024, 3, 4, 9, 0))

    def test_disabled_is_never_due(self):
        habit = make_habit(schedule=ReminderSchedule.daily(9, 0, "UTC"), disabled=True)
        assert not is_due(habit, utc(2024, 3, 4, 9, 0))

    def test_converter_is_injectable(self):
        calls = []

        def fake_local(instant, tz_name):
            calls.append(tz_name)
            return datetime(2024, 3, 4, 9, 0)

        habit = make_habit(schedule=ReminderSchedule.daily(9, 0, "Europe/Berlin"))

        assert is_due(habit, utc(2024, 1, 1, 0, 0), to_local=fake_local)
        assert calls == ["Europe/Berlin"]

    def test_effective_schedule_default(self):
        schedule = effective_schedule(make_habit(), "Europe/Paris", 21, 15)

        assert schedule.schedule_type == ScheduleType.DAILY
        assert (schedule.hour, schedule.minute, schedule.timezone) == (21, 15, "Europe/Paris")


class TestDescribe:

    def test_daily(self):
        assert describe(ReminderSchedule.daily(7, 5, "UTC")) == "Every day at 07:05 UTC"

    def test_weekly(self):
        schedule = ReminderSchedule.weekly([5, 1], 18, 0, "Europe/Paris")
        assert describe(schedule) == "Every Monday, Friday at 18:00 Europe/Paris"

    def test_monthly(self):
        schedule = ReminderSchedule.monthly([15, 1], 9, 0, "UTC")
        assert describe(schedule) == "Every 1st, 15th of the month at 09:00 UTC"

    def test_interval(self):
        assert describe(ReminderSchedule.interval(2, 20, 0, "UTC")) == "Every 2 days at 20:00 UTC"
        assert describe(ReminderSchedule.interval(1, 20, 0, "UTC")) == "Every 1 day at 20:00 UTC"

    def test_missing_timezone_reads_utc(self):
        assert describe(ReminderSchedule.daily(8, 0, None)) == "Every day at 08:00 UTC"

    @pytest.mark.parametrize("value,expected", [
        (1, "1st"), (2, "2nd"), (3, "3rd"), (4, "4th"), (11, "11th"),
        (21, "21st"), (22, "22nd"), (23, "23rd"), (31, "31st"),
    ])
    def test_ordinal(self, value, expected):
        assert ordinal(value) == expected


class TestValidation:

    @pytest.mark.parametrize("schedule", [
        ReminderSchedule(ScheduleType.DAILY, 24, 0, "UTC"),
        ReminderSchedule(ScheduleType.DAILY, 9, 60, "UTC"),
        ReminderSchedule(ScheduleType.WEEKLY, 9, 0, "UTC"),
        ReminderSchedule(ScheduleType.WEEKLY, 9, 0, "UTC", days_of_week=[7]),
        ReminderSchedule(ScheduleType.MONTHLY, 9, 0, "UTC"),
        ReminderSchedule(ScheduleType.MONTHLY, 9, 0, "UTC", days_of_month=[0]),
        ReminderSchedule(ScheduleType.INTERVAL, 9, 0, "UTC", interval_days=0),
        ReminderSchedule(ScheduleType.INTERVAL, 9, 0, "UTC", interval_days=2, start_date="03/01/2024"),
        ReminderSchedule(ScheduleType.DAILY, 9, 0, "Mars/Olympus"),
    ])
    def test_invalid_schedules_rejected(self, schedule):
        with pytest.raises(ValidationError):
            validate_schedule(schedule)

    def test_valid_schedule_returned(self):
        schedule = ReminderSchedule.weekly([1], 9, 0, "Europe/Paris")
        assert validate_schedule(schedule) is schedule
