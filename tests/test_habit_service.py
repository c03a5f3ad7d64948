"""Tests for the habit service and schedule text parsing."""

from datetime import date

import pytest

from core.exceptions import NotFoundError, ValidationError
from core.history import reconstruct
from core.models import CheckOutcome, ReminderSchedule, ScheduleType
from services.habit_service import parse_schedule
from tests.conftest import DAY0, day


class TestParseSchedule:

    def test_daily(self):
        schedule = parse_schedule("daily 20:30", "Europe/Paris")

        assert schedule.schedule_type == ScheduleType.DAILY
        assert (schedule.hour, schedule.minute, schedule.timezone) == (20, 30, "Europe/Paris")

    def test_weekly_names_and_abbreviations(self):
        schedule = parse_schedule("weekly Monday,fri 18:00")
        assert schedule.days_of_week == [1, 5]
        assert schedule.timezone == "UTC"

    def test_weekly_days_separated_by_spaces(self):
        assert parse_schedule("weekly sun, sat 08:00").days_of_week == [0, 6]

    def test_monthly(self):
        assert parse_schedule("monthly 1,15 09:00").days_of_month == [1, 15]

    def test_interval_starts_today(self):
        schedule = parse_schedule("interval 2 20:00", today=date(2024, 3, 5))

        assert schedule.interval_days == 2
        assert schedule.start_date == "2024-03-05"

    @pytest.mark.parametrize("text", [
        "",
        "daily",
        "daily 25:00",
        "daily 8pm",
        "weekly 18:00",
        "weekly funday 18:00",
        "monthly 32 09:00",
        "monthly first 09:00",
        "interval 0 20:00",
        "interval two 20:00",
        "hourly 10:00",
    ])
    def test_rejects_bad_input(self, text):
        with pytest.raises(ValidationError):
            parse_schedule(text)


class TestUsers:

    def test_register_creates_record(self, habit_service, store):
        habit_service.register_user(10, "ann", "Ann")

        record = store.get(10)
        assert record.preferences.first_name == "Ann"
        assert record.preferences.username == "ann"

    def test_register_clears_blocked(self, habit_service, store):
        habit_service.set_blocked(10, True)
        habit_service.register_user(10)

        assert store.get(10).preferences.blocked is False

    def test_set_timezone(self, habit_service, store):
        habit_service.set_timezone(10, "Asia/Tokyo")
        assert store.get(10).timezone == "Asia/Tokyo"

    def test_set_unknown_timezone_rejected(self, habit_service, store):
        habit_service.set_timezone(10, "Asia/Tokyo")

        with pytest.raises(ValidationError):
            habit_service.set_timezone(10, "Nowhere/City")
        assert store.get(10).timezone == "Asia/Tokyo"

    def test_unknown_user(self, habit_service):
        with pytest.raises(NotFoundError):
            habit_service.get_user(404)

    def test_consent(self, habit_service, clock):
        record = habit_service.set_consent(10)

        assert record.preferences.consent_accepted
        assert record.preferences.consent_date == clock().isoformat()


class TestHabits:

    def test_create_and_list(self, habit_service):
        habit = habit_service.create_habit(1, "Read")

        assert habit.created_at == DAY0.isoformat()
        assert [h.habit_id for h in habit_service.get_user(1).habits] == [habit.habit_id]

    def test_create_uses_user_local_day(self, habit_service, clock):
        # 23:30 UTC on DAY0 is already the next day in Tokyo
        habit_service.set_timezone(1, "Asia/Tokyo")
        clock.set_day(DAY0, 23, 30)

        assert habit_service.create_habit(1, "Read").created_at == day(1).isoformat()

    def test_create_rejects_empty_name(self, habit_service, store):
        with pytest.raises(ValidationError):
            habit_service.create_habit(1, "  ")
        assert store.get(1) is None

    def test_delete(self, habit_service):
        habit = habit_service.create_habit(1, "Read")
        habit_service.delete_habit(1, habit.habit_id)

        assert habit_service.get_user(1).habits == []
        with pytest.raises(NotFoundError):
            habit_service.delete_habit(1, habit.habit_id)

    def test_get_unknown_habit(self, habit_service):
        habit_service.create_habit(1, "Read")
        with pytest.raises(NotFoundError):
            habit_service.get_habit(1, "missing")


class TestCheckIns:

    def test_completion_streak_over_days(self, habit_service, clock):
        habit = habit_service.create_habit(1, "Read")

        for n in range(1, 6):
            clock.set_day(day(n))
            result = habit_service.record_check(1, habit.habit_id, CheckOutcome.COMPLETED)

        assert result.habit.streak == 5
        assert result.previous_streak == 4
        assert result.new_badges == [5]
        assert habit_service.get_habit(1, habit.habit_id).streak == 5

    def test_second_answer_same_day_is_ignored(self, habit_service, clock):
        habit = habit_service.create_habit(1, "Read")
        clock.set_day(day(1))
        habit_service.record_check(1, habit.habit_id, CheckOutcome.COMPLETED)

        result = habit_service.record_check(1, habit.habit_id, CheckOutcome.DROPPED)

        assert result.already_checked
        assert habit_service.get_habit(1, habit.habit_id).streak == 1

    def test_skip(self, habit_service, clock):
        habit = habit_service.create_habit(1, "Read")
        clock.set_day(day(1))
        habit_service.record_check(1, habit.habit_id, CheckOutcome.COMPLETED)
        clock.set_day(day(2))

        result = habit_service.skip_habit(1, habit.habit_id)

        assert result.changed
        assert result.habit.streak == 1
        assert result.habit.skipped[0].date == day(2).isoformat()

    def test_unknown_habit_leaves_record_untouched(self, habit_service, store):
        habit_service.create_habit(1, "Read")
        before = store.get(1).to_dict()

        with pytest.raises(NotFoundError):
            habit_service.record_check(1, "missing", CheckOutcome.COMPLETED)
        assert store.get(1).to_dict() == before

    def test_unknown_user_check(self, habit_service, store):
        with pytest.raises(NotFoundError):
            habit_service.record_check(77, "missing", CheckOutcome.COMPLETED)


class TestScheduleUpdates:

    def test_set_schedule_fills_user_timezone(self, habit_service):
        habit_service.set_timezone(1, "Europe/Paris")
        habit = habit_service.create_habit(1, "Read")

        updated = habit_service.set_schedule(1, habit.habit_id, ReminderSchedule.daily(7, 0, None))

        assert updated.reminder_schedule.timezone == "Europe/Paris"
        assert habit_service.get_habit(1, habit.habit_id).reminder_schedule.hour == 7

    def test_invalid_schedule_leaves_habit_untouched(self, habit_service):
        habit = habit_service.create_habit(1, "Read")
        bad = ReminderSchedule(ScheduleType.WEEKLY, 9, 0, "UTC", days_of_week=[])

        with pytest.raises(ValidationError):
            habit_service.set_schedule(1, habit.habit_id, bad)
        assert habit_service.get_habit(1, habit.habit_id).reminder_schedule is None

    def test_default_restores_daily(self, habit_service):
        habit = habit_service.create_habit(1, "Read", ReminderSchedule.weekly([1], 9, 0, "UTC"))
        habit_service.toggle_reminder(1, habit.habit_id)

        updated = habit_service.set_schedule(1, habit.habit_id, None)

        assert updated.reminder_schedule is None
        assert updated.reminder_enabled

    def complete(self, habit_service, clock, habit_id, days):
        for n in days:
            clock.set_day(day(n))
            habit_service.record_check(1, habit_id, CheckOutcome.COMPLETED)

    def test_daily_to_weekly_keeps_history_consistent(self, habit_service, clock):
        habit = habit_service.create_habit(1, "Read")
        self.complete(habit_service, clock, habit.habit_id, range(4))

        every_day = ReminderSchedule.weekly(list(range(7)), 20, 0, "UTC")
        updated = habit_service.set_schedule(1, habit.habit_id, every_day)
        assert [c.date for c in updated.checked] == [day(n).isoformat() for n in range(4)]

        self.complete(habit_service, clock, habit.habit_id, [4])
        stored = habit_service.get_habit(1, habit.habit_id)
        history = reconstruct(stored, day(4))

        assert stored.streak == 5
        assert [e.streak_after for e in history] == [1, 2, 3, 4, 5]

    def test_daily_to_weekly_after_drop(self, habit_service, clock):
        habit = habit_service.create_habit(1, "Read")
        self.complete(habit_service, clock, habit.habit_id, [0, 1])
        clock.set_day(day(2))
        habit_service.record_check(1, habit.habit_id, CheckOutcome.DROPPED)
        self.complete(habit_service, clock, habit.habit_id, [3])

        habit_service.set_schedule(1, habit.habit_id, ReminderSchedule.weekly(list(range(7)), 20, 0, "UTC"))
        self.complete(habit_service, clock, habit.habit_id, [4])
        stored = habit_service.get_habit(1, habit.habit_id)

        assert [(e.outcome, e.streak_after) for e in reconstruct(stored, day(4))] == [
            (CheckOutcome.COMPLETED, 1),
            (CheckOutcome.COMPLETED, 2),
            (CheckOutcome.DROPPED, 0),
            (CheckOutcome.COMPLETED, 1),
            (CheckOutcome.COMPLETED, 2),
        ]
        assert stored.streak == 2

    def test_weekly_to_daily_keeps_stored_streak(self, habit_service, clock):
        every_day = ReminderSchedule.weekly(list(range(7)), 20, 0, "UTC")
        habit = habit_service.create_habit(1, "Read", every_day)
        self.complete(habit_service, clock, habit.habit_id, range(3))

        habit_service.set_schedule(1, habit.habit_id, None)
        self.complete(habit_service, clock, habit.habit_id, [3])
        stored = habit_service.get_habit(1, habit.habit_id)

        assert stored.streak == 4
        assert reconstruct(stored, day(3))[-1].streak_after == 4

    def test_toggles(self, habit_service):
        habit = habit_service.create_habit(1, "Read")

        assert habit_service.toggle_reminder(1, habit.habit_id).reminder_enabled is False
        assert habit_service.toggle_reminder(1, habit.habit_id, enabled=True).reminder_enabled
        assert habit_service.toggle_disabled(1, habit.habit_id).disabled is True
        assert habit_service.toggle_disabled(1, habit.habit_id).disabled is False


class TestAnalytics:

    def test_includes_history_and_summary(self, habit_service, clock):
        habit = habit_service.create_habit(1, "Read", ReminderSchedule.weekly([1, 5], 18, 0, "UTC"))
        for n in (0, 3):
            clock.set_day(day(n))
            habit_service.record_check(1, habit.habit_id, CheckOutcome.COMPLETED)

        [data] = habit_service.get_analytics(1)

        assert data["id"] == habit.habit_id
        assert data["scheduleDescription"] == "Every Monday, Friday at 18:00 UTC"
        assert [e["type"] for e in data["checkHistory"]] == ["completed", "completed"]
        assert data["summary"]["currentStreak"] == 1

    def test_unknown_user(self, habit_service):
        with pytest.raises(NotFoundError):
            habit_service.get_analytics(404)
