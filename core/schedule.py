#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Streak Bot - Recurrence Schedule Evaluator
Decides whether a habit reminder is due at a given instant

Evaluation is exact to the minute: a tick that misses the scheduled minute
misses that day's reminder. Time-zone conversion is passed in as a callable
so the evaluator can be driven without a live clock.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from core.models import (
    Habit, ReminderSchedule, ScheduleType,
    DEFAULT_REMINDER_HOUR, DEFAULT_REMINDER_MINUTE, to_date,
)
from core.exceptions import ValidationError
from utils.datetime_utils import to_local as pytz_to_local, sunday_weekday, is_valid_timezone

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']

LocalConverter = Callable[[datetime, Optional[str]], datetime]

# ===== EVALUATION =====

def effective_schedule(habit: Habit, observer_timezone: str = "UTC",
                       default_hour: int = DEFAULT_REMINDER_HOUR,
                       default_minute: int = DEFAULT_REMINDER_MINUTE) -> ReminderSchedule:
    """The habit's own schedule, or the default daily one in the observer's zone"""
    if habit.reminder_schedule is not None:
        return habit.reminder_schedule
    return ReminderSchedule.daily(default_hour, default_minute, observer_timezone)


def is_due(habit: Habit, instant: datetime, observer_timezone: str = "UTC",
           to_local: LocalConverter = pytz_to_local,
           default_hour: int = DEFAULT_REMINDER_HOUR,
           default_minute: int = DEFAULT_REMINDER_MINUTE) -> bool:
    """Return True when ``habit`` should be reminded at ``instant``"""
    if not habit.reminder_enabled or habit.disabled:
        return False

    schedule = effective_schedule(habit, observer_timezone, default_hour, default_minute)
    local = to_local(instant, schedule.timezone or observer_timezone)

    if local.hour != schedule.hour or local.minute != schedule.minute:
        return False

    local_date = local.date()

    if schedule.schedule_type == ScheduleType.DAILY:
        return True

    if schedule.schedule_type == ScheduleType.WEEKLY:
        return sunday_weekday(local_date) in schedule.days_of_week

    if schedule.schedule_type == ScheduleType.MONTHLY:
        return local_date.day in schedule.days_of_month

    if schedule.schedule_type == ScheduleType.INTERVAL:
        start = to_date(schedule.start_date or habit.created_at)
        elapsed = (local_date - start).days
        return elapsed >= 0 and elapsed % schedule.interval_days == 0

    logger.warning(f"Unknown schedule type for habit {habit.habit_id}: {schedule.schedule_type}")
    return False

# ===== DESCRIPTION =====

def ordinal(day: int) -> str:
    if day in (1, 21, 31):
        return f"{day}st"
    if day in (2, 22):
        return f"{day}nd"
    if day in (3, 23):
        return f"{day}rd"
    return f"{day}th"


def describe(schedule: ReminderSchedule) -> str:
    """Human readable summary, e.g. 'Every Monday, Friday at 18:00 Europe/Paris'"""
    when = f"at {schedule.time_str} {schedule.timezone or 'UTC'}"

    if schedule.schedule_type == ScheduleType.DAILY:
        return f"Every day {when}"

    if schedule.schedule_type == ScheduleType.WEEKLY:
        days = ', '.join(WEEKDAY_NAMES[d] for d in sorted(schedule.days_of_week))
        return f"Every {days} {when}"

    if schedule.schedule_type == ScheduleType.MONTHLY:
        days = ', '.join(ordinal(d) for d in sorted(schedule.days_of_month))
        return f"Every {days} of the month {when}"

    if schedule.schedule_type == ScheduleType.INTERVAL:
        unit = "day" if schedule.interval_days == 1 else "days"
        return f"Every {schedule.interval_days} {unit} {when}"

    return "Unknown schedule"


def validate_schedule(schedule: ReminderSchedule) -> ReminderSchedule:
    """Reject out-of-range schedules before they reach a stored habit"""
    schedule.validate()
    if schedule.timezone and not is_valid_timezone(schedule.timezone):
        raise ValidationError(f"Unknown timezone: {schedule.timezone}")
    return schedule


__all__ = [
    'WEEKDAY_NAMES', 'effective_schedule', 'is_due',
    'ordinal', 'describe', 'validate_schedule',
]
