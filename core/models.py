#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Streak Bot - Core Data Models
Habits, reminder schedules and per-user records

Dates are kept as ISO calendar-day strings (YYYY-MM-DD), the same form they
have in the persisted records. Serialization uses the camelCase keys of the
stored JSON blobs.
"""

import uuid
import logging
from datetime import datetime, date
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

from core.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"
DEFAULT_REMINDER_HOUR = 22
DEFAULT_REMINDER_MINUTE = 0

# ===== ENUMS =====

class ScheduleType(Enum):
    """Reminder recurrence kinds"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    INTERVAL = "interval"

class CheckOutcome(Enum):
    """Answers a user can give to a check-in prompt"""
    COMPLETED = "completed"
    DROPPED = "dropped"
    SKIPPED = "skipped"

# ===== VALIDATION HELPERS =====

def validate_iso_date(value: str, field_name: str = "date") -> str:
    """Validate a YYYY-MM-DD string"""
    try:
        date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a YYYY-MM-DD date, got {value!r}")
    return value

def to_date(value) -> date:
    """Accept a date, a datetime or an ISO string and return a date"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])

# ===== SCHEDULE =====

@dataclass
class ReminderSchedule:
    """Recurrence rule of a habit reminder.

    A tagged union keyed by ``schedule_type``: weekly schedules use
    ``days_of_week`` (0 = Sunday ... 6 = Saturday), monthly ones use
    ``days_of_month`` (1-31), interval ones use ``interval_days`` and an
    optional ``start_date``.
    """
    schedule_type: ScheduleType
    hour: int
    minute: int
    timezone: Optional[str] = None
    days_of_week: List[int] = field(default_factory=list)
    days_of_month: List[int] = field(default_factory=list)
    interval_days: Optional[int] = None
    start_date: Optional[str] = None

    @property
    def is_daily(self) -> bool:
        return self.schedule_type == ScheduleType.DAILY

    @property
    def time_str(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def validate(self) -> "ReminderSchedule":
        """Check ranges; raises ValidationError, returns self otherwise"""
        if not isinstance(self.hour, int) or not 0 <= self.hour <= 23:
            raise ValidationError("Hour must be between 0 and 23")
        if not isinstance(self.minute, int) or not 0 <= self.minute <= 59:
            raise ValidationError("Minute must be between 0 and 59")

        if self.schedule_type == ScheduleType.WEEKLY:
            if not self.days_of_week:
                raise ValidationError("Weekly schedule must have at least one day of week")
            if any(not 0 <= d <= 6 for d in self.days_of_week):
                raise ValidationError("Days of week must be between 0 (Sunday) and 6 (Saturday)")
        elif self.schedule_type == ScheduleType.MONTHLY:
            if not self.days_of_month:
                raise ValidationError("Monthly schedule must have at least one day of month")
            if any(not 1 <= d <= 31 for d in self.days_of_month):
                raise ValidationError("Days of month must be between 1 and 31")
        elif self.schedule_type == ScheduleType.INTERVAL:
            if not isinstance(self.interval_days, int) or self.interval_days < 1:
                raise ValidationError("Interval days must be at least 1")
            if self.start_date is not None:
                validate_iso_date(self.start_date, "startDate")

        return self

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.schedule_type.value,
            "hour": self.hour,
            "minute": self.minute,
        }
        if self.timezone:
            data["timezone"] = self.timezone
        if self.schedule_type == ScheduleType.WEEKLY:
            data["daysOfWeek"] = sorted(set(self.days_of_week))
        elif self.schedule_type == ScheduleType.MONTHLY:
            data["daysOfMonth"] = sorted(set(self.days_of_month))
        elif self.schedule_type == ScheduleType.INTERVAL:
            data["intervalDays"] = self.interval_days
            if self.start_date:
                data["startDate"] = self.start_date
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReminderSchedule":
        try:
            schedule_type = ScheduleType(data["type"])
        except (KeyError, ValueError):
            raise ValidationError(f"Unknown schedule type: {data.get('type')!r}")

        try:
            return cls(
                schedule_type=schedule_type,
                hour=int(data["hour"]),
                minute=int(data["minute"]),
                timezone=data.get("timezone"),
                days_of_week=sorted(set(int(d) for d in data.get("daysOfWeek") or [])),
                days_of_month=sorted(set(int(d) for d in data.get("daysOfMonth") or [])),
                interval_days=int(data["intervalDays"]) if data.get("intervalDays") is not None else None,
                start_date=data.get("startDate"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Malformed schedule: {e}")

    @classmethod
    def daily(cls, hour: int = DEFAULT_REMINDER_HOUR, minute: int = DEFAULT_REMINDER_MINUTE,
              timezone: Optional[str] = DEFAULT_TIMEZONE) -> "ReminderSchedule":
        return cls(ScheduleType.DAILY, hour, minute, timezone)

    @classmethod
    def weekly(cls, days_of_week: List[int], hour: int, minute: int,
               timezone: Optional[str] = DEFAULT_TIMEZONE) -> "ReminderSchedule":
        return cls(ScheduleType.WEEKLY, hour, minute, timezone,
                   days_of_week=sorted(set(days_of_week)))

    @classmethod
    def monthly(cls, days_of_month: List[int], hour: int, minute: int,
                timezone: Optional[str] = DEFAULT_TIMEZONE) -> "ReminderSchedule":
        return cls(ScheduleType.MONTHLY, hour, minute, timezone,
                   days_of_month=sorted(set(days_of_month)))

    @classmethod
    def interval(cls, interval_days: int, hour: int, minute: int,
                 timezone: Optional[str] = DEFAULT_TIMEZONE,
                 start_date: Optional[str] = None) -> "ReminderSchedule":
        return cls(ScheduleType.INTERVAL, hour, minute, timezone,
                   interval_days=interval_days, start_date=start_date)

# ===== HABIT EVENTS =====

@dataclass(frozen=True)
class SkippedDay:
    """A day deferred without breaking the streak"""
    skipped_day: int  # streak value at the time of the skip
    date: str

    def to_dict(self) -> Dict[str, Any]:
        return {"skippedDay": self.skipped_day, "date": self.date}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SkippedDay":
        return cls(skipped_day=int(data.get("skippedDay", 0)), date=data["date"])

@dataclass(frozen=True)
class DroppedDay:
    """A day the streak was reset to zero"""
    streak_before_drop: int
    date: str

    def to_dict(self) -> Dict[str, Any]:
        return {"streakBeforeDrop": self.streak_before_drop, "date": self.date}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DroppedDay":
        return cls(streak_before_drop=int(data.get("streakBeforeDrop", 0)), date=data["date"])

@dataclass(frozen=True)
class CheckedDay:
    """Explicit completion of a non-daily habit"""
    date: str

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckedDay":
        return cls(date=data["date"])

@dataclass(frozen=True)
class Badge:
    """Streak milestone earned by a habit"""
    milestone: int
    earned_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.milestone, "earnedAt": self.earned_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Badge":
        return cls(milestone=int(data["type"]), earned_at=data.get("earnedAt", ""))

@dataclass(frozen=True)
class HistoryEntry:
    """One day of a reconstructed habit timeline"""
    date: str
    outcome: CheckOutcome
    streak_after: int
    streak_before: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "date": self.date,
            "type": self.outcome.value,
            "streak": self.streak_after,
        }
        if self.streak_before is not None:
            data["streakBefore"] = self.streak_before
        return data

# ===== HABIT =====

@dataclass
class Habit:
    """A tracked routine belonging to one user"""
    habit_id: str
    user_id: int
    name: str
    created_at: str
    streak: int = 0
    last_checked_date: str = ""
    skipped: List[SkippedDay] = field(default_factory=list)
    dropped: List[DroppedDay] = field(default_factory=list)
    checked: List[CheckedDay] = field(default_factory=list)
    reminder_schedule: Optional[ReminderSchedule] = None
    reminder_enabled: bool = True
    disabled: bool = False
    badges: List[Badge] = field(default_factory=list)

    @property
    def is_daily(self) -> bool:
        """Habits without a schedule are reminded daily"""
        return self.reminder_schedule is None or self.reminder_schedule.is_daily

    @property
    def is_active(self) -> bool:
        return self.reminder_enabled and not self.disabled

    @property
    def created_date(self) -> date:
        return to_date(self.created_at)

    @property
    def earned_milestones(self) -> List[int]:
        return sorted(b.milestone for b in self.badges)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.habit_id,
            "userId": self.user_id,
            "name": self.name,
            "streak": self.streak,
            "createdAt": self.created_at,
            "lastCheckedDate": self.last_checked_date,
            "skipped": [s.to_dict() for s in self.skipped],
            "dropped": [d.to_dict() for d in self.dropped],
            "checked": [c.to_dict() for c in self.checked],
            "reminderSchedule": self.reminder_schedule.to_dict() if self.reminder_schedule else None,
            "reminderEnabled": self.reminder_enabled,
            "disabled": self.disabled,
            "badges": [b.to_dict() for b in self.badges],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Habit":
        try:
            schedule_data = data.get("reminderSchedule")
            return cls(
                habit_id=str(data["id"]),
                user_id=int(data["userId"]),
                name=data.get("name", ""),
                # older records kept a full timestamp here
                created_at=str(data["createdAt"])[:10],
                streak=max(0, int(data.get("streak", 0))),
                last_checked_date=data.get("lastCheckedDate") or "",
                skipped=[SkippedDay.from_dict(s) for s in data.get("skipped") or []],
                dropped=[DroppedDay.from_dict(d) for d in data.get("dropped") or []],
                checked=[CheckedDay.from_dict(c) for c in data.get("checked") or []],
                reminder_schedule=ReminderSchedule.from_dict(schedule_data) if schedule_data else None,
                reminder_enabled=data.get("reminderEnabled", True) is not False,
                disabled=data.get("disabled", False) is True,
                badges=[Badge.from_dict(b) for b in data.get("badges") or []],
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to deserialize habit: {e}")
            raise ValidationError(f"Could not load habit: {e}")

    @classmethod
    def create(cls, user_id: int, name: str, today: date,
               schedule: Optional[ReminderSchedule] = None) -> "Habit":
        """Create a new habit starting on ``today``"""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Habit name cannot be empty")
        if len(name) > 100:
            raise ValidationError("Habit name must be at most 100 characters")

        return cls(
            habit_id=str(uuid.uuid4()),
            user_id=user_id,
            name=name,
            created_at=today.isoformat(),
            reminder_schedule=schedule,
        )

# ===== USER =====

@dataclass
class UserPreferences:
    """Per-user settings"""
    timezone: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    consent_accepted: bool = False
    consent_date: Optional[str] = None
    blocked: bool = False

    @property
    def effective_timezone(self) -> str:
        return self.timezone or DEFAULT_TIMEZONE

    @property
    def display_name(self) -> str:
        if self.first_name:
            return self.first_name
        if self.username:
            return f"@{self.username}"
        return "friend"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timezone": self.timezone,
            "username": self.username,
            "firstName": self.first_name,
            "consentAccepted": self.consent_accepted,
            "consentDate": self.consent_date,
            "blocked": self.blocked,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UserPreferences":
        data = data or {}
        return cls(
            timezone=data.get("timezone"),
            username=data.get("username"),
            first_name=data.get("firstName"),
            consent_accepted=bool(data.get("consentAccepted", False)),
            consent_date=data.get("consentDate"),
            blocked=bool(data.get("blocked", False)),
        )

@dataclass
class UserRecord:
    """Everything stored for one user; the store's unit of read and write"""
    user_id: int
    habits: List[Habit] = field(default_factory=list)
    preferences: UserPreferences = field(default_factory=UserPreferences)

    @property
    def timezone(self) -> str:
        return self.preferences.effective_timezone

    def get_habit(self, habit_id: str) -> Optional[Habit]:
        for habit in self.habits:
            if habit.habit_id == habit_id:
                return habit
        return None

    def replace_habit(self, habit: Habit) -> None:
        for index, existing in enumerate(self.habits):
            if existing.habit_id == habit.habit_id:
                self.habits[index] = habit
                return
        self.habits.append(habit)

    def remove_habit(self, habit_id: str) -> bool:
        initial_count = len(self.habits)
        self.habits = [h for h in self.habits if h.habit_id != habit_id]
        return len(self.habits) < initial_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "habits": [h.to_dict() for h in self.habits],
            "preferences": self.preferences.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        try:
            return cls(
                user_id=int(data["userId"]),
                habits=[Habit.from_dict(h) for h in data.get("habits") or []],
                preferences=UserPreferences.from_dict(data.get("preferences")),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to deserialize user record: {e}")
            raise ValidationError(f"Could not load user record: {e}")

# ===== EXPORT =====

__all__ = [
    'DEFAULT_TIMEZONE', 'DEFAULT_REMINDER_HOUR', 'DEFAULT_REMINDER_MINUTE',
    'ScheduleType', 'CheckOutcome',
    'validate_iso_date', 'to_date',
    'ReminderSchedule', 'SkippedDay', 'DroppedDay', 'CheckedDay', 'Badge', 'HistoryEntry',
    'Habit', 'UserPreferences', 'UserRecord',
]
