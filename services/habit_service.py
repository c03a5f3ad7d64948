# services/habit_service.py

import re
import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Any

from core.exceptions import NotFoundError, ValidationError
from core.history import reconstruct, summarize, inferred_checks
from core.models import (
    Habit, ReminderSchedule, CheckOutcome, UserRecord, DEFAULT_TIMEZONE,
)
from core.schedule import describe, validate_schedule
from core.streaks import transition, new_badges
from database.manager import RecordStore
from utils.datetime_utils import now_utc, local_today, is_valid_timezone

logger = logging.getLogger(__name__)

# ===== SCHEDULE PARSING =====

DAY_NAMES = ['sunday', 'monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday']

TIME_PATTERN = re.compile(r'^(\d{1,2}):(\d{2})$')

SCHEDULE_USAGE = "Use: daily|weekly|monthly|interval [options] HH:MM"


def _parse_day_name(token: str) -> int:
    token = token.strip().lower()
    for index, name in enumerate(DAY_NAMES):
        # full names and three-letter abbreviations
        if token == name or (len(token) >= 3 and name.startswith(token)):
            return index
    raise ValidationError(f"Invalid day name: {token}. Use: {', '.join(DAY_NAMES)}")


def _split_list(parts: List[str]) -> List[str]:
    return [p for p in ','.join(parts).split(',') if p.strip()]


def parse_schedule(text: str, timezone: Optional[str] = None,
                   today: Optional[date] = None) -> ReminderSchedule:
    """Parse schedule text typed by a user.

    Examples:
        daily 20:30
        weekly monday,friday 18:00
        monthly 1,15 09:00
        interval 2 20:00      (counted from ``today``)
    """
    parts = (text or "").strip().lower().split()
    if len(parts) < 2:
        raise ValidationError(f"Invalid schedule format. {SCHEDULE_USAGE}")

    kind = parts[0]
    match = TIME_PATTERN.match(parts[-1])
    if not match:
        raise ValidationError("Time must be in HH:MM format")
    hour, minute = int(match.group(1)), int(match.group(2))

    timezone = timezone or DEFAULT_TIMEZONE

    if kind == 'daily':
        schedule = ReminderSchedule.daily(hour, minute, timezone)

    elif kind == 'weekly':
        if len(parts) < 3:
            raise ValidationError("Weekly schedule requires days: weekly monday,friday 18:00")
        days = [_parse_day_name(d) for d in _split_list(parts[1:-1])]
        schedule = ReminderSchedule.weekly(days, hour, minute, timezone)

    elif kind == 'monthly':
        if len(parts) < 3:
            raise ValidationError("Monthly schedule requires days: monthly 1,15 09:00")
        days = []
        for token in _split_list(parts[1:-1]):
            if not token.strip().isdigit():
                raise ValidationError(f"Invalid day of month: {token}. Must be 1-31")
            days.append(int(token))
        schedule = ReminderSchedule.monthly(days, hour, minute, timezone)

    elif kind == 'interval':
        if len(parts) != 3 or not parts[1].isdigit():
            raise ValidationError("Interval schedule requires number of days: interval 2 20:00")
        start = (today or now_utc().date()).isoformat()
        schedule = ReminderSchedule.interval(int(parts[1]), hour, minute, timezone, start_date=start)

    else:
        raise ValidationError(f"Unknown schedule type: {kind}. {SCHEDULE_USAGE}")

    return validate_schedule(schedule)

# ===== RESULTS =====

@dataclass
class CheckResult:
    """Outcome of one check-in"""
    habit: Habit
    outcome: CheckOutcome
    previous_streak: int
    changed: bool
    new_badges: List[int] = field(default_factory=list)

    @property
    def already_checked(self) -> bool:
        return not self.changed

# ===== SERVICE =====

class HabitService:
    """Habit operations on top of a record store.

    Every mutation runs inside ``store.transaction`` so that validation or
    lookup failures leave the stored record untouched.
    """

    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = now_utc):
        self.store = store
        self.clock = clock

    def today_for(self, record: UserRecord) -> date:
        """Calendar day in the user's time zone"""
        return local_today(record.timezone, self.clock())

    @staticmethod
    def _find(record: UserRecord, habit_id: str) -> Habit:
        habit = record.get_habit(habit_id)
        if habit is None:
            raise NotFoundError(
                f"Habit {habit_id} not found", user_id=record.user_id, habit_id=habit_id
            )
        return habit

    # ===== USERS =====

    def get_user(self, user_id: int) -> UserRecord:
        record = self.store.get(user_id)
        if record is None:
            raise NotFoundError(f"User {user_id} not found", user_id=user_id)
        return record

    def register_user(self, user_id: int, username: Optional[str] = None,
                      first_name: Optional[str] = None) -> UserRecord:
        """Create the user's record on first contact and refresh the profile fields"""
        with self.store.transaction(user_id) as record:
            if username is not None:
                record.preferences.username = username
            if first_name is not None:
                record.preferences.first_name = first_name
            # a user who writes to the bot again has unblocked it
            record.preferences.blocked = False
        return record

    def set_timezone(self, user_id: int, timezone: str) -> UserRecord:
        timezone = (timezone or "").strip()
        if not is_valid_timezone(timezone):
            raise ValidationError(f"Unknown timezone: {timezone}. Example: Europe/Paris")

        with self.store.transaction(user_id) as record:
            record.preferences.timezone = timezone

        logger.info(f"User {user_id} timezone set to {timezone}")
        return record

    def set_blocked(self, user_id: int, blocked: bool = True) -> None:
        with self.store.transaction(user_id) as record:
            record.preferences.blocked = blocked
        logger.info(f"User {user_id} blocked={blocked}")

    def set_consent(self, user_id: int, accepted: bool = True) -> UserRecord:
        with self.store.transaction(user_id) as record:
            record.preferences.consent_accepted = accepted
            record.preferences.consent_date = self.clock().isoformat() if accepted else None
        return record

    # ===== HABITS =====

    def get_habit(self, user_id: int, habit_id: str) -> Habit:
        return self._find(self.get_user(user_id), habit_id)

    def create_habit(self, user_id: int, name: str,
                     schedule: Optional[ReminderSchedule] = None) -> Habit:
        if schedule is not None:
            validate_schedule(schedule)

        with self.store.transaction(user_id) as record:
            habit = Habit.create(user_id, name, self.today_for(record), schedule)
            record.habits.append(habit)

        logger.info(f"Habit created: {habit.name} ({habit.habit_id}) for user {user_id}")
        return habit

    def delete_habit(self, user_id: int, habit_id: str) -> Habit:
        with self.store.transaction(user_id) as record:
            habit = self._find(record, habit_id)
            record.remove_habit(habit_id)

        logger.info(f"Habit deleted: {habit.name} ({habit_id}) for user {user_id}")
        return habit

    def record_check(self, user_id: int, habit_id: str, outcome: CheckOutcome) -> CheckResult:
        """Apply a check-in answer to a habit and persist the result"""
        with self.store.transaction(user_id) as record:
            habit = self._find(record, habit_id)
            today = self.today_for(record)

            updated = transition(habit, today, outcome)
            record.replace_habit(updated)

        changed = updated is not habit
        result = CheckResult(
            habit=updated,
            outcome=outcome,
            previous_streak=habit.streak,
            changed=changed,
            new_badges=new_badges(habit, updated),
        )

        if changed:
            logger.info(
                f"Habit check recorded: user={user_id} habit={habit.name} "
                f"outcome={outcome.value} streak {habit.streak} -> {updated.streak}"
            )
        else:
            logger.info(f"Habit {habit.name} already checked today for user {user_id}")

        if result.new_badges:
            logger.info(f"🏆 Badges awarded to user {user_id} for {habit.name}: {result.new_badges}")

        return result

    def skip_habit(self, user_id: int, habit_id: str) -> CheckResult:
        return self.record_check(user_id, habit_id, CheckOutcome.SKIPPED)

    def set_schedule(self, user_id: int, habit_id: str,
                     schedule: Optional[ReminderSchedule]) -> Habit:
        """Replace the reminder schedule; None restores the default daily reminder"""
        if schedule is not None:
            validate_schedule(schedule)

        with self.store.transaction(user_id) as record:
            habit = self._find(record, habit_id)
            if schedule is not None and not schedule.timezone:
                schedule = replace(schedule, timezone=record.timezone)
            checked = list(habit.checked)
            if habit.is_daily and schedule is not None and not schedule.is_daily:
                # non-daily history is replayed from explicit dates only
                checked = inferred_checks(habit, self.today_for(record))
            updated = replace(habit, reminder_schedule=schedule, reminder_enabled=True,
                              checked=checked)
            record.replace_habit(updated)

        logger.info(
            f"Habit reminder schedule set: user={user_id} habit={habit.name} "
            f"schedule={describe(schedule) if schedule else 'default'}"
        )
        return updated

    def toggle_reminder(self, user_id: int, habit_id: str, enabled: Optional[bool] = None) -> Habit:
        with self.store.transaction(user_id) as record:
            habit = self._find(record, habit_id)
            value = (not habit.reminder_enabled) if enabled is None else enabled
            updated = replace(habit, reminder_enabled=value)
            record.replace_habit(updated)

        logger.info(f"Habit reminder toggled: user={user_id} habit={habit.name} enabled={value}")
        return updated

    def toggle_disabled(self, user_id: int, habit_id: str, disabled: Optional[bool] = None) -> Habit:
        with self.store.transaction(user_id) as record:
            habit = self._find(record, habit_id)
            value = (not habit.disabled) if disabled is None else disabled
            updated = replace(habit, disabled=value)
            record.replace_habit(updated)

        logger.info(f"Habit disabled toggled: user={user_id} habit={habit.name} disabled={value}")
        return updated

    # ===== ANALYTICS =====

    def get_analytics(self, user_id: int) -> List[Dict[str, Any]]:
        """Habits of a user with their reconstructed check history"""
        record = self.get_user(user_id)
        today = self.today_for(record)

        habits = []
        for habit in record.habits:
            history = reconstruct(habit, today)
            data = habit.to_dict()
            data["checkHistory"] = [entry.to_dict() for entry in history]
            data["summary"] = summarize(habit, today, history).to_dict()
            data["scheduleDescription"] = (
                describe(habit.reminder_schedule) if habit.reminder_schedule else None
            )
            habits.append(data)
        return habits


__all__ = ['HabitService', 'CheckResult', 'parse_schedule', 'DAY_NAMES']
