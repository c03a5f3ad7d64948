# services/reminder_service.py

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from core.exceptions import HabitError
from core.models import Habit, DEFAULT_REMINDER_HOUR, DEFAULT_REMINDER_MINUTE
from core.schedule import is_due, LocalConverter
from database.manager import RecordStore
from utils.datetime_utils import to_local as pytz_to_local

logger = logging.getLogger(__name__)

# ===== RESULTS =====

@dataclass(frozen=True)
class DueHabit:
    """A habit whose reminder is due for its owner"""
    user_id: int
    habit: Habit
    timezone: str = "UTC"

@dataclass(frozen=True)
class SelectionError:
    user_id: int
    message: str
    habit_id: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        data = {"userId": self.user_id, "error": self.message}
        if self.habit_id:
            data["habitId"] = self.habit_id
        return data

@dataclass
class SelectionReport:
    """Result of one selector run"""
    instant: datetime
    users_checked: int = 0
    due: List[DueHabit] = field(default_factory=list)
    errors: List[SelectionError] = field(default_factory=list)


def group_by_user(due: Iterable[DueHabit]) -> Dict[int, List[Habit]]:
    """Group due habits by owner, keeping selection order"""
    grouped: Dict[int, List[Habit]] = OrderedDict()
    for item in due:
        grouped.setdefault(item.user_id, []).append(item.habit)
    return grouped

# ===== SELECTOR =====

class ReminderService:
    """Finds the habits whose reminder is due at a given instant"""

    def __init__(self, store: RecordStore, max_workers: int = 4,
                 default_hour: int = DEFAULT_REMINDER_HOUR,
                 default_minute: int = DEFAULT_REMINDER_MINUTE,
                 to_local: LocalConverter = pytz_to_local):
        self.store = store
        self.max_workers = max_workers
        self.default_hour = default_hour
        self.default_minute = default_minute
        self.to_local = to_local

    def _evaluate_user(self, user_id: int, instant: datetime, report: SelectionReport) -> List[DueHabit]:
        record = self.store.get(user_id)
        if record is None:
            return []

        timezone = record.timezone
        today = self.to_local(instant, timezone).date().isoformat()
        due: List[DueHabit] = []

        for habit in record.habits:
            if habit.disabled:
                continue
            if habit.last_checked_date == today:
                continue

            try:
                if is_due(habit, instant, timezone, self.to_local,
                          self.default_hour, self.default_minute):
                    due.append(DueHabit(user_id=user_id, habit=habit, timezone=timezone))
                    logger.debug(f"Habit due for reminder: user={user_id} habit={habit.name} tz={timezone}")
            except (HabitError, ArithmeticError, ValueError, TypeError) as e:
                logger.error(f"Failed to evaluate habit {habit.habit_id} of user {user_id}: {e}")
                report.errors.append(SelectionError(user_id, str(e), habit.habit_id))

        return due

    def _safe_evaluate(self, user_id: int, instant: datetime, report: SelectionReport) -> List[DueHabit]:
        try:
            return self._evaluate_user(user_id, instant, report)
        except HabitError as e:
            logger.error(f"Failed to load habits of user {user_id}: {e}")
            report.errors.append(SelectionError(user_id, str(e)))
            return []

    def select(self, instant: datetime, user_ids: Optional[Iterable[int]] = None) -> SelectionReport:
        """Evaluate every user's habits; one user's failure does not stop the others"""
        report = SelectionReport(instant=instant)

        if user_ids is None:
            try:
                user_ids = self.store.user_ids()
            except HabitError as e:
                logger.error(f"Failed to list users: {e}")
                report.errors.append(SelectionError(0, str(e)))
                return report

        user_ids = list(user_ids)
        report.users_checked = len(user_ids)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = executor.map(lambda uid: self._safe_evaluate(uid, instant, report), user_ids)
            for due in results:
                report.due.extend(due)

        logger.info(
            f"Found {len(report.due)} habits due for reminder among {report.users_checked} users "
            f"at {instant.isoformat()} ({len(report.errors)} errors)"
        )
        return report

    def select_due(self, user_ids: Optional[Iterable[int]], instant: datetime) -> List[DueHabit]:
        return self.select(instant, user_ids).due


__all__ = [
    'DueHabit', 'SelectionError', 'SelectionReport', 'ReminderService', 'group_by_user',
]
