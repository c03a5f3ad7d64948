#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Streak Bot - History Reconstruction
Rebuilds a day-by-day check timeline from the compact habit record

A habit only stores its current streak, the skip and drop events and, for
non-daily schedules, the explicit completion dates. Daily completions are
inferred: the most recent ``streak`` days before the last check are counted
as completed, and every drop back-fills the ``streak_before_drop`` days that
preceded it. The running streak of the final entry always equals the stored
streak of a consistent habit. Non-daily completions that do not follow the
previous event on the next day restart the running streak, as check-ins do.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Set, Any, Union

from core.models import Habit, HistoryEntry, CheckOutcome, CheckedDay, DroppedDay, to_date
from utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)

# ===== HELPERS =====

def _day_range(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += ONE_DAY


def _replay(days, drops: Dict[str, DroppedDay], skipped: Set[str],
            completed: Set[str], restart_after_gap: bool = False) -> List[HistoryEntry]:
    """Walk days in order, dropped > skipped > completed; other days are omitted.

    With ``restart_after_gap`` a completion that does not follow the previous
    event on the next calendar day starts the running streak over at 1.
    """
    history: List[HistoryEntry] = []
    running = 0
    previous: Optional[date] = None

    for day in days:
        current = to_date(day)
        day_str = current.isoformat()

        if day_str in drops:
            running = 0
            history.append(HistoryEntry(
                date=day_str,
                outcome=CheckOutcome.DROPPED,
                streak_after=0,
                streak_before=drops[day_str].streak_before_drop,
            ))
        elif day_str in skipped:
            history.append(HistoryEntry(day_str, CheckOutcome.SKIPPED, running))
        elif day_str in completed:
            if restart_after_gap and previous is not None and current - previous > ONE_DAY:
                running = 0
            running += 1
            history.append(HistoryEntry(day_str, CheckOutcome.COMPLETED, running))
        else:
            continue

        previous = current

    return history

# ===== DAILY =====

def _infer_completions(habit: Habit, created: date, today: date,
                       drops: Dict[str, DroppedDay], skipped: Set[str]) -> Set[str]:
    completed: Set[str] = set()

    # current streak, counted back from the last check
    anchor = today
    if habit.last_checked_date:
        anchor = min(to_date(habit.last_checked_date), today)

    remaining = habit.streak
    day = anchor
    while day >= created and remaining > 0:
        day_str = day.isoformat()
        if day_str in drops:
            break
        if day_str not in skipped:
            completed.add(day_str)
            remaining -= 1
        day -= ONE_DAY

    if remaining > 0:
        logger.warning(
            f"Habit {habit.habit_id}: streak {habit.streak} does not fit "
            f"between {created} and {anchor}"
        )

    # streaks that ended in a drop, oldest first
    for drop_str in sorted(drops):
        remaining = drops[drop_str].streak_before_drop
        day = to_date(drop_str) - ONE_DAY
        while day >= created and remaining > 0:
            day_str = day.isoformat()
            if day_str in drops:
                break
            if day_str not in skipped:
                completed.add(day_str)
                remaining -= 1
            day -= ONE_DAY

    return completed


def _reconstruct_daily(habit: Habit, created: date, today: date,
                       drops: Dict[str, DroppedDay], skipped: Set[str]) -> List[HistoryEntry]:
    has_interaction = habit.streak > 0 or bool(skipped) or bool(drops)

    if not (habit.is_active and has_interaction):
        # explicit events only
        return _replay(_day_range(created, today), drops, skipped, set())

    completed = _infer_completions(habit, created, today, drops, skipped)
    return _replay(_day_range(created, today), drops, skipped, completed)

# ===== NON-DAILY =====

def _reconstruct_non_daily(habit: Habit, created: date, today: date,
                           drops: Dict[str, DroppedDay], skipped: Set[str]) -> List[HistoryEntry]:
    checked = {c.date for c in habit.checked}
    created_str, today_str = created.isoformat(), today.isoformat()

    event_dates = checked | skipped | set(drops) | {created_str}
    in_range = sorted(d for d in event_dates if created_str <= d <= today_str)

    return _replay(in_range, drops, skipped, checked, restart_after_gap=True)

# ===== SCHEDULE CHANGES =====

def inferred_checks(habit: Habit, today: Optional[Union[date, str]] = None) -> List[CheckedDay]:
    """Explicit completion dates of a habit about to leave its daily schedule.

    Daily completions are never stored, so they are inferred once and merged
    with any dates already in ``checked``. The non-daily replay of the result
    ends on the stored streak.
    """
    today = to_date(today) if today is not None else now_utc().date()
    dates = {c.date for c in habit.checked}
    created = habit.created_date

    if habit.streak > 0 or habit.dropped:
        drops = {d.date: d for d in habit.dropped}
        skipped = {s.date for s in habit.skipped}
        dates |= _infer_completions(habit, created, today, drops, skipped)

    return [CheckedDay(date=d) for d in sorted(dates)]

# ===== PUBLIC API =====

def reconstruct(habit: Habit, today: Optional[Union[date, str]] = None) -> List[HistoryEntry]:
    """Day-ordered timeline from the habit's creation date to ``today`` inclusive"""
    today = to_date(today) if today is not None else now_utc().date()
    created = habit.created_date

    if created > today:
        return []

    drops = {d.date: d for d in habit.dropped}
    skipped = {s.date for s in habit.skipped}

    if habit.is_daily:
        return _reconstruct_daily(habit, created, today, drops, skipped)
    return _reconstruct_non_daily(habit, created, today, drops, skipped)


@dataclass
class HistorySummary:
    """Aggregates of a reconstructed timeline"""
    completed: int
    skipped: int
    dropped: int
    current_streak: int
    longest_streak: int
    tracked_days: int
    completion_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completed": self.completed,
            "skipped": self.skipped,
            "dropped": self.dropped,
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "trackedDays": self.tracked_days,
            "completionRate": self.completion_rate,
        }


def summarize(habit: Habit, today: Optional[Union[date, str]] = None,
              history: Optional[List[HistoryEntry]] = None) -> HistorySummary:
    today = to_date(today) if today is not None else now_utc().date()
    if history is None:
        history = reconstruct(habit, today)

    counts = {outcome: 0 for outcome in CheckOutcome}
    for entry in history:
        counts[entry.outcome] += 1

    tracked_days = max(0, (today - habit.created_date).days + 1)
    completed = counts[CheckOutcome.COMPLETED]

    return HistorySummary(
        completed=completed,
        skipped=counts[CheckOutcome.SKIPPED],
        dropped=counts[CheckOutcome.DROPPED],
        current_streak=habit.streak,
        longest_streak=max([e.streak_after for e in history] + [habit.streak]),
        tracked_days=tracked_days,
        completion_rate=round(completed / tracked_days, 2) if tracked_days else 0.0,
    )


__all__ = ['reconstruct', 'summarize', 'inferred_checks', 'HistorySummary']
