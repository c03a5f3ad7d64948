#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Streak Bot - Streak State Machine
Applies one check-in outcome to a habit

A habit takes at most one transition per calendar day: any outcome recorded
on a day that already equals ``last_checked_date`` returns the habit as is.
Transitions never mutate their input; a new Habit is returned.
"""

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Union

from core.models import Habit, CheckOutcome, SkippedDay, DroppedDay, CheckedDay, to_date
from core.achievements import detect, award

logger = logging.getLogger(__name__)

DateLike = Union[date, str]

# ===== TRANSITIONS =====

def transition(habit: Habit, today: DateLike, outcome: CheckOutcome) -> Habit:
    """Return the habit after recording ``outcome`` on ``today``"""
    today = to_date(today)
    today_str = today.isoformat()

    if habit.last_checked_date == today_str:
        logger.debug(f"Habit {habit.habit_id} already checked on {today_str}")
        return habit

    if outcome == CheckOutcome.COMPLETED:
        return _complete(habit, today)
    if outcome == CheckOutcome.DROPPED:
        return _drop(habit, today)
    if outcome == CheckOutcome.SKIPPED:
        return _skip(habit, today)

    raise ValueError(f"Unknown check outcome: {outcome!r}")


def skip(habit: Habit, today: DateLike) -> Habit:
    return transition(habit, today, CheckOutcome.SKIPPED)


def _complete(habit: Habit, today: date) -> Habit:
    today_str = today.isoformat()
    yesterday_str = (today - timedelta(days=1)).isoformat()

    skipped = list(habit.skipped)
    dropped = list(habit.dropped)

    if not habit.last_checked_date:
        new_streak = 1
    elif habit.last_checked_date == yesterday_str:
        new_streak = habit.streak + 1
    else:
        # gap: a daily streak is recorded as dropped on the first missed day;
        # non-daily gaps restart silently, the checked dates show the break
        new_streak = 1
        gap_start = to_date(habit.last_checked_date) + timedelta(days=1)
        if habit.is_daily and habit.streak > 0 and gap_start < today:
            dropped.append(DroppedDay(streak_before_drop=habit.streak, date=gap_start.isoformat()))
            skipped = []
            logger.info(
                f"Habit {habit.habit_id} streak {habit.streak} broken by a gap "
                f"after {habit.last_checked_date}"
            )

    checked = list(habit.checked)
    if not habit.is_daily and all(c.date != today_str for c in checked):
        checked.append(CheckedDay(date=today_str))

    badges = list(habit.badges)
    new_milestones = detect(new_streak, habit.earned_milestones)
    if new_milestones:
        badges = award(new_milestones, badges, today_str)

    return replace(
        habit,
        streak=new_streak,
        last_checked_date=today_str,
        skipped=skipped,
        dropped=dropped,
        checked=checked,
        badges=badges,
    )


def _drop(habit: Habit, today: date) -> Habit:
    today_str = today.isoformat()
    return replace(
        habit,
        streak=0,
        last_checked_date=today_str,
        skipped=[],
        dropped=list(habit.dropped) + [DroppedDay(streak_before_drop=habit.streak, date=today_str)],
        checked=list(habit.checked),
        badges=list(habit.badges),
    )


def _skip(habit: Habit, today: date) -> Habit:
    today_str = today.isoformat()
    return replace(
        habit,
        last_checked_date=today_str,
        skipped=list(habit.skipped) + [SkippedDay(skipped_day=habit.streak, date=today_str)],
        dropped=list(habit.dropped),
        checked=list(habit.checked),
        badges=list(habit.badges),
    )


def new_badges(before: Habit, after: Habit):
    """Milestones present on ``after`` but not on ``before``"""
    earned = set(before.earned_milestones)
    return [m for m in after.earned_milestones if m not in earned]


__all__ = ['transition', 'skip', 'new_badges']
