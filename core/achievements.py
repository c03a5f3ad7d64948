#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Streak Bot - Streak Milestones
Badge thresholds and the detector that awards them
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List

from core.models import Badge

logger = logging.getLogger(__name__)

# ===== DEFINITIONS =====

@dataclass(frozen=True)
class MilestoneDefinition:
    """Display data of a streak milestone"""
    milestone: int
    emoji: str
    name: str

    @property
    def label(self) -> str:
        return f"{self.emoji} {self.name}"

MILESTONE_DEFINITIONS: Dict[int, MilestoneDefinition] = {
    5: MilestoneDefinition(5, "🔥", "5 Days"),
    10: MilestoneDefinition(10, "⭐", "10 Days"),
    30: MilestoneDefinition(30, "🏆", "30 Days"),
    90: MilestoneDefinition(90, "💎", "90 Days"),
}

MILESTONES = tuple(sorted(MILESTONE_DEFINITIONS))

# ===== DETECTION =====

def detect(streak: int, earned: Iterable[int]) -> List[int]:
    """Return every threshold reached by ``streak`` that is not yet earned.

    Several milestones can be crossed at once, e.g. when a streak is
    corrected upwards: ``detect(30, [])`` gives ``[5, 10, 30]``.
    """
    earned = set(earned)
    return [m for m in MILESTONES if m <= streak and m not in earned]


def award(milestones: Iterable[int], badges: List[Badge], earned_at: str) -> List[Badge]:
    """Merge newly earned milestones into ``badges``; never removes a badge"""
    by_milestone = {b.milestone: b for b in badges}
    for milestone in milestones:
        if milestone not in by_milestone:
            by_milestone[milestone] = Badge(milestone=milestone, earned_at=earned_at)
            logger.info(f"Milestone {milestone} earned on {earned_at}")
    return [by_milestone[m] for m in sorted(by_milestone)]


def badge_label(milestone: int) -> str:
    definition = MILESTONE_DEFINITIONS.get(milestone)
    if definition is None:
        return f"🏅 {milestone} Days"
    return definition.label


def next_milestone(streak: int):
    """The first threshold above ``streak``, or None past the last one"""
    for milestone in MILESTONES:
        if milestone > streak:
            return milestone
    return None


__all__ = [
    'MilestoneDefinition', 'MILESTONE_DEFINITIONS', 'MILESTONES',
    'detect', 'award', 'badge_label', 'next_milestone',
]
