"""Tests for streak milestones."""

from core.achievements import detect, award, badge_label, next_milestone, MILESTONES
from core.models import Badge


class TestDetect:

    def test_only_unearned_thresholds(self):
        assert detect(30, [5, 10]) == [30]

    def test_several_thresholds_at_once(self):
        assert detect(30, []) == [5, 10, 30]

    def test_below_first_threshold(self):
        assert detect(4, []) == []

    def test_everything_earned(self):
        assert detect(120, list(MILESTONES)) == []


class TestAward:

    def test_merges_sorted_and_unique(self):
        badges = [Badge(10, "2024-03-10")]
        merged = award([5, 10, 30], badges, "2024-04-01")

        assert [b.milestone for b in merged] == [5, 10, 30]
        # the existing badge keeps its original date
        assert merged[1].earned_at == "2024-03-10"
        assert merged[0].earned_at == "2024-04-01"

    def test_nothing_new_keeps_badges(self):
        badges = [Badge(5, "2024-03-05")]
        assert award([], badges, "2024-04-01") == badges


def test_labels():
    assert badge_label(5) == "🔥 5 Days"
    assert badge_label(90) == "💎 90 Days"
    assert badge_label(365) == "🏅 365 Days"


def test_next_milestone():
    assert next_milestone(0) == 5
    assert next_milestone(5) == 10
    assert next_milestone(90) is None
