"""
tests/test_levels.py — Level Curve & Titles
============================================
"""

from __future__ import annotations

import pytest

from heartline.constants import compute_level_progress, get_title, level_delta
from heartline.engine.rules import BEYOND_MAX_TITLE, INTIMACY_RULES, TITLES, LevelRules, LevelTitle


class TestLevelDelta:
    def test_first_level_costs_base(self):
        assert level_delta(1) == 80

    def test_each_level_costs_step_more(self):
        assert level_delta(2) == 100
        assert level_delta(3) == 120
        assert level_delta(10) == 80 + 20 * 9


class TestComputeLevelProgress:
    @pytest.mark.parametrize(
        ("score", "level", "start", "nxt"),
        [
            (0, 1, 0, 80),
            (79, 1, 0, 80),
            (80, 2, 80, 180),
            (179, 2, 80, 180),
            (180, 3, 180, 300),
            (300, 4, 300, 440),
        ],
    )
    def test_known_thresholds(self, score, level, start, nxt):
        progress = compute_level_progress(score)
        assert (progress.level, progress.level_start, progress.next_threshold) == (
            level, start, nxt,
        )

    def test_negative_score_is_level_one(self):
        assert compute_level_progress(-50).level == 1

    def test_monotonic(self):
        previous = compute_level_progress(0)
        for score in range(1, 5000, 7):
            current = compute_level_progress(score)
            assert current.level >= previous.level
            assert current.next_threshold > current.level_start
            assert current.level_start <= score < current.next_threshold
            previous = current

    def test_huge_score_stops_at_ceiling(self):
        progress = compute_level_progress(10**18)
        assert progress.level == INTIMACY_RULES.level.max_level

    def test_custom_ceiling(self):
        rules = LevelRules(delta_base=10, delta_step=0, max_level=5)
        assert compute_level_progress(10_000, rules).level == 5


class TestTitles:
    def test_exact_level_match(self):
        title, hint = get_title(1)
        assert title == TITLES[0].title
        assert hint == TITLES[0].hint

    def test_last_table_entry(self):
        assert get_title(10)[0] == TITLES[-1].title

    def test_beyond_table_falls_back(self):
        assert get_title(11) == (BEYOND_MAX_TITLE.title, BEYOND_MAX_TITLE.hint)
        assert get_title(500) == (BEYOND_MAX_TITLE.title, BEYOND_MAX_TITLE.hint)

    def test_titles_come_from_rules(self):
        rules = LevelRules(
            titles=(LevelTitle(1, "Hello", "first"),),
            beyond_max_title=LevelTitle(0, "Far Along", "past the table"),
        )
        assert get_title(1, rules) == ("Hello", "first")
        assert get_title(2, rules) == ("Far Along", "past the table")
