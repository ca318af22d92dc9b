"""
heartline.constants — Level Curve & Titles
===========================================

Single source of truth for the leveling formula.  Import from here instead
of duplicating the curve in services or API routes.
"""

from __future__ import annotations

from dataclasses import dataclass

from heartline.engine.rules import INTIMACY_RULES, LevelRules


@dataclass(frozen=True, slots=True)
class LevelProgress:
    level: int
    level_start: int
    next_threshold: int


# ---------------------------------------------------------------------------
# Leveling formula — THE single canonical implementation
# ---------------------------------------------------------------------------
def level_delta(level: int, rules: LevelRules = INTIMACY_RULES.level) -> int:
    """Points needed to advance from *level* to *level* + 1.

    ::

        delta = delta_base + delta_step * (level - 1)
    """
    return rules.delta_base + rules.delta_step * (level - 1)


def compute_level_progress(
    score: int, rules: LevelRules = INTIMACY_RULES.level
) -> LevelProgress:
    """Map a cumulative *score* to its level and that level's bounds.

    Level 1 starts at 0.  The walk stops at ``rules.max_level`` so absurd
    scores still terminate; such scores simply report the ceiling level.
    Negative scores are treated as 0.
    """
    score = max(0, score)
    level = 1
    level_start = 0
    next_threshold = level_delta(level, rules)

    while score >= next_threshold and level < rules.max_level:
        level_start = next_threshold
        level += 1
        next_threshold += level_delta(level, rules)

    return LevelProgress(level=level, level_start=level_start, next_threshold=next_threshold)


def get_title(level: int, rules: LevelRules = INTIMACY_RULES.level) -> tuple[str, str]:
    """Return ``(title, hint)`` for *level*, or the beyond-max fallback."""
    row = next((row for row in rules.titles if row.level == level), rules.beyond_max_title)
    return row.title, row.hint
