"""
heartline.engine.rules — Static Rule Table
===========================================

Every game-balance number the scoring engine uses.  Read-only at runtime:
rebalancing the game means editing this module and nothing else.
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__ = [
    "INTIMACY_RULES",
    "IntimacyRules",
    "LevelTitle",
    "BEYOND_MAX_TITLE",
    "TITLES",
]


@dataclass(frozen=True, slots=True)
class LengthBonus:
    min_inclusive: int
    bonus: int


@dataclass(frozen=True, slots=True)
class DecaySchedule:
    """How many same-type events per UTC day earn full, then half credit.

    The first ``full_count`` events earn full points, the next
    ``half_count`` earn half (floored), everything after earns zero.
    """

    full_count: int
    half_count: int

    def multiplier(self, index: int) -> float:
        """Credit multiplier for the *index*-th event of the day (1-based)."""
        if index <= self.full_count:
            return 1.0
        if index <= self.full_count + self.half_count:
            return 0.5
        return 0.0


@dataclass(frozen=True, slots=True)
class NoteRules:
    base: int = 8
    # Checked in order; first match wins.
    length_bonuses: tuple[LengthBonus, ...] = (
        LengthBonus(min_inclusive=121, bonus=4),
        LengthBonus(min_inclusive=31, bonus=2),
        LengthBonus(min_inclusive=0, bonus=0),
    )
    decay: DecaySchedule = DecaySchedule(full_count=3, half_count=3)


@dataclass(frozen=True, slots=True)
class MomentRules:
    base: int = 15
    tags_bonus: int = 2
    tags_bonus_min: int = 2
    decay: DecaySchedule = DecaySchedule(full_count=2, half_count=1)


@dataclass(frozen=True, slots=True)
class QuestRules:
    create_base: int = 5
    create_daily_full_count: int = 5
    complete_daily_cap: int = 120
    complete_max_points: int = 50
    cross_complete_bonus: int = 5


@dataclass(frozen=True, slots=True)
class SurpriseRules:
    cooldown_seconds: int = 30
    user_daily_cap: int = 15
    # Inclusive (low, high) point ranges per surprise kind.
    gift_range: tuple[int, int] = (1, 3)
    default_range: tuple[int, int] = (0, 2)
    kinds: frozenset[str] = frozenset({"gift", "cat", "dog", "balloon"})


@dataclass(frozen=True, slots=True)
class RomanticRules:
    user_daily_cap: int = 12
    scene_enter_points: int = 3
    scene_enter_action: str = "scene_enter"


# ---------------------------------------------------------------------------
# Titles — indexed by level
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class LevelTitle:
    level: int
    title: str
    hint: str


TITLES: tuple[LevelTitle, ...] = (
    LevelTitle(1, "First Meeting", "Getting to know each other, everything is just beginning"),
    LevelTitle(2, "Heartbeat", "Starting to notice each other's little moods"),
    LevelTitle(3, "Infatuation", "Sweetness overload, wanting to meet every day"),
    LevelTitle(4, "In Sync", "Understood without words, I remember all your habits"),
    LevelTitle(5, "Attached", "At ease together, missing each other apart"),
    LevelTitle(6, "Same Wavelength", "Values align, conversations flow"),
    LevelTitle(7, "Steadfast", "Willing to solve problems together"),
    LevelTitle(8, "Side by Side", "Thinking of each other as a long-term \"us\""),
    LevelTitle(9, "Soulmates", "Understood and held, and better at loving"),
    LevelTitle(10, "Meant to Be", "Choosing each other firmly, lifting each other up"),
)

BEYOND_MAX_TITLE = LevelTitle(
    0, "Eternal Lovers", "Better at tending and being there, letting love shine for long"
)


@dataclass(frozen=True, slots=True)
class LevelRules:
    delta_base: int = 80
    delta_step: int = 20
    # Soft ceiling: the curve walk stops here instead of looping forever.
    max_level: int = 10_000
    titles: tuple[LevelTitle, ...] = TITLES
    # Shown for any level past the end of `titles`.
    beyond_max_title: LevelTitle = BEYOND_MAX_TITLE


@dataclass(frozen=True, slots=True)
class IntimacyRules:
    couple_daily_cap: int = 300
    note: NoteRules = field(default_factory=NoteRules)
    moment: MomentRules = field(default_factory=MomentRules)
    quest: QuestRules = field(default_factory=QuestRules)
    pair_success_points: int = 100
    anniversary_set_points: int = 20
    surprise: SurpriseRules = field(default_factory=SurpriseRules)
    romantic: RomanticRules = field(default_factory=RomanticRules)
    level: LevelRules = field(default_factory=LevelRules)


INTIMACY_RULES = IntimacyRules()
