"""
heartline.engine.scoring — Award Point Computation
===================================================

Pure calculation: no database I/O inside the engine.  Everything it needs
to know about what already happened today is read through a
:class:`LedgerView`, which the service layer backs with SQL aggregates and
tests back with a fake.

Pipeline::

    event → per-type raw points + type throttle → couple-wide daily cap → delta

The couple-wide cap runs last, so a type cap and the global cap compose
(the smaller wins).  Throttling is never an error: it yields 0.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Callable
from typing import Protocol

from heartline.database.models import IntimacyEventType
from heartline.engine.events import (
    AnniversarySet,
    AwardableEvent,
    MomentCreated,
    NoteCreated,
    PairSucceeded,
    QuestCompleted,
    QuestCreated,
    RomanticAction,
    SurpriseClicked,
)
from heartline.engine.rules import INTIMACY_RULES, IntimacyRules

logger = logging.getLogger(__name__)

__all__ = [
    "LedgerView",
    "apply_couple_daily_cap",
    "compute_award_points",
    "compute_raw_points",
    "moment_base_points",
    "note_base_points",
]


class LedgerView(Protocol):
    """Read-only "today so far" figures for one couple.

    All counts and sums consider positive-point rows only, and "today"
    starts at UTC midnight of the engine clock.
    """

    def count_today(self, event_type: IntimacyEventType) -> int: ...

    def sum_today(self, event_type: IntimacyEventType) -> int: ...

    def sum_today_positive(self) -> int: ...

    def sum_today_by_user(self, user_id: str, event_type: IntimacyEventType) -> int: ...

    def has_recent_user_event(
        self, user_id: str, event_type: IntimacyEventType, within_seconds: int
    ) -> bool: ...


# ---------------------------------------------------------------------------
# Base values
# ---------------------------------------------------------------------------
def note_base_points(content: str, rules: IntimacyRules = INTIMACY_RULES) -> int:
    """Base points plus the length-tier bonus for a note's trimmed text."""
    length = len(content.strip())
    bonus = next(
        (row.bonus for row in rules.note.length_bonuses if length >= row.min_inclusive),
        0,
    )
    return rules.note.base + bonus


def moment_base_points(tags: tuple[str, ...], rules: IntimacyRules = INTIMACY_RULES) -> int:
    bonus = rules.moment.tags_bonus if len(tags) >= rules.moment.tags_bonus_min else 0
    return rules.moment.base + bonus


def _headroom(cap: int, used: int) -> int:
    return max(0, cap - used)


# ---------------------------------------------------------------------------
# Per-type rules
# ---------------------------------------------------------------------------
def _note_points(
    event: NoteCreated, user_id: str, view: LedgerView, rng: random.Random, rules: IntimacyRules
) -> int:
    raw = note_base_points(event.content, rules)
    index = view.count_today(IntimacyEventType.NOTE_CREATE) + 1
    return math.floor(raw * rules.note.decay.multiplier(index))


def _moment_points(
    event: MomentCreated, user_id: str, view: LedgerView, rng: random.Random, rules: IntimacyRules
) -> int:
    raw = moment_base_points(event.tags, rules)
    index = view.count_today(IntimacyEventType.MOMENT_CREATE) + 1
    return math.floor(raw * rules.moment.decay.multiplier(index))


def _quest_create_points(
    event: QuestCreated, user_id: str, view: LedgerView, rng: random.Random, rules: IntimacyRules
) -> int:
    if view.count_today(IntimacyEventType.QUEST_CREATE) >= rules.quest.create_daily_full_count:
        return 0
    return rules.quest.create_base


def _quest_complete_points(
    event: QuestCompleted, user_id: str, view: LedgerView, rng: random.Random, rules: IntimacyRules
) -> int:
    capped = min(max(0, event.quest_points), rules.quest.complete_max_points)
    cross_bonus = (
        rules.quest.cross_complete_bonus
        if event.quest_created_by and event.quest_created_by != user_id
        else 0
    )
    remaining = _headroom(
        rules.quest.complete_daily_cap, view.sum_today(IntimacyEventType.QUEST_COMPLETE)
    )
    return min(capped + cross_bonus, remaining)


def _pair_points(
    event: PairSucceeded, user_id: str, view: LedgerView, rng: random.Random, rules: IntimacyRules
) -> int:
    return rules.pair_success_points


def _anniversary_points(
    event: AnniversarySet, user_id: str, view: LedgerView, rng: random.Random, rules: IntimacyRules
) -> int:
    return rules.anniversary_set_points


def _surprise_points(
    event: SurpriseClicked, user_id: str, view: LedgerView, rng: random.Random, rules: IntimacyRules
) -> int:
    surprise = rules.surprise
    if view.has_recent_user_event(
        user_id, IntimacyEventType.SURPRISE_CLICK, surprise.cooldown_seconds
    ):
        logger.debug("Surprise click by %s inside cooldown window", user_id)
        return 0

    low, high = surprise.gift_range if event.kind == "gift" else surprise.default_range
    raw = rng.randint(low, high)
    remaining = _headroom(
        surprise.user_daily_cap,
        view.sum_today_by_user(user_id, IntimacyEventType.SURPRISE_CLICK),
    )
    return min(raw, remaining)


def _romantic_points(
    event: RomanticAction, user_id: str, view: LedgerView, rng: random.Random, rules: IntimacyRules
) -> int:
    romantic = rules.romantic
    raw = romantic.scene_enter_points if event.action == romantic.scene_enter_action else 0
    remaining = _headroom(
        romantic.user_daily_cap,
        view.sum_today_by_user(user_id, IntimacyEventType.ROMANTIC_ACTION),
    )
    return min(raw, remaining)


_RULES: dict[type, Callable[..., int]] = {
    NoteCreated: _note_points,
    MomentCreated: _moment_points,
    QuestCreated: _quest_create_points,
    QuestCompleted: _quest_complete_points,
    PairSucceeded: _pair_points,
    AnniversarySet: _anniversary_points,
    SurpriseClicked: _surprise_points,
    RomanticAction: _romantic_points,
}


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------
def compute_raw_points(
    event: AwardableEvent,
    user_id: str,
    view: LedgerView,
    *,
    rng: random.Random,
    rules: IntimacyRules = INTIMACY_RULES,
) -> int:
    """Per-type points after type-specific throttling, before the global cap."""
    rule = _RULES.get(type(event))
    if rule is None:
        raise TypeError(f"No scoring rule for {type(event).__name__}")
    return rule(event, user_id, view, rng, rules)


def apply_couple_daily_cap(
    raw_points: int, view: LedgerView, rules: IntimacyRules = INTIMACY_RULES
) -> int:
    """Clamp *raw_points* to what is left of the couple's daily cap."""
    if raw_points <= 0:
        return raw_points
    remaining = _headroom(rules.couple_daily_cap, view.sum_today_positive())
    return min(raw_points, remaining)


def compute_award_points(
    event: AwardableEvent,
    user_id: str,
    view: LedgerView,
    *,
    rng: random.Random,
    rules: IntimacyRules = INTIMACY_RULES,
) -> int:
    """Full pipeline: the delta to persist (``<= 0`` means nothing is written)."""
    raw = compute_raw_points(event, user_id, view, rng=rng, rules=rules)
    return apply_couple_daily_cap(raw, view, rules)
