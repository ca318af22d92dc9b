"""
heartline.services.intimacy_service — Intimacy Ledger & Score
==============================================================

The only writer of ``couples.intimacy_score`` and ``intimacy_events``.
Collaborating modules (notes, moments, quests, couples, pair requests) call
in with their own session after doing their own write; nothing here
commits, so the award lands or rolls back together with the caller's
change.

Idempotency: every ledger row is unique per (couple_id, dedupe_key).
Inserts run inside a SAVEPOINT; an ``IntegrityError`` on that constraint
means the action was already recorded and is reported as ``awarded=0``.
The couple row is locked (``SELECT … FOR UPDATE``) before today's totals
are read, so concurrent awards for one couple serialise on it.

Score floor: reversals are clamped so the score never drops below zero,
even when that under-reverses an award (the clamp uses the couple's
*current* score, not per-award remaining headroom).
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from heartline.constants import compute_level_progress, get_title
from heartline.database.models import Couple, IntimacyEvent, IntimacyEventType, new_id
from heartline.engine.clock import DEFAULT_CLOCK, Clock
from heartline.engine.events import DELETE_TYPES, AwardableEvent, event_from_metadata
from heartline.engine.rules import INTIMACY_RULES, IntimacyRules
from heartline.engine.scoring import compute_award_points
from heartline.errors import ForbiddenError, NotFoundError
from heartline.services.cursor import decode_cursor, encode_cursor
from heartline.services.ledger_view import SessionLedgerView

logger = logging.getLogger(__name__)

# Module-level default RNG for surprise points (tests inject a seeded one)
_default_rng = random.SystemRandom()

EVENTS_PAGE_MAX = 100


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AwardResult:
    awarded: int
    score: int


@dataclass(frozen=True, slots=True)
class IntimacySummary:
    score: int
    level: int
    title: str
    hint: str
    level_start: int
    next_threshold: int
    today_earned: int
    today_cap: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level,
            "title": self.title,
            "hint": self.hint,
            "levelStart": self.level_start,
            "nextThreshold": self.next_threshold,
            "todayEarned": self.today_earned,
            "todayCap": self.today_cap,
        }


@dataclass(slots=True)
class EventPage:
    items: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def clamp_delta_to_zero_floor(current: int, delta: int) -> int:
    """Shrink a negative *delta* so ``current + delta`` stays >= 0."""
    if delta >= 0 or current + delta >= 0:
        return delta
    return -current


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _current_score(session: Session, couple_id: str) -> int:
    score = session.scalar(select(Couple.intimacy_score).where(Couple.id == couple_id))
    return int(score or 0)


def _lock_couple_score(session: Session, couple_id: str) -> int:
    """Row-lock the couple and return its score.  Raises if it doesn't exist."""
    score = session.scalar(
        select(Couple.intimacy_score).where(Couple.id == couple_id).with_for_update()
    )
    if score is None:
        raise NotFoundError("Couple not found")
    return int(score)


def _event_exists(session: Session, couple_id: str, dedupe_key: str) -> bool:
    return session.scalar(
        select(IntimacyEvent.id).where(
            IntimacyEvent.couple_id == couple_id,
            IntimacyEvent.dedupe_key == dedupe_key,
        )
    ) is not None


def _append_event(session: Session, row: IntimacyEvent) -> bool:
    """Insert *row* and move the couple score by ``row.points`` atomically.

    Returns False when the (couple, dedupe key) pair already exists.
    Other integrity failures propagate.
    """
    try:
        with session.begin_nested():   # SAVEPOINT
            session.add(row)
            session.flush()
            session.execute(
                update(Couple)
                .where(Couple.id == row.couple_id)
                .values(intimacy_score=Couple.intimacy_score + row.points)
            )
    except IntegrityError:
        # The SAVEPOINT was rolled back; the outer transaction is still alive.
        if _event_exists(session, row.couple_id, row.dedupe_key):
            return False
        raise
    return True


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------
def assert_member(session: Session, couple_id: str, user_id: str) -> Couple:
    """Return the couple if *user_id* is one of its two members."""
    couple = session.get(Couple, couple_id)
    if couple is None:
        raise NotFoundError("Couple not found")
    if not couple.is_member(user_id):
        raise ForbiddenError("User is not a member of this couple")
    return couple


# ---------------------------------------------------------------------------
# Legacy backfill
# ---------------------------------------------------------------------------
def ensure_legacy_import(
    session: Session, couple_id: str, *, clock: Clock = DEFAULT_CLOCK
) -> IntimacyEvent | None:
    """Record pre-ledger score as a single LEGACY_IMPORT row.

    No-op once the couple has any ledger row, or when its score is 0.
    The score itself is untouched: the row only makes the ledger sum
    match the balance that already exists.
    """
    if session.scalar(
        select(IntimacyEvent.id).where(IntimacyEvent.couple_id == couple_id).limit(1)
    ) is not None:
        return None

    couple = session.execute(
        select(Couple.intimacy_score, Couple.created_at).where(Couple.id == couple_id)
    ).first()
    if couple is None or couple.intimacy_score <= 0:
        return None

    row = IntimacyEvent(
        id=new_id("itv_"),
        couple_id=couple_id,
        user_id=None,
        type=IntimacyEventType.LEGACY_IMPORT.value,
        points=couple.intimacy_score,
        dedupe_key=f"legacy_import:{couple_id}",
        metadata_={"importedAt": clock.now().isoformat()},
        created_at=couple.created_at or clock.now(),
    )
    try:
        with session.begin_nested():
            session.add(row)
            session.flush()
    except IntegrityError:
        if _event_exists(session, couple_id, row.dedupe_key):
            return None
        raise

    logger.info(
        "Legacy import: couple %s backfilled with %d points", couple_id, row.points
    )
    return row


# ---------------------------------------------------------------------------
# Award
# ---------------------------------------------------------------------------
def award(
    session: Session,
    couple_id: str,
    user_id: str,
    event: AwardableEvent,
    *,
    dedupe_key: str,
    metadata: dict[str, Any] | None = None,
    clock: Clock = DEFAULT_CLOCK,
    rng: random.Random | None = None,
    rules: IntimacyRules = INTIMACY_RULES,
) -> AwardResult:
    """Score *event* for the couple and record it once per *dedupe_key*.

    A throttled, capped or replayed event returns ``awarded=0`` with the
    current score; it is not an error.  Raises :class:`NotFoundError` if
    the couple doesn't exist.
    """
    _lock_couple_score(session, couple_id)
    ensure_legacy_import(session, couple_id, clock=clock)

    view = SessionLedgerView(session, couple_id, clock)
    points = compute_award_points(
        event, user_id, view, rng=rng or _default_rng, rules=rules
    )

    if points <= 0:
        logger.debug(
            "No points for %s on couple %s (key=%s)", event.type, couple_id, dedupe_key
        )
        return AwardResult(awarded=0, score=_current_score(session, couple_id))

    row = IntimacyEvent(
        id=new_id("itv_"),
        couple_id=couple_id,
        user_id=user_id,
        type=event.type.value,
        points=points,
        dedupe_key=dedupe_key,
        metadata_={**(metadata or {}), **event.to_metadata()},
        created_at=clock.now(),
    )
    if not _append_event(session, row):
        logger.info("Duplicate award ignored: couple %s key=%s", couple_id, dedupe_key)
        return AwardResult(awarded=0, score=_current_score(session, couple_id))

    score = _current_score(session, couple_id)
    logger.info(
        "Awarded %d for %s to couple %s (user=%s, score=%d)",
        points, event.type, couple_id, user_id, score,
    )
    return AwardResult(awarded=points, score=score)


def award_by_type(
    session: Session,
    couple_id: str,
    user_id: str,
    event_type: IntimacyEventType | str,
    *,
    dedupe_key: str,
    metadata: dict[str, Any] | None = None,
    **kwargs: Any,
) -> AwardResult:
    """:func:`award` for callers holding a raw ``(type, metadata)`` pair."""
    event = event_from_metadata(event_type, metadata)
    return award(
        session, couple_id, user_id, event,
        dedupe_key=dedupe_key, metadata=metadata, **kwargs,
    )


# ---------------------------------------------------------------------------
# Reversal
# ---------------------------------------------------------------------------
def revoke_create_award(
    session: Session,
    couple_id: str,
    actor_user_id: str,
    create_dedupe_key: str,
    delete_dedupe_key: str,
    delete_type: IntimacyEventType,
    *,
    clock: Clock = DEFAULT_CLOCK,
) -> int:
    """Compensate the award recorded under *create_dedupe_key*.

    Returns the (non-positive) delta applied; 0 when there is nothing to
    reverse, the reversal was already recorded, or the score is already 0.
    """
    if delete_type not in DELETE_TYPES:
        raise ValueError(f"{delete_type} is not a delete event type")

    score = _lock_couple_score(session, couple_id)
    ensure_legacy_import(session, couple_id, clock=clock)

    if _event_exists(session, couple_id, delete_dedupe_key):
        return 0

    created_points = session.scalar(
        select(IntimacyEvent.points).where(
            IntimacyEvent.couple_id == couple_id,
            IntimacyEvent.dedupe_key == create_dedupe_key,
        )
    )
    if created_points is None or created_points <= 0:
        return 0

    delta = clamp_delta_to_zero_floor(score, -created_points)
    if delta == 0:
        return 0
    if delta != -created_points:
        logger.warning(
            "Reversal of %s on couple %s clamped from %d to %d (score=%d)",
            create_dedupe_key, couple_id, -created_points, delta, score,
        )

    row = IntimacyEvent(
        id=new_id("itv_"),
        couple_id=couple_id,
        user_id=actor_user_id,
        type=IntimacyEventType(delete_type).value,
        points=delta,
        dedupe_key=delete_dedupe_key,
        metadata_={"revoked": create_dedupe_key},
        created_at=clock.now(),
    )
    if not _append_event(session, row):
        return 0

    logger.info(
        "Reversed %s on couple %s by %d (actor=%s)",
        create_dedupe_key, couple_id, delta, actor_user_id,
    )
    return delta


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------
def get_summary(
    session: Session,
    couple_id: str,
    *,
    clock: Clock = DEFAULT_CLOCK,
    rules: IntimacyRules = INTIMACY_RULES,
) -> IntimacySummary:
    """Score, level, title and today's progress against the daily cap."""
    ensure_legacy_import(session, couple_id, clock=clock)

    score = session.scalar(select(Couple.intimacy_score).where(Couple.id == couple_id))
    if score is None:
        raise NotFoundError("Couple not found")

    progress = compute_level_progress(score, rules.level)
    title, hint = get_title(progress.level, rules.level)
    today_earned = SessionLedgerView(session, couple_id, clock).sum_today_positive()

    return IntimacySummary(
        score=score,
        level=progress.level,
        title=title,
        hint=hint,
        level_start=progress.level_start,
        next_threshold=progress.next_threshold,
        today_earned=today_earned,
        today_cap=rules.couple_daily_cap,
    )


def _event_dict(row: IntimacyEvent) -> dict[str, Any]:
    return {
        "id": row.id,
        "userId": row.user_id,
        "type": row.type,
        "points": row.points,
        "meta": row.metadata_,
        "createdAt": _as_utc(row.created_at).isoformat(),
    }


def list_events(
    session: Session,
    couple_id: str,
    *,
    user_id: str | None = None,
    cursor: str | None = None,
    limit: int = 20,
    sort: str = "-createdAt",
    clock: Clock = DEFAULT_CLOCK,
) -> EventPage:
    """One page of the couple's ledger, newest first unless ``sort="createdAt"``.

    Ordering is (created_at, id) so rows sharing a timestamp still page
    without gaps or repeats.  Raises :class:`InvalidCursorError` for a
    malformed cursor.
    """
    ensure_legacy_import(session, couple_id, clock=clock)

    limit = max(1, min(limit, EVENTS_PAGE_MAX))
    descending = sort != "createdAt"

    stmt = select(IntimacyEvent).where(IntimacyEvent.couple_id == couple_id)
    if user_id is not None:
        stmt = stmt.where(IntimacyEvent.user_id == user_id)

    if cursor:
        cursor_at, cursor_id = decode_cursor(cursor)
        if descending:
            stmt = stmt.where(or_(
                IntimacyEvent.created_at < cursor_at,
                and_(IntimacyEvent.created_at == cursor_at, IntimacyEvent.id < cursor_id),
            ))
        else:
            stmt = stmt.where(or_(
                IntimacyEvent.created_at > cursor_at,
                and_(IntimacyEvent.created_at == cursor_at, IntimacyEvent.id > cursor_id),
            ))

    if descending:
        stmt = stmt.order_by(IntimacyEvent.created_at.desc(), IntimacyEvent.id.desc())
    else:
        stmt = stmt.order_by(IntimacyEvent.created_at.asc(), IntimacyEvent.id.asc())

    rows = session.scalars(stmt.limit(limit + 1)).all()
    has_more = len(rows) > limit
    rows = rows[:limit]

    next_cursor = None
    if has_more:
        last = rows[-1]
        next_cursor = encode_cursor(_as_utc(last.created_at), last.id)

    return EventPage(items=[_event_dict(row) for row in rows], next_cursor=next_cursor)
