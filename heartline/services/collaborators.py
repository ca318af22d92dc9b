"""
heartline.services.collaborators — Engine entry points for owning modules
==========================================================================

Notes, moments, quests, couples and pair requests own their entities; this
module is how they tell the intimacy engine something happened.  Each hook
derives the dedupe key deterministically from the entity id, so retrying
a create, completion or delete can never double-count.

All hooks run inside the caller's session and never commit.  Membership
is the caller's responsibility (see :func:`intimacy_service.assert_member`).
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from heartline.database.models import IntimacyEventType
from heartline.engine.events import (
    AnniversarySet,
    MomentCreated,
    NoteCreated,
    PairSucceeded,
    QuestCompleted,
    QuestCreated,
    RomanticAction,
    SurpriseClicked,
)
from heartline.services import intimacy_service
from heartline.services.intimacy_service import AwardResult


# ---------------------------------------------------------------------------
# Dedupe keys
# ---------------------------------------------------------------------------
def create_key(kind: str, entity_id: str) -> str:
    return f"{kind}:{entity_id}:create"


def delete_key(kind: str, entity_id: str) -> str:
    return f"{kind}:{entity_id}:delete"


def quest_complete_key(quest_id: str) -> str:
    return f"quest:{quest_id}:complete"


def pair_success_key(couple_id: str) -> str:
    # Scoped to the couple, not the user: either partner pairing counts once.
    return f"pair_success:{couple_id}"


def anniversary_key(couple_id: str) -> str:
    return f"anniversary_set:{couple_id}"


def surprise_key(user_id: str, client_event_id: str) -> str:
    return f"surprise:{user_id}:{client_event_id}"


def romantic_key(user_id: str, client_event_id: str) -> str:
    return f"romantic:{user_id}:{client_event_id}"


def _revoke(
    session: Session,
    couple_id: str,
    actor_user_id: str,
    kind: str,
    entity_id: str,
    delete_type: IntimacyEventType,
    **kwargs: Any,
) -> int:
    return intimacy_service.revoke_create_award(
        session,
        couple_id,
        actor_user_id,
        create_key(kind, entity_id),
        delete_key(kind, entity_id),
        delete_type,
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------
def note_created(
    session: Session, couple_id: str, author_id: str, note_id: str, content: str, **kwargs: Any
) -> AwardResult:
    return intimacy_service.award(
        session, couple_id, author_id, NoteCreated(content=content),
        dedupe_key=create_key("note", note_id),
        metadata={"noteId": note_id},
        **kwargs,
    )


def note_deleted(
    session: Session, couple_id: str, actor_id: str, note_id: str, **kwargs: Any
) -> int:
    """Call immediately before or after deleting the note row."""
    return _revoke(
        session, couple_id, actor_id, "note", note_id, IntimacyEventType.NOTE_DELETE, **kwargs
    )


# ---------------------------------------------------------------------------
# Moments
# ---------------------------------------------------------------------------
def moment_created(
    session: Session,
    couple_id: str,
    author_id: str,
    moment_id: str,
    tags: Iterable[str] = (),
    **kwargs: Any,
) -> AwardResult:
    return intimacy_service.award(
        session, couple_id, author_id, MomentCreated(tags=tuple(tags)),
        dedupe_key=create_key("moment", moment_id),
        metadata={"momentId": moment_id},
        **kwargs,
    )


def moment_deleted(
    session: Session, couple_id: str, actor_id: str, moment_id: str, **kwargs: Any
) -> int:
    return _revoke(
        session, couple_id, actor_id, "moment", moment_id, IntimacyEventType.MOMENT_DELETE,
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Quests
# ---------------------------------------------------------------------------
def quest_created(
    session: Session, couple_id: str, creator_id: str, quest_id: str, **kwargs: Any
) -> AwardResult:
    return intimacy_service.award(
        session, couple_id, creator_id, QuestCreated(),
        dedupe_key=create_key("quest", quest_id),
        metadata={"questId": quest_id},
        **kwargs,
    )


def quest_completed(
    session: Session,
    couple_id: str,
    completer_id: str,
    quest_id: str,
    quest_points: int,
    quest_created_by: str | None,
    **kwargs: Any,
) -> AwardResult:
    """Call only when this request actually flipped the quest to completed."""
    return intimacy_service.award(
        session, couple_id, completer_id,
        QuestCompleted(quest_points=quest_points, quest_created_by=quest_created_by),
        dedupe_key=quest_complete_key(quest_id),
        metadata={"questId": quest_id},
        **kwargs,
    )


def quest_deleted(
    session: Session, couple_id: str, actor_id: str, quest_id: str, **kwargs: Any
) -> int:
    # Only the creation award is reversed; completion points stay earned.
    return _revoke(
        session, couple_id, actor_id, "quest", quest_id, IntimacyEventType.QUEST_DELETE,
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Couples & pairing
# ---------------------------------------------------------------------------
def couple_paired(
    session: Session, couple_id: str, partner_id: str, **kwargs: Any
) -> AwardResult:
    return intimacy_service.award(
        session, couple_id, partner_id, PairSucceeded(),
        dedupe_key=pair_success_key(couple_id),
        **kwargs,
    )


def anniversary_set(
    session: Session,
    couple_id: str,
    user_id: str,
    previous: date | None,
    new: date | None,
    **kwargs: Any,
) -> AwardResult | None:
    """Award the one-time bonus when the anniversary goes from unset to set.

    Returns None (no engine call) for edits or clears.
    """
    if previous is not None or new is None:
        return None
    return intimacy_service.award(
        session, couple_id, user_id, AnniversarySet(anniversary_date=new.isoformat()),
        dedupe_key=anniversary_key(couple_id),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# In-app interactions
# ---------------------------------------------------------------------------
def surprise_clicked(
    session: Session,
    couple_id: str,
    user_id: str,
    kind: str,
    client_event_id: str,
    **kwargs: Any,
) -> AwardResult:
    return intimacy_service.award(
        session, couple_id, user_id, SurpriseClicked(kind=kind),
        dedupe_key=surprise_key(user_id, client_event_id),
        metadata={"clientEventId": client_event_id},
        **kwargs,
    )


def romantic_action(
    session: Session,
    couple_id: str,
    user_id: str,
    action: str,
    scene_id: str | None,
    client_event_id: str,
    **kwargs: Any,
) -> AwardResult:
    return intimacy_service.award(
        session, couple_id, user_id, RomanticAction(action=action, scene_id=scene_id),
        dedupe_key=romantic_key(user_id, client_event_id),
        metadata={"clientEventId": client_event_id},
        **kwargs,
    )
