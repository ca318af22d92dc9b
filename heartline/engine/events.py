"""
heartline.engine.events — Intimacy event kinds
===============================================

The closed set of actions that can earn points.  Each kind is a frozen
dataclass carrying only the context its scoring rule needs, and knows the
:class:`IntimacyEventType` it is stored under.  Collaborators build one of
these and hand it to :func:`heartline.services.intimacy_service.award`.

Callers that only hold the raw ``(type, metadata)`` pair can rebuild the
variant with :func:`event_from_metadata`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar

from heartline.database.models import IntimacyEventType

__all__ = [
    "AnniversarySet",
    "AwardableEvent",
    "MomentCreated",
    "NoteCreated",
    "PairSucceeded",
    "QuestCompleted",
    "QuestCreated",
    "RomanticAction",
    "SurpriseClicked",
    "DELETE_TYPES",
    "event_from_metadata",
]


@dataclass(frozen=True, slots=True)
class NoteCreated:
    type: ClassVar[IntimacyEventType] = IntimacyEventType.NOTE_CREATE
    content: str

    def to_metadata(self) -> dict[str, Any]:
        return {"content": self.content}


@dataclass(frozen=True, slots=True)
class MomentCreated:
    type: ClassVar[IntimacyEventType] = IntimacyEventType.MOMENT_CREATE
    tags: tuple[str, ...] = ()

    def to_metadata(self) -> dict[str, Any]:
        return {"tags": list(self.tags)}


@dataclass(frozen=True, slots=True)
class QuestCreated:
    type: ClassVar[IntimacyEventType] = IntimacyEventType.QUEST_CREATE

    def to_metadata(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, slots=True)
class QuestCompleted:
    type: ClassVar[IntimacyEventType] = IntimacyEventType.QUEST_COMPLETE
    quest_points: int
    quest_created_by: str | None = None

    def to_metadata(self) -> dict[str, Any]:
        return {"questPoints": self.quest_points, "questCreatedBy": self.quest_created_by}


@dataclass(frozen=True, slots=True)
class PairSucceeded:
    type: ClassVar[IntimacyEventType] = IntimacyEventType.PAIR_SUCCESS

    def to_metadata(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, slots=True)
class AnniversarySet:
    type: ClassVar[IntimacyEventType] = IntimacyEventType.ANNIVERSARY_SET
    anniversary_date: str | None = None

    def to_metadata(self) -> dict[str, Any]:
        return {"anniversaryDate": self.anniversary_date}


@dataclass(frozen=True, slots=True)
class SurpriseClicked:
    type: ClassVar[IntimacyEventType] = IntimacyEventType.SURPRISE_CLICK
    kind: str

    def to_metadata(self) -> dict[str, Any]:
        return {"type": self.kind}


@dataclass(frozen=True, slots=True)
class RomanticAction:
    type: ClassVar[IntimacyEventType] = IntimacyEventType.ROMANTIC_ACTION
    action: str
    scene_id: str | None = None

    def to_metadata(self) -> dict[str, Any]:
        return {"action": self.action, "sceneId": self.scene_id}


AwardableEvent = (
    NoteCreated
    | MomentCreated
    | QuestCreated
    | QuestCompleted
    | PairSucceeded
    | AnniversarySet
    | SurpriseClicked
    | RomanticAction
)

# Compensating kinds, written only by the reversal path.
DELETE_TYPES: frozenset[IntimacyEventType] = frozenset({
    IntimacyEventType.NOTE_DELETE,
    IntimacyEventType.MOMENT_DELETE,
    IntimacyEventType.QUEST_DELETE,
})


# ---------------------------------------------------------------------------
# (type, metadata) → variant
# ---------------------------------------------------------------------------
def _tags(value: Any) -> tuple[str, ...]:
    if isinstance(value, Sequence) and not isinstance(value, str):
        return tuple(str(tag) for tag in value)
    return ()


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


_BUILDERS = {
    IntimacyEventType.NOTE_CREATE: lambda m: NoteCreated(content=str(m.get("content") or "")),
    IntimacyEventType.MOMENT_CREATE: lambda m: MomentCreated(tags=_tags(m.get("tags"))),
    IntimacyEventType.QUEST_CREATE: lambda m: QuestCreated(),
    IntimacyEventType.QUEST_COMPLETE: lambda m: QuestCompleted(
        quest_points=_int(m.get("questPoints")),
        quest_created_by=m.get("questCreatedBy"),
    ),
    IntimacyEventType.PAIR_SUCCESS: lambda m: PairSucceeded(),
    IntimacyEventType.ANNIVERSARY_SET: lambda m: AnniversarySet(
        anniversary_date=m.get("anniversaryDate"),
    ),
    IntimacyEventType.SURPRISE_CLICK: lambda m: SurpriseClicked(kind=str(m.get("type") or "")),
    IntimacyEventType.ROMANTIC_ACTION: lambda m: RomanticAction(
        action=str(m.get("action") or ""),
        scene_id=m.get("sceneId"),
    ),
}


def event_from_metadata(
    event_type: IntimacyEventType | str, metadata: dict[str, Any] | None = None
) -> AwardableEvent:
    """Rebuild the typed event for a raw ``(type, metadata)`` pair.

    Raises
    ------
    ValueError
        If *event_type* is not an awardable kind (delete and legacy rows
        are written by the engine itself, never awarded by callers).
    """
    builder = _BUILDERS.get(IntimacyEventType(event_type))
    if builder is None:
        raise ValueError(f"{event_type} is not an awardable event type")
    return builder(metadata or {})
