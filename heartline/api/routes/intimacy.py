"""
heartline.api.routes.intimacy — Couple intimacy endpoints
==========================================================

Member-only routes under ``/couples/{couple_id}/intimacy``:
    - summary (score, level, title, today's progress)
    - cursor-paginated ledger feed
    - surprise click / romantic action awards
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session

from heartline.api.deps import get_clock, get_config, get_current_user_id, get_session
from heartline.config import HeartlineConfig
from heartline.engine.clock import Clock
from heartline.engine.rules import INTIMACY_RULES
from heartline.services import collaborators, intimacy_service

router = APIRouter(prefix="/couples/{couple_id}/intimacy", tags=["intimacy"])

_CLIENT_EVENT_ID = r"^[A-Za-z0-9_-]{6,64}$"


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class SurpriseClick(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_event_id: str = Field(alias="clientEventId", pattern=_CLIENT_EVENT_ID)
    type: str

    @field_validator("type")
    @classmethod
    def _known_kind(cls, value: str) -> str:
        if value not in INTIMACY_RULES.surprise.kinds:
            raise ValueError(f"type must be one of {sorted(INTIMACY_RULES.surprise.kinds)}")
        return value


class RomanticActionBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_event_id: str = Field(alias="clientEventId", pattern=_CLIENT_EVENT_ID)
    scene_id: str = Field(alias="sceneId", pattern=r"^[A-Za-z0-9_-]{2,64}$")
    action: Literal["scene_enter"]


class AwardResponse(BaseModel):
    points: int
    score: int


# ---------------------------------------------------------------------------
# GET /couples/{couple_id}/intimacy
# ---------------------------------------------------------------------------
@router.get("")
def get_summary(
    couple_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    intimacy_service.assert_member(session, couple_id, user_id)
    summary = intimacy_service.get_summary(session, couple_id, clock=clock)
    session.commit()  # persists a first-time legacy import
    return summary.as_dict()


# ---------------------------------------------------------------------------
# GET /couples/{couple_id}/intimacy/events
# ---------------------------------------------------------------------------
@router.get("/events")
def list_events(
    couple_id: str,
    filter_user_id: str | None = Query(None, alias="userId"),
    cursor: str | None = Query(None),
    limit: int | None = Query(None, ge=1),
    sort: str = Query("-createdAt", pattern=r"^-?createdAt$"),
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
    config: HeartlineConfig = Depends(get_config),
):
    intimacy_service.assert_member(session, couple_id, user_id)
    page = intimacy_service.list_events(
        session,
        couple_id,
        user_id=filter_user_id,
        cursor=cursor,
        limit=min(limit or config.events_page_default, config.events_page_max),
        sort=sort,
        clock=clock,
    )
    session.commit()
    return {"data": page.items, "nextCursor": page.next_cursor}


# ---------------------------------------------------------------------------
# POST /couples/{couple_id}/intimacy/surprise/click
# ---------------------------------------------------------------------------
@router.post("/surprise/click", response_model=AwardResponse)
def surprise_click(
    couple_id: str,
    body: SurpriseClick,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    intimacy_service.assert_member(session, couple_id, user_id)
    result = collaborators.surprise_clicked(
        session, couple_id, user_id, body.type, body.client_event_id, clock=clock
    )
    session.commit()
    return AwardResponse(points=result.awarded, score=result.score)


# ---------------------------------------------------------------------------
# POST /couples/{couple_id}/intimacy/romantic/action
# ---------------------------------------------------------------------------
@router.post("/romantic/action", response_model=AwardResponse)
def romantic_action(
    couple_id: str,
    body: RomanticActionBody,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    intimacy_service.assert_member(session, couple_id, user_id)
    result = collaborators.romantic_action(
        session,
        couple_id,
        user_id,
        body.action,
        body.scene_id,
        body.client_event_id,
        clock=clock,
    )
    session.commit()
    return AwardResponse(points=result.awarded, score=result.score)
