"""
heartline.services.ledger_view — Today's ledger aggregates
==========================================================

SQL-backed :class:`heartline.engine.scoring.LedgerView`.  Runs inside the
caller's session so the figures it reads belong to the same transaction
as the award that follows.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from heartline.database.models import IntimacyEvent, IntimacyEventType
from heartline.engine.clock import DEFAULT_CLOCK, Clock, start_of_utc_day


class SessionLedgerView:
    """Positive-point ledger figures for one couple since UTC midnight."""

    def __init__(self, session: Session, couple_id: str, clock: Clock = DEFAULT_CLOCK) -> None:
        self._session = session
        self._couple_id = couple_id
        self._clock = clock

    def _today_filters(self, since: datetime | None = None) -> list:
        return [
            IntimacyEvent.couple_id == self._couple_id,
            IntimacyEvent.created_at >= (since or start_of_utc_day(self._clock.now())),
            IntimacyEvent.points > 0,
        ]

    def _sum(self, *filters) -> int:
        total = self._session.scalar(
            select(func.coalesce(func.sum(IntimacyEvent.points), 0)).where(*filters)
        )
        return int(total or 0)

    def count_today(self, event_type: IntimacyEventType) -> int:
        count = self._session.scalar(
            select(func.count())
            .select_from(IntimacyEvent)
            .where(*self._today_filters(), IntimacyEvent.type == event_type.value)
        )
        return int(count or 0)

    def sum_today(self, event_type: IntimacyEventType) -> int:
        return self._sum(*self._today_filters(), IntimacyEvent.type == event_type.value)

    def sum_today_positive(self) -> int:
        return self._sum(*self._today_filters())

    def sum_today_by_user(self, user_id: str, event_type: IntimacyEventType) -> int:
        return self._sum(
            *self._today_filters(),
            IntimacyEvent.user_id == user_id,
            IntimacyEvent.type == event_type.value,
        )

    def has_recent_user_event(
        self, user_id: str, event_type: IntimacyEventType, within_seconds: int
    ) -> bool:
        since = self._clock.now() - timedelta(seconds=within_seconds)
        found = self._session.scalar(
            select(IntimacyEvent.id)
            .where(
                *self._today_filters(since),
                IntimacyEvent.user_id == user_id,
                IntimacyEvent.type == event_type.value,
            )
            .limit(1)
        )
        return found is not None
