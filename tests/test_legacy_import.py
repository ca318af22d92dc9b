"""
tests/test_legacy_import.py — Legacy Backfill
==============================================
Couples that earned score before the ledger existed get exactly one
LEGACY_IMPORT row, lazily, the first time the engine touches them.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from conftest import ALICE, seed_couple
from heartline.database.models import Couple, IntimacyEvent, IntimacyEventType
from heartline.engine.events import NoteCreated
from heartline.services import intimacy_service

CREATED_AT = datetime(2025, 11, 2, 18, 30, 0, tzinfo=UTC)


def _seed_legacy(db_engine, score=240, couple_id="cpl_legacy001"):
    return seed_couple(db_engine, couple_id=couple_id, score=score, created_at=CREATED_AT)


def _legacy_rows(session, couple_id) -> list[IntimacyEvent]:
    return list(session.scalars(
        select(IntimacyEvent).where(
            IntimacyEvent.couple_id == couple_id,
            IntimacyEvent.type == IntimacyEventType.LEGACY_IMPORT.value,
        )
    ).all())


class TestLegacyImport:
    def test_summary_backfills_once(self, db_engine, clock):
        couple_id = _seed_legacy(db_engine)

        with Session(db_engine) as session:
            summary = intimacy_service.get_summary(session, couple_id, clock=clock)
            session.commit()

        assert summary.score == 240
        assert summary.level == 3
        # dated at couple creation, so it never counts toward today
        assert summary.today_earned == 0

        with Session(db_engine) as session:
            intimacy_service.get_summary(session, couple_id, clock=clock)
            session.commit()
            rows = _legacy_rows(session, couple_id)

            assert len(rows) == 1
            row = rows[0]
            assert row.points == 240
            assert row.user_id is None
            assert row.dedupe_key == f"legacy_import:{couple_id}"
            assert row.created_at.replace(tzinfo=UTC) == CREATED_AT
            assert row.metadata_ == {"importedAt": clock.now().isoformat()}

    def test_score_is_not_changed(self, db_engine, clock):
        couple_id = _seed_legacy(db_engine)
        with Session(db_engine) as session:
            intimacy_service.ensure_legacy_import(session, couple_id, clock=clock)
            session.commit()
            assert session.get(Couple, couple_id).intimacy_score == 240

    def test_no_import_for_zero_score(self, db_engine, clock):
        couple_id = _seed_legacy(db_engine, score=0)
        with Session(db_engine) as session:
            assert intimacy_service.ensure_legacy_import(session, couple_id, clock=clock) is None
            assert _legacy_rows(session, couple_id) == []

    def test_no_import_once_ledger_exists(self, db_engine, clock, rng):
        couple_id = _seed_legacy(db_engine, score=0)
        with Session(db_engine) as session:
            intimacy_service.award(
                session, couple_id, ALICE, NoteCreated(content="hi"),
                dedupe_key="note:n1:create", clock=clock, rng=rng,
            )
            assert intimacy_service.ensure_legacy_import(session, couple_id, clock=clock) is None
            assert _legacy_rows(session, couple_id) == []

    def test_award_backfills_before_scoring(self, db_engine, clock, rng):
        couple_id = _seed_legacy(db_engine)
        with Session(db_engine) as session:
            result = intimacy_service.award(
                session, couple_id, ALICE, NoteCreated(content="hi"),
                dedupe_key="note:n1:create", clock=clock, rng=rng,
            )
            session.commit()

            assert result.awarded == 8
            assert result.score == 248
            ledger = session.scalar(
                select(func.sum(IntimacyEvent.points))
                .where(IntimacyEvent.couple_id == couple_id)
            )
            assert ledger == 248
            assert len(_legacy_rows(session, couple_id)) == 1

    def test_event_feed_backfills(self, db_engine, clock):
        couple_id = _seed_legacy(db_engine)
        with Session(db_engine) as session:
            page = intimacy_service.list_events(session, couple_id, clock=clock)

        assert len(page.items) == 1
        assert page.items[0]["type"] == "LEGACY_IMPORT"
        assert page.items[0]["userId"] is None
        assert page.items[0]["points"] == 240
        assert page.items[0]["createdAt"] == CREATED_AT.isoformat()
