"""
heartline.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables:
- users            — Account holders (string ids, ``usr_`` prefix)
- couples          — The pairing unit; carries the running ``intimacy_score``
- intimacy_events  — Append-only ledger, unique per (couple_id, dedupe_key)

The engine in :mod:`heartline.services.intimacy_service` is the only writer
of ``couples.intimacy_score`` and ``intimacy_events``.
"""

from __future__ import annotations

import enum
import secrets
from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def new_id(prefix: str) -> str:
    """Random entity id such as ``itv_3f9a0c…`` (20 hex chars after the prefix)."""
    return f"{prefix}{secrets.token_hex(10)}"


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Heartline ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class IntimacyEventType(enum.StrEnum):
    """Every kind of row the intimacy ledger can hold."""
    NOTE_CREATE = "NOTE_CREATE"
    NOTE_DELETE = "NOTE_DELETE"
    MOMENT_CREATE = "MOMENT_CREATE"
    MOMENT_DELETE = "MOMENT_DELETE"
    QUEST_CREATE = "QUEST_CREATE"
    QUEST_COMPLETE = "QUEST_COMPLETE"
    QUEST_DELETE = "QUEST_DELETE"
    PAIR_SUCCESS = "PAIR_SUCCESS"
    ANNIVERSARY_SET = "ANNIVERSARY_SET"
    SURPRISE_CLICK = "SURPRISE_CLICK"
    ROMANTIC_ACTION = "ROMANTIC_ACTION"
    LEGACY_IMPORT = "LEGACY_IMPORT"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.name!r}>"


# ---------------------------------------------------------------------------
# Couples — one row per pairing
# ---------------------------------------------------------------------------
class Couple(Base):
    __tablename__ = "couples"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    pair_code: Mapped[str] = mapped_column(String(16), nullable=False, unique=True)
    creator_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id"), nullable=False
    )
    partner_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("users.id"), nullable=True
    )
    anniversary_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    intimacy_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # The ledger is append-only: the ORM never deletes or orphans event rows.
    intimacy_events: Mapped[list[IntimacyEvent]] = relationship(
        back_populates="couple", cascade="save-update, merge", passive_deletes="all"
    )

    __table_args__ = (
        CheckConstraint("intimacy_score >= 0", name="ck_couples_score_non_negative"),
    )

    def is_member(self, user_id: str) -> bool:
        return user_id in (self.creator_id, self.partner_id)

    def __repr__(self) -> str:
        return f"<Couple id={self.id} score={self.intimacy_score}>"


# ---------------------------------------------------------------------------
# IntimacyEvent — append-only ledger
# ---------------------------------------------------------------------------
class IntimacyEvent(Base):
    __tablename__ = "intimacy_events"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    couple_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("couples.id", ondelete="CASCADE"), nullable=False
    )
    # NULL = system-attributed (legacy import)
    user_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    dedupe_key: Mapped[str] = mapped_column(String(191), nullable=False)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    couple: Mapped[Couple] = relationship(back_populates="intimacy_events")

    __table_args__ = (
        # Idempotency contract: one row per (couple, dedupe key)
        UniqueConstraint("couple_id", "dedupe_key", name="uq_intimacy_events_couple_dedupe"),
        Index("ix_intimacy_events_couple_time", "couple_id", "created_at"),
        Index("ix_intimacy_events_couple_type_time", "couple_id", "type", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<IntimacyEvent id={self.id} couple={self.couple_id} "
            f"type={self.type} points={self.points}>"
        )
