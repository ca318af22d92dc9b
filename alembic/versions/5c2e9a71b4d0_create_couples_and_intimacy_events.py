"""Create users, couples and intimacy_events tables

Revision ID: 5c2e9a71b4d0
Revises:
Create Date: 2026-10-19 09:12:31.480215

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c2e9a71b4d0'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the couple score table and its append-only ledger."""

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # --- couples ---
    op.create_table(
        "couples",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("pair_code", sa.String(16), nullable=False, unique=True),
        sa.Column("creator_id", sa.String(32), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("partner_id", sa.String(32), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("anniversary_date", sa.Date, nullable=True),
        sa.Column("intimacy_score", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("intimacy_score >= 0", name="ck_couples_score_non_negative"),
    )

    # --- intimacy_events ---
    op.create_table(
        "intimacy_events",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column(
            "couple_id",
            sa.String(32),
            sa.ForeignKey("couples.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("points", sa.Integer, nullable=False),
        sa.Column("dedupe_key", sa.String(191), nullable=False),
        sa.Column("metadata", postgresql.JSONB, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        # Idempotency: one row per (couple, dedupe key)
        sa.UniqueConstraint(
            "couple_id", "dedupe_key", name="uq_intimacy_events_couple_dedupe"
        ),
    )
    op.create_index(
        "ix_intimacy_events_couple_time", "intimacy_events",
        ["couple_id", "created_at"],
    )
    op.create_index(
        "ix_intimacy_events_couple_type_time", "intimacy_events",
        ["couple_id", "type", "created_at"],
    )


def downgrade() -> None:
    """Drop the ledger, couples and users tables."""
    op.drop_index("ix_intimacy_events_couple_type_time", table_name="intimacy_events")
    op.drop_index("ix_intimacy_events_couple_time", table_name="intimacy_events")
    op.drop_table("intimacy_events")
    op.drop_table("couples")
    op.drop_table("users")
