"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of heartline.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import random  # noqa: E402
from datetime import UTC, datetime  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from heartline.database.engine import init_db  # noqa: E402
from heartline.database.models import Couple, User  # noqa: E402
from heartline.engine.clock import FixedClock  # noqa: E402

_jsonb_sqlite_registered = False

ALICE = "usr_alice"
BOB = "usr_bob"
MALLORY = "usr_mallory"
COUPLE_ID = "cpl_test0001"

# A Saturday, mid-morning UTC.
NOW = datetime(2026, 3, 14, 10, 0, 0, tzinfo=UTC)


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent)."""
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all Heartline tables.

    Uses StaticPool so every session (and the TestClient's worker thread)
    shares the same in-memory database.
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


def seed_couple(
    engine: Engine,
    *,
    couple_id: str = COUPLE_ID,
    score: int = 0,
    partner: str | None = BOB,
    created_at: datetime = datetime(2026, 1, 1, 8, 0, 0, tzinfo=UTC),
) -> str:
    """Insert Alice, Bob, Mallory and a couple (Alice + *partner*)."""
    with Session(engine) as session:
        for user_id, name in ((ALICE, "Alice"), (BOB, "Bob"), (MALLORY, "Mallory")):
            if session.get(User, user_id) is None:
                session.add(User(id=user_id, name=name, created_at=created_at))
        session.add(Couple(
            id=couple_id,
            pair_code=couple_id[-6:].upper(),
            creator_id=ALICE,
            partner_id=partner,
            intimacy_score=score,
            created_at=created_at,
            updated_at=created_at,
        ))
        session.commit()
    return couple_id


@pytest.fixture
def couple_id(db_engine: Engine) -> str:
    return seed_couple(db_engine)


def make_token(sub: str = ALICE) -> str:
    """Create a user JWT.  Usable as both a fixture helper and a factory."""
    import jwt

    from heartline.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode({"sub": sub}, JWT_SECRET, algorithm=JWT_ALGORITHM)
