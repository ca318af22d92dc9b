"""
heartline.api.deps — FastAPI dependency injection
==================================================

Bearer tokens are HS256 JWTs whose ``sub`` claim is the Heartline user id.
That id is what every route hands to
:func:`heartline.services.intimacy_service.assert_member`, so a token is
only useful for couples its subject belongs to.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from heartline.config import HeartlineConfig, load_config
from heartline.database.engine import create_db_engine
from heartline.database.engine import get_session as session_scope
from heartline.engine.clock import DEFAULT_CLOCK, Clock

JWT_ALGORITHM = "HS256"

# Placeholders shipped in docs and examples; never valid signing keys.
_PLACEHOLDER_SECRETS = frozenset({"heartline-dev-secret-change-me", "change-me", "secret", "dev"})
_MIN_SECRET_LENGTH = 32


def validate_jwt_secret(secret: str | None) -> str:
    """Return *secret* if it is usable as an HS256 signing key.

    Raises
    ------
    RuntimeError
        If the secret is unset, a known placeholder, or shorter than 32
        characters.
    """
    if not secret:
        raise RuntimeError(
            "JWT_SECRET is not set.  Copy .env.example → .env and fill it in "
            "(python -c \"import secrets; print(secrets.token_urlsafe(64))\")."
        )
    if secret in _PLACEHOLDER_SECRETS:
        raise RuntimeError("JWT_SECRET is still a placeholder value; set a real secret.")
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET must be at least {_MIN_SECRET_LENGTH} characters "
            f"(got {len(secret)})."
        )
    return secret


# Checked once at import so a misconfigured API never starts serving.
JWT_SECRET: str = validate_jwt_secret(os.getenv("JWT_SECRET"))


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> HeartlineConfig:
    return load_config()


def get_clock() -> Clock:
    return DEFAULT_CLOCK


def get_session(engine: Annotated[Engine, Depends(get_engine)]) -> Iterator[Session]:
    """One session per request; rolled back if the route raises."""
    with session_scope(engine) as session:
        yield session


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status.HTTP_401_UNAUTHORIZED, detail, headers={"WWW-Authenticate": "Bearer"}
    )


def decode_user_token(token: str) -> str:
    """Verify *token* and return its subject as a user id."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise _unauthorized("Invalid token")
    subject = payload.get("sub")
    if subject is None or not str(subject).strip():
        raise _unauthorized("Token has no subject")
    return str(subject)


def get_current_user_id(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Resolve the calling user from ``Authorization: Bearer <jwt>``."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme != "Bearer" or not token:
        raise _unauthorized("Missing bearer token")
    return decode_user_token(token.strip())
