"""
tests/test_auth.py — Bearer Token Resolution
=============================================
``get_current_user_id`` turns ``Authorization: Bearer <jwt>`` into the user
id the routes check couple membership against.
"""

from __future__ import annotations

import jwt
import pytest
from fastapi import HTTPException

from conftest import ALICE, make_token
from heartline.api import deps


def _encode(payload: dict, secret: str | None = None) -> str:
    return jwt.encode(payload, secret or deps.JWT_SECRET, algorithm=deps.JWT_ALGORITHM)


def _rejects(authorization: str | None) -> HTTPException:
    with pytest.raises(HTTPException) as exc_info:
        deps.get_current_user_id(authorization)
    assert exc_info.value.status_code == 401
    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}
    return exc_info.value


class TestGetCurrentUserId:
    def test_subject_is_user_id(self):
        assert deps.get_current_user_id(f"Bearer {make_token(ALICE)}") == ALICE

    def test_digit_subject_kept_as_string(self):
        assert deps.decode_user_token(_encode({"sub": "42"})) == "42"

    def test_missing_header(self):
        _rejects(None)

    @pytest.mark.parametrize("scheme", ["Token", "bearer", "Basic"])
    def test_non_bearer_scheme(self, scheme):
        _rejects(f"{scheme} {make_token(ALICE)}")

    def test_bearer_without_token(self):
        _rejects("Bearer")
        _rejects("Bearer ")

    def test_token_without_subject(self):
        exc = _rejects(f"Bearer {_encode({'name': 'Alice'})}")
        assert exc.detail == "Token has no subject"

    @pytest.mark.parametrize("subject", ["", "   "])
    def test_blank_subject(self, subject):
        _rejects(f"Bearer {_encode({'sub': subject})}")

    def test_wrong_signing_key(self):
        _rejects(f"Bearer {_encode({'sub': ALICE}, secret='z' * 48)}")

    def test_expired_token(self):
        _rejects(f"Bearer {_encode({'sub': ALICE, 'exp': 1})}")

    def test_garbage_token(self):
        exc = _rejects("Bearer not.a.jwt")
        assert exc.detail == "Invalid token"
