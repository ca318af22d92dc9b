"""Opaque ``(created_at, id)`` cursor for the intimacy event feed."""

from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime

from heartline.errors import InvalidCursorError


def encode_cursor(created_at: datetime, row_id: str) -> str:
    payload = json.dumps({"createdAt": created_at.isoformat(), "id": row_id})
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(value: str) -> tuple[datetime, str]:
    """Inverse of :func:`encode_cursor`.

    Raises
    ------
    InvalidCursorError
        If *value* is not a cursor this module produced.
    """
    padded = value + "=" * (-len(value) % 4)
    try:
        raw = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        created_at = datetime.fromisoformat(raw["createdAt"])
        row_id = str(raw["id"])
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as exc:
        raise InvalidCursorError("Cursor is invalid") from exc
    if not row_id:
        raise InvalidCursorError("Cursor is invalid")
    return created_at, row_id
