"""
heartline.errors — Error taxonomy
==================================

Raised by the service layer, translated to HTTP by :mod:`heartline.api.main`.
Throttled or capped awards are never errors; they simply award zero.
"""

from __future__ import annotations


class HeartlineError(Exception):
    """Base class for caller-facing errors."""

    status_code: int = 400
    code: str = "BAD_REQUEST"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class NotFoundError(HeartlineError):
    status_code = 404
    code = "NOT_FOUND"


class ForbiddenError(HeartlineError):
    status_code = 403
    code = "FORBIDDEN"


class InvalidCursorError(HeartlineError):
    status_code = 400
    code = "INVALID_CURSOR"
