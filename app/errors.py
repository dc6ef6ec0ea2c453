"""
Centralized mapping from database failures to user-facing HTTP errors.
The only distinction drawn is "permission denied" (missing or insufficient
privileged credential) versus everything else.
"""

from __future__ import annotations

from typing import Callable

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

# ---------------------------------------------------------------------------
# Constants: status codes and user-facing messages
# ---------------------------------------------------------------------------

PERMISSION_DENIED_CODE = "42501"  # PostgreSQL insufficient_privilege

MSG_PERMISSION_DENIED = (
    "Permission denied. The service credential lacks write access - check the database configuration."
)
MSG_GENERIC_FAILURE = "The request could not be completed. Please try again."

STATUS_FORBIDDEN = 403
STATUS_INTERNAL_ERROR = 500


def _is_permission_denied(exc: Exception) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == PERMISSION_DENIED_CODE:
        return True
    return "permission denied" in str(exc).lower()


# List of (predicate, status_code, detail). First match wins.
DATABASE_ERROR_RULES: list[tuple[Callable[[Exception], bool], int, str]] = [
    (_is_permission_denied, STATUS_FORBIDDEN, MSG_PERMISSION_DENIED),
]


def database_error_to_http(exc: SQLAlchemyError) -> HTTPException:
    """Map a SQLAlchemy failure onto an HTTPException using DATABASE_ERROR_RULES"""
    for predicate, status_code, detail in DATABASE_ERROR_RULES:
        if predicate(exc):
            return HTTPException(status_code=status_code, detail=detail)
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=MSG_GENERIC_FAILURE)
