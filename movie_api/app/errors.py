"""
errors.py — AppError base class, error code registry and exception mapper.

Every domain error returned by the MovieApi must use a code defined here.
Services raise AppError (or a subclass); routes never catch it. The global
handlers in app/__init__.py render every exception as a problem-details body
whose status and title come from map_exception().

Taxonomy:
  400  validation — malformed or out-of-range input
  401  authentication failures
  403  authenticated but not allowed
  404  missing movie / user
  409  concurrency conflicts and uniqueness violations
  408  cancelled operations
  504  timeouts
  405 / 501  unsupported / not implemented
  500  everything else
"""

from __future__ import annotations

import asyncio
import io
import uuid
from concurrent.futures import CancelledError

from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm.exc import StaleDataError
from werkzeug.exceptions import HTTPException


class AppError(Exception):

    title: str = "Request failed"

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return payload

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


class MovieNotFoundError(AppError):

    title = "Movie not found"

    def __init__(self, movie_id: uuid.UUID | str) -> None:
        super().__init__(
            ErrorCode.MOVIE_NOT_FOUND,
            f"Movie with id {movie_id}, not found.",
            404,
        )
        self.movie_id = movie_id


class MovieValidationError(AppError):
    """Raised by the Movie entity when a factory/update argument is invalid."""

    title = "Validation failed"

    def __init__(self, message: str, field: str) -> None:
        super().__init__(ErrorCode.INVALID_FIELD, message, 400, field=field)


# ── Error Code Registry ────────────────────────────────────────────────────
#
# These are the string values sent in the `code` member of problem bodies.
# Do not rename them without a major version bump.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    MOVIE_NOT_FOUND            = "MOVIE_NOT_FOUND"
    USER_NOT_FOUND             = "USER_NOT_FOUND"

    # ── Auth Errors ────────────────────────────────────────────────────────
    # 401 = we do not know who you are (unauthenticated)
    # 403 = we know who you are, but you are not allowed
    TOKEN_MISSING              = "TOKEN_MISSING"          # 401
    TOKEN_INVALID              = "TOKEN_INVALID"          # 401
    TOKEN_EXPIRED              = "TOKEN_EXPIRED"          # 401
    FORBIDDEN                  = "FORBIDDEN"              # 403

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR             = "INTERNAL_ERROR"


_TITLES_BY_STATUS = {
    400: "Invalid request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Resource not found",
    409: "Conflict",
}


def map_exception(error: BaseException) -> tuple[int, str]:
    """
    Maps an exception to (HTTP status, problem title).

    Order matters: the SQLAlchemy and werkzeug types are checked before the
    builtin bases some of them derive from.
    """
    if isinstance(error, AppError):
        title = error.title
        if type(error) is AppError:
            title = _TITLES_BY_STATUS.get(error.http_status, AppError.title)
        return error.http_status, title

    if isinstance(error, ValidationError):
        return 400, "Validation failed"

    if isinstance(error, HTTPException):
        return error.code or 500, error.name

    if isinstance(error, StaleDataError):
        return 409, "Concurrency conflict"

    if isinstance(error, IntegrityError):
        return 409, "Conflict"

    if isinstance(error, (TimeoutError, PoolTimeoutError)):
        return 504, "Operation timed out"

    if isinstance(error, (CancelledError, asyncio.CancelledError)):
        return 408, "Operation canceled"

    if isinstance(error, io.UnsupportedOperation):
        return 405, "Operation not supported"

    if isinstance(error, ValueError):
        return 400, "Invalid request"

    if isinstance(error, PermissionError):
        return 401, "Unauthorized"

    if isinstance(error, LookupError):
        return 404, "Resource not found"

    if isinstance(error, NotImplementedError):
        return 501, "Not implemented"

    return 500, "Internal Server Error"
