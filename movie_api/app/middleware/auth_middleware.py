"""
middleware/auth_middleware.py — JWT authentication decorator.

The @require_auth decorator:
  1. Reads the Authorization header (expected: "Bearer <token>")
  2. Decodes and verifies the JWT (signature, exp, iss, aud)
  3. Attaches user_id (int), username and roles to flask.g
  4. Raises the appropriate 401 AppError if any step fails

Strict responsibility boundary:
  - This middleware authenticates (401) only. Whether the caller may act on
    a given resource is decided by the service layer (403).
  - Services receive user_id / roles as plain arguments, with no knowledge
    of JWT or HTTP headers.
"""

from __future__ import annotations

import functools
from typing import Callable

import jwt
from flask import current_app, g, request

from movie_api.app.errors import AppError, ErrorCode


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces JWT authentication.

    Usage:
        @tokens_bp.route("/<int:user_id>", methods=["GET"])
        @require_auth
        def list_refresh_tokens(user_id):
            caller = g.user_id
            ...
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def _authenticate_request() -> None:
    """
    Performs the full JWT authentication sequence and populates flask.g.

    Raises AppError on any authentication failure; the global error handler
    renders it.
    """
    auth_header = request.headers.get("Authorization", "")

    if not auth_header:
        raise AppError(
            ErrorCode.TOKEN_MISSING,
            "Authentication required. Provide a Bearer token in the Authorization header.",
            401,
        )

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "Authorization header must be in the format: Bearer <token>.",
            401,
        )

    config = current_app.config
    try:
        payload = jwt.decode(
            parts[1],
            config["JWT_KEY"],
            algorithms=[config.get("JWT_ALGORITHM", "HS256")],
            audience=config["JWT_AUDIENCE"],
            issuer=config["JWT_ISSUER"],
        )
    except jwt.ExpiredSignatureError:
        raise AppError(
            ErrorCode.TOKEN_EXPIRED,
            "The access token has expired. Use POST /api/tokens/refresh-token to obtain a new one.",
            401,
        )
    except jwt.InvalidTokenError:
        # Covers: bad signature, malformed token, wrong iss/aud, etc.
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is invalid or has been tampered with.",
            401,
        )

    try:
        user_id = int(payload["uid"])
    except (KeyError, TypeError, ValueError):
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is missing a valid 'uid' claim.",
            401,
        )

    g.user_id = user_id
    g.username = payload.get("sub")
    g.roles = list(payload.get("roles") or [])
