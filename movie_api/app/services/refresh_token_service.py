"""
services/refresh_token_service.py — Refresh token issuance.

Builds RefreshToken rows that are not yet attached to a user or session. The caller appends
the token to user.refresh_tokens and flushes.
"""

from __future__ import annotations

import base64
import secrets
from datetime import timedelta

from movie_api.app.models.refresh_token import RefreshToken
from movie_api.app.timeutils import utcnow

DEFAULT_EXPIRES_IN_DAYS = 10
TOKEN_BYTES = 32


def create_refresh_token(expires_in_days: int = DEFAULT_EXPIRES_IN_DAYS) -> RefreshToken:
    """
    Returns a new RefreshToken whose `token` is 32 cryptographically random
    bytes, base64-encoded. created = now, expires = now + expires_in_days.
    """
    raw = secrets.token_bytes(TOKEN_BYTES)
    now = utcnow()
    return RefreshToken(
        token=base64.b64encode(raw).decode("ascii"),
        created=now,
        expires=now + timedelta(days=expires_in_days),
    )
