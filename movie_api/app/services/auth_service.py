"""
services/auth_service.py — Authentication business logic.

Responsibilities:
  - User registration (bcrypt password hash, default role)
  - Credential validation and JWT access token creation (HS256)
  - Refresh token lifecycle: reuse on login, rotation on refresh, revocation
  - Role assignment

Layer rules:
  - No imports from routes or schemas
  - No use of flask.request, flask.g, or HTTP status codes
  - current_app.config is used ONLY to read the JWT_* and BCRYPT_* settings

Soft failures:
  Unknown email / wrong password / unknown or inactive refresh token are
  business outcomes, not exceptions. They come back as result dicts with
  isAuthenticated=False (or False / a message) and the route picks the
  status code. Only authorization checks on the token listing raise AppError.

Rotation and revocation:
  "Is this token still active?" is checked in Python, then settled in the
  database with a conditional UPDATE (revoked IS NULL). Only the request
  whose UPDATE matches the row may mint a successor, so two concurrent
  refreshes of one token cannot both succeed.
"""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta

import bcrypt
import jwt
from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from movie_api.app.errors import AppError, ErrorCode
from movie_api.app.models.refresh_token import RefreshToken
from movie_api.app.models.user import User
from movie_api.app.models.user_role import DEFAULT_ROLE, Role, UserRole
from movie_api.app.services.refresh_token_service import create_refresh_token
from movie_api.app.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────

def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _hash_password(password: str) -> str:
    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")


def _check_password(user: User, password: str) -> bool:
    return bcrypt.checkpw(
        password.encode("utf-8"),
        user.password_hash.encode("utf-8"),
    )


def _find_user_by_email(email: str, session: Session) -> User | None:
    return session.execute(
        select(User).where(User.email == _normalize_email(email))
    ).scalar_one_or_none()


def _create_access_token(user: User) -> tuple[str, str]:
    """
    Creates a signed JWT access token for `user`.

    Claims: sub (username), jti, email, uid, roles, iss, aud, iat, exp.
    Returns (encoded token, ISO-8601 expiry).
    """
    config = current_app.config
    now = utcnow()
    expires_on = now + timedelta(minutes=config["JWT_DURATION_IN_MINUTES"])
    payload = {
        "sub": user.username,
        "jti": str(uuid.uuid4()),
        "email": user.email,
        "uid": str(user.id),
        "roles": user.role_names,
        "iss": config["JWT_ISSUER"],
        "aud": config["JWT_AUDIENCE"],
        "iat": now,
        "exp": expires_on,
    }
    token = jwt.encode(
        payload,
        config["JWT_KEY"],
        algorithm=config.get("JWT_ALGORITHM", "HS256"),
    )
    return token, expires_on.isoformat()


def _issue_refresh_token(user: User, session: Session) -> RefreshToken:
    """Mints a refresh token, appends it to the user's collection and flushes."""
    refresh = create_refresh_token(current_app.config["JWT_DURATION_IN_DAYS"])
    user.refresh_tokens.append(refresh)
    session.flush()
    return refresh


def _revoke_if_active(record: RefreshToken, session: Session) -> bool:
    """
    Compare-and-swap revoke: sets `revoked` only if it is still NULL in the DB.
    Returns True when this call performed the revocation.
    """
    result = session.execute(
        update(RefreshToken)
        .where(RefreshToken.id == record.id, RefreshToken.revoked.is_(None))
        .values(revoked=utcnow())
    )
    return result.rowcount == 1


def _find_refresh_token(token: str, session: Session) -> RefreshToken | None:
    return session.execute(
        select(RefreshToken).where(RefreshToken.token == token)
    ).scalar_one_or_none()


def _failed_result(message: str) -> dict:
    return {"message": message, "isAuthenticated": False}


def _build_auth_result(user: User, refresh: RefreshToken) -> dict:
    access_token, expires_on = _create_access_token(user)
    return {
        "message": None,
        "isAuthenticated": True,
        "username": user.username,
        "email": user.email,
        "roles": user.role_names,
        "token": access_token,
        "expiresOn": expires_on,
        "refreshToken": refresh.token,
        "refreshTokenExpiration": as_utc(refresh.expires).isoformat(),
    }


def _build_refresh_token_dict(record: RefreshToken) -> dict:
    revoked = as_utc(record.revoked)
    return {
        "token": record.token,
        "created": as_utc(record.created).isoformat(),
        "expires": as_utc(record.expires).isoformat(),
        "revoked": revoked.isoformat() if revoked else None,
        "isExpired": record.is_expired,
        "isActive": record.is_active,
    }


# ── Public service functions ───────────────────────────────────────────────

def register_user(data: dict, session: Session) -> dict:
    """
    Creates a user and grants the default role.

    Duplicate email / username are soft failures (succeeded=False).

    Args:
        data: loaded RegisterSchema dict.

    Returns: {"message": str, "succeeded": bool}
    """
    email = _normalize_email(data["email"])
    username = data["username"]

    if _find_user_by_email(email, session) is not None:
        return {"message": f"Email {email} already exists", "succeeded": False}

    existing_username = session.execute(
        select(User).where(User.username == username)
    ).scalar_one_or_none()
    if existing_username is not None:
        return {"message": f"Username {username} is already taken", "succeeded": False}

    user = User(
        username=username,
        email=email,
        first_name=data["first_name"],
        last_name=data["last_name"],
        password_hash=_hash_password(data["password"]),
    )
    user.roles.append(UserRole(role=DEFAULT_ROLE.value))
    session.add(user)
    session.flush()

    logger.info("registered user %s", user.id)
    return {"message": f"User Registered with username {username}", "succeeded": True}


def get_token(email: str, password: str, session: Session) -> dict:
    """
    Validates credentials and returns an AuthResult.

    An active refresh token is reused; otherwise a new one is minted.
    Unknown email / wrong password → isAuthenticated=False (no exception).
    """
    user = _find_user_by_email(email, session)
    if user is None:
        return _failed_result(f"No Accounts Registered with {email}.")

    if not _check_password(user, password):
        return _failed_result(f"Incorrect Credentials for user {email}.")

    refresh = next((t for t in user.refresh_tokens if t.is_active), None)
    if refresh is None:
        refresh = _issue_refresh_token(user, session)
        logger.info("issued refresh token for user %s", user.id)

    return _build_auth_result(user, refresh)


def refresh_token(token: str, session: Session) -> dict:
    """
    Exchanges an active refresh token for a new access + refresh token pair.

    The presented token is revoked (never deleted) and a successor appended.
    Unknown or inactive token → isAuthenticated=False, no refreshToken.
    """
    record = _find_refresh_token(token, session)
    if record is None:
        return _failed_result("Token did not match any users.")

    if not record.is_active or not _revoke_if_active(record, session):
        return _failed_result("Token Not Active.")

    user = record.user
    new_refresh = _issue_refresh_token(user, session)
    logger.info("rotated refresh token %s for user %s", record.id, user.id)

    return _build_auth_result(user, new_refresh)


def revoke_token(token: str, session: Session) -> bool:
    """
    Revokes a refresh token.

    Returns False if the token is unknown or no longer active.
    """
    record = _find_refresh_token(token, session)
    if record is None or not record.is_active:
        return False

    if not _revoke_if_active(record, session):
        return False

    logger.info("revoked refresh token %s for user %s", record.id, record.user_id)
    return True


def add_role(email: str, password: str, role_name: str, session: Session) -> str:
    """
    Grants `role_name` (matched case-insensitively against Role) to the
    user identified by the credentials. Granting a held role is a no-op.
    """
    user = _find_user_by_email(email, session)
    if user is None:
        return f"No Accounts Registered with {email}."

    if not _check_password(user, password):
        return f"Incorrect Credentials for user {email}."

    role = Role.parse(role_name)
    if role is None:
        return f"Role {role_name} not found."

    if role.value not in user.role_names:
        user.roles.append(UserRole(role=role.value))
        session.flush()
        logger.info("granted role %s to user %s", role.value, user.id)

    return f"Added {role.value} to user {email}."


def get_user_refresh_tokens(
        user_id: int,
        caller_id: int,
        caller_roles: list[str],
        session: Session,
) -> list[dict]:
    """
    Lists a user's refresh tokens (active and tombstoned).

    Raises:
      AppError(FORBIDDEN, 403)      — caller is neither the user nor an Administrator.
      AppError(USER_NOT_FOUND, 404) — no such user.
    """
    if caller_id != user_id and Role.ADMINISTRATOR.value not in caller_roles:
        raise AppError(
            ErrorCode.FORBIDDEN,
            "You may only list your own refresh tokens.",
            403,
        )

    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User with id {user_id} not found.",
            404,
        )

    return [_build_refresh_token_dict(t) for t in user.refresh_tokens]
