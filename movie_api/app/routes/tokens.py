"""
routes/tokens.py — Access / refresh token route handlers.

Endpoints (url_prefix=/api/tokens):
  POST   /api/tokens                 → 200 AuthResult + refreshToken cookie; 401 on bad credentials
  POST   /api/tokens/refresh-token   → 200 rotated AuthResult + cookie; 400 if not rotated
  POST   /api/tokens/revoke-token    → 200 / 400 / 404 {message}
  GET    /api/tokens/<user_id>       → 200 list of the user's refresh tokens (Bearer auth)

The refresh token travels in an HttpOnly, SameSite=Strict cookie whose
lifetime matches JWT_DURATION_IN_DAYS.
"""

from __future__ import annotations

from datetime import timedelta

from flask import Blueprint, current_app, g, jsonify, request

from movie_api.app.extensions import db
from movie_api.app.middleware.auth_middleware import require_auth
from movie_api.app.schemas.auth_schema import RevokeTokenSchema, TokenRequestSchema
from movie_api.app.services import auth_service
from movie_api.app.timeutils import utcnow

tokens_bp = Blueprint("tokens", __name__)

REFRESH_COOKIE_NAME = "refreshToken"


def set_refresh_token_cookie(response, refresh_token: str) -> None:
    days = current_app.config["JWT_DURATION_IN_DAYS"]
    response.set_cookie(
        REFRESH_COOKIE_NAME,
        refresh_token,
        httponly=True,
        samesite="Strict",
        secure=current_app.config.get("REFRESH_COOKIE_SECURE", False),
        expires=utcnow() + timedelta(days=days),
        path="/",
    )


@tokens_bp.route("", methods=["POST"])
def get_token():
    """POST /api/tokens — Exchange email + password for an access token."""
    data = TokenRequestSchema().load(request.get_json(force=True) or {})
    result = auth_service.get_token(
        email=data["email"],
        password=data["password"],
        session=db.session,
    )
    db.session.commit()

    if not result["isAuthenticated"]:
        return jsonify(result), 401

    response = jsonify(result)
    set_refresh_token_cookie(response, result["refreshToken"])
    return response, 200


@tokens_bp.route("/refresh-token", methods=["POST"])
def refresh_token():
    """POST /api/tokens/refresh-token — Rotate the refresh token held in the cookie."""
    token = request.cookies.get(REFRESH_COOKIE_NAME)
    if not token:
        return jsonify({
            "message": "Refresh token cookie is missing.",
            "isAuthenticated": False,
        }), 400

    result = auth_service.refresh_token(token, session=db.session)
    db.session.commit()

    if not result.get("refreshToken"):
        return jsonify(result), 400

    response = jsonify(result)
    set_refresh_token_cookie(response, result["refreshToken"])
    return response, 200


@tokens_bp.route("/revoke-token", methods=["POST"])
def revoke_token():
    """POST /api/tokens/revoke-token — body {token}, falling back to the cookie."""
    data = RevokeTokenSchema().load(request.get_json(silent=True) or {})
    token = data.get("token") or request.cookies.get(REFRESH_COOKIE_NAME)

    if not token:
        return jsonify({"message": "Token is required."}), 400

    revoked = auth_service.revoke_token(token, session=db.session)
    db.session.commit()

    if not revoked:
        return jsonify({"message": "Token not found."}), 404

    return jsonify({"message": "Token revoked"}), 200


@tokens_bp.route("/<int:user_id>", methods=["GET"])
@require_auth
def list_refresh_tokens(user_id: int):
    """GET /api/tokens/<user_id> — The user's refresh tokens. Self or Administrator only."""
    result = auth_service.get_user_refresh_tokens(
        user_id=user_id,
        caller_id=g.user_id,
        caller_roles=g.roles,
        session=db.session,
    )
    return jsonify(result), 200
