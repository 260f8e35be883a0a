"""
routes/users.py — Registration and role assignment.

Endpoints (url_prefix=/api/users):
  POST   /api/users/register  → 201 {message}; 409 {message} on duplicate email/username
  POST   /api/users/token     → 200 AuthResult (no cookie); 401 on bad credentials
  POST   /api/users/addrole   → 200 {message}
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from movie_api.app.extensions import db
from movie_api.app.schemas.auth_schema import AddRoleSchema, RegisterSchema, TokenRequestSchema
from movie_api.app.services import auth_service

users_bp = Blueprint("users", __name__)


@users_bp.route("/register", methods=["POST"])
def register():
    """POST /api/users/register — Create an account with the default role."""
    data = RegisterSchema().load(request.get_json(force=True) or {})
    result = auth_service.register_user(data, session=db.session)
    db.session.commit()

    status = 201 if result["succeeded"] else 409
    return jsonify({"message": result["message"]}), status


@users_bp.route("/token", methods=["POST"])
def get_token():
    """POST /api/users/token — Same as POST /api/tokens, without setting the cookie."""
    data = TokenRequestSchema().load(request.get_json(force=True) or {})
    result = auth_service.get_token(
        email=data["email"],
        password=data["password"],
        session=db.session,
    )
    db.session.commit()
    return jsonify(result), 200 if result["isAuthenticated"] else 401


@users_bp.route("/addrole", methods=["POST"])
def add_role():
    """POST /api/users/addrole — Grant a role; the outcome is described in `message`."""
    data = AddRoleSchema().load(request.get_json(force=True) or {})
    message = auth_service.add_role(
        email=data["email"],
        password=data["password"],
        role_name=data["role"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"message": message}), 200
