"""
schemas/auth_schema.py — Marshmallow schemas for user and token endpoints.

Validation responsibility:
  - This file: field presence, types, lengths, formats.
  - services/auth_service.py: duplicate email / username (soft failures)
    and credential checks, because they require a DB lookup.

IMPORTANT: All schemas inherit from marshmallow.Schema directly.
           See extensions.py for the explanation.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates


class RegisterSchema(Schema):
    """
    POST /api/users/register

    Field rules:
      firstName / lastName : required, 1–100 chars
      username             : 3–50 chars, letters, digits, underscore, dot, dash
      email                : valid email format
      password             : min 8 chars, at least one letter and one digit
    """

    first_name = fields.Str(
        required=True,
        data_key="firstName",
        validate=validate.Length(min=1, max=100),
    )
    last_name = fields.Str(
        required=True,
        data_key="lastName",
        validate=validate.Length(min=1, max=100),
    )

    username = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=3,
                max=50,
                error="Username must be between 3 and 50 characters.",
            ),
            validate.Regexp(
                r"^[a-zA-Z0-9_.\-]+$",
                error="Username may only contain letters, numbers, '_', '.' and '-'.",
            ),
        ],
    )

    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
    )

    password = fields.Str(required=True, load_only=True)

    @validates("password")
    def validate_password_strength(self, value: str, **kwargs) -> None:
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")
        if not any(c.isalpha() for c in value):
            raise ValidationError("Password must contain at least one letter.")
        if not any(c.isdigit() for c in value):
            raise ValidationError("Password must contain at least one digit.")


class TokenRequestSchema(Schema):
    """
    POST /api/tokens

    Credential correctness is checked in auth_service.get_token, which
    returns a soft (non-exception) failure.
    """

    email = fields.Str(required=True, validate=validate.Length(min=1))
    password = fields.Str(required=True, load_only=True, validate=validate.Length(min=1))


class AddRoleSchema(Schema):
    """POST /api/users/addrole — the role name is matched case-insensitively in the service."""

    email = fields.Str(required=True, validate=validate.Length(min=1))
    password = fields.Str(required=True, load_only=True, validate=validate.Length(min=1))
    role = fields.Str(required=True, validate=validate.Length(min=1))


class RevokeTokenSchema(Schema):
    """
    POST /api/tokens/revoke-token

    `token` is optional here: the route falls back to the refreshToken cookie.
    """

    token = fields.Str(load_default=None, allow_none=True)
