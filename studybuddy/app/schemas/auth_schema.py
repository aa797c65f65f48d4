"""
schemas/auth_schema.py — Marshmallow schemas for account and profile endpoints.

Validation responsibility:
  - This file: field types, lengths, formats.
  - services/identity_service.py: duplicate email (needs a DB lookup),
    credential correctness.

IMPORTANT: All schemas inherit from marshmallow.Schema directly so unit
tests can load them without a Flask app context.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates


class SignUpSchema(Schema):
    """
    POST /signup

    Field rules:
      email    : valid email format, max 255
      password : min 8 chars, at least one letter and one digit
    """

    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
    )

    # Validated in @validates below to produce a clear message per missing rule.
    password = fields.Str(required=True, load_only=True)

    @validates("password")
    def validate_password_strength(self, value: str, **kwargs) -> None:
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")
        if not any(c.isalpha() for c in value):
            raise ValidationError("Password must contain at least one letter.")
        if not any(c.isdigit() for c in value):
            raise ValidationError("Password must contain at least one digit.")


class LoginSchema(Schema):
    """
    POST /login

    Credential correctness is checked in identity_service.py
    (UNAUTHENTICATED, 401).
    """

    email = fields.Str(required=True, validate=validate.Length(min=1))
    password = fields.Str(required=True, load_only=True, validate=validate.Length(min=1))


class UpdateProfileSchema(Schema):
    """
    PUT /me

    The browser client sends camelCase `displayName`.
    """

    display_name = fields.Str(
        required=True,
        data_key="displayName",
        validate=validate.Length(max=100, error="Display name must be at most 100 characters."),
    )

    @validates("display_name")
    def validate_not_blank(self, value: str, **kwargs) -> None:
        if not value.strip():
            raise ValidationError("Display name must not be blank.")
