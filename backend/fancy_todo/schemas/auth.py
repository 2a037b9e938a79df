"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields


class SocialSignInSchema(Schema):
    """Input payload for Google sign-in."""

    class Meta:
        unknown = EXCLUDE

    googleIdToken = fields.String(load_default=None, allow_none=True)


class TokensSchema(Schema):
    """Session tokens handed to the client alongside the cookies."""

    accessToken = fields.String(attribute="access_token")
    refreshToken = fields.String(attribute="refresh_token")
