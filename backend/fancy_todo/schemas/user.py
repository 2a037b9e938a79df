"""User resource schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, post_dump


class UserProfileSchema(Schema):
    """Public representation of a user, as returned with every session."""

    firstName = fields.String(attribute="first_name")
    lastName = fields.String(attribute="last_name")
    isUsernameSet = fields.Boolean(attribute="is_username_set")
    username = fields.String()
    email = fields.Email()
    isPasswordSet = fields.Boolean(attribute="is_password_set")
    verified = fields.Boolean()
    apiKey = fields.String(attribute="api_key")
    profileImageURL = fields.String(attribute="profile_image_url", allow_none=True)

    @post_dump
    def _drop_missing_image(self, data, **kwargs):
        if not data.get("profileImageURL"):
            data.pop("profileImageURL", None)
        return data
