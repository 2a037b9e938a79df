"""Todo resource schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class TodoCreateSchema(Schema):
    """Payload for creating a todo."""

    class Meta:
        unknown = EXCLUDE

    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    description = fields.String(load_default=None, allow_none=True)
    due_date = fields.DateTime(data_key="dueDate", load_default=None, allow_none=True)
    completed = fields.Boolean(load_default=False)


class TodoUpdateSchema(Schema):
    """Payload for updating a todo; every field optional (PUT and PATCH)."""

    class Meta:
        unknown = EXCLUDE

    name = fields.String(validate=validate.Length(min=1, max=255))
    description = fields.String(allow_none=True)
    due_date = fields.DateTime(data_key="dueDate", allow_none=True)
    completed = fields.Boolean()


class TodoFilterSchema(Schema):
    """Supported query parameters for listing todos."""

    class Meta:
        unknown = EXCLUDE

    completed = fields.Boolean(load_default=None, allow_none=True)


class TodoSchema(Schema):
    """Public representation of a todo."""

    id = fields.Integer()
    username = fields.String()
    name = fields.String()
    description = fields.String(allow_none=True)
    dueDate = fields.DateTime(attribute="due_date", allow_none=True)
    completed = fields.Boolean()
    createdAt = fields.DateTime(attribute="created_at", allow_none=True)
    updatedAt = fields.DateTime(attribute="updated_at", allow_none=True)
