from marshmallow import EXCLUDE, Schema, fields, pre_load, validates, validates_schema, post_load, ValidationError, validate

from models.schemas.common import (
    norm_lower,
    norm_strip,
    validate_not_blank,
    validate_password,
    validate_username,
)


class UserCreateSchema(Schema):
    username = fields.String(required=True)
    email = fields.Email(required=True)
    fullname = fields.String(required=True, validate=validate.Length(min=1, max=255))
    password = fields.String(required=True, load_only=True)
    avatar = fields.URL(required=True)
    cover = fields.URL(allow_none=True, load_default=None)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            for key in ("username", "email"):
                if key in data:
                    data[key] = norm_lower(data[key])
            if "fullname" in data:
                data["fullname"] = norm_strip(data["fullname"])
            if data.get("cover") == "":
                data["cover"] = None
        return data

    @validates("username")
    def _validate_username(self, value, **kwargs):
        validate_username(value)

    @validates("fullname")
    def _validate_fullname(self, value, **kwargs):
        validate_not_blank(value)

    @validates("password")
    def _validate_password(self, value, **kwargs):
        validate_password(value)


class UserLoginSchema(Schema):
    """Accepts `identifier`, or separate `username` / `email` keys."""
    identifier = fields.String()
    username = fields.String()
    email = fields.String()
    password = fields.String(required=True, load_only=True)

    @validates_schema
    def _require_identifier(self, data, **kwargs):
        if not (data.get("identifier") or data.get("username") or data.get("email")):
            raise ValidationError("username or email is required.", field_name="identifier")

    @post_load
    def _collapse(self, data, **kwargs):
        ident = data.get("identifier") or data.get("username") or data.get("email")
        return {"identifier": norm_lower(ident), "password": data["password"]}


class ChangePasswordSchema(Schema):
    old_password = fields.String(required=True, load_only=True)
    new_password = fields.String(required=True, load_only=True)

    @validates("new_password")
    def _validate_new_password(self, value, **kwargs):
        validate_password(value)


class RefreshTokenSchema(Schema):
    """Body of POST /users/refresh; the cookie takes precedence when present."""
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(load_default=None, allow_none=True, load_only=True)


class UserUpdateSchema(Schema):
    """Profile edit; the current password confirms the change."""
    fullname = fields.String(required=True, validate=validate.Length(min=1, max=255))
    email = fields.Email(required=True)
    username = fields.String(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            for key in ("username", "email"):
                if key in data:
                    data[key] = norm_lower(data[key])
            if "fullname" in data:
                data["fullname"] = norm_strip(data["fullname"])
        return data

    @validates("username")
    def _validate_username(self, value, **kwargs):
        validate_username(value)

    @validates("fullname")
    def _validate_fullname(self, value, **kwargs):
        validate_not_blank(value)


class MediaUpdateSchema(Schema):
    url = fields.URL(required=True)


class UserOutSchema(Schema):
    # dumps both User rows and Principal projections
    id = fields.String()
    username = fields.String()
    email = fields.String()
    fullname = fields.String()
    avatar = fields.String()
    cover = fields.String(allow_none=True)


class ChannelOutSchema(Schema):
    id = fields.String()
    username = fields.String()
    fullname = fields.String()
    avatar = fields.String()
    cover = fields.String(allow_none=True)
    subscribers_count = fields.Integer()
    subscribed_to_count = fields.Integer()
    is_subscribed = fields.Boolean()


class ActivityOutSchema(Schema):
    id = fields.String()
    method = fields.String()
    endpoint = fields.String()
    message = fields.String(allow_none=True)
    ip = fields.String(allow_none=True)
    user_agent = fields.String(allow_none=True)
    created_at = fields.DateTime()
