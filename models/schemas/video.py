from marshmallow import Schema, fields, validates, ValidationError, validate

from models.schemas.common import validate_not_blank


class VideoCreateSchema(Schema):
    # media URLs come from the upload pipeline
    video_file = fields.URL(required=True)
    thumbnail = fields.URL(required=True)
    title = fields.String(required=True, validate=validate.Length(min=1, max=150))
    description = fields.String(required=True, validate=validate.Length(min=1, max=1000))
    duration = fields.Float(required=True)
    is_published = fields.Boolean(load_default=True)

    @validates("title")
    def _validate_title(self, value, **kwargs):
        validate_not_blank(value)

    @validates("duration")
    def _validate_duration(self, value, **kwargs):
        if value is None or value <= 0:
            raise ValidationError("Duration must be greater than 0.")


class VideoUpdateSchema(Schema):
    title = fields.String(validate=validate.Length(min=1, max=150))
    description = fields.String(validate=validate.Length(min=1, max=1000))
    is_published = fields.Boolean()
    thumbnail = fields.URL()

    @validates("title")
    def _validate_title(self, value, **kwargs):
        validate_not_blank(value)


class VideoOutSchema(Schema):
    id = fields.String()
    video_file = fields.String()
    thumbnail = fields.String()
    title = fields.String()
    description = fields.String()
    duration = fields.Float()
    views = fields.Integer()
    is_published = fields.Boolean()
    owner_id = fields.String()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()

