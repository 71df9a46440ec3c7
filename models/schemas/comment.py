from marshmallow import Schema, fields, pre_load, validates, validate

from models.schemas.common import norm_strip, validate_not_blank


class CommentCreateSchema(Schema):
    video_id = fields.String(required=True)
    content = fields.String(required=True, validate=validate.Length(max=2000))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "content" in data:
            data = dict(data)
            data["content"] = norm_strip(data["content"])
        return data

    @validates("content")
    def _validate_content(self, value, **kwargs):
        validate_not_blank(value)


class CommentOutSchema(Schema):
    id = fields.String()
    content = fields.String()
    video_id = fields.String()
    owner_id = fields.String()
    created_at = fields.DateTime()
