from marshmallow import Schema, fields


class VideoLikeSchema(Schema):
    video_id = fields.String(required=True)
    # true = like, false = dislike
    is_like = fields.Boolean(required=True)


class CommentLikeSchema(VideoLikeSchema):
    comment_id = fields.String(required=True)


class LikeOutSchema(Schema):
    id = fields.String()
    like_type = fields.Function(lambda obj: obj.like_type.value if obj.like_type else None)
    is_like = fields.Boolean()
    video_id = fields.String()
    comment_id = fields.String(allow_none=True)
    liked_by = fields.String()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
