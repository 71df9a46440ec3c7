from __future__ import annotations

from flask import Blueprint, request, abort

from models import storage
from models.comment import Comment
from models.video import Video
from models.schemas.comment import CommentCreateSchema, CommentOutSchema
from utils.decorators import current_context, jwt_required, log_activity

from .pagination import parse_pagination, page_meta
from .responses import api_response
from .videos import comment_summaries

bp = Blueprint("comments", __name__)

create_schema = CommentCreateSchema()
out_schema = CommentOutSchema()


@bp.post("/comments")
@jwt_required()
@log_activity("post comment")
def post_comment():
    """
    Comment on a video
    ---
    tags: [Comments]
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            video_id: { type: string }
            content: { type: string }
    responses:
      201: { description: Created }
      404: { description: Video not found }
      422: { description: Validation error }
    """
    data = create_schema.load(request.get_json(silent=True) or {})
    if not storage.get(Video, data["video_id"]):
        abort(404, description="Video not found.")

    c = Comment(
        content=data["content"],
        video_id=data["video_id"],
        owner_id=current_context().principal.id,
    )
    storage.new(c)
    storage.save()
    return api_response(201, out_schema.dump(c), "Comment posted successfully.")


@bp.get("/videos/<video_id>/comments")
@jwt_required()
@log_activity()
def list_comments(video_id: str):
    """
    Comments of a video with like counts, oldest first
    ---
    tags: [Comments]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: video_id
        type: string
        required: true
      - in: query
        name: page
        type: integer
        default: 1
      - in: query
        name: limit
        type: integer
        default: 10
    responses:
      200: { description: OK }
      404: { description: Video not found }
    """
    if not storage.get(Video, video_id):
        abort(404, description="Video not found.")
    page, limit = parse_pagination()
    total = storage.get_session().query(Comment).filter(Comment.video_id == video_id).count()
    comments = comment_summaries(video_id, offset=(page - 1) * limit, limit=limit)
    return api_response(200, {"comments": comments, **page_meta(page, limit, total)})
