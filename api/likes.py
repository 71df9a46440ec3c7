"""
Likes blueprint. One reaction per (user, target): posting the same reaction
again is rejected, posting the opposite one flips it.
"""
from __future__ import annotations

from flask import Blueprint, request, abort

from models import storage
from models.comment import Comment
from models.like import Like, LikeType
from models.video import Video
from models.schemas.like import CommentLikeSchema, LikeOutSchema, VideoLikeSchema
from models.schemas.video import VideoOutSchema
from utils.decorators import current_context, jwt_required, log_activity

from .pagination import parse_pagination, page_meta
from .responses import api_response

bp = Blueprint("likes", __name__)

video_like_schema = VideoLikeSchema()
comment_like_schema = CommentLikeSchema()
like_out_schema = LikeOutSchema()
videos_out_schema = VideoOutSchema(many=True)


def react(like_type: LikeType, video_id: str, is_like: bool, comment_id: str | None = None):
    user_id = current_context().principal.id
    session = storage.get_session()
    existing = session.query(Like).filter(
        Like.like_type == like_type,
        Like.video_id == video_id,
        Like.comment_id.is_(None) if comment_id is None else Like.comment_id == comment_id,
        Like.liked_by == user_id,
    ).first()

    target = like_type.value
    if existing:
        if existing.is_like == is_like:
            return api_response(
                400,
                like_out_schema.dump(existing),
                f"Already {'liked' if is_like else 'disliked'} the {target}.",
            )
        existing.is_like = is_like
        storage.new(existing)
        storage.save()
        return api_response(200, like_out_schema.dump(existing), "Reaction updated.")

    like = Like(
        like_type=like_type,
        is_like=is_like,
        video_id=video_id,
        comment_id=comment_id,
        liked_by=user_id,
    )
    storage.new(like)
    storage.save()
    verb = "liked" if is_like else "disliked"
    return api_response(200, like_out_schema.dump(like), f"{target.capitalize()} {verb} successfully.")


@bp.post("/video")
@jwt_required()
@log_activity("react to video")
def like_video():
    """
    Like (is_like=true) or dislike (is_like=false) a video
    ---
    tags: [Likes]
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            video_id: { type: string }
            is_like: { type: boolean }
    responses:
      200: { description: Created or flipped }
      400: { description: Same reaction already recorded }
      404: { description: Video not found }
    """
    data = video_like_schema.load(request.get_json(silent=True) or {})
    if not storage.get(Video, data["video_id"]):
        abort(404, description="Video not found.")
    return react(LikeType.VIDEO, data["video_id"], data["is_like"])


@bp.post("/comment")
@jwt_required()
@log_activity("react to comment")
def like_comment():
    """
    Like or dislike a comment
    ---
    tags: [Likes]
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            video_id: { type: string }
            comment_id: { type: string }
            is_like: { type: boolean }
    responses:
      200: { description: Created or flipped }
      400: { description: Same reaction already recorded }
      404: { description: Video or comment not found }
    """
    data = comment_like_schema.load(request.get_json(silent=True) or {})
    if not storage.get(Video, data["video_id"]):
        abort(404, description="Video not found.")
    comment = storage.get(Comment, data["comment_id"])
    if not comment or comment.video_id != data["video_id"]:
        abort(404, description="Comment not found.")
    return react(LikeType.COMMENT, data["video_id"], data["is_like"], comment_id=comment.id)


@bp.get("/videos")
@jwt_required()
@log_activity()
def liked_videos():
    """
    Videos the caller liked, most recent like first
    ---
    tags: [Likes]
    security:
      - Bearer: []
    responses:
      200: { description: OK }
    """
    page, limit = parse_pagination()
    session = storage.get_session()
    query = (
        session.query(Video)
        .join(Like, Like.video_id == Video.id)
        .filter(
            Like.like_type == LikeType.VIDEO,
            Like.is_like.is_(True),
            Like.liked_by == current_context().principal.id,
        )
    )
    total = query.count()
    rows = query.order_by(Like.updated_at.desc(), Like.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return api_response(200, {"videos": videos_out_schema.dump(rows), **page_meta(page, limit, total)})
