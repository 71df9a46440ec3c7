from __future__ import annotations

from datetime import datetime, timezone

from flask import Blueprint, request, abort
from sqlalchemy import case, func

from models import storage
from models.comment import Comment
from models.like import Like, LikeType
from models.video import Video
from models.watch_history import WatchHistory
from models.schemas.video import (
    VideoCreateSchema,
    VideoOutSchema,
    VideoUpdateSchema,
)
from utils.decorators import current_context, jwt_required, log_activity, optional_jwt

from .pagination import parse_bool_arg, parse_pagination
from .responses import api_response

bp = Blueprint("videos", __name__)

video_create_schema = VideoCreateSchema()
video_update_schema = VideoUpdateSchema()
video_out_schema = VideoOutSchema()
videos_out_schema = VideoOutSchema(many=True)


def like_counts(query_filter):
    """(likes, dislikes) for the likes matching query_filter."""
    session = storage.get_session()
    likes, dislikes = (
        session.query(
            func.coalesce(func.sum(case((Like.is_like.is_(True), 1), else_=0)), 0),
            func.coalesce(func.sum(case((Like.is_like.is_(False), 1), else_=0)), 0),
        )
        .filter(*query_filter)
        .one()
    )
    return int(likes), int(dislikes)


def comment_summaries(video_id: str, offset: int = 0, limit: int | None = None) -> list:
    """Comments of a video with per-comment like/dislike counts, oldest first."""
    session = storage.get_session()
    likes = func.coalesce(func.sum(case((Like.is_like.is_(True), 1), else_=0)), 0)
    dislikes = func.coalesce(func.sum(case((Like.is_like.is_(False), 1), else_=0)), 0)
    rows = (
        session.query(Comment, likes, dislikes)
        .outerjoin(Like, (Like.comment_id == Comment.id) & (Like.like_type == LikeType.COMMENT))
        .filter(Comment.video_id == video_id)
        .group_by(Comment.id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [
        {
            "id": c.id,
            "content": c.content,
            "owner_id": c.owner_id,
            "total_comment_likes": int(n_likes),
            "total_comment_dislikes": int(n_dislikes),
        }
        for c, n_likes, n_dislikes in rows
    ]


def record_watch(user_id: str, video_id: str) -> None:
    """Move video_id to the front of the user's watch history."""
    session = storage.get_session()
    entry = (
        session.query(WatchHistory)
        .filter(WatchHistory.user_id == user_id, WatchHistory.video_id == video_id)
        .first()
    )
    if entry is None:
        entry = WatchHistory(user_id=user_id, video_id=video_id)
    entry.watched_at = datetime.now(timezone.utc)
    storage.new(entry)
    storage.save()


def _paginated_videos(query, page: int, limit: int) -> dict:
    total = query.count()
    rows = (
        query.order_by(Video.created_at.desc(), Video.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {"videos": videos_out_schema.dump(rows), "count": total, "page": page, "limit": limit}


@bp.post("/videos")
@jwt_required()
@log_activity("upload video")
def create_video():
    """
    Publish a video whose media already sits in storage.
    ---
    tags:
      - Videos
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
            video_file: { type: string, description: "Media URL" }
            thumbnail: { type: string, description: "Image URL" }
            title: { type: string, maxLength: 150 }
            description: { type: string, maxLength: 1000 }
            duration: { type: number, minimum: 0, exclusiveMinimum: true }
            is_published: { type: boolean, default: true }
    responses:
      201:
        description: Created
      422:
        description: Validation error
    """
    data = video_create_schema.load(request.get_json(silent=True) or {})
    video = Video(owner_id=current_context().principal.id, views=0, **data)
    storage.new(video)
    storage.save()
    return api_response(201, video_out_schema.dump(video), "Video uploaded successfully.")


@bp.patch("/videos/<video_id>")
@jwt_required()
@log_activity("edit video")
def update_video(video_id: str):
    """
    Edit a video (owner only).
    ---
    tags:
      - Videos
    security:
      - Bearer: []
    parameters:
      - in: path
        name: video_id
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            title: { type: string }
            description: { type: string }
            is_published: { type: boolean }
            thumbnail: { type: string }
    responses:
      200: { description: Updated }
      403: { description: Not the owner }
      404: { description: Not found }
    """
    video = storage.get(Video, video_id)
    if not video:
        abort(404, description="Video does not exist.")
    if video.owner_id != current_context().principal.id:
        abort(403, description="Only the owner can edit this video.")

    data = video_update_schema.load(request.get_json(silent=True) or {})
    for field in ["title", "description", "is_published", "thumbnail"]:
        if field in data:
            setattr(video, field, data[field])
    storage.new(video)
    storage.save()
    return api_response(200, video_out_schema.dump(video), "Video updated successfully.")


@bp.get("/videos")
def feed():
    """
    Published videos, newest first.
    ---
    tags:
      - Videos
    parameters:
      - in: query
        name: page
        type: integer
        default: 1
      - in: query
        name: limit
        type: integer
        default: 10
    responses:
      200:
        description: "{videos, count, page, limit}"
    """
    page, limit = parse_pagination()
    query = storage.get_session().query(Video).filter(Video.is_published.is_(True))
    return api_response(200, _paginated_videos(query, page, limit))


@bp.get("/videos/mine")
@jwt_required()
@log_activity()
def my_videos():
    """
    The caller's own uploads.
    ---
    tags:
      - Videos
    security:
      - Bearer: []
    parameters:
      - in: query
        name: is_published
        type: boolean
      - in: query
        name: title
        type: string
        description: "Case-insensitive substring match"
    responses:
      200: { description: OK }
    """
    page, limit = parse_pagination()
    query = storage.get_session().query(Video).filter(Video.owner_id == current_context().principal.id)

    is_published = parse_bool_arg("is_published")
    if is_published is not None:
        query = query.filter(Video.is_published.is_(is_published))

    title = (request.args.get("title") or "").strip()
    if title:
        query = query.filter(func.lower(Video.title).like(f"%{title.lower()}%"))

    return api_response(200, _paginated_videos(query, page, limit))


@bp.get("/videos/<video_id>")
@optional_jwt()
def get_video(video_id: str):
    """
    A single video with like/dislike totals and its comments.
    A signed-in viewer gets it pushed to the front of their watch history.
    ---
    tags:
      - Videos
    parameters:
      - in: path
        name: video_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    video = storage.get(Video, video_id)
    if not video:
        abort(404, description="Video does not exist.")

    ctx = current_context()
    if not video.is_published and (not ctx.is_authenticated or ctx.principal.id != video.owner_id):
        abort(404, description="Video does not exist.")

    total_likes, total_dislikes = like_counts(
        [Like.video_id == video.id, Like.like_type == LikeType.VIDEO]
    )
    detail = video_out_schema.dump(video)
    detail.update(
        total_video_likes=total_likes,
        total_video_dislikes=total_dislikes,
        comments=comment_summaries(video.id),
    )

    if ctx.is_authenticated:
        record_watch(ctx.principal.id, video.id)

    return api_response(200, detail)
