"""
Users blueprint: registration, the session lifecycle and channel/profile reads.

- POST  /users/register
- POST  /users/login
- POST  /users/logout
- POST  /users/refresh
- POST  /users/change-password
- GET   /users/me            PATCH /users/me
- PATCH /users/me/avatar     PATCH /users/me/cover
- GET   /users/me/history    GET   /users/me/activity
- GET   /users/channel/<user_id>

Tokens travel as httpOnly cookies (accessToken / refreshToken) and are also
returned in the body for non-browser clients.
"""
from __future__ import annotations

from flask import Blueprint, request, abort, current_app
from sqlalchemy import func, or_

from models import storage
from models.activity import Activity
from models.subscription import Subscription
from models.user import User
from models.video import Video
from models.watch_history import WatchHistory
from models.schemas.user import (
    ActivityOutSchema,
    ChangePasswordSchema,
    ChannelOutSchema,
    MediaUpdateSchema,
    RefreshTokenSchema,
    UserCreateSchema,
    UserLoginSchema,
    UserOutSchema,
    UserUpdateSchema,
)
from models.schemas.video import VideoOutSchema
from utils.authenticator import ACCESS_COOKIE, REFRESH_COOKIE
from utils.decorators import current_context, jwt_required, log_activity
from utils.results import Err

from .pagination import parse_pagination, page_meta
from .responses import api_response, fail

bp = Blueprint("users", __name__)

user_create_schema = UserCreateSchema()
user_login_schema = UserLoginSchema()
change_password_schema = ChangePasswordSchema()
user_update_schema = UserUpdateSchema()
media_update_schema = MediaUpdateSchema()
refresh_token_schema = RefreshTokenSchema()
user_out_schema = UserOutSchema()
channel_out_schema = ChannelOutSchema()
activity_list_schema = ActivityOutSchema(many=True)
video_list_schema = VideoOutSchema(many=True)


def _sessions():
    return current_app.extensions["session_manager"]


def _hasher():
    return current_app.extensions["password_hasher"]


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": current_app.config.get("COOKIE_SECURE", True),
        "path": "/",
    }


def _set_token_cookies(response, pair):
    opts = _cookie_options()
    response.set_cookie(ACCESS_COOKIE, pair.access_token,
                        max_age=int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds()), **opts)
    response.set_cookie(REFRESH_COOKIE, pair.refresh_token,
                        max_age=int(current_app.config["REFRESH_TOKEN_EXPIRES"].total_seconds()), **opts)
    return response


def _clear_token_cookies(response):
    opts = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **opts)
    response.delete_cookie(REFRESH_COOKIE, **opts)
    return response


def _current_user() -> User:
    """Full row for the authenticated caller (for writes)."""
    user = storage.get(User, current_context().principal.id)
    if not user:
        abort(400, description="Invalid user")
    return user


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Users
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            username: { type: string }
            email: { type: string }
            fullname: { type: string }
            password: { type: string }
            avatar: { type: string, description: "Avatar URL" }
            cover: { type: string, description: "Cover URL" }
    responses:
      201:
        description: Created
      409:
        description: Username or email already registered
      422:
        description: Validation error
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})

    session = storage.get_session()
    exists = session.query(User).filter(
        or_(User.username == data["username"], User.email == data["email"])
    ).first()
    if exists:
        abort(409, description="User already exists.")

    user = User(
        username=data["username"],
        email=data["email"],
        fullname=data["fullname"],
        avatar=data["avatar"],
        cover=data.get("cover") or "",
        password_hash=_hasher().hash(data["password"]),
    )
    storage.new(user)
    storage.save()
    return api_response(201, user_out_schema.dump(user), "User created successfully.")


@bp.post("/login")
def login():
    """
    Login with username or email; sets accessToken/refreshToken cookies.
    ---
    tags:
      - Users
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            identifier: { type: string, description: "username or email" }
            password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Invalid credentials
    """
    data = user_login_schema.load(request.get_json(silent=True) or {})
    result = _sessions().login(data["identifier"], data["password"])
    if isinstance(result, Err):
        fail(result)

    pair = result.value
    response, status = api_response(
        200,
        {
            "user_id": pair.identity_id,
            "access_token": pair.access_token,
            "refresh_token": pair.refresh_token,
        },
        "User logged in successfully.",
    )
    return _set_token_cookies(response, pair), status


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: revokes the stored refresh token and clears auth cookies.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    result = _sessions().logout(current_context().principal.id)
    if isinstance(result, Err):
        fail(result)
    response, status = api_response(200, None, "User logged out.")
    return _clear_token_cookies(response), status


@bp.post("/refresh")
def refresh():
    """
    Rotate tokens. The refresh token comes from the refreshToken cookie or
    the JSON body ({"refresh_token": "..."}); the old one stops working.
    ---
    tags:
      - Users
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            refresh_token: { type: string }
    responses:
      200:
        description: New token pair
      400:
        description: Refresh token superseded or revoked
      401:
        description: Missing or invalid refresh token
      404:
        description: User no longer exists
      422:
        description: Body is not a JSON object
    """
    payload = refresh_token_schema.load(request.get_json(silent=True) or {})
    presented = request.cookies.get(REFRESH_COOKIE) or payload["refresh_token"]

    result = _sessions().refresh(presented)
    if isinstance(result, Err):
        fail(result)

    pair = result.value
    user = storage.get(User, pair.identity_id)
    response, status = api_response(
        200,
        {
            "user": user_out_schema.dump(user) if user else None,
            "access_token": pair.access_token,
            "refresh_token": pair.refresh_token,
        },
        "Tokens refreshed successfully.",
    )
    return _set_token_cookies(response, pair), status


@bp.post("/change-password")
@jwt_required()
@log_activity("change password")
def change_password():
    """
    Change password; every session is revoked and must log in again.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            old_password: { type: string }
            new_password: { type: string }
    responses:
      200:
        description: Password changed
      400:
        description: Invalid password
    """
    data = change_password_schema.load(request.get_json(silent=True) or {})
    result = _sessions().change_password(
        current_context().principal.id, data["old_password"], data["new_password"]
    )
    if isinstance(result, Err):
        fail(result)
    response, status = api_response(200, None, "Password changed successfully.")
    return _clear_token_cookies(response), status


@bp.get("/me")
@jwt_required()
@log_activity()
def me():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return api_response(200, user_out_schema.dump(current_context().principal),
                        "User details fetched successfully.")


@bp.patch("/me")
@jwt_required()
@log_activity("update profile")
def update_me():
    """
    Update fullname, email and username; the current password confirms it.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            fullname: { type: string }
            email: { type: string }
            username: { type: string }
            password: { type: string }
    responses:
      200: { description: Updated }
      400: { description: Incorrect password }
      409: { description: Username or email taken }
    """
    data = user_update_schema.load(request.get_json(silent=True) or {})
    user = _current_user()
    if not _hasher().verify(data["password"], user.password_hash):
        abort(400, description="Incorrect password.")

    session = storage.get_session()
    taken = session.query(User).filter(
        User.id != user.id,
        or_(User.username == data["username"], User.email == data["email"]),
    ).first()
    if taken:
        abort(409, description="Username or email already in use.")

    user.fullname = data["fullname"]
    user.email = data["email"]
    user.username = data["username"]
    storage.new(user)
    storage.save()
    return api_response(200, user_out_schema.dump(user), "User updated successfully.")


def _update_media(field: str, label: str):
    data = media_update_schema.load(request.get_json(silent=True) or {})
    user = _current_user()
    setattr(user, field, data["url"])
    storage.new(user)
    storage.save()
    return api_response(200, user_out_schema.dump(user), f"{label} updated successfully.")


@bp.patch("/me/avatar")
@jwt_required()
@log_activity("update avatar")
def update_avatar():
    """
    Point the avatar at a new media URL.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            url: { type: string }
    responses:
      200: { description: Updated }
    """
    return _update_media("avatar", "Avatar")


@bp.patch("/me/cover")
@jwt_required()
@log_activity("update cover")
def update_cover():
    """
    Point the cover image at a new media URL.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            url: { type: string }
    responses:
      200: { description: Updated }
    """
    return _update_media("cover", "Cover photo")


@bp.get("/channel/<user_id>")
@jwt_required()
@log_activity()
def channel_profile(user_id: str):
    """
    Channel profile with subscriber counts.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Channel does not exist }
    """
    channel = storage.get(User, user_id)
    if not channel:
        abort(404, description="Channel does not exist.")

    session = storage.get_session()
    viewer_id = current_context().principal.id
    subscribers_count = (
        session.query(func.count(Subscription.id))
        .filter(Subscription.channel_id == channel.id)
        .scalar()
    )
    subscribed_to_count = (
        session.query(func.count(Subscription.id))
        .filter(Subscription.subscriber_id == channel.id)
        .scalar()
    )
    is_subscribed = (
        session.query(Subscription.id)
        .filter(Subscription.channel_id == channel.id, Subscription.subscriber_id == viewer_id)
        .first()
        is not None
    )
    return api_response(200, channel_out_schema.dump({
        "id": channel.id,
        "username": channel.username,
        "fullname": channel.fullname,
        "avatar": channel.avatar,
        "cover": channel.cover,
        "subscribers_count": subscribers_count or 0,
        "subscribed_to_count": subscribed_to_count or 0,
        "is_subscribed": is_subscribed,
    }), "Channel found successfully.")


@bp.get("/me/history")
@jwt_required()
@log_activity()
def watch_history():
    """
    Watch history, most recently watched first.
    ---
    tags:
      - Users
    security:
      - Bearer: []
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
      200: { description: OK }
    """
    page, limit = parse_pagination()
    session = storage.get_session()
    query = (
        session.query(Video)
        .join(WatchHistory, WatchHistory.video_id == Video.id)
        .filter(WatchHistory.user_id == current_context().principal.id)
    )
    total = query.count()
    rows = (
        query.order_by(WatchHistory.watched_at.desc(), WatchHistory.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return api_response(200, {"videos": video_list_schema.dump(rows), **page_meta(page, limit, total)})


@bp.get("/me/activity")
@jwt_required()
@log_activity()
def my_activity():
    """
    Own activity trail, newest first.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200: { description: OK }
    """
    page, limit = parse_pagination(default_limit=20)
    session = storage.get_session()
    query = session.query(Activity).filter(Activity.user_id == current_context().principal.id)
    total = query.count()
    rows = (
        query.order_by(Activity.created_at.desc(), Activity.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return api_response(200, {"activities": activity_list_schema.dump(rows), **page_meta(page, limit, total)})
