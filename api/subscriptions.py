from __future__ import annotations

from flask import Blueprint, abort

from models import storage
from models.subscription import Subscription
from models.user import User
from models.schemas.user import UserOutSchema
from utils.decorators import current_context, jwt_required, log_activity

from .pagination import parse_pagination, page_meta
from .responses import api_response

bp = Blueprint("subscriptions", __name__)

users_out_schema = UserOutSchema(many=True, only=("id", "username", "fullname", "avatar"))


@bp.post("/<channel_id>")
@jwt_required()
@log_activity("toggle subscription")
def toggle_subscription(channel_id: str):
    """
    Subscribe to a channel, or unsubscribe when already subscribed
    ---
    tags: [Subscriptions]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: channel_id
        type: string
        required: true
    responses:
      200: { description: "Subscribed / Unsubscribed" }
      400: { description: Cannot subscribe to yourself }
      404: { description: Channel not found }
    """
    subscriber_id = current_context().principal.id
    if channel_id == subscriber_id:
        abort(400, description="Cannot subscribe to your own channel.")

    session = storage.get_session()
    existing = session.query(Subscription).filter(
        Subscription.channel_id == channel_id,
        Subscription.subscriber_id == subscriber_id,
    ).first()
    if existing:
        storage.delete(existing)
        storage.save()
        return api_response(200, {"subscribed": False}, "Unsubscribed successfully.")

    if not storage.get(User, channel_id):
        abort(404, description="Channel not found.")

    storage.new(Subscription(channel_id=channel_id, subscriber_id=subscriber_id))
    storage.save()
    return api_response(200, {"subscribed": True}, "Subscribed successfully.")


def _list_users(join_on, filter_on):
    page, limit = parse_pagination(default_limit=20)
    session = storage.get_session()
    query = (
        session.query(User)
        .join(Subscription, join_on == User.id)
        .filter(filter_on == current_context().principal.id)
    )
    total = query.count()
    rows = query.order_by(Subscription.created_at.desc(), User.username.asc()) \
        .offset((page - 1) * limit).limit(limit).all()
    return api_response(200, {"users": users_out_schema.dump(rows), **page_meta(page, limit, total)})


@bp.get("/subscribers")
@jwt_required()
@log_activity()
def my_subscribers():
    """
    Users subscribed to the caller's channel
    ---
    tags: [Subscriptions]
    security:
      - Bearer: []
    responses:
      200: { description: OK }
    """
    return _list_users(Subscription.subscriber_id, Subscription.channel_id)


@bp.get("/subscribed")
@jwt_required()
@log_activity()
def my_subscriptions():
    """
    Channels the caller is subscribed to
    ---
    tags: [Subscriptions]
    security:
      - Bearer: []
    responses:
      200: { description: OK }
    """
    return _list_users(Subscription.channel_id, Subscription.subscriber_id)
