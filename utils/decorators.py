from __future__ import annotations
from functools import wraps
import logging

from flask import request, g, current_app
from sqlalchemy.exc import SQLAlchemyError

from api.responses import fail
from models import storage
from models.activity import Activity
from utils.authenticator import ANONYMOUS, RequestContext
from utils.results import Err

logger = logging.getLogger(__name__)


def _authenticate():
    authenticator = current_app.extensions["request_authenticator"]
    return authenticator.authenticate(request.cookies, request.headers)


def current_context() -> RequestContext:
    return g.get("request_context", ANONYMOUS)


def jwt_required():
    """Reject the request unless it carries a valid access token for an existing user."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            result = _authenticate()
            if isinstance(result, Err):
                fail(result)
            g.request_context = result.value
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def optional_jwt():
    """Attach the caller's context when a valid token is present; stay anonymous otherwise."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            result = _authenticate()
            g.request_context = result.value if result.ok else ANONYMOUS
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def log_activity(message: str | None = None):
    """
    Record the authenticated request in the activity trail.
    Must sit below jwt_required(). Audit failures never fail the request.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            ctx = current_context()
            entry = Activity(
                user_id=ctx.principal.id if ctx.principal else None,
                method=request.method,
                endpoint=request.full_path.rstrip("?"),
                message=message,
                ip=request.remote_addr,
                user_agent=request.headers.get("User-Agent"),
            )
            try:
                storage.new(entry)
                storage.save()
            except SQLAlchemyError as exc:
                logger.warning("activity logging failed: %s", exc)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
