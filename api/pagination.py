from typing import Tuple

from flask import request, abort

MAX_LIMIT = 100


def parse_pagination(default_limit: int = 10) -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", str(default_limit)))
        page = max(page, 1)
        limit = max(1, min(limit, MAX_LIMIT))
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")


def parse_bool_arg(name: str):
    """None when absent, else True/False from the usual truthy spellings."""
    val = request.args.get(name)
    if val is None:
        return None
    return val.lower() in ("1", "true", "yes")


def page_meta(page: int, limit: int, total: int) -> dict:
    return {"page": page, "limit": limit, "total": total}
