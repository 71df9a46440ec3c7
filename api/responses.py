"""
Uniform response envelope: {statusCode, data, message, success}.
success is derived (statusCode < 400) so failures and successes share one shape.
"""
from flask import jsonify, abort

from utils.results import Err, ErrorKind

KIND_STATUS = {
    ErrorKind.INVALID_CREDENTIALS: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.TOKEN_MISMATCH: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_USER: 400,
    ErrorKind.STORE_UNAVAILABLE: 503,
}


def envelope(status_code: int, data=None, message: str = "Success") -> dict:
    return {
        "statusCode": status_code,
        "data": data,
        "message": message,
        "success": status_code < 400,
    }


def api_response(status_code: int, data=None, message: str = "Success"):
    return jsonify(envelope(status_code, data, message)), status_code


def status_for(kind: ErrorKind) -> int:
    return KIND_STATUS.get(kind, 500)


def fail(err: Err):
    """Abort the request with the status mapped from the error kind."""
    abort(status_for(err.kind), description=err.detail or err.kind.value)
