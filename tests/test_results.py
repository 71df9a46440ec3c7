import pytest
from werkzeug.exceptions import HTTPException

from api.responses import envelope, fail, status_for
from utils.results import Err, ErrorKind, Ok


def test_ok_and_err_flags():
    assert Ok(1).ok is True
    assert Err(ErrorKind.NOT_FOUND).ok is False


@pytest.mark.parametrize("kind, status", [
    (ErrorKind.INVALID_CREDENTIALS, 400),
    (ErrorKind.UNAUTHORIZED, 401),
    (ErrorKind.TOKEN_MISMATCH, 400),
    (ErrorKind.NOT_FOUND, 404),
    (ErrorKind.INVALID_USER, 400),
    (ErrorKind.STORE_UNAVAILABLE, 503),
])
def test_status_for_kind(kind, status):
    assert status_for(kind) == status


def test_envelope_success_follows_status():
    assert envelope(200, {"a": 1})["success"] is True
    assert envelope(404)["success"] is False


def test_fail_aborts_with_detail(app):
    with app.test_request_context():
        with pytest.raises(HTTPException) as info:
            fail(Err(ErrorKind.TOKEN_MISMATCH, "Refresh token is expired or used"))

    assert info.value.code == 400
    assert info.value.description == "Refresh token is expired or used"


def test_store_outage_maps_to_503(client, monkeypatch, app):
    manager = app.extensions["session_manager"]
    monkeypatch.setattr(manager, "login", lambda *a: Err(ErrorKind.STORE_UNAVAILABLE, "db down"))

    resp = client.post("/api/v1/users/login", json={"identifier": "ada", "password": "whatever1"})

    assert resp.status_code == 503
    assert resp.get_json()["success"] is False
