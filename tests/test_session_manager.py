from types import SimpleNamespace

import pytest

from models import storage
from models.credential_store import StoreUnavailableError
from models.user import User
from utils.results import Err, ErrorKind, Ok
from utils.security import TokenIssuer, TokenVerifier
from utils.session_manager import SessionManager

from conftest import PASSWORD


@pytest.fixture
def manager(store, hasher, token_config):
    return SessionManager(
        store=store,
        hasher=hasher,
        issuer=TokenIssuer(token_config),
        verifier=TokenVerifier(token_config),
    )


def stored_token(user_id):
    storage.close()
    return storage.get(User, user_id).refresh_token


def test_login_returns_tokens_bound_to_identity(manager, make_user, token_config):
    user = make_user("ada")

    result = manager.login("ada", PASSWORD)

    assert isinstance(result, Ok)
    pair = result.value
    assert pair.identity_id == user.id
    assert TokenVerifier(token_config).verify_access(pair.access_token)["id"] == user.id
    assert stored_token(user.id) == pair.refresh_token


@pytest.mark.parametrize("identifier", ["ada", "ADA", " Ada ", "ada@example.com", "ADA@Example.com"])
def test_login_accepts_username_or_email_case_insensitive(manager, make_user, identifier):
    make_user("ada")

    assert manager.login(identifier, PASSWORD).ok


def test_login_does_not_reveal_whether_user_exists(manager, make_user):
    make_user("ada")

    wrong_password = manager.login("ada", "nope-nope")
    no_such_user = manager.login("grace", PASSWORD)

    assert wrong_password == no_such_user
    assert wrong_password.kind is ErrorKind.INVALID_CREDENTIALS


def test_login_overwrites_previous_refresh_token(manager, make_user):
    user = make_user("ada")
    first = manager.login("ada", PASSWORD).value
    second = manager.login("ada", PASSWORD).value

    assert stored_token(user.id) == second.refresh_token
    assert manager.refresh(first.refresh_token).kind is ErrorKind.TOKEN_MISMATCH


def test_refresh_succeeds_once_then_token_is_superseded(manager, make_user):
    user = make_user("ada")
    r1 = manager.login("ada", PASSWORD).value.refresh_token

    rotated = manager.refresh(r1)
    assert rotated.ok
    assert rotated.value.refresh_token != r1
    assert stored_token(user.id) == rotated.value.refresh_token

    again = manager.refresh(r1)
    assert isinstance(again, Err)
    assert again.kind is ErrorKind.TOKEN_MISMATCH


def test_rotation_scenario(manager, hasher):
    user = User(
        username="ada",
        email="ada@example.com",
        fullname="Ada",
        avatar="https://cdn.example.com/ada.png",
        password_hash=hasher.hash("secret1"),
    )
    storage.new(user)
    storage.save()

    r1 = manager.login("ada", "secret1").value.refresh_token
    r2_result = manager.refresh(r1)
    assert r2_result.ok
    r2 = r2_result.value.refresh_token

    assert manager.refresh(r1).kind is ErrorKind.TOKEN_MISMATCH
    assert manager.refresh(r2).ok


def test_logout_revokes_refresh_token(manager, make_user):
    user = make_user("ada")
    r1 = manager.login("ada", PASSWORD).value.refresh_token

    assert manager.logout(user.id).ok
    assert stored_token(user.id) is None
    assert manager.refresh(r1).kind is ErrorKind.TOKEN_MISMATCH


def test_logout_is_idempotent(manager, make_user):
    user = make_user("ada")

    assert manager.logout(user.id).ok
    assert manager.logout(user.id).ok


def test_refresh_without_token_is_unauthorized(manager):
    assert manager.refresh(None).kind is ErrorKind.UNAUTHORIZED
    assert manager.refresh("").kind is ErrorKind.UNAUTHORIZED


def test_refresh_with_access_token_is_unauthorized(manager, make_user):
    make_user("ada")
    access = manager.login("ada", PASSWORD).value.access_token

    assert manager.refresh(access).kind is ErrorKind.UNAUTHORIZED


def test_refresh_for_deleted_user_is_not_found(manager, make_user):
    user = make_user("ada")
    r1 = manager.login("ada", PASSWORD).value.refresh_token
    storage.delete(storage.get(User, user.id))
    storage.save()

    assert manager.refresh(r1).kind is ErrorKind.NOT_FOUND


def test_refresh_that_loses_rotation_race_is_rejected(manager, make_user, monkeypatch):
    make_user("ada")
    r1 = manager.login("ada", PASSWORD).value.refresh_token
    monkeypatch.setattr(manager.store, "replace_refresh_token", lambda *a: False)

    assert manager.refresh(r1).kind is ErrorKind.TOKEN_MISMATCH


def test_change_password_revokes_sessions(manager, make_user, hasher):
    user = make_user("ada")
    r1 = manager.login("ada", PASSWORD).value.refresh_token

    assert manager.change_password(user.id, PASSWORD, "brand-new-pass").ok

    storage.close()
    fresh = storage.get(User, user.id)
    assert fresh.refresh_token is None
    assert hasher.verify("brand-new-pass", fresh.password_hash)
    assert manager.refresh(r1).kind is ErrorKind.TOKEN_MISMATCH
    assert manager.login("ada", PASSWORD).kind is ErrorKind.INVALID_CREDENTIALS
    assert manager.login("ada", "brand-new-pass").ok


def test_change_password_with_wrong_old_password_changes_nothing(manager, make_user):
    user = make_user("ada")
    r1 = manager.login("ada", PASSWORD).value.refresh_token
    before = storage.get(User, user.id).password_hash

    result = manager.change_password(user.id, "wrong-password", "brand-new-pass")

    assert result.kind is ErrorKind.INVALID_CREDENTIALS
    storage.close()
    after = storage.get(User, user.id)
    assert after.password_hash == before
    assert after.refresh_token == r1


def test_change_password_for_unknown_user(manager):
    assert manager.change_password("missing", "a", "b").kind is ErrorKind.NOT_FOUND


class BrokenStore:
    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise StoreUnavailableError("connection refused")
        return fail


def test_store_failures_surface_as_store_unavailable(hasher, token_config):
    manager = SessionManager(BrokenStore(), hasher, TokenIssuer(token_config), TokenVerifier(token_config))
    refresh = TokenIssuer(token_config).issue_refresh(SimpleNamespace(id="u-1"))

    assert manager.login("ada", PASSWORD).kind is ErrorKind.STORE_UNAVAILABLE
    assert manager.logout("u-1").kind is ErrorKind.STORE_UNAVAILABLE
    assert manager.refresh(refresh).kind is ErrorKind.STORE_UNAVAILABLE
    assert manager.change_password("u-1", "a", "b").kind is ErrorKind.STORE_UNAVAILABLE
