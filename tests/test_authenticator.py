import pytest

from models import storage
from models.credential_store import Principal, StoreUnavailableError
from models.user import User
from utils.authenticator import RequestAuthenticator, extract_token
from utils.results import ErrorKind
from utils.security import TokenIssuer, TokenVerifier


@pytest.fixture
def issuer(token_config):
    return TokenIssuer(token_config)


@pytest.fixture
def authenticator(store, token_config):
    return RequestAuthenticator(TokenVerifier(token_config), store)


def test_cookie_wins_over_header():
    token = extract_token({"accessToken": "from-cookie"}, {"Authorization": "Bearer from-header"})
    assert token == "from-cookie"


def test_header_used_without_cookie():
    assert extract_token({}, {"Authorization": "Bearer abc"}) == "abc"


@pytest.mark.parametrize("header", ["", "abc", "Basic abc", "Bearer ", "bearer abc"])
def test_no_usable_token(header):
    assert extract_token({}, {"Authorization": header}) is None


def test_authenticate_without_token(authenticator):
    result = authenticator.authenticate({}, {})
    assert result.kind is ErrorKind.UNAUTHORIZED


def test_authenticate_with_bad_token(authenticator):
    result = authenticator.authenticate({}, {"Authorization": "Bearer nope"})
    assert result.kind is ErrorKind.UNAUTHORIZED


def test_refresh_token_is_not_an_access_token(authenticator, issuer, make_user):
    user = make_user("ada")
    result = authenticator.authenticate({"accessToken": issuer.issue_refresh(user)}, {})
    assert result.kind is ErrorKind.UNAUTHORIZED


def test_authenticate_yields_principal(authenticator, issuer, make_user):
    user = make_user("ada")

    result = authenticator.authenticate({}, {"Authorization": f"Bearer {issuer.issue_access(user)}"})

    assert result.ok
    ctx = result.value
    assert ctx.is_authenticated
    assert ctx.token_jti
    assert isinstance(ctx.principal, Principal)
    assert ctx.principal.id == user.id
    assert ctx.principal.username == "ada"
    assert not hasattr(ctx.principal, "password_hash")
    assert not hasattr(ctx.principal, "refresh_token")


def test_token_for_deleted_user(authenticator, issuer, make_user):
    user = make_user("ada")
    token = issuer.issue_access(user)
    storage.delete(storage.get(User, user.id))
    storage.save()

    result = authenticator.authenticate({"accessToken": token}, {})

    assert result.kind is ErrorKind.INVALID_USER


def test_store_outage(authenticator, issuer, make_user, monkeypatch):
    user = make_user("ada")

    def boom(_id):
        raise StoreUnavailableError("db down")

    monkeypatch.setattr(authenticator.store, "find_principal", boom)
    result = authenticator.authenticate({"accessToken": issuer.issue_access(user)}, {})

    assert result.kind is ErrorKind.STORE_UNAVAILABLE
