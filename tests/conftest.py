import os
import sys
from datetime import timedelta
from pathlib import Path

import pytest

# must be set before `models` builds its engine
os.environ["APP_ENV"] = "test"

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api import create_app  # noqa: E402
from models import storage  # noqa: E402
from models.credential_store import CredentialStore  # noqa: E402
from models.user import User  # noqa: E402
from utils.security import TokenConfig  # noqa: E402

PASSWORD = "correct-horse"


@pytest.fixture(scope="session")
def app():
    return create_app("testing")


@pytest.fixture(autouse=True)
def fresh_db():
    storage.reset()
    yield
    storage.close()


@pytest.fixture
def client(app):
    # cookies are passed explicitly so header-vs-cookie precedence stays under test control
    return app.test_client(use_cookies=False)


@pytest.fixture
def token_config():
    return TokenConfig(
        access_secret="unit-access-secret",
        refresh_secret="unit-refresh-secret",
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=10),
    )


@pytest.fixture
def hasher(app):
    return app.extensions["password_hasher"]


@pytest.fixture
def store():
    return CredentialStore(storage)


@pytest.fixture
def make_user(hasher):
    def _make(username="ada", password=PASSWORD, email=None, fullname=None):
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            fullname=fullname or username.title(),
            avatar=f"https://cdn.example.com/{username}.png",
            password_hash=hasher.hash(password),
        )
        storage.new(user)
        storage.save()
        return user

    return _make


@pytest.fixture
def register(client):
    def _register(username="ada", password=PASSWORD, **extra):
        body = {
            "username": username,
            "email": f"{username}@example.com",
            "fullname": username.title(),
            "password": password,
            "avatar": f"https://cdn.example.com/{username}.png",
        }
        body.update(extra)
        return client.post("/api/v1/users/register", json=body)

    return _register


@pytest.fixture
def login(client, register):
    """Register + log in; returns the login payload (user_id, tokens)."""
    def _login(username="ada", password=PASSWORD):
        resp = register(username, password)
        assert resp.status_code == 201, resp.get_json()
        resp = client.post("/api/v1/users/login", json={"identifier": username, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()["data"]

    return _login
