"""
CredentialStore: the user-record operations the auth core depends on.

Wraps DBStorage so the session manager never touches SQLAlchemy directly.
Any SQLAlchemyError is rolled back and surfaced as StoreUnavailableError.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
import logging

from sqlalchemy import or_, func
from sqlalchemy.exc import SQLAlchemyError

from models.user import User

logger = logging.getLogger(__name__)


class StoreUnavailableError(Exception):
    """The backing database could not complete the operation."""


@dataclass(frozen=True)
class Principal:
    """Read-only projection of a user: no password hash, no refresh token."""
    id: str
    username: str
    email: str
    fullname: str
    avatar: str
    cover: str | None = None


def _store_call(fn):
    @wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except SQLAlchemyError as exc:
            self.storage.rollback()
            logger.error("credential store failure in %s", fn.__name__, exc_info=exc)
            raise StoreUnavailableError(str(exc)) from exc

    return wrapper


class CredentialStore:
    def __init__(self, storage):
        self.storage = storage

    def _query(self):
        return self.storage.get_session().query(User)

    @_store_call
    def find_by_username_or_email(self, identifier: str) -> User | None:
        ident = (identifier or "").strip().lower()
        if not ident:
            return None
        return self._query().filter(
            or_(func.lower(User.username) == ident, func.lower(User.email) == ident)
        ).first()

    @_store_call
    def find_by_id(self, identity_id: str) -> User | None:
        return self.storage.get(User, identity_id)

    @_store_call
    def find_principal(self, identity_id: str) -> Principal | None:
        row = (
            self._query()
            .with_entities(User.id, User.username, User.email, User.fullname, User.avatar, User.cover)
            .filter(User.id == identity_id)
            .first()
        )
        if row is None:
            return None
        return Principal(
            id=row.id,
            username=row.username,
            email=row.email,
            fullname=row.fullname,
            avatar=row.avatar,
            cover=row.cover,
        )

    @_store_call
    def save(self, user: User) -> User:
        self.storage.new(user)
        self.storage.save()
        return user

    @_store_call
    def set_refresh_token(self, identity_id: str, token: str | None) -> None:
        """Unconditional overwrite (login, logout)."""
        self._query().filter(User.id == identity_id).update(
            {User.refresh_token: token}, synchronize_session="fetch"
        )
        self.storage.save()

    @_store_call
    def replace_refresh_token(self, identity_id: str, expected: str, new: str) -> bool:
        """
        Compare-and-set: store `new` only if the stored token still equals
        `expected`. Returns False when another rotation won the race.
        """
        updated = self._query().filter(
            User.id == identity_id, User.refresh_token == expected
        ).update({User.refresh_token: new}, synchronize_session="fetch")
        self.storage.save()
        return updated == 1
