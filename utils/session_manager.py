"""
Session lifecycle: login, logout, refresh (rotation) and password change.

Each user holds at most one refresh token (User.refresh_token). Issuing a
new one overwrites the old, so a superseded or revoked refresh token fails
`refresh` with TokenMismatch even while its signature is still valid.
"""
from __future__ import annotations

import hmac
import logging

from argon2.exceptions import HashingError

from models.credential_store import CredentialStore, StoreUnavailableError
from utils.results import Err, ErrorKind, Ok, Result
from utils.security import Argon2Hasher, TokenError, TokenIssuer, TokenVerifier

logger = logging.getLogger(__name__)


def _unavailable(exc: Exception) -> Err:
    return Err(ErrorKind.STORE_UNAVAILABLE, str(exc) or exc.__class__.__name__)


class SessionManager:
    def __init__(
        self,
        store: CredentialStore,
        hasher: Argon2Hasher,
        issuer: TokenIssuer,
        verifier: TokenVerifier,
    ):
        self.store = store
        self.hasher = hasher
        self.issuer = issuer
        self.verifier = verifier

    def login(self, identifier: str, password: str) -> Result:
        """
        Verify credentials and issue a fresh token pair.
        Unknown user and wrong password yield the same InvalidCredentials error.
        """
        try:
            user = self.store.find_by_username_or_email(identifier)
            if user is None or not self.hasher.verify(password, user.password_hash):
                logger.warning("login rejected")
                return Err(ErrorKind.INVALID_CREDENTIALS, "Invalid credentials")

            pair = self.issuer.issue_pair(user)
            self.store.set_refresh_token(user.id, pair.refresh_token)
        except StoreUnavailableError as exc:
            return _unavailable(exc)

        logger.info("login ok user=%s", user.id)
        return Ok(pair)

    def logout(self, identity_id: str) -> Result:
        """Revoke the stored refresh token. Idempotent."""
        try:
            self.store.set_refresh_token(identity_id, None)
        except StoreUnavailableError as exc:
            return _unavailable(exc)
        logger.info("logout user=%s", identity_id)
        return Ok(None)

    def refresh(self, presented: str | None) -> Result:
        """Exchange the current refresh token for a new pair (rotation)."""
        if not presented:
            return Err(ErrorKind.UNAUTHORIZED, "Refresh token missing")
        try:
            claims = self.verifier.verify_refresh(presented)
        except TokenError as exc:
            return Err(ErrorKind.UNAUTHORIZED, str(exc))

        try:
            user = self.store.find_by_id(claims["id"])
            if user is None:
                return Err(ErrorKind.NOT_FOUND, "User not found")

            stored = user.refresh_token or ""
            if not hmac.compare_digest(stored.encode("utf-8"), presented.encode("utf-8")):
                logger.warning("stale refresh token presented user=%s", user.id)
                return Err(ErrorKind.TOKEN_MISMATCH, "Refresh token is expired or used")

            pair = self.issuer.issue_pair(user)
            if not self.store.replace_refresh_token(user.id, presented, pair.refresh_token):
                # a concurrent refresh rotated it first
                logger.warning("refresh lost rotation race user=%s", user.id)
                return Err(ErrorKind.TOKEN_MISMATCH, "Refresh token is expired or used")
        except StoreUnavailableError as exc:
            return _unavailable(exc)

        logger.info("refresh ok user=%s", user.id)
        return Ok(pair)

    def change_password(self, identity_id: str, old_password: str, new_password: str) -> Result:
        """
        Replace the password hash and revoke the refresh token, forcing a new
        login everywhere. Only the changed columns are written.
        """
        try:
            user = self.store.find_by_id(identity_id)
            if user is None:
                return Err(ErrorKind.NOT_FOUND, "User not found")
            if not self.hasher.verify(old_password, user.password_hash):
                logger.warning("password change rejected user=%s", identity_id)
                return Err(ErrorKind.INVALID_CREDENTIALS, "Invalid password")

            user.password_hash = self.hasher.hash(new_password)
            user.refresh_token = None
            self.store.save(user)
        except HashingError as exc:
            return _unavailable(exc)
        except StoreUnavailableError as exc:
            return _unavailable(exc)

        logger.info("password changed user=%s", identity_id)
        return Ok(None)
