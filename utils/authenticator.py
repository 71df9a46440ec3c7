"""
Request authentication for protected routes.

The access token is read from the `accessToken` cookie, falling back to an
`Authorization: Bearer <token>` header. Access tokens are stateless: only the
signature and expiry are checked, then the user is loaded for context.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from models.credential_store import CredentialStore, Principal, StoreUnavailableError
from utils.results import Err, ErrorKind, Ok, Result
from utils.security import TokenError, TokenVerifier

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


@dataclass(frozen=True)
class RequestContext:
    """Set once per request; `principal` is None for anonymous callers."""
    principal: Principal | None = None
    token_jti: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None


ANONYMOUS = RequestContext()


def extract_token(cookies: Mapping[str, str], headers: Mapping[str, str]) -> str | None:
    token = cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth = headers.get("Authorization", "") or ""
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


class RequestAuthenticator:
    def __init__(self, verifier: TokenVerifier, store: CredentialStore):
        self.verifier = verifier
        self.store = store

    def authenticate(self, cookies: Mapping[str, str], headers: Mapping[str, str]) -> Result:
        token = extract_token(cookies, headers)
        if not token:
            return Err(ErrorKind.UNAUTHORIZED, "Unauthorized request")
        try:
            claims = self.verifier.verify_access(token)
        except TokenError as exc:
            return Err(ErrorKind.UNAUTHORIZED, str(exc))

        try:
            principal = self.store.find_principal(claims["id"])
        except StoreUnavailableError as exc:
            return Err(ErrorKind.STORE_UNAVAILABLE, str(exc))
        if principal is None:
            return Err(ErrorKind.INVALID_USER, "Invalid user")
        return Ok(RequestContext(principal=principal, token_jti=claims.get("jti")))
