"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT signing/verification via PyJWT
- Access/refresh token issuance bound to a user identity

Secrets and lifetimes are passed in as a TokenConfig instead of being read
from the Flask app, so the primitives work outside a request and with fixed
secrets/clocks in tests.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    """Token is malformed, badly signed, expired, or of the wrong type."""


@dataclass(frozen=True)
class TokenConfig:
    access_secret: str
    refresh_secret: str
    access_ttl: timedelta
    refresh_ttl: timedelta
    algorithm: str = "HS256"

    @classmethod
    def from_mapping(cls, config) -> "TokenConfig":
        """Build from a Flask config (or any mapping with the same keys)."""
        return cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            access_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
        )


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    identity_id: str


class Argon2Hasher:
    """One-way password hash + verify."""

    def __init__(self, ph: PasswordHasher | None = None):
        self.ph = ph or PasswordHasher()

    @classmethod
    def from_mapping(cls, config) -> "Argon2Hasher":
        return cls(PasswordHasher(
            time_cost=config.get("ARGON2_TIME_COST", 3),
            memory_cost=config.get("ARGON2_MEMORY_COST", 65536),
            parallelism=config.get("ARGON2_PARALLELISM", 4),
        ))

    def hash(self, password: str) -> str:
        """Hash a plaintext password. Raises argon2 HashingError on failure."""
        return self.ph.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a plaintext password; mismatches and malformed hashes are False."""
        if not password or not password_hash:
            return False
        try:
            return self.ph.verify(password_hash, password)
        except (VerificationError, InvalidHashError):
            return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID)."""
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def sign(claims: Dict[str, Any], secret: str, ttl: timedelta, *,
         algorithm: str = "HS256", now: datetime | None = None) -> str:
    now = now or _utcnow()
    payload = dict(claims)
    payload["iat"] = int(now.timestamp())
    payload["exp"] = int((now + ttl).timestamp())
    return jwt.encode(payload, secret, algorithm=algorithm)


def verify(token: str, secret: str, *, algorithm: str = "HS256") -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises TokenError on invalid signature/expired jwt.
    """
    if not token:
        raise TokenError("Token missing")
    try:
        return jwt.decode(token, secret, algorithms=[algorithm], options={"require": ["exp"]})
    except jwt.ExpiredSignatureError:
        raise TokenError("Token expired")
    except jwt.InvalidTokenError as exc:
        raise TokenError(f"Invalid token: {exc}")


class TokenIssuer:
    """Mints independently signed access and refresh tokens for a user."""

    def __init__(self, config: TokenConfig, clock: Callable[[], datetime] = _utcnow):
        self.config = config
        self.clock = clock

    def issue_access(self, identity) -> str:
        claims = {
            "id": str(identity.id),
            "email": identity.email,
            "username": identity.username,
            "type": ACCESS,
            "jti": generate_jti(),
        }
        return sign(claims, self.config.access_secret, self.config.access_ttl,
                    algorithm=self.config.algorithm, now=self.clock())

    def issue_refresh(self, identity) -> str:
        # jti keeps two refresh tokens minted in the same second distinct
        claims = {"id": str(identity.id), "type": REFRESH, "jti": generate_jti()}
        return sign(claims, self.config.refresh_secret, self.config.refresh_ttl,
                    algorithm=self.config.algorithm, now=self.clock())

    def issue_pair(self, identity) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access(identity),
            refresh_token=self.issue_refresh(identity),
            identity_id=str(identity.id),
        )


class TokenVerifier:
    """Signature + expiry + type checks. Never consults the store."""

    def __init__(self, config: TokenConfig):
        self.config = config

    def _verify(self, token: str, secret: str, expected_type: str) -> Dict[str, Any]:
        decoded = verify(token, secret, algorithm=self.config.algorithm)
        if decoded.get("type") != expected_type:
            raise TokenError("Wrong token type")
        if not decoded.get("id"):
            raise TokenError("Token has no identity")
        return decoded

    def verify_access(self, token: str) -> Dict[str, Any]:
        return self._verify(token, self.config.access_secret, ACCESS)

    def verify_refresh(self, token: str) -> Dict[str, Any]:
        return self._verify(token, self.config.refresh_secret, REFRESH)

