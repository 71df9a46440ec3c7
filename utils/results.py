"""
Typed outcomes for the auth core.

Session and authentication operations never raise for expected failures;
they return ``Ok(value)`` or ``Err(kind, detail)`` and the HTTP layer maps
``kind`` to a status code.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ErrorKind(str, Enum):
    INVALID_CREDENTIALS = "InvalidCredentials"
    UNAUTHORIZED = "Unauthorized"
    TOKEN_MISMATCH = "TokenMismatch"
    NOT_FOUND = "NotFound"
    INVALID_USER = "InvalidUser"
    STORE_UNAVAILABLE = "StoreUnavailable"


@dataclass(frozen=True)
class Ok:
    value: Any = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok, Err]
