import re

from marshmallow import ValidationError

USERNAME_RE = re.compile(r"^[a-z0-9_.]{3,64}$")


def norm_lower(v):
    return v.strip().lower() if isinstance(v, str) else v


def norm_strip(v):
    return v.strip() if isinstance(v, str) else v


def validate_not_blank(value: str) -> None:
    if value is None or not value.strip():
        raise ValidationError("Field cannot be blank.")


def validate_username(value: str) -> None:
    if not USERNAME_RE.match(value or ""):
        raise ValidationError("Username must be 3-64 chars: lowercase letters, digits, '_' or '.'.")


def validate_password(value: str) -> None:
    if value is None or len(value) < 8:
        raise ValidationError("Password must be at least 8 characters long.")
