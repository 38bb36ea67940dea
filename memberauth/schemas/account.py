"""Pydantic schemas for signup / login input and account views."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic import field_validator

from memberauth.core.exceptions import ValidationError
from memberauth.models.account import ROLE_ADMIN

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")

NAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 6
# bcrypt ignores everything past 72 bytes of input.
PASSWORD_MAX_BYTES = 72


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    if not _EMAIL_RE.match(v):
        raise ValueError("Email must be a valid email address")
    return v


def _check_password_bytes(v: str) -> str:
    if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    return v


# ── Input forms ─────────────────────────────────────────────────────
class SignupForm(BaseModel):
    name: str
    email: str
    password: str

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        if len(v) > NAME_MAX_LENGTH:
            raise ValueError(f"Name must be at most {NAME_MAX_LENGTH} characters")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError(
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
            )
        return _check_password_bytes(v)


class LoginForm(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return _check_password_bytes(v)


def _first_error_message(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    field = str(err["loc"][0]) if err.get("loc") else "input"
    if err["type"] == "missing":
        return f"{field.capitalize()} is required"
    if err["type"] == "value_error":
        return str(err["ctx"]["error"])
    return f"{field.capitalize()}: {err['msg']}"


def validate_signup(name: str | None, email: str | None, password: str | None) -> SignupForm:
    """Check a signup payload without touching any store."""
    payload = {k: v for k, v in (("name", name), ("email", email), ("password", password)) if v is not None}
    try:
        return SignupForm(**payload)
    except PydanticValidationError as exc:
        raise ValidationError(_first_error_message(exc)) from exc


def validate_login(email: str | None, password: str | None) -> LoginForm:
    """Check a login payload without touching any store."""
    payload = {k: v for k, v in (("email", email), ("password", password)) if v is not None}
    try:
        return LoginForm(**payload)
    except PydanticValidationError as exc:
        raise ValidationError(_first_error_message(exc)) from exc


# ── Views ───────────────────────────────────────────────────────────
class AccountRead(BaseModel):
    email: str
    name: str
    role: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class Principal(BaseModel):
    """Identity and role read from the current session on each request."""

    authenticated: bool = False
    email: str | None = None
    name: str | None = None
    role: str | None = None

    model_config = {"frozen": True}

    @property
    def is_admin(self) -> bool:
        return self.authenticated and self.role == ROLE_ADMIN

    @classmethod
    def anonymous(cls) -> Principal:
        return cls()
