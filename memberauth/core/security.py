"""
Password hashing (bcrypt) and session-cookie signing.

The session cookie only ever carries the opaque session id; every other
session field lives server-side in the ``sessions`` table.
"""

from __future__ import annotations

import secrets
from datetime import datetime

from jose import JWTError, jwt
from passlib.context import CryptContext

from memberauth.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

_ALGORITHM = settings.ALGORITHM
_SECRET = settings.SECRET_KEY


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


# ── Session ids ─────────────────────────────────────────────────────
def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def encode_session_cookie(session_id: str, expires_at: datetime) -> str:
    return jwt.encode(
        {"exp": expires_at, "sid": session_id, "type": "session"},
        _SECRET,
        algorithm=_ALGORITHM,
    )


def decode_session_cookie(token: str) -> str | None:
    """Return the session id if the cookie is authentic and unexpired, else ``None``."""
    try:
        payload = jwt.decode(token, _SECRET, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != "session":
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) and sid else None
