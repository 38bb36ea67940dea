"""
FastAPI dependencies — database session, current session and route gates.

Gates read the role cached on the session row; they never re-read the
account, so a role changed by another admin takes effect at that user's
next login.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from memberauth.core.config import settings
from memberauth.core.exceptions import Forbidden, LoginRequired
from memberauth.core.security import decode_session_cookie
from memberauth.db.engine import async_session_factory
from memberauth.models.session import Session
from memberauth.schemas.account import Principal
from memberauth.services.auth import AuthService
from memberauth.services.session_store import SessionStore


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_store(db: AsyncSession = Depends(get_db)) -> SessionStore:
    return SessionStore(db)


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
) -> AuthService:
    return AuthService(db, sessions)


# ── Session lookup ──────────────────────────────────────────────────
async def get_current_session(
    request: Request,
    sessions: SessionStore = Depends(get_session_store),
) -> Optional[Session]:
    """Load the session named by the cookie; ``None`` for anonymous visitors."""
    cookie = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not cookie:
        return None
    session_id = decode_session_cookie(cookie)
    if session_id is None:
        return None
    session = await sessions.get(session_id)
    if session is None or not session.authenticated:
        return None
    return session


async def get_principal(
    session: Optional[Session] = Depends(get_current_session),
) -> Principal:
    if session is None:
        return Principal.anonymous()
    return Principal(
        authenticated=True,
        email=session.email,
        name=session.name,
        role=session.role,
    )


# ── Gates ───────────────────────────────────────────────────────────
async def require_member(
    principal: Principal = Depends(get_principal),
) -> Principal:
    """Members-only pages send anonymous visitors back to the landing page."""
    if not principal.authenticated:
        raise LoginRequired("/")
    return principal


async def require_admin(
    principal: Principal = Depends(get_principal),
) -> Principal:
    """Anonymous -> login page; signed in without admin role -> 403 page."""
    if not principal.authenticated:
        raise LoginRequired("/login")
    if not principal.is_admin:
        raise Forbidden()
    return principal
