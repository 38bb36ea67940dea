"""
Server-side session model — one row per logged-in browser.

``role`` is a snapshot of the account's role taken at signup/login; it is
not refreshed when another admin changes that account.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, String

from memberauth.db.base import Base
from memberauth.models.account import ROLE_USER


class Session(Base):
    __tablename__ = "sessions"
    __table_args__ = (Index("ix_sessions_expires_at", "expires_at"),)

    session_id: str = Column(String(64), primary_key=True)  # type: ignore[assignment]
    authenticated: bool = Column(Boolean, nullable=False, default=True)  # type: ignore[assignment]
    email: str = Column(String(320), nullable=False, index=True)  # type: ignore[assignment]
    name: str = Column(String(30), nullable=False)  # type: ignore[assignment]
    role: str = Column(String(20), nullable=False, default=ROLE_USER)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]

    def is_expired(self, now: datetime | None = None) -> bool:
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return expires <= (now or datetime.now(timezone.utc))
