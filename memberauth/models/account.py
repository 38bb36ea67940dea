"""
Account model — credentials and role for one registered user.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from memberauth.db.base import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class Account(Base):
    __tablename__ = "accounts"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    # The unique index is the authoritative duplicate-signup guard.
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    name: str = Column(String(30), nullable=False)  # type: ignore[assignment]
    hashed_password: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=ROLE_USER,
        server_default=ROLE_USER,
    )  # user | admin
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
