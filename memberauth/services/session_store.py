"""
Server-side session persistence.

Sessions live in the ``sessions`` table next to the accounts. Expiry is
absolute: ``expires_at`` is fixed at creation and nothing extends it. An
expired row is deleted the next time it is read.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memberauth.core.config import settings
from memberauth.core.exceptions import SessionStoreError
from memberauth.core.security import new_session_id
from memberauth.models.account import Account
from memberauth.models.session import Session

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, db: AsyncSession, ttl: timedelta | None = None) -> None:
        self.db = db
        self.ttl = ttl if ttl is not None else timedelta(minutes=settings.SESSION_TTL_MINUTES)

    async def create(self, account: Account) -> Session:
        """Open an authenticated session carrying the account's current identity."""
        now = datetime.now(timezone.utc)
        session = Session(
            session_id=new_session_id(),
            authenticated=True,
            email=account.email,
            name=account.name,
            role=account.role,
            created_at=now,
            expires_at=now + self.ttl,
        )
        try:
            self.db.add(session)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise SessionStoreError() from exc
        logger.debug("Session %s opened for %s", session.session_id, account.email)
        return session

    async def get(self, session_id: str) -> Session | None:
        try:
            result = await self.db.execute(
                select(Session).where(Session.session_id == session_id)
            )
            session = result.scalar_one_or_none()
            if session is None:
                return None
            if session.is_expired():
                await self.db.delete(session)
                await self.db.commit()
                logger.info("Session %s expired", session_id)
                return None
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise SessionStoreError() from exc
        return session

    async def update_role(self, session: Session, role: str) -> Session:
        """Rewrite the cached role of a live session. Expiry is left untouched."""
        try:
            session.role = role
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise SessionStoreError() from exc
        return session

    async def destroy(self, session_id: str) -> bool:
        """Delete a session. Returns ``False`` when there was nothing to delete."""
        try:
            result = await self.db.execute(
                delete(Session).where(Session.session_id == session_id)
            )
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise SessionStoreError() from exc
        return bool(result.rowcount)

    async def purge_expired(self) -> int:
        try:
            result = await self.db.execute(
                delete(Session).where(Session.expires_at <= datetime.now(timezone.utc))
            )
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise SessionStoreError() from exc
        return int(result.rowcount or 0)
