"""
Auth service — signup, login, logout and role changes.

The service is the only writer of session state. Routes hand it the
current session (if any) and turn its exceptions into responses.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memberauth.core.exceptions import (
    AccountNotFound,
    EmailTaken,
    Forbidden,
    InvalidCredentials,
    StoreUnavailable,
)
from memberauth.core.security import get_password_hash, verify_password
from memberauth.models.account import ROLE_ADMIN, ROLE_USER, Account
from memberauth.models.session import Session
from memberauth.schemas.account import Principal, validate_login, validate_signup
from memberauth.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession, sessions: SessionStore | None = None) -> None:
        self.db = db
        self.sessions = sessions or SessionStore(db)

    # ── Accounts ────────────────────────────────────────────────────
    async def get_account(self, email: str) -> Account | None:
        try:
            result = await self.db.execute(select(Account).where(Account.email == email))
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc
        return result.scalar_one_or_none()

    async def list_accounts(self) -> list[Account]:
        try:
            result = await self.db.execute(select(Account).order_by(Account.email))
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc
        return list(result.scalars().all())

    async def signup(
        self,
        name: str | None,
        email: str | None,
        password: str | None,
        replaces: str | None = None,
    ) -> Session:
        """Create a ``user`` account and open a session for it.

        ``replaces`` works as in :meth:`login`.
        """
        form = validate_signup(name, email, password)

        if await self.get_account(form.email) is not None:
            logger.info("Signup rejected, email already registered: %s", form.email)
            raise EmailTaken()

        account = Account(
            email=form.email,
            name=form.name,
            hashed_password=get_password_hash(form.password),
            role=ROLE_USER,
        )
        self.db.add(account)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            # Lost a race against a concurrent signup for the same email.
            await self.db.rollback()
            logger.info("Signup rejected by unique index: %s", form.email)
            raise EmailTaken() from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StoreUnavailable() from exc

        logger.info("Account created: %s", account.email)
        return await self._open_session(account, replaces)

    async def login(
        self,
        email: str | None,
        password: str | None,
        replaces: str | None = None,
    ) -> Session:
        """Verify credentials and open a session.

        ``replaces`` is the id of a session already attached to the request;
        it is destroyed before the new one is created so ids are never
        reused across logins.
        """
        form = validate_login(email, password)

        account = await self.get_account(form.email)
        if account is None:
            logger.info("Login failed, no account for %s", form.email)
            raise AccountNotFound()
        if not verify_password(form.password, account.hashed_password):
            logger.info("Login failed, wrong password for %s", form.email)
            raise InvalidCredentials()

        session = await self._open_session(account, replaces)
        logger.info("Login: %s (%s)", account.email, account.role)
        return session

    async def _open_session(self, account: Account, replaces: str | None) -> Session:
        # A failed destroy leaves no orphan session behind.
        if replaces:
            await self.sessions.destroy(replaces)
        return await self.sessions.create(account)

    async def logout(self, session_id: str | None) -> None:
        """Destroy the session. Logging out of a missing session still succeeds."""
        if not session_id:
            return
        existed = await self.sessions.destroy(session_id)
        if existed:
            logger.info("Session %s destroyed", session_id)

    # ── Roles ───────────────────────────────────────────────────────
    async def promote(
        self, principal: Principal, session: Session | None, target_email: str
    ) -> None:
        await self._set_role(principal, session, target_email, ROLE_ADMIN)

    async def demote(
        self, principal: Principal, session: Session | None, target_email: str
    ) -> None:
        await self._set_role(principal, session, target_email, ROLE_USER)

    async def _set_role(
        self,
        principal: Principal,
        session: Session | None,
        target_email: str,
        role: str,
    ) -> None:
        if not principal.is_admin:
            logger.warning(
                "Role change to %s on %s refused for %s",
                role,
                target_email,
                principal.email or "anonymous",
            )
            raise Forbidden()

        target_email = target_email.strip().lower()
        try:
            await self.db.execute(
                update(Account).where(Account.email == target_email).values(role=role)
            )
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StoreUnavailable() from exc

        # Only the acting admin's own session is refreshed; other open
        # sessions keep their cached role until they log in again.
        if session is not None and principal.email == target_email:
            await self.sessions.update_role(session, role)

        logger.info("%s set role of %s to %s", principal.email, target_email, role)

    async def ensure_admin(self, email: str, password: str, name: str = "Administrator") -> bool:
        """Create an admin account unless one already exists for ``email``.

        The seed credentials go through the same rules as a signup.
        """
        form = validate_signup(name, email, password)
        if await self.get_account(form.email) is not None:
            return False
        self.db.add(
            Account(
                email=form.email,
                name=form.name,
                hashed_password=get_password_hash(form.password),
                role=ROLE_ADMIN,
            )
        )
        try:
            await self.db.commit()
        except IntegrityError:
            # Another worker seeded it first.
            await self.db.rollback()
            return False
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StoreUnavailable() from exc
        return True
