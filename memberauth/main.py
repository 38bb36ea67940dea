"""
Member area — application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `api/`, `services/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from memberauth.api.api import api_router
from memberauth.core.config import settings
from memberauth.core.exceptions import register_exception_handlers
from memberauth.db.base import Base
from memberauth.db.engine import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from memberauth.models.account import Account  # noqa: F401
from memberauth.models.session import Session  # noqa: F401
from memberauth.services.auth import AuthService
from memberauth.services.session_store import SessionStore

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables (including the unique index on accounts.email)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    async with async_session_factory() as db:
        purged = await SessionStore(db).purge_expired()
        if purged:
            logger.info("Purged %d expired sessions", purged)

        # Seed default admin user on first run
        if settings.FIRST_ADMIN_EMAIL and settings.FIRST_ADMIN_PASSWORD:
            created = await AuthService(db).ensure_admin(
                settings.FIRST_ADMIN_EMAIL, settings.FIRST_ADMIN_PASSWORD
            )
            if created:
                logger.info(
                    "Default admin created: %s (password: <redacted>)",
                    settings.FIRST_ADMIN_EMAIL,
                )

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Signup, login and a role-gated admin area",
        version=settings.VERSION,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    # Global exception handlers (redirects, 403/404 pages, no stack-trace leakage)
    register_exception_handlers(application)

    # Images for the members page
    static_dir = Path(__file__).resolve().parent / "static"
    if static_dir.is_dir():
        application.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
        logger.info("Static files mounted from %s", static_dir)

    application.include_router(api_router)

    return application


app = create_app()
