"""
Domain errors and global exception handlers.

Business-rule errors (bad input, email taken, failed login, forbidden) are
rendered back to the user; infrastructure errors become an opaque 500 page
and are logged with their traceback.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from memberauth.core.templating import templates

logger = logging.getLogger(__name__)


# ── Taxonomy ────────────────────────────────────────────────────────
class AuthError(Exception):
    """Base class for every error raised by the auth service."""

    message = "Authentication error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(AuthError):
    message = "Invalid input"


class EmailTaken(AuthError):
    message = "An account with that email is already registered."


class AuthenticationFailed(AuthError):
    """Login failure. Subclasses tell the logs why; users only see this message."""

    message = "Invalid email or password."


class AccountNotFound(AuthenticationFailed):
    pass


class InvalidCredentials(AuthenticationFailed):
    pass


class Forbidden(AuthError):
    message = "Admin privileges required."


class StoreUnavailable(AuthError):
    message = "The account store is unavailable."


class SessionStoreError(StoreUnavailable):
    message = "The session store is unavailable."


class LoginRequired(Exception):
    """Raised by route gates to send an anonymous visitor elsewhere."""

    def __init__(self, location: str) -> None:
        super().__init__(location)
        self.location = location


# ── Handlers ────────────────────────────────────────────────────────
def _render(
    request: Request, name: str, status_code: int, **context: object
) -> HTMLResponse:
    return templates.TemplateResponse(
        request, name, context, status_code=status_code
    )


async def _login_required_handler(_request: Request, exc: LoginRequired) -> RedirectResponse:
    return RedirectResponse(exc.location, status_code=302)


async def _forbidden_handler(request: Request, exc: Forbidden) -> HTMLResponse:
    return _render(request, "unauthorized.html", 403)


async def _store_error_handler(request: Request, exc: StoreUnavailable) -> HTMLResponse:
    logger.error("Store failure: %s", exc, exc_info=True)
    return _render(request, "error.html", 500, message="Internal server error", redirect_url="/")


async def _sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> HTMLResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return _render(request, "error.html", 500, message="Internal server error", redirect_url="/")


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> HTMLResponse:
    if exc.status_code == 404:
        return _render(request, "404.html", 404)
    return _render(
        request, "error.html", exc.status_code, message=str(exc.detail), redirect_url="/"
    )


async def _generic_exception_handler(request: Request, exc: Exception) -> HTMLResponse:
    logger.exception("Unhandled exception: %s", exc)
    return _render(request, "error.html", 500, message="Internal server error", redirect_url="/")


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(LoginRequired, _login_required_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Forbidden, _forbidden_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StoreUnavailable, _store_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)

