"""
Auth endpoints — signup, login and logout.

Successful signup/login sets an HttpOnly cookie carrying only the signed
session id; everything else about the session stays server-side.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response

from memberauth.api.deps import get_auth_service
from memberauth.core.config import settings
from memberauth.core.exceptions import (
    AuthenticationFailed,
    EmailTaken,
    SessionStoreError,
    ValidationError,
)
from memberauth.core.security import decode_session_cookie, encode_session_cookie
from memberauth.core.templating import templates
from memberauth.models.session import Session
from memberauth.services.auth import AuthService

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


def _set_session_cookie(response: Response, session: Session) -> None:
    expires_at = session.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    max_age = int((expires_at - datetime.now(timezone.utc)).total_seconds())
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=encode_session_cookie(session.session_id, expires_at),
        httponly=True,
        secure=settings.COOKIE_SECURE,  # Set to True in HTTPS production
        samesite="lax",
        max_age=max(max_age, 0),
    )


def _session_id_from(request: Request) -> str | None:
    cookie = request.cookies.get(settings.SESSION_COOKIE_NAME)
    return decode_session_cookie(cookie) if cookie else None


# ── Signup ──────────────────────────────────────────────────────────
@router.get("/signup", response_class=HTMLResponse)
async def signup_form(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "signup.html", {"email_taken": False})


@router.post("/signup")
async def signup(
    request: Request,
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    auth: AuthService = Depends(get_auth_service),
) -> Response:
    try:
        session = await auth.signup(name, email, password, replaces=_session_id_from(request))
    except ValidationError as exc:
        return templates.TemplateResponse(
            request,
            "error.html",
            {"message": f"Error: {exc.message}", "redirect_url": "/signup"},
            status_code=400,
        )
    except EmailTaken:
        return templates.TemplateResponse(
            request, "signup.html", {"email_taken": True}, status_code=409
        )

    response = RedirectResponse("/members", status_code=303)
    _set_session_cookie(response, session)
    return response


# ── Login ───────────────────────────────────────────────────────────
@router.get("/login", response_class=HTMLResponse)
async def login_form(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "login.html")


@router.post("/login")
async def login(
    request: Request,
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    auth: AuthService = Depends(get_auth_service),
) -> Response:
    try:
        session = await auth.login(email, password, replaces=_session_id_from(request))
    except ValidationError as exc:
        return templates.TemplateResponse(
            request,
            "error.html",
            {"message": f"Login error: {exc.message}", "redirect_url": "/login"},
            status_code=400,
        )
    except AuthenticationFailed:
        # Same page for unknown email and wrong password.
        return templates.TemplateResponse(
            request,
            "error.html",
            {"message": AuthenticationFailed.message, "redirect_url": "/login"},
            status_code=401,
        )

    response = RedirectResponse("/", status_code=303)
    _set_session_cookie(response, session)
    return response


# ── Logout ──────────────────────────────────────────────────────────
@router.get("/logout", response_class=HTMLResponse)
async def logout(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> Response:
    """Destroy the server-side session and clear the cookie."""
    try:
        await auth.logout(_session_id_from(request))
    except SessionStoreError:
        logger.error("Error destroying session", exc_info=True)
        return PlainTextResponse("Error logging out.", status_code=500)

    response = templates.TemplateResponse(request, "logout.html")
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response
