"""
Admin endpoints — account listing and promote / demote.

Every route here sits behind ``require_admin``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from memberauth.api.deps import get_auth_service, get_current_session, require_admin
from memberauth.core.templating import templates
from memberauth.models.session import Session
from memberauth.schemas.account import AccountRead, Principal
from memberauth.services.auth import AuthService

router = APIRouter(tags=["admin"])


@router.get("/admin", response_class=HTMLResponse)
async def admin_panel(
    request: Request,
    principal: Principal = Depends(require_admin),
    auth: AuthService = Depends(get_auth_service),
) -> HTMLResponse:
    accounts = [AccountRead.model_validate(a) for a in await auth.list_accounts()]
    return templates.TemplateResponse(
        request, "admin.html", {"users": accounts, "principal": principal}
    )


@router.get("/promote/{email}")
async def promote(
    email: str,
    principal: Principal = Depends(require_admin),
    session: Optional[Session] = Depends(get_current_session),
    auth: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    await auth.promote(principal, session, email)
    return RedirectResponse("/admin", status_code=302)


@router.get("/demote/{email}")
async def demote(
    email: str,
    principal: Principal = Depends(require_admin),
    session: Optional[Session] = Depends(get_current_session),
    auth: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    await auth.demote(principal, session, email)
    return RedirectResponse("/admin", status_code=302)
