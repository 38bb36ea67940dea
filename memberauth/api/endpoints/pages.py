"""
Landing and members-only pages.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from memberauth.api.deps import get_principal, require_member
from memberauth.core.config import settings
from memberauth.core.templating import templates
from memberauth.schemas.account import Principal

router = APIRouter(tags=["pages"])


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    principal: Principal = Depends(get_principal),
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "index.html",
        {"name": principal.name, "user_type": principal.role},
    )


@router.get("/members", response_class=HTMLResponse)
async def members(
    request: Request,
    principal: Principal = Depends(require_member),
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "members.html",
        {"name": principal.name or "Guest", "images": settings.MEMBER_IMAGES},
    )
