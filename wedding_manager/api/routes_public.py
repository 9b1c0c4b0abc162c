"""
Public routes - health check and the guest-facing pages
"""

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from wedding_manager.core.db import get_db
from wedding_manager.services.portal_service import PortalService
from wedding_manager.utils.errors import NotFound
from wedding_manager.api.routes_guest import check_rate_limit

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[1] / "templates"))

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/rsvp", response_class=HTMLResponse)
async def rsvp_page(
    request: Request,
    name: Optional[str] = None,
    code: Optional[str] = None
):
    """RSVP form, pre-filled from an invitation link"""
    return templates.TemplateResponse(request, "rsvp.html", {
        "title": "RSVP",
        "name": name or "",
        "code": code or "",
    })

@router.get("/qr/{code}", response_class=HTMLResponse)
async def qr_landing_page(
    code: str,
    request: Request,
    db: Session = Depends(get_db)
):
    """Landing page a guest's QR code points at"""
    check_rate_limit(request)

    try:
        info = PortalService.lookup_qr(code, db)
    except NotFound as e:
        return templates.TemplateResponse(
            request, "qr.html", {"title": "Invalid QR code", "error": e.message}, status_code=404
        )

    return templates.TemplateResponse(request, "qr.html", {"title": "Your Seat", "info": info, "error": None})
