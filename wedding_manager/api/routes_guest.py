"""
Guest-facing API routes - gated by passcode or QR code, no session
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from wedding_manager.core.db import get_db
from wedding_manager.schemas.rsvp import RSVPSubmitRequest, RSVPValidateRequest
from wedding_manager.services.portal_service import PortalService
from wedding_manager.utils.errors import RateLimited
from wedding_manager.utils.responses import success_response
from wedding_manager.utils.security import rate_limit_check, get_client_ip

router = APIRouter()

def check_rate_limit(request: Request) -> None:
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        raise RateLimited()

@router.post("/rsvp/validate")
async def validate_passcode(
    request: Request,
    payload: RSVPValidateRequest,
    db: Session = Depends(get_db)
):
    """Find the invited guest for a first name + passcode"""
    check_rate_limit(request)

    guest = PortalService.validate_passcode(payload.first_name, payload.passcode, db)
    return success_response(message="Guest found", data=guest)

@router.post("/rsvp/submit")
async def submit_rsvp(
    request: Request,
    payload: RSVPSubmitRequest,
    db: Session = Depends(get_db)
):
    """Record the guest's RSVP (resubmitting overwrites)"""
    check_rate_limit(request)

    rsvp = PortalService.submit_rsvp(
        guest_id=payload.guest_id,
        passcode=payload.passcode,
        status=payload.status,
        number_attending=payload.number_attending,
        plus_one_names=payload.plus_one_names,
        db=db
    )
    return success_response(message="RSVP submitted successfully", data=rsvp)

@router.get("/qr/{code}")
async def lookup_qr(
    code: str,
    request: Request,
    db: Session = Depends(get_db)
):
    """Seating details for a scanned QR code"""
    check_rate_limit(request)

    info = PortalService.lookup_qr(code, db)
    return success_response(message="Guest information found", data=info)
