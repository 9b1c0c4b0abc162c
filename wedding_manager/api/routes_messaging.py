"""
MMS/SMS delivery routes - requires an authenticated session
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wedding_manager.core.db import get_db
from wedding_manager.schemas.guest import GuestSelection
from wedding_manager.services.clicksend_client import ClickSendClient, get_messaging_client
from wedding_manager.services.delivery_service import DeliveryService
from wedding_manager.services.storage_service import StorageService, get_storage
from wedding_manager.utils.responses import success_response
from wedding_manager.utils.security import AuthContext, get_auth_context

router = APIRouter()

def _batch_message(label: str, summary: dict) -> str:
    return f"{label}: {summary['success']} sent, {summary['failed']} failed"

@router.post("/mms/send-invitation")
async def send_invitations(
    payload: GuestSelection,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
    client: ClickSendClient = Depends(get_messaging_client)
):
    """Send the invitation MMS to each selected guest"""
    result = await DeliveryService.send_invitations(ctx, payload.guest_ids, client, db)
    return success_response(message=_batch_message("Invitations", result["summary"]), data=result)

@router.post("/mms/send-qr")
async def send_qr_codes(
    payload: GuestSelection,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
    client: ClickSendClient = Depends(get_messaging_client),
    storage: StorageService = Depends(get_storage)
):
    """Send each selected guest their seating QR code"""
    result = await DeliveryService.send_qr_codes(ctx, payload.guest_ids, client, storage, db)
    return success_response(message=_batch_message("QR codes", result["summary"]), data=result)

@router.post("/sms/send-reminder")
async def send_reminders(
    payload: GuestSelection,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
    client: ClickSendClient = Depends(get_messaging_client)
):
    result = await DeliveryService.send_reminders(ctx, payload.guest_ids, client, db)
    return success_response(message=_batch_message("Reminders", result["summary"]), data=result)

@router.get("/mms/balance")
async def get_balance(
    ctx: AuthContext = Depends(get_auth_context),
    client: ClickSendClient = Depends(get_messaging_client)
):
    """Remaining gateway credit"""
    balance = await client.get_account_balance()
    return success_response(
        message="Balance retrieved" if balance else "Balance unavailable",
        data=balance
    )
