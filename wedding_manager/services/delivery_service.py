"""
Invitation, QR code and reminder delivery.

Each send is attempted exactly once; failures are logged per guest and never
stop the rest of the batch.
"""

import logging
import time
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from wedding_manager.core.config import settings as app_settings
from wedding_manager.models import Guest, MessageStatus, MessageType, WeddingSettings
from wedding_manager.services.clicksend_client import ClickSendClient, MMSMessage, SMSMessage, SendResult, summarize
from wedding_manager.services.qr_service import QRService
from wedding_manager.services.repositories import GuestRepo, MessageLogRepo, SettingsRepo
from wedding_manager.services.storage_service import StorageService
from wedding_manager.utils.errors import NotFound, ValidationFailed
from wedding_manager.utils.formatting import format_wedding_date, format_wedding_time
from wedding_manager.utils.security import AuthContext

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    guest_id: int
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if data["error"] is None:
            del data["error"]
        return data


# -------- Message composition --------

def rsvp_link(base_url: str, guest: Guest) -> str:
    """Deep link that pre-fills the RSVP form"""
    return f"{base_url}/rsvp?{urlencode({'name': guest.first_name, 'code': guest.passcode})}"


def compose_invitation(guest: Guest, wedding: WeddingSettings, base_url: str) -> str:
    lines = [
        f"Dear {guest.first_name},",
        "",
        f"You're invited to {wedding.couple_names}'s wedding!",
        "",
        f"Date: {format_wedding_date(wedding.wedding_date)}",
        f"Time: {format_wedding_time(wedding.wedding_time)}",
        f"Venue: {wedding.venue_name}",
    ]
    if wedding.venue_address:
        lines.append(f"Address: {wedding.venue_address}")
    lines += [
        "",
        f"RSVP here: {rsvp_link(base_url, guest)}",
        f"Your passcode: {guest.passcode}",
        "",
        "We hope to see you there!",
    ]
    return "\n".join(lines)


def compose_qr_message(guest: Guest, wedding: WeddingSettings) -> str:
    assignment = guest.table_assignment
    table_name = assignment.table.name if assignment and assignment.table else None
    table_line = f"Your table: {table_name}" if table_name else "Table assignment coming soon!"
    return (
        f"Hi {guest.first_name}! 🎉\n\n"
        f"Here's your QR code for {wedding.couple_names}'s wedding.\n\n"
        f"{table_line}\n\n"
        "Show this QR code when you arrive, or scan it to see your seating details.\n\n"
        "See you there! 💕"
    )


def compose_reminder(guest: Guest, wedding: WeddingSettings, base_url: str) -> str:
    return (
        f"Hi {guest.first_name}, a reminder to RSVP for {wedding.couple_names}'s wedding "
        f"on {format_wedding_date(wedding.wedding_date)}. "
        f"RSVP here: {rsvp_link(base_url, guest)} (passcode: {guest.passcode})"
    )


class DeliveryService:
    """Orchestrates MMS/SMS sends for selected guests"""

    @staticmethod
    def _load(ctx: AuthContext, guest_ids: Optional[List[int]], db: Session):
        if not guest_ids:
            raise ValidationFailed("No guests selected")

        wedding = SettingsRepo.get(ctx, db)
        if wedding is None:
            raise ValidationFailed("Please set up your wedding details first")

        guests = GuestRepo.get_many(ctx, guest_ids, db)
        if not guests:
            raise NotFound(message="No guests found")

        return wedding, guests

    @staticmethod
    def _record(
        guest: Guest,
        message_type: MessageType,
        result: SendResult,
        db: Session,
        stamp_field: Optional[str] = None
    ) -> DeliveryResult:
        """Stamp + log one outcome"""
        if result.success:
            now = datetime.utcnow()
            if stamp_field:
                setattr(guest, stamp_field, now)
                db.commit()
            MessageLogRepo.append(
                guest.id, message_type.value, MessageStatus.SENT.value, db,
                provider_message_id=result.message_id, sent_at=now
            )
            return DeliveryResult(guest_id=guest.id, success=True)

        logger.warning(f"{message_type.value} to guest {guest.id} failed: {result.error}")
        MessageLogRepo.append(
            guest.id, message_type.value, MessageStatus.FAILED.value, db,
            error_message=result.error
        )
        return DeliveryResult(guest_id=guest.id, success=False, error=result.error)

    @staticmethod
    def _report(results: List[DeliveryResult]) -> Dict[str, Any]:
        summary = summarize(results)
        logger.info(f"Delivery finished: {summary}")
        return {"results": [r.to_dict() for r in results], "summary": summary}

    @staticmethod
    async def send_invitations(
        ctx: AuthContext,
        guest_ids: Optional[List[int]],
        client: ClickSendClient,
        db: Session
    ) -> Dict[str, Any]:
        """MMS the invitation image with a personalised RSVP message"""
        base_url = app_settings.require_base_url()
        wedding, guests = DeliveryService._load(ctx, guest_ids, db)

        if not wedding.invitation_image_url:
            raise ValidationFailed("Please upload an invitation image first")

        messages = [
            MMSMessage(
                to=guest.phone,
                body=compose_invitation(guest, wedding, base_url),
                media_url=wedding.invitation_image_url,
                subject=f"{wedding.couple_names} Wedding Invitation",
            )
            for guest in guests
        ]
        send_results = await client.send_bulk_mms(messages)

        results = [
            DeliveryService._record(guest, MessageType.INVITATION, result, db, "invitation_sent_at")
            for guest, result in zip(guests, send_results)
        ]
        return DeliveryService._report(results)

    @staticmethod
    def _prepare_qr(guest: Guest, base_url: str, storage: StorageService, db: Session) -> str:
        """Ensure the guest has a QR code, render it and return the uploaded image URL"""
        if not guest.qr_code:
            guest.qr_code = QRService.generate_qr_code()
            db.commit()

        image = QRService.generate_qr_buffer(guest.qr_code, base_url)
        path = f"qr-codes/{guest.id}-{int(time.time() * 1000)}.{image.extension}"
        return storage.upload_public(path, image.buffer, image.mime_type)

    @staticmethod
    async def send_qr_codes(
        ctx: AuthContext,
        guest_ids: Optional[List[int]],
        client: ClickSendClient,
        storage: StorageService,
        db: Session
    ) -> Dict[str, Any]:
        """MMS each guest their seating QR code"""
        base_url = app_settings.require_base_url()
        wedding, guests = DeliveryService._load(ctx, guest_ids, db)

        outcomes: Dict[int, DeliveryResult] = {}
        ready: List[Guest] = []
        messages: List[MMSMessage] = []

        for guest in guests:
            try:
                media_url = DeliveryService._prepare_qr(guest, base_url, storage, db)
            except Exception as e:
                # One guest's render/upload failure must not stop the batch
                logger.exception(f"Error preparing QR for guest {guest.id}")
                db.rollback()
                outcomes[guest.id] = DeliveryService._record(
                    guest, MessageType.QR_CODE, SendResult(success=False, to=guest.phone, error=str(e)), db
                )
                continue

            ready.append(guest)
            messages.append(MMSMessage(
                to=guest.phone,
                body=compose_qr_message(guest, wedding),
                media_url=media_url,
                subject="Your Wedding QR Code",
            ))

        send_results = await client.send_bulk_mms(messages)
        for guest, result in zip(ready, send_results):
            outcomes[guest.id] = DeliveryService._record(guest, MessageType.QR_CODE, result, db, "qr_sent_at")

        return DeliveryService._report([outcomes[g.id] for g in guests])

    @staticmethod
    async def send_reminders(
        ctx: AuthContext,
        guest_ids: Optional[List[int]],
        client: ClickSendClient,
        db: Session
    ) -> Dict[str, Any]:
        """Text-only RSVP reminder, sent in a single gateway call"""
        base_url = app_settings.require_base_url()
        wedding, guests = DeliveryService._load(ctx, guest_ids, db)

        messages = [SMSMessage(to=g.phone, body=compose_reminder(g, wedding, base_url)) for g in guests]
        send_results = await client.send_bulk_sms(messages)

        results = [
            DeliveryService._record(guest, MessageType.REMINDER, result, db)
            for guest, result in zip(guests, send_results)
        ]
        return DeliveryService._report(results)
