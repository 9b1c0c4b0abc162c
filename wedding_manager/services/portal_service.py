"""
Guest-facing portal: passcode-gated RSVP and QR-gated seating lookup.

No organizer session here; the passcode or QR code is the credential.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from wedding_manager.models import Guest, RSVPStatus
from wedding_manager.services.repositories import GuestRepo, PlusOneRepo, RSVPRepo, clean_names
from wedding_manager.utils.errors import NotFound, Unauthorized, ValidationFailed

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid name or passcode"


def _rsvp_view(guest: Guest) -> Dict[str, Any]:
    return {
        "id": guest.id,
        "first_name": guest.first_name,
        "last_name": guest.last_name,
        "plus_ones_allowed": guest.plus_ones_allowed,
        "plus_ones": [{"id": p.id, "name": p.name} for p in guest.plus_ones],
        "current_rsvp": {
            "status": guest.rsvp.status,
            "number_attending": guest.rsvp.number_attending,
        } if guest.rsvp else None,
    }


class PortalService:
    """Service for unauthenticated guest operations"""

    @staticmethod
    def validate_passcode(first_name: Optional[str], passcode: Optional[str], db: Session) -> Dict[str, Any]:
        """Look a guest up by first name + passcode.

        First name is compared case-insensitively and trimmed; the passcode is
        trimmed and lowercased. A miss never says which half was wrong.
        """
        if not first_name or not first_name.strip() or not passcode or not passcode.strip():
            raise ValidationFailed("Name and passcode are required")

        guest = GuestRepo.find_by_name_and_passcode(first_name, passcode, db)
        if guest is None:
            raise Unauthorized(INVALID_CREDENTIALS)

        return _rsvp_view(guest)

    @staticmethod
    def submit_rsvp(
        guest_id: Optional[int],
        passcode: Optional[str],
        status: Optional[str],
        number_attending: Optional[int],
        plus_one_names: Optional[List[str]],
        db: Session
    ) -> Dict[str, Any]:
        """Record (or overwrite) the guest's answer"""
        if not guest_id or not status or not passcode:
            raise ValidationFailed("Missing required fields")

        if status not in (RSVPStatus.ATTENDING.value, RSVPStatus.NOT_ATTENDING.value):
            raise ValidationFailed("Invalid status")

        guest = GuestRepo.get_public(guest_id, db)
        if guest is None or guest.passcode != passcode.strip().lower():
            raise Unauthorized(INVALID_CREDENTIALS)

        attending = status == RSVPStatus.ATTENDING.value
        if attending:
            number_attending = number_attending or 1
            max_party = 1 + guest.plus_ones_allowed
            if not 1 <= number_attending <= max_party:
                raise ValidationFailed(f"Number attending must be between 1 and {max_party}")

            names = clean_names(plus_one_names or [])
            if len(names) > guest.plus_ones_allowed:
                raise ValidationFailed(f"At most {guest.plus_ones_allowed} plus-one name(s) allowed")
        else:
            number_attending = 0

        rsvp = RSVPRepo.upsert(guest.id, status, number_attending, db, responded_at=datetime.utcnow())

        if attending and plus_one_names:
            PlusOneRepo.replace_all(guest, plus_one_names, db)

        logger.info(f"RSVP from guest {guest.id}: {status} ({number_attending})")
        return {
            "status": rsvp.status,
            "number_attending": rsvp.number_attending,
            "responded_at": rsvp.responded_at,
        }

    @staticmethod
    def lookup_qr(code: Optional[str], db: Session) -> Dict[str, Any]:
        """Seating info for the bearer of a QR code"""
        if not code:
            raise ValidationFailed("QR code is required")

        guest = GuestRepo.find_by_qr_code(code, db)
        if guest is None:
            logger.info("QR lookup for unknown code")
            raise NotFound(message="Invalid QR code")

        assignment = guest.table_assignment
        table_name = assignment.table.name if assignment and assignment.table else None

        return {
            "guest": {
                "first_name": guest.first_name,
                "last_name": guest.last_name,
            },
            "plus_ones": [{"name": p.name} for p in guest.plus_ones],
            "table": {"name": table_name} if table_name else None,
        }
