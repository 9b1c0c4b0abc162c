"""
Guest list management
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wedding_manager.core.config import settings
from wedding_manager.models import Guest
from wedding_manager.services.repositories import GuestRepo, PlusOneRepo, RSVPRepo, clean_names
from wedding_manager.utils.errors import DuplicateGuestError, NotFound, ValidationFailed, WeddingError
from wedding_manager.utils.passcode import generate_passcode
from wedding_manager.utils.phone import format_au_phone, is_valid_au_mobile
from wedding_manager.utils.security import AuthContext

logger = logging.getLogger(__name__)


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


class GuestService:
    """Service for guest CRUD operations"""

    @staticmethod
    def validate_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
        """Required-field and format checks; raises before anything is written"""
        first_name = (fields.get("first_name") or "").strip()
        phone = (fields.get("phone") or "").strip()
        if not first_name or not phone:
            raise ValidationFailed("First name and phone are required")

        if not is_valid_au_mobile(phone):
            raise ValidationFailed("Please enter a valid Australian mobile number")

        plus_ones_allowed = fields.get("plus_ones_allowed") or 0
        if plus_ones_allowed < 0:
            raise ValidationFailed("Plus-ones allowed cannot be negative")

        return {
            "first_name": first_name,
            "last_name": _optional_text(fields.get("last_name")),
            "phone": format_au_phone(phone),
            "plus_ones_allowed": plus_ones_allowed,
            "notes": _optional_text(fields.get("notes")),
            "group_name": _optional_text(fields.get("group_name")),
        }

    @staticmethod
    def unique_passcode(first_name: str, db: Session) -> str:
        """Regenerate while another guest with this first name holds the same passcode"""
        for _ in range(settings.PASSCODE_MAX_ATTEMPTS):
            passcode = generate_passcode(first_name)
            if not GuestRepo.passcode_taken(first_name, passcode, db):
                return passcode
            logger.info(f"Passcode collision for '{first_name}', regenerating")

        logger.error(f"No free passcode for '{first_name}' after {settings.PASSCODE_MAX_ATTEMPTS} attempts")
        raise WeddingError("Could not generate a unique passcode, please try again", error_code="passcode_unavailable")

    @staticmethod
    def list_guests(ctx: AuthContext, db: Session) -> List[Guest]:
        return GuestRepo.list(ctx, db)

    @staticmethod
    def get_guest(ctx: AuthContext, guest_id: int, db: Session) -> Guest:
        guest = GuestRepo.get(ctx, guest_id, db)
        if guest is None:
            raise NotFound("Guest")
        return guest

    @staticmethod
    def create_guest(
        ctx: AuthContext,
        fields: Dict[str, Any],
        plus_one_names: List[Optional[str]],
        db: Session
    ) -> Guest:
        values = GuestService.validate_fields(fields)

        guest = Guest(
            user_id=ctx.account_id,
            passcode=GuestService.unique_passcode(values["first_name"], db),
            **values
        )
        db.add(guest)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise DuplicateGuestError()
        db.refresh(guest)

        names = clean_names(plus_one_names)
        if names:
            PlusOneRepo.replace_all(guest, names, db)

        # Every guest starts with a pending RSVP
        RSVPRepo.create_pending(guest.id, db)

        logger.info(f"Created guest {guest.id} for account {ctx.account_id}")
        return GuestService.get_guest(ctx, guest.id, db)

    @staticmethod
    def update_guest(
        ctx: AuthContext,
        guest_id: int,
        fields: Dict[str, Any],
        plus_one_names: List[Optional[str]],
        db: Session
    ) -> Guest:
        values = GuestService.validate_fields(fields)
        guest = GuestService.get_guest(ctx, guest_id, db)

        new_name = values["first_name"]
        if new_name.lower() != guest.first_name.lower() and GuestRepo.passcode_taken(new_name, guest.passcode, db):
            guest.passcode = GuestService.unique_passcode(new_name, db)

        for key, value in values.items():
            setattr(guest, key, value)
        guest.updated_at = datetime.utcnow()

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise DuplicateGuestError()

        # Plus-ones have no stable identity: replaced wholesale on every edit
        PlusOneRepo.replace_all(guest, plus_one_names, db)

        db.expire_all()
        return GuestService.get_guest(ctx, guest_id, db)

    @staticmethod
    def delete_guest(ctx: AuthContext, guest_id: int, db: Session) -> None:
        guest = GuestService.get_guest(ctx, guest_id, db)
        # plus-ones, RSVP, assignment and message log cascade
        db.delete(guest)
        db.commit()
        logger.info(f"Deleted guest {guest_id} for account {ctx.account_id}")
