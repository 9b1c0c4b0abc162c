"""
Wedding settings (one row per organizer account)
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from wedding_manager.models import WeddingSettings
from wedding_manager.services.repositories import SettingsRepo
from wedding_manager.utils.errors import ValidationFailed
from wedding_manager.utils.security import AuthContext

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("couple_names", "wedding_date", "wedding_time", "venue_name")
OPTIONAL_FIELDS = ("venue_address", "invitation_image_url")


class SettingsService:
    """Service for wedding settings"""

    @staticmethod
    def get_settings(ctx: AuthContext, db: Session) -> Optional[WeddingSettings]:
        return SettingsRepo.get(ctx, db)

    @staticmethod
    def save_settings(ctx: AuthContext, fields: Dict[str, Any], db: Session) -> WeddingSettings:
        """Create on first save, update thereafter"""
        if any(not (fields.get(key) or "").strip() for key in REQUIRED_FIELDS):
            raise ValidationFailed("Missing required fields")

        try:
            date.fromisoformat(fields["wedding_date"].strip()[:10])
            datetime.strptime(fields["wedding_time"].strip()[:5], "%H:%M")
        except ValueError:
            raise ValidationFailed("Wedding date must be YYYY-MM-DD and time HH:MM")

        settings = SettingsRepo.get(ctx, db)
        if settings is None:
            settings = WeddingSettings(user_id=ctx.account_id)
            db.add(settings)
            logger.info(f"Creating wedding settings for account {ctx.account_id}")

        for key in REQUIRED_FIELDS:
            setattr(settings, key, fields[key].strip())
        settings.wedding_date = settings.wedding_date[:10]
        settings.wedding_time = settings.wedding_time[:5]
        for key in OPTIONAL_FIELDS:
            if key in fields:
                setattr(settings, key, (fields[key] or "").strip() or None)
        settings.updated_at = datetime.utcnow()

        db.commit()
        db.refresh(settings)
        return settings

    @staticmethod
    def set_invitation_image(ctx: AuthContext, url: str, db: Session) -> WeddingSettings:
        settings = SettingsRepo.get(ctx, db)
        if settings is None:
            raise ValidationFailed("Please set up your wedding details first")
        settings.invitation_image_url = url
        settings.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(settings)
        return settings
