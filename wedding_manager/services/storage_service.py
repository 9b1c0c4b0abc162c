"""
Object storage for invitation images, floor-plan backgrounds and QR codes
"""

import logging
import time
from typing import Optional

from firebase_admin import storage

from wedding_manager.core.config import settings
from wedding_manager.services.firebase_client import get_firebase_app
from wedding_manager.utils.errors import ConfigurationError, ValidationFailed

logger = logging.getLogger(__name__)

class StorageService:
    """Uploads public files to the Firebase Storage bucket"""

    def __init__(self, bucket=None):
        self._bucket = bucket

    @property
    def bucket(self):
        if self._bucket is None:
            if not settings.FIREBASE_STORAGE_BUCKET:
                raise ConfigurationError("FIREBASE_STORAGE_BUCKET is not configured")
            self._bucket = storage.bucket(app=get_firebase_app())
        return self._bucket

    def upload_public(self, path: str, content: bytes, content_type: str) -> str:
        """Upload (overwriting) and return the public URL"""
        blob = self.bucket.blob(path)
        blob.upload_from_string(content, content_type=content_type)
        blob.make_public()
        logger.info(f"Uploaded {path} ({len(content)} bytes, {content_type})")
        return blob.public_url

    def upload_image(self, folder: str, owner_id: str, content: bytes, content_type: Optional[str]) -> str:
        """Validate and upload a user-supplied image under a timestamped name"""
        if not content_type or not content_type.startswith("image/"):
            raise ValidationFailed("Please upload an image file")
        if not content:
            raise ValidationFailed("Uploaded file is empty")
        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise ValidationFailed(f"File exceeds the {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB limit")

        extension = content_type.split("/", 1)[1].split("+", 1)[0]
        path = f"{folder}/{owner_id}-{int(time.time() * 1000)}.{extension}"
        return self.upload_public(path, content, content_type)

def get_storage() -> StorageService:
    """FastAPI dependency"""
    return StorageService()
