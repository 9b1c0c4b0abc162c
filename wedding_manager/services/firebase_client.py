"""
Firebase initialization and helpers (authentication + storage)
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any
import base64
import os

import firebase_admin
from firebase_admin import auth, credentials

from wedding_manager.core.config import settings
from wedding_manager.utils.errors import ConfigurationError


@lru_cache(maxsize=1)
def get_firebase_app() -> firebase_admin.App:
    """Initialize and return the cached default Firebase app.

    Expects credentials via one of: FIREBASE_CREDENTIALS_JSON, FIREBASE_CREDENTIALS_B64, FIREBASE_CREDENTIALS_FILE.
    """
    if firebase_admin._apps:
        return firebase_admin.get_app()

    info: dict[str, Any] | None = None
    if settings.FIREBASE_CREDENTIALS_JSON:
        info = json.loads(settings.FIREBASE_CREDENTIALS_JSON)
    elif settings.FIREBASE_CREDENTIALS_B64:
        decoded = base64.b64decode(settings.FIREBASE_CREDENTIALS_B64).decode("utf-8")
        info = json.loads(decoded)
    elif settings.FIREBASE_CREDENTIALS_FILE and os.path.exists(settings.FIREBASE_CREDENTIALS_FILE):
        with open(settings.FIREBASE_CREDENTIALS_FILE, "r", encoding="utf-8") as f:
            info = json.load(f)

    if not info:
        raise ConfigurationError("Firebase credentials not provided. Set FIREBASE_CREDENTIALS_FILE, FIREBASE_CREDENTIALS_JSON, or FIREBASE_CREDENTIALS_B64")

    options = {}
    if settings.FIREBASE_STORAGE_BUCKET:
        options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET

    cred = credentials.Certificate(info)
    return firebase_admin.initialize_app(cred, options)


def verify_session_token(id_token: str) -> str:
    """Verify a Firebase ID token and return the account uid"""
    decoded = auth.verify_id_token(id_token, app=get_firebase_app())
    return decoded["uid"]
