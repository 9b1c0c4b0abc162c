"""
Configuration settings for the application
"""

import os
from typing import List, Optional
from pydantic_settings import BaseSettings

from wedding_manager.utils.errors import ConfigurationError

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./wedding_manager.db")

    # Firebase (auth + storage)
    FIREBASE_CREDENTIALS_JSON: Optional[str] = os.getenv("FIREBASE_CREDENTIALS_JSON")
    FIREBASE_CREDENTIALS_FILE: Optional[str] = os.getenv("FIREBASE_CREDENTIALS_FILE")
    FIREBASE_CREDENTIALS_B64: Optional[str] = os.getenv("FIREBASE_CREDENTIALS_B64")
    FIREBASE_STORAGE_BUCKET: Optional[str] = os.getenv("FIREBASE_STORAGE_BUCKET")

    # Application
    APP_BASE_URL: Optional[str] = os.getenv("APP_BASE_URL")

    # ClickSend gateway
    CLICKSEND_USERNAME: Optional[str] = os.getenv("CLICKSEND_USERNAME")
    CLICKSEND_API_KEY: Optional[str] = os.getenv("CLICKSEND_API_KEY")
    CLICKSEND_API_URL: str = os.getenv("CLICKSEND_API_URL", "https://rest.clicksend.com/v3")
    CLICKSEND_SENDER_ID: str = "Wedding"
    MMS_SEND_DELAY_SECONDS: float = 0.1

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # File limits
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Rate limiting (public RSVP / QR endpoints)
    RATE_LIMIT_PER_MINUTE: int = 30

    # Passcode regeneration attempts on name+passcode collision
    PASSCODE_MAX_ATTEMPTS: int = 5

    class Config:
        env_file = ".env"

    def require_base_url(self) -> str:
        """Base URL for RSVP and QR links; links cannot be built without it"""
        if not self.APP_BASE_URL:
            raise ConfigurationError("APP_BASE_URL is not configured")
        return self.APP_BASE_URL.rstrip("/")

settings = Settings()
