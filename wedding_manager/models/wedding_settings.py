"""
Wedding settings model (one row per organizer account)
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text

from wedding_manager.core.db import Base

class WeddingSettings(Base):
    __tablename__ = "wedding_settings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), unique=True, nullable=False, index=True)
    couple_names = Column(String(255), nullable=False)
    wedding_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    wedding_time = Column(String(8), nullable=False)  # HH:MM
    venue_name = Column(String(255), nullable=False)
    venue_address = Column(Text, nullable=True)
    invitation_image_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
