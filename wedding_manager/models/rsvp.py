"""
RSVP model (exactly one per guest)
"""

import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from wedding_manager.core.db import Base

class RSVPStatus(str, enum.Enum):
    PENDING = "pending"
    ATTENDING = "attending"
    NOT_ATTENDING = "not_attending"

class RSVP(Base):
    __tablename__ = "rsvps"

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id", ondelete="CASCADE"), unique=True, nullable=False)
    status = Column(String(20), nullable=False, default=RSVPStatus.PENDING.value)
    number_attending = Column(Integer, nullable=False, default=0)  # party size incl. the guest
    responded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    guest = relationship("Guest", back_populates="rsvp")
