"""
Append-only log of message send attempts
"""

import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from wedding_manager.core.db import Base

class MessageType(str, enum.Enum):
    INVITATION = "invitation"
    QR_CODE = "qr_code"
    REMINDER = "reminder"

class MessageStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"

class MessageLog(Base):
    __tablename__ = "message_logs"

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id", ondelete="CASCADE"), nullable=False, index=True)
    message_type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=MessageStatus.PENDING.value)
    provider_message_id = Column(String(100), nullable=True)
    sent_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    guest = relationship("Guest", back_populates="message_logs")
