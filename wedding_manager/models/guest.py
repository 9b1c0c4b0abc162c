"""
Guest and plus-one models
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from wedding_manager.core.db import Base

class Guest(Base):
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(20), nullable=False)  # E.164
    passcode = Column(String(20), nullable=False)
    plus_ones_allowed = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    group_name = Column(String(100), nullable=True)
    qr_code = Column(String(32), unique=True, nullable=True, index=True)
    invitation_sent_at = Column(DateTime, nullable=True)
    qr_sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Joined records are single optional values (uselist=False), never lists
    plus_ones = relationship(
        "PlusOne", back_populates="guest", cascade="all, delete-orphan", order_by="PlusOne.id"
    )
    rsvp = relationship("RSVP", back_populates="guest", uselist=False, cascade="all, delete-orphan")
    table_assignment = relationship(
        "TableAssignment", back_populates="guest", uselist=False, cascade="all, delete-orphan"
    )
    message_logs = relationship("MessageLog", back_populates="guest", cascade="all, delete-orphan")

    __table_args__ = (UniqueConstraint("user_id", "phone", name="uq_guests_user_phone"),)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

class PlusOne(Base):
    __tablename__ = "plus_ones"

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    guest = relationship("Guest", back_populates="plus_ones")
