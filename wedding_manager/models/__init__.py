"""
Database models package
"""

from .wedding_settings import WeddingSettings
from .guest import Guest, PlusOne
from .rsvp import RSVP, RSVPStatus
from .floor_plan import FloorPlan, Table, TableShape, TableAssignment
from .message_log import MessageLog, MessageType, MessageStatus

__all__ = [
    "WeddingSettings",
    "Guest",
    "PlusOne",
    "RSVP",
    "RSVPStatus",
    "FloorPlan",
    "Table",
    "TableShape",
    "TableAssignment",
    "MessageLog",
    "MessageType",
    "MessageStatus",
]
