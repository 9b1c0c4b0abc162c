"""
Pydantic schemas package
"""

from .common import *
from .settings import *
from .guest import *
from .seating import *
from .rsvp import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "WeddingSettingsUpdate",
    "PlusOneInput",
    "GuestInput",
    "GuestSelection",
    "TableCreate",
    "TableUpdate",
    "FloorPlanUpdate",
    "AssignmentRequest",
    "RSVPValidateRequest",
    "RSVPSubmitRequest",
]
