"""
Guest-related Pydantic schemas
"""

from typing import List, Optional
from pydantic import BaseModel

class PlusOneInput(BaseModel):
    name: Optional[str] = None

class GuestInput(BaseModel):
    """Schema for creating or updating a guest"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    plus_ones_allowed: Optional[int] = 0
    notes: Optional[str] = None
    group_name: Optional[str] = None
    plus_ones: List[PlusOneInput] = []

class GuestSelection(BaseModel):
    """Guests selected for a bulk send"""
    guest_ids: Optional[List[int]] = None
