"""
Wedding settings schemas
"""

from typing import Optional
from pydantic import BaseModel

class WeddingSettingsUpdate(BaseModel):
    """Create-or-update payload; presence of required fields is checked by the route"""
    couple_names: Optional[str] = None
    wedding_date: Optional[str] = None
    wedding_time: Optional[str] = None
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    invitation_image_url: Optional[str] = None
