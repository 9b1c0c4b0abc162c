"""
Public RSVP schemas
"""

from typing import List, Optional
from pydantic import BaseModel

class RSVPValidateRequest(BaseModel):
    first_name: Optional[str] = None
    passcode: Optional[str] = None

class RSVPSubmitRequest(BaseModel):
    guest_id: Optional[int] = None
    passcode: Optional[str] = None
    status: Optional[str] = None
    number_attending: Optional[int] = None
    plus_one_names: Optional[List[str]] = None
