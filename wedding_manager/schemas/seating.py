"""
Floor plan, table and assignment schemas
"""

from typing import Optional
from pydantic import BaseModel

class TableCreate(BaseModel):
    name: Optional[str] = None
    shape: Optional[str] = None
    capacity: Optional[float] = None
    position_x: Optional[float] = None
    position_y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    rotation: Optional[float] = None

class TableUpdate(TableCreate):
    id: Optional[int] = None

class FloorPlanUpdate(BaseModel):
    width: Optional[int] = None
    height: Optional[int] = None
    background_image_url: Optional[str] = None

class AssignmentRequest(BaseModel):
    guest_id: Optional[int] = None
    table_id: Optional[int] = None
