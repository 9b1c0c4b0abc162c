"""
Floor plan, table and table assignment models
"""

import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from wedding_manager.core.db import Base

class TableShape(str, enum.Enum):
    ROUND = "round"
    RECTANGULAR = "rectangular"
    SQUARE = "square"

class FloorPlan(Base):
    __tablename__ = "floor_plans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), unique=True, nullable=False, index=True)
    width = Column(Integer, nullable=False, default=1000)
    height = Column(Integer, nullable=False, default=700)
    background_image_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tables = relationship(
        "Table", back_populates="floor_plan", cascade="all, delete-orphan", order_by="Table.id"
    )

class Table(Base):
    __tablename__ = "tables"

    id = Column(Integer, primary_key=True, index=True)
    floor_plan_id = Column(Integer, ForeignKey("floor_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    shape = Column(String(20), nullable=False, default=TableShape.ROUND.value)
    capacity = Column(Integer, nullable=False, default=8)
    position_x = Column(Integer, nullable=False, default=10)  # percent of container width
    position_y = Column(Integer, nullable=False, default=10)  # percent of container height
    width = Column(Integer, nullable=False, default=80)  # design-space pixels
    height = Column(Integer, nullable=False, default=80)
    rotation = Column(Integer, nullable=False, default=0)  # degrees
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    floor_plan = relationship("FloorPlan", back_populates="tables")
    assignments = relationship("TableAssignment", back_populates="table", cascade="all, delete-orphan")

class TableAssignment(Base):
    __tablename__ = "table_assignments"

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id", ondelete="CASCADE"), unique=True, nullable=False)
    table_id = Column(Integer, ForeignKey("tables.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_number = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    guest = relationship("Guest", back_populates="table_assignment")
    table = relationship("Table", back_populates="assignments")
