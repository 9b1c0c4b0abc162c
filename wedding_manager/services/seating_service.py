"""
Seating arrangement: table capacity bookkeeping, assignments and floor-plan geometry
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from wedding_manager.models import FloorPlan, Guest, RSVPStatus, Table, TableAssignment, TableShape
from wedding_manager.services.repositories import AssignmentRepo, FloorPlanRepo, GuestRepo, TableRepo
from wedding_manager.utils.errors import CapacityExceededError, NotFound, ValidationFailed
from wedding_manager.utils.security import AuthContext

logger = logging.getLogger(__name__)

# Table sizes are authored against a 500px reference square
DESIGN_BASELINE = 500

# Dragged tables stay fully inside the container
DRAG_MAX_PERCENT = 95

SHAPE_DEFAULTS = {
    TableShape.ROUND.value: {"capacity": 8, "width": 80, "height": 80},
    TableShape.SQUARE.value: {"capacity": 8, "width": 80, "height": 80},
    TableShape.RECTANGULAR.value: {"capacity": 6, "width": 120, "height": 80},
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# -------- Occupancy --------

def party_size(guest: Guest) -> int:
    """People this guest brings: the RSVP's count when attending, otherwise 1"""
    rsvp = guest.rsvp
    if rsvp is not None and rsvp.status == RSVPStatus.ATTENDING.value:
        return rsvp.number_attending or 1
    return 1


def assigned_table_id(guest: Guest) -> Optional[int]:
    return guest.table_assignment.table_id if guest.table_assignment else None


def table_occupancy(table_id: int, guests: Iterable[Guest]) -> int:
    """Derived on every read; never stored"""
    return sum(party_size(g) for g in guests if assigned_table_id(g) == table_id)


def check_capacity(table: Table, guest: Guest, guests: Iterable[Guest]) -> None:
    """Reject moving a party onto a table without room for all of it"""
    if assigned_table_id(guest) == table.id:
        return

    occupancy = table_occupancy(table.id, guests)
    space_left = table.capacity - occupancy
    required = party_size(guest)
    if space_left < required:
        raise CapacityExceededError(
            f"Table '{table.name}' only has {max(space_left, 0)} seat(s) left; {required} needed",
            details={
                "table_id": table.id,
                "capacity": table.capacity,
                "occupancy": occupancy,
                "space_left": space_left,
                "required": required,
            },
        )


# -------- Floor-plan geometry --------

def scale_factor(container_width: float, container_height: float) -> float:
    base_size = min(container_width, container_height) or DESIGN_BASELINE
    return base_size / DESIGN_BASELINE


def render_geometry(table: Table, container_width: float, container_height: float) -> Dict[str, float]:
    """Pixel placement of a table inside a container of the given size"""
    factor = scale_factor(container_width, container_height)
    return {
        "left": table.position_x / 100 * container_width,
        "top": table.position_y / 100 * container_height,
        "width": table.width * factor,
        "height": table.height * factor,
        "rotation": table.rotation,
    }


def pixel_to_percent(pixel: float, container_size: float) -> int:
    """Drag position -> stored percentage, committed on release"""
    if container_size <= 0:
        return 0
    percent = max(0.0, min(pixel / container_size * 100, DRAG_MAX_PERCENT))
    return round_half_up(percent)


def default_position(ordinal: int) -> int:
    """Stagger new tables so they don't stack"""
    return 10 + (ordinal * 10) % 60


class SeatingService:
    """Service for floor plan, table and assignment operations"""

    # -------- Floor plan --------

    @staticmethod
    def get_floor_plan(ctx: AuthContext, db: Session) -> FloorPlan:
        return FloorPlanRepo.get_or_create(ctx, db)

    @staticmethod
    def update_floor_plan(ctx: AuthContext, changes: Dict[str, Any], db: Session) -> FloorPlan:
        floor_plan = FloorPlanRepo.get_or_create(ctx, db)

        for dimension in ("width", "height"):
            if changes.get(dimension) is not None:
                if changes[dimension] <= 0:
                    raise ValidationFailed(f"Floor plan {dimension} must be positive")
                setattr(floor_plan, dimension, int(changes[dimension]))

        if "background_image_url" in changes:
            floor_plan.background_image_url = changes["background_image_url"] or None

        db.commit()
        db.refresh(floor_plan)
        return floor_plan

    @staticmethod
    def floor_plan_layout(
        ctx: AuthContext,
        container_width: float,
        container_height: float,
        db: Session
    ) -> Dict[str, Any]:
        """Render-ready table geometry plus occupancy for a container size"""
        floor_plan = FloorPlanRepo.get_or_create(ctx, db)
        guests = GuestRepo.list(ctx, db)

        tables = []
        for table in floor_plan.tables:
            occupancy = table_occupancy(table.id, guests)
            tables.append({
                "id": table.id,
                "name": table.name,
                "shape": table.shape,
                "capacity": table.capacity,
                "occupancy": occupancy,
                "is_full": occupancy >= table.capacity,
                "is_over_capacity": occupancy > table.capacity,
                "style": render_geometry(table, container_width, container_height),
                "guests": [g.full_name for g in guests if assigned_table_id(g) == table.id],
            })

        return {
            "background_image_url": floor_plan.background_image_url,
            "scale_factor": scale_factor(container_width, container_height),
            "tables": tables,
        }

    # -------- Tables --------

    @staticmethod
    def list_tables(ctx: AuthContext, db: Session) -> List[Table]:
        if FloorPlanRepo.get(ctx, db) is None:
            return []
        return TableRepo.list(ctx, db)

    @staticmethod
    def _validated_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        errors = []

        if fields.get("name") is not None:
            name = str(fields["name"]).strip()
            if not name:
                errors.append("Table name cannot be blank")
            values["name"] = name

        if fields.get("shape") is not None:
            if fields["shape"] not in SHAPE_DEFAULTS:
                errors.append(f"Shape must be one of: {', '.join(SHAPE_DEFAULTS)}")
            values["shape"] = fields["shape"]

        for key in ("capacity", "width", "height"):
            if fields.get(key) is not None:
                values[key] = round_half_up(fields[key])
                if values[key] < 1:
                    errors.append(f"Table {key} must be at least 1")

        for key in ("position_x", "position_y"):
            if fields.get(key) is not None:
                values[key] = round_half_up(fields[key])
                if not 0 <= values[key] <= 100:
                    errors.append(f"Table {key} must be a percentage between 0 and 100")

        if fields.get("rotation") is not None:
            values["rotation"] = round_half_up(fields["rotation"]) % 360

        if errors:
            raise ValidationFailed("Validation failed", details=errors)
        return values

    @staticmethod
    def create_table(ctx: AuthContext, fields: Dict[str, Any], db: Session) -> Table:
        floor_plan = FloorPlanRepo.get_or_create(ctx, db)
        values = SeatingService._validated_fields(fields)

        ordinal = len(floor_plan.tables) + 1
        shape = values.get("shape", TableShape.ROUND.value)
        defaults = SHAPE_DEFAULTS[shape]

        table = Table(
            floor_plan_id=floor_plan.id,
            name=values.get("name") or f"Table {ordinal}",
            shape=shape,
            capacity=values.get("capacity", defaults["capacity"]),
            position_x=values.get("position_x", default_position(ordinal)),
            position_y=values.get("position_y", default_position(ordinal)),
            width=values.get("width", defaults["width"]),
            height=values.get("height", defaults["height"]),
            rotation=values.get("rotation", 0),
        )
        db.add(table)
        db.commit()
        db.refresh(table)
        logger.info(f"Created table {table.id} ({table.name}) for account {ctx.account_id}")
        return table

    @staticmethod
    def update_table(ctx: AuthContext, table_id: int, fields: Dict[str, Any], db: Session) -> Table:
        if FloorPlanRepo.get(ctx, db) is None:
            raise NotFound("Floor plan")

        table = TableRepo.get(ctx, table_id, db)
        if table is None:
            raise NotFound("Table")

        for key, value in SeatingService._validated_fields(fields).items():
            setattr(table, key, value)

        db.commit()
        db.refresh(table)
        return table

    @staticmethod
    def delete_table(ctx: AuthContext, table_id: int, db: Session) -> None:
        if FloorPlanRepo.get(ctx, db) is None:
            raise NotFound("Floor plan")

        table = TableRepo.get(ctx, table_id, db)
        if table is None:
            raise NotFound("Table")

        # Assignments go with the table
        db.delete(table)
        db.commit()
        logger.info(f"Deleted table {table_id} for account {ctx.account_id}")

    # -------- Assignments --------

    @staticmethod
    def list_assignments(ctx: AuthContext, db: Session) -> List[TableAssignment]:
        return AssignmentRepo.list(ctx, db)

    @staticmethod
    def assign_guest(ctx: AuthContext, guest_id: int, table_id: int, db: Session) -> TableAssignment:
        """Seat a guest (and their party) at a table, replacing any prior assignment"""
        guest = GuestRepo.get(ctx, guest_id, db)
        if guest is None:
            raise NotFound("Guest")

        table = TableRepo.get(ctx, table_id, db)
        if table is None:
            raise NotFound("Table")

        check_capacity(table, guest, GuestRepo.list(ctx, db))

        assignment = AssignmentRepo.upsert(guest.id, table.id, db)
        logger.info(f"Assigned guest {guest.id} to table {table.id}")
        return assignment

    @staticmethod
    def unassign_guest(ctx: AuthContext, guest_id: int, db: Session) -> None:
        guest = GuestRepo.get(ctx, guest_id, db)
        if guest is None:
            raise NotFound("Guest")
        AssignmentRepo.delete_for_guest(guest.id, db)
