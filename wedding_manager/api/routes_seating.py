"""
Floor plan, table and seat assignment routes - requires an authenticated session
"""

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from wedding_manager.core.db import get_db
from wedding_manager.schemas.seating import AssignmentRequest, FloorPlanUpdate, TableCreate, TableUpdate
from wedding_manager.services.seating_service import SeatingService
from wedding_manager.services.serializers import serialize_assignment, serialize_floor_plan, serialize_table
from wedding_manager.services.storage_service import StorageService, get_storage
from wedding_manager.utils.errors import ValidationFailed
from wedding_manager.utils.responses import success_response
from wedding_manager.utils.security import AuthContext, get_auth_context

router = APIRouter()

# -------- Floor plan --------

@router.get("/floor-plan")
async def get_floor_plan(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """Get the floor plan, creating an empty one on first access"""
    floor_plan = SeatingService.get_floor_plan(ctx, db)
    return success_response(message="Floor plan retrieved", data=serialize_floor_plan(floor_plan))

@router.put("/floor-plan")
async def update_floor_plan(
    payload: FloorPlanUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    floor_plan = SeatingService.update_floor_plan(ctx, payload.model_dump(exclude_unset=True), db)
    return success_response(message="Floor plan updated", data=serialize_floor_plan(floor_plan))

@router.post("/floor-plan/background")
async def upload_floor_plan_background(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
    storage: StorageService = Depends(get_storage)
):
    """Upload a venue image to draw tables over"""
    content = await file.read()
    url = storage.upload_image("floor-plans", ctx.account_id, content, file.content_type)
    floor_plan = SeatingService.update_floor_plan(ctx, {"background_image_url": url}, db)
    return success_response(message="Background uploaded", data=serialize_floor_plan(floor_plan))

@router.get("/floor-plan/layout")
async def get_floor_plan_layout(
    width: float = Query(..., gt=0),
    height: float = Query(..., gt=0),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """Table geometry scaled to the caller's container, with occupancy"""
    layout = SeatingService.floor_plan_layout(ctx, width, height, db)
    return success_response(message="Layout computed", data=layout)

# -------- Tables --------

@router.get("/tables")
async def list_tables(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    tables = SeatingService.list_tables(ctx, db)
    return success_response(
        message=f"Found {len(tables)} tables",
        data=[serialize_table(t) for t in tables]
    )

@router.post("/tables")
async def create_table(
    payload: TableCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """Add a table; unspecified fields take the shape's defaults"""
    table = SeatingService.create_table(ctx, payload.model_dump(), db)
    return success_response(message="Table created", data=serialize_table(table), status_code=201)

@router.put("/tables")
async def update_table(
    payload: TableUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    if payload.id is None:
        raise ValidationFailed("Table id is required")

    table = SeatingService.update_table(ctx, payload.id, payload.model_dump(exclude={"id"}), db)
    return success_response(message="Table updated", data=serialize_table(table))

@router.delete("/tables")
async def delete_table(
    id: int = Query(...),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """Delete a table and its seat assignments"""
    SeatingService.delete_table(ctx, id, db)
    return success_response(message="Table deleted", data={"id": id})

# -------- Assignments --------

@router.get("/assignments")
async def list_assignments(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    assignments = SeatingService.list_assignments(ctx, db)
    return success_response(
        message=f"Found {len(assignments)} assignments",
        data=[serialize_assignment(a) for a in assignments]
    )

@router.post("/assignments")
async def assign_guest(
    payload: AssignmentRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """Seat a guest at a table (409 when their party doesn't fit)"""
    if payload.guest_id is None or payload.table_id is None:
        raise ValidationFailed("Guest and table are required")

    assignment = SeatingService.assign_guest(ctx, payload.guest_id, payload.table_id, db)
    return success_response(message="Guest assigned", data=serialize_assignment(assignment))

@router.delete("/assignments")
async def unassign_guest(
    guest_id: int = Query(...),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    SeatingService.unassign_guest(ctx, guest_id, db)
    return success_response(message="Guest unassigned", data={"guest_id": guest_id})
