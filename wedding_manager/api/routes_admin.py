"""
Organizer API routes - requires an authenticated session
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from wedding_manager.core.db import get_db
from wedding_manager.schemas.guest import GuestInput
from wedding_manager.schemas.settings import WeddingSettingsUpdate
from wedding_manager.services.excel_service import ExcelService
from wedding_manager.services.guest_service import GuestService
from wedding_manager.services.repositories import MessageLogRepo
from wedding_manager.services.seating_service import SeatingService
from wedding_manager.services.serializers import serialize_guest, serialize_message_log, serialize_settings
from wedding_manager.services.settings_service import SettingsService
from wedding_manager.services.stats_service import filter_guests, guest_stats, seating_stats
from wedding_manager.services.storage_service import StorageService, get_storage
from wedding_manager.utils.errors import ValidationFailed
from wedding_manager.utils.responses import success_response
from wedding_manager.utils.security import AuthContext, get_auth_context

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# -------- Wedding settings --------

@router.get("/settings")
async def get_settings(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """Get wedding settings (null until first saved)"""
    settings = SettingsService.get_settings(ctx, db)
    return success_response(
        message="Settings retrieved" if settings else "No settings saved yet",
        data=serialize_settings(settings)
    )

@router.post("/settings")
async def save_settings(
    payload: WeddingSettingsUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """Create or update wedding settings"""
    settings = SettingsService.save_settings(ctx, payload.model_dump(exclude_unset=True), db)
    return success_response(
        message="Settings saved successfully",
        data=serialize_settings(settings)
    )

@router.post("/settings/invitation-image")
async def upload_invitation_image(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
    storage: StorageService = Depends(get_storage)
):
    """Upload the invitation image sent with every invitation MMS"""
    content = await file.read()
    url = storage.upload_image("invitations", ctx.account_id, content, file.content_type)
    settings = SettingsService.set_invitation_image(ctx, url, db)
    return success_response(
        message="Invitation image uploaded",
        data=serialize_settings(settings)
    )

# -------- Guests --------

@router.get("/guests/template.xlsx")
async def download_guest_template(ctx: AuthContext = Depends(get_auth_context)):
    """Download Excel template for guest import"""
    return Response(
        content=ExcelService.create_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=guest_list_template.xlsx"}
    )

@router.post("/guests/import")
async def import_guests(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """Create guests from an uploaded Excel file"""
    if not (file.filename or "").lower().endswith(('.xlsx', '.xls')):
        raise ValidationFailed("Invalid file format. Please upload an Excel file (.xlsx or .xls)")

    result = ExcelService.import_guests(ctx, await file.read(), db)
    return success_response(
        message=f"{result['imported']} guest(s) imported",
        data=result
    )

@router.get("/guests/export.xlsx")
async def export_guests(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """Export current guest list to Excel"""
    content = ExcelService.export_guests(GuestService.list_guests(ctx, db))
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=guest_list.xlsx"}
    )

@router.get("/guests")
async def list_guests(
    search: Optional[str] = Query(None),
    unassigned: bool = Query(False),
    table_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """List guests with plus-ones, RSVP and table assignment"""
    guests = filter_guests(GuestService.list_guests(ctx, db), search, unassigned, table_id)
    return success_response(
        message=f"Found {len(guests)} guests",
        data=[serialize_guest(g) for g in guests]
    )

@router.post("/guests")
async def create_guest(
    payload: GuestInput,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """Add a guest; a passcode and pending RSVP are created with it"""
    guest = GuestService.create_guest(
        ctx,
        payload.model_dump(exclude={"plus_ones"}),
        [p.name for p in payload.plus_ones],
        db
    )
    return success_response(
        message="Guest created successfully",
        data=serialize_guest(guest),
        status_code=201
    )

@router.get("/guests/{guest_id}")
async def get_guest(
    guest_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    guest = GuestService.get_guest(ctx, guest_id, db)
    return success_response(message="Guest retrieved", data=serialize_guest(guest))

@router.put("/guests/{guest_id}")
async def update_guest(
    guest_id: int,
    payload: GuestInput,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """Update a guest; the plus-one list is replaced wholesale"""
    guest = GuestService.update_guest(
        ctx,
        guest_id,
        payload.model_dump(exclude={"plus_ones"}),
        [p.name for p in payload.plus_ones],
        db
    )
    return success_response(message="Guest updated successfully", data=serialize_guest(guest))

@router.delete("/guests/{guest_id}")
async def delete_guest(
    guest_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    GuestService.delete_guest(ctx, guest_id, db)
    return success_response(message="Guest deleted successfully", data={"id": guest_id})

# -------- Dashboard & history --------

@router.get("/dashboard")
async def get_dashboard(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """RSVP, delivery and seating counts"""
    guests = GuestService.list_guests(ctx, db)
    tables = SeatingService.list_tables(ctx, db)
    settings = SettingsService.get_settings(ctx, db)

    return success_response(
        message="Dashboard retrieved",
        data={
            "settings_configured": settings is not None,
            "invitation_image_uploaded": bool(settings and settings.invitation_image_url),
            "guests": guest_stats(guests),
            "seating": seating_stats(guests, tables),
            "total_tables": len(tables),
        }
    )

@router.get("/messages")
async def list_messages(
    message_type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context)
):
    """Send history, newest first"""
    entries = MessageLogRepo.list(ctx, db, message_type)
    return success_response(
        message=f"Found {len(entries)} messages",
        data=[serialize_message_log(e) for e in entries]
    )
