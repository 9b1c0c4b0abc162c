"""
Model -> JSON-ready dict conversion
"""

from typing import Any, Dict, Optional

from wedding_manager.models import FloorPlan, Guest, MessageLog, Table, TableAssignment, WeddingSettings
from wedding_manager.utils.phone import format_phone_display


def serialize_settings(settings: Optional[WeddingSettings]) -> Optional[Dict[str, Any]]:
    if settings is None:
        return None
    return {
        "id": settings.id,
        "couple_names": settings.couple_names,
        "wedding_date": settings.wedding_date,
        "wedding_time": settings.wedding_time,
        "venue_name": settings.venue_name,
        "venue_address": settings.venue_address,
        "invitation_image_url": settings.invitation_image_url,
        "created_at": settings.created_at,
        "updated_at": settings.updated_at,
    }


def serialize_guest(guest: Guest) -> Dict[str, Any]:
    rsvp = guest.rsvp
    assignment = guest.table_assignment
    return {
        "id": guest.id,
        "first_name": guest.first_name,
        "last_name": guest.last_name,
        "phone": guest.phone,
        "phone_display": format_phone_display(guest.phone),
        "passcode": guest.passcode,
        "plus_ones_allowed": guest.plus_ones_allowed,
        "notes": guest.notes,
        "group_name": guest.group_name,
        "qr_code": guest.qr_code,
        "invitation_sent_at": guest.invitation_sent_at,
        "qr_sent_at": guest.qr_sent_at,
        "created_at": guest.created_at,
        "updated_at": guest.updated_at,
        "plus_ones": [{"id": p.id, "name": p.name} for p in guest.plus_ones],
        "rsvp": {
            "status": rsvp.status,
            "number_attending": rsvp.number_attending,
            "responded_at": rsvp.responded_at,
        } if rsvp else None,
        "table_assignment": {
            "table_id": assignment.table_id,
            "table_name": assignment.table.name if assignment.table else None,
        } if assignment else None,
    }


def serialize_table(table: Table) -> Dict[str, Any]:
    return {
        "id": table.id,
        "floor_plan_id": table.floor_plan_id,
        "name": table.name,
        "shape": table.shape,
        "capacity": table.capacity,
        "position_x": table.position_x,
        "position_y": table.position_y,
        "width": table.width,
        "height": table.height,
        "rotation": table.rotation,
        "created_at": table.created_at,
        "updated_at": table.updated_at,
    }


def serialize_floor_plan(floor_plan: FloorPlan) -> Dict[str, Any]:
    return {
        "id": floor_plan.id,
        "width": floor_plan.width,
        "height": floor_plan.height,
        "background_image_url": floor_plan.background_image_url,
        "created_at": floor_plan.created_at,
        "updated_at": floor_plan.updated_at,
        "tables": [serialize_table(t) for t in floor_plan.tables],
    }


def serialize_assignment(assignment: TableAssignment) -> Dict[str, Any]:
    guest = assignment.guest
    return {
        "id": assignment.id,
        "guest_id": assignment.guest_id,
        "table_id": assignment.table_id,
        "seat_number": assignment.seat_number,
        "guest": {
            "id": guest.id,
            "first_name": guest.first_name,
            "last_name": guest.last_name,
        } if guest else None,
        "table": {"id": assignment.table.id, "name": assignment.table.name} if assignment.table else None,
    }


def serialize_message_log(entry: MessageLog) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "guest_id": entry.guest_id,
        "guest_name": entry.guest.full_name if entry.guest else None,
        "message_type": entry.message_type,
        "status": entry.status,
        "provider_message_id": entry.provider_message_id,
        "sent_at": entry.sent_at,
        "error_message": entry.error_message,
        "created_at": entry.created_at,
    }
