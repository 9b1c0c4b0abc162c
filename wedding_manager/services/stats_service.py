"""
Derived guest-list views: search filtering and dashboard counts
"""

from typing import Any, Dict, Iterable, List, Optional

from wedding_manager.models import Guest, RSVPStatus, Table
from wedding_manager.services.seating_service import assigned_table_id, party_size


def _haystack(guest: Guest) -> List[str]:
    values = [guest.full_name, guest.phone or "", guest.group_name or ""]
    values += [p.name for p in guest.plus_ones]
    return [v.lower() for v in values]


def filter_guests(
    guests: Iterable[Guest],
    query: Optional[str] = None,
    unassigned_only: bool = False,
    table_id: Optional[int] = None
) -> List[Guest]:
    """Case-insensitive substring search over name, phone, group and plus-one names"""
    needle = (query or "").strip().lower()
    result = []
    for guest in guests:
        if needle and not any(needle in value for value in _haystack(guest)):
            continue
        if unassigned_only and assigned_table_id(guest) is not None:
            continue
        if table_id is not None and assigned_table_id(guest) != table_id:
            continue
        result.append(guest)
    return result


def _status(guest: Guest) -> str:
    return guest.rsvp.status if guest.rsvp else RSVPStatus.PENDING.value


def guest_stats(guests: Iterable[Guest]) -> Dict[str, int]:
    guests = list(guests)
    statuses = [_status(g) for g in guests]
    invitations_sent = sum(1 for g in guests if g.invitation_sent_at)
    qr_sent = sum(1 for g in guests if g.qr_sent_at)
    return {
        "total": len(guests),
        "attending": statuses.count(RSVPStatus.ATTENDING.value),
        "not_attending": statuses.count(RSVPStatus.NOT_ATTENDING.value),
        "pending": statuses.count(RSVPStatus.PENDING.value),
        "invitations_sent": invitations_sent,
        "invitations_unsent": len(guests) - invitations_sent,
        "qr_sent": qr_sent,
        "qr_unsent": len(guests) - qr_sent,
    }


def seating_stats(guests: Iterable[Guest], tables: Iterable[Table]) -> Dict[str, Any]:
    """Head counts for attending parties versus seats"""
    attending = [g for g in guests if _status(g) == RSVPStatus.ATTENDING.value]
    people_attending = sum(party_size(g) for g in attending)
    people_assigned = sum(party_size(g) for g in attending if assigned_table_id(g) is not None)
    return {
        "people_attending": people_attending,
        "people_assigned": people_assigned,
        "people_needing_seats": people_attending - people_assigned,
        "total_capacity": sum(t.capacity for t in tables),
    }
