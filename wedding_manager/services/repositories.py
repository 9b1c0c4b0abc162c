"""
Repository layer: account-scoped persistence access.

Every query takes the caller's AuthContext; rows belonging to another account
are indistinguishable from missing rows.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from wedding_manager.models import (
    FloorPlan,
    Guest,
    MessageLog,
    PlusOne,
    RSVP,
    RSVPStatus,
    Table,
    TableAssignment,
    WeddingSettings,
)
from wedding_manager.utils.security import AuthContext

DEFAULT_FLOOR_PLAN_WIDTH = 1000
DEFAULT_FLOOR_PLAN_HEIGHT = 700


# -------- Wedding settings --------

class SettingsRepo:
    @staticmethod
    def get(ctx: AuthContext, db: Session) -> Optional[WeddingSettings]:
        return db.query(WeddingSettings).filter(WeddingSettings.user_id == ctx.account_id).first()


# -------- Guests --------

class GuestRepo:
    @staticmethod
    def _with_joins(db: Session):
        return db.query(Guest).options(
            selectinload(Guest.plus_ones),
            selectinload(Guest.rsvp),
            selectinload(Guest.table_assignment).selectinload(TableAssignment.table),
        )

    @staticmethod
    def list(ctx: AuthContext, db: Session) -> List[Guest]:
        return GuestRepo._with_joins(db).filter(
            Guest.user_id == ctx.account_id
        ).order_by(Guest.created_at.desc(), Guest.id.desc()).all()

    @staticmethod
    def get(ctx: AuthContext, guest_id: int, db: Session) -> Optional[Guest]:
        return GuestRepo._with_joins(db).filter(
            Guest.id == guest_id,
            Guest.user_id == ctx.account_id
        ).first()

    @staticmethod
    def get_many(ctx: AuthContext, guest_ids: Iterable[int], db: Session) -> List[Guest]:
        return GuestRepo._with_joins(db).filter(
            Guest.id.in_(list(guest_ids)),
            Guest.user_id == ctx.account_id
        ).order_by(Guest.id).all()

    @staticmethod
    def passcode_taken(first_name: str, passcode: str, db: Session) -> bool:
        """Not account scoped, same as find_by_name_and_passcode"""
        return db.query(Guest.id).filter(
            func.lower(Guest.first_name) == first_name.strip().lower(),
            Guest.passcode == passcode
        ).first() is not None

    # Public (token-gated) lookups: not account scoped, the credential is the scope

    @staticmethod
    def find_by_qr_code(code: str, db: Session) -> Optional[Guest]:
        return GuestRepo._with_joins(db).filter(Guest.qr_code == code).first()

    @staticmethod
    def find_by_name_and_passcode(first_name: str, passcode: str, db: Session) -> Optional[Guest]:
        return GuestRepo._with_joins(db).filter(
            func.lower(Guest.first_name) == first_name.strip().lower(),
            Guest.passcode == passcode.strip().lower()
        ).first()

    @staticmethod
    def get_public(guest_id: int, db: Session) -> Optional[Guest]:
        return GuestRepo._with_joins(db).filter(Guest.id == guest_id).first()


# -------- Plus-ones --------

class PlusOneRepo:
    @staticmethod
    def replace_all(guest: Guest, names: Iterable[Optional[str]], db: Session) -> List[PlusOne]:
        """Delete every plus-one, then insert the non-blank names.

        Two separate commits: a failure between them leaves the guest with no
        plus-ones.
        """
        db.query(PlusOne).filter(PlusOne.guest_id == guest.id).delete(synchronize_session=False)
        db.commit()

        plus_ones = [PlusOne(guest_id=guest.id, name=name.strip()) for name in clean_names(names)]
        if plus_ones:
            db.add_all(plus_ones)
            db.commit()
        db.expire(guest, ["plus_ones"])
        return plus_ones


def clean_names(names: Iterable[Optional[str]]) -> List[str]:
    """Trimmed, non-blank names"""
    return [name.strip() for name in names if name and name.strip()]


# -------- RSVPs --------

class RSVPRepo:
    @staticmethod
    def upsert(
        guest_id: int,
        status: str,
        number_attending: int,
        db: Session,
        responded_at: Optional[datetime] = None
    ) -> RSVP:
        """Insert or overwrite the guest's single RSVP row"""
        rsvp = db.query(RSVP).filter(RSVP.guest_id == guest_id).first()
        if rsvp is None:
            rsvp = RSVP(guest_id=guest_id)
            db.add(rsvp)
        rsvp.status = status
        rsvp.number_attending = number_attending
        rsvp.responded_at = responded_at
        rsvp.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(rsvp)
        return rsvp

    @staticmethod
    def create_pending(guest_id: int, db: Session) -> RSVP:
        return RSVPRepo.upsert(guest_id, RSVPStatus.PENDING.value, 0, db)


# -------- Floor plan & tables --------

class FloorPlanRepo:
    @staticmethod
    def get(ctx: AuthContext, db: Session) -> Optional[FloorPlan]:
        return db.query(FloorPlan).filter(FloorPlan.user_id == ctx.account_id).first()

    @staticmethod
    def get_or_create(ctx: AuthContext, db: Session) -> FloorPlan:
        floor_plan = FloorPlanRepo.get(ctx, db)
        if floor_plan is None:
            floor_plan = FloorPlan(
                user_id=ctx.account_id,
                width=DEFAULT_FLOOR_PLAN_WIDTH,
                height=DEFAULT_FLOOR_PLAN_HEIGHT
            )
            db.add(floor_plan)
            db.commit()
            db.refresh(floor_plan)
        return floor_plan


class TableRepo:
    @staticmethod
    def list(ctx: AuthContext, db: Session) -> List[Table]:
        return db.query(Table).join(FloorPlan).filter(
            FloorPlan.user_id == ctx.account_id
        ).order_by(Table.created_at, Table.id).all()

    @staticmethod
    def get(ctx: AuthContext, table_id: int, db: Session) -> Optional[Table]:
        return db.query(Table).join(FloorPlan).filter(
            Table.id == table_id,
            FloorPlan.user_id == ctx.account_id
        ).first()


class AssignmentRepo:
    @staticmethod
    def list(ctx: AuthContext, db: Session) -> List[TableAssignment]:
        return db.query(TableAssignment).join(Guest).options(
            selectinload(TableAssignment.guest),
            selectinload(TableAssignment.table)
        ).filter(Guest.user_id == ctx.account_id).order_by(TableAssignment.id).all()

    @staticmethod
    def upsert(guest_id: int, table_id: int, db: Session) -> TableAssignment:
        """One active assignment per guest; reassigning overwrites"""
        assignment = db.query(TableAssignment).filter(TableAssignment.guest_id == guest_id).first()
        if assignment is None:
            assignment = TableAssignment(guest_id=guest_id, table_id=table_id)
            db.add(assignment)
        else:
            assignment.table_id = table_id
        db.commit()
        db.refresh(assignment)
        return assignment

    @staticmethod
    def delete_for_guest(guest_id: int, db: Session) -> int:
        deleted = db.query(TableAssignment).filter(
            TableAssignment.guest_id == guest_id
        ).delete(synchronize_session=False)
        db.commit()
        return deleted


# -------- Message log --------

class MessageLogRepo:
    @staticmethod
    def append(
        guest_id: int,
        message_type: str,
        status: str,
        db: Session,
        provider_message_id: Optional[str] = None,
        error_message: Optional[str] = None,
        sent_at: Optional[datetime] = None
    ) -> MessageLog:
        entry = MessageLog(
            guest_id=guest_id,
            message_type=message_type,
            status=status,
            provider_message_id=provider_message_id,
            error_message=error_message,
            sent_at=sent_at
        )
        db.add(entry)
        db.commit()
        return entry

    @staticmethod
    def list(ctx: AuthContext, db: Session, message_type: Optional[str] = None) -> List[MessageLog]:
        query = db.query(MessageLog).join(Guest).options(selectinload(MessageLog.guest)).filter(
            Guest.user_id == ctx.account_id
        )
        if message_type:
            query = query.filter(MessageLog.message_type == message_type)
        return query.order_by(MessageLog.created_at.desc(), MessageLog.id.desc()).all()
