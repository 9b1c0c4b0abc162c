"""
Excel processing service for guest list import/export
"""

import io
import zipfile
import logging
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from sqlalchemy.orm import Session

from wedding_manager.models import Guest
from wedding_manager.services.guest_service import GuestService
from wedding_manager.services.seating_service import party_size
from wedding_manager.utils.errors import ValidationFailed, WeddingError
from wedding_manager.utils.phone import format_phone_display
from wedding_manager.utils.security import AuthContext

logger = logging.getLogger(__name__)

SHEET_NAME = 'Guest List'


class ExcelService:
    """Service for handling Excel operations"""

    TEMPLATE_COLUMNS = ['First Name', 'Last Name', 'Phone', 'Plus Ones Allowed', 'Group', 'Notes']
    REQUIRED_COLUMNS = ['first name', 'phone']

    # Normalized header -> guest field
    COLUMN_FIELDS = {
        'first name': 'first_name',
        'last name': 'last_name',
        'phone': 'phone',
        'plus ones allowed': 'plus_ones_allowed',
        'group': 'group_name',
        'notes': 'notes',
    }

    @staticmethod
    def _to_bytes(df: pd.DataFrame) -> bytes:
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name=SHEET_NAME)
        return buffer.getvalue()

    @staticmethod
    def create_template() -> bytes:
        """Create Excel template with the import columns"""
        df = pd.DataFrame(columns=ExcelService.TEMPLATE_COLUMNS)

        # Add sample data for guidance
        sample_data = [
            ['Sarah', 'Nguyen', '0412 345 678', 1, 'Bride family', ''],
            ['Tom', 'Walker', '0498 765 432', 0, 'Uni friends', 'Vegetarian'],
        ]

        for row in sample_data:
            df.loc[len(df)] = row

        return ExcelService._to_bytes(df)

    @staticmethod
    def validate_excel_structure(df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """Validate Excel file structure"""
        errors = []

        normalized_columns = [str(col).lower().strip() for col in df.columns]
        missing_columns = [col for col in ExcelService.REQUIRED_COLUMNS if col not in normalized_columns]

        if missing_columns:
            errors.append(f"Missing required columns: {', '.join(missing_columns)}")

        return len(errors) == 0, errors

    @staticmethod
    def _column_mapping(df: pd.DataFrame) -> Dict[str, str]:
        mapping = {}
        for col in df.columns:
            field = ExcelService.COLUMN_FIELDS.get(str(col).lower().strip())
            if field:
                mapping[field] = col
        return mapping

    @staticmethod
    def _cell_text(value: Any) -> Optional[str]:
        if value is None or pd.isna(value):
            return None
        # Phone numbers typed into Excel often come back as floats
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        text = str(value).strip()
        return text or None

    @staticmethod
    def row_to_fields(row: pd.Series, mapping: Dict[str, str]) -> Dict[str, Any]:
        """Convert one sheet row into guest fields"""
        fields = {field: ExcelService._cell_text(row[col]) for field, col in mapping.items()}

        phone = fields.get('phone')
        if phone and phone.isdigit() and len(phone) == 9:
            # leading zero dropped by a numeric cell
            fields['phone'] = '0' + phone

        allowed = fields.get('plus_ones_allowed')
        try:
            fields['plus_ones_allowed'] = int(float(allowed)) if allowed else 0
        except ValueError:
            raise ValidationFailed("Plus Ones Allowed must be a number")

        return fields

    @staticmethod
    def import_guests(ctx: AuthContext, file_content: bytes, db: Session) -> Dict[str, Any]:
        """Create a guest per row; rows that fail are reported and skipped"""
        try:
            df = pd.read_excel(io.BytesIO(file_content))
        except (ValueError, OSError, zipfile.BadZipFile) as e:
            raise ValidationFailed("Could not read Excel file", details=[str(e)])

        valid_structure, structure_errors = ExcelService.validate_excel_structure(df)
        if not valid_structure:
            raise ValidationFailed("Excel file validation failed", details=structure_errors)

        mapping = ExcelService._column_mapping(df)
        imported = 0
        errors = []

        for index, row in df.iterrows():
            # Header is row 1
            row_number = index + 2
            try:
                fields = ExcelService.row_to_fields(row, mapping)
                if not any(fields.get(key) for key in ('first_name', 'last_name', 'phone')):
                    continue
                GuestService.create_guest(ctx, fields, [], db)
                imported += 1
            except WeddingError as e:
                errors.append({'row': row_number, 'error': e.message})

        logger.info(f"Imported {imported} guest(s) for account {ctx.account_id}, {len(errors)} row error(s)")
        return {'imported': imported, 'failed': len(errors), 'errors': errors}

    @staticmethod
    def export_guests(guests: List[Guest]) -> bytes:
        """Export the guest list with RSVP, seating and delivery state"""
        data = []
        for guest in guests:
            assignment = guest.table_assignment
            data.append({
                'First Name': guest.first_name,
                'Last Name': guest.last_name or '',
                'Phone': format_phone_display(guest.phone),
                'Plus Ones Allowed': guest.plus_ones_allowed,
                'Plus Ones': ', '.join(p.name for p in guest.plus_ones),
                'Group': guest.group_name or '',
                'Notes': guest.notes or '',
                'Passcode': guest.passcode,
                'RSVP Status': guest.rsvp.status if guest.rsvp else 'pending',
                'Party Size': party_size(guest),
                'Table': assignment.table.name if assignment and assignment.table else '',
                'Invitation Sent': 'Yes' if guest.invitation_sent_at else 'No',
                'QR Sent': 'Yes' if guest.qr_sent_at else 'No',
            })

        df = pd.DataFrame(data, columns=[
            'First Name', 'Last Name', 'Phone', 'Plus Ones Allowed', 'Plus Ones', 'Group', 'Notes',
            'Passcode', 'RSVP Status', 'Party Size', 'Table', 'Invitation Sent', 'QR Sent'
        ])
        return ExcelService._to_bytes(df)
