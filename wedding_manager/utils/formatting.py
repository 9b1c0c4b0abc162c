"""
Date/time display helpers for outgoing messages
"""

from datetime import date, datetime
from typing import Union


def format_wedding_date(value: Union[str, date, datetime]) -> str:
    """e.g. Saturday, 14 March 2026"""
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return f"{value:%A}, {value.day} {value:%B %Y}"


def format_wedding_time(value: str) -> str:
    """24h "HH:MM[:SS]" to 12h, e.g. 15:30 -> 3:30 PM"""
    hours, minutes = value.split(":")[:2]
    hour = int(hours)
    ampm = "PM" if hour >= 12 else "AM"
    hour12 = hour % 12 or 12
    return f"{hour12}:{minutes} {ampm}"
