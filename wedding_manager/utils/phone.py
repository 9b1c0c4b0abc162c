"""
Australian phone number helpers
"""

import re

_NON_DIGITS = re.compile(r"\D")


def _digits(phone: str) -> str:
    return _NON_DIGITS.sub("", phone or "")


def format_au_phone(phone: str) -> str:
    """Normalize to E.164 (+61...). Length is not validated."""
    cleaned = _digits(phone)

    if cleaned.startswith("0"):
        cleaned = "61" + cleaned[1:]

    if not cleaned.startswith("61"):
        cleaned = "61" + cleaned

    return "+" + cleaned


def format_phone_display(phone: str) -> str:
    """Local display format, e.g. 0412 345 678"""
    cleaned = _digits(phone)

    if cleaned.startswith("61"):
        local = "0" + cleaned[2:]
    elif not cleaned.startswith("0"):
        local = "0" + cleaned
    else:
        local = cleaned

    if len(local) == 10:
        return f"{local[:4]} {local[4:7]} {local[7:]}"

    return local


def is_valid_au_mobile(phone: str) -> bool:
    """04xx xxx xxx, or 614xx xxx xxx with or without the leading +"""
    cleaned = _digits(phone)

    if len(cleaned) == 10 and cleaned.startswith("04"):
        return True

    if len(cleaned) == 11 and cleaned.startswith("614"):
        return True

    return False
