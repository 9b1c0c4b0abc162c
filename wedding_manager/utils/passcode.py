"""
Memorable RSVP passcodes, e.g. "sara472", "mike831"
"""

import random
import re

_NON_LETTERS = re.compile(r"[^a-z]")


def generate_passcode(first_name: str) -> str:
    """First four letters of the name (or "guest") plus a 3-digit number.

    Not unique; callers handle collisions.
    """
    clean_name = _NON_LETTERS.sub("", (first_name or "").lower())
    short_name = clean_name[:4] or "guest"
    return f"{short_name}{random.randint(100, 999)}"
