# core/utils.py

"""
Repository for program-wide utilities.
"""

import datetime
import math
import uuid


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def round_half_up(value: float) -> int:
    # half-up, not banker's rounding: 84.5 -> 85
    return int(math.floor(value + 0.5))


def percentage(part: float, whole: float) -> int:
    if not whole:
        return 0

    return round_half_up(part / whole * 100)
