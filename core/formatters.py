# core/formatters.py

# all pure utilities & date/datetime helpers
# must never import from models!

import datetime
from typing import Any

# === timestamp parsing ===


def parse_timestamp(value: Any) -> datetime.datetime | None:
    """
    Leniently converts a backend timestamp into an aware `datetime`.

    Accepts `datetime` objects, ISO-8601 strings (including a trailing "Z"), and
    epoch milliseconds. Naive values are treated as UTC.

    Returns:
        The parsed datetime, or None when the value is missing or unparsable.

    Notes:
        - Never raises. A malformed due date means "no deadline" to callers.
    """
    if value is None or value == "":
        return None

    if isinstance(value, bool):
        return None

    try:
        if isinstance(value, datetime.datetime):
            parsed = value

        elif isinstance(value, (int, float)):
            parsed = datetime.datetime.fromtimestamp(
                value / 1000, tz=datetime.timezone.utc
            )

        elif isinstance(value, str):
            text = value.strip()
            if text.endswith("Z") or text.endswith("z"):
                text = text[:-1] + "+00:00"
            parsed = datetime.datetime.fromisoformat(text)

        else:
            return None

    except (ValueError, TypeError, OverflowError, OSError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)

    return parsed


def format_timestamp(value: datetime.datetime | None) -> str | None:
    if value is None:
        return None

    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)

    return value.astimezone(datetime.timezone.utc).isoformat().replace("+00:00", "Z")


# === date formatters ===


def format_due_date_from_datetime(due_date_dt: datetime.datetime | None) -> str:
    due_date_str = due_date_dt.strftime("%Y-%m-%d") if due_date_dt else None
    due_time_str = due_date_dt.strftime("%H:%M") if due_date_dt else None

    return format_due_date_from_strings(due_date_str, due_time_str)


def format_due_date_from_strings(
    due_date_str: str | None,
    due_time_str: str | None,
) -> str:
    return (
        f"{due_date_str} at {due_time_str}"
        if due_date_str and due_time_str
        else "[NO DUE DATE]"
    )
