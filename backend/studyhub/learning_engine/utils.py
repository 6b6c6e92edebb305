"""Small numeric and time helpers shared by the engines."""

import math
from datetime import UTC, datetime


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negative input.

    Python's round() is banker's rounding (round(2.5) == 2); percentages and
    intervals here always round .5 up.
    """
    return int(math.floor(value + 0.5))


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC.

    Some drivers (SQLite) hand back naive values for timezone-aware columns.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
