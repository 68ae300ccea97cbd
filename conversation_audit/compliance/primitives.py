"""
Common primitives shared by the compliance services.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone
from typing import Union

DateInput = Union[str, date, datetime]


def generate_id() -> str:
    """Generate an opaque unique identifier."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_date_bound(value: DateInput, end_of_day: bool = False) -> datetime:
    """Turn an ISO string, date or datetime into an aware UTC datetime.

    A date without a time component covers the whole day when used as an
    upper bound, so ``end_date="2026-01-31"`` includes sessions started on
    the 31st.

    Raises:
        ValueError: If a string is not ISO-8601.
    """
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            value = date.fromisoformat(text)
        else:
            value = datetime.fromisoformat(text.replace("Z", "+00:00"))

    if isinstance(value, datetime):
        return ensure_utc(value)

    bound = time.max if end_of_day else time.min
    return datetime.combine(value, bound, tzinfo=timezone.utc)
