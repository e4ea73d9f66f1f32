from datetime import date, datetime
from typing import Annotated, Any

from pydantic import BeforeValidator


def parse_datetime(value: Any) -> datetime:
    """Parse ISO 8601 datetime string."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            raise ValueError(f"Invalid datetime format: {value}")
    raise ValueError(f"Expected datetime, got {type(value)}")


def parse_date(value: Any) -> date:
    """Parse an ISO 8601 date (or datetime) into a calendar day.

    Time of day is dropped, so ``2026-01-05T18:30`` and ``2026-01-05``
    compare equal.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
        try:
            return parse_datetime(value).date()
        except ValueError:
            raise ValueError(f"Invalid date format: {value}")
    raise ValueError(f"Expected date, got {type(value)}")


CalendarDay = Annotated[date, BeforeValidator(parse_date)]
