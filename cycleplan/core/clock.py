"""Call-boundary clock.

Engine operations take an explicit ``as_of``; only the outermost callers
resolve a missing value through these helpers.
"""
from datetime import date, datetime


def today() -> date:
    """Current local calendar day."""
    return date.today()


def now() -> datetime:
    """Current local timestamp."""
    return datetime.now()
