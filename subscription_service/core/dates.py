"""
Calendar date parsing shared by request bodies and Total filters.

Accepted inputs are ``YYYY-MM-DD`` and ``YYYY-MM``; the month form means the
first day of that month and is recognised by length alone.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"


def parse_date(value: str) -> date:
    """Parse a full date or a year-month; raises ValueError otherwise."""
    if len(value) == 7:
        return datetime.strptime(value, MONTH_FORMAT).date()
    if len(value) != 10:
        raise ValueError(f"invalid date {value!r}")
    return datetime.strptime(value, DATE_FORMAT).date()


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    """Like parse_date, but None and "" mean "no date"."""
    if not value:
        return None
    return parse_date(value)


def format_date(value: Optional[date]) -> str:
    """Canonical wire form; a missing date becomes the empty string."""
    if value is None:
        return ""
    return value.isoformat()
