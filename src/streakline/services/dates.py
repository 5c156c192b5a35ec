"""Calendar-date normalization for every ingress point.

Check-in dates are timezone-free calendar days. Anything carrying a time
component is cut down to its own date portion; no timezone conversion is
ever applied, so ``2024-01-05T23:30:00-08:00`` stays on January 5th.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from ..errors import CheckinValidationError

_ISO_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:[T ].*)?$")


def normalize_date(value: date | datetime | str | None, *, field: str = "date") -> date:
    """Return the calendar date carried by ``value``.

    Raises:
        CheckinValidationError: if the value is empty or not a ``YYYY-MM-DD`` date.
    """

    if value is None or value == "":
        raise CheckinValidationError(f"{field} is required")
    # datetime is a date subclass; check it first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        match = _ISO_DATE_PREFIX.match(value.strip())
        if match:
            try:
                return date.fromisoformat(match.group(1))
            except ValueError:
                pass
    raise CheckinValidationError(f"{field} must be a YYYY-MM-DD date, got {value!r}")


def format_date(value: date) -> str:
    """Render a calendar date in canonical ``YYYY-MM-DD`` form."""

    return value.isoformat()


def month_bounds(today: date) -> tuple[date, date]:
    """Return the first and last day of ``today``'s month."""

    first = today.replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return first, date.fromordinal(next_first.toordinal() - 1)


__all__ = ["format_date", "month_bounds", "normalize_date"]
