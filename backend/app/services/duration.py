from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from app.exceptions import InvalidRangeError

if TYPE_CHECKING:
    from datetime import date

HALF_DAY = Decimal("0.5")


def calculate_days_count(start_date: date, end_date: date, is_half_day: bool) -> Decimal:
    """Return the chargeable days for a request.

    Full-day requests count every calendar day in the inclusive range, so a
    same-day request is one day. Weekends and holidays are not excluded.
    A half-day request is always 0.5 days; its dates are not required to be
    equal, but the range must still be valid.
    """
    span = (end_date - start_date).days + 1
    if span <= 0:
        raise InvalidRangeError
    if is_half_day:
        return HALF_DAY
    return Decimal(span)
