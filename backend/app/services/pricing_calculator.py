# backend/app/services/pricing_calculator.py
"""
Booking price computation.

Pure functions with no I/O: a booking costs ``price_per_hour`` times its
duration in hours, rounded half-up to the currency's minor unit.
"""

from datetime import time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

CENT = Decimal("0.01")
MINUTES_PER_HOUR = Decimal(60)


def time_to_minutes(value: time) -> int:
    """Minutes since midnight; seconds are ignored."""
    return value.hour * 60 + value.minute


def quantize_money(value: Union[Decimal, int, str]) -> Decimal:
    """Round to 2 decimal places, half-up."""
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid monetary value: {value!r}") from exc


def duration_minutes(start: time, end: time) -> int:
    return time_to_minutes(end) - time_to_minutes(start)


def compute_amount(start: time, end: time, price_per_hour: Decimal) -> Optional[Decimal]:
    """
    Amount owed for ``[start, end)`` at ``price_per_hour``.

    Returns None when the duration is not positive; callers turn that into
    ``InvalidRangeException``.

    >>> compute_amount(time(9, 0), time(10, 30), Decimal("20.00"))
    Decimal('30.00')
    """
    minutes = duration_minutes(start, end)
    if minutes <= 0:
        return None
    rate = Decimal(str(price_per_hour))
    return quantize_money(rate * Decimal(minutes) / MINUTES_PER_HOUR)
