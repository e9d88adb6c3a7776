# backend/app/models/types.py
"""Column helpers shared by the models."""

from datetime import datetime, timezone

from sqlalchemy import Numeric

# Fixed-point money: two minor-unit digits, returned as Decimal.
MONEY = Numeric(10, 2, asdecimal=True)


def utcnow() -> datetime:
    """Timezone-aware now, used as a Python-side column default."""
    return datetime.now(timezone.utc)
