# backend/app/schemas/refund.py
"""Refund request DTOs."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field

from ._strict_base import StrictModel, StrictRequestModel


class RefundCreate(StrictRequestModel):
    booking_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    reason: str = Field(..., min_length=1, max_length=2000)
    requested_by: str = Field(..., min_length=1)


class RefundProcess(StrictRequestModel):
    status: Literal["approved", "rejected", "completed"]


class RefundCreated(StrictModel):
    refund_id: str


class RefundProcessResult(StrictModel):
    ok: bool = True
    refund_id: str
    status: str
    credited: bool = False


class RefundView(StrictModel):
    id: str
    booking_id: str
    user_id: str
    payment_id: str
    amount: Decimal
    reason: str
    status: str
    requested_by: str
    requested_at: datetime
    processed_at: Optional[datetime] = None
