"""Explicit refund requests and their review lifecycle."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.ulid_helper import generate_ulid
from app.database import Base
from app.models.types import MONEY, utcnow


class RefundStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


REFUND_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    RefundStatus.PENDING.value: frozenset(
        {RefundStatus.APPROVED.value, RefundStatus.REJECTED.value}
    ),
    # Money only moves on an approved request
    RefundStatus.APPROVED.value: frozenset({RefundStatus.COMPLETED.value}),
    RefundStatus.REJECTED.value: frozenset(),
    RefundStatus.COMPLETED.value: frozenset(),
}


class Refund(Base):
    """A refund request against one payment; only ``completed`` moves money."""

    __tablename__ = "refunds"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    booking_id: Mapped[str] = mapped_column(String(26), ForeignKey("bookings.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"), nullable=False)
    payment_id: Mapped[str] = mapped_column(String(26), ForeignKey("payments.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=RefundStatus.PENDING.value)
    requested_by: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"), nullable=False)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_refunds_amount_positive"),
        Index("idx_refunds_user_requested_at", "user_id", "requested_at"),
    )

    def __repr__(self) -> str:
        return f"<Refund(id={self.id}, payment_id={self.payment_id}, status={self.status})>"
