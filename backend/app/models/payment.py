"""
Payment models.

The internal wallet is the only payment instrument modelled here; the
``payment_methods`` catalog still exists so every Payment names its method.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.ulid_helper import generate_ulid
from app.database import Base
from app.models.types import MONEY, utcnow

if TYPE_CHECKING:
    from app.models.booking import Booking


class PaymentStatus(str, Enum):
    """``completed -> refunded`` is one-way and happens at most once."""

    COMPLETED = "completed"
    REFUNDED = "refunded"


class PaymentMethod(Base):
    """Catalog of payment method names."""

    __tablename__ = "payment_methods"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    method_name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"<PaymentMethod(id={self.id}, name={self.method_name})>"


class Payment(Base):
    """Settlement record of one successful booking."""

    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    booking_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("bookings.id"), unique=True, nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"), nullable=False)
    method_id: Mapped[str] = mapped_column(String(26), ForeignKey("payment_methods.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.COMPLETED.value
    )
    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    refunded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    booking: Mapped["Booking"] = relationship("Booking", back_populates="payment")
    method: Mapped[PaymentMethod] = relationship("PaymentMethod")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        CheckConstraint("status IN ('completed', 'refunded')", name="ck_payments_status"),
    )

    @property
    def is_refunded(self) -> bool:
        return self.status == PaymentStatus.REFUNDED.value

    def __repr__(self) -> str:
        return f"<Payment(booking_id={self.booking_id}, amount={self.amount}, status={self.status})>"
