# backend/app/models/booking.py
"""
Booking model for the SportSpot booking core.

A booking reserves ``[start_time, end_time)`` on one field for one date.
It is only ever inserted after the wallet debit succeeded, in the same
transaction as its Payment row.
"""

from datetime import date, datetime, time
from enum import Enum
from typing import TYPE_CHECKING, Dict, FrozenSet, Optional

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, String, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import utcnow

if TYPE_CHECKING:
    from .field import SportField
    from .payment import Payment
    from .user import User


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# Statuses that hold the slot
ACTIVE_BOOKING_STATUSES: FrozenSet[str] = frozenset(
    {BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value}
)

# Allowed status moves; writing the current status again is always a no-op
BOOKING_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    BookingStatus.PENDING.value: frozenset(
        {BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value}
    ),
    BookingStatus.CONFIRMED.value: frozenset({BookingStatus.CANCELLED.value}),
    BookingStatus.CANCELLED.value: frozenset(),
}


class Booking(Base):
    """A reserved slot on a sport field."""

    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    user_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"), nullable=False)
    field_id: Mapped[str] = mapped_column(String(26), ForeignKey("sport_fields.id"), nullable=False)

    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookingStatus.PENDING.value, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=utcnow)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="bookings")
    field: Mapped["SportField"] = relationship("SportField", back_populates="bookings")
    payment: Mapped[Optional["Payment"]] = relationship(
        "Payment", back_populates="booking", uselist=False
    )

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_bookings_positive_duration"),
        Index("idx_bookings_field_date_status", "field_id", "booking_date", "status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, field_id={self.field_id}, date={self.booking_date}, "
            f"{self.start_time}-{self.end_time}, status={self.status})>"
        )
