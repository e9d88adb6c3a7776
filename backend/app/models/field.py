# backend/app/models/field.py
"""
Sport field listings and their owners.

Listing CRUD is external; bookings only read ``price_per_hour``. The owner
profile row used to be created by a database trigger, it is now created
explicitly by ``OwnerProfileService.ensure_owner_profile``.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import MONEY, utcnow

if TYPE_CHECKING:
    from .booking import Booking
    from .user import User


class FieldStatus(str, Enum):
    AVAILABLE = "available"
    MAINTENANCE = "maintenance"
    CLOSED = "closed"


class FieldOwner(Base):
    """Business profile of a user who lists fields."""

    __tablename__ = "field_owners"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    business_name: Mapped[str] = mapped_column(String(150), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    user: Mapped["User"] = relationship("User")
    fields: Mapped[List["SportField"]] = relationship("SportField", back_populates="owner")

    def __repr__(self) -> str:
        return f"<FieldOwner(id={self.id}, user_id={self.user_id})>"


class SportField(Base):
    """A bookable physical resource priced per hour."""

    __tablename__ = "sport_fields"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    owner_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("field_owners.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    sport_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    price_per_hour: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=FieldStatus.AVAILABLE.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    owner: Mapped[Optional[FieldOwner]] = relationship("FieldOwner", back_populates="fields")
    bookings: Mapped[List["Booking"]] = relationship("Booking", back_populates="field")

    __table_args__ = (
        CheckConstraint("price_per_hour >= 0", name="ck_sport_fields_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<SportField(id={self.id}, name={self.name}, price_per_hour={self.price_per_hour})>"
