# backend/app/schemas/booking.py
"""Booking request and response DTOs."""

from datetime import date, datetime, time
from decimal import Decimal
import re
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator

from ._strict_base import StrictModel, StrictRequestModel

TIME_REGEX = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?$")

FULL_UPDATE_FIELDS = ("user_id", "field_id", "booking_date", "start_time", "end_time")


def _normalize_booking_date(value: object) -> object:
    """Accept a date, a datetime, or an ISO date/datetime string; keep the calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        candidate = value.strip()
        try:
            return datetime.fromisoformat(candidate.replace("Z", "+00:00")).date()
        except ValueError:
            raise ValueError(f"Invalid date: {value}. Expected YYYY-MM-DD or an ISO timestamp.")
    return value


def _parse_time(value: object) -> object:
    """Convert ``HH:MM`` / ``HH:MM:SS`` strings to time objects."""
    if isinstance(value, str):
        candidate = value.strip()
        if not TIME_REGEX.fullmatch(candidate):
            raise ValueError(f"Invalid time format: {value}. Expected HH:MM format.")
        parts = [int(p) for p in candidate.split(":")]
        try:
            return time(*parts)
        except ValueError:
            raise ValueError(f"Invalid time: {value}")
    return value


class BookingCreate(StrictRequestModel):
    """Reserve ``[start_time, end_time)`` on a field for one date."""

    user_id: str = Field(..., min_length=1)
    field_id: str = Field(..., min_length=1)
    booking_date: date = Field(..., description="Calendar date of the booking")
    start_time: time
    end_time: time
    status: Optional[Literal["pending", "confirmed"]] = Field(
        None, description="Initial status; defaults to pending"
    )

    @field_validator("booking_date", mode="before")
    @classmethod
    def _normalize_date(cls, v: object) -> object:
        return _normalize_booking_date(v)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        return _parse_time(v)


class BookingUpdate(StrictRequestModel):
    """
    Either a status-only update or a full rewrite of the booking columns.

    Supplying any of the booking columns makes it a full update, which then
    requires all of them so no column is ever written as NULL.
    """

    user_id: Optional[str] = None
    field_id: Optional[str] = None
    booking_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    status: Optional[Literal["pending", "confirmed", "cancelled"]] = None

    @field_validator("booking_date", mode="before")
    @classmethod
    def _normalize_date(cls, v: object) -> object:
        return None if v is None else _normalize_booking_date(v)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        return None if v is None else _parse_time(v)

    @model_validator(mode="after")
    def _check_mode(self) -> "BookingUpdate":
        supplied = [name for name in FULL_UPDATE_FIELDS if getattr(self, name) is not None]
        if supplied and len(supplied) != len(FULL_UPDATE_FIELDS):
            missing = [name for name in FULL_UPDATE_FIELDS if name not in supplied]
            raise ValueError(f"Full booking update requires: {', '.join(missing)}")
        if not supplied and self.status is None:
            raise ValueError("No fields to update")
        return self

    @property
    def is_full_update(self) -> bool:
        return self.user_id is not None


class BookingCreated(StrictModel):
    booking_id: str
    amount: Decimal


class BookingUpdateResult(StrictModel):
    ok: bool = True
    booking_id: str
    status: str
    refunded: bool = False
    refund_amount: Optional[Decimal] = None
