# backend/app/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository for the SportSpot booking core

Booking-only queries used to decide whether a proposed interval overlaps an
active booking on a field, plus the database side of the (field, date) lock.
"""

from datetime import date, time
import logging
from typing import List, Optional, cast

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_BOOKING_STATUSES, Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


def field_day_lock_key(field_id: str, booking_date: date) -> str:
    return f"field:{field_id}:{booking_date.isoformat()}"


class ConflictCheckerRepository(BaseRepository[Booking]):
    """Repository for conflict checking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_overlapping_bookings(
        self,
        field_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Active bookings on ``field_id``/``check_date`` overlapping ``[start_time, end_time)``.

        Half-open overlap: ``existing.start < new.end AND new.start < existing.end``,
        so back-to-back bookings do not conflict.
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.field_id == field_id,
                Booking.booking_date == check_date,
                Booking.status.in_(sorted(ACTIVE_BOOKING_STATUSES)),
                Booking.start_time < end_time,
                Booking.end_time > start_time,
            )
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)
            return cast(List[Booking], query.order_by(Booking.start_time).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflict bookings: {str(e)}")

    def get_active_bookings_for_date(self, field_id: str, target_date: date) -> List[Booking]:
        """All slot-holding bookings for a field on a date, ordered by start time."""
        try:
            return cast(
                List[Booking],
                self.db.query(Booking)
                .filter(
                    Booking.field_id == field_id,
                    Booking.booking_date == target_date,
                    Booking.status.in_(sorted(ACTIVE_BOOKING_STATUSES)),
                )
                .order_by(Booking.start_time)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for date: {str(e)}")
            raise RepositoryException(f"Failed to get bookings: {str(e)}")

    def acquire_field_day_lock(self, field_id: str, booking_date: date) -> bool:
        """
        Take a transaction-scoped advisory lock on (field_id, date).

        PostgreSQL only; released automatically at commit or rollback. Other
        dialects return False and rely on the process/Redis lock.
        """
        if self.dialect_name != "postgresql":
            return False
        key = field_day_lock_key(field_id, booking_date)
        try:
            self.db.execute(select(func.pg_advisory_xact_lock(func.hashtext(key))))
            return True
        except SQLAlchemyError as e:
            self.logger.error(f"Error acquiring advisory lock {key}: {str(e)}")
            raise RepositoryException(f"Failed to lock {key}: {str(e)}")
