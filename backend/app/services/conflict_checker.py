# backend/app/services/conflict_checker.py
"""
Conflict Checker Service for the SportSpot booking core

Decides whether a proposed ``[start, end)`` interval on a field overlaps an
active (pending or confirmed) booking on the same date. Read-only: it runs
inside the caller's transaction so the check and the insert see the same
data while the (field, date) lock is held.
"""

from datetime import date, time
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..repositories import RepositoryFactory
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from .base import BaseService

logger = logging.getLogger(__name__)


class ConflictChecker(BaseService):
    """Service for checking booking slot conflicts."""

    def __init__(self, db: Session, repository: Optional[ConflictCheckerRepository] = None):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            repository: Optional ConflictCheckerRepository instance
        """
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_conflict_checker_repository(db)

    @BaseService.measure_operation("find_conflicts")
    def find_conflicts(
        self,
        field_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        excluding: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Active bookings overlapping the interval.

        Args:
            field_id: The field to check
            check_date: The date to check
            start_time: Start of the proposed interval
            end_time: End of the proposed interval (exclusive)
            excluding: Booking id to ignore, used when a booking is moved

        Returns:
            List of conflicting bookings with their slot details
        """
        bookings = self.repository.get_overlapping_bookings(
            field_id, check_date, start_time, end_time, exclude_booking_id=excluding
        )
        conflicts = [
            {
                "booking_id": booking.id,
                "start_time": str(booking.start_time),
                "end_time": str(booking.end_time),
                "status": booking.status,
            }
            for booking in bookings
        ]

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} booking conflicts for field {field_id} "
                f"on {check_date} between {start_time}-{end_time}"
            )

        return conflicts

    def has_conflict(
        self,
        field_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        excluding: Optional[str] = None,
    ) -> bool:
        """Simplified boolean check for quick validation."""
        return bool(self.find_conflicts(field_id, check_date, start_time, end_time, excluding))

    def get_booked_slots(self, field_id: str, check_date: date) -> List[Dict[str, Any]]:
        """Slot-holding bookings for a field on one date, ordered by start time."""
        return [
            {
                "booking_id": booking.id,
                "start_time": str(booking.start_time),
                "end_time": str(booking.end_time),
                "status": booking.status,
            }
            for booking in self.repository.get_active_bookings_for_date(field_id, check_date)
        ]
