from datetime import date, time

import pytest

from app.models import Booking, BookingStatus
from app.services.conflict_checker import ConflictChecker

DAY = date(2025, 6, 1)


@pytest.fixture
def booked(db, customer, field):
    """Two active bookings and one cancelled booking on the same day."""

    def _add(start: time, end: time, status: str) -> Booking:
        booking = Booking(
            user_id=customer.id,
            field_id=field.id,
            booking_date=DAY,
            start_time=start,
            end_time=end,
            status=status,
        )
        db.add(booking)
        return booking

    bookings = {
        "morning": _add(time(9, 0), time(10, 30), BookingStatus.CONFIRMED.value),
        "noon": _add(time(12, 0), time(13, 0), BookingStatus.PENDING.value),
        "evening": _add(time(18, 0), time(19, 0), BookingStatus.CANCELLED.value),
    }
    db.commit()
    return bookings


class TestConflictChecker:
    def test_overlap_with_active_booking(self, db, field, booked) -> None:
        checker = ConflictChecker(db)
        assert checker.has_conflict(field.id, DAY, time(10, 0), time(11, 0))
        assert checker.has_conflict(field.id, DAY, time(12, 30), time(12, 45))

    def test_enclosing_interval_conflicts(self, db, field, booked) -> None:
        conflicts = ConflictChecker(db).find_conflicts(field.id, DAY, time(8, 0), time(14, 0))
        assert [c["booking_id"] for c in conflicts] == [booked["morning"].id, booked["noon"].id]

    def test_back_to_back_is_not_a_conflict(self, db, field, booked) -> None:
        checker = ConflictChecker(db)
        assert not checker.has_conflict(field.id, DAY, time(10, 30), time(12, 0))
        assert not checker.has_conflict(field.id, DAY, time(8, 0), time(9, 0))

    def test_cancelled_bookings_free_the_slot(self, db, field, booked) -> None:
        assert not ConflictChecker(db).has_conflict(field.id, DAY, time(18, 0), time(19, 0))

    def test_other_date_and_field_are_independent(self, db, field, field_factory, booked) -> None:
        checker = ConflictChecker(db)
        other_field = field_factory("15.00", "Court 2")
        assert not checker.has_conflict(field.id, date(2025, 6, 2), time(9, 0), time(10, 0))
        assert not checker.has_conflict(other_field.id, DAY, time(9, 0), time(10, 0))

    def test_excluding_the_booking_being_moved(self, db, field, booked) -> None:
        checker = ConflictChecker(db)
        morning = booked["morning"].id
        assert not checker.has_conflict(field.id, DAY, time(9, 30), time(10, 30), excluding=morning)
        assert checker.has_conflict(field.id, DAY, time(9, 30), time(12, 30), excluding=morning)

    def test_booked_slots_are_ordered(self, db, field, booked) -> None:
        slots = ConflictChecker(db).get_booked_slots(field.id, DAY)
        assert [s["start_time"] for s in slots] == ["09:00:00", "12:00:00"]
