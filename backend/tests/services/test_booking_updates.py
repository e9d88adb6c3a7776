from datetime import date, time
from decimal import Decimal

import pytest

from app.core.exceptions import (
    BookingNotFoundException,
    InvalidRangeException,
    InvalidStatusTransitionException,
    SlotConflictException,
)
from app.models import Booking, Payment, WalletTransaction
from app.repositories import RepositoryFactory
from app.schemas import BookingCreate, BookingUpdate
from app.services.booking_service import BookingService
from app.services.wallet_ledger import WalletLedger

DAY = date(2025, 6, 1)


@pytest.fixture
def service(db) -> BookingService:
    return BookingService(db)


@pytest.fixture
def booking_id(service, funded_customer, field) -> str:
    """A two-hour booking at 20.00/h, paid 40.00 from a 100.00 wallet."""
    created = service.create_booking(
        BookingCreate(
            user_id=funded_customer.id,
            field_id=field.id,
            booking_date=DAY,
            start_time="14:00",
            end_time="16:00",
        )
    )
    assert created.amount == Decimal("40.00")
    return created.booking_id


class TestStatusOnlyUpdate:
    def test_confirm_leaves_other_columns_untouched(self, db, service, booking_id) -> None:
        before = db.get(Booking, booking_id)
        snapshot = (
            before.user_id,
            before.field_id,
            before.booking_date,
            before.start_time,
            before.end_time,
        )

        result = service.update_booking(booking_id, BookingUpdate(status="confirmed"))

        assert result.ok and not result.refunded
        db.expire_all()
        after = db.get(Booking, booking_id)
        assert after.status == "confirmed"
        assert (
            after.user_id,
            after.field_id,
            after.booking_date,
            after.start_time,
            after.end_time,
        ) == snapshot

    def test_cancel_refunds_payment_once(self, db, service, booking_id, funded_customer) -> None:
        ledger = WalletLedger(db)
        service.update_booking(booking_id, BookingUpdate(status="confirmed"))
        assert ledger.get_wallet(funded_customer.id).balance == Decimal("60.00")

        result = service.update_booking(booking_id, BookingUpdate(status="cancelled"))

        assert result.refunded
        assert result.refund_amount == Decimal("40.00")
        assert ledger.get_wallet(funded_customer.id).balance == Decimal("100.00")
        credits = RepositoryFactory.create_wallet_transaction_repository(db).find_by_reference(
            funded_customer.id, f"refund:booking:{booking_id}"
        )
        assert len(credits) == 1
        assert credits[0].type == "deposit"
        payment = db.query(Payment).filter_by(booking_id=booking_id).one()
        assert payment.status == "refunded"
        assert payment.refunded_at is not None
        assert db.get(Booking, booking_id).cancelled_at is not None

        repeat = service.update_booking(booking_id, BookingUpdate(status="cancelled"))

        assert not repeat.refunded
        assert ledger.get_wallet(funded_customer.id).balance == Decimal("100.00")
        assert (
            db.query(WalletTransaction).filter_by(reference=f"refund:booking:{booking_id}").count()
            == 1
        )
        assert ledger.reconcile(funded_customer.id).balanced

    def test_cancelled_is_terminal(self, service, booking_id) -> None:
        service.update_booking(booking_id, BookingUpdate(status="cancelled"))
        with pytest.raises(InvalidStatusTransitionException):
            service.update_booking(booking_id, BookingUpdate(status="confirmed"))

    def test_confirmed_cannot_go_back_to_pending(self, service, booking_id) -> None:
        service.update_booking(booking_id, BookingUpdate(status="confirmed"))
        with pytest.raises(InvalidStatusTransitionException):
            service.update_booking(booking_id, BookingUpdate(status="pending"))

    def test_unknown_booking(self, service) -> None:
        with pytest.raises(BookingNotFoundException):
            service.update_booking("01J0000000000000000000000X", BookingUpdate(status="confirmed"))


class TestFullUpdate:
    def _full(self, user_id: str, field_id: str, start: str, end: str, **extra) -> BookingUpdate:
        return BookingUpdate(
            user_id=user_id,
            field_id=field_id,
            booking_date=DAY,
            start_time=start,
            end_time=end,
            **extra,
        )

    def test_moves_booking_without_repricing(
        self, db, service, booking_id, funded_customer, field
    ) -> None:
        service.update_booking(booking_id, self._full(funded_customer.id, field.id, "17:00", "18:00"))

        db.expire_all()
        booking = db.get(Booking, booking_id)
        assert (booking.start_time, booking.end_time) == (time(17, 0), time(18, 0))
        assert booking.status == "pending"
        assert db.query(Payment).filter_by(booking_id=booking_id).one().amount == Decimal("40.00")

    def test_overlapping_itself_is_allowed(
        self, db, service, booking_id, funded_customer, field
    ) -> None:
        service.update_booking(
            booking_id,
            self._full(funded_customer.id, field.id, "15:00", "17:00", status="confirmed"),
        )
        db.expire_all()
        assert db.get(Booking, booking_id).status == "confirmed"

    def test_moving_onto_another_booking_conflicts(
        self, db, service, booking_id, funded_customer, field
    ) -> None:
        service.create_booking(
            BookingCreate(
                user_id=funded_customer.id,
                field_id=field.id,
                booking_date=DAY,
                start_time="09:00",
                end_time="10:00",
            )
        )
        with pytest.raises(SlotConflictException):
            service.update_booking(
                booking_id, self._full(funded_customer.id, field.id, "09:30", "10:30")
            )

        db.expire_all()
        assert db.get(Booking, booking_id).start_time == time(14, 0)

    def test_invalid_range(self, service, booking_id, funded_customer, field) -> None:
        with pytest.raises(InvalidRangeException):
            service.update_booking(
                booking_id, self._full(funded_customer.id, field.id, "12:00", "11:00")
            )
