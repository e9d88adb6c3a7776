from datetime import date, time
from decimal import Decimal

from unittest.mock import patch

import pytest

from app.core.exceptions import (
    FieldNotFoundException,
    InsufficientBalanceException,
    InvalidRangeException,
    RepositoryException,
    ServiceException,
    SlotConflictException,
)
from app.models import Booking, Payment, PaymentMethod, WalletTransaction
from app.schemas import BookingCreate
from app.services.booking_service import BookingService
from app.services.wallet_ledger import WalletLedger

DAY = date(2025, 6, 1)


def _request(user_id: str, field_id: str, start: str, end: str, **extra) -> BookingCreate:
    return BookingCreate(
        user_id=user_id,
        field_id=field_id,
        booking_date=DAY,
        start_time=start,
        end_time=end,
        **extra,
    )


@pytest.fixture
def service(db) -> BookingService:
    return BookingService(db)


def _counts(db) -> tuple:
    return (
        db.query(Booking).count(),
        db.query(Payment).count(),
        db.query(WalletTransaction).filter_by(type="debit").count(),
    )


class TestCreateBooking:
    def test_ninety_minutes_costs_thirty(self, db, service, funded_customer, field) -> None:
        result = service.create_booking(_request(funded_customer.id, field.id, "09:00", "10:30"))

        assert result.amount == Decimal("30.00")
        booking = db.get(Booking, result.booking_id)
        assert booking.status == "pending"
        assert (booking.start_time, booking.end_time) == (time(9, 0), time(10, 30))

        payment = db.query(Payment).filter_by(booking_id=booking.id).one()
        assert payment.status == "completed"
        assert payment.amount == Decimal("30.00")
        assert db.get(PaymentMethod, payment.method_id).method_name == "wallet"

        debit = db.query(WalletTransaction).filter_by(type="debit").one()
        assert debit.reference == f"booking:{booking.id}"
        assert debit.amount == Decimal("30.00")

        ledger = WalletLedger(db)
        assert ledger.get_wallet(funded_customer.id).balance == Decimal("70.00")
        assert ledger.reconcile(funded_customer.id).balanced

    def test_caller_supplied_status(self, db, service, funded_customer, field) -> None:
        result = service.create_booking(
            _request(funded_customer.id, field.id, "09:00", "10:00", status="confirmed")
        )
        assert db.get(Booking, result.booking_id).status == "confirmed"

    def test_zero_duration_writes_nothing(self, db, service, funded_customer, field) -> None:
        with pytest.raises(InvalidRangeException):
            service.create_booking(_request(funded_customer.id, field.id, "10:00", "10:00"))
        assert _counts(db) == (0, 0, 0)

    def test_free_field_is_rejected_without_writes(
        self, db, service, funded_customer, field_factory
    ) -> None:
        free_court = field_factory("0.00", "Free Court")

        with pytest.raises(InvalidRangeException):
            service.create_booking(_request(funded_customer.id, free_court.id, "09:00", "10:00"))

        assert _counts(db) == (0, 0, 0)
        assert WalletLedger(db).get_wallet(funded_customer.id).balance == Decimal("100.00")

    def test_insufficient_balance_writes_nothing(
        self, db, service, customer, field, fund_wallet
    ) -> None:
        fund_wallet(customer.id, "25.00")

        with pytest.raises(InsufficientBalanceException):
            service.create_booking(_request(customer.id, field.id, "09:00", "10:30"))

        assert _counts(db) == (0, 0, 0)
        assert WalletLedger(db).get_wallet(customer.id).balance == Decimal("25.00")

    def test_user_without_wallet_gets_one_and_is_rejected(
        self, db, service, customer, field
    ) -> None:
        with pytest.raises(InsufficientBalanceException):
            service.create_booking(_request(customer.id, field.id, "09:00", "10:00"))
        assert WalletLedger(db).get_wallet(customer.id).balance == Decimal("0.00")

    def test_unknown_field(self, db, service, funded_customer) -> None:
        with pytest.raises(FieldNotFoundException):
            service.create_booking(_request(funded_customer.id, "NO-SUCH-FIELD", "09:00", "10:00"))
        assert _counts(db) == (0, 0, 0)

    def test_overlap_is_rejected(
        self, db, service, funded_customer, other_customer, field, fund_wallet
    ) -> None:
        fund_wallet(other_customer.id, "50.00")
        service.create_booking(_request(funded_customer.id, field.id, "09:00", "10:30"))

        with pytest.raises(SlotConflictException) as exc_info:
            service.create_booking(_request(other_customer.id, field.id, "10:00", "11:00"))

        assert exc_info.value.details["field_id"] == field.id
        assert len(exc_info.value.details["conflicts"]) == 1
        assert _counts(db) == (1, 1, 1)
        assert WalletLedger(db).get_wallet(other_customer.id).balance == Decimal("50.00")

    def test_back_to_back_bookings(self, db, service, funded_customer, field) -> None:
        service.create_booking(_request(funded_customer.id, field.id, "09:00", "10:00"))
        service.create_booking(_request(funded_customer.id, field.id, "10:00", "11:00"))
        assert _counts(db) == (2, 2, 2)
        assert WalletLedger(db).get_wallet(funded_customer.id).balance == Decimal("60.00")


class TestCreateBookingRollback:
    """A failure after the booking insert leaves no booking, debit or payment."""

    def _assert_untouched(self, db, user_id: str) -> None:
        db.expire_all()
        assert _counts(db) == (0, 0, 0)
        assert db.query(WalletTransaction).filter_by(user_id=user_id).count() == 1
        ledger = WalletLedger(db)
        assert ledger.get_wallet(user_id).balance == Decimal("100.00")
        assert ledger.reconcile(user_id).balanced

    def test_payment_insert_failure_rolls_back(self, db, service, funded_customer, field) -> None:
        with patch.object(
            service.payment_repository,
            "create",
            side_effect=RepositoryException("payment insert failed"),
        ):
            with pytest.raises(ServiceException):
                service.create_booking(_request(funded_customer.id, field.id, "09:00", "10:30"))

        self._assert_untouched(db, funded_customer.id)

    def test_debit_failure_rolls_back(self, db, service, funded_customer, field) -> None:
        with patch.object(
            service.wallet_ledger, "debit", side_effect=ServiceException("ledger unavailable")
        ):
            with pytest.raises(ServiceException, match="ledger unavailable"):
                service.create_booking(_request(funded_customer.id, field.id, "09:00", "10:30"))

        self._assert_untouched(db, funded_customer.id)

    def test_slot_is_bookable_after_a_failed_attempt(
        self, db, service, funded_customer, field
    ) -> None:
        with patch.object(
            service.payment_repository,
            "create",
            side_effect=RepositoryException("payment insert failed"),
        ):
            with pytest.raises(ServiceException):
                service.create_booking(_request(funded_customer.id, field.id, "09:00", "10:30"))

        result = service.create_booking(_request(funded_customer.id, field.id, "09:00", "10:30"))

        assert result.amount == Decimal("30.00")
        assert _counts(db) == (1, 1, 1)
        assert WalletLedger(db).get_wallet(funded_customer.id).balance == Decimal("70.00")
