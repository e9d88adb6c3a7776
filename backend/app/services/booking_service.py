# backend/app/services/booking_service.py
"""
Booking Service for the SportSpot booking core

Handles all booking-related business logic including:
- Creating paid bookings (conflict check, pricing, wallet debit, payment)
- Status transitions with refund-on-cancel
- Administrative full edits of a booking

Every write runs under the (field, date) slot lock and inside one
transaction, so a failure at any step leaves no booking, debit or payment
behind.
"""

from datetime import date, time
from decimal import Decimal
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.booking_lock import field_slot_lock
from ..core.exceptions import (
    BookingNotFoundException,
    FieldNotFoundException,
    InsufficientBalanceException,
    InvalidRangeException,
    InvalidStatusTransitionException,
    SlotConflictException,
)
from ..models.booking import (
    ACTIVE_BOOKING_STATUSES,
    BOOKING_TRANSITIONS,
    Booking,
    BookingStatus,
)
from ..models.payment import PaymentStatus
from ..models.types import utcnow
from ..repositories import RepositoryFactory
from ..schemas.booking import BookingCreate, BookingCreated, BookingUpdate, BookingUpdateResult
from .base import BaseService
from .conflict_checker import ConflictChecker
from .pricing_calculator import compute_amount, duration_minutes
from .wallet_ledger import WalletLedger

logger = logging.getLogger(__name__)


def booking_debit_reference(booking_id: str) -> str:
    return f"booking:{booking_id}"


def booking_cancel_reference(booking_id: str) -> str:
    return f"refund:booking:{booking_id}"


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Composes ConflictChecker, the pricing functions and WalletLedger under a
    single unit of work per call.
    """

    def __init__(
        self,
        db: Session,
        conflict_checker: Optional[ConflictChecker] = None,
        wallet_ledger: Optional[WalletLedger] = None,
    ):
        super().__init__(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.wallet_ledger = wallet_ledger or WalletLedger(db)
        self.conflict_repository = RepositoryFactory.create_conflict_checker_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.field_repository = RepositoryFactory.create_field_repository(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)

    @BaseService.measure_operation("create_booking")
    def create_booking(self, booking_data: BookingCreate) -> BookingCreated:
        """
        Create a booking paid from the user's wallet.

        Args:
            booking_data: Validated booking request

        Returns:
            The new booking id and the amount debited

        Raises:
            InvalidRangeException: If end_time is not after start_time, or the
                slot prices to nothing
            SlotConflictException: If the slot overlaps an active booking
            FieldNotFoundException: If the field does not exist
            InsufficientBalanceException: If the wallet cannot cover the amount
            SlotLockTimeoutException: If the field/date lock is busy for too long
        """
        self.log_operation(
            "create_booking",
            user_id=booking_data.user_id,
            field_id=booking_data.field_id,
            booking_date=str(booking_data.booking_date),
        )
        if duration_minutes(booking_data.start_time, booking_data.end_time) <= 0:
            raise InvalidRangeException(booking_data.start_time, booking_data.end_time)

        with field_slot_lock(booking_data.field_id, booking_data.booking_date):
            with self.transaction():
                self.conflict_repository.acquire_field_day_lock(
                    booking_data.field_id, booking_data.booking_date
                )
                self._ensure_slot_free(
                    booking_data.field_id,
                    booking_data.booking_date,
                    booking_data.start_time,
                    booking_data.end_time,
                )

                price_per_hour = self.field_repository.get_price_per_hour(booking_data.field_id)
                if price_per_hour is None:
                    raise FieldNotFoundException(booking_data.field_id)

                amount = compute_amount(
                    booking_data.start_time, booking_data.end_time, price_per_hour
                )
                # A free field or a rounding-to-zero slot has nothing to charge
                if amount is None or amount <= 0:
                    raise InvalidRangeException(booking_data.start_time, booking_data.end_time)

                self.wallet_ledger.ensure_wallet(booking_data.user_id)
                balance = self.wallet_ledger.lock_and_get_balance(booking_data.user_id)
                if balance < amount:
                    self.logger.warning(
                        "Booking rejected for user %s: balance=%s amount=%s",
                        booking_data.user_id,
                        balance,
                        amount,
                    )
                    raise InsufficientBalanceException(balance=balance, required=amount)

                booking = self.booking_repository.create(
                    user_id=booking_data.user_id,
                    field_id=booking_data.field_id,
                    booking_date=booking_data.booking_date,
                    start_time=booking_data.start_time,
                    end_time=booking_data.end_time,
                    status=booking_data.status or BookingStatus.PENDING.value,
                )

                self.wallet_ledger.debit(
                    booking_data.user_id,
                    amount,
                    reference=booking_debit_reference(booking.id),
                    reason="booking",
                )

                method = self.wallet_ledger.ensure_payment_method()
                self.payment_repository.create(
                    booking_id=booking.id,
                    user_id=booking_data.user_id,
                    method_id=method.id,
                    amount=amount,
                    status=PaymentStatus.COMPLETED.value,
                )

        self.logger.info(f"Created booking {booking.id} on field {booking.field_id} for {amount}")
        return BookingCreated(booking_id=booking.id, amount=amount)

    @BaseService.measure_operation("update_booking")
    def update_booking(self, booking_id: str, update: BookingUpdate) -> BookingUpdateResult:
        """
        Apply a status-only update or a full administrative edit.

        A status-only update writes the status column (and ``cancelled_at``)
        and nothing else. Moving into ``cancelled`` credits the payer once for
        a completed payment and marks that payment refunded.

        Raises:
            BookingNotFoundException: If the booking does not exist
            InvalidStatusTransitionException: For a move the lifecycle forbids
            SlotConflictException: If a full edit lands on an occupied slot
        """
        self.log_operation("update_booking", booking_id=booking_id, status=update.status)

        if update.is_full_update:
            assert update.field_id is not None and update.booking_date is not None
            assert update.start_time is not None and update.end_time is not None
            if duration_minutes(update.start_time, update.end_time) <= 0:
                raise InvalidRangeException(update.start_time, update.end_time)
            with field_slot_lock(update.field_id, update.booking_date):
                return self._apply_update(booking_id, update)

        return self._apply_update(booking_id, update)

    def _apply_update(self, booking_id: str, update: BookingUpdate) -> BookingUpdateResult:
        refund_amount: Optional[Decimal] = None

        with self.transaction():
            booking = self.booking_repository.get_for_update(booking_id)
            if booking is None:
                raise BookingNotFoundException(booking_id)

            previous = booking.status
            target = update.status or previous
            self._validate_transition(previous, target)

            if update.is_full_update:
                self._apply_full_edit(booking, update, target)

            if target != previous:
                changes: Dict[str, Any] = {"status": target}
                if target == BookingStatus.CANCELLED.value:
                    changes["cancelled_at"] = utcnow()
                self.booking_repository.update(booking, **changes)

                if target == BookingStatus.CANCELLED.value:
                    refund_amount = self._refund_on_cancel(booking)

        self.logger.info(f"Booking {booking_id} updated: {previous} -> {target}")
        return BookingUpdateResult(
            booking_id=booking_id,
            status=target,
            refunded=refund_amount is not None,
            refund_amount=refund_amount,
        )

    def _apply_full_edit(self, booking: Booking, update: BookingUpdate, target: str) -> None:
        assert update.user_id is not None and update.field_id is not None
        assert update.booking_date is not None
        assert update.start_time is not None and update.end_time is not None

        self.conflict_repository.acquire_field_day_lock(update.field_id, update.booking_date)
        if self.field_repository.get_price_per_hour(update.field_id) is None:
            raise FieldNotFoundException(update.field_id)
        if target in ACTIVE_BOOKING_STATUSES:
            self._ensure_slot_free(
                update.field_id,
                update.booking_date,
                update.start_time,
                update.end_time,
                excluding=booking.id,
            )

        self.booking_repository.update(
            booking,
            user_id=update.user_id,
            field_id=update.field_id,
            booking_date=update.booking_date,
            start_time=update.start_time,
            end_time=update.end_time,
        )

    def _ensure_slot_free(
        self,
        field_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        excluding: Optional[str] = None,
    ) -> None:
        conflicts = self.conflict_checker.find_conflicts(
            field_id, check_date, start_time, end_time, excluding
        )
        if conflicts:
            raise SlotConflictException(
                details={
                    "field_id": field_id,
                    "booking_date": str(check_date),
                    "conflicts": conflicts,
                }
            )

    @staticmethod
    def _validate_transition(current: str, target: str) -> None:
        if target == current:
            return
        if target not in BOOKING_TRANSITIONS.get(current, frozenset()):
            raise InvalidStatusTransitionException("booking", current, target)

    def _refund_on_cancel(self, booking: Booking) -> Optional[Decimal]:
        """
        Credit the payer for a cancelled booking's completed payment.

        The payment row is locked first; a payment already refunded (by an
        earlier cancel or an explicit refund) is left alone.
        """
        payment = self.payment_repository.get_by_booking_id(booking.id, for_update=True)
        if payment is None:
            self.logger.info(f"Cancelled booking {booking.id} has no payment to refund")
            return None
        if payment.status != PaymentStatus.COMPLETED.value:
            self.logger.info(
                f"Payment {payment.id} for booking {booking.id} already {payment.status}; no credit"
            )
            return None

        self.wallet_ledger.ensure_wallet(payment.user_id)
        self.wallet_ledger.credit(
            payment.user_id,
            payment.amount,
            reference=booking_cancel_reference(booking.id),
            reason="cancellation",
        )
        self.payment_repository.update(
            payment, status=PaymentStatus.REFUNDED.value, refunded_at=utcnow()
        )
        return Decimal(payment.amount).quantize(Decimal("0.01"))
