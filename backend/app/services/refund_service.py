# backend/app/services/refund_service.py
"""
Refund request lifecycle.

``pending -> approved -> completed`` or ``pending -> rejected``.
Only the move into ``completed`` moves money: the requester's wallet is
credited with a ``refund:<refund_id>`` deposit and the payment is marked
refunded. A payment is refunded at most once, whichever path gets there
first (explicit refund or booking cancellation).
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import (
    BookingNotFoundException,
    BusinessRuleException,
    InvalidStatusTransitionException,
    PaymentAlreadyRefundedException,
    PaymentNotFoundException,
    RefundNotFoundException,
    ValidationException,
)
from app.models.payment import PaymentStatus
from app.models.refund import REFUND_TRANSITIONS, Refund, RefundStatus
from app.models.types import utcnow
from app.repositories.factory import RepositoryFactory
from app.schemas.refund import (
    RefundCreate,
    RefundCreated,
    RefundProcess,
    RefundProcessResult,
    RefundView,
)
from app.services.base import BaseService
from app.services.pricing_calculator import quantize_money
from app.services.wallet_ledger import WalletLedger

logger = logging.getLogger(__name__)

# Refunds that never moved money may be removed by an admin
DELETABLE_REFUND_STATUSES = frozenset(
    {RefundStatus.PENDING.value, RefundStatus.APPROVED.value, RefundStatus.REJECTED.value}
)


def refund_credit_reference(refund_id: str) -> str:
    return f"refund:{refund_id}"


class RefundService(BaseService):
    def __init__(self, db: Session, wallet_ledger: Optional[WalletLedger] = None):
        super().__init__(db)
        self.wallet_ledger = wallet_ledger or WalletLedger(db)
        self.refund_repository = RepositoryFactory.create_refund_repository(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("create_refund_request")
    def create_refund_request(self, data: RefundCreate) -> RefundCreated:
        """
        Open a ``pending`` refund against a booking's payment.

        Raises:
            BookingNotFoundException / PaymentNotFoundException: unknown ids
            ValidationException: payment of another booking or user, or an
                amount above what was paid
            PaymentAlreadyRefundedException: the payment was already refunded
        """
        self.log_operation(
            "create_refund_request", booking_id=data.booking_id, payment_id=data.payment_id
        )
        amount = quantize_money(data.amount)

        with self.transaction():
            if self.booking_repository.get_by_id(data.booking_id) is None:
                raise BookingNotFoundException(data.booking_id)
            payment = self.payment_repository.get_by_id(data.payment_id)
            if payment is None:
                raise PaymentNotFoundException(data.payment_id)
            if payment.booking_id != data.booking_id:
                raise ValidationException(
                    "Payment does not belong to this booking",
                    details={"booking_id": data.booking_id, "payment_id": data.payment_id},
                )
            if payment.user_id != data.user_id:
                raise ValidationException(
                    "Refunds can only be credited to the paying user",
                    details={"payment_id": data.payment_id, "user_id": data.user_id},
                )
            if payment.is_refunded:
                raise PaymentAlreadyRefundedException(payment.id)
            if amount > quantize_money(payment.amount):
                raise ValidationException(
                    "Refund amount exceeds the payment amount",
                    details={"amount": str(amount), "payment_amount": str(payment.amount)},
                )

            refund = self.refund_repository.create(
                booking_id=data.booking_id,
                user_id=data.user_id,
                payment_id=data.payment_id,
                amount=amount,
                reason=data.reason,
                status=RefundStatus.PENDING.value,
                requested_by=data.requested_by,
            )

        self.logger.info(f"Refund {refund.id} requested for payment {data.payment_id}")
        return RefundCreated(refund_id=refund.id)

    @BaseService.measure_operation("process_refund")
    def process_refund(self, refund_id: str, request: RefundProcess) -> RefundProcessResult:
        """
        Move a refund to ``approved``, ``rejected`` or ``completed``.

        Re-sending the current status is a no-op, so a second completion
        credits nothing.

        Raises:
            RefundNotFoundException: unknown refund
            InvalidStatusTransitionException: skipping approval, or leaving a
                terminal status
            PaymentAlreadyRefundedException: completing against a payment that
                was already refunded (e.g. by cancelling the booking)
        """
        target = request.status
        self.log_operation("process_refund", refund_id=refund_id, status=target)

        with self.transaction():
            refund = self.refund_repository.get_for_update(refund_id)
            if refund is None:
                raise RefundNotFoundException(refund_id)

            current = refund.status
            if target == current:
                self.logger.info(f"Refund {refund_id} already {current}; nothing to do")
                return RefundProcessResult(refund_id=refund_id, status=current)
            if target not in REFUND_TRANSITIONS.get(current, frozenset()):
                raise InvalidStatusTransitionException("refund", current, target)

            credited = False
            if target == RefundStatus.COMPLETED.value:
                self._complete(refund)
                credited = True

            self.refund_repository.update(refund, status=target, processed_at=utcnow())

        self.logger.info(f"Refund {refund_id} moved {current} -> {target}")
        return RefundProcessResult(refund_id=refund_id, status=target, credited=credited)

    def _complete(self, refund: Refund) -> None:
        payment = self.payment_repository.get_for_update(refund.payment_id)
        if payment is None:
            raise PaymentNotFoundException(refund.payment_id)
        if payment.status != PaymentStatus.COMPLETED.value:
            self.logger.warning(
                f"Refund {refund.id} blocked: payment {payment.id} is already {payment.status}"
            )
            raise PaymentAlreadyRefundedException(payment.id)

        self.wallet_ledger.ensure_wallet(refund.user_id)
        self.wallet_ledger.credit(
            refund.user_id,
            refund.amount,
            reference=refund_credit_reference(refund.id),
            reason="refund",
        )
        self.payment_repository.update(
            payment, status=PaymentStatus.REFUNDED.value, refunded_at=utcnow()
        )

    @BaseService.measure_operation("list_refunds")
    def list_refunds(self, user_id: Optional[str] = None) -> List[RefundView]:
        """Refund requests, newest first, optionally for one user."""
        return [
            RefundView(
                id=refund.id,
                booking_id=refund.booking_id,
                user_id=refund.user_id,
                payment_id=refund.payment_id,
                amount=quantize_money(refund.amount),
                reason=refund.reason,
                status=refund.status,
                requested_by=refund.requested_by,
                requested_at=refund.requested_at,
                processed_at=refund.processed_at,
            )
            for refund in self.refund_repository.list_refunds(user_id)
        ]

    @BaseService.measure_operation("delete_refund")
    def delete_refund(self, refund_id: str) -> None:
        """Remove a refund request that never moved money."""
        self.log_operation("delete_refund", refund_id=refund_id)
        with self.transaction():
            refund = self.refund_repository.get_for_update(refund_id)
            if refund is None:
                raise RefundNotFoundException(refund_id)
            if refund.status not in DELETABLE_REFUND_STATUSES:
                raise BusinessRuleException(
                    f"Refund {refund_id} is {refund.status} and cannot be deleted",
                    code="REFUND_NOT_DELETABLE",
                    details={"refund_id": refund_id, "status": refund.status},
                )
            self.refund_repository.delete(refund)
