# backend/app/services/payment_service.py
"""Read access to booking payments."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..repositories import RepositoryFactory
from ..schemas.wallet import PaymentView
from .base import BaseService
from .pricing_calculator import quantize_money

logger = logging.getLogger(__name__)


class PaymentService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)

    @BaseService.measure_operation("list_payments")
    def list_payments(self, user_id: Optional[str] = None) -> List[PaymentView]:
        """Payments with their method name, newest first."""
        return [
            PaymentView(
                id=payment.id,
                booking_id=payment.booking_id,
                user_id=payment.user_id,
                method_id=payment.method_id,
                method_name=method_name,
                amount=quantize_money(payment.amount),
                status=payment.status,
                paid_at=payment.paid_at,
                refunded_at=payment.refunded_at,
            )
            for payment, method_name in self.payment_repository.list_with_method(user_id)
        ]
