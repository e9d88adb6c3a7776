# backend/app/repositories/payment_repository.py
"""Payment and payment-method data access."""

import logging
from typing import List, Optional, Tuple, cast

from sqlalchemy import insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.payment import Payment, PaymentMethod
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PaymentMethodRepository(BaseRepository[PaymentMethod]):
    def __init__(self, db: Session):
        super().__init__(db, PaymentMethod)

    def get_by_name(self, method_name: str) -> Optional[PaymentMethod]:
        return self.find_one_by(method_name=method_name)

    def get_or_create(self, method_name: str) -> PaymentMethod:
        """Resolve a method by name, inserting it first if it is missing."""
        existing = self.get_by_name(method_name)
        if existing is not None:
            return existing

        try:
            if self.dialect_name == "postgresql":
                stmt = (
                    pg_insert(PaymentMethod)
                    .values(method_name=method_name)
                    .on_conflict_do_nothing(index_elements=["method_name"])
                )
                self.db.execute(stmt)
            elif self.dialect_name == "sqlite":
                self.db.execute(
                    insert(PaymentMethod).values(method_name=method_name).prefix_with("OR IGNORE")
                )
            else:
                return self.create(method_name=method_name)
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating payment method {method_name}: {str(e)}")
            raise RepositoryException(f"Failed to create payment method: {str(e)}")

        created = self.get_by_name(method_name)
        if created is None:
            raise RepositoryException(f"Payment method {method_name} missing after insert")
        return created


class PaymentRepository(BaseRepository[Payment]):
    def __init__(self, db: Session):
        super().__init__(db, Payment)

    def get_for_update(self, payment_id: str) -> Optional[Payment]:
        """Load a payment under an exclusive row lock."""
        try:
            return cast(
                Optional[Payment],
                self.db.query(Payment)
                .filter(Payment.id == payment_id)
                .with_for_update()
                .populate_existing()
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking payment {payment_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock payment: {str(e)}")

    def get_by_booking_id(self, booking_id: str, *, for_update: bool = False) -> Optional[Payment]:
        query = self._build_query().filter(Payment.booking_id == booking_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return self._execute_first(query)

    def list_with_method(self, user_id: Optional[str] = None) -> List[Tuple[Payment, str]]:
        """Payments joined with their method name, newest first."""
        try:
            stmt = select(Payment, PaymentMethod.method_name).join(
                PaymentMethod, Payment.method_id == PaymentMethod.id, isouter=True
            )
            if user_id:
                stmt = stmt.where(Payment.user_id == user_id)
            stmt = stmt.order_by(Payment.paid_at.desc(), Payment.id.desc())
            return [(row[0], row[1]) for row in self.db.execute(stmt).all()]
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing payments: {str(e)}")
            raise RepositoryException(f"Failed to list payments: {str(e)}")
