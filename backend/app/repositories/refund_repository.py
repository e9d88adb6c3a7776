# backend/app/repositories/refund_repository.py
"""Refund request data access."""

import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.refund import Refund
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class RefundRepository(BaseRepository[Refund]):
    def __init__(self, db: Session):
        super().__init__(db, Refund)

    def get_for_update(self, refund_id: str) -> Optional[Refund]:
        """Load a refund under an exclusive row lock so completions serialize."""
        try:
            return cast(
                Optional[Refund],
                self.db.query(Refund)
                .filter(Refund.id == refund_id)
                .with_for_update()
                .populate_existing()
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking refund {refund_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock refund: {str(e)}")

    def list_refunds(self, user_id: Optional[str] = None) -> List[Refund]:
        query = self._build_query()
        if user_id:
            query = query.filter(Refund.user_id == user_id)
        return self._execute_query(query.order_by(Refund.requested_at.desc(), Refund.id.desc()))
