# backend/app/repositories/wallet_repository.py
"""
Wallet and ledger data access.

Repositories never commit. Row locks taken here (``SELECT ... FOR UPDATE``)
are held until the calling service's transaction ends.
"""

from decimal import Decimal
import logging
from typing import Dict, List, Optional, cast

from sqlalchemy import func, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.wallet import Wallet, WalletTransaction, WalletTransactionType
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class WalletRepository(BaseRepository[Wallet]):
    """Data access for per-user wallet rows."""

    def __init__(self, db: Session):
        super().__init__(db, Wallet)

    def insert_if_absent(self, user_id: str) -> bool:
        """
        Create a zero-balance wallet unless one exists.

        Returns True when a row was inserted. Safe under concurrent callers:
        the insert is a no-op on a primary-key collision.
        """
        try:
            if self.dialect_name == "postgresql":
                stmt = (
                    pg_insert(Wallet)
                    .values(user_id=user_id, balance=ZERO)
                    .on_conflict_do_nothing(index_elements=["user_id"])
                )
            elif self.dialect_name == "sqlite":
                stmt = insert(Wallet).values(user_id=user_id, balance=ZERO).prefix_with("OR IGNORE")
            else:
                if self.db.get(Wallet, user_id) is not None:
                    return False
                self.create(user_id=user_id, balance=ZERO)
                return True
            result = self.db.execute(stmt)
            return bool(getattr(result, "rowcount", 0))
        except SQLAlchemyError as e:
            self.logger.error(f"Error ensuring wallet for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to ensure wallet: {str(e)}")

    def get_for_update(self, user_id: str) -> Optional[Wallet]:
        """Load the wallet row under an exclusive lock (fresh from the database)."""
        try:
            return cast(
                Optional[Wallet],
                self.db.query(Wallet)
                .filter(Wallet.user_id == user_id)
                .with_for_update()
                .populate_existing()
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking wallet for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock wallet: {str(e)}")


class WalletTransactionRepository(BaseRepository[WalletTransaction]):
    """Append-only access to the wallet ledger."""

    def __init__(self, db: Session):
        super().__init__(db, WalletTransaction)

    def append(
        self,
        *,
        user_id: str,
        amount: Decimal,
        txn_type: WalletTransactionType,
        reference: Optional[str],
    ) -> WalletTransaction:
        return self.create(
            user_id=user_id,
            amount=amount,
            type=txn_type.value,
            reference=reference,
        )

    def list_for_user(self, user_id: str, limit: int = 100) -> List[WalletTransaction]:
        query = (
            self._build_query()
            .filter(WalletTransaction.user_id == user_id)
            .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
            .limit(limit)
        )
        return self._execute_query(query)

    def find_by_reference(self, user_id: str, reference: str) -> List[WalletTransaction]:
        return self.find_by(user_id=user_id, reference=reference)

    def totals_by_type(self, user_id: str) -> Dict[str, Decimal]:
        """Sum of ledger amounts per entry type for one user."""
        try:
            rows = self.db.execute(
                select(WalletTransaction.type, func.coalesce(func.sum(WalletTransaction.amount), 0))
                .where(WalletTransaction.user_id == user_id)
                .group_by(WalletTransaction.type)
            ).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error summing ledger for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to sum ledger: {str(e)}")

        totals = {t.value: ZERO for t in WalletTransactionType}
        for txn_type, total in rows:
            totals[txn_type] = Decimal(str(total)).quantize(Decimal("0.01"))
        return totals
