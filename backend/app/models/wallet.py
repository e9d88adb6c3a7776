# backend/app/models/wallet.py
"""
Wallet and ledger models.

``Wallet.balance`` must always equal the sum of the user's deposit entries
minus the sum of their debit entries. Both are only written by
``WalletLedger``; ledger rows are append-only.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import MONEY, utcnow

if TYPE_CHECKING:
    from .user import User


class WalletTransactionType(str, Enum):
    """Types of wallet ledger entries."""

    DEPOSIT = "deposit"
    DEBIT = "debit"


class Wallet(Base):
    """Per-user prepaid balance, created lazily with a zero balance."""

    __tablename__ = "user_wallets"

    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))
    preferred_method: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    card_last4: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)
    card_exp_month: Mapped[Optional[int]] = mapped_column(SmallInteger, nullable=True)
    card_exp_year: Mapped[Optional[int]] = mapped_column(SmallInteger, nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    user: Mapped["User"] = relationship("User", back_populates="wallet")

    __table_args__ = (CheckConstraint("balance >= 0", name="ck_user_wallets_balance_non_negative"),)

    def __repr__(self) -> str:
        return f"<Wallet(user_id={self.user_id}, balance={self.balance})>"


class WalletTransaction(Base):
    """Append-only ledger entry; ``type`` carries the sign of ``amount``."""

    __tablename__ = "wallet_transactions"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_wallet_transactions_amount_positive"),
        CheckConstraint("type IN ('deposit', 'debit')", name="ck_wallet_transactions_type"),
        Index("idx_wallet_transactions_user_created_at", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<WalletTransaction(user_id={self.user_id}, type={self.type}, amount={self.amount})>"
