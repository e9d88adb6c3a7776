# backend/app/services/wallet_ledger.py
"""
Wallet Ledger Service for the SportSpot booking core

The only component allowed to change ``Wallet.balance``. Every balance change
appends a matching WalletTransaction in the same unit of work, so for any
user ``balance == sum(deposits) - sum(debits)`` holds after every commit.

The composable methods (``ensure_wallet``, ``lock_and_get_balance``,
``debit``, ``credit``, ``ensure_payment_method``) never commit: they join the
caller's ``transaction()`` block. ``deposit`` and the read helpers own their
transaction.
"""

from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    InsufficientBalanceException,
    ValidationException,
    WalletNotFoundException,
)
from ..models.payment import PaymentMethod
from ..models.wallet import Wallet, WalletTransactionType
from ..repositories import RepositoryFactory
from ..repositories.payment_repository import PaymentMethodRepository
from ..repositories.wallet_repository import WalletRepository, WalletTransactionRepository
from ..schemas.wallet import (
    DepositRequest,
    DepositResult,
    LedgerReconciliation,
    WalletTransactionView,
    WalletView,
)
from .base import BaseService

try:
    from ..monitoring.prometheus_metrics import prometheus_metrics
except ImportError:
    prometheus_metrics = None

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


class WalletLedger(BaseService):
    """Per-user prepaid balance and its append-only ledger."""

    def __init__(
        self,
        db: Session,
        wallet_repository: Optional[WalletRepository] = None,
        transaction_repository: Optional[WalletTransactionRepository] = None,
        payment_method_repository: Optional[PaymentMethodRepository] = None,
    ):
        super().__init__(db)
        self.wallet_repository = wallet_repository or RepositoryFactory.create_wallet_repository(db)
        self.transaction_repository = (
            transaction_repository or RepositoryFactory.create_wallet_transaction_repository(db)
        )
        self.payment_method_repository = (
            payment_method_repository or RepositoryFactory.create_payment_method_repository(db)
        )

    # Composable steps: must run inside the caller's transaction

    def ensure_wallet(self, user_id: str) -> bool:
        """Create a zero-balance wallet if the user has none. Returns True if created."""
        created = self.wallet_repository.insert_if_absent(user_id)
        if created:
            self.logger.info("Created wallet for user %s", user_id)
        return created

    def _locked_wallet(self, user_id: str) -> Wallet:
        wallet = self.wallet_repository.get_for_update(user_id)
        if wallet is None:
            raise WalletNotFoundException(user_id)
        return wallet

    def lock_and_get_balance(self, user_id: str) -> Decimal:
        """
        Lock the wallet row until the enclosing transaction ends and return its balance.

        Raises:
            WalletNotFoundException: if ``ensure_wallet`` was not called first
        """
        return _money(self._locked_wallet(user_id).balance)

    def debit(
        self, user_id: str, amount: Decimal, reference: str, *, reason: str = "booking"
    ) -> Decimal:
        """
        Take ``amount`` from the wallet and append a ``debit`` entry.

        Returns:
            The balance after the debit

        Raises:
            InsufficientBalanceException: if the locked balance is below ``amount``
        """
        value = self._positive_amount(amount)
        wallet = self._locked_wallet(user_id)
        balance = _money(wallet.balance)
        if balance < value:
            self.logger.warning(
                "Insufficient balance for user %s: balance=%s required=%s", user_id, balance, value
            )
            raise InsufficientBalanceException(balance=balance, required=value)

        self.wallet_repository.update(wallet, balance=balance - value)
        self.transaction_repository.append(
            user_id=user_id, amount=value, txn_type=WalletTransactionType.DEBIT, reference=reference
        )
        self._record_movement(WalletTransactionType.DEBIT, reason, value)
        return _money(wallet.balance)

    def credit(
        self, user_id: str, amount: Decimal, reference: str, *, reason: str = "deposit"
    ) -> Decimal:
        """Add ``amount`` to the wallet and append a ``deposit`` entry. Returns the new balance."""
        value = self._positive_amount(amount)
        wallet = self._locked_wallet(user_id)
        self.wallet_repository.update(wallet, balance=_money(wallet.balance) + value)
        self.transaction_repository.append(
            user_id=user_id, amount=value, txn_type=WalletTransactionType.DEPOSIT, reference=reference
        )
        self._record_movement(WalletTransactionType.DEPOSIT, reason, value)
        return _money(wallet.balance)

    def ensure_payment_method(self, method_name: Optional[str] = None) -> PaymentMethod:
        """Resolve (creating on first use) the payment method recorded on wallet payments."""
        return self.payment_method_repository.get_or_create(
            method_name or settings.wallet_payment_method
        )

    # Operations owning their transaction

    @BaseService.measure_operation("deposit")
    def deposit(self, request: DepositRequest) -> DepositResult:
        """
        Top up a wallet from an external method.

        The method and card metadata on the request are remembered as the
        wallet's preferred method; card fields are cleared for non-card methods.
        """
        self.log_operation("deposit", user_id=request.user_id, method=request.method)
        is_card = request.method in settings.card_deposit_methods

        with self.transaction():
            self.ensure_wallet(request.user_id)
            wallet = self._locked_wallet(request.user_id)
            self.wallet_repository.update(
                wallet,
                preferred_method=request.method,
                card_last4=request.card_last4 if is_card else None,
                card_exp_month=request.card_exp_month if is_card else None,
                card_exp_year=request.card_exp_year if is_card else None,
            )
            balance = self.credit(
                request.user_id, request.amount, reference=request.method, reason="deposit"
            )

        return DepositResult(user_id=request.user_id, balance=balance)

    @BaseService.measure_operation("get_wallet")
    def get_wallet(self, user_id: str) -> WalletView:
        """Return the user's wallet, creating an empty one on first access."""
        with self.transaction():
            self.ensure_wallet(user_id)
            wallet = self.wallet_repository.get_by_id(user_id)
            if wallet is None:
                raise WalletNotFoundException(user_id)

        return WalletView(
            user_id=wallet.user_id,
            balance=_money(wallet.balance),
            preferred_method=wallet.preferred_method,
            card_last4=wallet.card_last4,
            card_exp_month=wallet.card_exp_month,
            card_exp_year=wallet.card_exp_year,
            updated_at=wallet.updated_at,
        )

    @BaseService.measure_operation("get_wallet_transactions")
    def get_transactions(self, user_id: str, limit: int = 50) -> List[WalletTransactionView]:
        """Ledger history for a user, newest first."""
        if limit < 1:
            raise ValidationException("limit must be positive", details={"limit": limit})
        entries = self.transaction_repository.list_for_user(user_id, limit=limit)
        return [
            WalletTransactionView(
                id=entry.id,
                user_id=entry.user_id,
                amount=_money(entry.amount),
                type=entry.type,
                reference=entry.reference,
                created_at=entry.created_at,
            )
            for entry in entries
        ]

    @BaseService.measure_operation("reconcile_wallet")
    def reconcile(self, user_id: str) -> LedgerReconciliation:
        """Compare the stored balance with the sum of the user's ledger entries."""
        wallet = self.wallet_repository.get_by_id(user_id)
        if wallet is None:
            raise WalletNotFoundException(user_id)

        totals = self.transaction_repository.totals_by_type(user_id)
        deposits = totals[WalletTransactionType.DEPOSIT.value]
        debits = totals[WalletTransactionType.DEBIT.value]
        balance = _money(wallet.balance)
        ledger_total = deposits - debits
        balanced = balance == ledger_total
        if not balanced:
            self.logger.error(
                "Wallet ledger mismatch for user %s: balance=%s ledger=%s",
                user_id,
                balance,
                ledger_total,
            )

        return LedgerReconciliation(
            user_id=user_id,
            balance=balance,
            deposits=deposits,
            debits=debits,
            ledger_total=ledger_total,
            balanced=balanced,
        )

    # Helpers

    @staticmethod
    def _positive_amount(amount: Decimal) -> Decimal:
        value = _money(amount)
        if value <= 0:
            raise ValidationException(
                "Amount must be greater than 0", details={"amount": str(amount)}
            )
        return value

    def _record_movement(self, txn_type: WalletTransactionType, reason: str, amount: Decimal) -> None:
        if prometheus_metrics is None:
            return
        try:
            prometheus_metrics.record_wallet_movement(txn_type.value, reason, amount)
        except Exception as metrics_error:
            logger.debug("Wallet metrics recording failed: %s", metrics_error)
