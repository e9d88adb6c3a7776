# backend/app/repositories/factory.py
"""
Repository Factory for the SportSpot booking core

Provides centralized creation of repository instances so services get their
data access through one place and tests can swap implementations.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .conflict_checker_repository import ConflictCheckerRepository
    from .field_repository import FieldOwnerRepository, FieldRepository
    from .payment_repository import PaymentMethodRepository, PaymentRepository
    from .refund_repository import RefundRepository
    from .wallet_repository import WalletRepository, WalletTransactionRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_conflict_checker_repository(db: Session) -> "ConflictCheckerRepository":
        """Create repository for conflict checking queries."""
        from .conflict_checker_repository import ConflictCheckerRepository

        return ConflictCheckerRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_field_repository(db: Session) -> "FieldRepository":
        from .field_repository import FieldRepository

        return FieldRepository(db)

    @staticmethod
    def create_field_owner_repository(db: Session) -> "FieldOwnerRepository":
        from .field_repository import FieldOwnerRepository

        return FieldOwnerRepository(db)

    @staticmethod
    def create_wallet_repository(db: Session) -> "WalletRepository":
        from .wallet_repository import WalletRepository

        return WalletRepository(db)

    @staticmethod
    def create_wallet_transaction_repository(db: Session) -> "WalletTransactionRepository":
        from .wallet_repository import WalletTransactionRepository

        return WalletTransactionRepository(db)

    @staticmethod
    def create_payment_repository(db: Session) -> "PaymentRepository":
        from .payment_repository import PaymentRepository

        return PaymentRepository(db)

    @staticmethod
    def create_payment_method_repository(db: Session) -> "PaymentMethodRepository":
        from .payment_repository import PaymentMethodRepository

        return PaymentMethodRepository(db)

    @staticmethod
    def create_refund_repository(db: Session) -> "RefundRepository":
        from .refund_repository import RefundRepository

        return RefundRepository(db)
