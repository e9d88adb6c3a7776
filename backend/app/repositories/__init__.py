# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the SportSpot booking core

Key Components:
- BaseRepository: generic record-level operations (never commits)
- RepositoryFactory: creates repository instances for services
- ConflictCheckerRepository: overlap queries and the (field, date) advisory lock
- BookingRepository / FieldRepository / FieldOwnerRepository
- WalletRepository / WalletTransactionRepository: balance rows and the ledger
- PaymentRepository / PaymentMethodRepository / RefundRepository

Usage:
    from app.repositories import RepositoryFactory

    repository = RepositoryFactory.create_wallet_repository(db)
    wallet = repository.get_for_update(user_id)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .conflict_checker_repository import ConflictCheckerRepository, field_day_lock_key
from .factory import RepositoryFactory
from .field_repository import FieldOwnerRepository, FieldRepository
from .payment_repository import PaymentMethodRepository, PaymentRepository
from .refund_repository import RefundRepository
from .wallet_repository import WalletRepository, WalletTransactionRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "ConflictCheckerRepository",
    "FieldOwnerRepository",
    "FieldRepository",
    "PaymentMethodRepository",
    "PaymentRepository",
    "RefundRepository",
    "RepositoryFactory",
    "WalletRepository",
    "WalletTransactionRepository",
    "field_day_lock_key",
]
