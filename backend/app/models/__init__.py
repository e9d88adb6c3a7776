"""
Database models for the SportSpot booking core.

- Users, field owners and sport fields (read-mostly, owned by the CRUD layer)
- Bookings
- Wallets and the append-only wallet ledger
- Payments, payment methods and refund requests
"""

from .booking import ACTIVE_BOOKING_STATUSES, BOOKING_TRANSITIONS, Booking, BookingStatus
from .field import FieldOwner, FieldStatus, SportField
from .payment import Payment, PaymentMethod, PaymentStatus
from .refund import REFUND_TRANSITIONS, Refund, RefundStatus
from .user import User
from .wallet import Wallet, WalletTransaction, WalletTransactionType

__all__ = [
    "ACTIVE_BOOKING_STATUSES",
    "BOOKING_TRANSITIONS",
    "Booking",
    "BookingStatus",
    "FieldOwner",
    "FieldStatus",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "REFUND_TRANSITIONS",
    "Refund",
    "RefundStatus",
    "SportField",
    "User",
    "Wallet",
    "WalletTransaction",
    "WalletTransactionType",
]
