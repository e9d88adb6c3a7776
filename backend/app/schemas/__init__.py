# backend/app/schemas/__init__.py
"""Pydantic request/response schemas for the SportSpot booking core."""

from ._strict_base import StrictModel, StrictRequestModel, parse_payload
from .booking import BookingCreate, BookingCreated, BookingUpdate, BookingUpdateResult
from .refund import RefundCreate, RefundCreated, RefundProcess, RefundProcessResult, RefundView
from .wallet import (
    DepositRequest,
    DepositResult,
    LedgerReconciliation,
    PaymentView,
    WalletTransactionView,
    WalletView,
)

__all__ = [
    "BookingCreate",
    "BookingCreated",
    "BookingUpdate",
    "BookingUpdateResult",
    "DepositRequest",
    "DepositResult",
    "LedgerReconciliation",
    "PaymentView",
    "RefundCreate",
    "RefundCreated",
    "RefundProcess",
    "RefundProcessResult",
    "RefundView",
    "StrictModel",
    "StrictRequestModel",
    "WalletTransactionView",
    "WalletView",
    "parse_payload",
]
