# backend/app/schemas/wallet.py
"""Wallet, ledger and payment DTOs."""

from datetime import datetime
from decimal import Decimal
import re
from typing import Optional

from pydantic import Field, field_validator, model_validator

from app.core.config import settings

from ._strict_base import StrictModel, StrictRequestModel

LAST4_REGEX = re.compile(r"^[0-9]{4}$")


class DepositRequest(StrictRequestModel):
    """Top up a wallet from an external method."""

    user_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    method: str
    card_last4: Optional[str] = None
    card_exp_month: Optional[int] = Field(None, ge=1, le=12)
    card_exp_year: Optional[int] = Field(None, ge=2000, le=2999)

    @field_validator("method")
    @classmethod
    def _allowed_method(cls, v: str) -> str:
        method = v.strip().lower()
        if method not in settings.deposit_methods:
            raise ValueError("Invalid payment method")
        return method

    @model_validator(mode="after")
    def _card_metadata(self) -> "DepositRequest":
        if self.method in settings.card_deposit_methods:
            if not self.card_last4 or not LAST4_REGEX.fullmatch(self.card_last4):
                raise ValueError("Provide last 4 digits for card")
            if not self.card_exp_month or not self.card_exp_year:
                raise ValueError("Provide card expiry month and year")
        return self


class DepositResult(StrictModel):
    user_id: str
    balance: Decimal


class WalletView(StrictModel):
    user_id: str
    balance: Decimal
    preferred_method: Optional[str] = None
    card_last4: Optional[str] = None
    card_exp_month: Optional[int] = None
    card_exp_year: Optional[int] = None
    updated_at: Optional[datetime] = None


class WalletTransactionView(StrictModel):
    id: str
    user_id: str
    amount: Decimal
    type: str
    reference: Optional[str] = None
    created_at: datetime


class LedgerReconciliation(StrictModel):
    user_id: str
    balance: Decimal
    deposits: Decimal
    debits: Decimal
    ledger_total: Decimal
    balanced: bool


class PaymentView(StrictModel):
    id: str
    booking_id: str
    user_id: str
    method_id: str
    method_name: Optional[str] = None
    amount: Decimal
    status: str
    paid_at: datetime
    refunded_at: Optional[datetime] = None
