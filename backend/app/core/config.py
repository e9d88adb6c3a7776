# backend/app/core/config.py
"""
Runtime configuration for the SportSpot booking core.

Values come from the environment (case-insensitive) and an optional ``.env``
file next to the backend directory.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_BACKEND_ROOT = Path(__file__).resolve().parents[2]
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment name")
    log_level: str = Field(default="INFO", description="Root log level")

    # Storage
    database_url: str = Field(
        default="sqlite:///./sportspot.db",
        description="SQLAlchemy URL of the relational store owning bookings and ledgers",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")
    database_pool_size: int = Field(default=5, ge=1)
    database_max_overflow: int = Field(default=5, ge=0)
    database_pool_timeout: int = Field(default=5, ge=1, description="Seconds to wait for a pooled connection")

    # Slot locking
    redis_url: Optional[str] = Field(
        default=None,
        description="Optional Redis URL enabling the cross-process slot lock",
    )
    slot_lock_namespace: str = Field(default="sportspot")
    slot_lock_ttl_seconds: int = Field(default=30, ge=1)
    slot_lock_wait_seconds: float = Field(default=10.0, gt=0)

    # Wallet
    wallet_payment_method: str = Field(
        default="wallet",
        description="Name of the internal payment method recorded on wallet-paid bookings",
    )
    deposit_methods: List[str] = Field(default_factory=lambda: ["visa", "mastercard", "paypal"])
    card_deposit_methods: List[str] = Field(default_factory=lambda: ["visa", "mastercard"])

    model_config = SettingsConfigDict(
        env_file=str(_BACKEND_ROOT / ".env") if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        level = (v or "INFO").strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("deposit_methods", "card_deposit_methods")
    @classmethod
    def _normalize_methods(cls, v: List[str]) -> List[str]:
        return [m.strip().lower() for m in v if m and m.strip()]

    @model_validator(mode="after")
    def _card_methods_are_deposit_methods(self) -> "Settings":
        unknown = set(self.card_deposit_methods) - set(self.deposit_methods)
        if unknown:
            raise ValueError(f"Card methods not allowed for deposit: {sorted(unknown)}")
        if self.wallet_payment_method in self.deposit_methods:
            raise ValueError("The internal wallet method cannot be used to fund a wallet")
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
logger.debug(
    "[CONFIG] environment=%s sqlite=%s redis_lock=%s",
    settings.environment,
    settings.is_sqlite,
    bool(settings.redis_url),
)
