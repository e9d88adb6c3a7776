# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the SportSpot booking core.

Every error carries a stable ``code`` and a ``details`` mapping so callers can
surface it as a structured result, or convert it to an HTTP error with
``to_http_exception`` when the core is embedded behind FastAPI.
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "code": self.code, "details": self.details}

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.to_dict())


class ValidationException(DomainException):
    """Raised when input is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        code: Optional[str] = "VALIDATION_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ServiceException(DomainException):
    """Raised when a service operation fails unexpectedly (storage failure)."""

    def __init__(
        self,
        message: str = "An error occurred processing your request",
        code: Optional[str] = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


# Specific business exceptions


class InvalidRangeException(ValidationException):
    """Raised when a booking interval has a non-positive duration."""

    def __init__(self, start_time: Any, end_time: Any):
        super().__init__(
            message="End time must be after start time",
            code="INVALID_RANGE",
            details={"start_time": str(start_time), "end_time": str(end_time)},
        )


class SlotConflictException(ConflictException):
    """Raised when a booking overlaps an active booking on the same field."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot is already booked. Please choose another time.",
            code="SLOT_CONFLICT",
            details=details or {},
        )


class SlotLockTimeoutException(ServiceException):
    """Raised when the (field, date) booking lock cannot be acquired in time."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, lock_key: str, waited_seconds: float):
        super().__init__(
            message="The field is busy processing another booking. Please retry.",
            code="SLOT_LOCK_TIMEOUT",
            details={"lock_key": lock_key, "waited_seconds": waited_seconds},
        )


class FieldNotFoundException(NotFoundException):
    def __init__(self, field_id: str):
        super().__init__(
            f"Field {field_id} not found", code="FIELD_NOT_FOUND", details={"field_id": field_id}
        )


class BookingNotFoundException(NotFoundException):
    def __init__(self, booking_id: str):
        super().__init__(
            f"Booking {booking_id} not found",
            code="BOOKING_NOT_FOUND",
            details={"booking_id": booking_id},
        )


class RefundNotFoundException(NotFoundException):
    def __init__(self, refund_id: str):
        super().__init__(
            f"Refund {refund_id} not found", code="REFUND_NOT_FOUND", details={"refund_id": refund_id}
        )


class WalletNotFoundException(NotFoundException):
    def __init__(self, user_id: str):
        super().__init__(
            f"Wallet not found for user {user_id}",
            code="WALLET_NOT_FOUND",
            details={"user_id": user_id},
        )


class PaymentNotFoundException(NotFoundException):
    def __init__(self, payment_id: str):
        super().__init__(
            f"Payment {payment_id} not found",
            code="PAYMENT_NOT_FOUND",
            details={"payment_id": payment_id},
        )


class InsufficientBalanceException(BusinessRuleException):
    """Raised when a wallet cannot cover a debit."""

    status_code = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(self, balance: Decimal, required: Decimal):
        super().__init__(
            message="Insufficient balance. Please add funds to your wallet.",
            code="INSUFFICIENT_BALANCE",
            details={"balance": str(balance), "required": str(required)},
        )


class InvalidStatusTransitionException(BusinessRuleException):
    """Raised when a booking or refund is moved along a forbidden edge."""

    def __init__(self, entity: str, current: str, requested: str):
        super().__init__(
            message=f"Cannot move {entity} from {current} to {requested}",
            code="INVALID_STATUS_TRANSITION",
            details={"entity": entity, "current": current, "requested": requested},
        )


class PaymentAlreadyRefundedException(ConflictException):
    """Raised when a refund would credit a payment that was already refunded."""

    def __init__(self, payment_id: str):
        super().__init__(
            message=f"Payment {payment_id} has already been refunded",
            code="PAYMENT_ALREADY_REFUNDED",
            details={"payment_id": payment_id},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Used when data access operations fail, such as connection issues,
    query failures, or constraint violations.
    """
