# backend/app/services/base.py
"""
Base Service Pattern for the SportSpot booking core

Every service receives the caller's storage session and gets:
- ``transaction()``: one unit of work, committed on success, rolled back on
  any exception
- ``measure_operation``: timing, slow-call warnings and Prometheus counters
- ``log_operation``: structured entry logging
"""

from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
import logging
import time
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException, ServiceException

try:
    from ..monitoring.prometheus_metrics import prometheus_metrics

    PROMETHEUS_AVAILABLE = True
except ImportError:
    prometheus_metrics = None
    PROMETHEUS_AVAILABLE = False

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


@dataclass
class OperationStats:
    """Running timings for one service operation."""

    count: int = 0
    failures: int = 0
    total_time: float = 0.0
    min_time: float = float("inf")
    max_time: float = 0.0

    def add(self, elapsed: float, success: bool) -> None:
        self.count += 1
        self.total_time += elapsed
        self.min_time = min(self.min_time, elapsed)
        self.max_time = max(self.max_time, elapsed)
        if not success:
            self.failures += 1

    def summary(self) -> Dict[str, Any]:
        successes = self.count - self.failures
        return {
            "count": self.count,
            "avg_time": self.total_time / self.count,
            "min_time": self.min_time,
            "max_time": self.max_time,
            "success_count": successes,
            "failure_count": self.failures,
            "success_rate": successes / self.count,
        }


class BaseService:
    """
    Base class for all service layer components.

    One session maps to one logical request. Multi-step writes go through
    ``transaction()`` so a failure at any step rolls back every write made
    in that block.
    """

    # service class name -> operation name -> stats
    _stats: Dict[str, Dict[str, OperationStats]] = {}

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Usage:
            with self.transaction():
                self.repository.create(...)

        Storage failures are rolled back and re-raised as ``ServiceException``;
        domain exceptions are rolled back and re-raised unchanged.
        """
        try:
            yield self.db
            self.db.commit()
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}") from e
        except Exception:
            self.db.rollback()
            raise
        self.logger.debug("Transaction committed")

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator timing a public service operation.

        Usage:
            @BaseService.measure_operation("create_booking")
            def create_booking(self, booking_data):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                started = time.perf_counter()
                error_type: Optional[str] = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    self._observe(operation_name, time.perf_counter() - started, error_type)

            return cast(F, wrapper)

        return decorator

    def _observe(self, operation: str, elapsed: float, error_type: Optional[str]) -> None:
        success = error_type is None
        per_service = BaseService._stats.setdefault(self.__class__.__name__, {})
        per_service.setdefault(operation, OperationStats()).add(elapsed, success)

        if elapsed > SLOW_OPERATION_SECONDS:
            self.logger.warning(f"Slow operation detected: {operation} took {elapsed:.2f}s")

        if not (PROMETHEUS_AVAILABLE and prometheus_metrics):
            return
        try:
            prometheus_metrics.record_service_operation(
                service=self.__class__.__name__,
                operation=operation,
                duration=elapsed,
                status="success" if success else "error",
                error_type=error_type,
            )
        except Exception as metrics_error:
            logger.debug("Metrics recording failed: %s", metrics_error)

    def log_operation(self, operation: str, **context: Any) -> None:
        """Log an operation with context."""
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

    def get_metrics(self) -> Dict[str, Any]:
        """Timing summary per measured operation of this service."""
        stats = BaseService._stats.get(self.__class__.__name__, {})
        return {name: entry.summary() for name, entry in stats.items() if entry.count}

    def reset_metrics(self) -> None:
        BaseService._stats.pop(self.__class__.__name__, None)
