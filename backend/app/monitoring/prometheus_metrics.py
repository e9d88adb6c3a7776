"""
Prometheus metrics for the booking core.

Service timings are fed by the ``@measure_operation`` decorator; the domain
helpers count slot-lock outcomes and wallet money movements.
"""

from decimal import Decimal
from threading import Lock
from typing import Optional, Union, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry to avoid conflicts with default process metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "sportspot_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "sportspot_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "sportspot_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

slot_lock_total = Counter(
    "sportspot_slot_lock_total",
    "Field/date slot lock operations by outcome",
    ["action", "outcome"],
    registry=REGISTRY,
)

wallet_movements_total = Counter(
    "sportspot_wallet_movements_total",
    "Wallet ledger entries appended",
    ["type", "reason"],
    registry=REGISTRY,
)

wallet_movement_amount_total = Counter(
    "sportspot_wallet_movement_amount_total",
    "Sum of wallet ledger amounts appended",
    ["type"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _lock: Lock = Lock()

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation name (e.g., 'create_booking')
            duration: Operation duration in seconds
            status: 'success' or 'error'
            error_type: Exception class name if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_slot_lock(action: str, outcome: str) -> None:
        slot_lock_total.labels(action=action, outcome=outcome).inc()

    @staticmethod
    def record_wallet_movement(txn_type: str, reason: str, amount: Union[Decimal, float]) -> None:
        wallet_movements_total.labels(type=txn_type, reason=reason).inc()
        wallet_movement_amount_total.labels(type=txn_type).inc(float(amount))

    @staticmethod
    def get_metrics() -> bytes:
        """Generate metrics in Prometheus text exposition format."""
        with PrometheusMetrics._lock:
            return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


# Singleton instance
prometheus_metrics = PrometheusMetrics()
