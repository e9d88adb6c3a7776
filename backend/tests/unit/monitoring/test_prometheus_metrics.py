from decimal import Decimal

from app.monitoring.prometheus_metrics import REGISTRY, prometheus_metrics


def _sample(name: str, labels: dict) -> float:
    value = REGISTRY.get_sample_value(name, labels)
    return value or 0.0


def test_wallet_movements_are_counted() -> None:
    labels = {"type": "debit", "reason": "booking"}
    before = _sample("sportspot_wallet_movements_total", labels)
    amount_before = _sample("sportspot_wallet_movement_amount_total", {"type": "debit"})

    prometheus_metrics.record_wallet_movement("debit", "booking", Decimal("30.00"))

    assert _sample("sportspot_wallet_movements_total", labels) == before + 1
    amount_after = _sample("sportspot_wallet_movement_amount_total", {"type": "debit"})
    assert amount_after == amount_before + 30.0


def test_service_errors_are_labelled() -> None:
    labels = {
        "service": "BookingService",
        "operation": "create_booking",
        "error_type": "SlotConflictException",
    }
    before = _sample("sportspot_errors_total", labels)

    prometheus_metrics.record_service_operation(
        "BookingService", "create_booking", 0.01, status="error", error_type="SlotConflictException"
    )

    assert _sample("sportspot_errors_total", labels) == before + 1


def test_exposition_format() -> None:
    prometheus_metrics.record_slot_lock("acquire", "success")
    body = prometheus_metrics.get_metrics().decode()
    assert "sportspot_slot_lock_total" in body
    assert prometheus_metrics.get_content_type().startswith("text/plain")
