from datetime import time
from decimal import Decimal

import pytest

from app.services.pricing_calculator import (
    compute_amount,
    duration_minutes,
    quantize_money,
    time_to_minutes,
)


class TestComputeAmount:
    def test_ninety_minutes_at_twenty_per_hour(self) -> None:
        assert compute_amount(time(9, 0), time(10, 30), Decimal("20.00")) == Decimal("30.00")

    def test_zero_duration_is_invalid(self) -> None:
        assert compute_amount(time(10, 0), time(10, 0), Decimal("20.00")) is None

    def test_negative_duration_is_invalid(self) -> None:
        assert compute_amount(time(11, 0), time(10, 0), Decimal("20.00")) is None

    def test_rounds_half_up_to_cents(self) -> None:
        # 0.05 * 30 / 60 = 0.025
        assert compute_amount(time(9, 0), time(9, 30), Decimal("0.05")) == Decimal("0.03")

    def test_repeating_fraction(self) -> None:
        # 10.00 / 60 = 0.1666...
        assert compute_amount(time(9, 0), time(9, 1), Decimal("10.00")) == Decimal("0.17")

    def test_free_field_costs_nothing(self) -> None:
        assert compute_amount(time(9, 0), time(11, 0), Decimal("0")) == Decimal("0.00")


def test_time_to_minutes_ignores_seconds() -> None:
    assert time_to_minutes(time(9, 30, 59)) == 570
    assert duration_minutes(time(23, 0), time(23, 59)) == 59


def test_quantize_money_rejects_garbage() -> None:
    assert quantize_money("12.345") == Decimal("12.35")
    with pytest.raises(ValueError):
        quantize_money("twelve")
