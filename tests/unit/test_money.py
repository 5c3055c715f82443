"""Tests for wm_common.money."""

from decimal import Decimal

from src.wm_common.money import (
    ZERO,
    non_negative,
    quantize,
    scale_units,
    to_decimal,
)


class TestToDecimal:
    def test_none_is_zero(self) -> None:
        assert to_decimal(None) == ZERO

    def test_junk_is_zero(self) -> None:
        assert to_decimal("not-a-number") == ZERO

    def test_nan_and_infinity_are_zero(self) -> None:
        assert to_decimal(float("nan")) == ZERO
        assert to_decimal(Decimal("Infinity")) == ZERO

    def test_int_and_str(self) -> None:
        assert to_decimal(42) == Decimal("42")
        assert to_decimal("1000.50") == Decimal("1000.50")

    def test_float_goes_through_str(self) -> None:
        assert to_decimal(0.1) == Decimal("0.1")


class TestScaleUnits:
    def test_cents_to_units(self) -> None:
        assert scale_units(50000, 100) == Decimal("500.00")

    def test_decimal_units_unchanged(self) -> None:
        assert scale_units(Decimal("1000.00"), 1) == Decimal("1000.00")

    def test_odd_cents(self) -> None:
        assert scale_units(12345, 100) == Decimal("123.45")

    def test_none_scales_to_zero(self) -> None:
        assert scale_units(None, 100) == ZERO


class TestRounding:
    def test_half_up(self) -> None:
        assert quantize(Decimal("1.005")) == Decimal("1.01")
        assert quantize(Decimal("1.004")) == Decimal("1.00")

    def test_non_negative_clamps(self) -> None:
        assert non_negative(Decimal("-5")) == ZERO
        assert non_negative(Decimal("5")) == Decimal("5")
