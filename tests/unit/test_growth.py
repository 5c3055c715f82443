"""Tests for growth and churn percentages."""

from decimal import Decimal

import pytest

from src.wm_dashboard.domain.growth import churn_rate, growth_percent


class TestGrowthPercent:
    def test_from_zero_with_something_is_100(self) -> None:
        assert growth_percent(5, 0) == 100.0

    def test_from_zero_to_zero_is_0(self) -> None:
        assert growth_percent(0, 0) == 0.0

    def test_from_zero_to_negative_is_0(self) -> None:
        assert growth_percent(Decimal("-10"), 0) == 0.0

    def test_increase(self) -> None:
        assert growth_percent(Decimal("1000.00"), Decimal("800.00")) == 25.0

    def test_decrease(self) -> None:
        assert growth_percent(75, 100) == -25.0

    @pytest.mark.parametrize(
        ("current", "previous", "expected"),
        [
            (Decimal("1500"), Decimal("1300"), 15.4),
            (Decimal("100.05"), Decimal("100"), 0.1),
            (Decimal("1"), Decimal("3"), -66.7),
        ],
    )
    def test_rounds_half_up_to_one_place(self, current, previous, expected) -> None:
        assert growth_percent(current, previous) == expected

    def test_negative_baseline(self) -> None:
        # net worth can be negative; the ratio uses the signed baseline
        assert growth_percent(Decimal("-50"), Decimal("-100")) == -50.0


class TestChurnRate:
    def test_nothing_touched(self) -> None:
        assert churn_rate(0, 0) == 0.0

    def test_share_of_touched(self) -> None:
        assert churn_rate(1, 3) == 25.0

    def test_two_places(self) -> None:
        assert churn_rate(1, 2) == 33.33

    def test_all_canceled(self) -> None:
        assert churn_rate(4, 0) == 100.0
