"""Tests for metric primitives."""

from decimal import Decimal

import pytest

from budget_analytics.metrics import (
    as_decimal,
    classify_efficiency,
    classify_impact,
    classify_spend,
    classify_status,
    classify_variance,
    efficiency,
    linear_trend,
    trend_strength,
    utilization,
    variance,
    variance_percentage,
)
from budget_analytics.models import BudgetHealth, EfficiencyStatus, ImpactLevel, VarianceType


class TestVariance:
    """Test suite for variance helpers."""

    def test_variance_is_spent_minus_allocated(self):
        assert variance(Decimal("1500"), Decimal("2000")) == Decimal("-500")
        assert variance(Decimal("2500"), Decimal("2000")) == Decimal("500")

    @pytest.mark.parametrize(
        "spent,allocated",
        [("0", "100"), ("1500", "2000"), ("3000.55", "2999.45"), ("10", "0")],
    )
    def test_variance_plus_allocated_is_spent(self, spent, allocated):
        """variance(s, a) + a should always give back s."""
        s, a = Decimal(spent), Decimal(allocated)
        assert variance(s, a) + a == s

    def test_variance_percentage(self):
        assert variance_percentage(Decimal("1500"), Decimal("2000")) == Decimal("-25")
        assert variance_percentage(Decimal("3000"), Decimal("4000")) == Decimal("-25")

    def test_variance_percentage_zero_allocation(self):
        assert variance_percentage(Decimal("100"), Decimal("0")) == Decimal("0")

    def test_accepts_ints_and_floats(self):
        assert variance(10, 2.5) == Decimal("7.5")
        assert as_decimal(0.1) == Decimal("0.1")


class TestUtilizationAndStatus:
    """Test suite for utilization and status classification."""

    def test_utilization(self):
        assert utilization(Decimal("1500"), Decimal("2000")) == Decimal("75")

    def test_utilization_zero_allocation(self):
        assert utilization(Decimal("500"), Decimal("0")) == Decimal("0")

    def test_exactly_one_hundred_is_on_track(self):
        assert classify_status(Decimal("100")) == BudgetHealth.ON_TRACK
        assert classify_status(Decimal("99.99")) == BudgetHealth.UNDER
        assert classify_status(Decimal("100.01")) == BudgetHealth.OVER

    @pytest.mark.parametrize(
        "spent,allocated,expected",
        [
            ("300", "300", BudgetHealth.ON_TRACK),
            ("299.99", "300", BudgetHealth.UNDER),
            ("300.01", "300", BudgetHealth.OVER),
            ("100", "3", BudgetHealth.OVER),
            ("1", "3", BudgetHealth.UNDER),
        ],
    )
    def test_status_matches_amount_ordering(self, spent, allocated, expected):
        """Status should follow s vs a ordering for positive allocations."""
        s, a = Decimal(spent), Decimal(allocated)
        assert classify_spend(s, a) == expected
        assert classify_status(utilization(s, a)) == expected

    def test_zero_allocation_is_under(self):
        assert classify_spend(Decimal("50"), Decimal("0")) == BudgetHealth.UNDER


class TestEfficiency:
    """Test suite for efficiency classification."""

    def test_efficiency_ratio(self):
        """1500/2000 should be 0.75, which is efficient."""
        ratio = efficiency(Decimal("1500"), Decimal("2000"))
        assert ratio == Decimal("0.75")
        assert classify_efficiency(ratio) == EfficiencyStatus.EFFICIENT

    def test_threshold_is_inclusive(self):
        assert classify_efficiency(Decimal("0.8")) == EfficiencyStatus.EFFICIENT
        assert classify_efficiency(Decimal("0.81")) == EfficiencyStatus.INEFFICIENT

    def test_custom_threshold(self):
        assert classify_efficiency(Decimal("0.85"), Decimal("0.9")) == EfficiencyStatus.EFFICIENT


class TestClassification:
    """Test suite for variance and impact classification."""

    def test_variance_type(self):
        assert classify_variance(Decimal("-1")) == VarianceType.FAVORABLE
        assert classify_variance(Decimal("0")) == VarianceType.FAVORABLE
        assert classify_variance(Decimal("0.01")) == VarianceType.UNFAVORABLE

    @pytest.mark.parametrize(
        "pct,expected",
        [
            ("25", ImpactLevel.HIGH),
            ("-20", ImpactLevel.HIGH),
            ("19.99", ImpactLevel.MEDIUM),
            ("-10", ImpactLevel.MEDIUM),
            ("9.99", ImpactLevel.LOW),
            ("0", ImpactLevel.LOW),
        ],
    )
    def test_impact_cut_points(self, pct, expected):
        assert classify_impact(Decimal(pct)) == expected


class TestLinearTrend:
    """Test suite for the least-squares fit."""

    def test_empty(self):
        assert linear_trend([]) == (Decimal("0"), Decimal("0"))

    def test_single_value(self):
        assert linear_trend([Decimal("300")]) == (Decimal("0"), Decimal("300"))

    def test_perfect_line(self):
        slope, intercept = linear_trend([Decimal("1000"), Decimal("2000"), Decimal("3000")])
        assert slope == Decimal("1000")
        assert intercept == Decimal("1000")

    def test_flat_series(self):
        slope, intercept = linear_trend([5, 5, 5, 5])
        assert slope == Decimal("0")
        assert intercept == Decimal("5")


class TestTrendStrength:
    """Test suite for the R-squared trend strength."""

    def test_perfect_line(self):
        values = [Decimal("1000"), Decimal("2000"), Decimal("3000")]
        slope, intercept = linear_trend(values)
        assert trend_strength(values, slope, intercept) == Decimal("1")

    def test_noisy_series(self):
        values = [1, 3, 2, 4]
        slope, intercept = linear_trend(values)
        assert slope == Decimal("0.8")
        assert trend_strength(values, slope, intercept) == Decimal("0.64")

    def test_flat_or_short_series_scores_zero(self):
        assert trend_strength([5, 5, 5], 0, 5) == Decimal("0")
        assert trend_strength([300], 0, 300) == Decimal("0")
        assert trend_strength([], 0, 0) == Decimal("0")

    def test_poor_fit_clamped_to_zero(self):
        assert trend_strength([1, 2, 3], -10, 0) == Decimal("0")
