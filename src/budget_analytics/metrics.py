"""Metric primitives for spent-versus-allocated analysis.

Pure functions with no side effects. Amounts are Decimals; ints and floats
are accepted and converted. A negative allocation is a caller error and is
not guarded against.
"""

from decimal import Decimal
from typing import Sequence, Union

from .models.analytics import BudgetHealth, EfficiencyStatus, ImpactLevel, VarianceType

Number = Union[Decimal, int, float]

ZERO = Decimal("0")
HUNDRED = Decimal("100")

DEFAULT_EFFICIENCY_THRESHOLD = Decimal("0.8")
DEFAULT_IMPACT_HIGH = Decimal("20")
DEFAULT_IMPACT_MEDIUM = Decimal("10")


def as_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal, going through str for floats."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def variance(spent: Number, allocated: Number) -> Decimal:
    """Spent minus allocated; negative means under budget."""
    return as_decimal(spent) - as_decimal(allocated)


def variance_percentage(spent: Number, allocated: Number) -> Decimal:
    """Variance as a percentage of the allocation, 0 when nothing is allocated."""
    allocated = as_decimal(allocated)
    if allocated <= 0:
        return ZERO
    return variance(spent, allocated) / allocated * HUNDRED


def utilization(spent: Number, allocated: Number) -> Decimal:
    """Spent as a percentage of the allocation, 0 when nothing is allocated."""
    allocated = as_decimal(allocated)
    if allocated <= 0:
        return ZERO
    return as_decimal(spent) / allocated * HUNDRED


def classify_status(utilization_percentage: Number) -> BudgetHealth:
    """Classify a utilization percentage.

    Exactly 100% is on-track, not over.
    """
    value = as_decimal(utilization_percentage)
    if value < HUNDRED:
        return BudgetHealth.UNDER
    if value == HUNDRED:
        return BudgetHealth.ON_TRACK
    return BudgetHealth.OVER


def classify_spend(spent: Number, allocated: Number) -> BudgetHealth:
    """Classify a spent/allocated pair.

    Equivalent to ``classify_status(utilization(spent, allocated))`` but
    compares the amounts directly, so division rounding can never move a
    pair across the 100% boundary.
    """
    spent, allocated = as_decimal(spent), as_decimal(allocated)
    if allocated <= 0:
        return classify_status(ZERO)
    if spent < allocated:
        return BudgetHealth.UNDER
    if spent == allocated:
        return BudgetHealth.ON_TRACK
    return BudgetHealth.OVER


def efficiency(spent: Number, allocated: Number) -> Decimal:
    """Spent/allocated as a ratio (not a percentage), 0 when nothing is allocated."""
    allocated = as_decimal(allocated)
    if allocated <= 0:
        return ZERO
    return as_decimal(spent) / allocated


def classify_efficiency(
    ratio: Number,
    threshold: Number = DEFAULT_EFFICIENCY_THRESHOLD,
) -> EfficiencyStatus:
    """A ratio at or below the threshold is efficient."""
    if as_decimal(ratio) <= as_decimal(threshold):
        return EfficiencyStatus.EFFICIENT
    return EfficiencyStatus.INEFFICIENT


def classify_variance(variance_amount: Number) -> VarianceType:
    """Variance at or under zero is favorable."""
    if as_decimal(variance_amount) <= 0:
        return VarianceType.FAVORABLE
    return VarianceType.UNFAVORABLE


def classify_impact(
    variance_pct: Number,
    high: Number = DEFAULT_IMPACT_HIGH,
    medium: Number = DEFAULT_IMPACT_MEDIUM,
) -> ImpactLevel:
    """Classify |variance %|; both cut points are inclusive."""
    magnitude = abs(as_decimal(variance_pct))
    if magnitude >= as_decimal(high):
        return ImpactLevel.HIGH
    if magnitude >= as_decimal(medium):
        return ImpactLevel.MEDIUM
    return ImpactLevel.LOW


def linear_trend(values: Sequence[Number]) -> tuple[Decimal, Decimal]:
    """
    Ordinary least-squares fit of values against their index.

    Args:
        values: Observations at x = 0, 1, ..., n-1

    Returns:
        (slope, intercept). A single value yields a zero slope; an empty
        sequence yields (0, 0).
    """
    points = [as_decimal(v) for v in values]
    n = len(points)
    if n == 0:
        return ZERO, ZERO
    if n == 1:
        return ZERO, points[0]

    count = Decimal(n)
    mean_x = Decimal(n - 1) / 2
    mean_y = sum(points, ZERO) / count

    numerator = sum(((Decimal(i) - mean_x) * (y - mean_y) for i, y in enumerate(points)), ZERO)
    denominator = sum(((Decimal(i) - mean_x) ** 2 for i in range(n)), ZERO)

    slope = numerator / denominator
    intercept = mean_y - slope * mean_x
    return slope, intercept


def trend_strength(values: Sequence[Number], slope: Number, intercept: Number) -> Decimal:
    """
    R-squared of a linear fit against the value index, clamped to [0, 1].

    Fewer than two values, or values with no spread, score 0.
    """
    points = [as_decimal(v) for v in values]
    if len(points) < 2:
        return ZERO

    slope = as_decimal(slope)
    intercept = as_decimal(intercept)
    mean_y = sum(points, ZERO) / Decimal(len(points))
    ss_tot = sum(((y - mean_y) ** 2 for y in points), ZERO)
    if ss_tot == 0:
        return ZERO
    ss_res = sum(
        ((y - (slope * Decimal(i) + intercept)) ** 2 for i, y in enumerate(points)), ZERO
    )
    return min(max(1 - ss_res / ss_tot, ZERO), Decimal("1"))


__all__ = [
    "as_decimal",
    "variance",
    "variance_percentage",
    "utilization",
    "classify_status",
    "classify_spend",
    "efficiency",
    "classify_efficiency",
    "classify_variance",
    "classify_impact",
    "linear_trend",
    "trend_strength",
]
