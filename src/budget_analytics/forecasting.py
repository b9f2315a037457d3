"""Trend projection and forecast scenario helpers.

Pure functions used by the trend and forecast report builders. Nothing here
performs I/O; the builders fetch history through the analytics engine and
hand plain transactions or snapshots to these helpers.
"""

import calendar
from datetime import date
from decimal import Decimal
from typing import Iterable, NamedTuple, Optional

from .config import ForecastSettings, ThresholdSettings
from .metrics import (
    HUNDRED,
    ZERO,
    classify_impact,
    classify_spend,
    linear_trend,
    trend_strength,
    utilization,
    variance,
    variance_percentage,
)
from .models.analytics import BudgetAnalyticsSnapshot, BudgetHealth, ImpactLevel
from .models.budget import Budget, Transaction
from .models.reports import (
    CategoryForecast,
    CategoryTrend,
    ForecastMethodology,
    ForecastScenario,
    Insight,
    InsightPriority,
    InsightType,
    ProjectionMethod,
    RiskFactor,
    ScenarioName,
    TrendDirection,
    TrendPoint,
    TrendProjection,
    TrendStrength,
)

CENT = Decimal("0.01")


def add_months(d: date, n: int) -> date:
    """Shift a date by whole months, clamping the day to the target month."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def months_spanned(start_date: date, end_date: date) -> int:
    """Calendar months touched by an inclusive window, at least 1."""
    months = (end_date.year - start_date.year) * 12 + end_date.month - start_date.month + 1
    return max(months, 1)


def format_amount(amount: Decimal) -> str:
    return f"${abs(amount):,.2f}"


# =============================================================================
# TREND
# =============================================================================


def monthly_trend(
    transactions: Iterable[Transaction],
    allocated_ids: Iterable[str],
) -> list[TrendPoint]:
    """
    Bucket transactions by calendar month.

    Only months with at least one transaction produce a bucket. Buckets are
    ordered by month and carry the change against the previous bucket.
    """
    allocated = set(allocated_ids)
    totals: dict[str, Decimal] = {}
    allocated_totals: dict[str, Decimal] = {}
    counts: dict[str, int] = {}

    for txn in transactions:
        key = month_key(txn.date)
        totals[key] = totals.get(key, ZERO) + txn.amount
        counts[key] = counts.get(key, 0) + 1
        in_budget = txn.category_id is not None and txn.category_id in allocated
        allocated_totals[key] = allocated_totals.get(key, ZERO) + (
            txn.amount if in_budget else ZERO
        )

    points: list[TrendPoint] = []
    previous: Optional[Decimal] = None
    for key in sorted(totals):
        spent = totals[key]
        change = spent - previous if previous is not None else ZERO
        pct = change / previous * HUNDRED if previous else ZERO
        points.append(
            TrendPoint(
                period=key,
                total_spent=spent,
                allocated_spent=allocated_totals[key],
                transaction_count=counts[key],
                change=change,
                percentage_change=pct,
            )
        )
        previous = spent
    return points


def trend_direction(
    slope: Decimal,
    average: Decimal,
    stable_band: Decimal,
) -> TrendDirection:
    """
    Classify a fitted slope.

    A slope within ``stable_band`` percent of the average monthly spend is
    stable.
    """
    if average <= 0:
        if slope > 0:
            return TrendDirection.INCREASING
        return TrendDirection.STABLE
    relative = slope / average * HUNDRED
    if abs(relative) <= stable_band:
        return TrendDirection.STABLE
    if relative > 0:
        return TrendDirection.INCREASING
    return TrendDirection.DECREASING


def classify_trend_strength(strength: Decimal, thresholds: ThresholdSettings) -> TrendStrength:
    if strength > thresholds.strong_trend:
        return TrendStrength.STRONG
    if strength > thresholds.moderate_trend:
        return TrendStrength.MODERATE
    return TrendStrength.WEAK


class TrendFit(NamedTuple):
    """Least-squares fit of a monthly series."""

    average: Decimal
    slope: Decimal
    intercept: Decimal
    direction: TrendDirection
    strength: Decimal
    strength_level: TrendStrength
    confidence: Decimal


def fit_trend(
    values: list[Decimal],
    thresholds: ThresholdSettings,
    confidence_months: int,
) -> TrendFit:
    """
    Fit a monthly series and grade the fit.

    Strength is the R-squared of the fit. Confidence is that strength scaled
    by the share of ``confidence_months`` the series covers. Fewer than two
    values give a flat, zero-strength fit.
    """
    average = sum(values, ZERO) / len(values) if values else ZERO
    if len(values) < 2:
        return TrendFit(
            average=average,
            slope=ZERO,
            intercept=average,
            direction=TrendDirection.STABLE,
            strength=ZERO,
            strength_level=TrendStrength.WEAK,
            confidence=ZERO,
        )

    slope, intercept = linear_trend(values)
    strength = trend_strength(values, slope, intercept).quantize(CENT)
    coverage = min(Decimal(len(values)) / Decimal(confidence_months), Decimal("1"))
    return TrendFit(
        average=average,
        slope=slope,
        intercept=intercept,
        direction=trend_direction(slope, average, thresholds.negligible_variance),
        strength=strength,
        strength_level=classify_trend_strength(strength, thresholds),
        confidence=(strength * coverage).quantize(CENT),
    )


def project_trend(
    points: list[TrendPoint],
    monthly_allocation: Decimal,
    thresholds: Optional[ThresholdSettings] = None,
    confidence_months: int = 12,
) -> TrendProjection:
    """
    Project next month's spend from monthly buckets.

    Two or more buckets use an ordinary least-squares fit evaluated at the
    next index (never below zero); one bucket uses its value; none yields a
    zero projection with method ``none``.
    """
    thresholds = thresholds or ThresholdSettings()
    values = [p.total_spent for p in points]
    fit = fit_trend(values, thresholds, confidence_months)

    if len(values) >= 2:
        method = ProjectionMethod.LINEAR
        next_spend = max(fit.slope * len(values) + fit.intercept, ZERO)
    elif values:
        method = ProjectionMethod.AVERAGE
        next_spend = fit.average
    else:
        method = ProjectionMethod.NONE
        next_spend = ZERO

    return TrendProjection(
        method=method,
        next_period_spend=next_spend,
        average_monthly_spend=fit.average,
        monthly_allocation=monthly_allocation,
        projected_utilization=utilization(next_spend, monthly_allocation),
        projected_status=classify_spend(next_spend, monthly_allocation),
        trend_direction=fit.direction,
        slope=fit.slope,
        trend_strength=fit.strength,
        strength_level=fit.strength_level,
        confidence=fit.confidence,
    )


def category_trends(
    transactions: Iterable[Transaction],
    points: list[TrendPoint],
    categories: dict[str, str],
    thresholds: ThresholdSettings,
    confidence_months: int = 12,
) -> list[CategoryTrend]:
    """
    Fit a monthly trend for each allocated category.

    Args:
        transactions: The transactions ``points`` was built from
        points: Overall monthly buckets; each category series is aligned
            with them, so a month without spend in a category counts as zero
        categories: Category id to display name, in allocation order
        thresholds: Direction band and strength cut points
        confidence_months: Months at which confidence is no longer scaled
    """
    periods = [p.period for p in points]
    spend = {category_id: dict.fromkeys(periods, ZERO) for category_id in categories}
    for txn in transactions:
        series = spend.get(txn.category_id)
        key = month_key(txn.date)
        if series is not None and key in series:
            series[key] += txn.amount

    trends = []
    for category_id, name in categories.items():
        values = list(spend[category_id].values())
        fit = fit_trend(values, thresholds, confidence_months)
        trends.append(
            CategoryTrend(
                category_id=category_id,
                category_name=name,
                monthly_spend=values,
                total_spent=sum(values, ZERO),
                average_monthly_spend=fit.average,
                slope=fit.slope,
                trend_direction=fit.direction,
                trend_strength=fit.strength,
                strength_level=fit.strength_level,
                confidence=fit.confidence,
            )
        )
    return trends


def trend_insights(
    points: list[TrendPoint],
    projection: TrendProjection,
    categories: Iterable[CategoryTrend] = (),
) -> list[Insight]:
    """Text records summarizing a trend analysis."""
    if not points:
        return [
            Insight(
                type=InsightType.INFO,
                priority=InsightPriority.LOW,
                message="No spending recorded in the analysis period",
            )
        ]

    insights = [
        Insight(
            type=InsightType.INFO,
            priority=InsightPriority.LOW,
            message=(
                f"Spending is {projection.trend_direction.value} across "
                f"{len(points)} month(s), averaging "
                f"{format_amount(projection.average_monthly_spend)} per month"
            ),
        )
    ]

    if projection.projected_status == BudgetHealth.OVER:
        insights.append(
            Insight(
                type=InsightType.WARNING,
                priority=InsightPriority.HIGH,
                message=(
                    f"Next month is projected at {format_amount(projection.next_period_spend)}, "
                    f"above the monthly allocation of "
                    f"{format_amount(projection.monthly_allocation)}"
                ),
            )
        )
    elif projection.trend_direction == TrendDirection.INCREASING:
        insights.append(
            Insight(
                type=InsightType.RECOMMENDATION,
                priority=InsightPriority.MEDIUM,
                message="Spending is rising month over month; review recurring expenses",
            )
        )

    for trend in categories:
        if (
            trend.trend_direction == TrendDirection.INCREASING
            and trend.strength_level == TrendStrength.STRONG
        ):
            insights.append(
                Insight(
                    type=InsightType.WARNING,
                    priority=InsightPriority.MEDIUM,
                    message=(
                        f"{trend.category_name} spending is rising steadily, about "
                        f"{format_amount(trend.slope)} more each month"
                    ),
                    category_id=trend.category_id,
                )
            )

    return insights


# =============================================================================
# FORECAST
# =============================================================================


def forecast_confidence(
    active_days: Iterable[date],
    methodology: ForecastMethodology,
    settings: ForecastSettings,
) -> Decimal:
    """Share of history months that had spend, 0 for allocation forecasts."""
    if methodology == ForecastMethodology.ALLOCATION:
        return ZERO
    months = {month_key(d) for d in active_days}
    ratio = Decimal(len(months)) / Decimal(settings.history_months)
    return min(ratio, Decimal("1")).quantize(CENT)


def build_scenarios(
    realistic_spend: Decimal,
    budgeted_amount: Decimal,
    settings: ForecastSettings,
) -> list[ForecastScenario]:
    """Optimistic, realistic and pessimistic scenarios, always in that order."""
    definitions = [
        (
            ScenarioName.OPTIMISTIC,
            settings.optimistic_probability,
            settings.optimistic_multiplier,
            "Spending eases relative to the historical daily rate",
        ),
        (
            ScenarioName.REALISTIC,
            settings.realistic_probability,
            Decimal("1"),
            "Spending continues at the historical daily rate",
        ),
        (
            ScenarioName.PESSIMISTIC,
            settings.pessimistic_probability,
            settings.pessimistic_multiplier,
            "Spending accelerates relative to the historical daily rate",
        ),
    ]

    scenarios = []
    for name, probability, multiplier, assumption in definitions:
        spend = realistic_spend * multiplier
        scenarios.append(
            ForecastScenario(
                scenario=name,
                probability=probability,
                projected_spend=spend,
                projected_variance=variance(spend, budgeted_amount),
                assumptions=[assumption, f"Spend multiplier {multiplier}"],
            )
        )
    return scenarios


def category_forecasts(
    history: BudgetAnalyticsSnapshot,
    budget: Budget,
    methodology: ForecastMethodology,
    history_days: int,
    forecast_days: int,
) -> list[CategoryForecast]:
    """Per-category projection matching the overall methodology."""
    forecasts = []
    for category in history.category_breakdown:
        if methodology == ForecastMethodology.HISTORICAL and history_days > 0:
            projected = category.spent_amount / history_days * forecast_days
        else:
            projected = category.allocated_amount * forecast_days / budget.duration_days
        forecasts.append(
            CategoryForecast(
                category_id=category.category_id,
                category_name=category.category_name,
                historical_spend=category.spent_amount,
                projected_spend=projected,
                allocated_amount=category.allocated_amount,
                projected_variance=variance(projected, category.allocated_amount),
                projected_status=classify_spend(projected, category.allocated_amount),
            )
        )
    return forecasts


def risk_factors(
    projected_spend: Decimal,
    budgeted_amount: Decimal,
    categories: list[CategoryForecast],
    methodology: ForecastMethodology,
    confidence: Decimal,
    thresholds: ThresholdSettings,
) -> list[RiskFactor]:
    """Overall overrun, category overruns and thin history, in that order."""
    risks = []

    if projected_spend > budgeted_amount:
        pct = variance_percentage(projected_spend, budgeted_amount)
        risks.append(
            RiskFactor(
                type="projected_overrun",
                severity=classify_impact(pct, thresholds.impact_high, thresholds.impact_medium),
                description=(
                    f"Projected spend exceeds the budget by "
                    f"{format_amount(projected_spend - budgeted_amount)} ({pct:.1f}%)"
                ),
            )
        )

    for category in categories:
        if category.allocated_amount > 0 and category.projected_spend > category.allocated_amount:
            pct = variance_percentage(category.projected_spend, category.allocated_amount)
            risks.append(
                RiskFactor(
                    type="category_overrun",
                    severity=classify_impact(
                        pct, thresholds.impact_high, thresholds.impact_medium
                    ),
                    description=(
                        f"{category.category_name} is projected "
                        f"{format_amount(category.projected_variance)} over its allocation"
                    ),
                    category_id=category.category_id,
                )
            )

    if methodology == ForecastMethodology.ALLOCATION:
        risks.append(
            RiskFactor(
                type="insufficient_history",
                severity=ImpactLevel.MEDIUM,
                description="Not enough transaction history; forecast follows the allocation",
            )
        )
    elif confidence < Decimal("0.5"):
        risks.append(
            RiskFactor(
                type="insufficient_history",
                severity=ImpactLevel.LOW,
                description="Spending history covers less than half of the lookback window",
            )
        )

    return risks


def forecast_recommendations(
    projected_spend: Decimal,
    budgeted_amount: Decimal,
    categories: list[CategoryForecast],
    methodology: ForecastMethodology,
    thresholds: ThresholdSettings,
) -> list[Insight]:
    recommendations = []

    if projected_spend > budgeted_amount:
        recommendations.append(
            Insight(
                type=InsightType.WARNING,
                priority=InsightPriority.HIGH,
                message=(
                    f"Reduce spending by {format_amount(projected_spend - budgeted_amount)} "
                    f"to stay within budget"
                ),
            )
        )
    elif variance_percentage(projected_spend, budgeted_amount) <= -thresholds.impact_high:
        recommendations.append(
            Insight(
                type=InsightType.RECOMMENDATION,
                priority=InsightPriority.LOW,
                message="Projected spend is well under budget; consider saving the surplus",
            )
        )

    for category in categories:
        if category.projected_status == BudgetHealth.OVER:
            recommendations.append(
                Insight(
                    type=InsightType.RECOMMENDATION,
                    priority=InsightPriority.MEDIUM,
                    message=f"Limit spending in {category.category_name}",
                    category_id=category.category_id,
                )
            )

    if methodology == ForecastMethodology.ALLOCATION:
        recommendations.append(
            Insight(
                type=InsightType.INFO,
                priority=InsightPriority.LOW,
                message="Record more transactions to enable a history-based forecast",
            )
        )

    return recommendations


__all__ = [
    "add_months",
    "month_key",
    "months_spanned",
    "format_amount",
    "monthly_trend",
    "trend_direction",
    "classify_trend_strength",
    "TrendFit",
    "fit_trend",
    "project_trend",
    "category_trends",
    "trend_insights",
    "forecast_confidence",
    "build_scenarios",
    "category_forecasts",
    "risk_factors",
    "forecast_recommendations",
]
