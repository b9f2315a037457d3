"""
Budget Report Builders

Six report builders sharing one entry contract:
    (user_id, budget_id, start_date, end_date)

Each builder:
1. Loads the budget once through the analytics engine (ownership checked)
2. Asks the engine for the data it needs for the window
3. Derives its report-specific fields

Reports are deterministic for unchanged inputs except for ``generated_at``,
which comes from the injected clock.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

import structlog

from .aggregator import aggregate_by_category
from .analytics import BudgetAnalyticsEngine, window_days
from .exceptions import ValidationError
from .forecasting import (
    add_months,
    build_scenarios,
    category_forecasts,
    category_trends,
    forecast_confidence,
    forecast_recommendations,
    format_amount,
    monthly_trend,
    months_spanned,
    project_trend,
    risk_factors,
    trend_insights,
)
from .metrics import (
    HUNDRED,
    ZERO,
    classify_efficiency,
    classify_impact,
    classify_spend,
    classify_variance,
    efficiency,
    utilization,
    variance,
    variance_percentage,
)
from .models.analytics import BudgetAnalyticsSnapshot, BudgetHealth, EfficiencyStatus, ImpactLevel
from .models.budget import Budget
from .models.reports import (
    BudgetVsActualReport,
    BudgetVsActualSummary,
    CategoryBreakdownEntry,
    CategoryBreakdownReport,
    CategoryComparison,
    CategoryEfficiency,
    CategoryPerformance,
    CategoryRanking,
    ForecastMethodology,
    ForecastReport,
    ForecastSummary,
    Insight,
    InsightPriority,
    InsightType,
    PerformanceReport,
    PerformanceSummary,
    ReportPeriod,
    SpendingPatterns,
    TrendAnalysisReport,
    VarianceAnalysisReport,
    VarianceRecord,
    VarianceSummary,
)

logger = structlog.get_logger()

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_range(start_date: date, end_date: date) -> None:
    """Reject inverted windows before any provider is called."""
    if end_date < start_date:
        raise ValidationError(
            "end_date must be on or after start_date",
            field="end_date",
            value=end_date.isoformat(),
            constraint=f">= {start_date.isoformat()}",
        )


class BudgetReportBuilder:
    """
    Build budget reports from analytics snapshots.

    Example:
        builder = BudgetReportBuilder(engine)
        report = await builder.performance(user_id, budget_id, start, end)
        print(report.performance.status)
    """

    def __init__(
        self,
        engine: BudgetAnalyticsEngine,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the builder.

        Args:
            engine: Analytics engine used for budgets, transactions and snapshots
            clock: Returns the ``generated_at`` timestamp; UTC now by default
        """
        self.engine = engine
        self.settings = engine.settings
        self.clock = clock or utc_now

    async def _load(
        self,
        user_id: str,
        budget_id: str,
        start_date: date,
        end_date: date,
    ) -> tuple[Budget, BudgetAnalyticsSnapshot]:
        validate_range(start_date, end_date)
        budget = await self.engine.load_budget(user_id, budget_id)
        snapshot = await self.engine.snapshot(user_id, budget, start_date, end_date)
        return budget, snapshot

    def _log(self, report_type: str, user_id: str, budget_id: str) -> None:
        logger.info(
            "budget_report_built",
            report_type=report_type,
            user_id=user_id,
            budget_id=budget_id,
        )

    # =========================================================================
    # PERFORMANCE
    # =========================================================================

    async def performance(
        self,
        user_id: str,
        budget_id: str,
        start_date: date,
        end_date: date,
    ) -> PerformanceReport:
        """Overall and per-category spend against allocation."""
        budget, snapshot = await self._load(user_id, budget_id, start_date, end_date)

        summary = PerformanceSummary(
            total_allocated=snapshot.total_allocated,
            total_spent=snapshot.total_spent,
            remaining_amount=snapshot.remaining_amount,
            utilization_percentage=snapshot.utilization_percentage,
            variance_amount=variance(snapshot.total_spent, snapshot.total_allocated),
            variance_percentage=variance_percentage(
                snapshot.total_spent, snapshot.total_allocated
            ),
            status=snapshot.status,
        )

        categories = [
            CategoryPerformance(
                category_id=c.category_id,
                category_name=c.category_name,
                allocated_amount=c.allocated_amount,
                spent_amount=c.spent_amount,
                variance_amount=variance(c.spent_amount, c.allocated_amount),
                variance_percentage=variance_percentage(c.spent_amount, c.allocated_amount),
                utilization_percentage=c.utilization_percentage,
                status=c.status,
            )
            for c in snapshot.category_breakdown
        ]

        report = PerformanceReport(
            budget_id=budget.id,
            budget_name=budget.name,
            currency=budget.currency,
            generated_at=self.clock(),
            period=ReportPeriod(start_date=start_date, end_date=end_date),
            performance=summary,
            category_performance=categories,
            insights=self._performance_insights(summary, categories),
        )
        self._log(report.report_type.value, user_id, budget.id)
        return report

    def _performance_insights(
        self,
        summary: PerformanceSummary,
        categories: list[CategoryPerformance],
    ) -> list[Insight]:
        thresholds = self.settings.thresholds
        pct = abs(summary.variance_percentage)

        if summary.variance_amount > 0:
            overall = Insight(
                type=InsightType.WARNING,
                priority=InsightPriority.HIGH,
                message=(
                    f"Budget is over by {format_amount(summary.variance_amount)} "
                    f"({pct:.1f}%)"
                ),
            )
        else:
            if summary.variance_amount < 0:
                message = (
                    f"Budget is under by {format_amount(summary.variance_amount)} "
                    f"({pct:.1f}%)"
                )
            else:
                message = "Budget is exactly on target"
            overall = Insight(
                type=InsightType.RECOMMENDATION,
                priority=(
                    InsightPriority.LOW
                    if pct < thresholds.negligible_variance
                    else InsightPriority.MEDIUM
                ),
                message=message,
            )

        insights = [overall]
        for c in categories:
            if c.status == BudgetHealth.OVER:
                insights.append(
                    Insight(
                        type=InsightType.WARNING,
                        priority=InsightPriority.HIGH,
                        message=(
                            f"{c.category_name} is over budget by "
                            f"{format_amount(c.variance_amount)}"
                        ),
                        category_id=c.category_id,
                    )
                )
            elif c.allocated_amount > 0 and c.variance_percentage <= -thresholds.impact_high:
                insights.append(
                    Insight(
                        type=InsightType.RECOMMENDATION,
                        priority=InsightPriority.LOW,
                        message=(
                            f"{c.category_name} is {abs(c.variance_percentage):.1f}% under "
                            f"its allocation; consider reallocating "
                            f"{format_amount(c.variance_amount)}"
                        ),
                        category_id=c.category_id,
                    )
                )
        return insights

    # =========================================================================
    # BUDGET VS ACTUAL
    # =========================================================================

    async def budget_vs_actual(
        self,
        user_id: str,
        budget_id: str,
        start_date: date,
        end_date: date,
    ) -> BudgetVsActualReport:
        """Budgeted against actual spend, with per-category efficiency."""
        budget, snapshot = await self._load(user_id, budget_id, start_date, end_date)

        report = BudgetVsActualReport(
            budget_id=budget.id,
            budget_name=budget.name,
            currency=budget.currency,
            generated_at=self.clock(),
            period=ReportPeriod(start_date=start_date, end_date=end_date),
            summary=BudgetVsActualSummary(
                total_budgeted=budget.total_amount,
                total_actual=snapshot.total_spent,
                variance=variance(snapshot.total_spent, budget.total_amount),
                variance_percentage=variance_percentage(
                    snapshot.total_spent, budget.total_amount
                ),
                status=snapshot.status,
            ),
            category_comparison=[
                CategoryComparison(
                    category_id=c.category_id,
                    category_name=c.category_name,
                    budgeted=c.allocated_amount,
                    actual=c.spent_amount,
                    variance=variance(c.spent_amount, c.allocated_amount),
                    variance_percentage=variance_percentage(
                        c.spent_amount, c.allocated_amount
                    ),
                    efficiency=efficiency(c.spent_amount, c.allocated_amount),
                    status=c.status,
                )
                for c in snapshot.category_breakdown
            ],
        )
        self._log(report.report_type.value, user_id, budget.id)
        return report

    # =========================================================================
    # TREND ANALYSIS
    # =========================================================================

    async def trend_analysis(
        self,
        user_id: str,
        budget_id: str,
        start_date: date,
        end_date: date,
    ) -> TrendAnalysisReport:
        """
        Monthly spend from ``trend_history_months`` before the window through
        its end, with a next-month projection and a fitted trend for each
        allocated category.
        """
        validate_range(start_date, end_date)
        budget = await self.engine.load_budget(user_id, budget_id)

        history_start = add_months(start_date, -self.settings.trend_history_months)
        transactions, categories = await self.engine.gather_inputs(
            user_id, budget, history_start, end_date
        )

        points = monthly_trend(transactions, budget.category_ids)
        monthly_allocation = budget.total_amount / months_spanned(
            budget.start_date, budget.end_date
        )
        confidence_months = self.settings.trend_confidence_months
        projection = project_trend(
            points, monthly_allocation, self.settings.thresholds, confidence_months
        )
        by_category = category_trends(
            transactions,
            points,
            {a.category_id: categories[a.category_id].name for a in budget.category_allocations},
            self.settings.thresholds,
            confidence_months,
        )

        report = TrendAnalysisReport(
            budget_id=budget.id,
            budget_name=budget.name,
            currency=budget.currency,
            generated_at=self.clock(),
            analysis_period=ReportPeriod(start_date=history_start, end_date=end_date),
            trends=points,
            projections=projection,
            category_trends=by_category,
            insights=trend_insights(points, projection, by_category),
        )
        self._log(report.report_type.value, user_id, budget.id)
        return report

    # =========================================================================
    # VARIANCE ANALYSIS
    # =========================================================================

    async def variance_analysis(
        self,
        user_id: str,
        budget_id: str,
        start_date: date,
        end_date: date,
    ) -> VarianceAnalysisReport:
        """Per-category variance with impact classification."""
        budget, snapshot = await self._load(user_id, budget_id, start_date, end_date)
        thresholds = self.settings.thresholds

        records = []
        for c in snapshot.category_breakdown:
            amount = variance(c.spent_amount, c.allocated_amount)
            pct = variance_percentage(c.spent_amount, c.allocated_amount)
            records.append(
                VarianceRecord(
                    category_id=c.category_id,
                    category_name=c.category_name,
                    allocated_amount=c.allocated_amount,
                    spent_amount=c.spent_amount,
                    variance=amount,
                    variance_percentage=pct,
                    variance_type=classify_variance(amount),
                    impact=classify_impact(pct, thresholds.impact_high, thresholds.impact_medium),
                )
            )

        total_variance = sum((r.variance for r in records), ZERO)
        total_pct = (
            total_variance / snapshot.total_allocated * HUNDRED
            if snapshot.total_allocated > 0
            else ZERO
        )
        summary = VarianceSummary(
            total_variance=total_variance,
            total_variance_percentage=total_pct,
            favorable_variances=sum((abs(r.variance) for r in records if r.variance < 0), ZERO),
            unfavorable_variances=sum((r.variance for r in records if r.variance > 0), ZERO),
            net_variance=total_variance,
        )

        report = VarianceAnalysisReport(
            budget_id=budget.id,
            budget_name=budget.name,
            currency=budget.currency,
            generated_at=self.clock(),
            period=ReportPeriod(start_date=start_date, end_date=end_date),
            variance_summary=summary,
            category_variances=records,
            significant_variances=[
                r.category_id for r in records if r.impact == ImpactLevel.HIGH
            ],
        )
        self._log(report.report_type.value, user_id, budget.id)
        return report

    # =========================================================================
    # FORECAST
    # =========================================================================

    async def forecast(
        self,
        user_id: str,
        budget_id: str,
        forecast_start: date,
        forecast_end: date,
    ) -> ForecastReport:
        """
        Project spend over the forecast window from recent history.

        History covers the ``history_months`` before ``forecast_start`` and ends
        the day before it, so no forecast-window spend counts as history. With too
        few transactions the projection falls back to the budget total
        pro-rated to the forecast window.
        """
        validate_range(forecast_start, forecast_end)
        budget = await self.engine.load_budget(user_id, budget_id)

        forecast_settings = self.settings.forecast
        history_start = add_months(forecast_start, -forecast_settings.history_months)
        history_end = forecast_start - timedelta(days=1)
        history = await self.engine.snapshot(user_id, budget, history_start, history_end)

        history_days = window_days(history_start, history_end)
        forecast_days = window_days(forecast_start, forecast_end)

        if history.transaction_count >= forecast_settings.min_transactions:
            methodology = ForecastMethodology.HISTORICAL
            daily_average = history.total_spent / history_days
            projected = daily_average * forecast_days
        else:
            methodology = ForecastMethodology.ALLOCATION
            projected = budget.total_amount * forecast_days / budget.duration_days
            daily_average = projected / forecast_days

        budgeted = budget.total_amount
        confidence = forecast_confidence(
            (p.date for p in history.daily_progress), methodology, forecast_settings
        )
        categories = category_forecasts(
            history, budget, methodology, history_days, forecast_days
        )

        report = ForecastReport(
            budget_id=budget.id,
            budget_name=budget.name,
            currency=budget.currency,
            generated_at=self.clock(),
            forecast_period=ReportPeriod(start_date=forecast_start, end_date=forecast_end),
            history_period=ReportPeriod(start_date=history_start, end_date=history_end),
            forecast=ForecastSummary(
                methodology=methodology,
                daily_average=daily_average,
                projected_spend=projected,
                budgeted_amount=budgeted,
                projected_variance=variance(projected, budgeted),
                projected_utilization=utilization(projected, budgeted),
                projected_status=classify_spend(projected, budgeted),
                confidence=confidence,
            ),
            category_forecasts=categories,
            scenarios=build_scenarios(projected, budgeted, forecast_settings),
            risk_factors=risk_factors(
                projected,
                budgeted,
                categories,
                methodology,
                confidence,
                self.settings.thresholds,
            ),
            recommendations=forecast_recommendations(
                projected, budgeted, categories, methodology, self.settings.thresholds
            ),
        )
        logger.info(
            "budget_forecast_built",
            user_id=user_id,
            budget_id=budget.id,
            methodology=methodology.value,
            projected_spend=str(projected),
            history_transactions=history.transaction_count,
        )
        return report

    # =========================================================================
    # CATEGORY BREAKDOWN
    # =========================================================================

    async def category_breakdown(
        self,
        user_id: str,
        budget_id: str,
        start_date: date,
        end_date: date,
    ) -> CategoryBreakdownReport:
        """Per-category statistics, rankings and efficiency."""
        validate_range(start_date, end_date)
        budget = await self.engine.load_budget(user_id, budget_id)
        transactions, categories = await self.engine.gather_inputs(
            user_id, budget, start_date, end_date
        )
        aggregation = aggregate_by_category(transactions, budget.category_allocations)
        snapshot = self.engine.compose(
            budget, transactions, categories, start_date, end_date, aggregation
        )

        entries = []
        for c in snapshot.category_breakdown:
            stats = aggregation.categories[c.category_id]
            share = (
                c.spent_amount / snapshot.total_spent * HUNDRED
                if snapshot.total_spent > 0
                else ZERO
            )
            entries.append(
                CategoryBreakdownEntry(
                    category_id=c.category_id,
                    category_name=c.category_name,
                    allocated_amount=c.allocated_amount,
                    total_spent=c.spent_amount,
                    utilization_percentage=c.utilization_percentage,
                    status=c.status,
                    percentage_of_total=share,
                    transaction_count=stats.transaction_count,
                    average_transaction_amount=stats.average_transaction_amount,
                    largest_transaction=stats.largest_transaction,
                    smallest_transaction=stats.smallest_transaction,
                    transactions=list(stats.transactions),
                )
            )

        patterns = self._spending_patterns(entries)
        report = CategoryBreakdownReport(
            budget_id=budget.id,
            budget_name=budget.name,
            currency=budget.currency,
            generated_at=self.clock(),
            period=ReportPeriod(start_date=start_date, end_date=end_date),
            category_breakdown=entries,
            spending_patterns=patterns,
            insights=self._breakdown_insights(entries, patterns),
        )
        self._log(report.report_type.value, user_id, budget.id)
        return report

    def _spending_patterns(self, entries: list[CategoryBreakdownEntry]) -> SpendingPatterns:
        limit = self.settings.top_categories_limit
        threshold = self.settings.thresholds.efficiency_threshold

        def ranking(e: CategoryBreakdownEntry) -> CategoryRanking:
            return CategoryRanking(
                category_id=e.category_id,
                category_name=e.category_name,
                total_spent=e.total_spent,
                transaction_count=e.transaction_count,
            )

        # sorted() is stable, so ties keep allocation order
        by_spend = sorted(entries, key=lambda e: e.total_spent, reverse=True)
        by_count = sorted(entries, key=lambda e: e.transaction_count, reverse=True)

        efficiencies = []
        for e in entries:
            ratio = efficiency(e.total_spent, e.allocated_amount)
            efficiencies.append(
                CategoryEfficiency(
                    category_id=e.category_id,
                    category_name=e.category_name,
                    efficiency=ratio,
                    status=classify_efficiency(ratio, threshold),
                )
            )

        return SpendingPatterns(
            top_spending_categories=[ranking(e) for e in by_spend[:limit]],
            most_active_categories=[ranking(e) for e in by_count[:limit]],
            category_efficiency=efficiencies,
        )

    def _breakdown_insights(
        self,
        entries: list[CategoryBreakdownEntry],
        patterns: SpendingPatterns,
    ) -> list[Insight]:
        names = {e.category_id: e.category_name for e in entries}
        insights = []

        for item in patterns.category_efficiency:
            if item.status == EfficiencyStatus.INEFFICIENT:
                insights.append(
                    Insight(
                        type=InsightType.WARNING,
                        priority=InsightPriority.MEDIUM,
                        message=(
                            f"{item.category_name} has used {item.efficiency * HUNDRED:.1f}% "
                            f"of its allocation"
                        ),
                        category_id=item.category_id,
                    )
                )

        for e in entries:
            if e.allocated_amount > 0 and e.transaction_count == 0:
                insights.append(
                    Insight(
                        type=InsightType.RECOMMENDATION,
                        priority=InsightPriority.LOW,
                        message=(
                            f"No spending recorded in {e.category_name}; consider "
                            f"reallocating {format_amount(e.allocated_amount)}"
                        ),
                        category_id=e.category_id,
                    )
                )

        top = patterns.top_spending_categories
        if top and top[0].total_spent > 0:
            share = next(
                e.percentage_of_total for e in entries if e.category_id == top[0].category_id
            )
            insights.append(
                Insight(
                    type=InsightType.INFO,
                    priority=InsightPriority.LOW,
                    message=(
                        f"{names[top[0].category_id]} accounts for {share:.1f}% "
                        f"of total spending"
                    ),
                    category_id=top[0].category_id,
                )
            )

        return insights


__all__ = ["BudgetReportBuilder", "Clock", "utc_now", "validate_range"]
