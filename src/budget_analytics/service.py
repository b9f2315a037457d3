"""
Budget Analytics Service

Public entry point. Wires the analytics engine, report builder, alert
monitor and exporter around injected data providers.

Example:
    service = BudgetAnalyticsService(
        budgets=MongoBudgetStore(db),
        transactions=MongoTransactionQuery(db),
        categories=CategoryCache(db),
    )
    report = await service.get_budget_performance_report(
        "user123", "budget123", date(2024, 1, 1), date(2024, 1, 31)
    )
"""

from datetime import date
from typing import Optional

from .alerts import BudgetAlertMonitor
from .analytics import BudgetAnalyticsEngine
from .config import AnalyticsSettings
from .export import BudgetReportExporter, ExportOptions, ExportResult
from .interfaces import BudgetStore, CategoryLookup, Renderer, TransactionQuery
from .models.analytics import Alert, BudgetAnalyticsSnapshot
from .models.reports import (
    BudgetVsActualReport,
    CategoryBreakdownReport,
    ForecastReport,
    PerformanceReport,
    TrendAnalysisReport,
    VarianceAnalysisReport,
)
from .rendering import DocumentRenderer
from .reports import BudgetReportBuilder, Clock


class BudgetAnalyticsService:
    """Facade over the budget analytics components."""

    def __init__(
        self,
        budgets: BudgetStore,
        transactions: TransactionQuery,
        categories: CategoryLookup,
        renderer: Optional[Renderer] = None,
        settings: Optional[AnalyticsSettings] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the service.

        Args:
            budgets: Budget store
            transactions: Transaction query service
            categories: Category lookup
            renderer: Excel/PDF renderer (DocumentRenderer by default)
            settings: Analytics settings (loaded from the environment by default)
            clock: Timestamp source for generated_at and export filenames
        """
        self.settings = settings or AnalyticsSettings()
        self.engine = BudgetAnalyticsEngine(budgets, transactions, categories, self.settings)
        self.reports = BudgetReportBuilder(self.engine, clock=clock)
        self.alerts = BudgetAlertMonitor(self.engine)
        self.exporter = BudgetReportExporter(self.reports, renderer or DocumentRenderer())

    async def get_budget_analytics(
        self, user_id: str, budget_id: str, start_date: date, end_date: date
    ) -> BudgetAnalyticsSnapshot:
        return await self.engine.get_budget_analytics(user_id, budget_id, start_date, end_date)

    async def get_budget_performance_report(
        self, user_id: str, budget_id: str, start_date: date, end_date: date
    ) -> PerformanceReport:
        return await self.reports.performance(user_id, budget_id, start_date, end_date)

    async def get_budget_vs_actual_report(
        self, user_id: str, budget_id: str, start_date: date, end_date: date
    ) -> BudgetVsActualReport:
        return await self.reports.budget_vs_actual(user_id, budget_id, start_date, end_date)

    async def get_budget_trend_analysis(
        self, user_id: str, budget_id: str, start_date: date, end_date: date
    ) -> TrendAnalysisReport:
        return await self.reports.trend_analysis(user_id, budget_id, start_date, end_date)

    async def get_budget_variance_analysis(
        self, user_id: str, budget_id: str, start_date: date, end_date: date
    ) -> VarianceAnalysisReport:
        return await self.reports.variance_analysis(user_id, budget_id, start_date, end_date)

    async def get_budget_forecast(
        self, user_id: str, budget_id: str, forecast_start: date, forecast_end: date
    ) -> ForecastReport:
        return await self.reports.forecast(user_id, budget_id, forecast_start, forecast_end)

    async def get_budget_category_breakdown(
        self, user_id: str, budget_id: str, start_date: date, end_date: date
    ) -> CategoryBreakdownReport:
        return await self.reports.category_breakdown(user_id, budget_id, start_date, end_date)

    async def get_budget_alerts(
        self, user_id: str, budget_id: Optional[str] = None
    ) -> list[Alert]:
        """Alerts for one budget, or every budget the user owns."""
        return await self.alerts.check_budget_alerts(user_id, budget_id)

    async def export_budget_report(self, user_id: str, options: ExportOptions) -> ExportResult:
        return await self.exporter.export_budget_report(user_id, options)


__all__ = ["BudgetAnalyticsService"]
