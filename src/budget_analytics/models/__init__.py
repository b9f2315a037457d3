"""Data models for budget-analytics.

This package provides:
- Budget, allocation and transaction inputs (budget.py)
- Derived analytics snapshots and alerts (analytics.py)
- Report shapes returned by the report builders (reports.py)
"""

from budget_analytics.models.analytics import (
    Alert,
    AlertSeverity,
    AlertType,
    BudgetAnalyticsSnapshot,
    BudgetHealth,
    CategoryBreakdown,
    CategoryStatistics,
    DailyProgress,
    EfficiencyStatus,
    ImpactLevel,
    TransactionRef,
    VarianceType,
)
from budget_analytics.models.budget import (
    Budget,
    BudgetPeriod,
    BudgetStatus,
    CategoryAllocation,
    CategoryInfo,
    Transaction,
    TransactionFilter,
    TransactionPage,
    TransactionType,
)
from budget_analytics.models.reports import (
    BaseReport,
    BudgetVsActualReport,
    BudgetVsActualSummary,
    CategoryBreakdownEntry,
    CategoryBreakdownReport,
    CategoryComparison,
    CategoryEfficiency,
    CategoryForecast,
    CategoryPerformance,
    CategoryRanking,
    CategoryTrend,
    ForecastMethodology,
    ForecastReport,
    ForecastScenario,
    ForecastSummary,
    Insight,
    InsightPriority,
    InsightType,
    PerformanceReport,
    PerformanceSummary,
    ProjectionMethod,
    ReportPeriod,
    ReportType,
    RiskFactor,
    ScenarioName,
    SpendingPatterns,
    TrendAnalysisReport,
    TrendDirection,
    TrendPoint,
    TrendProjection,
    TrendStrength,
    VarianceAnalysisReport,
    VarianceRecord,
    VarianceSummary,
)

__all__ = [
    # Inputs
    "Budget",
    "BudgetPeriod",
    "BudgetStatus",
    "CategoryAllocation",
    "CategoryInfo",
    "Transaction",
    "TransactionFilter",
    "TransactionPage",
    "TransactionType",
    # Analytics
    "Alert",
    "AlertSeverity",
    "AlertType",
    "BudgetAnalyticsSnapshot",
    "BudgetHealth",
    "CategoryBreakdown",
    "CategoryStatistics",
    "DailyProgress",
    "EfficiencyStatus",
    "ImpactLevel",
    "TransactionRef",
    "VarianceType",
    # Reports
    "BaseReport",
    "BudgetVsActualReport",
    "BudgetVsActualSummary",
    "CategoryBreakdownEntry",
    "CategoryBreakdownReport",
    "CategoryComparison",
    "CategoryEfficiency",
    "CategoryForecast",
    "CategoryPerformance",
    "CategoryRanking",
    "CategoryTrend",
    "ForecastMethodology",
    "ForecastReport",
    "ForecastScenario",
    "ForecastSummary",
    "Insight",
    "InsightPriority",
    "InsightType",
    "PerformanceReport",
    "PerformanceSummary",
    "ProjectionMethod",
    "ReportPeriod",
    "ReportType",
    "RiskFactor",
    "ScenarioName",
    "SpendingPatterns",
    "TrendAnalysisReport",
    "TrendDirection",
    "TrendPoint",
    "TrendProjection",
    "TrendStrength",
    "VarianceAnalysisReport",
    "VarianceRecord",
    "VarianceSummary",
]
