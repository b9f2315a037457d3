"""Report models returned by the report builders.

Each report shares the BaseReport header (budget identity, currency and a
``generated_at`` timestamp) and adds its own report-specific shape. Apart
from ``generated_at``, two reports built from unchanged inputs compare equal.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from .analytics import (
    BudgetHealth,
    EfficiencyStatus,
    ImpactLevel,
    TransactionRef,
    VarianceType,
)


class ReportType(str, Enum):
    """Report kinds. ``ALL`` is only meaningful for exports."""

    PERFORMANCE = "performance"
    BUDGET_VS_ACTUAL = "budget_vs_actual"
    TREND = "trend"
    VARIANCE = "variance"
    FORECAST = "forecast"
    BREAKDOWN = "breakdown"
    ALL = "all"


class InsightType(str, Enum):
    """Kinds of generated insights."""

    RECOMMENDATION = "recommendation"
    WARNING = "warning"
    INFO = "info"


class InsightPriority(str, Enum):
    """Insight priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Insight(BaseModel):
    """A generated textual insight."""

    type: InsightType
    priority: InsightPriority
    message: str
    category_id: Optional[str] = None


class ReportPeriod(BaseModel):
    """Inclusive date window covered by a report."""

    start_date: date
    end_date: date


class BaseReport(BaseModel):
    """Fields shared by every report."""

    report_type: ReportType
    budget_id: str
    budget_name: str
    currency: str = "USD"
    generated_at: datetime

    def comparable(self) -> dict[str, Any]:
        """Dump the report without its wall-clock timestamp."""
        return self.model_dump(exclude={"generated_at"})


# =============================================================================
# PERFORMANCE
# =============================================================================


class PerformanceSummary(BaseModel):
    total_allocated: Decimal
    total_spent: Decimal
    remaining_amount: Decimal
    utilization_percentage: Decimal
    variance_amount: Decimal
    variance_percentage: Decimal
    status: BudgetHealth


class CategoryPerformance(BaseModel):
    category_id: str
    category_name: str
    allocated_amount: Decimal
    spent_amount: Decimal
    variance_amount: Decimal
    variance_percentage: Decimal
    utilization_percentage: Decimal
    status: BudgetHealth


class PerformanceReport(BaseReport):
    """Overall and per-category performance with insights."""

    report_type: ReportType = ReportType.PERFORMANCE
    period: ReportPeriod
    performance: PerformanceSummary
    category_performance: list[CategoryPerformance] = Field(default_factory=list)
    insights: list[Insight] = Field(default_factory=list)


# =============================================================================
# BUDGET VS ACTUAL
# =============================================================================


class BudgetVsActualSummary(BaseModel):
    total_budgeted: Decimal
    total_actual: Decimal
    variance: Decimal
    variance_percentage: Decimal
    status: BudgetHealth


class CategoryComparison(BaseModel):
    category_id: str
    category_name: str
    budgeted: Decimal
    actual: Decimal
    variance: Decimal
    variance_percentage: Decimal
    efficiency: Decimal = Field(description="Spent/allocated ratio, not a percentage")
    status: BudgetHealth


class BudgetVsActualReport(BaseReport):
    report_type: ReportType = ReportType.BUDGET_VS_ACTUAL
    period: ReportPeriod
    summary: BudgetVsActualSummary
    category_comparison: list[CategoryComparison] = Field(default_factory=list)


# =============================================================================
# TREND ANALYSIS
# =============================================================================


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class TrendStrength(str, Enum):
    """Strength level of a fitted trend, from its R-squared."""

    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


class ProjectionMethod(str, Enum):
    LINEAR = "linear"
    AVERAGE = "average"
    NONE = "none"


class TrendPoint(BaseModel):
    """Spend for one calendar month."""

    period: str = Field(description="Calendar month as YYYY-MM")
    total_spent: Decimal
    allocated_spent: Decimal = Field(description="Spend in allocated categories only")
    transaction_count: int = 0
    change: Decimal = Decimal("0")
    percentage_change: Decimal = Decimal("0")


class TrendProjection(BaseModel):
    method: ProjectionMethod
    next_period_spend: Decimal
    average_monthly_spend: Decimal
    monthly_allocation: Decimal
    projected_utilization: Decimal
    projected_status: BudgetHealth
    trend_direction: TrendDirection
    slope: Decimal = Field(default=Decimal("0"), description="Fitted change in spend per month")
    trend_strength: Decimal = Field(
        default=Decimal("0"), description="R-squared of the linear fit, 0 to 1"
    )
    strength_level: TrendStrength = TrendStrength.WEAK
    confidence: Decimal = Field(
        default=Decimal("0"),
        description="Trend strength scaled down when fewer months are available",
    )


class CategoryTrend(BaseModel):
    """Monthly trend of one allocated category."""

    category_id: str
    category_name: str
    monthly_spend: list[Decimal] = Field(
        default_factory=list,
        description="Spend per month, aligned with the report's trends",
    )
    total_spent: Decimal
    average_monthly_spend: Decimal
    slope: Decimal
    trend_direction: TrendDirection
    trend_strength: Decimal
    strength_level: TrendStrength
    confidence: Decimal


class TrendAnalysisReport(BaseReport):
    report_type: ReportType = ReportType.TREND
    analysis_period: ReportPeriod
    trends: list[TrendPoint] = Field(default_factory=list)
    projections: TrendProjection
    category_trends: list[CategoryTrend] = Field(default_factory=list)
    insights: list[Insight] = Field(default_factory=list)


# =============================================================================
# VARIANCE ANALYSIS
# =============================================================================


class VarianceRecord(BaseModel):
    category_id: str
    category_name: str
    allocated_amount: Decimal
    spent_amount: Decimal
    variance: Decimal
    variance_percentage: Decimal
    variance_type: VarianceType
    impact: ImpactLevel


class VarianceSummary(BaseModel):
    total_variance: Decimal
    total_variance_percentage: Decimal
    favorable_variances: Decimal = Field(description="Sum of |favorable category variances|")
    unfavorable_variances: Decimal = Field(description="Sum of unfavorable category variances")
    net_variance: Decimal


class VarianceAnalysisReport(BaseReport):
    report_type: ReportType = ReportType.VARIANCE
    period: ReportPeriod
    variance_summary: VarianceSummary
    category_variances: list[VarianceRecord] = Field(default_factory=list)
    significant_variances: list[str] = Field(
        default_factory=list,
        description="Category ids whose variance impact is high",
    )


# =============================================================================
# FORECAST
# =============================================================================


class ForecastMethodology(str, Enum):
    HISTORICAL = "historical"
    ALLOCATION = "allocation"


class ScenarioName(str, Enum):
    OPTIMISTIC = "optimistic"
    REALISTIC = "realistic"
    PESSIMISTIC = "pessimistic"


class ForecastScenario(BaseModel):
    scenario: ScenarioName
    probability: float
    projected_spend: Decimal
    projected_variance: Decimal
    assumptions: list[str] = Field(default_factory=list)


class ForecastSummary(BaseModel):
    methodology: ForecastMethodology
    daily_average: Decimal
    projected_spend: Decimal
    budgeted_amount: Decimal
    projected_variance: Decimal
    projected_utilization: Decimal
    projected_status: BudgetHealth
    confidence: Decimal = Field(ge=0, le=1)


class CategoryForecast(BaseModel):
    category_id: str
    category_name: str
    historical_spend: Decimal
    projected_spend: Decimal
    allocated_amount: Decimal
    projected_variance: Decimal
    projected_status: BudgetHealth


class RiskFactor(BaseModel):
    type: str
    severity: ImpactLevel
    description: str
    category_id: Optional[str] = None


class ForecastReport(BaseReport):
    report_type: ReportType = ReportType.FORECAST
    forecast_period: ReportPeriod
    history_period: ReportPeriod
    forecast: ForecastSummary
    category_forecasts: list[CategoryForecast] = Field(default_factory=list)
    scenarios: list[ForecastScenario] = Field(default_factory=list)
    risk_factors: list[RiskFactor] = Field(default_factory=list)
    recommendations: list[Insight] = Field(default_factory=list)


# =============================================================================
# CATEGORY BREAKDOWN
# =============================================================================


class CategoryBreakdownEntry(BaseModel):
    category_id: str
    category_name: str
    allocated_amount: Decimal
    total_spent: Decimal
    utilization_percentage: Decimal
    status: BudgetHealth
    percentage_of_total: Decimal
    transaction_count: int
    average_transaction_amount: Decimal
    largest_transaction: Decimal
    smallest_transaction: Decimal
    transactions: list[TransactionRef] = Field(default_factory=list)


class CategoryRanking(BaseModel):
    category_id: str
    category_name: str
    total_spent: Decimal
    transaction_count: int


class CategoryEfficiency(BaseModel):
    category_id: str
    category_name: str
    efficiency: Decimal
    status: EfficiencyStatus


class SpendingPatterns(BaseModel):
    top_spending_categories: list[CategoryRanking] = Field(default_factory=list)
    most_active_categories: list[CategoryRanking] = Field(default_factory=list)
    category_efficiency: list[CategoryEfficiency] = Field(default_factory=list)


class CategoryBreakdownReport(BaseReport):
    report_type: ReportType = ReportType.BREAKDOWN
    period: ReportPeriod
    category_breakdown: list[CategoryBreakdownEntry] = Field(default_factory=list)
    spending_patterns: SpendingPatterns
    insights: list[Insight] = Field(default_factory=list)
