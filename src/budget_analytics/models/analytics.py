"""Derived analytics models.

Everything in this module is computed from a Budget and its transactions on
every request. None of these objects has an identity or a lifecycle of its
own beyond the response that returns it.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class BudgetHealth(str, Enum):
    """Spent-versus-allocated classification."""

    UNDER = "under"
    ON_TRACK = "on-track"
    OVER = "over"


class EfficiencyStatus(str, Enum):
    """Category efficiency classification."""

    EFFICIENT = "efficient"
    INEFFICIENT = "inefficient"


class VarianceType(str, Enum):
    """Direction of a variance; favorable means at or under budget."""

    FAVORABLE = "favorable"
    UNFAVORABLE = "unfavorable"


class ImpactLevel(str, Enum):
    """Size of a variance relative to its allocation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AlertType(str, Enum):
    """Kinds of budget alerts."""

    THRESHOLD = "threshold"
    CATEGORY_OVERBUDGET = "category_overbudget"


class AlertSeverity(str, Enum):
    """Alert severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TransactionRef(BaseModel):
    """A transaction contributing to a category's spend."""

    id: str
    amount: Decimal
    description: str = ""
    date: date


class CategoryStatistics(BaseModel):
    """Per-category transaction statistics produced by the aggregator.

    All amounts are zero when the category has no transactions.
    """

    category_id: str
    total_amount: Decimal = Decimal("0")
    transaction_count: int = Field(default=0, ge=0)
    average_transaction_amount: Decimal = Decimal("0")
    largest_transaction: Decimal = Decimal("0")
    smallest_transaction: Decimal = Decimal("0")
    transactions: list[TransactionRef] = Field(default_factory=list)


class CategoryBreakdown(BaseModel):
    """Spend against one category allocation."""

    category_id: str
    category_name: str
    allocated_amount: Decimal
    spent_amount: Decimal
    remaining_amount: Decimal
    utilization_percentage: Decimal
    status: BudgetHealth
    is_flexible: bool = False
    priority: int = 1
    transactions: list[TransactionRef] = Field(default_factory=list)


class DailyProgress(BaseModel):
    """Cumulative spend against pro-rata allocation for one calendar day."""

    spent_amount: Decimal = Field(description="Spend on this day")
    cumulative_spent: Decimal = Field(description="Spend from window start through this day")
    allocated_amount: Decimal = Field(description="Pro-rata allocation through this day")
    remaining_amount: Decimal = Field(description="allocated_amount - cumulative_spent")
    date: date


class Alert(BaseModel):
    """A budget alert. Regenerated on every check and never stored."""

    type: AlertType
    message: str
    severity: AlertSeverity
    budget_id: str
    budget_name: str
    category_id: Optional[str] = None
    current_amount: Decimal
    limit_amount: Decimal
    utilization_percentage: Decimal


class BudgetAnalyticsSnapshot(BaseModel):
    """Analytics for one budget over one date range."""

    budget_id: str
    budget_name: str
    currency: str = "USD"
    period_start: date
    period_end: date
    total_allocated: Decimal
    total_spent: Decimal
    remaining_amount: Decimal
    utilization_percentage: Decimal
    status: BudgetHealth
    transaction_count: int = Field(default=0, ge=0)
    unallocated_spent: Decimal = Field(
        default=Decimal("0"),
        description="Spend in categories without an allocation; counted in total_spent",
    )
    category_breakdown: list[CategoryBreakdown] = Field(default_factory=list)
    daily_progress: list[DailyProgress] = Field(default_factory=list)
    alerts: list[Alert] = Field(default_factory=list)

    @property
    def allocated_category_spent(self) -> Decimal:
        """Spend restricted to allocated categories."""
        return sum((c.spent_amount for c in self.category_breakdown), Decimal("0"))
