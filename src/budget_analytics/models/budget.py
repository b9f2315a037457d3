"""Input models read from the data providers.

These models describe budgets, their category allocations and the expense
transactions the engine consumes. The engine never mutates them; they are
read-only snapshots handed over by the budget store and transaction query.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator


class BudgetPeriod(str, Enum):
    """Budget period types."""

    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class BudgetStatus(str, Enum):
    """Budget lifecycle status."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TransactionType(str, Enum):
    """Transaction direction."""

    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"


class CategoryAllocation(BaseModel):
    """Portion of a budget's total amount assigned to one category."""

    category_id: str = Field(description="Identifier of the allocated category")
    allocated_amount: Decimal = Field(
        ge=Decimal("0"),
        description="Amount allocated to the category for the budget period",
    )
    is_flexible: bool = Field(
        default=False,
        description="Flexible allocations may be exceeded without a category alert",
    )
    priority: int = Field(
        default=1,
        ge=0,
        description="Relative priority of the allocation (lower is more important)",
    )


class Budget(BaseModel):
    """A budget definition as returned by the budget store.

    The sum of allocations should not exceed ``total_amount``. That rule is
    enforced when the budget is written, so the engine treats any budget it
    receives as already valid.
    """

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "budget123",
                    "user_id": "user123",
                    "name": "Monthly Budget",
                    "total_amount": "4000",
                    "currency": "USD",
                    "start_date": "2024-01-01",
                    "end_date": "2024-01-31",
                    "category_allocations": [
                        {"category_id": "cat1", "allocated_amount": "2000"}
                    ],
                }
            ]
        }
    }

    id: str = Field(description="Budget identifier")
    user_id: Optional[str] = Field(
        default=None,
        description="Owner of the budget; None when the store has already scoped by user",
    )
    name: str = Field(description="Display name of the budget")
    description: Optional[str] = Field(default=None)
    period: BudgetPeriod = Field(default=BudgetPeriod.MONTHLY)
    status: BudgetStatus = Field(default=BudgetStatus.ACTIVE)
    total_amount: Decimal = Field(
        ge=Decimal("0"),
        description="Total amount available for the budget period",
    )
    currency: str = Field(default="USD", min_length=3, max_length=3)
    start_date: date = Field(description="First day of the budget period (inclusive)")
    end_date: date = Field(description="Last day of the budget period (inclusive)")
    category_allocations: list[CategoryAllocation] = Field(default_factory=list)
    alert_threshold: Optional[Decimal] = Field(
        default=None,
        ge=Decimal("0"),
        le=Decimal("100"),
        description="Utilization percentage that raises a threshold alert",
    )
    is_active: bool = Field(default=True)

    @field_validator("end_date")
    @classmethod
    def end_date_after_start_date(cls, v, info):
        """Validate that end_date is not before start_date."""
        if "start_date" in info.data and v < info.data["start_date"]:
            raise ValueError("end_date must be on or after start_date")
        return v

    @model_validator(mode="after")
    def unique_category_allocations(self) -> "Budget":
        """Each category may be allocated at most once."""
        seen = set()
        for allocation in self.category_allocations:
            if allocation.category_id in seen:
                raise ValueError(
                    f"Duplicate allocation for category {allocation.category_id}"
                )
            seen.add(allocation.category_id)
        return self

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Currency codes are stored upper-case."""
        return v.upper()

    @computed_field
    @property
    def duration_days(self) -> int:
        """Number of calendar days in the budget period, inclusive."""
        return (self.end_date - self.start_date).days + 1

    @property
    def category_ids(self) -> list[str]:
        """Allocated category ids in allocation order."""
        return [a.category_id for a in self.category_allocations]


class Transaction(BaseModel):
    """A single transaction as returned by the transaction query.

    ``amount`` is a positive magnitude; direction is carried by ``type``.
    """

    id: str = Field(description="Transaction identifier")
    amount: Decimal = Field(
        ge=Decimal("0"),
        description="Positive transaction magnitude",
    )
    category_id: Optional[str] = Field(default=None)
    description: str = Field(default="")
    type: TransactionType = Field(default=TransactionType.EXPENSE)
    date: date

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount_to_decimal(cls, v):
        """Coerce string and float amounts to Decimal."""
        if isinstance(v, (str, float)):
            return Decimal(str(v))
        return v

    @property
    def is_expense(self) -> bool:
        """Returns True if this transaction is an outflow."""
        return self.type == TransactionType.EXPENSE


class TransactionFilter(BaseModel):
    """Query sent to the transaction provider."""

    start_date: date
    end_date: date
    category_id: Optional[str] = None
    type: TransactionType = TransactionType.EXPENSE
    limit: int = Field(default=1000, gt=0)
    page: int = Field(default=1, ge=1)


class TransactionPage(BaseModel):
    """One page of transactions returned by the transaction provider."""

    transactions: list[Transaction] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=1000, gt=0)


class CategoryInfo(BaseModel):
    """Category display data returned by the category lookup."""

    id: str
    name: str
    path: Optional[str] = None
