"""Budget analytics core.

Combines a budget, its category allocations and the expense transactions in
a date window into one BudgetAnalyticsSnapshot. The engine is stateless
between calls: every snapshot is rebuilt from the data providers on demand
and nothing is cached or persisted.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Any, Awaitable, Iterable, Optional

import structlog

from .aggregator import AggregationResult, aggregate_by_category
from .alerts import evaluate_budget_alerts
from .config import AnalyticsSettings
from .exceptions import AccessDeniedError, BudgetNotFoundError, ValidationError
from .interfaces import BudgetStore, CategoryLookup, TransactionQuery
from .metrics import classify_spend, utilization
from .models.analytics import BudgetAnalyticsSnapshot, CategoryBreakdown, DailyProgress
from .models.budget import Budget, CategoryInfo, Transaction, TransactionFilter, TransactionType

logger = structlog.get_logger()

UNKNOWN_CATEGORY = "Unknown"
ZERO = Decimal("0")


async def gather_or_cancel(*aws: Awaitable[Any]) -> list[Any]:
    """
    Await concurrently and return results in argument order.

    The first failure cancels whatever is still running, then propagates
    unchanged.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


def daily_progress(
    transactions: Iterable[Transaction],
    total_amount: Decimal,
    start_date: date,
    end_date: date,
) -> list[DailyProgress]:
    """
    Bucket spend by calendar day against a pro-rata allocation.

    One entry is produced per day that has spend, in date order. The
    allocation through a day is ``total_amount / window_days`` multiplied by
    the number of days elapsed since ``start_date``, inclusive.
    """
    days = window_days(start_date, end_date)
    if days <= 0:
        return []
    daily_allocation = total_amount / days

    per_day: dict[date, Decimal] = {}
    for txn in transactions:
        per_day[txn.date] = per_day.get(txn.date, ZERO) + txn.amount

    cumulative = ZERO
    progress = []
    for day in sorted(per_day):
        cumulative += per_day[day]
        allocated = daily_allocation * ((day - start_date).days + 1)
        progress.append(
            DailyProgress(
                date=day,
                spent_amount=per_day[day],
                cumulative_spent=cumulative,
                allocated_amount=allocated,
                remaining_amount=allocated - cumulative,
            )
        )
    return progress


class BudgetAnalyticsEngine:
    """
    Build analytics snapshots for budgets.

    Data providers are injected so the engine never reaches for global state.
    Budget existence is always confirmed before transactions are queried;
    once it is, the transaction query and category lookups run concurrently.
    """

    def __init__(
        self,
        budgets: BudgetStore,
        transactions: TransactionQuery,
        categories: CategoryLookup,
        settings: Optional[AnalyticsSettings] = None,
    ):
        """
        Initialize the engine.

        Args:
            budgets: Budget store
            transactions: Transaction query service
            categories: Category lookup
            settings: Analytics settings (defaults loaded from the environment)
        """
        self.budgets = budgets
        self.transactions = transactions
        self.categories = categories
        self.settings = settings or AnalyticsSettings()

    async def load_budget(self, user_id: str, budget_id: str) -> Budget:
        """
        Fetch a budget and confirm the user owns it.

        Raises:
            BudgetNotFoundError: The store has no such budget for the user
            AccessDeniedError: The budget belongs to a different user

        Any other store error propagates unchanged.
        """
        budget = await self.budgets.get_by_id(user_id, budget_id)
        if budget is None:
            raise BudgetNotFoundError(budget_id=budget_id)
        if budget.user_id is not None and budget.user_id != user_id:
            raise AccessDeniedError(budget_id=budget_id, user_id=user_id)
        return budget

    async def list_budgets(self, user_id: str) -> list[Budget]:
        """Every budget the user owns."""
        return await self.budgets.list_by_user(user_id)

    async def fetch_transactions(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> list[Transaction]:
        """
        Fetch every expense transaction in ``[start_date, end_date]``.

        Pages through the provider until ``total`` rows have been collected
        or a short page is returned. Rows that are not expenses or fall
        outside the window are dropped.
        """
        if end_date < start_date:
            raise ValidationError(
                "end_date must be on or after start_date",
                field="end_date",
                value=end_date.isoformat(),
            )

        limit = self.settings.transaction_page_size
        collected: list[Transaction] = []
        page = 1
        while True:
            result = await self.transactions.find(
                user_id,
                TransactionFilter(
                    start_date=start_date,
                    end_date=end_date,
                    type=TransactionType.EXPENSE,
                    limit=limit,
                    page=page,
                ),
            )
            collected.extend(result.transactions)
            if len(result.transactions) < limit or len(collected) >= result.total:
                break
            page += 1

        return [
            t for t in collected
            if t.is_expense and start_date <= t.date <= end_date
        ]

    async def resolve_categories(self, budget: Budget) -> dict[str, CategoryInfo]:
        """Look up every allocated category concurrently."""
        category_ids = list(dict.fromkeys(budget.category_ids))
        found = await gather_or_cancel(
            *(self.categories.by_id(category_id) for category_id in category_ids)
        )
        return {
            category_id: info or CategoryInfo(id=category_id, name=UNKNOWN_CATEGORY)
            for category_id, info in zip(category_ids, found)
        }

    async def gather_inputs(
        self,
        user_id: str,
        budget: Budget,
        start_date: date,
        end_date: date,
    ) -> tuple[list[Transaction], dict[str, CategoryInfo]]:
        """
        Run the transaction query and category lookups concurrently.

        If either side fails the other is cancelled.
        """
        transactions, categories = await gather_or_cancel(
            self.fetch_transactions(user_id, start_date, end_date),
            self.resolve_categories(budget),
        )
        return transactions, categories

    def compose(
        self,
        budget: Budget,
        transactions: list[Transaction],
        categories: dict[str, CategoryInfo],
        start_date: date,
        end_date: date,
        aggregation: Optional[AggregationResult] = None,
    ) -> BudgetAnalyticsSnapshot:
        """
        Assemble a snapshot from already-fetched inputs.

        ``total_spent`` covers every transaction, including spend in
        categories without an allocation; ``category_breakdown`` covers
        allocated categories only.
        """
        aggregation = aggregation or aggregate_by_category(
            transactions, budget.category_allocations
        )

        breakdown = []
        for allocation in budget.category_allocations:
            stats = aggregation.get(allocation.category_id)
            spent = stats.total_amount if stats else ZERO
            info = categories.get(allocation.category_id)
            breakdown.append(
                CategoryBreakdown(
                    category_id=allocation.category_id,
                    category_name=info.name if info else UNKNOWN_CATEGORY,
                    allocated_amount=allocation.allocated_amount,
                    spent_amount=spent,
                    remaining_amount=allocation.allocated_amount - spent,
                    utilization_percentage=utilization(spent, allocation.allocated_amount),
                    status=classify_spend(spent, allocation.allocated_amount),
                    is_flexible=allocation.is_flexible,
                    priority=allocation.priority,
                    transactions=list(stats.transactions) if stats else [],
                )
            )

        total_allocated = budget.total_amount
        total_spent = aggregation.total_spent

        snapshot = BudgetAnalyticsSnapshot(
            budget_id=budget.id,
            budget_name=budget.name,
            currency=budget.currency,
            period_start=start_date,
            period_end=end_date,
            total_allocated=total_allocated,
            total_spent=total_spent,
            remaining_amount=total_allocated - total_spent,
            utilization_percentage=utilization(total_spent, total_allocated),
            status=classify_spend(total_spent, total_allocated),
            transaction_count=aggregation.transaction_count,
            unallocated_spent=aggregation.unallocated_total,
            category_breakdown=breakdown,
            daily_progress=daily_progress(transactions, total_allocated, start_date, end_date),
        )
        alerts = evaluate_budget_alerts(budget, snapshot, self.settings.thresholds)
        return snapshot.model_copy(update={"alerts": alerts})

    async def snapshot(
        self,
        user_id: str,
        budget: Budget,
        start_date: date,
        end_date: date,
    ) -> BudgetAnalyticsSnapshot:
        """
        Build the analytics snapshot for an already-loaded budget.

        Args:
            user_id: Owner of the budget
            budget: Budget returned by load_budget
            start_date: Window start (inclusive)
            end_date: Window end (inclusive)
        """
        transactions, categories = await self.gather_inputs(
            user_id, budget, start_date, end_date
        )
        result = self.compose(budget, transactions, categories, start_date, end_date)
        logger.info(
            "budget_snapshot_built",
            user_id=user_id,
            budget_id=budget.id,
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            transaction_count=result.transaction_count,
            total_spent=str(result.total_spent),
            alert_count=len(result.alerts),
        )
        return result

    async def get_budget_analytics(
        self,
        user_id: str,
        budget_id: str,
        start_date: date,
        end_date: date,
    ) -> BudgetAnalyticsSnapshot:
        """Load a budget and build its snapshot for the window."""
        budget = await self.load_budget(user_id, budget_id)
        return await self.snapshot(user_id, budget, start_date, end_date)

    async def get_all_budget_analytics(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> list[BudgetAnalyticsSnapshot]:
        """Build a snapshot for every budget the user owns, in store order."""
        budgets = await self.list_budgets(user_id)
        return await gather_or_cancel(
            *(self.snapshot(user_id, b, start_date, end_date) for b in budgets)
        )


def window_days(start_date: date, end_date: date) -> int:
    """Number of calendar days in an inclusive window."""
    return (end_date - start_date).days + 1


__all__ = [
    "BudgetAnalyticsEngine",
    "daily_progress",
    "gather_or_cancel",
    "window_days",
]
