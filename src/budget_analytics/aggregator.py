"""Category aggregation of expense transactions.

Groups a flat transaction list by exact ``category_id`` against a budget's
allocation list. Parent categories do not absorb their children's spend.
Transactions without a matching allocation are left out of the per-category
statistics but still count toward the overall total.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from .models.analytics import CategoryStatistics, TransactionRef
from .models.budget import CategoryAllocation, Transaction

ZERO = Decimal("0")


@dataclass
class AggregationResult:
    """Output of a category aggregation."""

    categories: dict[str, CategoryStatistics] = field(default_factory=dict)
    total_spent: Decimal = ZERO
    unallocated_total: Decimal = ZERO
    transaction_count: int = 0

    def get(self, category_id: str) -> Optional[CategoryStatistics]:
        return self.categories.get(category_id)


def _statistics(category_id: str, transactions: list[Transaction]) -> CategoryStatistics:
    if not transactions:
        return CategoryStatistics(category_id=category_id)

    amounts = [t.amount for t in transactions]
    total = sum(amounts, ZERO)
    ordered = sorted(transactions, key=lambda t: (t.date, t.id))

    return CategoryStatistics(
        category_id=category_id,
        total_amount=total,
        transaction_count=len(transactions),
        average_transaction_amount=total / len(transactions),
        largest_transaction=max(amounts),
        smallest_transaction=min(amounts),
        transactions=[
            TransactionRef(id=t.id, amount=t.amount, description=t.description, date=t.date)
            for t in ordered
        ],
    )


def aggregate_by_category(
    transactions: Iterable[Transaction],
    allocations: Iterable[CategoryAllocation],
) -> AggregationResult:
    """
    Aggregate transactions per allocated category.

    Args:
        transactions: Expense transactions to aggregate
        allocations: The budget's category allocations

    Returns:
        AggregationResult keyed by category id in allocation order. Every
        allocated category is present, with zeroed statistics when it has
        no transactions.
    """
    allocated_ids = [a.category_id for a in allocations]
    grouped: dict[str, list[Transaction]] = {category_id: [] for category_id in allocated_ids}

    total_spent = ZERO
    unallocated_total = ZERO
    count = 0

    for txn in transactions:
        total_spent += txn.amount
        count += 1
        bucket = grouped.get(txn.category_id) if txn.category_id is not None else None
        if bucket is None:
            unallocated_total += txn.amount
        else:
            bucket.append(txn)

    return AggregationResult(
        categories={
            category_id: _statistics(category_id, grouped[category_id])
            for category_id in allocated_ids
        },
        total_spent=total_spent,
        unallocated_total=unallocated_total,
        transaction_count=count,
    )


__all__ = ["AggregationResult", "aggregate_by_category"]
