"""Shared fixtures and in-memory data providers."""

import threading
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest

from budget_analytics.analytics import BudgetAnalyticsEngine
from budget_analytics.config import AnalyticsSettings
from budget_analytics.models import (
    Budget,
    CategoryAllocation,
    CategoryInfo,
    Transaction,
    TransactionFilter,
    TransactionPage,
    TransactionType,
)
from budget_analytics.reports import BudgetReportBuilder
from budget_analytics.service import BudgetAnalyticsService

USER_ID = "user123"
BUDGET_ID = "budget123"
JAN_START = date(2024, 1, 1)
JAN_END = date(2024, 1, 31)
FIXED_NOW = datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc)


class FakeBudgetStore:
    """BudgetStore backed by a dict; records every get_by_id call."""

    def __init__(self, budgets: list[Budget], error: Optional[Exception] = None):
        self.budgets = {b.id: b for b in budgets}
        self.error = error
        self.get_calls: list[tuple[str, str]] = []

    async def get_by_id(self, user_id: str, budget_id: str) -> Optional[Budget]:
        self.get_calls.append((user_id, budget_id))
        if self.error is not None:
            raise self.error
        return self.budgets.get(budget_id)

    async def list_by_user(self, user_id: str) -> list[Budget]:
        return [b for b in self.budgets.values() if b.user_id in (None, user_id)]


class FakeTransactionQuery:
    """TransactionQuery that honors dates, type, category and pagination."""

    def __init__(self, transactions: list[Transaction]):
        self.transactions = transactions
        self.queries: list[TransactionFilter] = []

    async def find(self, user_id: str, query: TransactionFilter) -> TransactionPage:
        self.queries.append(query)
        matches = [
            t for t in self.transactions
            if query.start_date <= t.date <= query.end_date
            and t.type == query.type
            and (query.category_id is None or t.category_id == query.category_id)
        ]
        offset = (query.page - 1) * query.limit
        return TransactionPage(
            transactions=matches[offset:offset + query.limit],
            total=len(matches),
            page=query.page,
            limit=query.limit,
        )


class FakeCategoryLookup:
    """CategoryLookup over a name map; ids in ``failing`` raise."""

    def __init__(self, names: dict[str, str], failing: frozenset = frozenset()):
        self.names = names
        self.failing = failing

    async def by_id(self, category_id: str) -> Optional[CategoryInfo]:
        if category_id in self.failing:
            raise RuntimeError(f"category lookup failed for {category_id}")
        name = self.names.get(category_id)
        if name is None:
            return None
        return CategoryInfo(id=category_id, name=name)


class FakeRenderer:
    """Renderer that records its calls and returns a marker payload."""

    def __init__(self):
        self.calls: list[tuple[str, bool]] = []
        self.threads: list[int] = []

    def render(self, payload, format, *, include_charts=False) -> bytes:
        self.calls.append((format, include_charts))
        self.threads.append(threading.get_ident())
        return f"rendered:{format}".encode()


def make_transaction(
    txn_id: str,
    amount: str,
    day: date,
    category_id: Optional[str] = "cat1",
    type: TransactionType = TransactionType.EXPENSE,
) -> Transaction:
    return Transaction(
        id=txn_id,
        amount=Decimal(amount),
        category_id=category_id,
        description=f"Transaction {txn_id}",
        type=type,
        date=day,
    )


@pytest.fixture
def budget() -> Budget:
    """4000 monthly budget with 2000 allocated to cat1."""
    return Budget(
        id=BUDGET_ID,
        user_id=USER_ID,
        name="Monthly Budget",
        total_amount=Decimal("4000"),
        start_date=JAN_START,
        end_date=JAN_END,
        category_allocations=[
            CategoryAllocation(category_id="cat1", allocated_amount=Decimal("2000")),
        ],
    )


@pytest.fixture
def transactions() -> list[Transaction]:
    """1500 in cat1 plus 1500 in an unallocated category, and noise."""
    return [
        make_transaction("t1", "1000", date(2024, 1, 5)),
        make_transaction("t2", "1500", date(2024, 1, 10), category_id="cat2"),
        make_transaction("t3", "500", date(2024, 1, 20)),
        make_transaction("t4", "250", date(2024, 1, 15), type=TransactionType.INCOME),
        make_transaction("t5", "999", date(2024, 2, 3)),
    ]


@pytest.fixture
def categories() -> FakeCategoryLookup:
    return FakeCategoryLookup({"cat1": "Groceries", "cat2": "Dining", "cat3": "Transport"})


@pytest.fixture
def settings() -> AnalyticsSettings:
    return AnalyticsSettings()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def store(budget: Budget) -> FakeBudgetStore:
    return FakeBudgetStore([budget])


@pytest.fixture
def query(transactions: list[Transaction]) -> FakeTransactionQuery:
    return FakeTransactionQuery(transactions)


@pytest.fixture
def engine(store, query, categories, settings) -> BudgetAnalyticsEngine:
    return BudgetAnalyticsEngine(store, query, categories, settings)


@pytest.fixture
def builder(engine, clock) -> BudgetReportBuilder:
    return BudgetReportBuilder(engine, clock=clock)


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def service(store, query, categories, renderer, settings, clock) -> BudgetAnalyticsService:
    return BudgetAnalyticsService(
        budgets=store,
        transactions=query,
        categories=categories,
        renderer=renderer,
        settings=settings,
        clock=clock,
    )
