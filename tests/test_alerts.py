"""Tests for budget alerts."""

from datetime import date
from decimal import Decimal

import pytest

from budget_analytics.alerts import BudgetAlertMonitor, evaluate_budget_alerts
from budget_analytics.analytics import BudgetAnalyticsEngine
from budget_analytics.config import ThresholdSettings
from budget_analytics.exceptions import BudgetNotFoundError
from budget_analytics.models import (
    AlertSeverity,
    AlertType,
    Budget,
    BudgetAnalyticsSnapshot,
    BudgetHealth,
    BudgetStatus,
    CategoryAllocation,
    CategoryBreakdown,
)

from conftest import (
    BUDGET_ID,
    JAN_END,
    JAN_START,
    USER_ID,
    FakeBudgetStore,
    FakeCategoryLookup,
    FakeTransactionQuery,
    make_transaction,
)


def snapshot_for(
    budget: Budget,
    spent: str,
    categories: list[CategoryBreakdown] = (),
) -> BudgetAnalyticsSnapshot:
    total = budget.total_amount
    amount = Decimal(spent)
    return BudgetAnalyticsSnapshot(
        budget_id=budget.id,
        budget_name=budget.name,
        period_start=budget.start_date,
        period_end=budget.end_date,
        total_allocated=total,
        total_spent=amount,
        remaining_amount=total - amount,
        utilization_percentage=amount / total * 100,
        status=BudgetHealth.UNDER,
        category_breakdown=list(categories),
    )


def breakdown(spent: str, allocated: str, is_flexible: bool = False) -> CategoryBreakdown:
    s, a = Decimal(spent), Decimal(allocated)
    return CategoryBreakdown(
        category_id="cat1",
        category_name="Groceries",
        allocated_amount=a,
        spent_amount=s,
        remaining_amount=a - s,
        utilization_percentage=s / a * 100,
        status=BudgetHealth.OVER if s > a else BudgetHealth.UNDER,
        is_flexible=is_flexible,
    )


class TestEvaluateBudgetAlerts:
    """Test suite for the pure alert rule."""

    def test_below_default_threshold(self, budget):
        assert evaluate_budget_alerts(budget, snapshot_for(budget, "3000")) == []

    def test_default_threshold_is_inclusive(self, budget):
        alerts = evaluate_budget_alerts(budget, snapshot_for(budget, "3200"))

        assert len(alerts) == 1
        assert alerts[0].type == AlertType.THRESHOLD
        assert alerts[0].severity == AlertSeverity.MEDIUM
        assert alerts[0].message == 'Budget "Monthly Budget" is 80.0% used'

    def test_critical_at_full_utilization(self, budget):
        alerts = evaluate_budget_alerts(budget, snapshot_for(budget, "4000"))

        assert alerts[0].severity == AlertSeverity.CRITICAL
        assert alerts[0].current_amount == Decimal("4000")
        assert alerts[0].limit_amount == Decimal("4000")

    def test_budget_threshold_overrides_default(self, budget):
        strict = budget.model_copy(update={"alert_threshold": Decimal("50")})

        alerts = evaluate_budget_alerts(strict, snapshot_for(strict, "2100"))

        assert [a.type for a in alerts] == [AlertType.THRESHOLD]

    def test_configured_default_threshold(self, budget):
        thresholds = ThresholdSettings(default_alert_threshold=Decimal("90"))

        assert evaluate_budget_alerts(budget, snapshot_for(budget, "3400"), thresholds) == []

    def test_category_overbudget(self, budget):
        alerts = evaluate_budget_alerts(
            budget, snapshot_for(budget, "2500", [breakdown("2500", "2000")])
        )

        assert len(alerts) == 1
        assert alerts[0].type == AlertType.CATEGORY_OVERBUDGET
        assert alerts[0].severity == AlertSeverity.HIGH
        assert alerts[0].category_id == "cat1"

    def test_flexible_category_not_alerted(self, budget):
        alerts = evaluate_budget_alerts(
            budget, snapshot_for(budget, "2500", [breakdown("2500", "2000", is_flexible=True)])
        )

        assert alerts == []

    def test_category_at_allocation_not_alerted(self, budget):
        alerts = evaluate_budget_alerts(
            budget, snapshot_for(budget, "2000", [breakdown("2000", "2000")])
        )

        assert alerts == []


class TestBudgetAlertMonitor:
    """Test suite for batch alert evaluation."""

    @pytest.fixture
    def broken_budget(self) -> Budget:
        return Budget(
            id="broken",
            user_id=USER_ID,
            name="Broken",
            total_amount=Decimal("100"),
            start_date=JAN_START,
            end_date=JAN_END,
            category_allocations=[
                CategoryAllocation(category_id="explode", allocated_amount=Decimal("50")),
            ],
        )

    @pytest.fixture
    def hot_budget(self, budget) -> Budget:
        return budget.model_copy(update={"alert_threshold": Decimal("70")})

    @pytest.mark.asyncio
    async def test_single_budget(self, hot_budget, query, categories, settings):
        engine = BudgetAnalyticsEngine(FakeBudgetStore([hot_budget]), query, categories, settings)

        alerts = await BudgetAlertMonitor(engine).check_budget_alerts(USER_ID, BUDGET_ID)

        assert len(alerts) == 1
        assert alerts[0].budget_id == BUDGET_ID
        assert alerts[0].utilization_percentage == Decimal("75")

    @pytest.mark.asyncio
    async def test_uses_budget_date_range(self, hot_budget, categories, settings):
        query = FakeTransactionQuery([
            make_transaction("in", "3000", date(2024, 1, 15)),
            make_transaction("out", "9000", date(2024, 2, 15)),
        ])
        engine = BudgetAnalyticsEngine(FakeBudgetStore([hot_budget]), query, categories, settings)

        await BudgetAlertMonitor(engine).check_budget_alerts(USER_ID)

        assert query.queries[0].start_date == JAN_START
        assert query.queries[0].end_date == JAN_END

    @pytest.mark.asyncio
    async def test_failing_budget_is_isolated(self, hot_budget, broken_budget, query, settings):
        categories = FakeCategoryLookup({"cat1": "Groceries"}, failing=frozenset({"explode"}))
        engine = BudgetAnalyticsEngine(
            FakeBudgetStore([hot_budget, broken_budget]), query, categories, settings
        )

        alerts = await BudgetAlertMonitor(engine).check_budget_alerts(USER_ID)

        assert [a.budget_id for a in alerts] == [BUDGET_ID]

    @pytest.mark.asyncio
    async def test_all_budgets_failing_returns_empty(self, broken_budget, query, settings):
        categories = FakeCategoryLookup({}, failing=frozenset({"explode"}))
        engine = BudgetAnalyticsEngine(
            FakeBudgetStore([broken_budget]), query, categories, settings
        )

        assert await BudgetAlertMonitor(engine).check_budget_alerts(USER_ID) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "update",
        [
            {"status": BudgetStatus.ARCHIVED},
            {"status": BudgetStatus.PAUSED},
            {"is_active": False},
        ],
    )
    async def test_inactive_budgets_skipped(
        self, hot_budget, query, categories, settings, update
    ):
        inactive = hot_budget.model_copy(update={"id": "inactive", **update})
        store = FakeBudgetStore([hot_budget, inactive])
        engine = BudgetAnalyticsEngine(store, query, categories, settings)

        alerts = await BudgetAlertMonitor(engine).check_budget_alerts(USER_ID)

        assert [a.budget_id for a in alerts] == [BUDGET_ID]

    @pytest.mark.asyncio
    async def test_explicit_budget_checked_regardless_of_status(
        self, hot_budget, query, categories, settings
    ):
        archived = hot_budget.model_copy(update={"status": BudgetStatus.ARCHIVED})
        engine = BudgetAnalyticsEngine(FakeBudgetStore([archived]), query, categories, settings)

        alerts = await BudgetAlertMonitor(engine).check_budget_alerts(USER_ID, BUDGET_ID)

        assert len(alerts) == 1

    @pytest.mark.asyncio
    async def test_lookup_failure_propagates(self, engine):
        with pytest.raises(BudgetNotFoundError):
            await BudgetAlertMonitor(engine).check_budget_alerts(USER_ID, "missing")
