"""Tests for the service facade."""

from decimal import Decimal

import pytest

from budget_analytics import BudgetAnalyticsService, DocumentRenderer
from budget_analytics.exceptions import AccessDeniedError
from budget_analytics.models import ReportType

from conftest import BUDGET_ID, FIXED_NOW, JAN_END, JAN_START, USER_ID, FakeBudgetStore


class TestBudgetAnalyticsService:
    """Test suite for BudgetAnalyticsService wiring."""

    def test_default_renderer(self, store, query, categories, settings):
        service = BudgetAnalyticsService(store, query, categories, settings=settings)

        assert isinstance(service.exporter.renderer, DocumentRenderer)
        assert service.engine.settings is settings

    @pytest.mark.asyncio
    async def test_report_methods(self, service):
        args = (USER_ID, BUDGET_ID, JAN_START, JAN_END)

        reports = [
            await service.get_budget_performance_report(*args),
            await service.get_budget_vs_actual_report(*args),
            await service.get_budget_trend_analysis(*args),
            await service.get_budget_variance_analysis(*args),
            await service.get_budget_forecast(*args),
            await service.get_budget_category_breakdown(*args),
        ]

        assert [r.report_type for r in reports] == [
            ReportType.PERFORMANCE,
            ReportType.BUDGET_VS_ACTUAL,
            ReportType.TREND,
            ReportType.VARIANCE,
            ReportType.FORECAST,
            ReportType.BREAKDOWN,
        ]
        assert all(r.budget_id == BUDGET_ID for r in reports)
        assert all(r.generated_at == FIXED_NOW for r in reports)

    @pytest.mark.asyncio
    async def test_snapshot(self, service):
        snapshot = await service.get_budget_analytics(USER_ID, BUDGET_ID, JAN_START, JAN_END)

        assert snapshot.total_spent == Decimal("3000")

    @pytest.mark.asyncio
    async def test_access_denied(self, service):
        with pytest.raises(AccessDeniedError):
            await service.get_budget_variance_analysis("intruder", BUDGET_ID, JAN_START, JAN_END)

    @pytest.mark.asyncio
    async def test_alerts(self, budget, query, categories, settings, clock):
        hot = budget.model_copy(update={"alert_threshold": Decimal("70")})
        service = BudgetAnalyticsService(
            FakeBudgetStore([hot]), query, categories, settings=settings, clock=clock
        )

        alerts = await service.get_budget_alerts(USER_ID)

        assert [a.budget_id for a in alerts] == [BUDGET_ID]
