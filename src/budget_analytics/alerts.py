"""Budget threshold alerts.

Two layers:
1. evaluate_budget_alerts - pure rule applied to one snapshot
2. BudgetAlertMonitor - evaluates one or many budgets, isolating failures

The monitor is the one place in the engine that tolerates partial failure:
an error while evaluating one budget is logged and that budget contributes
no alerts, while its siblings are still evaluated.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import structlog

from .config import ThresholdSettings
from .models.analytics import (
    Alert,
    AlertSeverity,
    AlertType,
    BudgetAnalyticsSnapshot,
)
from .models.budget import Budget, BudgetStatus

if TYPE_CHECKING:
    from .analytics import BudgetAnalyticsEngine

logger = structlog.get_logger()

CRITICAL_UTILIZATION = Decimal("100")


def resolve_alert_threshold(budget: Budget, thresholds: ThresholdSettings) -> Decimal:
    """The budget's own threshold, or the configured default."""
    if budget.alert_threshold is not None:
        return budget.alert_threshold
    return thresholds.default_alert_threshold


def is_monitored(budget: Budget) -> bool:
    """Only active budgets take part in batch alert checks."""
    return budget.is_active and budget.status == BudgetStatus.ACTIVE


def evaluate_budget_alerts(
    budget: Budget,
    snapshot: BudgetAnalyticsSnapshot,
    thresholds: Optional[ThresholdSettings] = None,
) -> list[Alert]:
    """
    Compare a snapshot against the budget's alert rules.

    Rules:
    - Overall utilization >= alert threshold raises a threshold alert;
      severity is medium, or critical once utilization reaches 100%.
    - Each non-flexible category above 100% raises a high-severity
      category_overbudget alert.

    Args:
        budget: The budget the snapshot was built for
        snapshot: Analytics for the budget's window
        thresholds: Threshold settings (defaults apply when omitted)

    Returns:
        Alerts in rule order; empty when nothing crossed a threshold
    """
    thresholds = thresholds or ThresholdSettings()
    limit = resolve_alert_threshold(budget, thresholds)
    alerts: list[Alert] = []

    usage = snapshot.utilization_percentage
    if snapshot.total_allocated > 0 and usage >= limit:
        severity = (
            AlertSeverity.CRITICAL if usage >= CRITICAL_UTILIZATION else AlertSeverity.MEDIUM
        )
        alerts.append(
            Alert(
                type=AlertType.THRESHOLD,
                message=f'Budget "{budget.name}" is {usage:.1f}% used',
                severity=severity,
                budget_id=budget.id,
                budget_name=budget.name,
                current_amount=snapshot.total_spent,
                limit_amount=snapshot.total_allocated,
                utilization_percentage=usage,
            )
        )

    for category in snapshot.category_breakdown:
        if category.is_flexible or category.allocated_amount <= 0:
            continue
        if category.spent_amount > category.allocated_amount:
            alerts.append(
                Alert(
                    type=AlertType.CATEGORY_OVERBUDGET,
                    message=(
                        f'Category "{category.category_name}" in budget '
                        f'"{budget.name}" is over budget'
                    ),
                    severity=AlertSeverity.HIGH,
                    budget_id=budget.id,
                    budget_name=budget.name,
                    category_id=category.category_id,
                    current_amount=category.spent_amount,
                    limit_amount=category.allocated_amount,
                    utilization_percentage=category.utilization_percentage,
                )
            )

    return alerts


class BudgetAlertMonitor:
    """
    Evaluate alerts for one budget or every budget a user owns.

    Each budget is evaluated in its own task over the budget's own date
    range; tasks are joined at the end and a failing evaluation yields an
    empty alert list instead of an exception.
    """

    def __init__(self, analytics: BudgetAnalyticsEngine):
        """
        Initialize the monitor.

        Args:
            analytics: Engine used to load budgets and build snapshots
        """
        self._analytics = analytics

    async def check_budget_alerts(
        self,
        user_id: str,
        budget_id: Optional[str] = None,
    ) -> list[Alert]:
        """
        Check alerts for a user's budgets.

        Args:
            user_id: Owner of the budgets
            budget_id: Restrict the check to this budget; every active budget
                when None

        Returns:
            Alerts from every budget that evaluated successfully

        Raises:
            BudgetNotFoundError, AccessDeniedError: ``budget_id`` lookup failed.
                Lookups are not evaluations and are not downgraded.
        """
        if budget_id is not None:
            budgets = [await self._analytics.load_budget(user_id, budget_id)]
        else:
            budgets = [
                budget
                for budget in await self._analytics.list_budgets(user_id)
                if is_monitored(budget)
            ]

        results = await asyncio.gather(
            *(self._evaluate_isolated(user_id, budget) for budget in budgets)
        )
        alerts = [alert for budget_alerts in results for alert in budget_alerts]

        logger.info(
            "budget_alerts_checked",
            user_id=user_id,
            budget_id=budget_id,
            budgets_evaluated=len(budgets),
            alert_count=len(alerts),
        )
        return alerts

    async def _evaluate_isolated(self, user_id: str, budget: Budget) -> list[Alert]:
        try:
            snapshot = await self._analytics.snapshot(
                user_id, budget, budget.start_date, budget.end_date
            )
        except Exception as e:
            logger.warning(
                "budget_alert_evaluation_failed",
                user_id=user_id,
                budget_id=budget.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []
        return list(snapshot.alerts)


__all__ = [
    "BudgetAlertMonitor",
    "evaluate_budget_alerts",
    "is_monitored",
    "resolve_alert_threshold",
]
