"""Budget Analytics - Spend analysis, reports, forecasts and exports for budgets."""

__version__ = "0.1.0"

from .analytics import BudgetAnalyticsEngine
from .config import AnalyticsSettings
from .exceptions import (
    AccessDeniedError,
    BudgetAnalyticsError,
    BudgetNotFoundError,
    ErrorKind,
    UpstreamError,
    ValidationError,
)
from .export import ExportFormat, ExportOptions, ExportResult
from .rendering import DocumentRenderer
from .service import BudgetAnalyticsService

__all__ = [
    "BudgetAnalyticsService",
    "BudgetAnalyticsEngine",
    "AnalyticsSettings",
    "DocumentRenderer",
    "ExportFormat",
    "ExportOptions",
    "ExportResult",
    "ErrorKind",
    "BudgetAnalyticsError",
    "BudgetNotFoundError",
    "AccessDeniedError",
    "UpstreamError",
    "ValidationError",
]
