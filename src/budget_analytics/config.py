"""Configuration system for the budget analytics engine.

This module provides Pydantic Settings-based configuration with environment
variable support. Every classification cut point used by the engine lives
here so that it can be tuned without touching the analytics code.

Usage:
    from budget_analytics.config import AnalyticsSettings

    settings = AnalyticsSettings()
    print(settings.thresholds.efficiency_threshold)
    print(settings.forecast.history_months)
"""

from decimal import Decimal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ThresholdSettings(BaseSettings):
    """Classification thresholds for variance, efficiency and alerts.

    Environment Variables:
        BUDGET_ANALYTICS_THRESHOLD_EFFICIENCY_THRESHOLD: Max spent/allocated ratio
            still considered efficient
        BUDGET_ANALYTICS_THRESHOLD_IMPACT_HIGH: |variance %| at or above which
            impact is high
        BUDGET_ANALYTICS_THRESHOLD_IMPACT_MEDIUM: |variance %| at or above which
            impact is medium
        BUDGET_ANALYTICS_THRESHOLD_NEGLIGIBLE_VARIANCE: |variance %| below which
            a performance insight is low priority
        BUDGET_ANALYTICS_THRESHOLD_DEFAULT_ALERT_THRESHOLD: Utilization % used
            when a budget has no alert threshold of its own
        BUDGET_ANALYTICS_THRESHOLD_STRONG_TREND: R-squared above which a trend
            is strong
        BUDGET_ANALYTICS_THRESHOLD_MODERATE_TREND: R-squared above which a trend
            is moderate
    """

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_ANALYTICS_THRESHOLD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    efficiency_threshold: Decimal = Field(
        default=Decimal("0.8"),
        gt=0,
        description="Efficiency ratio at or below which a category is efficient",
    )
    impact_high: Decimal = Field(
        default=Decimal("20"),
        gt=0,
        description="Absolute variance percentage for high impact",
    )
    impact_medium: Decimal = Field(
        default=Decimal("10"),
        gt=0,
        description="Absolute variance percentage for medium impact",
    )
    negligible_variance: Decimal = Field(
        default=Decimal("5"),
        ge=0,
        description="Absolute variance percentage treated as negligible",
    )
    default_alert_threshold: Decimal = Field(
        default=Decimal("80"),
        ge=0,
        le=100,
        description="Fallback utilization percentage for threshold alerts",
    )
    strong_trend: Decimal = Field(
        default=Decimal("0.7"),
        ge=0,
        le=1,
        description="Trend strength (R-squared) above which a trend is strong",
    )
    moderate_trend: Decimal = Field(
        default=Decimal("0.4"),
        ge=0,
        le=1,
        description="Trend strength (R-squared) above which a trend is moderate",
    )

    @model_validator(mode="after")
    def validate_level_order(self) -> "ThresholdSettings":
        """Medium levels must sit below high levels."""
        if self.impact_medium >= self.impact_high:
            raise ValueError("impact_medium must be lower than impact_high")
        if self.moderate_trend >= self.strong_trend:
            raise ValueError("moderate_trend must be lower than strong_trend")
        return self


class ForecastSettings(BaseSettings):
    """Forecast window and scenario configuration.

    Scenario probabilities are fixed weights, not derived from historical
    volatility.

    Environment Variables:
        BUDGET_ANALYTICS_FORECAST_HISTORY_MONTHS: Months of history before the
            forecast start
        BUDGET_ANALYTICS_FORECAST_MIN_TRANSACTIONS: Transactions required for
            the historical methodology
        BUDGET_ANALYTICS_FORECAST_OPTIMISTIC_PROBABILITY
        BUDGET_ANALYTICS_FORECAST_REALISTIC_PROBABILITY
        BUDGET_ANALYTICS_FORECAST_PESSIMISTIC_PROBABILITY
        BUDGET_ANALYTICS_FORECAST_OPTIMISTIC_MULTIPLIER
        BUDGET_ANALYTICS_FORECAST_PESSIMISTIC_MULTIPLIER
    """

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_ANALYTICS_FORECAST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    history_months: int = Field(
        default=6,
        ge=1,
        le=60,
        description="Months of history used to build a forecast",
    )
    min_transactions: int = Field(
        default=1,
        ge=1,
        description="Minimum historical transactions for the historical methodology",
    )
    optimistic_probability: float = Field(default=0.2, ge=0.0, le=1.0)
    realistic_probability: float = Field(default=0.6, ge=0.0, le=1.0)
    pessimistic_probability: float = Field(default=0.2, ge=0.0, le=1.0)
    optimistic_multiplier: Decimal = Field(
        default=Decimal("0.9"),
        gt=0,
        le=1,
        description="Spend multiplier applied to the realistic projection",
    )
    pessimistic_multiplier: Decimal = Field(
        default=Decimal("1.2"),
        ge=1,
        description="Spend multiplier applied to the realistic projection",
    )

    @model_validator(mode="after")
    def validate_probabilities(self) -> "ForecastSettings":
        """Scenario probabilities must sum to 1."""
        total = (
            self.optimistic_probability
            + self.realistic_probability
            + self.pessimistic_probability
        )
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Scenario probabilities must sum to 1.0, got {total}")
        return self


class AnalyticsSettings(BaseSettings):
    """Root configuration for the analytics engine.

    Environment Variables:
        BUDGET_ANALYTICS_TRANSACTION_PAGE_SIZE: Page size for transaction queries
        BUDGET_ANALYTICS_TREND_HISTORY_MONTHS: Months of history in trend reports
        BUDGET_ANALYTICS_TREND_CONFIDENCE_MONTHS: Monthly buckets needed for full
            trend confidence
        BUDGET_ANALYTICS_TOP_CATEGORIES_LIMIT: Entries in top-category lists

    Example:
        settings = AnalyticsSettings(
            thresholds=ThresholdSettings(efficiency_threshold=Decimal("0.9")),
        )
    """

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_ANALYTICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    transaction_page_size: int = Field(
        default=1000,
        gt=0,
        le=10000,
        description="Number of transactions requested per page",
    )
    trend_history_months: int = Field(
        default=6,
        ge=0,
        le=60,
        description="Months of history before the window included in trend reports",
    )
    trend_confidence_months: int = Field(
        default=12,
        gt=0,
        description="Monthly buckets at which trend confidence stops being scaled down",
    )
    top_categories_limit: int = Field(
        default=5,
        gt=0,
        description="Maximum entries in top spending/most active lists",
    )

    thresholds: ThresholdSettings = Field(default_factory=ThresholdSettings)
    forecast: ForecastSettings = Field(default_factory=ForecastSettings)

