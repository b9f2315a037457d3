"""Tests for the configuration system."""

from decimal import Decimal

import pytest

from budget_analytics.config import (
    AnalyticsSettings,
    ForecastSettings,
    ThresholdSettings,
)


class TestThresholdSettings:
    """Test suite for ThresholdSettings."""

    def test_default_values(self):
        """Thresholds should default to the documented cut points."""
        config = ThresholdSettings()

        assert config.efficiency_threshold == Decimal("0.8")
        assert config.impact_high == Decimal("20")
        assert config.impact_medium == Decimal("10")
        assert config.negligible_variance == Decimal("5")
        assert config.default_alert_threshold == Decimal("80")
        assert config.strong_trend == Decimal("0.7")
        assert config.moderate_trend == Decimal("0.4")

    def test_impact_order_validation(self):
        """Medium impact must be lower than high impact."""
        with pytest.raises(ValueError):
            ThresholdSettings(impact_medium=Decimal("20"), impact_high=Decimal("20"))

        with pytest.raises(ValueError):
            ThresholdSettings(impact_medium=Decimal("30"))

    def test_trend_strength_order_validation(self):
        """Moderate trend strength must be lower than strong."""
        with pytest.raises(ValueError):
            ThresholdSettings(moderate_trend=Decimal("0.8"))

    def test_alert_threshold_range(self):
        with pytest.raises(ValueError):
            ThresholdSettings(default_alert_threshold=Decimal("101"))

    def test_from_environment(self, monkeypatch):
        """ThresholdSettings should load from environment variables."""
        monkeypatch.setenv("BUDGET_ANALYTICS_THRESHOLD_EFFICIENCY_THRESHOLD", "0.9")
        monkeypatch.setenv("BUDGET_ANALYTICS_THRESHOLD_DEFAULT_ALERT_THRESHOLD", "75")

        config = ThresholdSettings()

        assert config.efficiency_threshold == Decimal("0.9")
        assert config.default_alert_threshold == Decimal("75")


class TestForecastSettings:
    """Test suite for ForecastSettings."""

    def test_default_values(self):
        config = ForecastSettings()

        assert config.history_months == 6
        assert config.min_transactions == 1
        assert config.optimistic_probability == 0.2
        assert config.realistic_probability == 0.6
        assert config.pessimistic_probability == 0.2
        assert config.optimistic_multiplier == Decimal("0.9")
        assert config.pessimistic_multiplier == Decimal("1.2")

    def test_probabilities_must_sum_to_one(self):
        """Scenario probabilities should be rejected unless they sum to 1."""
        with pytest.raises(ValueError):
            ForecastSettings(realistic_probability=0.5)

        config = ForecastSettings(
            optimistic_probability=0.25,
            realistic_probability=0.5,
            pessimistic_probability=0.25,
        )
        assert config.realistic_probability == 0.5

    def test_multiplier_bounds(self):
        with pytest.raises(ValueError):
            ForecastSettings(optimistic_multiplier=Decimal("1.1"))

        with pytest.raises(ValueError):
            ForecastSettings(pessimistic_multiplier=Decimal("0.9"))

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("BUDGET_ANALYTICS_FORECAST_HISTORY_MONTHS", "12")

        assert ForecastSettings().history_months == 12


class TestAnalyticsSettings:
    """Test suite for AnalyticsSettings."""

    def test_default_values(self):
        config = AnalyticsSettings()

        assert config.transaction_page_size == 1000
        assert config.trend_history_months == 6
        assert config.trend_confidence_months == 12
        assert config.top_categories_limit == 5
        assert isinstance(config.thresholds, ThresholdSettings)
        assert isinstance(config.forecast, ForecastSettings)

    def test_page_size_validation(self):
        with pytest.raises(ValueError):
            AnalyticsSettings(transaction_page_size=0)

    def test_nested_settings(self):
        config = AnalyticsSettings(
            thresholds=ThresholdSettings(efficiency_threshold=Decimal("0.9")),
        )

        assert config.thresholds.efficiency_threshold == Decimal("0.9")

    def test_from_environment(self, monkeypatch):
        """Root and nested settings read their own prefixes."""
        monkeypatch.setenv("BUDGET_ANALYTICS_TREND_CONFIDENCE_MONTHS", "6")
        monkeypatch.setenv("BUDGET_ANALYTICS_TRANSACTION_PAGE_SIZE", "250")
        monkeypatch.setenv("BUDGET_ANALYTICS_THRESHOLD_IMPACT_HIGH", "30")
        monkeypatch.setenv("BUDGET_ANALYTICS_FORECAST_HISTORY_MONTHS", "3")

        config = AnalyticsSettings()

        assert config.trend_confidence_months == 6
        assert config.transaction_page_size == 250
        assert config.thresholds.impact_high == Decimal("30")
        assert config.forecast.history_months == 3
