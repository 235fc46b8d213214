"""
Unit tests for runtime settings and logging configuration.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from strategy_backtester.core.config import Settings, get_settings
from strategy_backtester.core.logging_setup import configure_logging


class TestSettings:
    """Test suite for environment-driven settings."""

    @pytest.fixture(autouse=True)
    def clear_cache(self):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_should_use_defaults(self, monkeypatch) -> None:
        """Test default engine settings."""
        monkeypatch.delenv("BACKTEST_LOG_LEVEL", raising=False)
        monkeypatch.delenv("BACKTEST_STRATEGY_CONFIG_DIR", raising=False)

        settings = Settings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.default_initial_capital == 10000.0
        assert settings.default_commission_rate == 0.001
        assert settings.risk_free_rate == 0.05
        assert settings.trading_days_per_year == 252
        assert settings.synthetic_seed == 42
        assert settings.strategy_config_dir is None

    def test_should_read_prefixed_environment(self, monkeypatch) -> None:
        """Test BACKTEST_ variables override defaults."""
        monkeypatch.setenv("BACKTEST_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("BACKTEST_SYNTHETIC_SEED", "7")
        monkeypatch.setenv("BACKTEST_RISK_FREE_RATE", "0.02")

        settings = get_settings()

        assert settings.log_level == "DEBUG"
        assert settings.synthetic_seed == 7
        assert settings.risk_free_rate == 0.02

    def test_should_cache_settings(self) -> None:
        """Test get_settings returns a singleton."""
        assert get_settings() is get_settings()

    def test_should_reject_invalid_rates(self, monkeypatch) -> None:
        """Test cost rate bounds."""
        monkeypatch.setenv("BACKTEST_DEFAULT_COMMISSION_RATE", "1.5")

        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None)


class TestLogging:
    """Test suite for logging configuration."""

    def test_should_configure_logging_levels(self) -> None:
        """Test configuring the sink does not raise for standard levels."""
        for level in ("DEBUG", "INFO", "warning"):
            configure_logging(level)
