"""
Runtime settings loaded from environment variables.

Uses pydantic-settings; values can be overridden with ``BACKTEST_``-prefixed
environment variables or a ``.env`` file.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from strategy_backtester.core.constants import (
    ANNUAL_RISK_FREE_RATE,
    DEFAULT_COMMISSION_RATE,
    DEFAULT_INITIAL_CAPITAL,
    DEFAULT_SLIPPAGE_RATE,
    DEFAULT_SYNTHETIC_SEED,
    TRADING_DAYS_PER_YEAR,
)


class Settings(BaseSettings):
    """Engine settings."""

    model_config = SettingsConfigDict(
        env_prefix="BACKTEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    default_initial_capital: float = Field(default=DEFAULT_INITIAL_CAPITAL, gt=0)
    default_commission_rate: float = Field(default=DEFAULT_COMMISSION_RATE, ge=0, lt=1)
    default_slippage_rate: float = Field(default=DEFAULT_SLIPPAGE_RATE, ge=0, lt=1)

    risk_free_rate: float = ANNUAL_RISK_FREE_RATE
    trading_days_per_year: int = TRADING_DAYS_PER_YEAR

    # Seed for the synthetic market data provider
    synthetic_seed: int = DEFAULT_SYNTHETIC_SEED

    # Directory of <strategy_id>.json files served to the API orchestrator
    strategy_config_dir: Path | None = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
