"""
FastAPI dependency providers.

The default orchestrator wires the in-memory stores, the role permission
checker and the seeded synthetic market data provider. Strategy configs are
loaded from ``BACKTEST_STRATEGY_CONFIG_DIR`` (one ``<strategy_id>.json`` file
per strategy); without it the config store is empty and every run uses the
default rule-less strategy, which never trades. Tests and deployments replace
the orchestrator through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Header, HTTPException, status

from strategy_backtester.core.config import Settings, get_settings
from strategy_backtester.core.engine import BacktestOrchestrator, MetricsCalculator
from strategy_backtester.core.enums import UserRole
from strategy_backtester.infrastructure.auth import RolePermissionChecker
from strategy_backtester.infrastructure.data import SyntheticMarketDataProvider
from strategy_backtester.infrastructure.storage import (
    InMemoryConfigProvider,
    InMemoryRunRepository,
)


def build_config_provider(settings: Settings) -> InMemoryConfigProvider:
    """Config store seeded from the configured strategy directory, if any."""
    if settings.strategy_config_dir is None:
        return InMemoryConfigProvider()
    return InMemoryConfigProvider.from_directory(settings.strategy_config_dir)


@lru_cache
def get_orchestrator() -> BacktestOrchestrator:
    """Get the process-wide orchestrator."""
    settings = get_settings()
    return BacktestOrchestrator(
        config_provider=build_config_provider(settings),
        market_data_provider=SyntheticMarketDataProvider(seed=settings.synthetic_seed),
        permission_checker=RolePermissionChecker(),
        repository=InMemoryRunRepository(),
        metrics_calculator=MetricsCalculator(
            risk_free_rate=settings.risk_free_rate,
            trading_days=settings.trading_days_per_year,
        ),
    )


def get_user_role(x_user_role: str = Header(default=UserRole.RESEARCHER.value)) -> UserRole:
    """Caller role from the ``X-User-Role`` header."""
    try:
        return UserRole.from_string(x_user_role)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
