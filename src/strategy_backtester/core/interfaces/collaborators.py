"""
Collaborator interfaces consumed by the backtest engine.

The engine calls out to these; it never implements data sourcing,
persistence or authorization itself.
"""

from abc import ABC, abstractmethod
from datetime import date

from strategy_backtester.core.enums import Timeframe, UserRole
from strategy_backtester.core.models import BacktestRun, PriceBar, RunFilter


class IConfigProvider(ABC):
    """Abstract interface for loading raw strategy configuration text."""

    @abstractmethod
    async def get_strategy_config(self, strategy_id: str) -> str | None:
        """Return the raw config text of a strategy, or None if it has none."""
        pass


class IMarketDataProvider(ABC):
    """Abstract interface for loading price bars."""

    @abstractmethod
    async def get_price_bars(
        self, symbol: str, timeframe: Timeframe, start_date: date, end_date: date
    ) -> list[PriceBar]:
        """Load time-ordered bars for the inclusive date window."""
        pass


class IPermissionChecker(ABC):
    """Abstract interface for role-based backtest permissions."""

    @abstractmethod
    def can_run_backtest(self, role: UserRole) -> bool:
        """Check whether a role may submit backtests."""
        pass


class IRunRepository(ABC):
    """Abstract interface for durable backtest run records."""

    @abstractmethod
    def save(self, run: BacktestRun) -> None:
        """Insert or replace a run record."""
        pass

    @abstractmethod
    def get(self, run_id: str) -> BacktestRun | None:
        """Fetch a run record by id."""
        pass

    @abstractmethod
    def find(self, run_filter: RunFilter | None = None) -> list[BacktestRun]:
        """List run records matching a filter, newest first."""
        pass

    @abstractmethod
    def delete(self, run_id: str) -> bool:
        """Delete a run record. Returns False if it did not exist."""
        pass
