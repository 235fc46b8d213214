"""
Integration tests for the full backtest flow.

Runs the orchestrator end to end over a deterministic price frame served by
the DataFrame provider: config parsing, indicator warm-up, rule evaluation,
trade simulation, metrics and run persistence.
"""

import json
from datetime import date

import numpy as np
import pandas as pd
import pytest

from strategy_backtester.core.engine import BacktestOrchestrator
from strategy_backtester.core.enums import RunStatus, Timeframe
from strategy_backtester.core.models import BacktestRequest
from strategy_backtester.infrastructure.auth import RolePermissionChecker
from strategy_backtester.infrastructure.data import DataFrameMarketDataProvider
from strategy_backtester.infrastructure.storage import (
    InMemoryConfigProvider,
    InMemoryRunRepository,
)

MEAN_REVERSION = json.dumps(
    {
        "position": {"capital_pct": 40},
        "indicators": [{"type": "RSI", "period": 14}, {"type": "SMA", "period": 20}],
        "entry": {
            "logic": "AND",
            "rules": [
                {"indicator": "RSI", "operator": "<", "value": 35},
                {"indicator": "PRICE", "operator": "<", "compare_to": "SMA_20"},
            ],
        },
        "exit": {
            "logic": "OR",
            "rules": [
                {"indicator": "RSI", "operator": ">", "value": 65},
                {"indicator": "PRICE", "operator": ">", "compare_to": "SMA_20"},
            ],
        },
        "risk": {"stop_loss_pct": 10, "take_profit_pct": 15},
    }
)


def oscillating_frame(days: int = 240) -> pd.DataFrame:
    """Daily bars following a slow sine wave on a gentle uptrend."""
    index = np.arange(days)
    closes = 100.0 + 0.05 * index + 8.0 * np.sin(2 * np.pi * index / 40)
    return pd.DataFrame(
        {
            "timestamp": pd.date_range("2023-01-01", periods=days, freq="D", tz="UTC"),
            "open": closes,
            "high": closes * 1.005,
            "low": closes * 0.995,
            "close": closes,
            "volume": np.full(days, 50_000.0),
        }
    )


@pytest.mark.integration
class TestBacktestFlow:
    """Integration tests for orchestrated backtests."""

    @pytest.fixture
    def market_data(self) -> DataFrameMarketDataProvider:
        provider = DataFrameMarketDataProvider()
        provider.add_frame("WAVE", Timeframe.D1, oscillating_frame())
        return provider

    @pytest.fixture
    def orchestrator(self, market_data: DataFrameMarketDataProvider) -> BacktestOrchestrator:
        return BacktestOrchestrator(
            config_provider=InMemoryConfigProvider({"mean-reversion": MEAN_REVERSION}),
            market_data_provider=market_data,
            permission_checker=RolePermissionChecker(),
            repository=InMemoryRunRepository(),
        )

    @staticmethod
    def request() -> BacktestRequest:
        return BacktestRequest(
            strategy_id="mean-reversion",
            symbol="wave",
            timeframe=Timeframe.D1,
            start_date=date(2023, 1, 1),
            end_date=date(2023, 8, 28),
            initial_capital=50_000.0,
            commission_rate=0.001,
            slippage_rate=0.0005,
        )

    @pytest.mark.asyncio
    async def test_should_trade_the_oscillation(self, orchestrator: BacktestOrchestrator) -> None:
        """Test the strategy completes with several round trips."""
        run = await orchestrator.wait(await orchestrator.submit(self.request()))

        assert run.status == RunStatus.COMPLETED
        assert len(run.equity_curve) == 240
        assert run.metrics.total_trades >= 2
        assert run.metrics.win_rate is not None
        assert run.metrics.winning_trades + run.metrics.losing_trades <= run.metrics.total_trades

    @pytest.mark.asyncio
    async def test_should_keep_ledger_invariants(self, orchestrator: BacktestOrchestrator) -> None:
        """Test sequencing, warm-up, non-overlap and capital accounting."""
        run = await orchestrator.wait(await orchestrator.submit(self.request()))
        trades = run.trades
        bar_times = [point.timestamp for point in run.equity_curve]

        assert [t.sequence_number for t in trades] == list(range(1, len(trades) + 1))
        assert all(t.entry_time >= bar_times[20] for t in trades)
        for previous, current in zip(trades, trades[1:], strict=False):
            assert previous.exit_time is not None
            assert previous.exit_time < current.entry_time
        for trade in trades:
            assert trade.position_size_pct == 40.0
            assert trade.entry_reason.startswith("Entry: RSI=")
            if not trade.is_open:
                assert trade.exit_reason.startswith("Exit: RSI=") or trade.exit_reason in {
                    "Stop loss hit",
                    "Take profit hit",
                }
                assert trade.net_pnl == pytest.approx(trade.gross_pnl - trade.exit_commission)

        closed_net = sum(t.net_pnl for t in trades if not t.is_open)
        entry_commissions = sum(t.entry_commission for t in trades)
        assert run.final_capital == pytest.approx(50_000.0 + closed_net - entry_commissions)

    @pytest.mark.asyncio
    async def test_should_keep_drawdown_curve_bounded(
        self, orchestrator: BacktestOrchestrator
    ) -> None:
        """Test drawdown stays in [0, 1) and matches the maximum drawdown metric scale."""
        run = await orchestrator.wait(await orchestrator.submit(self.request()))
        drawdowns = [point.value for point in run.drawdown_curve]

        assert all(0.0 <= value < 1.0 for value in drawdowns)
        assert run.metrics.max_drawdown is not None
        assert run.metrics.max_drawdown <= max(drawdowns) + 1e-12

    @pytest.mark.asyncio
    async def test_should_reproduce_results(self, orchestrator: BacktestOrchestrator) -> None:
        """Test identical requests produce identical results."""
        first = await orchestrator.wait(await orchestrator.submit(self.request()))
        second = await orchestrator.wait(await orchestrator.submit(self.request()))

        assert first.final_capital == second.final_capital
        assert first.metrics == second.metrics
        assert [t.to_dict() for t in first.trades] == [t.to_dict() for t in second.trades]
        assert first.equity_curve == second.equity_curve

    @pytest.mark.asyncio
    async def test_should_serve_only_requested_window(
        self, orchestrator: BacktestOrchestrator
    ) -> None:
        """Test a narrower window processes fewer bars."""
        request = self.request()
        request.end_date = date(2023, 1, 31)

        run = await orchestrator.wait(await orchestrator.submit(request))

        assert run.status == RunStatus.COMPLETED
        assert len(run.equity_curve) == 31
