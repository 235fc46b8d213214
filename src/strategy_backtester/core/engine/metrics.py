"""
Performance metrics calculation.

This module reduces a finished trade ledger and sampled equity curve to
summary statistics: trade statistics, return and risk ratios, drawdown and
CAGR. Returns are simple per-point returns of the sampled equity curve and
volatility is not annualized.
"""

import math
from collections.abc import Sequence
from datetime import date

import pandas as pd
from loguru import logger

from strategy_backtester.core.constants import (
    ANNUAL_RISK_FREE_RATE,
    DAYS_PER_YEAR,
    TRADING_DAYS_PER_YEAR,
)
from strategy_backtester.core.models import EquityPoint, PerformanceMetrics, SimulatedTrade


class MetricsCalculator:
    """Computes backtest performance statistics."""

    def __init__(
        self,
        risk_free_rate: float = ANNUAL_RISK_FREE_RATE,
        trading_days: int = TRADING_DAYS_PER_YEAR,
    ) -> None:
        self.risk_free_rate = risk_free_rate
        self.trading_days = trading_days

    @property
    def daily_risk_free_rate(self) -> float:
        """Per-period risk-free rate subtracted in Sharpe and Sortino."""
        return self.risk_free_rate / self.trading_days

    def calculate(
        self,
        trades: Sequence[SimulatedTrade],
        equity_curve: Sequence[EquityPoint],
        initial_capital: float,
        final_capital: float,
        start_date: date,
        end_date: date,
    ) -> PerformanceMetrics:
        """
        Calculate all metrics for a finished run.

        Args:
            trades: Trade ledger (open trades are ignored)
            equity_curve: Sampled equity curve
            initial_capital: Starting capital
            final_capital: Realized capital at the end of the run
            start_date: First day of the backtest window
            end_date: Last day of the backtest window

        Returns:
            PerformanceMetrics with undefined values left as None
        """
        metrics = PerformanceMetrics()
        if initial_capital > 0:
            metrics.total_return = (final_capital - initial_capital) / initial_capital

        self.calculate_trade_metrics(trades, metrics)

        equity = [point.value for point in equity_curve]
        self.calculate_return_metrics(equity, metrics)
        self.calculate_drawdown_metrics(equity, metrics)
        metrics.cagr = self.calculate_cagr(initial_capital, final_capital, start_date, end_date)

        logger.info(
            f"Metrics: trades={metrics.total_trades}, win_rate={metrics.win_rate}, "
            f"sharpe={metrics.sharpe_ratio}, max_drawdown={metrics.max_drawdown}"
        )
        return metrics

    def calculate_trade_metrics(
        self, trades: Sequence[SimulatedTrade], metrics: PerformanceMetrics | None = None
    ) -> PerformanceMetrics:
        """Trade counts, win rate, profit factor and average duration of closed trades."""
        metrics = metrics or PerformanceMetrics()
        closed = [trade for trade in trades if not trade.is_open and trade.net_pnl is not None]

        wins = [trade.net_pnl for trade in closed if trade.net_pnl > 0]
        losses = [abs(trade.net_pnl) for trade in closed if trade.net_pnl < 0]

        metrics.total_trades = len(closed)
        metrics.winning_trades = len(wins)
        metrics.losing_trades = len(losses)

        if not closed:
            return metrics

        metrics.win_rate = len(wins) / len(closed)

        total_losses = sum(losses)
        if total_losses > 0:
            metrics.profit_factor = sum(wins) / total_losses

        durations = [t.duration_minutes for t in closed if t.duration_minutes is not None]
        if durations:
            metrics.avg_trade_duration = int(sum(durations) / len(durations))

        return metrics

    def calculate_returns(self, equity: Sequence[float]) -> pd.Series:
        """Simple returns between consecutive curve points with a positive predecessor."""
        values = pd.Series(equity, dtype=float)
        previous = values.shift(1)
        returns = (values - previous) / previous
        return returns[previous > 0].reset_index(drop=True)

    def calculate_return_metrics(
        self, equity: Sequence[float], metrics: PerformanceMetrics | None = None
    ) -> PerformanceMetrics:
        """
        Volatility, Sharpe and Sortino from per-point simple returns.

        Volatility is the population standard deviation. The Sortino denominator
        is the root mean square of the negative returns.
        """
        metrics = metrics or PerformanceMetrics()
        returns = self.calculate_returns(equity)
        if len(returns) <= 1:
            return metrics

        mean_return = float(returns.mean())
        volatility = float(returns.std(ddof=0))
        metrics.volatility = volatility

        excess_return = mean_return - self.daily_risk_free_rate
        if volatility > 0:
            metrics.sharpe_ratio = excess_return / volatility

        negative = returns[returns < 0]
        if not negative.empty:
            downside_deviation = math.sqrt(float((negative**2).mean()))
            if downside_deviation > 0:
                metrics.sortino_ratio = excess_return / downside_deviation

        return metrics

    def calculate_drawdown_metrics(
        self, equity: Sequence[float], metrics: PerformanceMetrics | None = None
    ) -> PerformanceMetrics:
        """
        Maximum drawdown and its duration.

        Duration counts consecutive points strictly below the running peak; the
        duration reported is the one at the point of maximum drawdown.
        """
        metrics = metrics or PerformanceMetrics()
        if len(equity) < 2:
            return metrics

        peak = equity[0]
        max_drawdown = 0.0
        max_duration = 0
        duration = 0

        for value in equity:
            if value > peak:
                peak = value
                duration = 0
            elif value < peak:
                duration += 1
                drawdown = (peak - value) / peak if peak > 0 else 0.0
                if drawdown > max_drawdown:
                    max_drawdown = drawdown
                    max_duration = duration
            else:
                duration = 0

        metrics.max_drawdown = max_drawdown
        metrics.max_drawdown_duration = max_duration
        return metrics

    def calculate_cagr(
        self, initial_capital: float, final_capital: float, start_date: date, end_date: date
    ) -> float | None:
        """Compound annual growth rate over the calendar window; None if undefined."""
        days = (end_date - start_date).days
        if days <= 0 or initial_capital <= 0:
            return None
        ratio = final_capital / initial_capital
        if ratio <= 0:
            return None
        return ratio ** (DAYS_PER_YEAR / days) - 1
