"""
Unit tests for performance metrics calculation.
"""

from datetime import UTC, date, datetime, timedelta

import pytest

from strategy_backtester.core.engine.metrics import MetricsCalculator
from strategy_backtester.core.models import EquityPoint, SimulatedTrade

START = datetime(2024, 1, 1, tzinfo=UTC)


def closed_trade(sequence: int, exit_price: float, days: int) -> SimulatedTrade:
    trade = SimulatedTrade(
        sequence_number=sequence,
        entry_time=START,
        entry_price=100.0,
        quantity=10.0,
        entry_reason="Entry: rules satisfied",
        entry_commission=0.0,
        position_size_pct=25.0,
    )
    trade.close(START + timedelta(days=days), exit_price, 0.0, "Exit: rules satisfied")
    return trade


def curve(values: list[float]) -> list[EquityPoint]:
    return [EquityPoint(START + timedelta(days=i), value) for i, value in enumerate(values)]


class TestMetricsCalculator:
    """Test suite for MetricsCalculator."""

    @pytest.fixture
    def calculator(self) -> MetricsCalculator:
        return MetricsCalculator(risk_free_rate=0.05, trading_days=252)

    def test_should_calculate_trade_statistics(self, calculator: MetricsCalculator) -> None:
        """Test win rate, profit factor and average duration."""
        trades = [closed_trade(1, 110.0, 1), closed_trade(2, 95.0, 2)]

        metrics = calculator.calculate_trade_metrics(trades)

        assert metrics.total_trades == 2
        assert metrics.winning_trades == 1
        assert metrics.losing_trades == 1
        assert metrics.win_rate == pytest.approx(0.5)
        assert metrics.profit_factor == pytest.approx(2.0)
        assert metrics.avg_trade_duration == 2160

    def test_should_ignore_open_trades(self, calculator: MetricsCalculator) -> None:
        """Test only closed trades are counted."""
        open_trade = SimulatedTrade(
            sequence_number=2,
            entry_time=START,
            entry_price=100.0,
            quantity=1.0,
            entry_reason="Entry: rules satisfied",
            entry_commission=0.1,
            position_size_pct=25.0,
        )

        metrics = calculator.calculate_trade_metrics([closed_trade(1, 110.0, 1), open_trade])

        assert metrics.total_trades == 1
        assert metrics.win_rate == 1.0
        assert metrics.profit_factor is None

    def test_should_leave_trade_ratios_undefined_without_trades(
        self, calculator: MetricsCalculator
    ) -> None:
        """Test zero trades give counts of zero and no ratios."""
        metrics = calculator.calculate_trade_metrics([])

        assert metrics.total_trades == 0
        assert metrics.win_rate is None
        assert metrics.profit_factor is None
        assert metrics.avg_trade_duration is None

    def test_should_skip_returns_after_non_positive_values(
        self, calculator: MetricsCalculator
    ) -> None:
        """Test returns only use points with a positive predecessor."""
        returns = calculator.calculate_returns([0.0, 100.0, 110.0, 99.0])

        assert returns.tolist() == pytest.approx([0.1, -0.1])

    def test_should_calculate_risk_ratios(self, calculator: MetricsCalculator) -> None:
        """Test volatility, Sharpe and Sortino on [100, 110, 99]."""
        metrics = calculator.calculate_return_metrics([100.0, 110.0, 99.0])

        daily_rf = 0.05 / 252
        assert metrics.volatility == pytest.approx(0.1)
        assert metrics.sharpe_ratio == pytest.approx((0.0 - daily_rf) / 0.1)
        assert metrics.sortino_ratio == pytest.approx((0.0 - daily_rf) / 0.1)

    def test_should_use_root_mean_square_of_losses_for_sortino(
        self, calculator: MetricsCalculator
    ) -> None:
        """Test downside deviation over negative returns only."""
        # Returns: +0.1, -0.1, -0.2 (approximately)
        equity = [100.0, 110.0, 99.0, 79.2]

        metrics = calculator.calculate_return_metrics(equity)

        returns = [0.1, -0.1, -0.2]
        mean = sum(returns) / 3
        downside = ((0.01 + 0.04) / 2) ** 0.5
        assert metrics.sortino_ratio == pytest.approx((mean - 0.05 / 252) / downside)

    def test_should_leave_ratios_undefined_for_single_return(
        self, calculator: MetricsCalculator
    ) -> None:
        """Test at least two returns are required."""
        metrics = calculator.calculate_return_metrics([100.0, 110.0])

        assert metrics.volatility is None
        assert metrics.sharpe_ratio is None
        assert metrics.sortino_ratio is None

    def test_should_leave_sharpe_undefined_for_flat_returns(
        self, calculator: MetricsCalculator
    ) -> None:
        """Test zero volatility and no losses give no Sharpe or Sortino."""
        metrics = calculator.calculate_return_metrics([100.0, 200.0, 400.0])

        assert metrics.volatility == 0.0
        assert metrics.sharpe_ratio is None
        assert metrics.sortino_ratio is None

    def test_should_calculate_max_drawdown(self, calculator: MetricsCalculator) -> None:
        """Test [100, 120, 90, 130] has a 25% maximum drawdown."""
        metrics = calculator.calculate_drawdown_metrics([100.0, 120.0, 90.0, 130.0])

        assert metrics.max_drawdown == pytest.approx(0.25)
        assert metrics.max_drawdown_duration == 1

    def test_should_measure_drawdown_duration_below_peak(
        self, calculator: MetricsCalculator
    ) -> None:
        """Test duration counts points strictly below the peak and resets at it."""
        metrics = calculator.calculate_drawdown_metrics([100.0, 90.0, 80.0, 85.0, 100.0, 95.0])

        assert metrics.max_drawdown == pytest.approx(0.2)
        assert metrics.max_drawdown_duration == 2

    def test_should_leave_drawdown_undefined_for_short_curve(
        self, calculator: MetricsCalculator
    ) -> None:
        """Test fewer than two points give no drawdown metrics."""
        metrics = calculator.calculate_drawdown_metrics([100.0])

        assert metrics.max_drawdown is None
        assert metrics.max_drawdown_duration is None

    def test_should_calculate_cagr(self, calculator: MetricsCalculator) -> None:
        """Test CAGR over a 365-day window."""
        cagr = calculator.calculate_cagr(10000.0, 11000.0, date(2023, 1, 1), date(2024, 1, 1))

        assert cagr == pytest.approx(0.1)

    def test_should_leave_cagr_undefined(self, calculator: MetricsCalculator) -> None:
        """Test empty windows and wiped-out accounts."""
        assert calculator.calculate_cagr(10000.0, 11000.0, date(2024, 1, 1), date(2024, 1, 1)) is None
        assert calculator.calculate_cagr(10000.0, 0.0, date(2023, 1, 1), date(2024, 1, 1)) is None

    def test_should_calculate_all_metrics(self, calculator: MetricsCalculator) -> None:
        """Test the combined calculation."""
        trades = [closed_trade(1, 110.0, 1), closed_trade(2, 95.0, 2)]

        metrics = calculator.calculate(
            trades,
            curve([10000.0, 10100.0, 10050.0, 10050.0]),
            initial_capital=10000.0,
            final_capital=10050.0,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 4),
        )

        assert metrics.total_return == pytest.approx(0.005)
        assert metrics.total_trades == 2
        assert metrics.max_drawdown == pytest.approx(50.0 / 10100.0)
        assert metrics.volatility is not None
        assert metrics.cagr is not None
        assert set(metrics.to_dict()) >= {"sharpe_ratio", "sortino_ratio", "cagr", "win_rate"}
