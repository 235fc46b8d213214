"""
Bar-by-bar trade simulator.

Drives the indicator engine and rule evaluator over a time-ordered bar
sequence, manages a single synthetic long position with slippage and
commission, and records the trade ledger plus sampled equity and drawdown
curves. The simulation is deterministic: it contains no randomness.
"""

from collections.abc import Sequence

from loguru import logger

from strategy_backtester.core.engine.indicators import IndicatorEngine
from strategy_backtester.core.engine.rules import RuleEvaluator
from strategy_backtester.core.enums import ExitSignal, PositionState, Timeframe
from strategy_backtester.core.exceptions.backtest import ValidationError
from strategy_backtester.core.models import (
    DrawdownPoint,
    EquityPoint,
    IndicatorSnapshot,
    PriceBar,
    SimulatedTrade,
    SimulationResult,
    StrategyConfig,
)
from strategy_backtester.core.protocols import ICancellationToken, ProgressCallback
from strategy_backtester.core.types.financial import (
    ZERO,
    apply_slippage,
    calculate_commission,
    percentage_of,
    round_price,
)
from strategy_backtester.core.utils.validation import validate_positive, validate_rate


def format_entry_reason(snapshot: IndicatorSnapshot) -> str:
    """Human-readable summary of the indicators at entry."""
    parts = []
    if snapshot.rsi is not None:
        parts.append(f"RSI={round_price(snapshot.rsi):.2f}")
    if snapshot.sma_50 is not None:
        parts.append(f"SMA50={round_price(snapshot.sma_50):.2f}")
    return "Entry: " + " ".join(parts) if parts else "Entry: rules satisfied"


def format_exit_reason(signal: ExitSignal, snapshot: IndicatorSnapshot) -> str:
    """Human-readable summary of why a position was closed."""
    if signal == ExitSignal.STOP_LOSS:
        return "Stop loss hit"
    if signal == ExitSignal.TAKE_PROFIT:
        return "Take profit hit"
    if snapshot.rsi is not None:
        return f"Exit: RSI={round_price(snapshot.rsi):.2f}"
    return "Exit: rules satisfied"


class TradeSimulator:
    """
    Single-position long-only backtest simulator.

    State machine per run: FLAT -> LONG on an entry signal, LONG -> FLAT on an
    exit signal; the run ends when the bars are exhausted. Capital is reduced
    by the entry commission immediately and credited with the net PnL on exit.
    """

    def __init__(
        self,
        commission_rate: float,
        slippage_rate: float,
        timeframe: Timeframe | str,
        rule_evaluator: RuleEvaluator | None = None,
    ) -> None:
        self.commission_rate = validate_rate(commission_rate, "commission_rate")
        self.slippage_rate = validate_rate(slippage_rate, "slippage_rate")
        self.timeframe = timeframe
        self.sample_rate = Timeframe.sample_rate_for(timeframe)
        self.rule_evaluator = rule_evaluator or RuleEvaluator()

    def run(
        self,
        bars: Sequence[PriceBar],
        config: StrategyConfig,
        initial_capital: float,
        progress_callback: ProgressCallback | None = None,
        cancellation_token: ICancellationToken | None = None,
    ) -> SimulationResult:
        """
        Simulate the strategy over the bars.

        Args:
            bars: Time-ordered, gap-free price bars
            config: Parsed strategy configuration
            initial_capital: Starting capital
            progress_callback: Called with the integer percent whenever it changes
            cancellation_token: Checked once per bar; stops the loop when set

        Returns:
            Trades, final capital and sampled curves. ``cancelled`` is set when
            the loop stopped early.
        """
        validate_positive(initial_capital, "initial_capital")

        engine = IndicatorEngine(config.indicators)
        capital = initial_capital
        peak_equity = initial_capital
        state = PositionState.FLAT
        trades: list[SimulatedTrade] = []
        open_trade: SimulatedTrade | None = None
        equity_curve: list[EquityPoint] = []
        drawdown_curve: list[DrawdownPoint] = []
        total_bars = len(bars)
        last_progress: int | None = None
        minimum_bars = config.minimum_bars
        bars_processed = 0
        cancelled = False
        previous_timestamp = None

        logger.info(
            f"Simulating {total_bars} bars: capital={initial_capital}, "
            f"warm-up={minimum_bars}, sample_rate={self.sample_rate}"
        )

        for index, bar in enumerate(bars):
            if cancellation_token is not None and cancellation_token.is_cancelled:
                logger.warning(f"Simulation cancelled at bar {index}/{total_bars}")
                cancelled = True
                break

            if previous_timestamp is not None and bar.timestamp <= previous_timestamp:
                raise ValidationError(
                    f"Bars must be strictly time-ordered: {bar.timestamp} follows "
                    f"{previous_timestamp}"
                )
            previous_timestamp = bar.timestamp

            progress = int(index / total_bars * 100)
            if progress_callback is not None and progress != last_progress:
                progress_callback(progress)
                last_progress = progress

            snapshot = engine.update(bar)
            close = bar.close

            if state == PositionState.LONG and open_trade is not None:
                signal = self.rule_evaluator.evaluate_exit(
                    config, snapshot, close, open_trade.entry_price
                )
                if signal.should_exit:
                    capital += self._close_position(open_trade, bar, signal, snapshot)
                    open_trade = None
                    state = PositionState.FLAT

            elif index >= minimum_bars and self.rule_evaluator.evaluate_entry(
                config, snapshot, close
            ):
                open_trade = self._open_position(
                    len(trades) + 1, bar, capital, config, snapshot
                )
                capital -= open_trade.entry_commission
                trades.append(open_trade)
                state = PositionState.LONG

            equity = capital
            if open_trade is not None:
                equity += open_trade.unrealized_pnl(close)

            peak_equity = max(peak_equity, equity)
            drawdown = max(ZERO, (peak_equity - equity) / peak_equity) if peak_equity > ZERO else ZERO

            if index % self.sample_rate == 0:
                equity_curve.append(EquityPoint(bar.timestamp, equity))
                drawdown_curve.append(DrawdownPoint(bar.timestamp, drawdown))

            bars_processed += 1

        logger.info(
            f"Simulation finished: {len(trades)} trades, final capital {capital:.2f}, "
            f"{len(equity_curve)} curve points"
        )

        return SimulationResult(
            initial_capital=initial_capital,
            final_capital=capital,
            trades=trades,
            equity_curve=equity_curve,
            drawdown_curve=drawdown_curve,
            bars_processed=bars_processed,
            cancelled=cancelled,
        )

    def _open_position(
        self,
        sequence_number: int,
        bar: PriceBar,
        capital: float,
        config: StrategyConfig,
        snapshot: IndicatorSnapshot,
    ) -> SimulatedTrade:
        notional = percentage_of(capital, config.position_size_pct)
        execution_price = apply_slippage(bar.close, self.slippage_rate, is_buy=True)
        quantity = notional / execution_price
        commission = calculate_commission(notional, self.commission_rate)

        trade = SimulatedTrade(
            sequence_number=sequence_number,
            entry_time=bar.timestamp,
            entry_price=execution_price,
            quantity=quantity,
            entry_reason=format_entry_reason(snapshot),
            entry_commission=commission,
            position_size_pct=config.position_size_pct,
            entry_indicators=snapshot.to_dict(),
        )
        logger.debug(
            f"Opened trade #{sequence_number} at {execution_price:.4f} "
            f"qty={quantity:.6f} commission={commission:.4f}"
        )
        return trade

    def _close_position(
        self,
        trade: SimulatedTrade,
        bar: PriceBar,
        signal: ExitSignal,
        snapshot: IndicatorSnapshot,
    ) -> float:
        execution_price = apply_slippage(bar.close, self.slippage_rate, is_buy=False)
        net_pnl = trade.close(
            exit_time=bar.timestamp,
            exit_price=execution_price,
            commission_rate=self.commission_rate,
            exit_reason=format_exit_reason(signal, snapshot),
            exit_indicators=snapshot.to_dict(),
        )
        logger.debug(
            f"Closed trade #{trade.sequence_number} at {execution_price:.4f} "
            f"({signal.value}) net_pnl={net_pnl:.4f}"
        )
        return net_pnl
