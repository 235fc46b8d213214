"""
Incremental Technical Indicator Engine.

This module keeps a bounded rolling window of closes and volumes and recomputes
RSI, SMA, EMA and MACD from that window on every bar. Implements the Strategy
Pattern: each indicator is a strategy object computing named values from the
window, and the engine orchestrates them into an ``IndicatorSnapshot``.

Every calculation is a pure function of the current window, so feeding the same
bar sequence into a fresh engine reproduces identical snapshots.
"""

from collections import deque
from collections.abc import Iterable, Sequence
from typing import Protocol

import numpy as np
from loguru import logger

from strategy_backtester.core.constants import (
    DEFAULT_RSI_PERIOD,
    INDICATOR_WINDOW_SIZE,
    MACD_FAST_PERIOD,
    MACD_SIGNAL_RATIO,
    MACD_SLOW_PERIOD,
    RSI_MAX,
    RSI_NEUTRAL,
)
from strategy_backtester.core.enums import IndicatorKind
from strategy_backtester.core.exceptions.backtest import CalculationError
from strategy_backtester.core.models import IndicatorSnapshot, IndicatorSpec, PriceBar


def calculate_rsi(closes: Sequence[float], period: int = DEFAULT_RSI_PERIOD) -> float:
    """
    Relative Strength Index with simple (non-exponential) averaging.

    Averages up-moves and down-moves over the most recent ``period`` deltas.

    Args:
        closes: Close prices, oldest first
        period: Number of deltas to average

    Returns:
        RSI in [0, 100]; 50 when fewer than ``period + 1`` closes are available,
        100 when the average loss is zero
    """
    if len(closes) < period + 1:
        return RSI_NEUTRAL

    deltas = np.diff(np.asarray(closes[-(period + 1) :], dtype=float))
    avg_gain = float(deltas[deltas > 0].sum()) / period
    avg_loss = float(-deltas[deltas < 0].sum()) / period

    if avg_loss == 0:
        return RSI_MAX

    rs = avg_gain / avg_loss
    return RSI_MAX - RSI_MAX / (1 + rs)


def calculate_sma(closes: Sequence[float], period: int) -> float:
    """
    Arithmetic mean of the last ``period`` closes.

    Returns the latest close when the window is shorter than ``period``.
    """
    if not closes:
        raise CalculationError("SMA requires at least one close")
    if len(closes) < period:
        return float(closes[-1])
    return float(np.mean(np.asarray(closes[-period:], dtype=float)))


def calculate_ema(closes: Sequence[float], period: int) -> float:
    """
    Exponential moving average over the whole window.

    Seeded with the SMA of the first ``period`` values, then smoothed with
    multiplier ``2 / (period + 1)`` over the remainder. Returns the latest close
    when the window is shorter than ``period``.
    """
    if not closes:
        raise CalculationError("EMA requires at least one close")
    if len(closes) < period:
        return float(closes[-1])

    multiplier = 2.0 / (period + 1)
    ema = calculate_sma(closes[:period], period)
    for close in closes[period:]:
        ema = close * multiplier + ema * (1 - multiplier)
    return ema


def calculate_macd(closes: Sequence[float]) -> tuple[float, float]:
    """
    MACD line and signal line.

    The signal line is a fixed ``0.9 x MACD`` ratio, not a 9-period EMA of the
    MACD history. Both values are 0 until the window holds 26 closes.

    Returns:
        Tuple of (macd, signal)
    """
    if len(closes) < MACD_SLOW_PERIOD:
        return 0.0, 0.0
    macd = calculate_ema(closes, MACD_FAST_PERIOD) - calculate_ema(closes, MACD_SLOW_PERIOD)
    return macd, macd * MACD_SIGNAL_RATIO


class IndicatorStrategy(Protocol):
    """Protocol for indicator calculation strategies."""

    warmup: int

    def calculate(self, closes: Sequence[float]) -> dict[str, float]:
        """Calculate named indicator values for the given window."""
        ...


class RSIStrategy:
    """Strategy for calculating RSI (Relative Strength Index)."""

    def __init__(self, period: int = DEFAULT_RSI_PERIOD, name: str = "RSI"):
        """Initialize RSI strategy with configurable period."""
        self.period = period
        self.name = name
        self.warmup = period

    def calculate(self, closes: Sequence[float]) -> dict[str, float]:
        return {self.name: calculate_rsi(closes, self.period)}


class SMAStrategy:
    """Strategy for calculating a simple moving average."""

    def __init__(self, period: int, name: str | None = None):
        self.period = period
        self.name = name or f"SMA_{period}"
        self.warmup = period

    def calculate(self, closes: Sequence[float]) -> dict[str, float]:
        return {self.name: calculate_sma(closes, self.period)}


class EMAStrategy:
    """Strategy for calculating an exponential moving average."""

    def __init__(self, period: int, name: str | None = None):
        self.period = period
        self.name = name or f"EMA_{period}"
        self.warmup = period

    def calculate(self, closes: Sequence[float]) -> dict[str, float]:
        return {self.name: calculate_ema(closes, self.period)}


class MACDStrategy:
    """Strategy for calculating the MACD line and its signal line."""

    warmup = MACD_SLOW_PERIOD

    def calculate(self, closes: Sequence[float]) -> dict[str, float]:
        macd, signal = calculate_macd(closes)
        return {"MACD": macd, "MACD_SIGNAL": signal}


def _default_strategies() -> dict[str, IndicatorStrategy]:
    """Indicators every snapshot carries."""
    return {
        "RSI": RSIStrategy(),
        "SMA_20": SMAStrategy(20),
        "SMA_50": SMAStrategy(50),
        "EMA_20": EMAStrategy(20),
        "MACD": MACDStrategy(),
    }


def _strategy_for_spec(spec: IndicatorSpec) -> IndicatorStrategy | None:
    """Build a strategy for a configured indicator; None if MACD (fixed periods)."""
    if spec.kind == IndicatorKind.RSI:
        return RSIStrategy(spec.period, name=spec.name)
    if spec.kind == IndicatorKind.SMA:
        return SMAStrategy(spec.period, name=spec.name)
    if spec.kind == IndicatorKind.EMA:
        return EMAStrategy(spec.period, name=spec.name)
    return None


class IndicatorEngine:
    """
    Rolling-window indicator engine using Strategy Pattern.

    ``update`` appends a bar's close and volume to a window capped at
    ``window_size`` entries (oldest dropped first) and recomputes every
    indicator whose warm-up the window satisfies.
    """

    _BUILTIN_FIELDS = {
        "RSI": "rsi",
        "SMA_20": "sma_20",
        "SMA_50": "sma_50",
        "EMA_20": "ema_20",
        "MACD": "macd",
        "MACD_SIGNAL": "macd_signal",
    }

    def __init__(
        self,
        indicators: Iterable[IndicatorSpec] = (),
        window_size: int = INDICATOR_WINDOW_SIZE,
    ) -> None:
        if window_size <= 0:
            raise ValueError(f"Window size must be positive, got {window_size}")
        self.window_size = window_size
        self._closes: deque[float] = deque(maxlen=window_size)
        self._volumes: deque[float] = deque(maxlen=window_size)
        self._strategies = _default_strategies()
        self._snapshot = IndicatorSnapshot()

        for spec in indicators:
            if spec.name in self._BUILTIN_FIELDS or spec.name in self._strategies:
                continue
            strategy = _strategy_for_spec(spec)
            if strategy is None:
                logger.debug(f"MACD uses fixed {MACD_FAST_PERIOD}/{MACD_SLOW_PERIOD} periods")
                continue
            self._strategies[spec.name] = strategy

    @property
    def closes(self) -> list[float]:
        """Copy of the closes currently in the window, oldest first."""
        return list(self._closes)

    @property
    def volumes(self) -> list[float]:
        """Copy of the volumes currently in the window, oldest first."""
        return list(self._volumes)

    @property
    def snapshot(self) -> IndicatorSnapshot:
        """Indicator values after the most recent update."""
        return self._snapshot

    def reset(self) -> None:
        """Empty the window and clear the snapshot."""
        self._closes.clear()
        self._volumes.clear()
        self._snapshot = IndicatorSnapshot()

    def update(self, bar: PriceBar) -> IndicatorSnapshot:
        """
        Append a bar to the window and recompute indicators.

        Args:
            bar: Next price bar in time order

        Returns:
            The new indicator snapshot

        Raises:
            CalculationError: If an indicator cannot be computed
        """
        self._closes.append(bar.close)
        self._volumes.append(bar.volume)
        self._snapshot = self._compute(list(self._closes))
        return self._snapshot

    def _compute(self, closes: list[float]) -> IndicatorSnapshot:
        values: dict[str, float] = {}
        for name, strategy in self._strategies.items():
            if len(closes) < strategy.warmup:
                continue
            try:
                values.update(strategy.calculate(closes))
            except CalculationError:
                raise
            except Exception as e:
                logger.error(f"Unexpected error calculating {name} indicator: {e}")
                raise CalculationError(f"Indicator calculation failed for {name}") from e

        fields = {
            field_name: values.pop(name, None)
            for name, field_name in self._BUILTIN_FIELDS.items()
        }
        return IndicatorSnapshot(**fields, extras=values)
