"""
Domain models for the backtesting engine.
"""

from .backtest import (
    BacktestRequest,
    BacktestRun,
    DrawdownPoint,
    EquityPoint,
    PerformanceMetrics,
    RunFilter,
    SimulationResult,
)
from .indicators import IndicatorSnapshot, IndicatorSpec
from .price_bar import PriceBar
from .strategy import Comparison, InvalidRule, Rule, RuleGroup, StrategyConfig
from .trade import SimulatedTrade

__all__ = [
    "PriceBar",
    "IndicatorSpec",
    "IndicatorSnapshot",
    "Comparison",
    "InvalidRule",
    "RuleGroup",
    "Rule",
    "StrategyConfig",
    "SimulatedTrade",
    "EquityPoint",
    "DrawdownPoint",
    "PerformanceMetrics",
    "SimulationResult",
    "BacktestRequest",
    "BacktestRun",
    "RunFilter",
]
