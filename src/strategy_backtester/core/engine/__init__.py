"""
Backtest engine.

Indicator engine, rule evaluation, strategy config parsing, trade simulation,
performance metrics and run orchestration.
"""

from .config_parser import StrategyConfigParser, default_strategy_config
from .indicators import IndicatorEngine
from .metrics import MetricsCalculator
from .orchestrator import BacktestOrchestrator
from .rules import RuleEvaluator
from .simulator import TradeSimulator

__all__ = [
    "IndicatorEngine",
    "RuleEvaluator",
    "StrategyConfigParser",
    "default_strategy_config",
    "TradeSimulator",
    "MetricsCalculator",
    "BacktestOrchestrator",
]
