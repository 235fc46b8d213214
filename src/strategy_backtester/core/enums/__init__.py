"""
Core enumerations for the backtesting engine.

This module provides centralized enumerations for domain concepts
like timeframes, run lifecycle, rule vocabulary and user roles.
"""

from .rules import ComparisonOperator, ExitSignal, IndicatorKind, LogicOperator
from .run_status import PositionState, RunStatus
from .timeframes import Timeframe
from .user_roles import UserRole

__all__ = [
    "Timeframe",
    "RunStatus",
    "PositionState",
    "LogicOperator",
    "ComparisonOperator",
    "IndicatorKind",
    "ExitSignal",
    "UserRole",
]
