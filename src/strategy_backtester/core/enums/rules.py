"""
Rule and indicator enumerations.

This module defines the vocabulary of strategy rule trees: boolean logic,
comparison operators, indicator kinds and exit signals.
"""

import operator
from collections.abc import Callable
from enum import StrEnum


class LogicOperator(StrEnum):
    """Boolean combinator for a group of rules."""

    AND = "AND"
    OR = "OR"

    @classmethod
    def from_string(cls, value: str) -> "LogicOperator":
        """
        Convert string to LogicOperator, case-insensitively.

        Raises:
            ValueError: If the value is not AND or OR
        """
        value_upper = str(value).strip().upper()
        for logic in cls:
            if logic.value == value_upper:
                return logic
        raise ValueError(f"Unsupported logic operator: {value}")


class ComparisonOperator(StrEnum):
    """Comparison applied between an indicator and its target."""

    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    EQ = "=="

    @classmethod
    def from_string(cls, value: str) -> "ComparisonOperator":
        """
        Convert string to ComparisonOperator.

        A single ``=`` is accepted as an alias of ``==``.

        Raises:
            ValueError: If the operator is not supported
        """
        symbol = str(value).strip()
        if symbol == "=":
            return cls.EQ
        for op in cls:
            if op.value == symbol:
                return op
        raise ValueError(f"Unsupported comparison operator: {value}")

    def apply(self, left: float, right: float) -> bool:
        """Compare ``left`` against ``right`` with this operator."""
        functions: dict[ComparisonOperator, Callable[[float, float], bool]] = {
            ComparisonOperator.GT: operator.gt,
            ComparisonOperator.LT: operator.lt,
            ComparisonOperator.GE: operator.ge,
            ComparisonOperator.LE: operator.le,
            ComparisonOperator.EQ: operator.eq,
        }
        return functions[self](left, right)


class IndicatorKind(StrEnum):
    """Indicator families the engine knows how to compute."""

    RSI = "RSI"
    SMA = "SMA"
    EMA = "EMA"
    MACD = "MACD"

    @classmethod
    def from_string(cls, value: str) -> "IndicatorKind":
        """
        Convert string to IndicatorKind, case-insensitively.

        Raises:
            ValueError: If the indicator kind is not supported
        """
        value_upper = str(value).strip().upper()
        for kind in cls:
            if kind.value == value_upper:
                return kind
        raise ValueError(f"Unsupported indicator kind: {value}")


class ExitSignal(StrEnum):
    """Which exit condition fired for an open position."""

    NONE = "none"
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    RULES = "rules"

    @property
    def should_exit(self) -> bool:
        """Check if the signal closes the position."""
        return self != ExitSignal.NONE
