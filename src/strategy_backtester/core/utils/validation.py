"""
Validation utilities for core domain models.

Provides consistent validation across the application.
"""

from datetime import date, datetime

from strategy_backtester.core.exceptions.backtest import ValidationError


def validate_positive(value: float, param_name: str) -> float:
    """Validate that a numeric value is positive.

    Args:
        value: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The validated value

    Raises:
        ValidationError: If value is not positive
    """
    if value <= 0:
        raise ValidationError(f"{param_name} must be positive, got {value}")
    return value


def validate_non_negative(value: float, param_name: str) -> float:
    """Validate that a numeric value is zero or positive."""
    if value < 0:
        raise ValidationError(f"{param_name} must be non-negative, got {value}")
    return value


def validate_rate(value: float, param_name: str = "rate") -> float:
    """Validate that a fractional cost rate lies in [0, 1).

    Raises:
        ValidationError: If rate is negative or 100% and above
    """
    if value < 0 or value >= 1:
        raise ValidationError(f"{param_name} must be in [0, 1), got {value}")
    return value


def validate_symbol(symbol: str, param_name: str = "symbol") -> str:
    """Validate and normalize a ticker symbol to upper case.

    Raises:
        ValidationError: If symbol is empty or not a string
    """
    if not isinstance(symbol, str) or not symbol.strip():
        raise ValidationError(f"{param_name} must be a non-empty string, got {symbol!r}")
    return symbol.strip().upper()


def validate_date_range(start: date | datetime, end: date | datetime) -> None:
    """Validate that ``end`` is not before ``start``.

    Raises:
        ValidationError: If end precedes start
    """
    if end < start:
        raise ValidationError(f"end_date {end} must not be before start_date {start}")
