"""
Custom exception hierarchy for the backtesting engine.

This module defines domain-specific exceptions for better error handling.
"""


class BacktestException(Exception):
    """Base exception for all backtesting-related errors."""

    pass


class ValidationError(BacktestException):
    """Raised when input validation fails."""

    pass


class PermissionDeniedError(ValidationError):
    """Raised when a role is not allowed to run backtests."""

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"Insufficient permissions to run backtests (role: {role})")


class DataError(BacktestException):
    """Raised when data access or processing fails."""

    pass


class DataUnavailableError(DataError):
    """Raised when no price bars exist for the requested window."""

    def __init__(self, symbol: str, timeframe: str, start: object, end: object):
        self.symbol = symbol
        self.timeframe = timeframe
        self.start = start
        self.end = end
        super().__init__(
            f"No market data available for {symbol} {timeframe} between {start} and {end}"
        )


class CalculationError(BacktestException):
    """Raised when mathematical calculations fail."""

    pass


class ConfigurationError(BacktestException):
    """Raised when configuration is invalid."""

    pass


class ConfigParseError(ConfigurationError):
    """Raised when strategy configuration text cannot be parsed.

    The engine catches this and substitutes defaults; it never reaches callers.
    """

    pass


class RunNotFoundError(BacktestException):
    """Raised when a backtest run id is unknown."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Backtest run not found: {run_id}")


class InvalidStatusTransitionError(BacktestException):
    """Raised when a run is moved to a status its current status forbids."""

    def __init__(self, run_id: str, current: str, target: str):
        self.run_id = run_id
        self.current = current
        self.target = target
        super().__init__(f"Run {run_id} cannot move from {current} to {target}")
