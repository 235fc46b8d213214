"""
Price bar domain model.
Optimized for high-performance backtesting with float operations.
"""

from dataclasses import dataclass
from datetime import datetime

from strategy_backtester.core.exceptions.backtest import ValidationError


@dataclass(frozen=True, slots=True)
class PriceBar:
    """One OHLCV bar. Immutable once created."""

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    def __post_init__(self) -> None:
        """Validate bar data after initialization."""
        for name in ("open", "high", "low", "close"):
            value = getattr(self, name)
            if value <= 0:
                raise ValidationError(f"{name.capitalize()} price must be positive, got {value}")
        if self.volume < 0:
            raise ValidationError(f"Volume must be non-negative, got {self.volume}")

    def to_dict(self) -> dict:
        """Convert bar to dictionary."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }
