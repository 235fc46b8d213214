"""
Simulated trade domain model.
Optimized for high-performance backtesting with float operations.
"""

from dataclasses import dataclass, field
from datetime import datetime

from strategy_backtester.core.exceptions.backtest import ValidationError
from strategy_backtester.core.types.financial import (
    ZERO,
    calculate_commission,
    calculate_long_pnl,
    calculate_notional_value,
)


@dataclass
class SimulatedTrade:
    """A long round trip opened on entry and closed exactly once on exit."""

    sequence_number: int
    entry_time: datetime
    entry_price: float
    quantity: float
    entry_reason: str
    entry_commission: float
    position_size_pct: float
    entry_indicators: dict[str, float] = field(default_factory=dict)
    exit_time: datetime | None = None
    exit_price: float | None = None
    exit_reason: str | None = None
    exit_commission: float | None = None
    exit_indicators: dict[str, float] | None = None
    gross_pnl: float | None = None
    net_pnl: float | None = None
    return_pct: float | None = None
    duration_minutes: int | None = None

    def __post_init__(self) -> None:
        """Validate trade data after initialization."""
        if self.sequence_number <= 0:
            raise ValidationError(f"Sequence number must be positive, got {self.sequence_number}")
        if self.quantity <= ZERO:
            raise ValidationError(f"Quantity must be positive, got {self.quantity}")
        if self.entry_price <= ZERO:
            raise ValidationError(f"Entry price must be positive, got {self.entry_price}")
        if self.entry_commission < ZERO:
            raise ValidationError(f"Commission must be non-negative, got {self.entry_commission}")

    @property
    def is_open(self) -> bool:
        """Check if the trade has not been closed yet."""
        return self.exit_time is None

    @property
    def cost_basis(self) -> float:
        """Notional value paid at entry."""
        return calculate_notional_value(self.quantity, self.entry_price)

    @property
    def commission_paid(self) -> float:
        """Total commission of the round trip so far."""
        return self.entry_commission + (self.exit_commission or ZERO)

    def unrealized_pnl(self, mark_price: float) -> float:
        """Mark-to-market PnL of the open position."""
        return calculate_long_pnl(self.entry_price, mark_price, self.quantity)

    def close(
        self,
        exit_time: datetime,
        exit_price: float,
        commission_rate: float,
        exit_reason: str,
        exit_indicators: dict[str, float] | None = None,
    ) -> float:
        """
        Close the trade and settle its PnL.

        Args:
            exit_time: Timestamp of the exit bar
            exit_price: Execution price after slippage
            commission_rate: Fractional commission charged on the exit notional
            exit_reason: Human-readable reason for the exit
            exit_indicators: Indicator values at exit

        Returns:
            Net PnL credited to capital

        Raises:
            ValidationError: If the trade is already closed or the exit is invalid
        """
        if not self.is_open:
            raise ValidationError(f"Trade #{self.sequence_number} is already closed")
        if exit_price <= ZERO:
            raise ValidationError(f"Exit price must be positive, got {exit_price}")
        if exit_time < self.entry_time:
            raise ValidationError(
                f"Exit time {exit_time} precedes entry time {self.entry_time}"
            )

        gross_pnl = calculate_long_pnl(self.entry_price, exit_price, self.quantity)
        commission = calculate_commission(
            calculate_notional_value(self.quantity, exit_price), commission_rate
        )
        net_pnl = gross_pnl - commission

        self.exit_time = exit_time
        self.exit_price = exit_price
        self.exit_reason = exit_reason
        self.exit_indicators = exit_indicators or {}
        self.exit_commission = commission
        self.gross_pnl = gross_pnl
        self.net_pnl = net_pnl
        cost_basis = self.cost_basis
        self.return_pct = net_pnl / cost_basis if cost_basis > ZERO else None
        self.duration_minutes = int((exit_time - self.entry_time).total_seconds() // 60)
        return net_pnl

    def to_dict(self) -> dict:
        """Convert trade to dictionary."""
        return {
            "sequence_number": self.sequence_number,
            "entry_time": self.entry_time.isoformat(),
            "entry_price": self.entry_price,
            "quantity": self.quantity,
            "entry_reason": self.entry_reason,
            "position_size_pct": self.position_size_pct,
            "entry_indicators": self.entry_indicators,
            "exit_time": self.exit_time.isoformat() if self.exit_time else None,
            "exit_price": self.exit_price,
            "exit_reason": self.exit_reason,
            "exit_indicators": self.exit_indicators,
            "commission_paid": self.commission_paid,
            "gross_pnl": self.gross_pnl,
            "net_pnl": self.net_pnl,
            "return_pct": self.return_pct,
            "duration_minutes": self.duration_minutes,
        }
