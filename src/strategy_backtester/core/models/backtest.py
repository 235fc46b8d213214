"""
Backtest request, run record and results models.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

from strategy_backtester.core.constants import (
    DEFAULT_COMMISSION_RATE,
    DEFAULT_INITIAL_CAPITAL,
    DEFAULT_SLIPPAGE_RATE,
    MAX_INITIAL_CAPITAL,
    MIN_INITIAL_CAPITAL,
)
from strategy_backtester.core.enums import RunStatus, Timeframe, UserRole
from strategy_backtester.core.exceptions.backtest import ValidationError
from strategy_backtester.core.utils.validation import (
    validate_date_range,
    validate_positive,
    validate_rate,
    validate_symbol,
)

from .trade import SimulatedTrade


@dataclass(frozen=True, slots=True)
class EquityPoint:
    """Account equity sampled at a bar."""

    timestamp: datetime
    value: float

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp.isoformat(), "equity": self.value}


@dataclass(frozen=True, slots=True)
class DrawdownPoint:
    """Fractional drawdown from the running equity peak, sampled at a bar."""

    timestamp: datetime
    value: float

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp.isoformat(), "drawdown": self.value}


@dataclass
class PerformanceMetrics:
    """Summary statistics of a finished backtest. ``None`` means undefined."""

    total_return: float | None = None
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float | None = None
    profit_factor: float | None = None
    avg_trade_duration: int | None = None
    volatility: float | None = None
    sharpe_ratio: float | None = None
    sortino_ratio: float | None = None
    max_drawdown: float | None = None
    max_drawdown_duration: int | None = None
    cagr: float | None = None

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        return {
            "total_return": self.total_return,
            "total_trades": self.total_trades,
            "winning_trades": self.winning_trades,
            "losing_trades": self.losing_trades,
            "win_rate": self.win_rate,
            "profit_factor": self.profit_factor,
            "avg_trade_duration": self.avg_trade_duration,
            "volatility": self.volatility,
            "sharpe_ratio": self.sharpe_ratio,
            "sortino_ratio": self.sortino_ratio,
            "max_drawdown": self.max_drawdown,
            "max_drawdown_duration": self.max_drawdown_duration,
            "cagr": self.cagr,
        }


@dataclass
class SimulationResult:
    """Output of one pass of the trade simulator."""

    initial_capital: float
    final_capital: float
    trades: list[SimulatedTrade]
    equity_curve: list[EquityPoint]
    drawdown_curve: list[DrawdownPoint]
    bars_processed: int
    cancelled: bool = False

    @property
    def closed_trades(self) -> list[SimulatedTrade]:
        """Trades that have been exited."""
        return [trade for trade in self.trades if not trade.is_open]

    @property
    def open_trade(self) -> SimulatedTrade | None:
        """The still-open trade at the end of the run, if any."""
        if self.trades and self.trades[-1].is_open:
            return self.trades[-1]
        return None

    @property
    def total_return(self) -> float:
        """Realized return on initial capital."""
        return (self.final_capital - self.initial_capital) / self.initial_capital


@dataclass
class BacktestRequest:
    """Parameters a caller submits to start a backtest."""

    strategy_id: str
    symbol: str
    timeframe: Timeframe
    start_date: date
    end_date: date
    initial_capital: float = DEFAULT_INITIAL_CAPITAL
    commission_rate: float = DEFAULT_COMMISSION_RATE
    slippage_rate: float = DEFAULT_SLIPPAGE_RATE
    name: str | None = None
    role: UserRole = UserRole.RESEARCHER

    def validate(self) -> None:
        """
        Validate request fields and normalize the symbol.

        Raises:
            ValidationError: If any field is malformed
        """
        if not self.strategy_id:
            raise ValidationError("strategy_id is required")
        self.symbol = validate_symbol(self.symbol)
        if not isinstance(self.timeframe, Timeframe):
            try:
                self.timeframe = Timeframe.from_string(str(self.timeframe))
            except ValueError as e:
                raise ValidationError(str(e)) from e
        validate_date_range(self.start_date, self.end_date)
        validate_positive(self.initial_capital, "initial_capital")
        if not MIN_INITIAL_CAPITAL <= self.initial_capital <= MAX_INITIAL_CAPITAL:
            raise ValidationError(
                f"initial_capital must be between {MIN_INITIAL_CAPITAL} and "
                f"{MAX_INITIAL_CAPITAL}, got {self.initial_capital}"
            )
        validate_rate(self.commission_rate, "commission_rate")
        validate_rate(self.slippage_rate, "slippage_rate")


@dataclass
class BacktestRun:
    """Durable record of one backtest run, read by callers for progress polling."""

    strategy_id: str
    symbol: str
    timeframe: Timeframe
    start_date: date
    end_date: date
    initial_capital: float
    commission_rate: float
    slippage_rate: float
    name: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: RunStatus = RunStatus.PENDING
    progress_pct: int = 0
    final_capital: float | None = None
    metrics: PerformanceMetrics | None = None
    equity_curve: list[EquityPoint] = field(default_factory=list)
    drawdown_curve: list[DrawdownPoint] = field(default_factory=list)
    trades: list[SimulatedTrade] = field(default_factory=list)
    error_message: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_request(cls, request: BacktestRequest) -> "BacktestRun":
        """Create a PENDING run from a validated request."""
        return cls(
            strategy_id=request.strategy_id,
            symbol=request.symbol,
            timeframe=request.timeframe,
            start_date=request.start_date,
            end_date=request.end_date,
            initial_capital=request.initial_capital,
            commission_rate=request.commission_rate,
            slippage_rate=request.slippage_rate,
            name=request.name,
        )

    def duration_days(self) -> int:
        """Calculate duration of the backtest window in days."""
        return (self.end_date - self.start_date).days

    def clear_results(self) -> None:
        """Drop curves, trades and metrics accumulated so far."""
        self.final_capital = None
        self.metrics = None
        self.equity_curve = []
        self.drawdown_curve = []
        self.trades = []

    def to_dict(self, include_series: bool = True) -> dict:
        """Convert run to dictionary."""
        data = {
            "id": self.id,
            "name": self.name,
            "strategy_id": self.strategy_id,
            "symbol": self.symbol,
            "timeframe": self.timeframe.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "initial_capital": self.initial_capital,
            "commission_rate": self.commission_rate,
            "slippage_rate": self.slippage_rate,
            "status": self.status.value,
            "progress_pct": self.progress_pct,
            "final_capital": self.final_capital,
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
        if include_series:
            data["equity_curve"] = [point.to_dict() for point in self.equity_curve]
            data["drawdown_curve"] = [point.to_dict() for point in self.drawdown_curve]
            data["trades"] = [trade.to_dict() for trade in self.trades]
        return data


@dataclass(frozen=True)
class RunFilter:
    """Criteria for listing runs. ``None`` fields match everything."""

    strategy_id: str | None = None
    symbol: str | None = None
    status: RunStatus | None = None

    def matches(self, run: BacktestRun) -> bool:
        """Check if a run satisfies every set criterion."""
        if self.strategy_id is not None and run.strategy_id != self.strategy_id:
            return False
        if self.symbol is not None and run.symbol != self.symbol.upper():
            return False
        if self.status is not None and run.status != self.status:
            return False
        return True
