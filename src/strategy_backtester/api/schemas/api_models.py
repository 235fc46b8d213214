"""
Pydantic schemas for API request/response models.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from strategy_backtester.core.constants import (
    DEFAULT_COMMISSION_RATE,
    DEFAULT_INITIAL_CAPITAL,
    DEFAULT_SLIPPAGE_RATE,
    MAX_INITIAL_CAPITAL,
)
from strategy_backtester.core.enums import RunStatus, Timeframe, UserRole
from strategy_backtester.core.models import BacktestRequest, BacktestRun


class BacktestCreateRequest(BaseModel):
    """Request model for backtest submission."""

    strategy_id: str = Field(..., min_length=1, description="Strategy whose config is tested")
    symbol: str = Field(..., min_length=1, description="Trading symbol, e.g. AAPL or BTCUSD")
    timeframe: Timeframe = Field(..., description="Bar interval")
    start_date: date = Field(..., description="First day of the backtest window")
    end_date: date = Field(..., description="Last day of the backtest window (inclusive)")
    initial_capital: float = Field(
        default=DEFAULT_INITIAL_CAPITAL, gt=0, le=MAX_INITIAL_CAPITAL, description="Starting capital"
    )
    commission_rate: float = Field(
        default=DEFAULT_COMMISSION_RATE, ge=0.0, lt=1.0, description="Commission per side"
    )
    slippage_rate: float = Field(
        default=DEFAULT_SLIPPAGE_RATE, ge=0.0, lt=1.0, description="Adverse fill fraction"
    )
    name: str | None = Field(default=None, max_length=200)

    @field_validator("end_date")
    @classmethod
    def validate_date_range(cls, v: date, info) -> date:
        """Validate that end_date is not before start_date."""
        if "start_date" in info.data and v < info.data["start_date"]:
            raise ValueError("end_date must not be before start_date")
        return v

    def to_domain(self, role: UserRole) -> BacktestRequest:
        """Build the engine request for a caller role."""
        return BacktestRequest(
            strategy_id=self.strategy_id,
            symbol=self.symbol,
            timeframe=self.timeframe,
            start_date=self.start_date,
            end_date=self.end_date,
            initial_capital=self.initial_capital,
            commission_rate=self.commission_rate,
            slippage_rate=self.slippage_rate,
            name=self.name,
            role=role,
        )


class BacktestSubmitResponse(BaseModel):
    """Response model for backtest submission."""

    backtest_id: str
    status: RunStatus
    message: str


class BacktestRunResponse(BaseModel):
    """Response model for a backtest run record."""

    backtest_id: str
    name: str | None = None
    strategy_id: str
    symbol: str
    timeframe: Timeframe
    start_date: date
    end_date: date
    initial_capital: float
    commission_rate: float
    slippage_rate: float
    status: RunStatus
    progress_pct: int
    final_capital: float | None = None
    metrics: dict | None = None
    equity_curve: list[dict] | None = None
    drawdown_curve: list[dict] | None = None
    trades: list[dict] | None = None
    error_message: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_run(cls, run: BacktestRun, include_series: bool = True) -> "BacktestRunResponse":
        data = run.to_dict(include_series=include_series)
        data["backtest_id"] = data.pop("id")
        return cls(**data)


class BacktestListResponse(BaseModel):
    """Response model for run listings."""

    backtests: list[BacktestRunResponse]
    total: int


class CancelResponse(BaseModel):
    """Response model for cancellation requests."""

    backtest_id: str
    cancelled: bool
    status: RunStatus


class ErrorResponse(BaseModel):
    """Response model for errors."""

    error: str
    message: str
    details: dict | None = None
    backtest_id: str | None = None
