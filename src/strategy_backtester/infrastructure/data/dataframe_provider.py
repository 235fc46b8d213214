"""
Market data provider backed by pandas OHLCV frames.
"""

from datetime import date, timedelta
from pathlib import Path

import pandas as pd
from loguru import logger

from strategy_backtester.core.enums import Timeframe
from strategy_backtester.core.exceptions.backtest import DataError
from strategy_backtester.core.interfaces.collaborators import IMarketDataProvider
from strategy_backtester.core.models import PriceBar

from .ohlcv_validator import OHLCV_COLUMNS, OHLCVValidator


def frame_to_price_bars(frame: pd.DataFrame) -> list[PriceBar]:
    """Convert a validated OHLCV frame to price bars in row order."""
    return [
        PriceBar(
            timestamp=row.timestamp.to_pydatetime(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for row in frame.itertuples(index=False)
    ]


class DataFrameMarketDataProvider(IMarketDataProvider):
    """
    Serves price bars from in-memory OHLCV frames keyed by (symbol, timeframe).

    Frames are validated and normalized when registered: timestamps become
    timezone-aware UTC and rows are sorted ascending.
    """

    def __init__(self, validator: OHLCVValidator | None = None) -> None:
        self.validator = validator or OHLCVValidator()
        self._frames: dict[tuple[str, Timeframe], pd.DataFrame] = {}

    def add_frame(self, symbol: str, timeframe: Timeframe | str, frame: pd.DataFrame) -> None:
        """
        Register an OHLCV frame.

        Args:
            symbol: Trading symbol (case-insensitive)
            timeframe: Bar interval of the frame
            frame: DataFrame with timestamp, open, high, low, close, volume columns

        Raises:
            ValidationError: If the frame fails OHLCV validation
        """
        timeframe = Timeframe.from_string(str(timeframe))
        data = frame.copy()
        if "timestamp" in data.columns:
            data["timestamp"] = pd.to_datetime(data["timestamp"], utc=True)
        self.validator.validate_data(data)

        data = data[OHLCV_COLUMNS].sort_values("timestamp").reset_index(drop=True)
        self._frames[(symbol.strip().upper(), timeframe)] = data
        logger.info(f"Registered {len(data)} {timeframe} bars for {symbol.upper()}")

    def load_csv(self, symbol: str, timeframe: Timeframe | str, path: str | Path) -> None:
        """
        Register bars from a CSV file with OHLCV columns.

        Raises:
            DataError: If the file cannot be read
            ValidationError: If its contents fail OHLCV validation
        """
        try:
            frame = pd.read_csv(path)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise DataError(f"Failed to read market data from {path}: {e}") from e
        self.add_frame(symbol, timeframe, frame)

    def available(self) -> list[tuple[str, Timeframe]]:
        """List registered (symbol, timeframe) keys."""
        return sorted(self._frames)

    async def get_price_bars(
        self, symbol: str, timeframe: Timeframe, start_date: date, end_date: date
    ) -> list[PriceBar]:
        """Bars from the start of ``start_date`` to 23:59:59 of ``end_date`` inclusive."""
        frame = self._frames.get((symbol.strip().upper(), Timeframe.from_string(str(timeframe))))
        if frame is None:
            logger.warning(f"No frame registered for {symbol} {timeframe}")
            return []

        window_start = pd.Timestamp(start_date.isoformat(), tz="UTC")
        window_end = (
            pd.Timestamp(end_date.isoformat(), tz="UTC") + timedelta(days=1) - timedelta(seconds=1)
        )
        mask = (frame["timestamp"] >= window_start) & (frame["timestamp"] <= window_end)
        bars = frame_to_price_bars(frame.loc[mask])

        logger.debug(f"Loaded {len(bars)} bars for {symbol} {timeframe} {start_date}..{end_date}")
        return bars
