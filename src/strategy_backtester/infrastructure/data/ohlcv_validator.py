"""
OHLCV data validation module.

Validates OHLCV market data frames before they are turned into price bars:
structure, data types, value ranges, OHLC relationships and bar ordering.
"""

import pandas as pd
from loguru import logger

from strategy_backtester.core.exceptions.backtest import ValidationError

OHLCV_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]
PRICE_COLUMNS = ["open", "high", "low", "close"]

# Bars whose high/low range exceeds this fraction of the low are reported
EXTREME_RANGE_THRESHOLD = 0.5


class OHLCVValidator:
    """
    OHLCV frame validator.

    Features:
    - Data structure validation (required columns, duplicate timestamps)
    - Data type validation for numeric columns
    - Value range validation (positive prices, non-negative volume)
    - OHLC relationship validation
    - Ordering and quality checks with warnings
    """

    def __init__(self, require_sorted: bool = False) -> None:
        """
        Initialize validator.

        Args:
            require_sorted: Reject frames whose timestamps are not ascending
                instead of only warning about them
        """
        self.require_sorted = require_sorted

    def validate_data(self, data: pd.DataFrame) -> bool:
        """
        Validate OHLCV data integrity.

        Args:
            data: DataFrame with OHLCV data

        Returns:
            True if data is valid

        Raises:
            ValidationError: If data has integrity issues
        """
        if data.empty:
            return True

        self._validate_data_structure(data)
        self._validate_data_types(data)
        self._validate_data_values(data)
        self._validate_ohlc_relationships(data)
        self._validate_ordering(data)
        self._validate_data_quality(data)

        return True

    def _validate_data_structure(self, data: pd.DataFrame) -> None:
        missing_columns = set(OHLCV_COLUMNS) - set(data.columns)
        if missing_columns:
            raise ValidationError(f"Missing required columns: {sorted(missing_columns)}")

        if data["timestamp"].duplicated().any():
            raise ValidationError("Duplicate timestamps found in data")

    def _validate_data_types(self, data: pd.DataFrame) -> None:
        for col in PRICE_COLUMNS + ["volume"]:
            if not pd.api.types.is_numeric_dtype(data[col]):
                raise ValidationError(f"Column {col} must be numeric")

        for col in OHLCV_COLUMNS:
            if data[col].isna().any():
                raise ValidationError(f"Column {col} contains NaN values")

    def _validate_data_values(self, data: pd.DataFrame) -> None:
        for col in PRICE_COLUMNS:
            if (data[col] <= 0).any():
                raise ValidationError(f"Column {col} contains non-positive values")

        if (data["volume"] < 0).any():
            raise ValidationError("Volume column contains negative values")

    def _validate_ohlc_relationships(self, data: pd.DataFrame) -> None:
        invalid_ohlc = (
            (data["high"] < data["low"])
            | (data["high"] < data["open"])
            | (data["high"] < data["close"])
            | (data["low"] > data["open"])
            | (data["low"] > data["close"])
        )

        if invalid_ohlc.any():
            raise ValidationError(f"Invalid OHLC relationships found in {invalid_ohlc.sum()} rows")

    def _validate_ordering(self, data: pd.DataFrame) -> None:
        if data["timestamp"].is_monotonic_increasing:
            return
        if self.require_sorted:
            raise ValidationError("Timestamps must be in ascending order")
        logger.warning("Timestamps are not in ascending order, bars will be sorted")

    def _validate_data_quality(self, data: pd.DataFrame) -> None:
        bar_range = (data["high"] - data["low"]) / data["low"]
        extreme_moves = bar_range > EXTREME_RANGE_THRESHOLD

        if extreme_moves.any():
            logger.warning(
                f"Found {extreme_moves.sum()} bars with extreme price ranges "
                f"(>{EXTREME_RANGE_THRESHOLD:.0%})"
            )
