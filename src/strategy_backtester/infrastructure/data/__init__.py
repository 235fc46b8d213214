"""
Market data infrastructure.

This module provides OHLCV frame validation and the market data providers
consumed by the backtest orchestrator.
"""

from .dataframe_provider import DataFrameMarketDataProvider, frame_to_price_bars
from .ohlcv_validator import OHLCVValidator
from .synthetic_provider import (
    DEFAULT_SYMBOL_PROFILES,
    SymbolProfile,
    SyntheticMarketDataProvider,
)

__all__ = [
    "OHLCVValidator",
    "DataFrameMarketDataProvider",
    "frame_to_price_bars",
    "SyntheticMarketDataProvider",
    "SymbolProfile",
    "DEFAULT_SYMBOL_PROFILES",
]
