"""
Synthetic market data provider.

Generates a random-walk OHLCV series for any symbol, one bar per timeframe
step across the requested window. Randomness comes from an explicitly seeded
``numpy.random.Generator`` so the same request always yields the same bars.
"""

import zlib
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

import numpy as np
from loguru import logger

from strategy_backtester.core.constants import (
    DEFAULT_SYNTHETIC_BASE_PRICE,
    DEFAULT_SYNTHETIC_SEED,
    DEFAULT_SYNTHETIC_VOLATILITY,
)
from strategy_backtester.core.enums import Timeframe
from strategy_backtester.core.interfaces.collaborators import IMarketDataProvider
from strategy_backtester.core.models import PriceBar

# Per-bar wick size is uniform in [0, WICK_FRACTION) of the body
WICK_FRACTION = 0.01
MIN_VOLUME = 100_000
MAX_VOLUME = 1_000_000
# Floor for a single bar's simple return so prices stay positive
MIN_BAR_RETURN = -0.5


@dataclass(frozen=True)
class SymbolProfile:
    """Starting price and per-bar volatility of a synthetic symbol."""

    base_price: float
    volatility: float = DEFAULT_SYNTHETIC_VOLATILITY


DEFAULT_SYMBOL_PROFILES: dict[str, SymbolProfile] = {
    "AAPL": SymbolProfile(150.0),
    "GOOGL": SymbolProfile(2500.0),
    "MSFT": SymbolProfile(300.0),
    "TSLA": SymbolProfile(200.0),
    "BTCUSD": SymbolProfile(45000.0),
    "ETHUSD": SymbolProfile(3000.0),
}


class SyntheticMarketDataProvider(IMarketDataProvider):
    """Seeded random-walk price bars for demos, tests and offline runs."""

    def __init__(
        self,
        seed: int = DEFAULT_SYNTHETIC_SEED,
        profiles: dict[str, SymbolProfile] | None = None,
        default_profile: SymbolProfile | None = None,
    ) -> None:
        self.seed = seed
        self.profiles = dict(DEFAULT_SYMBOL_PROFILES if profiles is None else profiles)
        self.default_profile = default_profile or SymbolProfile(DEFAULT_SYNTHETIC_BASE_PRICE)

    def profile_for(self, symbol: str) -> SymbolProfile:
        """Profile of a symbol, falling back to the default profile."""
        return self.profiles.get(symbol.strip().upper(), self.default_profile)

    def generate_bars(
        self, symbol: str, timeframe: Timeframe, start_date: date, end_date: date
    ) -> list[PriceBar]:
        """
        Generate bars from the start of ``start_date`` to 23:59:59 of ``end_date``.

        Each bar opens at the previous close; the close applies a normally
        distributed simple return with the profile's volatility.
        """
        timeframe = Timeframe.from_string(str(timeframe))
        step = timedelta(seconds=Timeframe.to_seconds(timeframe))
        window_start = datetime.combine(start_date, time.min, tzinfo=UTC)
        window_end = datetime.combine(end_date, time(23, 59, 59), tzinfo=UTC)
        if window_end < window_start:
            return []

        count = int((window_end - window_start) / step) + 1
        profile = self.profile_for(symbol)
        rng = np.random.default_rng([self.seed, zlib.crc32(symbol.strip().upper().encode())])

        returns = np.clip(rng.normal(0.0, profile.volatility, count), MIN_BAR_RETURN, None)
        closes = profile.base_price * np.cumprod(1.0 + returns)
        opens = np.concatenate(([profile.base_price], closes[:-1]))
        highs = np.maximum(opens, closes) * (1.0 + rng.random(count) * WICK_FRACTION)
        lows = np.minimum(opens, closes) * (1.0 - rng.random(count) * WICK_FRACTION)
        volumes = rng.integers(MIN_VOLUME, MAX_VOLUME, count)

        bars = [
            PriceBar(
                timestamp=window_start + step * i,
                open=float(opens[i]),
                high=float(highs[i]),
                low=float(lows[i]),
                close=float(closes[i]),
                volume=float(volumes[i]),
            )
            for i in range(count)
        ]
        logger.debug(
            f"Generated {count} synthetic {timeframe} bars for {symbol} "
            f"(base={profile.base_price}, vol={profile.volatility})"
        )
        return bars

    async def get_price_bars(
        self, symbol: str, timeframe: Timeframe, start_date: date, end_date: date
    ) -> list[PriceBar]:
        return self.generate_bars(symbol, timeframe, start_date, end_date)
