"""
Shared pytest fixtures.
"""

from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta

import pytest

from strategy_backtester.core.models import PriceBar

BarFactory = Callable[..., list[PriceBar]]


@pytest.fixture
def make_bars() -> BarFactory:
    """Factory building flat OHLC bars (open = high = low = close) from closes."""

    def _make_bars(
        closes: Sequence[float],
        start: datetime = datetime(2024, 1, 1, tzinfo=UTC),
        step: timedelta = timedelta(days=1),
        volume: float = 1000.0,
    ) -> list[PriceBar]:
        return [
            PriceBar(
                timestamp=start + step * i,
                open=close,
                high=close,
                low=close,
                close=close,
                volume=volume,
            )
            for i, close in enumerate(closes)
        ]

    return _make_bars
