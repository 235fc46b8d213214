"""
Unit tests for financial float helpers.
"""

import pytest

from strategy_backtester.core.types.financial import (
    PRICE_DECIMALS,
    ZERO,
    apply_slippage,
    calculate_commission,
    calculate_long_pnl,
    calculate_notional_value,
    percentage_of,
    round_price,
)


class TestFinancialRounding:
    """Test suite for display rounding."""

    def test_should_round_to_display_precision(self) -> None:
        """Test display rounding."""
        assert PRICE_DECIMALS == 2
        assert round_price(28.571428) == 28.57


class TestTradeCostCalculations:
    """Test suite for slippage, commission and PnL helpers."""

    def test_should_apply_adverse_slippage_to_buys_and_sells(self) -> None:
        """Test buys fill higher and sells fill lower."""
        # Act
        buy = apply_slippage(100.0, 0.01, is_buy=True)
        sell = apply_slippage(100.0, 0.01, is_buy=False)

        # Assert
        assert buy == pytest.approx(101.0)
        assert sell == pytest.approx(99.0)

    def test_should_leave_price_unchanged_without_slippage(self) -> None:
        """Test zero slippage."""
        assert apply_slippage(100.0, ZERO, is_buy=True) == 100.0

    def test_should_calculate_notional_and_commission(self) -> None:
        """Test notional value and commission."""
        notional = calculate_notional_value(25.0, 100.0)

        assert notional == 2500.0
        assert calculate_commission(notional, 0.001) == pytest.approx(2.5)

    def test_should_calculate_long_pnl(self) -> None:
        """Test long PnL for gains and losses."""
        assert calculate_long_pnl(100.0, 110.0, 25.0) == pytest.approx(250.0)
        assert calculate_long_pnl(100.0, 90.0, 25.0) == pytest.approx(-250.0)

    def test_should_take_percentage_of_amount(self) -> None:
        """Test position sizing helper."""
        assert percentage_of(10000.0, 25.0) == pytest.approx(2500.0)
