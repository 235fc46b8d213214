"""
Financial helpers for high-performance backtesting calculations.

This module provides float-based helpers optimized for speed in backtesting scenarios.
While float has minor precision limitations, it offers a large speed-up over Decimal,
which matters when simulating long bar sequences.

IMPORTANT PRECISION CONSIDERATIONS:
- Float64 provides ~15-16 significant decimal digits
- Suitable for backtesting historical data where performance > precision
- NOT suitable for production trading (use Decimal for real money operations)
- Values are never rounded inside the simulation; rounding is for display only
"""

# Display precision (number of decimal places)
PRICE_DECIMALS = 2  # Indicator values in trade reasons

# Common financial values as float constants
ZERO = 0.0
ONE = 1.0
HUNDRED = 100.0


def round_price(price: float) -> float:
    """Round price to display precision."""
    return round(price, PRICE_DECIMALS)


def apply_slippage(price: float, slippage_rate: float, is_buy: bool) -> float:
    """Adjust a fill price by slippage in the unfavorable direction.

    Args:
        price: Reference price (bar close)
        slippage_rate: Fractional slippage, e.g. 0.0005 for 5 bps
        is_buy: True for a buy fill (price moves up), False for a sell (price moves down)

    Returns:
        Execution price

    Examples:
        >>> apply_slippage(100.0, 0.01, is_buy=True)
        101.0
        >>> apply_slippage(100.0, 0.01, is_buy=False)
        99.0
    """
    if slippage_rate < ZERO:
        raise ValueError(f"Slippage rate must be non-negative, got {slippage_rate}")
    if is_buy:
        return price * (ONE + slippage_rate)
    return price * (ONE - slippage_rate)


def calculate_notional_value(quantity: float, price: float) -> float:
    """Calculate notional value of a quantity at a price."""
    return abs(quantity) * price


def calculate_commission(notional_value: float, commission_rate: float) -> float:
    """Calculate commission charged on a notional value."""
    if commission_rate < ZERO:
        raise ValueError(f"Commission rate must be non-negative, got {commission_rate}")
    return notional_value * commission_rate


def calculate_long_pnl(entry_price: float, exit_price: float, quantity: float) -> float:
    """Calculate gross PnL of a long position.

    Args:
        entry_price: Execution price at entry
        exit_price: Execution (or mark) price at exit
        quantity: Position quantity (absolute value is used)

    Returns:
        Gross PnL as float
    """
    return abs(quantity) * (exit_price - entry_price)


def percentage_of(amount: float, percentage: float) -> float:
    """Return ``percentage`` percent of ``amount``.

    Examples:
        >>> percentage_of(10000.0, 25.0)
        2500.0
    """
    return amount * (percentage / HUNDRED)
