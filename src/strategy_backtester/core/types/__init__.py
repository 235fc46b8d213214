"""
Core type definitions and utilities.
"""

# Re-export financial utilities for easy access
from .financial import (
    HUNDRED,
    ONE,
    PRICE_DECIMALS,
    ZERO,
    apply_slippage,
    calculate_commission,
    calculate_long_pnl,
    calculate_notional_value,
    percentage_of,
    round_price,
)

__all__ = [
    # Utility functions
    "round_price",
    "apply_slippage",
    "calculate_notional_value",
    "calculate_commission",
    "calculate_long_pnl",
    "percentage_of",
    # Constants
    "PRICE_DECIMALS",
    "ZERO",
    "ONE",
    "HUNDRED",
]
