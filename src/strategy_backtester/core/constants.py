"""
Core constants and limits.

Defines engine-wide defaults for indicator windows, strategy configuration,
trade costs and performance metrics.
"""

# Indicator Engine
INDICATOR_WINDOW_SIZE = 200  # Closes/volumes kept in the rolling window
DEFAULT_RSI_PERIOD = 14
MACD_FAST_PERIOD = 12
MACD_SLOW_PERIOD = 26
MACD_SIGNAL_RATIO = 0.9  # Signal line = MACD x 0.9 (not a 9-period EMA)
RSI_NEUTRAL = 50.0  # RSI reported before period+1 closes are available
RSI_MAX = 100.0

# Strategy Defaults
DEFAULT_POSITION_SIZE_PCT = 25.0
DEFAULT_LEVERAGE = 1.0
DEFAULT_ENTRY_LOGIC = "AND"
DEFAULT_EXIT_LOGIC = "OR"
DEFAULT_MINIMUM_BARS = 50  # Warm-up when no indicators are configured
DEFAULT_INDICATOR_PERIOD = 14

# Trade Costs
DEFAULT_COMMISSION_RATE = 0.001  # 0.1% per side
DEFAULT_SLIPPAGE_RATE = 0.0005  # 0.05% adverse fill
DEFAULT_INITIAL_CAPITAL = 10000.0

# Performance Metrics
ANNUAL_RISK_FREE_RATE = 0.05  # 5% per year
TRADING_DAYS_PER_YEAR = 252
DAYS_PER_YEAR = 365.0

# Request Limits
MIN_INITIAL_CAPITAL = 1.0
MAX_INITIAL_CAPITAL = 1_000_000_000.0
MAX_COST_RATE = 1.0  # Commission and slippage rates must stay below 100%

# Synthetic Market Data
DEFAULT_SYNTHETIC_BASE_PRICE = 100.0
DEFAULT_SYNTHETIC_VOLATILITY = 0.02  # 2% per bar
DEFAULT_SYNTHETIC_SEED = 42
