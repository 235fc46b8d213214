"""
Trading timeframe enumerations.

This module defines the allowed timeframes for price bars and the curve
sampling rate used for each of them.
"""

from enum import StrEnum

# Curve sampling rate for timeframes without a dedicated rate
DEFAULT_SAMPLE_RATE = 10


class Timeframe(StrEnum):
    """
    Allowed bar timeframes.

    Following standard trading conventions for candlestick intervals.
    Supports minute, hour, day and week timeframes.
    """

    # Minute intervals
    M1 = "1m"  # 1 minute
    M5 = "5m"  # 5 minutes
    M15 = "15m"  # 15 minutes
    M30 = "30m"  # 30 minutes

    # Hour intervals
    H1 = "1h"  # 1 hour
    H4 = "4h"  # 4 hours

    # Day and week intervals
    D1 = "1d"  # 1 day
    W1 = "1w"  # 1 week

    @classmethod
    def to_seconds(cls, timeframe: "Timeframe") -> int:
        """
        Convert timeframe to seconds.

        Args:
            timeframe: Timeframe enum value

        Returns:
            Number of seconds in the timeframe
        """
        conversions = {
            cls.M1: 60,
            cls.M5: 300,
            cls.M15: 900,
            cls.M30: 1800,
            cls.H1: 3600,
            cls.H4: 14400,
            cls.D1: 86400,
            cls.W1: 604800,
        }
        return conversions[timeframe]

    @classmethod
    def from_string(cls, value: str) -> "Timeframe":
        """
        Convert string to Timeframe enum.

        Args:
            value: String representation of timeframe

        Returns:
            Corresponding Timeframe enum value

        Raises:
            ValueError: If timeframe is not supported
        """
        value_lower = value.strip().lower()

        for tf in cls:
            if tf.value == value_lower:
                return tf

        raise ValueError(
            f"Unsupported timeframe: {value}. "
            f"Supported timeframes: {', '.join([tf.value for tf in cls])}"
        )

    @property
    def sample_rate(self) -> int:
        """Number of bars between two equity/drawdown curve points.

        Intraday timeframes are thinned to roughly one point per hour; hourly
        and daily bars are all kept. Anything else samples every
        ``DEFAULT_SAMPLE_RATE`` bars.
        """
        rates = {
            Timeframe.M1: 60,
            Timeframe.M5: 12,
            Timeframe.M15: 4,
            Timeframe.M30: 2,
            Timeframe.H1: 1,
            Timeframe.H4: 1,
            Timeframe.D1: 1,
        }
        return rates.get(self, DEFAULT_SAMPLE_RATE)

    @classmethod
    def sample_rate_for(cls, value: "Timeframe | str") -> int:
        """Sampling rate for a timeframe given as enum or raw string.

        Unknown timeframe strings fall back to ``DEFAULT_SAMPLE_RATE``.
        """
        if isinstance(value, Timeframe):
            return value.sample_rate
        try:
            return cls.from_string(value).sample_rate
        except ValueError:
            return DEFAULT_SAMPLE_RATE
