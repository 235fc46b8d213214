"""
Indicator snapshot model.
"""

from dataclasses import dataclass, field

from strategy_backtester.core.enums import IndicatorKind


@dataclass(frozen=True, slots=True)
class IndicatorSpec:
    """An indicator requested by a strategy, e.g. SMA over 50 bars."""

    kind: IndicatorKind
    period: int

    @property
    def name(self) -> str:
        """Rule-facing name, e.g. ``SMA_50``."""
        return f"{self.kind.value}_{self.period}"


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Indicator values derived from the current rolling window.

    Every field stays ``None`` until its warm-up is satisfied. ``extras`` holds
    additionally configured indicators keyed by their rule-facing name.
    """

    rsi: float | None = None
    sma_20: float | None = None
    sma_50: float | None = None
    ema_20: float | None = None
    macd: float | None = None
    macd_signal: float | None = None
    extras: dict[str, float] = field(default_factory=dict)

    def get(self, name: str) -> float | None:
        """Look up a value by rule-facing indicator name (case-insensitive).

        ``PRICE`` is not part of the snapshot and is resolved by the rule evaluator.
        """
        key = name.strip().upper()
        builtins = {
            "RSI": self.rsi,
            "SMA_20": self.sma_20,
            "SMA_50": self.sma_50,
            "EMA_20": self.ema_20,
            "MACD": self.macd,
            "MACD_SIGNAL": self.macd_signal,
        }
        if key in builtins:
            return builtins[key]
        return self.extras.get(key)

    def is_known(self, name: str) -> bool:
        """Check if a name refers to a built-in or configured indicator."""
        key = name.strip().upper()
        return key in {"RSI", "SMA_20", "SMA_50", "EMA_20", "MACD", "MACD_SIGNAL"} or (
            key in self.extras
        )

    def to_dict(self) -> dict[str, float]:
        """Available values keyed by indicator name, for trade records."""
        values = {
            "RSI": self.rsi,
            "SMA_20": self.sma_20,
            "SMA_50": self.sma_50,
            "EMA_20": self.ema_20,
            "MACD": self.macd,
            "MACD_SIGNAL": self.macd_signal,
        }
        result = {name: value for name, value in values.items() if value is not None}
        result.update(self.extras)
        return result
