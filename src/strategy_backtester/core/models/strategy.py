"""
Strategy configuration and rule tree models.

A strategy's entry and exit conditions are a typed rule tree built once when
the configuration is parsed: ``Comparison`` leaves grouped under ``RuleGroup``
nodes that combine their children with AND or OR. Entries that cannot be
parsed stay in the tree as ``InvalidRule`` leaves, which are always false.
"""

from dataclasses import dataclass, field

from strategy_backtester.core.constants import (
    DEFAULT_LEVERAGE,
    DEFAULT_MINIMUM_BARS,
    DEFAULT_POSITION_SIZE_PCT,
)
from strategy_backtester.core.enums import ComparisonOperator, LogicOperator
from strategy_backtester.core.exceptions.backtest import ValidationError

from .indicators import IndicatorSpec


@dataclass(frozen=True, slots=True)
class Comparison:
    """Leaf rule: ``indicator <operator> value`` or ``indicator <operator> compare_to``."""

    indicator: str
    operator: ComparisonOperator
    value: float | None = None
    compare_to: str | None = None

    def __post_init__(self) -> None:
        """Validate that exactly one comparison target is set."""
        if (self.value is None) == (self.compare_to is None):
            raise ValidationError(
                f"Rule on {self.indicator} needs exactly one of value or compare_to"
            )

    def describe(self) -> str:
        """Human-readable form, e.g. ``RSI < 30.00``."""
        target = self.compare_to if self.compare_to is not None else f"{self.value:.2f}"
        return f"{self.indicator} {self.operator.value} {target}"


@dataclass(frozen=True, slots=True)
class InvalidRule:
    """Leaf for a rule entry that could not be parsed. Always evaluates to false."""

    reason: str
    source: str = ""

    def describe(self) -> str:
        """Human-readable form, e.g. ``INVALID(unknown operator '!=')``."""
        return f"INVALID({self.reason})"


@dataclass(frozen=True, slots=True)
class RuleGroup:
    """Inner node combining child rules with AND or OR."""

    logic: LogicOperator
    rules: tuple["Comparison | InvalidRule | RuleGroup", ...] = ()

    @property
    def is_empty(self) -> bool:
        """Check if the group has no children."""
        return not self.rules

    def describe(self) -> str:
        """Human-readable form, e.g. ``(RSI < 30.00 AND PRICE > SMA_20)``."""
        if self.is_empty:
            return "()"
        joiner = f" {self.logic.value} "
        return "(" + joiner.join(rule.describe() for rule in self.rules) + ")"


Rule = Comparison | InvalidRule | RuleGroup


@dataclass
class StrategyConfig:
    """Parsed strategy configuration for one backtest run."""

    position_size_pct: float = DEFAULT_POSITION_SIZE_PCT
    leverage: float = DEFAULT_LEVERAGE
    entry_rules: RuleGroup = field(default_factory=lambda: RuleGroup(LogicOperator.AND))
    exit_rules: RuleGroup = field(default_factory=lambda: RuleGroup(LogicOperator.OR))
    indicators: list[IndicatorSpec] = field(default_factory=list)
    stop_loss_pct: float | None = None
    take_profit_pct: float | None = None

    @property
    def entry_logic(self) -> LogicOperator:
        """Logic combining the top-level entry rules."""
        return self.entry_rules.logic

    @property
    def exit_logic(self) -> LogicOperator:
        """Logic combining the top-level exit rules."""
        return self.exit_rules.logic

    @property
    def minimum_bars(self) -> int:
        """Bars to skip before entries are evaluated.

        The longest configured indicator period, or ``DEFAULT_MINIMUM_BARS`` if none.
        """
        if not self.indicators:
            return DEFAULT_MINIMUM_BARS
        return max(spec.period for spec in self.indicators)

    def stop_loss_price(self, entry_price: float) -> float | None:
        """Price at or below which an open position is stopped out."""
        if self.stop_loss_pct is None:
            return None
        return entry_price - entry_price * self.stop_loss_pct / 100

    def take_profit_price(self, entry_price: float) -> float | None:
        """Price at or above which an open position takes profit."""
        if self.take_profit_pct is None:
            return None
        return entry_price + entry_price * self.take_profit_pct / 100

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "position_size_pct": self.position_size_pct,
            "leverage": self.leverage,
            "entry_logic": self.entry_logic.value,
            "entry_rules": self.entry_rules.describe(),
            "exit_logic": self.exit_logic.value,
            "exit_rules": self.exit_rules.describe(),
            "indicators": [spec.name for spec in self.indicators],
            "stop_loss_pct": self.stop_loss_pct,
            "take_profit_pct": self.take_profit_pct,
        }
