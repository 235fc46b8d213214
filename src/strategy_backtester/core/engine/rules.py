"""
Rule tree evaluation.

Walks a parsed rule tree (``RuleGroup`` / ``Comparison``) against the current
indicator snapshot and bar price.
"""

from loguru import logger

from strategy_backtester.core.enums import ExitSignal, LogicOperator
from strategy_backtester.core.models import (
    Comparison,
    IndicatorSnapshot,
    InvalidRule,
    Rule,
    RuleGroup,
    StrategyConfig,
)

PRICE = "PRICE"


class RuleEvaluator:
    """
    Evaluates boolean rule trees.

    Rules never raise: an indicator that cannot be resolved (unknown name or
    not warmed up yet) makes that single comparison false.
    """

    def resolve(self, name: str, snapshot: IndicatorSnapshot, current_price: float) -> float | None:
        """
        Resolve an indicator name to its current value.

        Args:
            name: Indicator name, e.g. ``PRICE``, ``RSI``, ``SMA_20`` (case-insensitive)
            snapshot: Current indicator snapshot
            current_price: Close of the current bar

        Returns:
            The value, or None if the name is unknown or not available yet
        """
        if name.strip().upper() == PRICE:
            return current_price
        if not snapshot.is_known(name):
            logger.debug(f"Unknown indicator: {name}")
            return None
        return snapshot.get(name)

    def evaluate_comparison(
        self, rule: Comparison, snapshot: IndicatorSnapshot, current_price: float
    ) -> bool:
        """Evaluate one comparison leaf."""
        left = self.resolve(rule.indicator, snapshot, current_price)
        if left is None:
            return False

        if rule.compare_to is not None:
            right = self.resolve(rule.compare_to, snapshot, current_price)
            if right is None:
                return False
        else:
            right = rule.value

        return rule.operator.apply(left, right)

    def evaluate(
        self, rules: Rule | None, snapshot: IndicatorSnapshot, current_price: float
    ) -> bool:
        """
        Evaluate a rule tree.

        AND groups start true and stop at the first failing child; OR groups
        start false and stop at the first passing child. Missing or empty trees
        and invalid rule leaves evaluate to false.
        """
        if rules is None or isinstance(rules, InvalidRule):
            return False
        if isinstance(rules, Comparison):
            return self.evaluate_comparison(rules, snapshot, current_price)
        return self._evaluate_group(rules, snapshot, current_price)

    def _evaluate_group(
        self, group: RuleGroup, snapshot: IndicatorSnapshot, current_price: float
    ) -> bool:
        if group.is_empty:
            return False

        if group.logic == LogicOperator.AND:
            for rule in group.rules:
                if not self.evaluate(rule, snapshot, current_price):
                    return False
            return True

        for rule in group.rules:
            if self.evaluate(rule, snapshot, current_price):
                return True
        return False

    def evaluate_entry(
        self, config: StrategyConfig, snapshot: IndicatorSnapshot, current_price: float
    ) -> bool:
        """Check the entry rule tree."""
        return self.evaluate(config.entry_rules, snapshot, current_price)

    def evaluate_exit(
        self,
        config: StrategyConfig,
        snapshot: IndicatorSnapshot,
        current_price: float,
        entry_price: float,
    ) -> ExitSignal:
        """
        Check whether an open position should be closed.

        Stop-loss and take-profit thresholds (relative to the entry price) are
        checked before the exit rule tree; a breach wins without consulting it.

        Returns:
            The exit condition that fired, or ``ExitSignal.NONE``
        """
        stop_loss_price = config.stop_loss_price(entry_price)
        if stop_loss_price is not None and current_price <= stop_loss_price:
            return ExitSignal.STOP_LOSS

        take_profit_price = config.take_profit_price(entry_price)
        if take_profit_price is not None and current_price >= take_profit_price:
            return ExitSignal.TAKE_PROFIT

        if self.evaluate(config.exit_rules, snapshot, current_price):
            return ExitSignal.RULES
        return ExitSignal.NONE
