"""
Strategy configuration parser.

Parses free-form JSON strategy text into a ``StrategyConfig`` with a typed rule
tree. Malformed input never fails a run: the whole config or the offending
field falls back to the engine defaults.

Expected layout::

    {
        "position": {"capital_pct": 25, "leverage": 1},
        "indicators": [{"type": "RSI", "period": 14}, {"type": "SMA", "period": 50}],
        "entry": {"logic": "AND", "rules": [{"indicator": "RSI", "operator": "<", "value": 30}]},
        "exit": {"logic": "OR", "rules": [{"indicator": "PRICE", "operator": ">",
                                           "compare_to": "SMA_20"}]},
        "risk": {"stop_loss_pct": 5, "take_profit_pct": 10}
    }

A rule entry holding its own ``logic`` and ``rules`` is parsed as a nested group.
A rule entry that cannot be parsed (no indicator, unknown operator, no usable
``value`` or ``compare_to``) is kept in its group as an ``InvalidRule``, so it
still fails an AND group.
"""

import json
from typing import Any

from loguru import logger

from strategy_backtester.core.constants import (
    DEFAULT_ENTRY_LOGIC,
    DEFAULT_EXIT_LOGIC,
    DEFAULT_INDICATOR_PERIOD,
    DEFAULT_LEVERAGE,
    DEFAULT_POSITION_SIZE_PCT,
)
from strategy_backtester.core.enums import ComparisonOperator, IndicatorKind, LogicOperator
from strategy_backtester.core.exceptions.backtest import ConfigParseError, ValidationError
from strategy_backtester.core.models import (
    Comparison,
    IndicatorSpec,
    InvalidRule,
    Rule,
    RuleGroup,
    StrategyConfig,
)


def default_strategy_config() -> StrategyConfig:
    """Engine defaults: 25% sizing, 1x leverage, AND entry, OR exit, no rules."""
    return StrategyConfig(
        position_size_pct=DEFAULT_POSITION_SIZE_PCT,
        leverage=DEFAULT_LEVERAGE,
        entry_rules=RuleGroup(LogicOperator(DEFAULT_ENTRY_LOGIC)),
        exit_rules=RuleGroup(LogicOperator(DEFAULT_EXIT_LOGIC)),
    )


class StrategyConfigParser:
    """Builds ``StrategyConfig`` objects from raw config text."""

    def parse(self, raw_config: str | None) -> StrategyConfig:
        """
        Parse raw strategy text, substituting defaults on any failure.

        Args:
            raw_config: JSON text from the config provider (may be None)

        Returns:
            Parsed configuration; never raises
        """
        if raw_config is None or not str(raw_config).strip():
            logger.info("No strategy config provided, using defaults")
            return default_strategy_config()

        try:
            return self.parse_strict(raw_config)
        except ConfigParseError as e:
            logger.error(f"Failed to parse strategy config, using defaults: {e}")
            return default_strategy_config()

    def parse_strict(self, raw_config: str) -> StrategyConfig:
        """
        Parse raw strategy text.

        Field-level problems fall back to the field default; only unreadable
        documents raise.

        Raises:
            ConfigParseError: If the text is not a JSON object
        """
        try:
            document = json.loads(raw_config)
        except (json.JSONDecodeError, TypeError) as e:
            raise ConfigParseError(f"Strategy config is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise ConfigParseError(
                f"Strategy config root must be an object, got {type(document).__name__}"
            )

        config = default_strategy_config()
        self._parse_position(document.get("position"), config)
        config.indicators = self._parse_indicators(document.get("indicators"))
        config.entry_rules = self._parse_rule_section(
            document.get("entry"), LogicOperator(DEFAULT_ENTRY_LOGIC), "entry"
        )
        config.exit_rules = self._parse_rule_section(
            document.get("exit"), LogicOperator(DEFAULT_EXIT_LOGIC), "exit"
        )
        self._parse_risk(document.get("risk"), config)

        logger.debug(f"Parsed strategy config: {config.to_dict()}")
        return config

    def _parse_position(self, section: Any, config: StrategyConfig) -> None:
        if not isinstance(section, dict):
            return

        capital_pct = self._to_float(section.get("capital_pct"), "position.capital_pct")
        if capital_pct is not None:
            if 0 < capital_pct <= 100:
                config.position_size_pct = capital_pct
            else:
                logger.warning(
                    f"position.capital_pct {capital_pct} outside (0, 100], "
                    f"using {DEFAULT_POSITION_SIZE_PCT}"
                )

        leverage = self._to_float(section.get("leverage"), "position.leverage")
        if leverage is not None:
            if leverage > 0:
                config.leverage = leverage
            else:
                logger.warning(f"position.leverage {leverage} must be positive, using default")

    def _parse_indicators(self, section: Any) -> list[IndicatorSpec]:
        if section is None:
            return []
        if not isinstance(section, list):
            logger.warning("indicators must be a list, ignoring")
            return []

        specs: list[IndicatorSpec] = []
        for entry in section:
            if not isinstance(entry, dict) or "type" not in entry:
                logger.warning(f"Skipping malformed indicator entry: {entry!r}")
                continue
            try:
                kind = IndicatorKind.from_string(entry["type"])
            except ValueError as e:
                logger.warning(f"Skipping indicator: {e}")
                continue

            period = entry.get("period", DEFAULT_INDICATOR_PERIOD)
            if isinstance(period, bool) or not isinstance(period, int | float) or period <= 0:
                logger.warning(
                    f"Invalid period {period!r} for {kind}, using {DEFAULT_INDICATOR_PERIOD}"
                )
                period = DEFAULT_INDICATOR_PERIOD
            specs.append(IndicatorSpec(kind=kind, period=int(period)))
        return specs

    def _parse_rule_section(self, section: Any, default_logic: LogicOperator, label: str) -> RuleGroup:
        if section is None:
            return RuleGroup(default_logic)
        if not isinstance(section, dict):
            logger.warning(f"{label} section must be an object, ignoring")
            return RuleGroup(default_logic)
        return self._parse_group(section, default_logic, label)

    def _parse_group(self, node: dict, default_logic: LogicOperator, path: str) -> RuleGroup:
        logic = default_logic
        if "logic" in node:
            try:
                logic = LogicOperator.from_string(node["logic"])
            except ValueError:
                logger.warning(f"{path}.logic {node['logic']!r} invalid, using {default_logic}")

        raw_rules = node.get("rules")
        if raw_rules is None:
            return RuleGroup(logic)
        if not isinstance(raw_rules, list):
            logger.warning(f"{path}.rules must be a list, ignoring")
            return RuleGroup(logic)

        rules: list[Rule] = []
        for index, raw_rule in enumerate(raw_rules):
            rules.append(self._parse_rule(raw_rule, logic, f"{path}.rules[{index}]"))
        return RuleGroup(logic, tuple(rules))

    def _parse_rule(self, node: Any, parent_logic: LogicOperator, path: str) -> Rule:
        if not isinstance(node, dict):
            return self._invalid_rule(path, f"malformed rule {node!r}")

        if "rules" in node:
            return self._parse_group(node, parent_logic, path)

        indicator = node.get("indicator")
        if not isinstance(indicator, str) or not indicator.strip():
            return self._invalid_rule(path, "missing indicator")

        try:
            operator = ComparisonOperator.from_string(node.get("operator", ""))
        except ValueError as e:
            return self._invalid_rule(path, str(e))

        try:
            if "value" in node:
                value = self._to_float(node["value"], f"{path}.value")
                if value is None:
                    return self._invalid_rule(path, f"non-numeric value {node['value']!r}")
                return Comparison(indicator.strip().upper(), operator, value=value)
            if "compare_to" in node and isinstance(node["compare_to"], str):
                return Comparison(
                    indicator.strip().upper(),
                    operator,
                    compare_to=node["compare_to"].strip().upper(),
                )
        except ValidationError as e:
            return self._invalid_rule(path, str(e))

        return self._invalid_rule(path, "needs value or compare_to")

    @staticmethod
    def _invalid_rule(path: str, reason: str) -> InvalidRule:
        logger.warning(f"Rule at {path} is invalid and will never match: {reason}")
        return InvalidRule(reason=reason, source=path)

    def _parse_risk(self, section: Any, config: StrategyConfig) -> None:
        if not isinstance(section, dict):
            return

        stop_loss = self._to_float(section.get("stop_loss_pct"), "risk.stop_loss_pct")
        if stop_loss is not None:
            if 0 < stop_loss < 100:
                config.stop_loss_pct = stop_loss
            else:
                logger.warning(f"risk.stop_loss_pct {stop_loss} outside (0, 100), ignoring")

        take_profit = self._to_float(section.get("take_profit_pct"), "risk.take_profit_pct")
        if take_profit is not None:
            if take_profit > 0:
                config.take_profit_pct = take_profit
            else:
                logger.warning(f"risk.take_profit_pct {take_profit} must be positive, ignoring")

    @staticmethod
    def _to_float(value: Any, path: str) -> float | None:
        if value is None:
            return None
        if isinstance(value, bool):
            logger.warning(f"{path} must be numeric, got {value!r}")
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(f"{path} must be numeric, got {value!r}")
            return None
