"""
Unit tests for strategy configuration parsing.
"""

import json

import pytest

from strategy_backtester.core.engine.config_parser import (
    StrategyConfigParser,
    default_strategy_config,
)
from strategy_backtester.core.engine.rules import RuleEvaluator
from strategy_backtester.core.enums import ComparisonOperator, IndicatorKind, LogicOperator
from strategy_backtester.core.exceptions.backtest import ConfigParseError
from strategy_backtester.core.models import (
    Comparison,
    IndicatorSnapshot,
    IndicatorSpec,
    InvalidRule,
    RuleGroup,
)


class TestStrategyConfigParser:
    """Test suite for StrategyConfigParser."""

    @pytest.fixture
    def parser(self) -> StrategyConfigParser:
        return StrategyConfigParser()

    @pytest.fixture
    def full_config(self) -> dict:
        return {
            "position": {"capital_pct": 50, "leverage": 2},
            "indicators": [{"type": "RSI", "period": 14}, {"type": "sma", "period": 30}],
            "entry": {
                "logic": "AND",
                "rules": [
                    {"indicator": "rsi", "operator": "<", "value": 30},
                    {"indicator": "PRICE", "operator": ">", "compare_to": "sma_20"},
                ],
            },
            "exit": {
                "logic": "OR",
                "rules": [{"indicator": "RSI", "operator": ">", "value": 70}],
            },
            "risk": {"stop_loss_pct": 5, "take_profit_pct": 12.5},
        }

    def test_should_use_defaults_for_missing_config(self, parser: StrategyConfigParser) -> None:
        """Test None and blank text give defaults."""
        for raw in (None, "", "   "):
            config = parser.parse(raw)

            assert config.position_size_pct == 25.0
            assert config.leverage == 1.0
            assert config.entry_logic == LogicOperator.AND
            assert config.exit_logic == LogicOperator.OR
            assert config.entry_rules.is_empty
            assert config.exit_rules.is_empty
            assert config.minimum_bars == 50

    def test_should_fall_back_to_defaults_on_invalid_json(
        self, parser: StrategyConfigParser
    ) -> None:
        """Test malformed text never raises from parse."""
        config = parser.parse("{not json")

        assert config == default_strategy_config()

    def test_should_raise_from_strict_parse_on_invalid_json(
        self, parser: StrategyConfigParser
    ) -> None:
        """Test parse_strict surfaces unreadable documents."""
        with pytest.raises(ConfigParseError, match="not valid JSON"):
            parser.parse_strict("{not json")

    def test_should_reject_non_object_root(self, parser: StrategyConfigParser) -> None:
        """Test JSON arrays are not strategy configs."""
        with pytest.raises(ConfigParseError, match="root must be an object"):
            parser.parse_strict("[1, 2, 3]")
        assert parser.parse("[1, 2, 3]") == default_strategy_config()

    def test_should_parse_full_config(self, parser: StrategyConfigParser, full_config: dict) -> None:
        """Test every section is parsed."""
        config = parser.parse(json.dumps(full_config))

        assert config.position_size_pct == 50.0
        assert config.leverage == 2.0
        assert config.indicators == [
            IndicatorSpec(IndicatorKind.RSI, 14),
            IndicatorSpec(IndicatorKind.SMA, 30),
        ]
        assert config.minimum_bars == 30
        assert config.entry_rules == RuleGroup(
            LogicOperator.AND,
            (
                Comparison("RSI", ComparisonOperator.LT, value=30.0),
                Comparison("PRICE", ComparisonOperator.GT, compare_to="SMA_20"),
            ),
        )
        assert config.exit_rules.rules == (Comparison("RSI", ComparisonOperator.GT, value=70.0),)
        assert config.stop_loss_pct == 5.0
        assert config.take_profit_pct == 12.5

    def test_should_accept_single_equals_operator(self, parser: StrategyConfigParser) -> None:
        """Test '=' is parsed as equality."""
        raw = json.dumps({"entry": {"rules": [{"indicator": "RSI", "operator": "=", "value": 50}]}})

        config = parser.parse(raw)

        assert config.entry_rules.rules[0].operator == ComparisonOperator.EQ

    def test_should_parse_nested_rule_groups(self, parser: StrategyConfigParser) -> None:
        """Test rules holding their own logic and rules become groups."""
        raw = json.dumps(
            {
                "entry": {
                    "logic": "AND",
                    "rules": [
                        {"indicator": "RSI", "operator": "<", "value": 30},
                        {
                            "logic": "OR",
                            "rules": [
                                {"indicator": "PRICE", "operator": ">", "compare_to": "SMA_20"},
                                {"indicator": "MACD", "operator": ">", "value": 0},
                            ],
                        },
                    ],
                }
            }
        )

        config = parser.parse(raw)
        nested = config.entry_rules.rules[1]

        assert isinstance(nested, RuleGroup)
        assert nested.logic == LogicOperator.OR
        assert len(nested.rules) == 2

    def test_should_keep_malformed_rules_as_invalid_leaves(
        self, parser: StrategyConfigParser
    ) -> None:
        """Test malformed rules stay in their group as never-matching leaves."""
        raw = json.dumps(
            {
                "entry": {
                    "rules": [
                        {"indicator": "RSI", "operator": "!=", "value": 30},
                        {"indicator": "RSI", "operator": "<"},
                        {"operator": "<", "value": 30},
                        {"indicator": "RSI", "operator": "<", "value": True},
                        {"indicator": "RSI", "operator": "<", "value": "abc"},
                        "RSI < 30",
                        {"indicator": "RSI", "operator": "<", "value": "30"},
                    ]
                }
            }
        )

        config = parser.parse(raw)
        rules = config.entry_rules.rules

        assert len(rules) == 7
        assert all(isinstance(rule, InvalidRule) for rule in rules[:6])
        assert rules[6] == Comparison("RSI", ComparisonOperator.LT, value=30.0)
        assert rules[0].source == "entry.rules[0]"
        assert "Unsupported comparison operator" in rules[0].reason
        assert rules[1].reason == "needs value or compare_to"
        assert rules[2].reason == "missing indicator"

    @pytest.mark.parametrize(
        "malformed",
        [
            {"indicator": "RSI", "operator": "!=", "value": 99},
            {"indicator": "SMA_20", "operator": ">"},
            {"indicator": "RSI", "operator": ">", "value": "high"},
            {"operator": ">", "value": 10},
        ],
    )
    def test_should_fail_and_group_containing_malformed_rule(
        self, parser: StrategyConfigParser, malformed: dict
    ) -> None:
        """Test a malformed rule makes an AND entry false even when the other rule holds."""
        raw = json.dumps(
            {
                "entry": {
                    "logic": "AND",
                    "rules": [{"indicator": "RSI", "operator": "<", "value": 30}, malformed],
                }
            }
        )

        config = parser.parse(raw)
        snapshot = IndicatorSnapshot(rsi=20.0, sma_20=100.0)

        assert len(config.entry_rules.rules) == 2
        assert not RuleEvaluator().evaluate_entry(config, snapshot, 105.0)

    def test_should_ignore_malformed_rule_in_or_group(self, parser: StrategyConfigParser) -> None:
        """Test a malformed rule does not block a passing sibling under OR."""
        raw = json.dumps(
            {
                "exit": {
                    "logic": "OR",
                    "rules": [
                        {"indicator": "RSI", "operator": "!=", "value": 99},
                        {"indicator": "RSI", "operator": ">", "value": 70},
                    ],
                }
            }
        )

        config = parser.parse(raw)

        assert RuleEvaluator().evaluate(config.exit_rules, IndicatorSnapshot(rsi=75.0), 100.0)
        assert config.exit_rules.describe().startswith("(INVALID(")

    def test_should_ignore_out_of_range_position_values(self, parser: StrategyConfigParser) -> None:
        """Test invalid sizing falls back to defaults."""
        raw = json.dumps({"position": {"capital_pct": 150, "leverage": -1}})

        config = parser.parse(raw)

        assert config.position_size_pct == 25.0
        assert config.leverage == 1.0

    def test_should_default_invalid_indicator_entries(self, parser: StrategyConfigParser) -> None:
        """Test unknown kinds are skipped and bad periods become 14."""
        raw = json.dumps(
            {
                "indicators": [
                    {"type": "VWAP", "period": 10},
                    {"type": "EMA", "period": -5},
                    {"type": "SMA"},
                    {"period": 5},
                ]
            }
        )

        config = parser.parse(raw)

        assert config.indicators == [
            IndicatorSpec(IndicatorKind.EMA, 14),
            IndicatorSpec(IndicatorKind.SMA, 14),
        ]
        assert config.minimum_bars == 14

    def test_should_ignore_invalid_risk_values(self, parser: StrategyConfigParser) -> None:
        """Test risk thresholds outside their ranges are ignored."""
        raw = json.dumps({"risk": {"stop_loss_pct": 100, "take_profit_pct": 0}})

        config = parser.parse(raw)

        assert config.stop_loss_pct is None
        assert config.take_profit_pct is None

    def test_should_default_invalid_logic(self, parser: StrategyConfigParser) -> None:
        """Test unknown logic keeps the section default."""
        raw = json.dumps({"exit": {"logic": "XOR", "rules": []}})

        config = parser.parse(raw)

        assert config.exit_logic == LogicOperator.OR
