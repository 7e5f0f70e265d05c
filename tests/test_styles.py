"""Tests for threshold, category and reference-line styling."""

from iotdash.domain.models import ReferenceLine, ThresholdRule
from iotdash.pipeline.styles import (
    DEFAULT_COLOR,
    DEFAULT_COLORS,
    DEFAULT_REFERENCE_LINE_COLOR,
    build_reference_lines,
    category_color,
    palette_color_map,
    threshold_color,
)

RULES = [
    ThresholdRule(operator=">", value=80, color="red"),
    ThresholdRule(operator=">", value=50, color="amber"),
]


def test_first_matching_rule_wins():
    """90 matches both rules; the first one is used."""
    assert threshold_color(90, RULES) == "red"
    assert threshold_color(60, RULES) == "amber"


def test_no_match_uses_default():
    """Unmatched values fall back to the given default, else the palette default."""
    assert threshold_color(10, RULES, "green") == "green"
    assert threshold_color(10, RULES) == DEFAULT_COLOR


def test_unknown_operator_is_skipped():
    """Malformed rules are skipped instead of raising."""
    rules = [ThresholdRule(operator="=>", value=0, color="bad"), *RULES]
    assert threshold_color(90, rules) == "red"


def test_non_numeric_value_uses_default():
    """None values never match a rule."""
    assert threshold_color(None, RULES, "green") == "green"


def test_palette_map_is_stable_across_orderings():
    """Sorted distinct names give the same color regardless of input order."""
    first = palette_color_map(["b", "a", "c"], DEFAULT_COLORS)
    second = palette_color_map(["c", "a", "b", "a"], DEFAULT_COLORS)
    assert first == second
    assert first["a"] == DEFAULT_COLORS[0]


def test_category_color_precedence():
    """Threshold, then semantic status, then palette map, then index."""
    color_map = {"Gateway": "#123456"}
    assert category_color("Gateway", 95, RULES, color_map, DEFAULT_COLORS, 0) == "red"
    assert category_color("Online", 1, RULES, color_map, DEFAULT_COLORS, 0) == "#10b981"
    assert category_color("Gateway", 1, RULES, color_map, DEFAULT_COLORS, 0) == "#123456"
    assert category_color("Other", 1, None, {}, ["#a", "#b"], 3) == "#b"


def test_reference_lines():
    """Constant lines carry y; statistic lines carry only their type."""
    specs = build_reference_lines(
        [
            ReferenceLine(name="Limit", type="constant", value=75.0, color="#000"),
            ReferenceLine(type="average"),
            ReferenceLine(type="constant"),
            ReferenceLine(type="median"),
        ]
    )
    assert [(s.type, s.y) for s in specs] == [("constant", 75.0), ("average", None)]
    assert specs[0].color == "#000"
    assert specs[1].color == DEFAULT_REFERENCE_LINE_COLOR
