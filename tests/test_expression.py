"""Tests for the restricted arithmetic expression evaluator."""

import pytest

from iotdash.domain.utils.expression import (
    MAX_NESTING,
    ExpressionError,
    compare,
    evaluate_expression,
    parse_expression,
    tokenize,
)


def test_fahrenheit_conversion():
    """temperature*1.8+32 at 20 degrees is 68."""
    assert evaluate_expression("temperature*1.8+32", {"temperature": 20.0}) == pytest.approx(68.0)


def test_operator_precedence_and_parentheses():
    """Multiplication binds tighter than addition; parentheses override."""
    assert evaluate_expression("1 + 2 * 3", {}) == 7.0
    assert evaluate_expression("(1 + 2) * 3", {}) == 9.0


def test_unary_minus():
    """Unary minus applies to atoms and nested unary operators."""
    assert evaluate_expression("-a + 5", {"a": 2.0}) == 3.0
    assert evaluate_expression("--a", {"a": 2.0}) == 2.0


def test_comparison_yields_one_or_zero():
    """Comparisons evaluate to 1.0 or 0.0 with lowest precedence."""
    assert evaluate_expression("cpu > 80", {"cpu": 90.0}) == 1.0
    assert evaluate_expression("cpu + 10 <= 80", {"cpu": 75.0}) == 0.0


def test_exponent_literals():
    """Scientific notation is accepted."""
    assert evaluate_expression("1.5e2 / 3", {}) == 50.0


def test_unknown_variable_recovers_to_zero():
    """Referencing a missing variable yields 0 instead of raising."""
    assert evaluate_expression("humidity * 2", {"temperature": 1.0}) == 0.0


def test_division_by_zero_recovers_to_zero():
    """Division by zero yields 0."""
    assert evaluate_expression("a / b", {"a": 1.0, "b": 0.0}) == 0.0


@pytest.mark.parametrize(
    "text",
    ["", "a +", "(a + 1", "a + 1)", "__import__('os')", "a ** 2", "a; b"],
)
def test_malformed_expressions_recover_to_zero(text):
    """Anything outside the grammar evaluates to 0."""
    assert evaluate_expression(text, {"a": 1.0, "b": 2.0}) == 0.0


def test_parse_raises_expression_error():
    """The strict API raises ExpressionError, a ValueError."""
    with pytest.raises(ExpressionError):
        parse_expression("a +")
    assert issubclass(ExpressionError, ValueError)


def test_parse_cache_returns_same_tree():
    """Parsed trees are cached by source text."""
    assert parse_expression("x * 2") is parse_expression("x * 2")


def test_variables_are_reported():
    """The parsed tree lists the identifiers it reads."""
    assert sorted(parse_expression("a * b + a").variables()) == ["a", "a", "b"]


def test_tokenize_rejects_unknown_characters():
    """Characters outside the grammar are rejected at tokenization."""
    with pytest.raises(ExpressionError):
        tokenize("a & b")


def test_compare_unknown_operator_is_false():
    """Unknown comparison operators never match."""
    assert compare(1.0, "=>", 0.0) is False
    assert compare(1.0, "!=", 0.0) is True


def test_nesting_limit():
    """Nesting beyond the limit is a parse error, not a recursion crash."""
    inside = "(" * MAX_NESTING + "a" + ")" * MAX_NESTING
    assert parse_expression(inside).evaluate({"a": 2.0}) == 2.0
    with pytest.raises(ExpressionError):
        parse_expression("(" + inside + ")")
    with pytest.raises(ExpressionError):
        parse_expression("-" * (MAX_NESTING + 1) + "a")
    assert evaluate_expression("(" * 5000 + "a" + ")" * 5000, {"a": 1.0}) == 0.0
