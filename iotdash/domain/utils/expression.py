"""
Restricted arithmetic expression evaluation for calculated fields.

Calculated fields are authored as small arithmetic strings over other metric
keys (e.g., ``"temperature * 1.8 + 32"``). Expressions are tokenized and
parsed into an immutable tree over a fixed grammar; no general-purpose
interpreter ever sees user-authored text.

Grammar
-------
::

    comparison := sum ((">" | ">=" | "<" | "<=" | "==" | "!=") sum)?
    sum        := product (("+" | "-") product)*
    product    := unary (("*" | "/") unary)*
    unary      := ("+" | "-") unary | atom
    atom       := NUMBER | IDENTIFIER | "(" comparison ")"

Comparisons evaluate to ``1.0`` or ``0.0`` so they compose with arithmetic.
Parentheses and unary signs nest at most ``MAX_NESTING`` levels.
"""

from __future__ import annotations

import abc
import logging
import operator
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from ...utils.cache import Cache
from .validation import is_valid_float

logger = logging.getLogger(__name__)

MAX_NESTING = 64


class ExpressionError(ValueError):
    """Raised for malformed expressions or failed evaluation."""


COMPARISON_OPERATORS: Dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
}

_ARITHMETIC_OPERATORS: Dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
}


def compare(left: float, op: str, right: float) -> bool:
    """
    Apply a comparison operator by its symbol.

    Shared by threshold coloring and alarm evaluation so both interpret the
    operator set identically.

    Parameters
    ----------
    left : float
        Left operand (usually the observed value)
    op : str
        One of ``>``, ``>=``, ``<``, ``<=``, ``==``, ``!=``
    right : float
        Right operand (usually the configured threshold)

    Returns
    -------
    bool
        Result of the comparison; ``False`` for an unknown operator

    Examples
    --------
    >>> compare(90.0, ">", 80.0)
    True
    >>> compare(90.0, "=>", 80.0)
    False
    """
    fn = COMPARISON_OPERATORS.get(op)
    if fn is None:
        return False
    return bool(fn(left, right))


# ============================================================================
# Expression tree
# ============================================================================


class Expression(abc.ABC):
    """Parsed expression node."""

    @abc.abstractmethod
    def evaluate(self, context: Mapping[str, float]) -> float: ...

    @abc.abstractmethod
    def variables(self) -> Iterable[str]: ...


@dataclass(frozen=True)
class Constant(Expression):
    value: float

    def evaluate(self, context: Mapping[str, float]) -> float:
        return self.value

    def variables(self) -> Iterable[str]:
        return ()


@dataclass(frozen=True)
class Variable(Expression):
    name: str

    def evaluate(self, context: Mapping[str, float]) -> float:
        try:
            return float(context[self.name])
        except KeyError as exc:
            raise ExpressionError(f"Unknown variable: {self.name}") from exc
        except (TypeError, ValueError) as exc:
            raise ExpressionError(f"Non-numeric variable: {self.name}") from exc

    def variables(self) -> Iterable[str]:
        return (self.name,)


@dataclass(frozen=True)
class Negate(Expression):
    operand: Expression

    def evaluate(self, context: Mapping[str, float]) -> float:
        return -self.operand.evaluate(context)

    def variables(self) -> Iterable[str]:
        return self.operand.variables()


@dataclass(frozen=True)
class BinaryOp(Expression):
    symbol: str
    left: Expression
    right: Expression

    def evaluate(self, context: Mapping[str, float]) -> float:
        lhs = self.left.evaluate(context)
        rhs = self.right.evaluate(context)
        if self.symbol in COMPARISON_OPERATORS:
            return 1.0 if compare(lhs, self.symbol, rhs) else 0.0
        try:
            return _ARITHMETIC_OPERATORS[self.symbol](lhs, rhs)
        except ZeroDivisionError as exc:
            raise ExpressionError("Division by zero") from exc

    def variables(self) -> Iterable[str]:
        return (*self.left.variables(), *self.right.variables())


# ============================================================================
# Tokenizer and parser
# ============================================================================

_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>>=|<=|==|!=|[-+*/()<>])"
    r")"
)

Token = Tuple[str, str]


def tokenize(text: str) -> List[Token]:
    """Split ``text`` into ``(kind, value)`` tokens.

    Raises
    ------
    ExpressionError
        On any character outside the grammar.
    """
    tokens: List[Token] = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None or match.end() == pos:
            raise ExpressionError(f"Unexpected character at {pos}: {text[pos]!r}")
        kind = match.lastgroup
        if kind is None:
            raise ExpressionError(f"Unexpected character at {pos}: {text[pos]!r}")
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, tokens: List[Token]) -> None:
        self._tokens = tokens
        self._pos = 0
        self._depth = 0

    def _enter(self) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING:
            raise ExpressionError(f"Expression nested deeper than {MAX_NESTING} levels")

    def _peek(self) -> Optional[Token]:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _take(self) -> Token:
        tok = self._peek()
        if tok is None:
            raise ExpressionError("Unexpected end of expression")
        self._pos += 1
        return tok

    def _accept_op(self, *symbols: str) -> Optional[str]:
        tok = self._peek()
        if tok is not None and tok[0] == "op" and tok[1] in symbols:
            self._pos += 1
            return tok[1]
        return None

    def parse(self) -> Expression:
        if not self._tokens:
            raise ExpressionError("Empty expression")
        node = self._comparison()
        trailing = self._peek()
        if trailing is not None:
            raise ExpressionError(f"Unexpected token: {trailing[1]!r}")
        return node

    def _comparison(self) -> Expression:
        node = self._sum()
        symbol = self._accept_op(*COMPARISON_OPERATORS)
        if symbol is not None:
            node = BinaryOp(symbol, node, self._sum())
        return node

    def _sum(self) -> Expression:
        node = self._product()
        while True:
            symbol = self._accept_op("+", "-")
            if symbol is None:
                return node
            node = BinaryOp(symbol, node, self._product())

    def _product(self) -> Expression:
        node = self._unary()
        while True:
            symbol = self._accept_op("*", "/")
            if symbol is None:
                return node
            node = BinaryOp(symbol, node, self._unary())

    def _unary(self) -> Expression:
        symbol = self._accept_op("+", "-")
        if symbol is None:
            return self._atom()
        self._enter()
        operand = self._unary()
        self._depth -= 1
        return Negate(operand) if symbol == "-" else operand

    def _atom(self) -> Expression:
        kind, value = self._take()
        if kind == "number":
            return Constant(float(value))
        if kind == "name":
            return Variable(value)
        if value == "(":
            self._enter()
            node = self._comparison()
            if self._accept_op(")") is None:
                raise ExpressionError("Missing closing parenthesis")
            self._depth -= 1
            return node
        raise ExpressionError(f"Unexpected token: {value!r}")


_parsed: Cache[str, Expression] = Cache(maxsize=512)


def parse_expression(text: str) -> Expression:
    """
    Parse an expression string into an evaluable tree.

    Parsed trees are cached by source text; they are immutable so sharing is
    safe.

    Raises
    ------
    ExpressionError
        If the text does not match the grammar.

    Examples
    --------
    >>> parse_expression("temperature * 1.8 + 32").evaluate({"temperature": 20})
    68.0
    """
    cached = _parsed.get(text)
    if cached is not None:
        return cached
    node = _Parser(tokenize(text)).parse()
    _parsed.set(text, node)
    return node


def evaluate_expression(expression: str, context: Mapping[str, float]) -> float:
    """
    Evaluate ``expression`` against ``context``, recovering every failure to 0.

    Parameters
    ----------
    expression : str
        Arithmetic expression referencing context keys as bare identifiers
    context : Mapping[str, float]
        Variable values

    Returns
    -------
    float
        Result, or ``0.0`` when parsing/evaluation fails or yields NaN/inf

    Examples
    --------
    >>> evaluate_expression("a / b", {"a": 1.0, "b": 0.0})
    0.0
    >>> evaluate_expression("a +", {"a": 1.0})
    0.0
    """
    try:
        result = parse_expression(expression).evaluate(context)
    except (ExpressionError, RecursionError) as exc:
        logger.debug(
            "expression.failed",
            extra={"expression": expression, "error": str(exc)},
        )
        return 0.0
    if not is_valid_float(result):
        logger.debug(
            "expression.non_finite",
            extra={"expression": expression, "result": str(result)},
        )
        return 0.0
    return result
