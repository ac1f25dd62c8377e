"""Storage-agnostic expression trees for proximity filtering and ordering.

The query builder describes its distance score and filter conditions as data
instead of SQL text. Storage adapters then either evaluate the tree against
in-memory rows (``evaluate``) or render it in their own query language
(``SQLRenderer`` for DB-API databases).
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from ryandata_geocode_utils.models.enums import SortDirection


@dataclass(frozen=True)
class Field:
    """Reference to a column of the row being evaluated."""

    name: str


@dataclass(frozen=True)
class Literal:
    """Constant value."""

    value: Any


@dataclass(frozen=True)
class Func:
    """Function call, e.g. ``COS(RADIANS(x))``."""

    name: str
    args: tuple[Expression, ...]


@dataclass(frozen=True)
class BinaryOp:
    """Arithmetic operation: ``+``, ``-``, ``*`` or ``/``."""

    op: str
    left: Expression
    right: Expression


@dataclass(frozen=True)
class Comparison:
    """Boolean comparison used as a filter condition."""

    op: str
    left: Expression
    right: Expression


@dataclass(frozen=True)
class OrderBy:
    """Ordering key and direction."""

    expression: Expression
    direction: SortDirection = SortDirection.ASC


Expression = Field | Literal | Func | BinaryOp | Comparison

COMPARISON_OPERATORS = ("=", "!=", "<", "<=", ">", ">=")


# -----------------------------------------------------------------------------
# Builders
# -----------------------------------------------------------------------------


def field(name: str) -> Field:
    return Field(name)


def literal(value: Any) -> Literal:
    return Literal(value)


def func(name: str, *args: Expression) -> Func:
    name = name.upper()
    if name not in FUNCTIONS:
        raise ValueError(f"Unsupported function: {name}")
    return Func(name, tuple(args))


def add(left: Expression, right: Expression) -> BinaryOp:
    return BinaryOp("+", left, right)


def sub(left: Expression, right: Expression) -> BinaryOp:
    return BinaryOp("-", left, right)


def mul(left: Expression, right: Expression) -> BinaryOp:
    return BinaryOp("*", left, right)


def compare(left: Expression, op: str, right: Expression) -> Comparison:
    if op not in COMPARISON_OPERATORS:
        raise ValueError(f"Unsupported comparison operator: {op}")
    return Comparison(op, left, right)


def equals(name: str, value: Any) -> Comparison:
    """Equality filter on a column."""
    return Comparison("=", Field(name), Literal(value))


# -----------------------------------------------------------------------------
# In-memory evaluation
# -----------------------------------------------------------------------------


def round_half_away(value: float, digits: int = 0) -> float:
    """Round like SQL ROUND: halves go away from zero.

    Python's round() uses banker's rounding on the binary value, which would
    disagree with database ROUND() on values such as 2.5.
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


FUNCTIONS: dict[str, Callable[..., Any]] = {
    "RADIANS": math.radians,
    "SIN": math.sin,
    "COS": math.cos,
    "SQRT": math.sqrt,
    "POW": math.pow,
    "ROUND": round_half_away,
}

_ARITHMETIC: dict[str, Callable[[Any, Any], Any]] = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": lambda a, b: a / b,
}

_COMPARISONS: dict[str, Callable[[Any, Any], bool]] = {
    "=": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
}


def _to_number(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return value
    return value


def evaluate(expression: Expression, row: Mapping[str, Any]) -> Any:
    """Evaluate an expression against one row.

    NULL semantics follow SQL: a missing or None operand makes the result
    None, and a comparison involving None is false.

    Args:
        expression: Expression tree.
        row: Column values of the row.

    Returns:
        The computed value (bool for comparisons).
    """
    if isinstance(expression, Field):
        return row.get(expression.name)
    if isinstance(expression, Literal):
        return expression.value
    if isinstance(expression, Func):
        args = [evaluate(arg, row) for arg in expression.args]
        if any(arg is None or arg == "" for arg in args):
            return None
        return FUNCTIONS[expression.name](*(_to_number(arg) for arg in args))
    if isinstance(expression, BinaryOp):
        left = evaluate(expression.left, row)
        right = evaluate(expression.right, row)
        if left is None or right is None:
            return None
        return _ARITHMETIC[expression.op](_to_number(left), _to_number(right))
    if isinstance(expression, Comparison):
        left = evaluate(expression.left, row)
        right = evaluate(expression.right, row)
        if left is None or right is None:
            return False
        if isinstance(left, (int, float)) or isinstance(right, (int, float)):
            left, right = _to_number(left), _to_number(right)
        try:
            return _COMPARISONS[expression.op](left, right)
        except TypeError:
            return False
    raise TypeError(f"Not an expression: {expression!r}")


def matches(conditions: Mapping[str, Expression] | list[Expression], row: Mapping[str, Any]) -> bool:
    """True when the row satisfies every condition."""
    values = conditions.values() if isinstance(conditions, Mapping) else conditions
    return all(evaluate(condition, row) for condition in values)


# -----------------------------------------------------------------------------
# SQL rendering
# -----------------------------------------------------------------------------


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class SQLRenderer:
    """Renders expression trees as parameterised SQL.

    Literals become placeholders (``?`` by default) and the values are
    collected in ``params`` in rendering order.

    Example:
        >>> renderer = SQLRenderer()
        >>> renderer.render(compare(func("ROUND", field("lat"), literal(4)), "!=", literal(1.5)))
        'ROUND("lat", ?) != ?'
        >>> renderer.params
        [4, 1.5]
    """

    def __init__(
        self,
        placeholder: str = "?",
        quote: Callable[[str], str] = quote_identifier,
        function_names: Mapping[str, str] | None = None,
    ) -> None:
        self._placeholder = placeholder
        self._quote = quote
        self._function_names = dict(function_names or {})
        self.params: list[Any] = []

    def reset(self) -> None:
        self.params = []

    def render(self, expression: Expression) -> str:
        if isinstance(expression, Field):
            return self._quote(expression.name)
        if isinstance(expression, Literal):
            self.params.append(expression.value)
            return self._placeholder
        if isinstance(expression, Func):
            name = self._function_names.get(expression.name, expression.name)
            args = ", ".join(self.render(arg) for arg in expression.args)
            return f"{name}({args})"
        if isinstance(expression, (BinaryOp, Comparison)):
            left = self._render_operand(expression.left)
            right = self._render_operand(expression.right)
            return f"{left} {expression.op} {right}"
        raise TypeError(f"Not an expression: {expression!r}")

    def _render_operand(self, expression: Expression) -> str:
        rendered = self.render(expression)
        if isinstance(expression, (BinaryOp, Comparison)):
            return f"({rendered})"
        return rendered

    def render_conditions(self, conditions: Mapping[str, Expression] | list[Expression]) -> str:
        """Join conditions with AND; an empty set renders as ``1 = 1``."""
        values = list(conditions.values() if isinstance(conditions, Mapping) else conditions)
        if not values:
            return "1 = 1"
        return " AND ".join(f"({self.render(condition)})" for condition in values)

    def render_order(self, order: OrderBy) -> str:
        return f"{self.render(order.expression)} {order.direction.value}"
