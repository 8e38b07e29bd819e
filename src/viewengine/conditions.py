"""Visibility conditions.

Conditions are tried in this order against the trimmed text:

1. ``$.path | exists``, ``$.path | empty``, ``$.path | !empty``
2. ``lhs OP rhs`` for OP in ``==, !=, >=, <=, >, <`` (each surrounded by single
   spaces, first operator in that order wins)
3. a bare ``$`` binding, checked for truthiness
4. anything else is false

Equality compares both sides as text when both have a text form, so
``$.count == '42'`` matches ``Int(42)``. Ordering comparisons read both sides
as numbers; when either side is not numeric they compare as equal, which makes
``<``/``>`` false and ``<=``/``>=`` true.
"""

from __future__ import annotations

import logging
from typing import Literal

from viewengine.context import PIPE, DataContext, trim
from viewengine.values import (
	Array,
	Bool,
	Double,
	Int,
	Object,
	String,
	Value,
	parse_float_literal,
	parse_int_literal,
)

logger = logging.getLogger(__name__)

Ordering = Literal[-1, 0, 1]

COMPARISON_OPERATORS = ("==", "!=", ">=", "<=", ">", "<")


def is_empty(value: Value | None) -> bool:
	if value is None or value.is_null:
		return True
	if isinstance(value, String):
		return value.value == ""
	if isinstance(value, (Array, Object)):
		return len(value) == 0
	return False


def is_truthy(value: Value | None) -> bool:
	if value is None or value.is_null:
		return False
	if isinstance(value, Bool):
		return value.value
	if isinstance(value, (Int, Double)):
		return value.value != 0
	if isinstance(value, String):
		return value.value != ""
	if isinstance(value, (Array, Object)):
		return len(value) > 0
	return False


def resolve_operand(operand: str, context: DataContext) -> Value | None:
	trimmed = trim(operand)
	if trimmed.startswith("$"):
		return context.resolve(trimmed)
	if trimmed.startswith("'") and trimmed.endswith("'"):
		return String(trimmed[1:-1])
	as_int = parse_int_literal(trimmed)
	if as_int is not None:
		return Int(as_int)
	as_float = parse_float_literal(trimmed)
	if as_float is not None:
		return Double(as_float)
	if trimmed == "true":
		return Bool(True)
	if trimmed == "false":
		return Bool(False)
	return String(trimmed)


def values_equal(lhs: Value | None, rhs: Value | None) -> bool:
	if lhs is None and rhs is None:
		return True
	if lhs is None or rhs is None:
		return False
	left_text, right_text = lhs.as_string(), rhs.as_string()
	if left_text is not None and right_text is not None:
		return left_text == right_text
	return lhs == rhs


def compare_numeric(lhs: Value | None, rhs: Value | None) -> Ordering:
	left = lhs.as_double() if lhs is not None else None
	right = rhs.as_double() if rhs is not None else None
	if left is None or right is None:
		return 0
	if left < right:
		return -1
	if left > right:
		return 1
	return 0


def compare(lhs: Value | None, op: str, rhs: Value | None) -> bool:
	match op:
		case "==":
			return values_equal(lhs, rhs)
		case "!=":
			return not values_equal(lhs, rhs)
		case ">":
			return compare_numeric(lhs, rhs) == 1
		case "<":
			return compare_numeric(lhs, rhs) == -1
		case ">=":
			return compare_numeric(lhs, rhs) >= 0
		case "<=":
			return compare_numeric(lhs, rhs) <= 0
		case _:
			return False


def evaluate(condition: str, context: DataContext) -> bool:
	trimmed = trim(condition)

	if PIPE in trimmed:
		parts = trimmed.split(PIPE)
		path, op = trim(parts[0]), trim(parts[1])
		value = context.resolve(path)
		if op == "exists":
			return value is not None and not value.is_null
		if op == "empty":
			return is_empty(value)
		if op == "!empty":
			return not is_empty(value)

	for op in COMPARISON_OPERATORS:
		lhs, sep, rhs = trimmed.partition(f" {op} ")
		if sep:
			return compare(
				resolve_operand(lhs, context), op, resolve_operand(rhs, context)
			)

	if trimmed.startswith("$"):
		return is_truthy(context.resolve(trimmed))

	logger.debug("Condition %r is not an expression; treating as false", condition)
	return False


class ConditionEvaluator:
	"""Object form of ``evaluate`` for hosts that inject collaborators."""

	def evaluate(self, condition: str, context: DataContext) -> bool:
		return evaluate(condition, context)


__all__ = [
	"COMPARISON_OPERATORS",
	"ConditionEvaluator",
	"compare",
	"compare_numeric",
	"evaluate",
	"is_empty",
	"is_truthy",
	"resolve_operand",
	"values_equal",
]
