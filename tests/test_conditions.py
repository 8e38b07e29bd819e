import pytest
import viewengine as ve
from helpers import ctx


def test_equality():
	assert ve.evaluate("$.status == 'active'", ctx({"status": "active"}))
	assert not ve.evaluate("$.status == 'active'", ctx({"status": "inactive"}))
	assert ve.evaluate("$.status != 'active'", ctx({"status": "inactive"}))


def test_equality_compares_text_forms():
	context = ctx({"count": 42, "flag": True, "ratio": 1.5})
	assert ve.evaluate("$.count == 42", context)
	assert ve.evaluate("$.count == '42'", context)
	assert ve.evaluate("$.flag == true", context)
	assert ve.evaluate("$.flag == 'true'", context)
	assert ve.evaluate("$.ratio == 1.5", context)
	assert not ve.evaluate("$.count == 42.0", context)


def test_equality_with_absent_operands():
	context = ctx({"items": [1]})
	assert ve.evaluate("$.missing == $.also_missing", context)
	assert not ve.evaluate("$.missing == 'x'", context)
	assert ve.evaluate("$.missing != 'x'", context)
	assert ve.evaluate("$.items == $.items", context)


def test_ordering():
	context = ctx({"count": 150})
	assert ve.evaluate("$.count > 100", context)
	assert not ve.evaluate("$.count > 200", context)
	assert ve.evaluate("$.count < 200", context)
	assert ve.evaluate("$.count <= 150", context)


def test_greater_or_equal_is_not_misparsed_as_greater():
	context = ctx({"count": 100})
	assert ve.evaluate("$.count >= 100", context)
	assert ve.evaluate("$.count <= 100", context)
	assert not ve.evaluate("$.count > 100", context)


@pytest.mark.parametrize(
	"condition,expected",
	[
		("$.count < 'abc'", False),
		("$.count > 'abc'", False),
		("$.count <= 'abc'", True),
		("$.count >= 'abc'", True),
		("$.missing >= 1", True),
	],
)
def test_non_numeric_ordering_compares_as_equal(condition: str, expected: bool):
	assert ve.evaluate(condition, ctx({"count": 5})) is expected


def test_pipe_operators():
	context = ctx({"name": "test", "items": [], "full": [1], "nothing": None})
	assert ve.evaluate("$.name | exists", context)
	assert not ve.evaluate("$.missing | exists", context)
	assert not ve.evaluate("$.nothing | exists", context)
	assert ve.evaluate("$.items | empty", context)
	assert not ve.evaluate("$.name | empty", context)
	assert ve.evaluate("$.full | !empty", context)
	assert ve.evaluate("$.missing | empty", context)


def test_pipe_with_other_operator_falls_through_to_truthiness():
	context = ctx({"name": "test", "blank": ""})
	assert ve.evaluate("$.name | uppercase", context)
	assert not ve.evaluate("$.blank | uppercase", context)


def test_truthy_binding_and_free_text():
	context = ctx({"flag": True, "off": False, "zero": 0, "text": "x"})
	assert ve.evaluate("$.flag", context)
	assert not ve.evaluate("$.off", context)
	assert not ve.evaluate("$.zero", context)
	assert ve.evaluate("  $.text  ", context)
	assert not ve.evaluate("$.missing", context)
	assert not ve.evaluate("true", context)
	assert not ve.evaluate("", context)


def test_operators_need_surrounding_spaces():
	context = ctx({"count": 5})
	assert ve.evaluate("$.count>1", context) is False


def test_literal_operands():
	context = ctx({"label": "x y"})
	assert ve.evaluate("$.label == 'x y'", context)
	assert ve.evaluate("2 > 1", context)
	assert ve.evaluate("1.5 < 2", context)
	assert ve.evaluate("bare == 'bare'", context)


def test_empty_and_truthy_predicates():
	assert ve.is_empty(ve.Array([]))
	assert ve.is_empty(ve.String(""))
	assert ve.is_empty(None)
	assert ve.is_empty(ve.NULL)
	assert ve.is_empty(ve.Object({}))
	assert not ve.is_empty(ve.Int(0))
	assert not ve.is_empty(ve.Bool(False))
	assert not ve.is_truthy(ve.Bool(False))
	assert not ve.is_truthy(ve.Int(0))
	assert not ve.is_truthy(ve.Double(0.0))
	assert ve.is_truthy(ve.String("x"))
	assert ve.is_truthy(ve.Array([ve.NULL]))
	assert not ve.is_truthy(None)


def test_evaluator_object():
	evaluator = ve.ConditionEvaluator()
	assert evaluator.evaluate("$.n > 1", ctx({"n": 2}))
