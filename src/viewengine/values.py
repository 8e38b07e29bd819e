"""Tagged JSON values.

Every piece of authored content (props, action parameters, context data) is
represented as one of a closed set of variants. Coercions are lossy and
directional and return ``None`` when the variant has no sensible reading in
the requested type; callers treat ``None`` as "absent", never as an error.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias, override

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1

_INT_LITERAL = re.compile(r"[+-]?[0-9]+")

JsonLike: TypeAlias = (
	str | int | float | bool | None | list["JsonLike"] | dict[str, "JsonLike"]
)


def parse_int_literal(text: str) -> int | None:
	"""Strict integer literal: optional sign and ASCII digits, nothing else."""
	if not _INT_LITERAL.fullmatch(text):
		return None
	parsed = int(text)
	if parsed < I64_MIN or parsed > I64_MAX:
		return None
	return parsed


def parse_float_literal(text: str) -> float | None:
	if not text or text != text.strip() or "_" in text:
		return None
	try:
		return float(text)
	except ValueError:
		return None


class Value:
	"""Base class of the tagged value variants."""

	__slots__ = ()

	def as_string(self) -> str | None:
		return None

	def as_int(self) -> int | None:
		return None

	def as_double(self) -> float | None:
		return None

	def as_bool(self) -> bool | None:
		return None

	def as_array(self) -> list[Value] | None:
		return None

	def as_object(self) -> dict[str, Value] | None:
		return None

	@property
	def is_null(self) -> bool:
		return False

	def display(self) -> str:
		"""Text shown when the value is bound into a string slot."""
		text = self.as_string()
		return text if text is not None else ""

	def to_python(self) -> JsonLike:
		raise NotImplementedError


@dataclass(frozen=True, slots=True)
class String(Value):
	value: str

	@override
	def as_string(self) -> str | None:
		return self.value

	@override
	def as_int(self) -> int | None:
		return parse_int_literal(self.value)

	@override
	def as_double(self) -> float | None:
		return parse_float_literal(self.value)

	@override
	def as_bool(self) -> bool | None:
		return self.value == "true"

	@override
	def to_python(self) -> JsonLike:
		return self.value


@dataclass(frozen=True, slots=True)
class Int(Value):
	value: int

	@override
	def as_string(self) -> str | None:
		return str(self.value)

	@override
	def as_int(self) -> int | None:
		return self.value

	@override
	def as_double(self) -> float | None:
		return float(self.value)

	@override
	def as_bool(self) -> bool | None:
		return self.value != 0

	@override
	def to_python(self) -> JsonLike:
		return self.value


@dataclass(frozen=True, slots=True)
class Double(Value):
	value: float

	@override
	def as_string(self) -> str | None:
		return repr(self.value)

	@override
	def as_int(self) -> int | None:
		if not math.isfinite(self.value):
			return None
		truncated = int(self.value)
		if truncated < I64_MIN or truncated > I64_MAX:
			return None
		return truncated

	@override
	def as_double(self) -> float | None:
		return self.value

	@override
	def to_python(self) -> JsonLike:
		return self.value


@dataclass(frozen=True, slots=True)
class Bool(Value):
	value: bool

	@override
	def as_string(self) -> str | None:
		return "true" if self.value else "false"

	@override
	def as_bool(self) -> bool | None:
		return self.value

	@override
	def to_python(self) -> JsonLike:
		return self.value


@dataclass(frozen=True, slots=True, init=False)
class Array(Value):
	value: tuple[Value, ...]

	def __init__(self, value: Iterable[Value] = ()) -> None:
		object.__setattr__(self, "value", tuple(value))

	@override
	def as_array(self) -> list[Value] | None:
		return list(self.value)

	@override
	def display(self) -> str:
		return _compact_json(self.to_python())

	@override
	def to_python(self) -> JsonLike:
		return [item.to_python() for item in self.value]

	def __len__(self) -> int:
		return len(self.value)


@dataclass(frozen=True, slots=True, init=False)
class Object(Value):
	value: dict[str, Value]

	def __init__(self, value: Mapping[str, Value] | None = None) -> None:
		object.__setattr__(self, "value", dict(value or {}))

	@override
	def as_object(self) -> dict[str, Value] | None:
		return dict(self.value)

	def get(self, key: str) -> Value | None:
		return self.value.get(key)

	@override
	def __hash__(self) -> int:
		return hash(frozenset(self.value.items()))

	@override
	def display(self) -> str:
		return _compact_json(self.to_python())

	@override
	def to_python(self) -> JsonLike:
		return {key: item.to_python() for key, item in self.value.items()}

	def __len__(self) -> int:
		return len(self.value)


@dataclass(frozen=True, slots=True)
class Null(Value):
	@property
	@override
	def is_null(self) -> bool:
		return True

	@override
	def to_python(self) -> JsonLike:
		return None


NULL = Null()


def from_python(obj: Any) -> Value:
	"""Convert JSON-like Python data into a tagged value.

	Values that have no JSON counterpart fall back to their ``str()`` text.
	"""
	if isinstance(obj, Value):
		return obj
	if obj is None:
		return NULL
	if isinstance(obj, bool):
		return Bool(obj)
	if isinstance(obj, int):
		if obj < I64_MIN or obj > I64_MAX:
			return Double(float(obj))
		return Int(obj)
	if isinstance(obj, float):
		return Double(obj)
	if isinstance(obj, str):
		return String(obj)
	if isinstance(obj, Mapping):
		return Object({str(k): from_python(v) for k, v in obj.items()})
	if isinstance(obj, (list, tuple)):
		return Array(from_python(item) for item in obj)
	return String(str(obj))


def from_python_dict(data: Mapping[str, Any] | None) -> dict[str, Value]:
	if not data:
		return {}
	return {str(k): from_python(v) for k, v in data.items()}


def _compact_json(data: JsonLike) -> str:
	return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


__all__ = [
	"NULL",
	"Array",
	"Bool",
	"Double",
	"Int",
	"JsonLike",
	"Null",
	"Object",
	"String",
	"Value",
	"from_python",
	"from_python_dict",
	"parse_float_literal",
	"parse_int_literal",
]
