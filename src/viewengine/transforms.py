"""Named value transforms applied after path resolution.

A binding such as ``$.episode.releaseDate | date:MMM d | uppercase`` resolves
the path and then feeds the value through each transform left to right. A
transform spec is ``name`` or ``name:param``; only the first colon separates
the name, so ``date:HH:mm`` passes ``HH:mm`` as the parameter.

Transforms never break resolution: unknown names and unexpected input types
leave the value unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, tzinfo
from typing import overload
from zoneinfo import ZoneInfo

from viewengine.dates import format_date, parse_iso8601
from viewengine.errors import report
from viewengine.values import Array, Int, String, Value, parse_int_literal

Transform = Callable[[Value | None, str | None], Value | None]

ELLIPSIS = "…"
DEFAULT_DATE_FORMAT = "MMM d, yyyy"
DEFAULT_DURATION_FORMAT = "mm:ss"

# Reserved for condition pipes; identity inside a value pipeline.
CONDITION_OPERATORS = ("exists", "empty", "!empty")


def parse_spec(spec: str) -> tuple[str, str | None]:
	name, sep, param = spec.partition(":")
	return name.strip(" \t"), (param if sep and param else None)


def _trunc_div(a: int, b: int) -> int:
	q = abs(a) // abs(b)
	return q if (a >= 0) == (b > 0) else -q


def _trunc_mod(a: int, b: int) -> int:
	return a - b * _trunc_div(a, b)


def uppercase(value: Value | None, param: str | None) -> Value | None:
	if isinstance(value, String):
		return String(value.value.upper())
	return value


def lowercase(value: Value | None, param: str | None) -> Value | None:
	if isinstance(value, String):
		return String(value.value.lower())
	return value


def duration(value: Value | None, param: str | None) -> Value | None:
	ms = value.as_int() if value is not None else None
	if ms is None:
		return value
	fmt = param if param is not None else DEFAULT_DURATION_FORMAT
	total_seconds = _trunc_div(ms, 1000)
	hours = _trunc_div(total_seconds, 3600)
	minutes = _trunc_div(_trunc_mod(total_seconds, 3600), 60)
	seconds = _trunc_mod(total_seconds, 60)
	if "HH" in fmt or hours > 0:
		return String("%d:%02d:%02d" % (hours, minutes, seconds))
	return String("%d:%02d" % (minutes, seconds))


def join(value: Value | None, param: str | None) -> Value | None:
	if not isinstance(value, Array):
		return value
	separator = param if param is not None else ","
	parts = [item.value for item in value.value if isinstance(item, String)]
	return String(separator.join(parts))


def default(value: Value | None, param: str | None) -> Value | None:
	if value is None or value.is_null:
		return String(param or "")
	return value


def truncate(value: Value | None, param: str | None) -> Value | None:
	text = value.as_string() if value is not None else None
	length = parse_int_literal(param or "")
	if text is None or length is None or length < 0:
		return value
	if len(text) > length:
		return String(text[:length] + ELLIPSIS)
	return value


def count(value: Value | None, param: str | None) -> Value | None:
	if isinstance(value, Array):
		return Int(len(value))
	return Int(0)


def identity(value: Value | None, param: str | None) -> Value | None:
	return value


class TransformPipeline:
	"""Registry of transforms, selected by name from ``name:param`` specs."""

	tzinfo: tzinfo
	_transforms: dict[str, Transform]

	def __init__(self, *, timezone: str | tzinfo = "UTC", builtins: bool = True):
		if isinstance(timezone, str):
			self.tzinfo = UTC if timezone.upper() == "UTC" else ZoneInfo(timezone)
		else:
			self.tzinfo = timezone
		self._transforms = {}
		if builtins:
			self._register_builtins()

	def _register_builtins(self) -> None:
		self.register("date", self._date)
		self.register("duration", duration)
		self.register("uppercase", uppercase)
		self.register("lowercase", lowercase)
		self.register("join", join)
		self.register("default", default)
		self.register("truncate", truncate)
		self.register("count", count)
		for name in CONDITION_OPERATORS:
			self.register(name, identity)

	def _date(self, value: Value | None, param: str | None) -> Value | None:
		text = value.as_string() if value is not None else None
		if text is None:
			return value
		parsed = parse_iso8601(text)
		if parsed is None:
			return value
		pattern = param if param is not None else DEFAULT_DATE_FORMAT
		return String(format_date(parsed, pattern, self.tzinfo))

	@overload
	def register(self, name: str) -> Callable[[Transform], Transform]: ...
	@overload
	def register(self, name: str, fn: Transform) -> Transform: ...
	def register(
		self, name: str, fn: Transform | None = None
	) -> Transform | Callable[[Transform], Transform]:
		"""Register a transform; later registrations replace earlier ones.

		Usable directly or as a decorator::

			@pipeline.register("initials")
			def initials(value, param): ...
		"""

		def decorator(func: Transform) -> Transform:
			self._transforms[name] = func
			return func

		if fn is not None:
			return decorator(fn)
		return decorator

	def unregister(self, name: str) -> None:
		self._transforms.pop(name, None)

	def names(self) -> list[str]:
		return sorted(self._transforms)

	def __contains__(self, name: object) -> bool:
		return name in self._transforms

	def copy(self) -> TransformPipeline:
		clone = TransformPipeline(timezone=self.tzinfo, builtins=False)
		clone._transforms = dict(self._transforms)
		if clone._transforms.get("date") == self._date:
			clone._transforms["date"] = clone._date
		return clone

	def apply(self, spec: str, value: Value | None) -> Value | None:
		name, param = parse_spec(spec)
		fn = self._transforms.get(name)
		if fn is None:
			return value
		try:
			return fn(value, param)
		except Exception as exc:
			report(
				exc,
				code="transform",
				details={"transform": name, "param": param},
			)
			return value

	def apply_all(self, specs: Iterable[str], value: Value | None) -> Value | None:
		for spec in specs:
			value = self.apply(spec, value)
		return value


def default_pipeline() -> TransformPipeline:
	return TransformPipeline()


DEFAULT_TRANSFORMS = TransformPipeline()

__all__ = [
	"CONDITION_OPERATORS",
	"DEFAULT_TRANSFORMS",
	"ELLIPSIS",
	"Transform",
	"TransformPipeline",
	"default_pipeline",
	"parse_spec",
]
