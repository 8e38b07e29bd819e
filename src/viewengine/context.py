"""Scoped data contexts that bindings resolve against.

A context holds its own bindings and an optional read-through reference to
its parent. Lookups search the own bindings first and only then walk up the
chain, so a child binding always shadows the same key in any ancestor.
Writes (``set``/``assign``) only ever touch the context they are called on.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from viewengine.transforms import DEFAULT_TRANSFORMS, TransformPipeline
from viewengine.values import NULL, Array, Object, String, Value, parse_int_literal

logger = logging.getLogger(__name__)

PIPE = " | "


def trim(text: str) -> str:
	return text.strip(" \t")


class DataContext:
	data: dict[str, Value]
	parent: DataContext | None
	transforms: TransformPipeline

	def __init__(
		self,
		data: Mapping[str, Value] | None = None,
		parent: DataContext | None = None,
		*,
		transforms: TransformPipeline | None = None,
	) -> None:
		self.data = dict(data or {})
		self.parent = parent
		if transforms is None:
			transforms = parent.transforms if parent is not None else DEFAULT_TRANSFORMS
		self.transforms = transforms

	def __repr__(self) -> str:
		return f"DataContext(keys={sorted(self.data)!r}, parent={self.parent is not None})"

	def child(self, bindings: Mapping[str, Value] | None = None) -> DataContext:
		return DataContext(bindings, parent=self)

	def set(self, key: str, value: Value) -> None:
		self.data[key] = value

	def all_data(self) -> dict[str, Value]:
		"""Flattened view of the whole chain; child bindings win."""
		merged = self.parent.all_data() if self.parent is not None else {}
		merged.update(self.data)
		return merged

	# Resolution

	def resolve(self, path: str) -> Value | None:
		"""Resolve ``$``-paths, optionally followed by `` | transform`` specs.

		Returns None when the path does not address anything.
		"""
		trimmed = trim(path)
		if PIPE in trimmed:
			base, *specs = trimmed.split(PIPE)
			value = self._resolve_path(trim(base))
			return self.transforms.apply_all((trim(spec) for spec in specs), value)
		return self._resolve_path(trimmed)

	def _resolve_path(self, path: str) -> Value | None:
		if not path.startswith("$"):
			return None
		if path == "$":
			return Object(self.all_data())
		key_path = path[2:] if path.startswith("$.") else path[1:]
		components = [part for part in key_path.split(".") if part]
		if not components:
			return None
		return self._lookup(components)

	def _lookup(self, components: list[str]) -> Value | None:
		ctx: DataContext | None = self
		first, rest = components[0], components[1:]
		while ctx is not None:
			if first in ctx.data:
				return _dig(ctx.data[first], rest)
			ctx = ctx.parent
		return None

	def resolve_string(self, literal: str) -> str:
		"""Resolve a string prop for display.

		``\\$text`` is an escaped literal dollar, ``$path`` is a binding (empty
		string when it resolves to nothing) and anything else is returned
		unchanged.
		"""
		trimmed = trim(literal)
		if trimmed.startswith("\\$"):
			return trimmed[1:]
		if trimmed.startswith("$"):
			resolved = self.resolve(trimmed)
			return resolved.display() if resolved is not None else ""
		return literal

	def resolve_value(self, value: Value) -> Value:
		"""Resolve a value that may be a binding; non-strings pass through."""
		if isinstance(value, String) and trim(value.value).startswith("$"):
			resolved = self.resolve(value.value)
			return resolved if resolved is not None else NULL
		return value

	def resolve_mapping(self, values: Mapping[str, Value] | None) -> dict[str, Value]:
		if not values:
			return {}
		return {key: self.resolve_value(item) for key, item in values.items()}

	def resolve_string_mapping(
		self, values: Mapping[str, Value] | None
	) -> dict[str, str]:
		"""Resolve each entry and coerce it to text (display form as fallback)."""
		if not values:
			return {}
		resolved: dict[str, str] = {}
		for key, item in values.items():
			value = self.resolve_value(item)
			text = value.as_string()
			resolved[key] = text if text is not None else value.display()
		return resolved

	# Two-way bindings

	def assign(self, binding: str, value: Value) -> None:
		"""Write through a ``$.key`` or ``$.key.sub`` binding into this context."""
		trimmed = trim(binding)
		if not trimmed.startswith("$."):
			logger.debug("Ignoring write to non-path binding %r", binding)
			return
		parts = [part for part in trimmed[2:].split(".") if part]
		if not parts:
			return
		if len(parts) == 1:
			self.set(parts[0], value)
		elif len(parts) == 2:
			current = self._lookup([parts[0]])
			fields = current.as_object() if current is not None else None
			fields = fields if fields is not None else {}
			fields[parts[1]] = value
			self.set(parts[0], Object(fields))
		else:
			self.set(parts[-1], value)


def _dig(value: Value, path: list[str]) -> Value | None:
	for component in path:
		if isinstance(value, Object):
			item = value.value.get(component)
			if item is None:
				return None
			value = item
		elif isinstance(value, Array):
			index = parse_int_literal(component)
			if index is None or index < 0 or index >= len(value.value):
				return None
			value = value.value[index]
		else:
			return None
	return value


__all__ = ["DataContext", "PIPE", "trim"]
