"""Typed views over authored documents.

The authoring format is a uniform tree of tagged values. ``ViewNode``,
``ActionDefinition``, ``TabDefinition`` and ``ComponentDefinition`` are
derived from it on demand by pure conversion functions that return ``None``
when the shape does not match. Nested structures embedded in props (button
actions, list item templates, tab lists) stay as tagged values until a caller
asks for the typed view.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Self

from viewengine.codec import decode, encode
from viewengine.errors import DocumentDecodeError
from viewengine.values import Array, Object, String, Value, from_python

logger = logging.getLogger(__name__)


class _Mismatch(Exception):
	pass


def _fields(value: Value | None) -> dict[str, Value]:
	if not isinstance(value, Object):
		raise _Mismatch
	return value.value


def _present(fields: Mapping[str, Value], key: str) -> Value | None:
	item = fields.get(key)
	if item is None or item.is_null:
		return None
	return item


def _required_str(fields: Mapping[str, Value], key: str) -> str:
	item = _present(fields, key)
	if not isinstance(item, String):
		raise _Mismatch
	return item.value


def _optional_str(fields: Mapping[str, Value], key: str) -> str | None:
	item = _present(fields, key)
	if item is None:
		return None
	if not isinstance(item, String):
		raise _Mismatch
	return item.value


def _optional_map(fields: Mapping[str, Value], key: str) -> dict[str, Value] | None:
	item = _present(fields, key)
	if item is None:
		return None
	if not isinstance(item, Object):
		raise _Mismatch
	return dict(item.value)


def _optional_list(fields: Mapping[str, Value], key: str) -> tuple[Value, ...] | None:
	item = _present(fields, key)
	if item is None:
		return None
	if not isinstance(item, Array):
		raise _Mismatch
	return item.value


def _put(out: dict[str, Value], key: str, item: Value | str | None) -> None:
	if item is None:
		return
	out[key] = String(item) if isinstance(item, str) else item


def _load(data: bytes | str) -> Value | None:
	try:
		return decode(data)
	except DocumentDecodeError as exc:
		logger.debug("Ignoring undecodable document: %s", exc)
		return None


@dataclass(frozen=True, slots=True)
class ActionDefinition:
	"""A declarative instruction interpreted by the ActionDispatcher."""

	action_type: str
	screen: str | None = None
	params: dict[str, Value] | None = None
	endpoint: str | None = None
	result_key: str | None = None
	key: str | None = None
	value: Value | None = None
	event: str | None = None
	payload: dict[str, Value] | None = None
	actions: tuple[ActionDefinition, ...] | None = None
	binding: str | None = None

	@classmethod
	def from_value(cls, value: Value | None) -> Self | None:
		try:
			return cls._convert(value)
		except _Mismatch:
			return None

	@classmethod
	def _convert(cls, value: Value | None) -> Self:
		fields = _fields(value)
		actions: tuple[ActionDefinition, ...] | None = None
		raw_actions = _optional_list(fields, "actions")
		if raw_actions is not None:
			actions = tuple(cls._convert(item) for item in raw_actions)
		return cls(
			action_type=_required_str(fields, "actionType"),
			screen=_optional_str(fields, "screen"),
			params=_optional_map(fields, "params"),
			endpoint=_optional_str(fields, "endpoint"),
			result_key=_optional_str(fields, "resultKey"),
			key=_optional_str(fields, "key"),
			value=_present(fields, "value"),
			event=_optional_str(fields, "event"),
			payload=_optional_map(fields, "payload"),
			actions=actions,
			binding=_optional_str(fields, "binding"),
		)

	@classmethod
	def from_json(cls, data: bytes | str) -> Self | None:
		return cls.from_value(_load(data))

	def to_value(self) -> Object:
		out: dict[str, Value] = {}
		_put(out, "actionType", self.action_type)
		_put(out, "screen", self.screen)
		_put(out, "params", Object(self.params) if self.params is not None else None)
		_put(out, "endpoint", self.endpoint)
		_put(out, "resultKey", self.result_key)
		_put(out, "key", self.key)
		_put(out, "value", self.value)
		_put(out, "event", self.event)
		_put(out, "payload", Object(self.payload) if self.payload is not None else None)
		if self.actions is not None:
			out["actions"] = Array(action.to_value() for action in self.actions)
		_put(out, "binding", self.binding)
		return Object(out)

	def to_json(self) -> bytes:
		return encode(self.to_value())


@dataclass(frozen=True, slots=True)
class TabDefinition:
	title: str
	icon: str
	screen: str

	@classmethod
	def from_value(cls, value: Value | None) -> Self | None:
		try:
			fields = _fields(value)
			return cls(
				title=_required_str(fields, "title"),
				icon=_required_str(fields, "icon"),
				screen=_required_str(fields, "screen"),
			)
		except _Mismatch:
			return None

	def to_value(self) -> Object:
		return Object(
			{
				"title": String(self.title),
				"icon": String(self.icon),
				"screen": String(self.screen),
			}
		)


@dataclass(frozen=True, slots=True)
class ViewNode:
	"""A node of a declarative view tree."""

	type: str
	id: str | None = None
	style: str | None = None
	inline_style: dict[str, Value] | None = None
	condition: str | None = None
	children: tuple[ViewNode, ...] | None = None
	props: dict[str, Value] | None = None

	@classmethod
	def from_value(cls, value: Value | None) -> Self | None:
		try:
			return cls._convert(value)
		except _Mismatch:
			return None

	@classmethod
	def _convert(cls, value: Value | None) -> Self:
		fields = _fields(value)
		children: tuple[ViewNode, ...] | None = None
		raw_children = _optional_list(fields, "children")
		if raw_children is not None:
			children = tuple(cls._convert(item) for item in raw_children)
		return cls(
			type=_required_str(fields, "type"),
			id=_optional_str(fields, "id"),
			style=_optional_str(fields, "style"),
			inline_style=_optional_map(fields, "inlineStyle"),
			condition=_optional_str(fields, "condition"),
			children=children,
			props=_optional_map(fields, "props"),
		)

	@classmethod
	def from_json(cls, data: bytes | str) -> Self | None:
		return cls.from_value(_load(data))

	def to_value(self) -> Object:
		out: dict[str, Value] = {}
		_put(out, "type", self.type)
		_put(out, "id", self.id)
		_put(out, "style", self.style)
		if self.inline_style is not None:
			out["inlineStyle"] = Object(self.inline_style)
		_put(out, "condition", self.condition)
		if self.children is not None:
			out["children"] = Array(child.to_value() for child in self.children)
		if self.props is not None:
			out["props"] = Object(self.props)
		return Object(out)

	def to_json(self) -> bytes:
		return encode(self.to_value())

	# Prop accessors

	def prop(self, key: str) -> Value | None:
		if self.props is None:
			return None
		return self.props.get(key)

	def string_prop(self, key: str) -> str | None:
		item = self.prop(key)
		return item.as_string() if item is not None else None

	def int_prop(self, key: str) -> int | None:
		item = self.prop(key)
		return item.as_int() if item is not None else None

	def double_prop(self, key: str) -> float | None:
		item = self.prop(key)
		return item.as_double() if item is not None else None

	def bool_prop(self, key: str) -> bool | None:
		item = self.prop(key)
		return item.as_bool() if item is not None else None

	def node_prop(self, key: str) -> ViewNode | None:
		return ViewNode.from_value(self.prop(key))

	def node_array_prop(self, key: str) -> list[ViewNode] | None:
		item = self.prop(key)
		if not isinstance(item, Array):
			return None
		nodes = (ViewNode.from_value(element) for element in item.value)
		return [node for node in nodes if node is not None]

	def action_prop(self, key: str) -> ActionDefinition | None:
		return ActionDefinition.from_value(self.prop(key))

	def tabs_prop(self) -> list[TabDefinition] | None:
		item = self.prop("tabs")
		if not isinstance(item, Array):
			return None
		tabs = (TabDefinition.from_value(element) for element in item.value)
		return [tab for tab in tabs if tab is not None]


@dataclass(frozen=True, slots=True)
class ComponentDefinition:
	"""A named, parameterized subtree of view nodes."""

	parameters: tuple[str, ...]
	body: ViewNode

	@classmethod
	def from_value(cls, value: Value | None) -> Self | None:
		try:
			fields = _fields(value)
			raw_parameters = _optional_list(fields, "parameters")
			if raw_parameters is None:
				raise _Mismatch
			parameters: list[str] = []
			for item in raw_parameters:
				if not isinstance(item, String):
					raise _Mismatch
				parameters.append(item.value)
			return cls(
				parameters=tuple(parameters),
				body=ViewNode._convert(fields.get("body")),  # pyright: ignore[reportPrivateUsage]
			)
		except _Mismatch:
			return None

	@classmethod
	def from_json(cls, data: bytes | str) -> Self | None:
		return cls.from_value(_load(data))

	def to_value(self) -> Object:
		return Object(
			{
				"parameters": Array(String(name) for name in self.parameters),
				"body": self.body.to_value(),
			}
		)

	def to_json(self) -> bytes:
		return encode(self.to_value())


def action_from_python(data: Mapping[str, Any]) -> ActionDefinition | None:
	"""Convenience for hosts building actions from plain Python data."""
	return ActionDefinition.from_value(from_python(data))


__all__ = [
	"ActionDefinition",
	"ComponentDefinition",
	"TabDefinition",
	"ViewNode",
	"action_from_python",
]
