"""Headless rendering of view trees.

``ViewRenderer.render`` walks a ``ViewNode`` tree against a ``DataContext``
and produces a toolkit-neutral ``RenderedNode`` tree with bindings resolved,
conditions applied, lists expanded and components inlined. Interactive nodes
leave entries in the tree's ``actions`` and ``inputs`` tables, keyed by the
render path of the node (``"0"``, ``"0.2"``, ``"0.2.label"``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from viewengine.actions import ActionDispatcher
from viewengine.conditions import ConditionEvaluator
from viewengine.context import DataContext
from viewengine.documents import ActionDefinition, ViewNode
from viewengine.registry import ComponentRegistry
from viewengine.theme import ThemeEngine
from viewengine.values import Array, Bool, Double, Int, String, Value

logger = logging.getLogger(__name__)

RenderPath = str

HORIZONTAL_ALIGNMENTS = ("leading", "center", "trailing")
VERTICAL_ALIGNMENTS = ("top", "center", "bottom")
DEFAULT_GRID_COLUMNS = 2
DEFAULT_GRID_SPACING = 8.0
DEFAULT_SEARCH_PLACEHOLDER = "Search..."


class BoundAction(NamedTuple):
	action: ActionDefinition
	context: DataContext


class BoundInput(NamedTuple):
	binding: str
	context: DataContext


@dataclass(slots=True)
class RenderedNode:
	type: str
	path: RenderPath
	id: str | None = None
	style: dict[str, Value] = field(default_factory=dict)
	props: dict[str, Value] = field(default_factory=dict)
	children: list[RenderedNode] = field(default_factory=list)

	def to_python(self) -> dict[str, Any]:
		out: dict[str, Any] = {"type": self.type, "path": self.path}
		if self.id is not None:
			out["id"] = self.id
		if self.style:
			out["style"] = {key: value.to_python() for key, value in self.style.items()}
		if self.props:
			out["props"] = {key: value.to_python() for key, value in self.props.items()}
		if self.children:
			out["children"] = [child.to_python() for child in self.children]
		return out

	def walk(self):
		yield self
		for child in self.children:
			yield from child.walk()

	def find(self, node_id: str) -> RenderedNode | None:
		for node in self.walk():
			if node.id == node_id:
				return node
		return None

	def text(self) -> list[str]:
		"""Every resolved ``text`` content in document order."""
		out: list[str] = []
		for node in self.walk():
			if node.type == "text":
				content = node.props.get("content")
				if isinstance(content, String):
					out.append(content.value)
		return out


class RenderTree:
	root: RenderedNode | None
	actions: dict[RenderPath, BoundAction]
	inputs: dict[RenderPath, BoundInput]

	def __init__(self) -> None:
		self.root = None
		self.actions = {}
		self.inputs = {}

	def to_python(self) -> dict[str, Any] | None:
		return self.root.to_python() if self.root is not None else None

	async def trigger(self, path: RenderPath, dispatcher: ActionDispatcher) -> bool:
		"""Dispatch the action bound at ``path``; False if there is none."""
		bound = self.actions.get(path)
		if bound is None:
			return False
		await dispatcher.dispatch(bound.action, bound.context)
		return True

	def input(self, path: RenderPath, text: str) -> bool:
		"""Write user input through the binding of the field at ``path``."""
		bound = self.inputs.get(path)
		if bound is None:
			return False
		bound.context.assign(bound.binding, String(text))
		return True


def join_path(prefix: RenderPath, path: str | int) -> RenderPath:
	if prefix:
		return f"{prefix}.{path}"
	return str(path)


class ViewRenderer:
	registry: ComponentRegistry
	theme: ThemeEngine
	conditions: ConditionEvaluator

	def __init__(
		self,
		*,
		registry: ComponentRegistry | None = None,
		theme: ThemeEngine | None = None,
		conditions: ConditionEvaluator | None = None,
	) -> None:
		self.registry = registry if registry is not None else ComponentRegistry()
		self.theme = theme if theme is not None else ThemeEngine()
		self.conditions = conditions if conditions is not None else ConditionEvaluator()

	def render(self, node: ViewNode, context: DataContext) -> RenderTree:
		tree = RenderTree()
		tree.root = self.render_node(node, context, "0", tree)
		return tree

	def render_node(
		self,
		node: ViewNode,
		context: DataContext,
		path: RenderPath,
		tree: RenderTree,
	) -> RenderedNode | None:
		if node.condition is not None and not self.conditions.evaluate(
			node.condition, context
		):
			return None

		rendered = RenderedNode(
			type=node.type,
			path=path,
			id=node.id,
			style=self.theme.merge_style(node.style, node.inline_style),
		)

		match node.type:
			case "vstack" | "lazy_vstack":
				_layout(rendered, node, HORIZONTAL_ALIGNMENTS)
				self._children(rendered, node, context, tree)
			case "hstack" | "lazy_hstack":
				_layout(rendered, node, VERTICAL_ALIGNMENTS)
				self._children(rendered, node, context, tree)
			case "scroll":
				axis = "horizontal" if node.string_prop("axis") == "horizontal" else "vertical"
				rendered.props["axis"] = String(axis)
				self._children(rendered, node, context, tree)
			case "grid":
				columns = node.int_prop("columns")
				spacing = node.double_prop("spacing")
				rendered.props["columns"] = Int(columns if columns is not None else DEFAULT_GRID_COLUMNS)
				rendered.props["spacing"] = Double(
					spacing if spacing is not None else DEFAULT_GRID_SPACING
				)
				self._children(rendered, node, context, tree)
			case "screen":
				title = node.string_prop("title")
				if title is not None:
					rendered.props["title"] = String(context.resolve_string(title))
				self._children(rendered, node, context, tree)
			case "zstack" | "navigation_stack" | "navigation_link":
				self._children(rendered, node, context, tree)
			case "spacer":
				min_length = node.double_prop("minLength")
				if min_length is not None:
					rendered.props["minLength"] = Double(min_length)
			case "divider":
				pass
			case "text":
				content = node.string_prop("content") or ""
				rendered.props["content"] = String(context.resolve_string(content))
				line_limit = node.int_prop("lineLimit")
				if line_limit is not None:
					rendered.props["lineLimit"] = Int(line_limit)
			case "image":
				source = context.resolve_string(node.string_prop("source") or "")
				rendered.props["source"] = String(source)
				rendered.props["remote"] = Bool(source.startswith("http"))
				mode = "fill" if node.string_prop("contentMode") == "fill" else "fit"
				rendered.props["contentMode"] = String(mode)
			case "button":
				action = node.action_prop("action")
				if action is not None:
					tree.actions[path] = BoundAction(action, context)
				label = node.node_prop("label")
				if label is not None:
					child = self.render_node(label, context, join_path(path, "label"), tree)
					if child is not None:
						rendered.children.append(child)
				else:
					self._children(rendered, node, context, tree)
			case "text_field":
				self._input(rendered, node, context, tree, placeholder="")
			case "search_bar":
				self._input(
					rendered, node, context, tree, placeholder=DEFAULT_SEARCH_PLACEHOLDER
				)
				submit = node.action_prop("onSubmit")
				if submit is not None:
					tree.actions[path] = BoundAction(submit, context)
			case "tab_view":
				tabs = node.tabs_prop() or []
				rendered.props["tabs"] = Array(tab.to_value() for tab in tabs)
			case "list":
				self._list(rendered, node, context, tree)
			case "component":
				self._component(rendered, node, context, tree)
			case _:
				logger.debug("Rendering unknown node type %r as a placeholder", node.type)

		return rendered

	def _children(
		self,
		rendered: RenderedNode,
		node: ViewNode,
		context: DataContext,
		tree: RenderTree,
	) -> None:
		for idx, child in enumerate(node.children or ()):
			child_rendered = self.render_node(
				child, context, join_path(rendered.path, idx), tree
			)
			if child_rendered is not None:
				rendered.children.append(child_rendered)

	def _input(
		self,
		rendered: RenderedNode,
		node: ViewNode,
		context: DataContext,
		tree: RenderTree,
		*,
		placeholder: str,
	) -> None:
		binding = node.string_prop("binding") or ""
		current = context.resolve(binding)
		text = current.as_string() if current is not None else None
		rendered.props["placeholder"] = String(node.string_prop("placeholder") or placeholder)
		rendered.props["binding"] = String(binding)
		rendered.props["value"] = String(text or "")
		tree.inputs[rendered.path] = BoundInput(binding, context)

	def _list(
		self,
		rendered: RenderedNode,
		node: ViewNode,
		context: DataContext,
		tree: RenderTree,
	) -> None:
		resolved = context.resolve(node.string_prop("items") or "")
		template = node.node_prop("itemTemplate")
		if not isinstance(resolved, Array) or template is None:
			return
		for index, item in enumerate(resolved.value):
			item_context = context.child({"item": item, "index": Int(index)})
			child = self.render_node(
				template, item_context, join_path(rendered.path, index), tree
			)
			if child is not None:
				rendered.children.append(child)

	def _component(
		self,
		rendered: RenderedNode,
		node: ViewNode,
		context: DataContext,
		tree: RenderTree,
	) -> None:
		name = node.string_prop("name") or ""
		rendered.props["name"] = String(name)
		raw_parameters = node.prop("parameters")
		parameters = raw_parameters.as_object() if raw_parameters is not None else None
		resolved = self.registry.resolve(name, parameters or {}, context)
		if resolved is None:
			logger.debug("Unknown component %r", name)
			return
		body, child_context = resolved
		child = self.render_node(body, child_context, join_path(rendered.path, 0), tree)
		if child is not None:
			rendered.children.append(child)


def _layout(rendered: RenderedNode, node: ViewNode, alignments: tuple[str, ...]) -> None:
	spacing = node.double_prop("spacing")
	if spacing is not None:
		rendered.props["spacing"] = Double(spacing)
	alignment = node.string_prop("alignment")
	rendered.props["alignment"] = String(alignment if alignment in alignments else "center")


__all__ = [
	"BoundAction",
	"BoundInput",
	"RenderPath",
	"RenderTree",
	"RenderedNode",
	"ViewRenderer",
	"join_path",
]
