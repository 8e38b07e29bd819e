"""Named, parameterized components.

A ``component`` node names a registered definition and passes parameters;
expanding it evaluates each parameter in the calling context and binds the
results in a child context that the component body renders against.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from viewengine.codec import decode
from viewengine.context import DataContext
from viewengine.documents import ComponentDefinition, ViewNode
from viewengine.documents_source import DocumentSource
from viewengine.errors import DocumentDecodeError
from viewengine.values import Object, Value

logger = logging.getLogger(__name__)

COMPONENTS_DOCUMENT = "components"


class ComponentRegistry:
	_components: dict[str, ComponentDefinition]

	def __init__(self, components: Mapping[str, ComponentDefinition] | None = None):
		self._components = dict(components or {})

	def load(self, source: DocumentSource, name: str = COMPONENTS_DOCUMENT) -> int:
		"""Merge ``{"components": {name: definition}}`` from ``source``.

		A missing or malformed document loads nothing. Individual definitions
		that do not convert are skipped. Returns the number of components
		loaded.
		"""
		data = source.load(name)
		if data is None:
			logger.debug("No %s document", name)
			return 0
		try:
			root = decode(data)
		except DocumentDecodeError as e:
			logger.warning("Ignoring malformed %s document: %s", name, e)
			return 0
		table = root.get("components") if isinstance(root, Object) else None
		if not isinstance(table, Object):
			logger.warning("Document %s has no components table", name)
			return 0

		loaded = 0
		for component_name, raw in table.value.items():
			definition = ComponentDefinition.from_value(raw)
			if definition is None:
				logger.warning("Skipping invalid component %r", component_name)
				continue
			self._components[component_name] = definition
			loaded += 1
		logger.debug("Loaded %d components from %s", loaded, name)
		return loaded

	def reload(self, source: DocumentSource, name: str = COMPONENTS_DOCUMENT) -> int:
		self.clear()
		return self.load(source, name)

	def register(self, name: str, definition: ComponentDefinition) -> None:
		self._components[name] = definition

	def get(self, name: str) -> ComponentDefinition | None:
		return self._components.get(name)

	def names(self) -> list[str]:
		return sorted(self._components)

	def clear(self) -> None:
		self._components.clear()

	def __contains__(self, name: object) -> bool:
		return name in self._components

	def __len__(self) -> int:
		return len(self._components)

	def resolve(
		self,
		name: str,
		parameters: Mapping[str, Value] | None,
		context: DataContext,
	) -> tuple[ViewNode, DataContext] | None:
		component = self._components.get(name)
		if component is None:
			return None
		bindings = {key: context.resolve_value(value) for key, value in (parameters or {}).items()}
		return component.body, context.child(bindings)


__all__ = ["COMPONENTS_DOCUMENT", "ComponentRegistry"]
