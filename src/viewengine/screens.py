"""Loading screens and caching their live data.

A screen document is a ``ViewNode`` (usually of type ``screen``) whose
optional ``onLoad`` prop is an action run once against a fresh root context
``{"env": {}}`` plus the navigation params.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from viewengine.actions import ActionDispatcher
from viewengine.context import DataContext
from viewengine.documents import ViewNode
from viewengine.documents_source import DocumentSource
from viewengine.renderer import RenderTree, ViewRenderer
from viewengine.transforms import TransformPipeline
from viewengine.values import Array, Object, Value

logger = logging.getLogger(__name__)

ON_LOAD_PROP = "onLoad"


def root_bindings() -> dict[str, Value]:
	return {"env": Object({})}


@dataclass(slots=True)
class Screen:
	name: str
	node: ViewNode
	context: DataContext

	def title(self) -> str:
		title = self.node.string_prop("title")
		if title is None:
			return ""
		return self.context.resolve_string(title)

	def render(self, renderer: ViewRenderer) -> RenderTree:
		return renderer.render(self.node, self.context)


class ScreenLoader:
	source: DocumentSource
	dispatcher: ActionDispatcher
	transforms: TransformPipeline | None

	def __init__(
		self,
		source: DocumentSource,
		dispatcher: ActionDispatcher,
		*,
		transforms: TransformPipeline | None = None,
	):
		self.source = source
		self.dispatcher = dispatcher
		self.transforms = transforms

	def load_node(self, name: str) -> ViewNode | None:
		data = self.source.load(name)
		if data is None:
			logger.error("Screen %s not found", name)
			return None
		node = ViewNode.from_json(data)
		if node is None:
			logger.error("Could not decode screen %s", name)
		return node

	def new_context(self, params: Mapping[str, Value] | None = None) -> DataContext:
		context = DataContext(root_bindings(), transforms=self.transforms)
		for key, value in (params or {}).items():
			context.set(key, value)
		return context

	async def load(
		self,
		name: str,
		params: Mapping[str, Value] | None = None,
		*,
		run_on_load: bool = True,
	) -> Screen | None:
		node = self.load_node(name)
		if node is None:
			return None
		logger.debug("Loading screen %s", name)
		context = self.new_context(params)
		on_load = node.action_prop(ON_LOAD_PROP)
		if on_load is not None and run_on_load:
			await self.dispatcher.dispatch(on_load, context)
		return Screen(name=name, node=node, context=context)


@dataclass(frozen=True, slots=True)
class FetchResult:
	status: Literal["cached", "fetched", "error"]
	context: DataContext | None = None
	error: str | None = None

	@classmethod
	def cached(cls, context: DataContext) -> FetchResult:
		return cls("cached", context=context)

	@classmethod
	def fetched(cls, context: DataContext) -> FetchResult:
		return cls("fetched", context=context)

	@classmethod
	def failed(cls, message: str) -> FetchResult:
		return cls("error", error=message)

	@property
	def ok(self) -> bool:
		return self.status != "error"


class ScreenDataCache:
	"""Fetch-once cache of the data each screen's ``onLoad`` action produces.

	Fetching runs ``onLoad`` with a detached dispatcher, so navigation
	requests made while loading are ignored. Every non-empty array in the
	resulting bindings is harvested into the screen's item pool.
	"""

	loader: ScreenLoader
	_contexts: dict[str, dict[str, Value]]
	_items: dict[str, list[Value]]
	_in_flight: set[str]

	def __init__(self, loader: ScreenLoader):
		self.loader = loader
		self._contexts = {}
		self._items = {}
		self._in_flight = set()

	def has_cached(self, name: str) -> bool:
		return name in self._contexts

	def cached_context(self, name: str) -> DataContext | None:
		data = self._contexts.get(name)
		if data is None:
			return None
		return DataContext(data, transforms=self.loader.transforms)

	def items(self, name: str) -> list[Value]:
		return list(self._items.get(name, ()))

	@property
	def all_items(self) -> list[Value]:
		return [item for pool in self._items.values() for item in pool]

	def invalidate(self, name: str) -> None:
		self._contexts.pop(name, None)
		self._items.pop(name, None)

	def invalidate_all(self) -> None:
		self._contexts.clear()
		self._items.clear()

	async def fetch(self, name: str, *, force: bool = False) -> FetchResult:
		if not force:
			cached = self.cached_context(name)
			if cached is not None:
				return FetchResult.cached(cached)

		if name in self._in_flight:
			return FetchResult.failed(f"Already fetching {name}")

		self._in_flight.add(name)
		try:
			node = self.loader.load_node(name)
			if node is None:
				return FetchResult.failed(f"Could not load {name}.json")
			on_load = node.action_prop(ON_LOAD_PROP)
			if on_load is None:
				return FetchResult.failed(f'Screen "{name}" has no onLoad action')

			context = self.loader.new_context()
			await self.loader.dispatcher.detached().dispatch(on_load, context)

			self._contexts[name] = dict(context.data)
			self._items[name] = [
				item
				for value in context.data.values()
				if isinstance(value, Array)
				for item in value.value
			]
			logger.debug("Cached %d items for screen %s", len(self._items[name]), name)
			return FetchResult.fetched(context)
		finally:
			self._in_flight.discard(name)


__all__ = [
	"ON_LOAD_PROP",
	"FetchResult",
	"Screen",
	"ScreenDataCache",
	"ScreenLoader",
	"root_bindings",
]
