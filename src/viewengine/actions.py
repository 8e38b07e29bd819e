"""Interpreter for action documents.

``ActionDispatcher.dispatch`` executes one ``ActionDefinition`` against a
``DataContext``. Each call is stateless given its inputs; ``sequence``
actions recurse. The only suspension points are the staged delay between
sequence steps and the network call (plus backoff) of ``api`` actions.

Author mistakes (unknown ``actionType``, missing fields, unregistered events)
are silent no-ops. Exhausted API retries and failing host callbacks are
reported through ``viewengine.errors.report`` and never raised to the caller.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from viewengine.context import DataContext
from viewengine.documents import ActionDefinition
from viewengine.endpoints import EndpointCaller
from viewengine.errors import report
from viewengine.values import Array, Object, Value, from_python

logger = logging.getLogger(__name__)

NavigateCallback = Callable[[str, dict[str, Value]], Any]
DismissCallback = Callable[[], Any]
EventHandler = Callable[[dict[str, str]], Any]
Sleep = Callable[[float], Awaitable[Any]]

RETRY_ATTEMPTS_DEFAULT = 3
RETRY_DELAY_DEFAULT = 2.0
SEQUENCE_DELAY_DEFAULT = 2.0


def normalize_result(result: Value) -> Value:
	"""Bring heterogeneous API payloads to the ``name``/``id``/``artworkUrl100`` shape.

	- ``{"feed": {"results": X}}`` -> ``X``
	- ``{"results": [...]}`` -> the list, each object gaining missing aliases
	- anything else is returned as-is
	"""
	if not isinstance(result, Object):
		return result
	feed = result.get("feed")
	if isinstance(feed, Object) and "results" in feed.value:
		return feed.value["results"]
	results = result.get("results")
	if isinstance(results, Array):
		return Array(_with_aliases(item) for item in results.value)
	return result


def _with_aliases(item: Value) -> Value:
	if not isinstance(item, Object):
		return item
	fields = dict(item.value)
	if "name" not in fields and "trackName" in fields:
		fields["name"] = fields["trackName"]
	if "id" not in fields and "trackId" in fields:
		fields["id"] = fields["trackId"]
	if "artworkUrl100" not in fields and "artworkUrl600" in fields:
		fields["artworkUrl100"] = fields["artworkUrl600"]
	return Object(fields)


class ActionDispatcher:
	on_navigate: NavigateCallback | None
	on_present: NavigateCallback | None
	on_dismiss: DismissCallback | None
	endpoints: EndpointCaller | None
	retry_attempts: int
	retry_delay: float
	sequence_delay: float
	_event_handlers: dict[str, EventHandler]
	_sleep: Sleep

	def __init__(
		self,
		endpoints: EndpointCaller | None = None,
		*,
		retry_attempts: int = RETRY_ATTEMPTS_DEFAULT,
		retry_delay: float = RETRY_DELAY_DEFAULT,
		sequence_delay: float = SEQUENCE_DELAY_DEFAULT,
		sleep: Sleep = asyncio.sleep,
		on_navigate: NavigateCallback | None = None,
		on_present: NavigateCallback | None = None,
		on_dismiss: DismissCallback | None = None,
	):
		if retry_attempts < 1:
			raise ValueError("retry_attempts must be >= 1")
		self.endpoints = endpoints
		self.retry_attempts = retry_attempts
		self.retry_delay = retry_delay
		self.sequence_delay = sequence_delay
		self.on_navigate = on_navigate
		self.on_present = on_present
		self.on_dismiss = on_dismiss
		self._event_handlers = {}
		self._sleep = sleep

	def register_event_handler(self, event: str, handler: EventHandler) -> None:
		"""Register the handler for ``custom`` actions named ``event``.

		At most one handler per event; a later registration replaces it.
		"""
		self._event_handlers[event] = handler

	def unregister_event_handler(self, event: str) -> None:
		self._event_handlers.pop(event, None)

	def has_event_handler(self, event: str) -> bool:
		return event in self._event_handlers

	def detached(self) -> ActionDispatcher:
		"""Same endpoints and timing, no navigation callbacks or event handlers."""
		return ActionDispatcher(
			self.endpoints,
			retry_attempts=self.retry_attempts,
			retry_delay=self.retry_delay,
			sequence_delay=self.sequence_delay,
			sleep=self._sleep,
		)

	async def dispatch_document(self, data: bytes | str, context: DataContext) -> bool:
		"""Decode and dispatch an action document; False if it does not decode."""
		action = ActionDefinition.from_json(data)
		if action is None:
			return False
		await self.dispatch(action, context)
		return True

	async def dispatch(self, action: ActionDefinition, context: DataContext) -> None:
		logger.debug("Dispatching: %s", action.action_type)
		match action.action_type:
			case "navigate":
				if action.screen is None or self.on_navigate is None:
					return
				params = context.resolve_mapping(action.params)
				await self._invoke(self.on_navigate, action, action.screen, params)
			case "present":
				if action.screen is None or self.on_present is None:
					return
				params = context.resolve_mapping(action.params)
				await self._invoke(self.on_present, action, action.screen, params)
			case "dismiss":
				if self.on_dismiss is not None:
					await self._invoke(self.on_dismiss, action)
			case "setState":
				if action.key is None or action.value is None:
					return
				context.set(action.key, context.resolve_value(action.value))
			case "custom":
				if action.event is None:
					return
				handler = self._event_handlers.get(action.event)
				if handler is None:
					logger.debug("No handler registered for event %r", action.event)
					return
				payload = context.resolve_string_mapping(action.payload)
				await self._invoke(handler, action, payload)
			case "api":
				await self._handle_api(action, context)
			case "sequence":
				for index, step in enumerate(action.actions or ()):
					if index > 0:
						await self._sleep(self.sequence_delay)
					await self.dispatch(step, context)
			case _:
				logger.debug("Ignoring unknown action type %r", action.action_type)

	async def _handle_api(self, action: ActionDefinition, context: DataContext) -> None:
		endpoint = action.endpoint
		if endpoint is None:
			logger.debug("API action missing endpoint")
			return
		if self.endpoints is None:
			logger.error("API action %r dispatched without an endpoint caller", endpoint)
			return
		params = context.resolve_string_mapping(action.params)
		logger.debug("API call: %s params: %s", endpoint, params)

		last_error: Exception | None = None
		for attempt in range(1, self.retry_attempts + 1):
			try:
				result = await self.endpoints.call(endpoint, params)
			except Exception as exc:
				last_error = exc
				logger.warning(
					"API attempt %d/%d failed: %s (%s)",
					attempt,
					self.retry_attempts,
					endpoint,
					exc,
				)
				if attempt < self.retry_attempts:
					await self._sleep(self.retry_delay)
				continue
			if action.result_key is not None:
				try:
					value = from_python(result)
				except RecursionError as exc:
					report(
						exc,
						code="api",
						details={"endpoint": endpoint, "params": params},
						message=f"API result from {endpoint} is nested too deeply",
					)
					return
				context.set(action.result_key, normalize_result(value))
			return

		if last_error is not None:
			report(
				last_error,
				code="api",
				details={
					"endpoint": endpoint,
					"params": params,
					"attempts": self.retry_attempts,
				},
				message=f"API action failed after {self.retry_attempts} attempts: {endpoint}",
			)

	async def _invoke(
		self, callback: Callable[..., Any], action: ActionDefinition, *args: Any
	) -> None:
		try:
			result = callback(*args)
			if inspect.isawaitable(result):
				await result
		except Exception as exc:
			report(
				exc,
				code="callback",
				details={"actionType": action.action_type, "callback": repr(callback)},
			)


__all__ = [
	"RETRY_ATTEMPTS_DEFAULT",
	"RETRY_DELAY_DEFAULT",
	"SEQUENCE_DELAY_DEFAULT",
	"ActionDispatcher",
	"DismissCallback",
	"EventHandler",
	"NavigateCallback",
	"normalize_result",
]
