from collections.abc import Callable
from typing import Any

import viewengine as ve


class RecordingSleep:
	"""Stands in for asyncio.sleep; records every requested delay."""

	def __init__(self, on_sleep: Callable[[float], None] | None = None) -> None:
		self.delays: list[float] = []
		self.on_sleep = on_sleep

	async def __call__(self, delay: float) -> None:
		self.delays.append(delay)
		if self.on_sleep is not None:
			self.on_sleep(delay)


def ctx(
	data: dict[str, Any] | None = None, parent: ve.DataContext | None = None
) -> ve.DataContext:
	"""Context built from plain Python data."""
	return ve.DataContext(
		{key: ve.from_python(value) for key, value in (data or {}).items()},
		parent=parent,
	)


def action(data: dict[str, Any]) -> ve.ActionDefinition:
	parsed = ve.ActionDefinition.from_value(ve.from_python(data))
	assert parsed is not None, data
	return parsed


def node(data: dict[str, Any]) -> ve.ViewNode:
	parsed = ve.ViewNode.from_value(ve.from_python(data))
	assert parsed is not None, data
	return parsed
