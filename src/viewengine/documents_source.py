"""Where screen, component and theme documents come from.

A source maps a bare document name (``"home"``, ``"components"``) to raw JSON
bytes, or ``None`` when there is no such document.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class DocumentSource(Protocol):
	def load(self, name: str) -> bytes | None: ...


def _valid_name(name: str) -> bool:
	return bool(name) and "/" not in name and "\\" not in name and name not in (".", "..")


class InMemoryDocumentSource:
	documents: dict[str, bytes]

	def __init__(self, documents: Mapping[str, bytes | str] | None = None):
		self.documents = {}
		for name, data in (documents or {}).items():
			self.add(name, data)

	def add(self, name: str, data: bytes | str) -> None:
		self.documents[name] = data.encode("utf-8") if isinstance(data, str) else data

	def remove(self, name: str) -> None:
		self.documents.pop(name, None)

	def load(self, name: str) -> bytes | None:
		return self.documents.get(name)


class DirectoryDocumentSource:
	"""Reads ``<root>/<name>.json``. Names containing path separators are not found."""

	root: Path

	def __init__(self, root: str | Path):
		self.root = Path(root)

	def path_for(self, name: str) -> Path | None:
		if not _valid_name(name):
			return None
		return self.root / f"{name}.json"

	def load(self, name: str) -> bytes | None:
		path = self.path_for(name)
		if path is None:
			logger.debug("Rejected document name %r", name)
			return None
		try:
			return path.read_bytes()
		except FileNotFoundError:
			return None
		except OSError as e:
			logger.warning("Could not read %s: %s", path, e)
			return None

	def names(self) -> list[str]:
		if not self.root.is_dir():
			return []
		return sorted(path.stem for path in self.root.glob("*.json"))


__all__ = ["DirectoryDocumentSource", "DocumentSource", "InMemoryDocumentSource"]
