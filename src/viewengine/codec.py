"""JSON wire codec for tagged values.

Documents are a contract between content authors and the runtime, so the
mapping is fixed: integer literals (no fraction, no exponent) become ``Int``,
every other number becomes ``Double``, and containers map to ``Array`` and
``Object``.
"""

from __future__ import annotations

import json

from viewengine.errors import DocumentDecodeError
from viewengine.values import Value, from_python


def _reject_constant(name: str) -> float:
	raise ValueError(f"{name} is not valid JSON")


def decode(data: bytes | bytearray | str) -> Value:
	"""Decode a JSON document into a tagged value.

	Raises DocumentDecodeError for malformed input and for documents nested
	too deeply to convert.
	"""
	try:
		return from_python(json.loads(data, parse_constant=_reject_constant))
	except (ValueError, TypeError) as exc:
		raise DocumentDecodeError(f"Malformed JSON document: {exc}") from exc
	except RecursionError as exc:
		raise DocumentDecodeError("JSON document is nested too deeply") from exc


def encode(value: Value) -> bytes:
	"""Encode a tagged value as compact UTF-8 JSON.

	Non-finite doubles have no JSON form and raise ValueError. Lone surrogates
	in strings are written as-is so that decoding gives them back.
	"""
	return json.dumps(
		value.to_python(),
		separators=(",", ":"),
		ensure_ascii=False,
		allow_nan=False,
	).encode("utf-8", "surrogatepass")


__all__ = ["decode", "encode"]
