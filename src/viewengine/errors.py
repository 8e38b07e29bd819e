from __future__ import annotations

import logging
import traceback
from typing import Any, Literal

logger = logging.getLogger(__name__)

ErrorCode = Literal[
	"api",
	"callback",
	"transform",
	"document",
]


class ViewEngineError(Exception):
	"""Base class for host and infrastructure failures.

	Problems in authored documents (unknown action types, missing fields,
	unresolvable bindings) are never raised; they degrade to no-ops.
	"""


class DocumentDecodeError(ViewEngineError, ValueError):
	"""Raised when a document is not well-formed JSON."""


class EndpointError(ViewEngineError):
	"""Transport-level failure while calling an endpoint."""

	endpoint: str
	status_code: int | None

	def __init__(
		self, endpoint: str, message: str, *, status_code: int | None = None
	) -> None:
		super().__init__(message)
		self.endpoint = endpoint
		self.status_code = status_code


def _format_stack(exc: BaseException) -> str:
	return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def report(
	exc: BaseException,
	*,
	code: ErrorCode,
	details: dict[str, Any] | None = None,
	message: str | None = None,
) -> None:
	"""Log a failure that must not interrupt document interpretation."""
	payload_details = dict(details) if details is not None else {}
	payload_message = message or str(exc)
	logger.error(
		"ViewEngine error code=%s message=%s details=%s\n%s",
		code,
		payload_message,
		payload_details,
		_format_stack(exc),
	)


__all__ = [
	"DocumentDecodeError",
	"EndpointError",
	"ErrorCode",
	"ViewEngineError",
	"report",
]
