"""Endpoint-calling collaborators used by ``api`` actions.

An endpoint is either an absolute URL (params are appended to its query) or a
path relative to the client's base URL. Results are the decoded JSON body.
Any transport problem surfaces as ``EndpointError``, which the dispatcher
treats as a transient failure and retries.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from types import TracebackType
from typing import Any, Protocol

import httpx

from viewengine.errors import EndpointError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class EndpointCaller(Protocol):
	async def call(self, endpoint: str, params: Mapping[str, str]) -> Any: ...


def is_absolute(endpoint: str) -> bool:
	return endpoint.startswith("http")


class HttpEndpointClient:
	"""Calls JSON endpoints over HTTP with a shared ``httpx.AsyncClient``."""

	base_url: str
	timeout: float
	_client: httpx.AsyncClient | None

	def __init__(
		self,
		base_url: str,
		*,
		timeout: float = DEFAULT_TIMEOUT,
		client: httpx.AsyncClient | None = None,
	):
		self.base_url = base_url
		self.timeout = timeout
		self._client = client

	@property
	def client(self) -> httpx.AsyncClient:
		"""Lazy initialization of HTTP client."""
		if self._client is None:
			self._client = httpx.AsyncClient(
				timeout=httpx.Timeout(self.timeout),
				follow_redirects=True,
			)
		return self._client

	def build_url(self, endpoint: str, params: Mapping[str, str]) -> httpx.URL:
		if is_absolute(endpoint):
			url = httpx.URL(endpoint)
		else:
			url = httpx.URL(self.base_url.rstrip("/") + "/" + endpoint.lstrip("/"))
		if params:
			url = url.copy_merge_params(dict(params))
		return url

	async def call(self, endpoint: str, params: Mapping[str, str]) -> Any:
		url = self.build_url(endpoint, params)
		logger.debug("GET %s", url)
		try:
			response = await self.client.get(url)
			response.raise_for_status()
		except httpx.HTTPStatusError as e:
			raise EndpointError(
				endpoint,
				f"{endpoint} returned HTTP {e.response.status_code}",
				status_code=e.response.status_code,
			) from e
		except httpx.HTTPError as e:
			raise EndpointError(endpoint, f"Request to {endpoint} failed: {e}") from e
		try:
			return response.json()
		except ValueError as e:
			raise EndpointError(
				endpoint,
				f"{endpoint} did not return JSON",
				status_code=response.status_code,
			) from e

	async def aclose(self) -> None:
		"""Close the HTTP client."""
		if self._client is not None:
			await self._client.aclose()
			self._client = None

	async def __aenter__(self) -> HttpEndpointClient:
		return self

	async def __aexit__(
		self,
		exc_type: type[BaseException] | None,
		exc_val: BaseException | None,
		exc_tb: TracebackType | None,
	) -> None:
		await self.aclose()


StaticResult = Any | Callable[[Mapping[str, str]], Any | Awaitable[Any]]


class StaticEndpoints:
	"""In-memory endpoints: fixed results, callables or exceptions to raise.

	Unknown endpoints raise ``EndpointError`` like an unreachable host would.
	Every call is recorded in ``calls``.
	"""

	results: dict[str, StaticResult]
	calls: list[tuple[str, dict[str, str]]]

	def __init__(self, results: Mapping[str, StaticResult] | None = None):
		self.results = dict(results or {})
		self.calls = []

	def set(self, endpoint: str, result: StaticResult) -> None:
		self.results[endpoint] = result

	async def call(self, endpoint: str, params: Mapping[str, str]) -> Any:
		self.calls.append((endpoint, dict(params)))
		if endpoint not in self.results:
			raise EndpointError(endpoint, f"No such endpoint: {endpoint}")
		result = self.results[endpoint]
		if isinstance(result, BaseException):
			raise result
		if callable(result):
			result = result(params)
			if inspect.isawaitable(result):
				result = await result
		return result


__all__ = [
	"DEFAULT_TIMEOUT",
	"EndpointCaller",
	"HttpEndpointClient",
	"StaticEndpoints",
	"is_absolute",
]
