"""Runtime configuration read from ``VIEWENGINE_*`` environment variables."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfoNotFoundError

from viewengine.actions import (
	RETRY_ATTEMPTS_DEFAULT,
	RETRY_DELAY_DEFAULT,
	SEQUENCE_DELAY_DEFAULT,
	ActionDispatcher,
)
from viewengine.endpoints import DEFAULT_TIMEOUT, HttpEndpointClient
from viewengine.transforms import TransformPipeline

logger = logging.getLogger(__name__)

ENV_VIEWENGINE_API_BASE_URL = "VIEWENGINE_API_BASE_URL"
ENV_VIEWENGINE_RETRY_ATTEMPTS = "VIEWENGINE_RETRY_ATTEMPTS"
ENV_VIEWENGINE_RETRY_DELAY = "VIEWENGINE_RETRY_DELAY"
ENV_VIEWENGINE_SEQUENCE_DELAY = "VIEWENGINE_SEQUENCE_DELAY"
ENV_VIEWENGINE_TIMEOUT = "VIEWENGINE_TIMEOUT"
ENV_VIEWENGINE_TIMEZONE = "VIEWENGINE_TIMEZONE"
ENV_VIEWENGINE_DOCUMENTS_DIR = "VIEWENGINE_DOCUMENTS_DIR"

DEFAULT_API_BASE_URL = "https://itunes.apple.com"


def _int_var(environ: Mapping[str, str], name: str, default: int, minimum: int) -> int:
	raw = environ.get(name)
	if raw is None or raw.strip() == "":
		return default
	try:
		value = int(raw)
	except ValueError:
		logger.warning("Ignoring %s=%r: not an integer, using %d", name, raw, default)
		return default
	if value < minimum:
		logger.warning("Ignoring %s=%r: must be >= %d, using %d", name, raw, minimum, default)
		return default
	return value


def _float_var(environ: Mapping[str, str], name: str, default: float) -> float:
	raw = environ.get(name)
	if raw is None or raw.strip() == "":
		return default
	try:
		value = float(raw)
	except ValueError:
		logger.warning("Ignoring %s=%r: not a number, using %s", name, raw, default)
		return default
	if not value >= 0:
		logger.warning("Ignoring %s=%r: must be >= 0, using %s", name, raw, default)
		return default
	return value


@dataclass(slots=True)
class RuntimeConfig:
	api_base_url: str = DEFAULT_API_BASE_URL
	retry_attempts: int = RETRY_ATTEMPTS_DEFAULT
	retry_delay: float = RETRY_DELAY_DEFAULT
	sequence_delay: float = SEQUENCE_DELAY_DEFAULT
	timeout: float = DEFAULT_TIMEOUT
	timezone: str = "UTC"
	documents_dir: Path | None = None

	@classmethod
	def from_env(cls, environ: Mapping[str, str] | None = None) -> RuntimeConfig:
		environ = os.environ if environ is None else environ
		documents_dir = environ.get(ENV_VIEWENGINE_DOCUMENTS_DIR)
		return cls(
			api_base_url=environ.get(ENV_VIEWENGINE_API_BASE_URL) or DEFAULT_API_BASE_URL,
			retry_attempts=_int_var(
				environ, ENV_VIEWENGINE_RETRY_ATTEMPTS, RETRY_ATTEMPTS_DEFAULT, 1
			),
			retry_delay=_float_var(environ, ENV_VIEWENGINE_RETRY_DELAY, RETRY_DELAY_DEFAULT),
			sequence_delay=_float_var(
				environ, ENV_VIEWENGINE_SEQUENCE_DELAY, SEQUENCE_DELAY_DEFAULT
			),
			timeout=_float_var(environ, ENV_VIEWENGINE_TIMEOUT, DEFAULT_TIMEOUT),
			timezone=environ.get(ENV_VIEWENGINE_TIMEZONE) or "UTC",
			documents_dir=Path(documents_dir) if documents_dir else None,
		)

	def transforms(self) -> TransformPipeline:
		try:
			return TransformPipeline(timezone=self.timezone)
		except (ZoneInfoNotFoundError, ValueError):
			logger.warning("Unknown timezone %r, using UTC", self.timezone)
			return TransformPipeline()


def build_dispatcher(config: RuntimeConfig) -> ActionDispatcher:
	"""Dispatcher wired to an HTTP endpoint client for ``config.api_base_url``."""
	client = HttpEndpointClient(config.api_base_url, timeout=config.timeout)
	return ActionDispatcher(
		client,
		retry_attempts=config.retry_attempts,
		retry_delay=config.retry_delay,
		sequence_delay=config.sequence_delay,
	)


__all__ = [
	"DEFAULT_API_BASE_URL",
	"ENV_VIEWENGINE_API_BASE_URL",
	"ENV_VIEWENGINE_DOCUMENTS_DIR",
	"ENV_VIEWENGINE_RETRY_ATTEMPTS",
	"ENV_VIEWENGINE_RETRY_DELAY",
	"ENV_VIEWENGINE_SEQUENCE_DELAY",
	"ENV_VIEWENGINE_TIMEOUT",
	"ENV_VIEWENGINE_TIMEZONE",
	"RuntimeConfig",
	"build_dispatcher",
]
