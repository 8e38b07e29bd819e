"""
Command-line interface for viewengine.
Resolve bindings, evaluate conditions, render screens and dispatch actions
against JSON documents on disk.
"""
# typer relies on function calls used as default values
# pyright: reportCallInDefaultInitializer=false

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from viewengine.actions import ActionDispatcher
from viewengine.codec import decode
from viewengine.conditions import evaluate
from viewengine.context import DataContext
from viewengine.documents import ActionDefinition
from viewengine.documents_source import DirectoryDocumentSource
from viewengine.endpoints import EndpointCaller, HttpEndpointClient, StaticEndpoints
from viewengine.env import RuntimeConfig
from viewengine.errors import DocumentDecodeError
from viewengine.registry import ComponentRegistry
from viewengine.renderer import ViewRenderer
from viewengine.screens import ScreenLoader
from viewengine.theme import ThemeEngine
from viewengine.values import Object, Value
from viewengine.version import __version__

cli = typer.Typer(
	name="viewengine",
	help="viewengine - interpret JSON-driven declarative UI documents",
	no_args_is_help=True,
)

console = Console(stderr=True)


def _version_callback(value: bool) -> None:
	if value:
		typer.echo(__version__)
		raise typer.Exit()


@cli.callback()
def main(
	verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
	version: bool = typer.Option(
		False,
		"--version",
		callback=_version_callback,
		is_eager=True,
		help="Show the version and exit",
	),
):
	"""Configure logging for every command."""
	logging.basicConfig(
		level=logging.DEBUG if verbose else logging.WARNING,
		format="%(levelname)s %(name)s: %(message)s",
	)


def _read_document(path: Path) -> Value:
	try:
		return decode(path.read_bytes())
	except OSError as e:
		console.print(f"[red]❌ Could not read {path}: {e.strerror or e}[/red]")
		raise typer.Exit(1) from None
	except DocumentDecodeError as e:
		console.print(f"[red]❌ {path} is not valid JSON: {e}[/red]")
		raise typer.Exit(1) from None


def _read_bindings(path: Path | None) -> dict[str, Value]:
	if path is None:
		return {}
	document = _read_document(path)
	if not isinstance(document, Object):
		console.print(f"[red]❌ {path} must contain a JSON object[/red]")
		raise typer.Exit(1)
	return dict(document.value)


def _emit(data: Any) -> None:
	text = json.dumps(data, indent=2, ensure_ascii=False)
	typer.echo(text.encode("utf-8", "surrogatepass"))


@cli.command("resolve")
def resolve(
	path: str = typer.Argument(..., help="Binding such as '$.user.name | uppercase'"),
	data: Path | None = typer.Option(None, "--data", "-d", help="JSON object of bindings"),
	timezone: str | None = typer.Option(None, "--timezone", help="Timezone for dates"),
):
	"""Resolve a binding and print the result as JSON. Exits 1 if nothing resolves."""
	config = RuntimeConfig.from_env()
	if timezone is not None:
		config.timezone = timezone
	context = DataContext(_read_bindings(data), transforms=config.transforms())
	value = context.resolve(path)
	if value is None:
		console.print(f"[yellow]{path} did not resolve[/yellow]")
		raise typer.Exit(1)
	_emit(value.to_python())


@cli.command("condition")
def condition(
	expression: str = typer.Argument(..., help="Condition such as '$.count > 0'"),
	data: Path | None = typer.Option(None, "--data", "-d", help="JSON object of bindings"),
):
	"""Evaluate a visibility condition and print true or false."""
	config = RuntimeConfig.from_env()
	context = DataContext(_read_bindings(data), transforms=config.transforms())
	typer.echo("true" if evaluate(expression, context) else "false")


def _endpoints(fixture: Path | None, base_url: str | None, config: RuntimeConfig) -> EndpointCaller:
	if fixture is None:
		return HttpEndpointClient(base_url or config.api_base_url, timeout=config.timeout)
	document = _read_document(fixture)
	if not isinstance(document, Object):
		console.print(f"[red]❌ {fixture} must map endpoint names to results[/red]")
		raise typer.Exit(1)
	return StaticEndpoints({name: value.to_python() for name, value in document.value.items()})


async def _close(endpoints: EndpointCaller) -> None:
	if isinstance(endpoints, HttpEndpointClient):
		await endpoints.aclose()


@cli.command("render")
def render(
	screen: str = typer.Argument(..., help="Screen document name, without .json"),
	documents: Path | None = typer.Option(
		None, "--documents", help="Directory of screen, components and theme documents"
	),
	data: Path | None = typer.Option(None, "--data", "-d", help="Screen params as JSON"),
	on_load: bool = typer.Option(
		False, "--on-load/--no-on-load", help="Run the screen's onLoad action first"
	),
	fixture: Path | None = typer.Option(
		None, "--fixture", help="JSON object of canned endpoint results"
	),
	base_url: str | None = typer.Option(None, "--base-url", help="API base URL"),
):
	"""Render a screen headlessly and print the rendered tree as JSON."""
	config = RuntimeConfig.from_env()
	root = documents or config.documents_dir
	if root is None or not root.is_dir():
		console.print("[red]❌ Provide --documents or VIEWENGINE_DOCUMENTS_DIR[/red]")
		raise typer.Exit(1)
	source = DirectoryDocumentSource(root)
	params = _read_bindings(data)

	registry = ComponentRegistry()
	registry.load(source)
	theme = ThemeEngine()
	theme.load(source)
	renderer = ViewRenderer(registry=registry, theme=theme)

	async def run() -> dict[str, Any] | None:
		endpoints = _endpoints(fixture, base_url, config) if on_load else StaticEndpoints()
		dispatcher = ActionDispatcher(
			endpoints,
			retry_attempts=config.retry_attempts,
			retry_delay=config.retry_delay,
			sequence_delay=config.sequence_delay,
		)
		loader = ScreenLoader(source, dispatcher, transforms=config.transforms())
		try:
			loaded = await loader.load(screen, params, run_on_load=on_load)
			if loaded is None:
				return None
			tree = loaded.render(renderer)
			return {"title": loaded.title(), "tree": tree.to_python()}
		finally:
			await _close(endpoints)

	result = asyncio.run(run())
	if result is None:
		console.print(f"[red]❌ Could not load screen {screen}[/red]")
		raise typer.Exit(1)
	_emit(result)


@cli.command("dispatch")
def dispatch(
	action_file: Path = typer.Argument(..., help="Action document (JSON)"),
	data: Path | None = typer.Option(None, "--data", "-d", help="Initial bindings as JSON"),
	base_url: str | None = typer.Option(None, "--base-url", help="API base URL"),
	fixture: Path | None = typer.Option(
		None, "--fixture", help="JSON object of canned endpoint results"
	),
	event: list[str] = typer.Option(
		[], "--event", "-e", help="Record custom events with this name (repeatable)"
	),
	no_delay: bool = typer.Option(
		False, "--no-delay", help="Skip retry backoff and sequence staging delays"
	),
):
	"""Dispatch an action document and print the resulting bindings and intents."""
	config = RuntimeConfig.from_env()
	action = ActionDefinition.from_value(_read_document(action_file))
	if action is None:
		console.print(f"[red]❌ {action_file} is not an action document[/red]")
		raise typer.Exit(1)
	bindings = _read_bindings(data)

	intents: list[dict[str, Any]] = []

	def on_navigate(screen: str, params: dict[str, Value]) -> None:
		intents.append({"intent": "navigate", "screen": screen, "params": _params(params)})

	def on_present(screen: str, params: dict[str, Value]) -> None:
		intents.append({"intent": "present", "screen": screen, "params": _params(params)})

	def on_dismiss() -> None:
		intents.append({"intent": "dismiss"})

	async def run() -> dict[str, Any]:
		endpoints = _endpoints(fixture, base_url, config)
		dispatcher = ActionDispatcher(
			endpoints,
			retry_attempts=config.retry_attempts,
			retry_delay=0.0 if no_delay else config.retry_delay,
			sequence_delay=0.0 if no_delay else config.sequence_delay,
			on_navigate=on_navigate,
			on_present=on_present,
			on_dismiss=on_dismiss,
		)
		for name in event:
			dispatcher.register_event_handler(name, _event_recorder(name, intents))
		context = DataContext(bindings, transforms=config.transforms())
		try:
			await dispatcher.dispatch(action, context)
		finally:
			await _close(endpoints)
		return {
			"data": {key: value.to_python() for key, value in context.data.items()},
			"intents": intents,
		}

	_emit(asyncio.run(run()))


def _params(params: dict[str, Value]) -> dict[str, Any]:
	return {key: value.to_python() for key, value in params.items()}


def _event_recorder(name: str, intents: list[dict[str, Any]]):
	def record(payload: dict[str, str]) -> None:
		intents.append({"intent": "event", "event": name, "payload": payload})

	return record


if __name__ == "__main__":
	cli()
