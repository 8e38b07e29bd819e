import logging
from typing import Any

import pytest
import viewengine as ve
from helpers import RecordingSleep, action, ctx
from viewengine.actions import normalize_result


@pytest.mark.asyncio
async def test_navigate_resolves_params(dispatcher: ve.ActionDispatcher):
	calls: list[tuple[str, dict[str, ve.Value]]] = []
	dispatcher.on_navigate = lambda screen, params: calls.append((screen, params))
	context = ctx({"podcast": {"id": 7}})
	await dispatcher.dispatch(
		action(
			{
				"actionType": "navigate",
				"screen": "detail",
				"params": {"podcastId": "$.podcast.id", "mode": "full"},
			}
		),
		context,
	)
	assert calls == [("detail", {"podcastId": ve.Int(7), "mode": ve.String("full")})]


@pytest.mark.asyncio
async def test_present_and_dismiss(dispatcher: ve.ActionDispatcher):
	events: list[Any] = []
	dispatcher.on_present = lambda screen, params: events.append(("present", screen, params))
	dispatcher.on_dismiss = lambda: events.append("dismiss")
	await dispatcher.dispatch(action({"actionType": "present", "screen": "sheet"}), ctx())
	await dispatcher.dispatch(action({"actionType": "dismiss"}), ctx())
	assert events == [("present", "sheet", {}), "dismiss"]


@pytest.mark.asyncio
async def test_navigation_without_screen_or_callback_is_noop(dispatcher: ve.ActionDispatcher):
	calls: list[str] = []
	dispatcher.on_navigate = lambda screen, params: calls.append(screen)
	await dispatcher.dispatch(action({"actionType": "navigate"}), ctx())
	await dispatcher.dispatch(action({"actionType": "present", "screen": "x"}), ctx())
	await dispatcher.dispatch(action({"actionType": "dismiss"}), ctx())
	assert calls == []


@pytest.mark.asyncio
async def test_async_callbacks_are_awaited(dispatcher: ve.ActionDispatcher):
	seen: list[str] = []

	async def on_navigate(screen: str, params: dict[str, ve.Value]) -> None:
		seen.append(screen)

	dispatcher.on_navigate = on_navigate
	await dispatcher.dispatch(action({"actionType": "navigate", "screen": "home"}), ctx())
	assert seen == ["home"]


@pytest.mark.asyncio
async def test_failing_callback_is_reported_not_raised(
	dispatcher: ve.ActionDispatcher, caplog: pytest.LogCaptureFixture
):
	def explode(screen: str, params: dict[str, ve.Value]) -> None:
		raise RuntimeError("navigate-boom")

	dispatcher.on_navigate = explode
	with caplog.at_level(logging.ERROR):
		await dispatcher.dispatch(action({"actionType": "navigate", "screen": "x"}), ctx())
	assert any(
		"code=callback" in rec.getMessage() and "navigate-boom" in rec.getMessage()
		for rec in caplog.records
	)


@pytest.mark.asyncio
async def test_set_state(dispatcher: ve.ActionDispatcher):
	context = ctx({"query": "swift"})
	await dispatcher.dispatch(
		action({"actionType": "setState", "key": "term", "value": "$.query"}), context
	)
	await dispatcher.dispatch(
		action({"actionType": "setState", "key": "count", "value": 3}), context
	)
	await dispatcher.dispatch(
		action({"actionType": "setState", "key": "gone", "value": "$.missing"}), context
	)
	assert context.data["term"] == ve.String("swift")
	assert context.data["count"] == ve.Int(3)
	assert context.data["gone"] == ve.NULL


@pytest.mark.asyncio
async def test_set_state_without_value_leaves_key_untouched(dispatcher: ve.ActionDispatcher):
	context = ctx({"term": "keep"})
	await dispatcher.dispatch(action({"actionType": "setState", "key": "term"}), context)
	await dispatcher.dispatch(action({"actionType": "setState", "value": 1}), context)
	assert context.data == {"term": ve.String("keep")}


@pytest.mark.asyncio
async def test_set_state_writes_into_the_dispatch_context_only(dispatcher: ve.ActionDispatcher):
	parent = ctx({"term": "parent"})
	child = parent.child()
	await dispatcher.dispatch(
		action({"actionType": "setState", "key": "term", "value": "child"}), child
	)
	assert parent.resolve("$.term") == ve.String("parent")
	assert child.resolve("$.term") == ve.String("child")


@pytest.mark.asyncio
async def test_custom_event_receives_string_payload(dispatcher: ve.ActionDispatcher):
	received: list[dict[str, str]] = []
	dispatcher.register_event_handler("play", received.append)
	context = ctx({"episode": {"title": "Pilot", "duration": 1200, "tags": ["a"]}})
	await dispatcher.dispatch(
		action(
			{
				"actionType": "custom",
				"event": "play",
				"payload": {
					"title": "$.episode.title",
					"duration": "$.episode.duration",
					"tags": "$.episode.tags",
					"fixed": 1,
				},
			}
		),
		context,
	)
	assert received == [{"title": "Pilot", "duration": "1200", "tags": '["a"]', "fixed": "1"}]


@pytest.mark.asyncio
async def test_custom_event_last_registration_wins(dispatcher: ve.ActionDispatcher):
	received: list[str] = []
	dispatcher.register_event_handler("ping", lambda payload: received.append("first"))
	dispatcher.register_event_handler("ping", lambda payload: received.append("second"))
	await dispatcher.dispatch(action({"actionType": "custom", "event": "ping"}), ctx())
	dispatcher.unregister_event_handler("ping")
	await dispatcher.dispatch(action({"actionType": "custom", "event": "ping"}), ctx())
	assert received == ["second"]


@pytest.mark.asyncio
async def test_custom_event_silent_miss(dispatcher: ve.ActionDispatcher):
	context = ctx({"a": 1})
	await dispatcher.dispatch(action({"actionType": "custom", "event": "nobody"}), context)
	await dispatcher.dispatch(action({"actionType": "custom"}), context)
	assert context.data == {"a": ve.Int(1)}


@pytest.mark.asyncio
async def test_unknown_action_type_is_noop(dispatcher: ve.ActionDispatcher):
	context = ctx()
	await dispatcher.dispatch(action({"actionType": "teleport", "key": "x", "value": 1}), context)
	assert context.data == {}


@pytest.mark.asyncio
async def test_sequence_runs_in_order_with_staged_delays():
	log: list[str] = []
	sleep = RecordingSleep(on_sleep=lambda delay: log.append(f"sleep {delay}"))
	dispatcher = ve.ActionDispatcher(sleep=sleep)
	dispatcher.register_event_handler("mark", lambda payload: log.append(payload["step"]))
	context = ctx()
	await dispatcher.dispatch(
		action(
			{
				"actionType": "sequence",
				"actions": [
					{"actionType": "setState", "key": "first", "value": 1},
					{"actionType": "custom", "event": "mark", "payload": {"step": "$.first"}},
					{"actionType": "setState", "key": "second", "value": 2},
				],
			}
		),
		context,
	)
	assert log == ["sleep 2.0", "1", "sleep 2.0"]
	assert sleep.delays == [2.0, 2.0]
	assert context.data == {"first": ve.Int(1), "second": ve.Int(2)}


@pytest.mark.asyncio
async def test_single_step_and_empty_sequences_do_not_sleep(
	dispatcher: ve.ActionDispatcher, sleep: RecordingSleep
):
	context = ctx()
	await dispatcher.dispatch(
		action(
			{
				"actionType": "sequence",
				"actions": [{"actionType": "setState", "key": "only", "value": True}],
			}
		),
		context,
	)
	await dispatcher.dispatch(action({"actionType": "sequence", "actions": []}), context)
	await dispatcher.dispatch(action({"actionType": "sequence"}), context)
	assert sleep.delays == []
	assert context.data == {"only": ve.Bool(True)}


@pytest.mark.asyncio
async def test_api_stores_result_and_resolves_params(
	dispatcher: ve.ActionDispatcher, endpoints: ve.StaticEndpoints
):
	endpoints.set("/search", lambda params: {"echo": dict(params)})
	context = ctx({"query": "swift", "limit": 5})
	await dispatcher.dispatch(
		action(
			{
				"actionType": "api",
				"endpoint": "/search",
				"params": {"term": "$.query", "limit": "$.limit", "media": "podcast"},
				"resultKey": "results",
			}
		),
		context,
	)
	assert endpoints.calls == [("/search", {"term": "swift", "limit": "5", "media": "podcast"})]
	assert context.data["results"] == ve.from_python(
		{"echo": {"term": "swift", "limit": "5", "media": "podcast"}}
	)


@pytest.mark.asyncio
async def test_api_without_result_key_discards_result(
	dispatcher: ve.ActionDispatcher, endpoints: ve.StaticEndpoints
):
	endpoints.set("/ping", {"ok": True})
	context = ctx()
	await dispatcher.dispatch(action({"actionType": "api", "endpoint": "/ping"}), context)
	assert len(endpoints.calls) == 1
	assert context.data == {}


@pytest.mark.asyncio
async def test_api_retries_three_times_then_reports(
	dispatcher: ve.ActionDispatcher,
	endpoints: ve.StaticEndpoints,
	sleep: RecordingSleep,
	caplog: pytest.LogCaptureFixture,
):
	endpoints.set("/down", ve.EndpointError("/down", "connection refused"))
	context = ctx()
	with caplog.at_level(logging.WARNING):
		await dispatcher.dispatch(
			action({"actionType": "api", "endpoint": "/down", "resultKey": "data"}), context
		)
	assert len(endpoints.calls) == 3
	assert sleep.delays == [2.0, 2.0]
	assert "data" not in context.data
	warnings = [rec for rec in caplog.records if rec.levelno == logging.WARNING]
	assert len(warnings) == 3
	assert any(
		"code=api" in rec.getMessage() and "after 3 attempts" in rec.getMessage()
		for rec in caplog.records
		if rec.levelno == logging.ERROR
	)


@pytest.mark.asyncio
async def test_api_recovers_on_later_attempt(sleep: RecordingSleep):
	attempts: list[int] = []

	async def flaky(params: Any) -> Any:
		attempts.append(len(attempts) + 1)
		if len(attempts) < 2:
			raise ve.EndpointError("/flaky", "timeout")
		return [1, 2]

	dispatcher = ve.ActionDispatcher(ve.StaticEndpoints({"/flaky": flaky}), sleep=sleep)
	context = ctx()
	await dispatcher.dispatch(
		action({"actionType": "api", "endpoint": "/flaky", "resultKey": "nums"}), context
	)
	assert attempts == [1, 2]
	assert sleep.delays == [2.0]
	assert context.data["nums"] == ve.Array([ve.Int(1), ve.Int(2)])


@pytest.mark.asyncio
async def test_api_retry_settings_are_configurable(endpoints: ve.StaticEndpoints):
	sleep = RecordingSleep()
	dispatcher = ve.ActionDispatcher(endpoints, retry_attempts=5, retry_delay=0.5, sleep=sleep)
	await dispatcher.dispatch(action({"actionType": "api", "endpoint": "/unknown"}), ctx())
	assert len(endpoints.calls) == 5
	assert sleep.delays == [0.5] * 4


def test_retry_attempts_must_be_positive():
	with pytest.raises(ValueError):
		ve.ActionDispatcher(retry_attempts=0)


@pytest.mark.asyncio
async def test_api_without_endpoint_or_collaborator_is_noop(sleep: RecordingSleep):
	dispatcher = ve.ActionDispatcher(sleep=sleep)
	context = ctx()
	await dispatcher.dispatch(action({"actionType": "api", "endpoint": "/x", "resultKey": "r"}), context)
	await dispatcher.dispatch(action({"actionType": "api", "resultKey": "r"}), context)
	assert context.data == {}
	assert sleep.delays == []


def test_normalize_unwraps_feed_results():
	raw = ve.from_python({"feed": {"results": [{"name": "Top"}]}, "other": 1})
	assert normalize_result(raw) == ve.from_python([{"name": "Top"}])


def test_normalize_adds_aliases_without_overwriting():
	raw = ve.from_python(
		{
			"resultCount": 2,
			"results": [
				{"trackName": "X", "trackId": 1},
				{"trackName": "Y", "name": "Kept", "artworkUrl600": "big.png"},
				{"artworkUrl100": "small.png", "artworkUrl600": "big.png"},
				"not-an-object",
			],
		}
	)
	assert normalize_result(raw).to_python() == [
		{"trackName": "X", "trackId": 1, "name": "X", "id": 1},
		{"trackName": "Y", "name": "Kept", "artworkUrl600": "big.png", "artworkUrl100": "big.png"},
		{"artworkUrl100": "small.png", "artworkUrl600": "big.png"},
		"not-an-object",
	]


def test_normalize_leaves_other_shapes_alone():
	assert normalize_result(ve.from_python({"results": "none"})) == ve.from_python(
		{"results": "none"}
	)
	assert normalize_result(ve.from_python([1])) == ve.from_python([1])
	assert normalize_result(ve.from_python({"feed": {"entries": []}})) == ve.from_python(
		{"feed": {"entries": []}}
	)


@pytest.mark.asyncio
async def test_dispatch_document(dispatcher: ve.ActionDispatcher):
	context = ctx()
	assert await dispatcher.dispatch_document(
		b'{"actionType":"setState","key":"k","value":"v"}', context
	)
	assert not await dispatcher.dispatch_document(b"{not json", context)
	assert not await dispatcher.dispatch_document(b'{"key":"k"}', context)
	assert context.data == {"k": ve.String("v")}


@pytest.mark.asyncio
async def test_detached_dispatcher_drops_callbacks(dispatcher: ve.ActionDispatcher):
	calls: list[str] = []
	dispatcher.on_navigate = lambda screen, params: calls.append(screen)
	dispatcher.register_event_handler("e", lambda payload: calls.append("event"))
	detached = dispatcher.detached()
	await detached.dispatch(action({"actionType": "navigate", "screen": "x"}), ctx())
	await detached.dispatch(action({"actionType": "custom", "event": "e"}), ctx())
	assert calls == []
	assert detached.endpoints is dispatcher.endpoints


@pytest.mark.asyncio
async def test_dispatch_document_rejects_deeply_nested_document(dispatcher: ve.ActionDispatcher):
	depth = 100_000
	document = (
		b'{"actionType":"setState","key":"k","value":' + b"[" * depth + b"]" * depth + b"}"
	)
	context = ctx()
	assert not await dispatcher.dispatch_document(document, context)
	assert context.data == {}


@pytest.mark.asyncio
async def test_api_result_nested_too_deeply_is_reported(
	dispatcher: ve.ActionDispatcher,
	endpoints: ve.StaticEndpoints,
	caplog: pytest.LogCaptureFixture,
):
	nested: list[Any] = []
	for _ in range(100_000):
		nested = [nested]
	endpoints.set("/deep", nested)
	context = ctx()
	with caplog.at_level(logging.ERROR):
		await dispatcher.dispatch(
			action({"actionType": "api", "endpoint": "/deep", "resultKey": "deep"}), context
		)
	assert "deep" not in context.data
	assert len(endpoints.calls) == 1
	assert any(
		"code=api" in rec.getMessage() and "nested too deeply" in rec.getMessage()
		for rec in caplog.records
	)
