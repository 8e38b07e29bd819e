import json
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner
from viewengine.cli import cli
from viewengine.version import __version__

runner = CliRunner()


def write(path: Path, data: Any) -> Path:
	path.write_text(json.dumps(data))
	return path


@pytest.fixture
def screens(tmp_path: Path) -> Path:
	root = tmp_path / "screens"
	root.mkdir()
	write(
		root / "home.json",
		{
			"type": "screen",
			"props": {
				"title": "$.heading",
				"onLoad": {"actionType": "api", "endpoint": "/top", "resultKey": "top"},
			},
			"children": [
				{
					"type": "list",
					"props": {
						"items": "$.top",
						"itemTemplate": {
							"type": "component",
							"props": {"name": "row", "parameters": {"show": "$.item"}},
						},
					},
				}
			],
		},
	)
	write(
		root / "components.json",
		{
			"components": {
				"row": {
					"parameters": ["show"],
					"body": {"type": "text", "style": "title", "props": {"content": "$.show.name"}},
				}
			}
		},
	)
	write(root / "theme.json", {"presets": {"title": {"font": "headline"}}})
	return root


def test_version():
	result = runner.invoke(cli, ["--version"])
	assert result.exit_code == 0
	assert result.stdout.strip() == __version__


def test_resolve(tmp_path: Path):
	data = write(tmp_path / "data.json", {"user": {"name": "ada"}, "ts": "2024-01-15T03:00:00Z"})
	result = runner.invoke(cli, ["resolve", "$.user.name | uppercase", "--data", str(data)])
	assert result.exit_code == 0
	assert json.loads(result.stdout) == "ADA"

	result = runner.invoke(
		cli,
		["resolve", "$.ts | date:MMM d", "--data", str(data), "--timezone", "America/New_York"],
	)
	assert json.loads(result.stdout) == "Jan 14"



def test_resolve_emits_lone_surrogates(tmp_path: Path):
	data = write(tmp_path / "data.json", {"s": "a\ud800b"})
	result = runner.invoke(cli, ["resolve", "$.s", "-d", str(data)])
	assert result.exit_code == 0
	assert result.stdout_bytes == b'"a\xed\xa0\x80b"\n'


def test_resolve_object_and_missing(tmp_path: Path):
	data = write(tmp_path / "data.json", {"user": {"name": "ada", "age": 36}})
	result = runner.invoke(cli, ["resolve", "$.user", "-d", str(data)])
	assert json.loads(result.stdout) == {"name": "ada", "age": 36}

	result = runner.invoke(cli, ["resolve", "$.nobody", "-d", str(data)])
	assert result.exit_code == 1


def test_resolve_rejects_bad_data_files(tmp_path: Path):
	not_json = tmp_path / "bad.json"
	not_json.write_text("{oops")
	array = write(tmp_path / "array.json", [1, 2])
	assert runner.invoke(cli, ["resolve", "$.x", "-d", str(not_json)]).exit_code == 1
	assert runner.invoke(cli, ["resolve", "$.x", "-d", str(array)]).exit_code == 1
	assert runner.invoke(cli, ["resolve", "$.x", "-d", str(tmp_path / "none.json")]).exit_code == 1


def test_condition(tmp_path: Path):
	data = write(tmp_path / "data.json", {"count": 3, "items": []})
	result = runner.invoke(cli, ["condition", "$.count > 2", "-d", str(data)])
	assert result.exit_code == 0
	assert result.stdout.strip() == "true"
	result = runner.invoke(cli, ["condition", "$.items | !empty", "-d", str(data)])
	assert result.stdout.strip() == "false"


def test_condition_dates_follow_configured_timezone(
	tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
	monkeypatch.delenv("VIEWENGINE_TIMEZONE", raising=False)
	data = write(tmp_path / "data.json", {"ts": "2024-01-15T03:00:00Z"})
	args = ["condition", "$.ts | date:d == 14", "-d", str(data)]
	assert runner.invoke(cli, args).stdout.strip() == "false"

	monkeypatch.setenv("VIEWENGINE_TIMEZONE", "America/New_York")
	result = runner.invoke(cli, args)
	assert result.exit_code == 0
	assert result.stdout.strip() == "true"


def test_render_without_on_load(screens: Path, tmp_path: Path):
	params = write(tmp_path / "params.json", {"heading": "Top Shows"})
	result = runner.invoke(
		cli, ["render", "home", "--documents", str(screens), "--data", str(params)]
	)
	assert result.exit_code == 0
	output = json.loads(result.stdout)
	assert output["title"] == "Top Shows"
	assert output["tree"] == {
		"type": "screen",
		"path": "0",
		"props": {"title": "Top Shows"},
		"children": [{"type": "list", "path": "0.0"}],
	}


def test_render_with_fixture(screens: Path, tmp_path: Path):
	fixture = write(
		tmp_path / "fixture.json",
		{"/top": {"resultCount": 1, "results": [{"trackName": "Daily"}]}},
	)
	result = runner.invoke(
		cli,
		["render", "home", "--documents", str(screens), "--on-load", "--fixture", str(fixture)],
	)
	assert result.exit_code == 0
	tree = json.loads(result.stdout)["tree"]
	row = tree["children"][0]["children"][0]
	assert row["type"] == "component"
	assert row["children"] == [
		{
			"type": "text",
			"path": "0.0.0.0",
			"style": {"font": "headline"},
			"props": {"content": "Daily"},
		}
	]


def test_render_missing_screen_or_directory(screens: Path, tmp_path: Path):
	assert runner.invoke(cli, ["render", "nowhere", "--documents", str(screens)]).exit_code == 1
	result = runner.invoke(cli, ["render", "home", "--documents", str(tmp_path / "absent")])
	assert result.exit_code == 1


def test_dispatch_reports_data_and_intents(tmp_path: Path):
	action = write(
		tmp_path / "action.json",
		{
			"actionType": "sequence",
			"actions": [
				{"actionType": "api", "endpoint": "/search", "resultKey": "hits"},
				{"actionType": "setState", "key": "first", "value": "$.hits.0.name"},
				{"actionType": "custom", "event": "play", "payload": {"id": "$.hits.0.id"}},
				{"actionType": "custom", "event": "unheard"},
				{"actionType": "navigate", "screen": "detail", "params": {"id": "$.hits.0.id"}},
				{"actionType": "present", "screen": "sheet"},
				{"actionType": "dismiss"},
			],
		},
	)
	fixture = write(
		tmp_path / "fixture.json", {"/search": {"results": [{"trackName": "Daily", "trackId": 9}]}}
	)
	data = write(tmp_path / "data.json", {"term": "news"})
	result = runner.invoke(
		cli,
		[
			"dispatch",
			str(action),
			"--data",
			str(data),
			"--fixture",
			str(fixture),
			"--event",
			"play",
			"--no-delay",
		],
	)
	assert result.exit_code == 0
	output = json.loads(result.stdout)
	assert output["data"]["term"] == "news"
	assert output["data"]["first"] == "Daily"
	assert output["data"]["hits"] == [{"trackName": "Daily", "trackId": 9, "name": "Daily", "id": 9}]
	assert output["intents"] == [
		{"intent": "event", "event": "play", "payload": {"id": "9"}},
		{"intent": "navigate", "screen": "detail", "params": {"id": 9}},
		{"intent": "present", "screen": "sheet", "params": {}},
		{"intent": "dismiss"},
	]


def test_dispatch_rejects_non_action_documents(tmp_path: Path):
	action = write(tmp_path / "action.json", {"key": "no action type"})
	assert runner.invoke(cli, ["dispatch", str(action), "--no-delay"]).exit_code == 1
