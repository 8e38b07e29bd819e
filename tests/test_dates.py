from datetime import UTC, datetime, timedelta, timezone

import pytest
from viewengine.dates import format_date, parse_iso8601


def test_parse_with_and_without_fraction():
	assert parse_iso8601("2024-01-15T10:30:00Z") == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
	assert parse_iso8601("2024-01-15T10:30:00.5Z") == datetime(
		2024, 1, 15, 10, 30, 0, 500000, tzinfo=UTC
	)


def test_parse_lowercase_utc_designator():
	assert parse_iso8601("2024-01-15T10:30:00z") == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)


def test_parse_offset():
	parsed = parse_iso8601("2024-01-15T10:30:00-05:30")
	assert parsed is not None
	assert parsed.utcoffset() == -timedelta(hours=5, minutes=30)


@pytest.mark.parametrize(
	"text",
	[
		"2024-01-15",
		"2024-01-15T10:30:00",
		"2024-01-15 10:30:00Z",
		"2024-13-01T00:00:00Z",
		"soon",
		"",
	],
)
def test_parse_rejects(text: str):
	assert parse_iso8601(text) is None


@pytest.mark.parametrize(
	"pattern,expected",
	[
		("MMM d, yyyy", "Mar 5, 2023"),
		("MMMM dd", "March 05"),
		("EEEE", "Sunday"),
		("EEE", "Sun"),
		("yy-MM-dd", "23-03-05"),
		("h:mm a", "2:07 PM"),
		("HH:mm:ss", "14:07:09"),
		("'Week of' MMM d", "Week of Mar 5"),
		("h 'o''clock'", "2 o'clock"),
		("D", "64"),
	],
)
def test_format_patterns(pattern: str, expected: str):
	dt = datetime(2023, 3, 5, 14, 7, 9, tzinfo=UTC)
	assert format_date(dt, pattern) == expected


def test_format_converts_to_target_timezone():
	dt = datetime(2023, 3, 5, 1, 0, tzinfo=UTC)
	tz = timezone(timedelta(hours=-3))
	assert format_date(dt, "MMM d HH:mm Z", tz) == "Mar 4 22:00 -0300"
	assert format_date(dt, "XXX", UTC) == "Z"
