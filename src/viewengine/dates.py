"""ISO-8601 parsing and Unicode date pattern formatting for the ``date`` transform."""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo

_MONTHS = (
	"January",
	"February",
	"March",
	"April",
	"May",
	"June",
	"July",
	"August",
	"September",
	"October",
	"November",
	"December",
)
_WEEKDAYS = (
	"Monday",
	"Tuesday",
	"Wednesday",
	"Thursday",
	"Friday",
	"Saturday",
	"Sunday",
)


def parse_iso8601(text: str) -> datetime | None:
	"""Parse an internet date-time, with or without fractional seconds.

	A timezone designator (``Z`` or ``+hh:mm``) is required.
	"""
	value = text
	if value.endswith("Z") or value.endswith("z"):
		value = value[:-1] + "+00:00"
	if "T" not in value:
		return None
	try:
		parsed = datetime.fromisoformat(value)
	except ValueError:
		return None
	if parsed.tzinfo is None:
		return None
	return parsed


def _tokens(pattern: str) -> list[tuple[str, str]]:
	"""Split a pattern into ("field", letters) and ("literal", text) tokens."""
	tokens: list[tuple[str, str]] = []
	i = 0
	n = len(pattern)
	while i < n:
		ch = pattern[i]
		if ch == "'":
			if i + 1 < n and pattern[i + 1] == "'":
				tokens.append(("literal", "'"))
				i += 2
				continue
			end = i + 1
			text: list[str] = []
			while end < n:
				if pattern[end] == "'":
					if end + 1 < n and pattern[end + 1] == "'":
						text.append("'")
						end += 2
						continue
					break
				text.append(pattern[end])
				end += 1
			tokens.append(("literal", "".join(text)))
			i = end + 1
		elif ch.isascii() and ch.isalpha():
			end = i
			while end < n and pattern[end] == ch:
				end += 1
			tokens.append(("field", pattern[i:end]))
			i = end
		else:
			tokens.append(("literal", ch))
			i += 1
	return tokens


def _offset(dt: datetime, *, colon: bool) -> str:
	delta = dt.utcoffset() or timedelta(0)
	total = int(delta.total_seconds()) // 60
	sign = "+" if total >= 0 else "-"
	hours, minutes = divmod(abs(total), 60)
	return f"{sign}{hours:02d}:{minutes:02d}" if colon else f"{sign}{hours:02d}{minutes:02d}"


def _field(dt: datetime, letters: str) -> str:
	ch = letters[0]
	count = len(letters)
	match ch:
		case "y" | "u":
			if count == 2:
				return f"{dt.year % 100:02d}"
			return str(dt.year).zfill(count)
		case "M" | "L":
			if count >= 5:
				return _MONTHS[dt.month - 1][0]
			if count == 4:
				return _MONTHS[dt.month - 1]
			if count == 3:
				return _MONTHS[dt.month - 1][:3]
			return str(dt.month).zfill(count)
		case "d":
			return str(dt.day).zfill(count)
		case "D":
			return str(dt.timetuple().tm_yday).zfill(count)
		case "E":
			name = _WEEKDAYS[dt.weekday()]
			if count >= 5:
				return name[0]
			if count == 4:
				return name
			return name[:3]
		case "a":
			return "AM" if dt.hour < 12 else "PM"
		case "h":
			return str(dt.hour % 12 or 12).zfill(count)
		case "H":
			return str(dt.hour).zfill(count)
		case "k":
			return str(dt.hour or 24).zfill(count)
		case "K":
			return str(dt.hour % 12).zfill(count)
		case "m":
			return str(dt.minute).zfill(count)
		case "s":
			return str(dt.second).zfill(count)
		case "S":
			return f"{dt.microsecond:06d}"[:count].ljust(count, "0")
		case "Z":
			return _offset(dt, colon=count >= 5)
		case "X" | "x":
			if ch == "X" and not dt.utcoffset():
				return "Z"
			return _offset(dt, colon=count >= 3)
		case _:
			return letters


def format_date(dt: datetime, pattern: str, tz: tzinfo | None = None) -> str:
	"""Render ``dt`` with a Unicode date pattern such as ``MMM d, yyyy``."""
	if tz is not None:
		dt = dt.astimezone(tz)
	parts: list[str] = []
	for kind, text in _tokens(pattern):
		parts.append(text if kind == "literal" else _field(dt, text))
	return "".join(parts)


__all__ = ["format_date", "parse_iso8601"]
