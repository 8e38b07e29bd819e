"""Named colors, fonts and style presets.

A theme document looks like::

	{
	  "colors": {"accent": "#FF3B30", "surface": {"light": "#F2F2F7", "dark": "#1C1C1E"}},
	  "fonts": {"title": {"size": 22, "weight": "bold"}},
	  "presets": {"card": {"padding": 12, "cornerRadius": 8}}
	}

Nodes pick a preset with ``style`` and override individual keys with
``inlineStyle``. Color names that are not defined are read as raw hex.
"""

from __future__ import annotations

import logging
import math
import string
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple, Self

from viewengine.codec import decode
from viewengine.documents_source import DocumentSource
from viewengine.errors import DocumentDecodeError
from viewengine.values import Double, Int, Object, String, Value

logger = logging.getLogger(__name__)

THEME_DOCUMENT = "theme"

FONT_WEIGHTS = (
	"ultraLight",
	"thin",
	"light",
	"regular",
	"medium",
	"semibold",
	"bold",
	"heavy",
	"black",
)
FONT_DESIGNS = ("default", "monospaced", "rounded", "serif")


class RGBA(NamedTuple):
	red: int
	green: int
	blue: int
	alpha: int = 255

	@property
	def hex(self) -> str:
		if self.alpha == 255:
			return "#%02X%02X%02X" % (self.red, self.green, self.blue)
		return "#%02X%02X%02X%02X" % (self.alpha, self.red, self.green, self.blue)


BLACK = RGBA(0, 0, 0)


def parse_hex(text: str) -> RGBA:
	"""``#RRGGBB`` or ``#AARRGGBB``; anything else is opaque black."""
	digits = text.strip("#")
	if len(digits) not in (6, 8) or not all(c in string.hexdigits for c in digits):
		return BLACK
	number = int(digits, 16)
	if len(digits) == 6:
		return RGBA(number >> 16, (number >> 8) & 0xFF, number & 0xFF)
	return RGBA((number >> 16) & 0xFF, (number >> 8) & 0xFF, number & 0xFF, number >> 24)


@dataclass(frozen=True, slots=True)
class FixedColor:
	hex: str


@dataclass(frozen=True, slots=True)
class AdaptiveColor:
	light: str
	dark: str


ColorDef = FixedColor | AdaptiveColor


@dataclass(frozen=True, slots=True)
class FontDef:
	size: float
	weight: str | None = None
	design: str | None = None

	@classmethod
	def from_value(cls, value: Value | None) -> Self | None:
		if not isinstance(value, Object):
			return None
		size = value.get("size")
		if not isinstance(size, (Int, Double)):
			return None
		weight, design = value.get("weight"), value.get("design")
		if weight is not None and not weight.is_null and not isinstance(weight, String):
			return None
		if design is not None and not design.is_null and not isinstance(design, String):
			return None
		return cls(
			size=float(size.value),
			weight=weight.value if isinstance(weight, String) else None,
			design=design.value if isinstance(design, String) else None,
		)

	@property
	def resolved_weight(self) -> str:
		return self.weight if self.weight in FONT_WEIGHTS else "regular"

	@property
	def resolved_design(self) -> str:
		return self.design if self.design in FONT_DESIGNS else "default"


def _color_def(value: Value) -> ColorDef | None:
	if isinstance(value, String):
		return FixedColor(value.value)
	if isinstance(value, Object):
		light, dark = value.get("light"), value.get("dark")
		if isinstance(light, String) and isinstance(dark, String):
			return AdaptiveColor(light.value, dark.value)
	return None


def _dimension(value: Value | None) -> float | None:
	if value is None:
		return None
	if isinstance(value, String) and value.value == "infinity":
		return math.inf
	return value.as_double()


class ThemeEngine:
	color_defs: dict[str, ColorDef]
	fonts: dict[str, FontDef]
	presets: dict[str, dict[str, Value]]

	def __init__(self) -> None:
		self.color_defs = {}
		self.fonts = {}
		self.presets = {}

	def load(self, source: DocumentSource, name: str = THEME_DOCUMENT) -> bool:
		"""Load colors, fonts and presets; returns False if nothing was loaded.

		Colors merge into the current table (entries of any other shape are
		skipped). Fonts and presets replace the current tables. A malformed
		font or preset rejects the whole document.
		"""
		data = source.load(name)
		if data is None:
			logger.debug("No %s document", name)
			return False
		try:
			root = decode(data)
		except DocumentDecodeError as e:
			logger.warning("Ignoring malformed %s document: %s", name, e)
			return False
		if not isinstance(root, Object):
			logger.warning("Theme document %s is not an object", name)
			return False

		fonts: dict[str, FontDef] = {}
		raw_fonts = root.get("fonts")
		if isinstance(raw_fonts, Object):
			for font_name, raw in raw_fonts.value.items():
				font = FontDef.from_value(raw)
				if font is None:
					logger.warning("Invalid font %r in %s", font_name, name)
					return False
				fonts[font_name] = font
		elif raw_fonts is not None and not raw_fonts.is_null:
			logger.warning("Invalid fonts table in %s", name)
			return False

		presets: dict[str, dict[str, Value]] = {}
		raw_presets = root.get("presets")
		if isinstance(raw_presets, Object):
			for preset_name, raw in raw_presets.value.items():
				if not isinstance(raw, Object):
					logger.warning("Invalid preset %r in %s", preset_name, name)
					return False
				presets[preset_name] = dict(raw.value)
		elif raw_presets is not None and not raw_presets.is_null:
			logger.warning("Invalid presets table in %s", name)
			return False

		raw_colors = root.get("colors")
		if isinstance(raw_colors, Object):
			for color_name, raw in raw_colors.value.items():
				color = _color_def(raw)
				if color is not None:
					self.color_defs[color_name] = color

		self.fonts = fonts
		self.presets = presets
		logger.debug(
			"Loaded theme %s: %d colors, %d fonts, %d presets",
			name,
			len(self.color_defs),
			len(fonts),
			len(presets),
		)
		return True

	def reload(self, source: DocumentSource, name: str = THEME_DOCUMENT) -> bool:
		self.color_defs.clear()
		self.fonts.clear()
		self.presets.clear()
		return self.load(source, name)

	@property
	def colors(self) -> dict[str, str]:
		"""Light-appearance hex for every named color."""
		return {
			name: color.hex if isinstance(color, FixedColor) else color.light
			for name, color in self.color_defs.items()
		}

	def preset(self, name: str) -> dict[str, Value]:
		return dict(self.presets.get(name, {}))

	def merge_style(
		self, style: str | None, inline_style: Mapping[str, Value] | None
	) -> dict[str, Value]:
		merged = self.preset(style) if style is not None else {}
		if inline_style:
			merged.update(inline_style)
		return merged

	def resolve_color(self, name: str, *, dark: bool = False) -> RGBA:
		color = self.color_defs.get(name)
		if color is None:
			return parse_hex(name)
		if isinstance(color, FixedColor):
			return parse_hex(color.hex)
		return parse_hex(color.dark if dark else color.light)

	def resolve_font(self, name: str) -> FontDef | None:
		return self.fonts.get(name)

	def resolve_style(
		self, properties: Mapping[str, Value], *, dark: bool = False
	) -> dict[str, Any]:
		"""Translate merged style properties into toolkit-neutral attributes.

		Unrecognized keys and values of the wrong shape are left out.
		"""
		out: dict[str, Any] = {}

		font_name = _string(properties.get("font"))
		if font_name is not None:
			font = self.resolve_font(font_name)
			if font is not None:
				out["font"] = {
					"size": font.size,
					"weight": font.resolved_weight,
					"design": font.resolved_design,
				}
			else:
				out["font"] = {"style": "body"}

		for key in ("foregroundColor", "backgroundColor"):
			color_name = _string(properties.get(key))
			if color_name is not None:
				out[key] = self.resolve_color(color_name, dark=dark).hex

		padding = properties.get("padding")
		if padding is not None:
			uniform = padding.as_double()
			if uniform is not None:
				out["padding"] = {edge: uniform for edge in ("top", "leading", "bottom", "trailing")}
			elif isinstance(padding, Object):
				out["padding"] = {
					edge: _double(padding.get(edge)) or 0.0
					for edge in ("top", "leading", "bottom", "trailing")
				}

		corner_radius = _double(properties.get("cornerRadius"))
		if corner_radius is not None:
			out["cornerRadius"] = corner_radius

		frame = {
			key: _dimension(properties.get(key))
			for key in ("width", "height", "maxWidth", "maxHeight")
		}
		frame = {key: size for key, size in frame.items() if size is not None}
		if frame:
			out["frame"] = frame

		shadow = properties.get("shadow")
		if isinstance(shadow, Object):
			shadow_color = _string(shadow.get("color"))
			out["shadow"] = {
				"radius": _double(shadow.get("radius")) or 0.0,
				"x": _double(shadow.get("x")) or 0.0,
				"y": _double(shadow.get("y")) or 0.0,
				"color": parse_hex(shadow_color).hex if shadow_color is not None else "#33000000",
			}

		opacity = _double(properties.get("opacity"))
		if opacity is not None:
			out["opacity"] = opacity

		if _string(properties.get("clipShape")) == "circle":
			out["clipShape"] = "circle"
		return out


def _string(value: Value | None) -> str | None:
	return value.as_string() if value is not None else None


def _double(value: Value | None) -> float | None:
	return value.as_double() if value is not None else None


__all__ = [
	"BLACK",
	"FONT_DESIGNS",
	"FONT_WEIGHTS",
	"RGBA",
	"THEME_DOCUMENT",
	"AdaptiveColor",
	"ColorDef",
	"FixedColor",
	"FontDef",
	"ThemeEngine",
	"parse_hex",
]
