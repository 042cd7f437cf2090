"""Prompt segments and terminal display-width helpers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from wcwidth import wcwidth

_UINT8 = "uint8"

_SEGMENT_KINDS: dict[str, Any] = {
    "name": str,
    "content": str,
    "foreground": _UINT8,
    "background": _UINT8,
    "separator": str,
    "separator_foreground": _UINT8,
    "priority": int,
    "hide_separators": bool,
    "width": int,
    "new_line": bool,
}


def _char_width(char: str) -> int:
    width = wcwidth(char)
    return width if width > 0 else 0


def string_width(text: str) -> int:
    """Return the number of terminal cells ``text`` occupies."""
    return sum(_char_width(char) for char in text)


def truncate(text: str, width: int, tail: str) -> str:
    """Cut ``text`` so that, with ``tail`` appended, it fits in ``width`` cells."""
    if string_width(text) <= width:
        return text
    limit = width - string_width(tail)
    used = 0
    for index, char in enumerate(text):
        char_width = _char_width(char)
        if used + char_width > limit:
            return text[:index] + tail
        used += char_width
    return text + tail


def _coerce(name: str, kind: Any, value: Any) -> Any:
    if kind is bool:
        if not isinstance(value, bool):
            raise ValueError(f"segment field {name!r} expects a boolean")
        return value
    if kind is str:
        if not isinstance(value, str):
            raise ValueError(f"segment field {name!r} expects a string")
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"segment field {name!r} expects an integer")
    if kind == _UINT8 and not 0 <= value <= 255:
        raise ValueError(f"segment field {name!r} must be between 0 and 255")
    return value


@dataclass
class Segment:
    """A piece of information shown on the prompt."""

    name: str = ""
    content: str = ""
    foreground: int = 0
    background: int = 0
    separator: str = ""
    separator_foreground: int = 0
    priority: int = 0
    hide_separators: bool = False
    width: int = 0
    new_line: bool = False

    def compute_width(self, condensed: bool) -> int:
        """Width in cells of the drawn segment, padding included unless condensed."""
        width = string_width(self.content) + string_width(self.separator)
        return width if condensed else width + 2

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Segment":
        """Build a segment from a JSON object with case-insensitive field names."""
        if not isinstance(data, Mapping):
            raise ValueError("a segment must be a JSON object")
        by_key = {f.name.replace("_", ""): f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = by_key.get(str(key).lower())
            if name is None or value is None:
                continue
            values[name] = _coerce(name, _SEGMENT_KINDS[name], value)
        return cls(**values)