"""Segments produced by external plugin executables."""

from __future__ import annotations

import json
import subprocess
from typing import Any

from .segment import Segment

PLUGIN_PREFIX = "powerprompt-"


def parse_plugin_output(output: bytes | str) -> list[Segment]:
    """Decode a JSON list of segment objects; raises ValueError if invalid."""
    data = json.loads(output)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError("plugin output must be a JSON list")
    return [Segment() if item is None else Segment.from_dict(item) for item in data]


def segment_plugin(p: Any, plugin: str) -> list[Segment] | None:
    """Run the plugin executable for ``plugin``.

    Returns None when it cannot be run or fails, and an empty list when it
    runs but prints nothing usable.
    """
    try:
        completed = subprocess.run(
            [PLUGIN_PREFIX + plugin], capture_output=True, stdin=subprocess.DEVNULL
        )
    except OSError:
        return None
    if completed.returncode != 0:
        return None
    try:
        return parse_plugin_output(completed.stdout)
    except ValueError:
        return []