"""The current-directory segment: path splitting, aliases and shortening."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from .environment import warn
from .segment import Segment

ELLIPSIS = "\u2026"


@dataclass
class PathSegment:
    """One component of the displayed working directory."""

    path: str
    home: bool = False
    root: bool = False
    ellipsis: bool = False
    alias: bool = False


def alias_path_segments(p: Any, path_segments: list[PathSegment]) -> list[PathSegment]:
    """Replace runs of path components that match a configured alias.

    Longer aliases are tried first; each alias replaces at most one run.
    """
    aliases = p.cfg.path_aliases
    if not aliases:
        return path_segments

    sep = os.sep
    segments = list(path_segments)
    for key in sorted(aliases, key=len, reverse=True):
        parts = key.strip(sep).split(sep)
        size = len(parts)
        if size > len(segments):
            continue
        alias = aliases[key]
        for start in range(len(segments)):
            end = start + size - 1
            if end > len(segments) - start - 1:
                break
            if [segment.path for segment in segments[start : end + 1]] == parts:
                segments[start : end + 1] = [PathSegment(alias, alias=True)]
                break
    return segments


def cwd_to_path_segments(p: Any, cwd: str) -> list[PathSegment]:
    """Split ``cwd`` into components, marking the home directory and the root."""
    sep = os.sep
    home = p.home_dir
    segments: list[PathSegment] = []

    if cwd == home:
        segments.append(PathSegment("~", home=True))
        cwd = ""
    elif cwd.startswith(home + sep):
        segments.append(PathSegment("~", home=True))
        cwd = cwd[len(home) :]
    elif cwd == sep:
        segments.append(PathSegment(sep, root=True))

    names = cwd.strip(sep).split(sep)
    if names[0] == "":
        names = names[1:]
    segments.extend(PathSegment(name) for name in names)

    return alias_path_segments(p, segments)


def shorten_name(p: Any, name: str) -> str:
    """Cut a directory name to the configured maximum size, if any."""
    limit = p.cfg.cwd_max_dir_size
    if limit > 0 and len(name) > limit:
        return name[:limit]
    return name


def escape_variables(p: Any, text: str) -> str:
    """Escape characters the shell would otherwise expand in the prompt."""
    text = text.replace("\\", p.shell.escaped_backslash)
    text = text.replace("`", p.shell.escaped_backtick)
    return text.replace("$", p.shell.escaped_dollar)


def path_color(p: Any, path_segment: PathSegment, is_last_dir: bool) -> tuple[int, int, bool]:
    """Foreground, background and whether the component is drawn specially."""
    theme = p.theme
    if path_segment.home and theme.home_special_display:
        return theme.home_fg, theme.home_bg, True
    if path_segment.alias:
        return theme.alias_fg, theme.alias_bg, True
    if is_last_dir:
        return theme.cwd_fg, theme.path_bg, False
    return theme.path_fg, theme.path_bg, False


def _limit_depth(p: Any, segments: list[PathSegment]) -> list[PathSegment]:
    max_depth = p.cfg.cwd_max_depth
    if max_depth <= 0:
        warn(
            "Ignoring -cwd-max-depth argument since it's smaller than or equal to 0",
            p.cfg.ignore_warnings,
        )
        return segments
    if len(segments) <= max_depth:
        return segments
    n_before = 2 if max_depth > 2 else max_depth - 1
    first = segments[:n_before]
    second = segments[len(segments) + n_before - max_depth :]
    return [*first, PathSegment(ELLIPSIS, ellipsis=True), *second]


def _semifancy(segments: list[PathSegment]) -> list[PathSegment]:
    last = len(segments) - 1
    path = ""
    for idx, segment in enumerate(segments):
        if segment.home or segment.alias:
            continue
        path += segment.path
        if idx != last:
            path += os.sep
    first = segments[0]
    result = [first] if first.home or first.alias else []
    result.append(PathSegment(path))
    return result


def segment_cwd(p: Any) -> list[Segment]:
    """Segments showing the current working directory."""
    cwd = p.cwd
    mode = p.cfg.cwd_mode

    if mode == "plain":
        if cwd.startswith(p.home_dir):
            cwd = "~" + cwd[len(p.home_dir) :]
        return [
            Segment(
                name="cwd",
                content=escape_variables(p, cwd),
                foreground=p.theme.cwd_fg,
                background=p.theme.path_bg,
            )
        ]

    path_segments = cwd_to_path_segments(p, cwd)
    if mode == "dironly":
        path_segments = path_segments[-1:]
    else:
        path_segments = _limit_depth(p, path_segments)
        if mode == "semifancy" and len(path_segments) > 1:
            path_segments = _semifancy(path_segments)

    right = p.is_right_prompt()
    last = len(path_segments) - 1
    segments = []
    for idx, path_segment in enumerate(path_segments):
        is_last_dir = idx == last
        foreground, background, special = path_color(p, path_segment, is_last_dir)
        segment = Segment(
            name="cwd" if is_last_dir else "cwd-path",
            content=escape_variables(p, shorten_name(p, path_segment.path)),
            foreground=foreground,
            background=background,
        )
        if not special:
            if right and idx != 0:
                segment.separator = p.symbols.separator_reverse_thin
                segment.separator_foreground = p.theme.separator_fg
            elif not right and not is_last_dir:
                segment.separator = p.symbols.separator_thin
                segment.separator_foreground = p.theme.separator_fg
        segments.append(segment)
    return segments