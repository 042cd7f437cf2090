"""Segments built from the configuration and the user's identity alone."""

from __future__ import annotations

import hashlib
import math
import os
import re
from typing import Any

from .exitcodes import signal_names
from .segment import Segment

MAX_INTEGER = 2**63 - 1

_MICRO = "\u00b5"

_NANOSECOND = 1
_MICROSECOND = _NANOSECOND * 1000
_MILLISECOND = _MICROSECOND * 1000
_SECOND = _MILLISECOND * 1000
_MINUTE = _SECOND * 60
_HOUR = _MINUTE * 60

_EXIT_CODES = {
    1: "ERROR",
    2: "USAGE",
    126: "NOEXEC",
    127: "NOTFOUND",
    64: "USAGE",
    65: "DATAERR",
    66: "NOINPUT",
    67: "NOUSER",
    68: "NOHOST",
    69: "UNAVAILABLE",
    70: "SOFTWARE",
    71: "OSERR",
    72: "OSFILE",
    73: "CANTCREAT",
    74: "IOERR",
    75: "TEMPFAIL",
    76: "PROTOCOL",
    77: "NOPERM",
    78: "CONFIG",
}


def _parse_float(text: str) -> float:
    if text != text.strip() or "_" in text:
        raise ValueError(f"invalid number {text!r}")
    return float(text)


def _format_duration(ns: int, has_precision: bool, low_precision: bool) -> str:
    if ns > _HOUR:
        hours, rest = divmod(ns, _HOUR)
        return f"{hours}h {rest // _MINUTE}m"
    if ns > _MINUTE:
        minutes, rest = divmod(ns, _MINUTE)
        return f"{minutes}m {rest // _SECOND}s"
    if not has_precision:
        return f"{ns // _SECOND}s"
    if ns > _SECOND:
        seconds, rest = divmod(ns, _SECOND)
        return f"{seconds}s {rest // _MILLISECOND}ms"
    if ns > _MILLISECOND or low_precision:
        millis, rest = divmod(ns, _MILLISECOND)
        if low_precision:
            return f"{millis}ms"
        return f"{millis}ms {rest // _MICROSECOND}{_MICRO}s"
    return f"{ns // _MICROSECOND}{_MICRO}s"


def segment_duration(p: Any) -> list[Segment]:
    """Elapsed time of the previous command."""
    cfg = p.cfg
    theme = p.theme

    def make(content: str) -> list[Segment]:
        return [
            Segment(
                name="duration",
                content=content,
                foreground=theme.duration_fg,
                background=theme.duration_bg,
            )
        ]

    if cfg.duration == "":
        return make("No duration")

    value = cfg.duration.strip("'\"")
    min_value = cfg.duration_min.strip("'\"")
    has_precision = "." in value

    try:
        seconds = _parse_float(value)
    except ValueError:
        return make(f"Failed to convert '{cfg.duration}' to a number")
    try:
        min_seconds = _parse_float(min_value)
    except ValueError:
        min_seconds = 0.0

    if seconds < min_seconds or not math.isfinite(seconds):
        return []

    nanoseconds = seconds * float(_SECOND)
    if abs(nanoseconds) > MAX_INTEGER:
        return []
    ns = int(nanoseconds)
    if ns <= 0:
        return []

    return make(_format_duration(ns, has_precision, cfg.duration_low_precision))


def exit_code_meaning(exit_code: int) -> str:
    """Symbolic name of an exit status, or the number itself."""
    if exit_code < 128:
        name = _EXIT_CODES.get(exit_code)
    else:
        name = signal_names().get(exit_code - 128)
    return name if name is not None else str(exit_code)


def segment_exit_code(p: Any) -> list[Segment]:
    """The exit status of the previous command, when it failed."""
    code = p.cfg.prev_error
    if code == 0:
        return []
    meaning = str(code) if p.cfg.numeric_exit_codes else exit_code_meaning(code)
    return [
        Segment(
            name="exit",
            content=meaning,
            foreground=p.theme.cmd_failed_fg,
            background=p.theme.cmd_failed_bg,
        )
    ]


def host_name(fqdn: str) -> str:
    """The host part of a fully qualified domain name."""
    return fqdn.split(".", 1)[0]


_UINT_TEXT = re.compile(r"[0-9A-Za-z_]+")


def _parse_uint8(text: str) -> int:
    if not _UINT_TEXT.fullmatch(text):
        raise ValueError(f"invalid number {text!r}")
    lowered = text.lower()
    if lowered.startswith(("0x", "0o", "0b")):
        value = int(text, 0)
    elif len(text) > 1 and text.startswith("0"):
        value = int(text[1:], 8)
    else:
        value = int(text, 10)
    if not 0 <= value <= 255:
        raise ValueError(f"{text!r} is out of range")
    return value


def segment_host(p: Any) -> list[Segment]:
    """The host name, optionally coloured by a hash of itself."""
    cfg = p.cfg
    if cfg.hostname_only_if_ssh and os.environ.get("SSH_CLIENT", "") == "":
        return []

    if cfg.colorize_hostname:
        name = host_name(p.hostname)
        content = name
        try:
            foreground = _parse_uint8(os.environ.get("PLGO_HOSTNAMEFG", ""))
            background = _parse_uint8(os.environ.get("PLGO_HOSTNAMEBG", ""))
        except ValueError:
            background = hashlib.md5(name.encode()).digest()[0] % 128
            foreground = p.theme.hostname_colorized_fg_map.get(background, 0)
    else:
        if cfg.shell == "bash":
            content = "\\h"
        elif cfg.shell == "zsh":
            content = "%m"
        else:
            content = host_name(p.hostname)
        foreground = p.theme.hostname_fg
        background = p.theme.hostname_bg

    return [Segment(name="host", content=content, foreground=foreground, background=background)]


def segment_user(p: Any) -> list[Segment]:
    """The user name, highlighted for administrators."""
    shell = p.cfg.shell
    if shell == "bash":
        content = "\\u"
    elif shell == "zsh":
        content = "%n"
    else:
        content = p.username
    background = p.theme.username_root_bg if p.user_is_admin else p.theme.username_bg
    return [
        Segment(
            name="user",
            content=content,
            foreground=p.theme.username_fg,
            background=background,
        )
    ]


def segment_term_title(p: Any) -> list[Segment]:
    """An escape sequence that sets the terminal window title."""
    term = os.environ.get("TERM", "")
    if "xterm" not in term and "rxvt" not in term:
        return []

    if p.cfg.shell == "bash":
        title = "\\[\\e]0;\\u@\\h: \\w\\a\\]"
    elif p.cfg.shell == "zsh":
        title = "%{\033]0;%n@%m: %~\007%}"
    else:
        title = f"\033]0;{p.username}@{p.hostname}: {p.cwd}\007"

    return [
        Segment(
            name="termtitle",
            content=title,
            priority=MAX_INTEGER,
            hide_separators=True,
        )
    ]


def segment_root(p: Any) -> list[Segment]:
    """The prompt indicator, coloured by the previous command's outcome."""
    if p.cfg.prev_error == 0 or p.cfg.static_prompt_indicator:
        foreground, background = p.theme.cmd_passed_fg, p.theme.cmd_passed_bg
    else:
        foreground, background = p.theme.cmd_failed_fg, p.theme.cmd_failed_bg
    return [
        Segment(
            name="root",
            content=p.shell.root_indicator,
            foreground=foreground,
            background=background,
        )
    ]


def segment_jobs(p: Any) -> list[Segment]:
    """The number of background jobs, when there are any."""
    if p.cfg.jobs <= 0:
        return []
    return [
        Segment(
            name="jobs",
            content=str(p.cfg.jobs),
            foreground=p.theme.jobs_fg,
            background=p.theme.jobs_bg,
        )
    ]


def segment_newline(p: Any) -> list[Segment]:
    """A marker that starts a new prompt row."""
    return [Segment(new_line=True)]