"""Collecting segments from modules and drawing them as a shell prompt."""

from __future__ import annotations

import copy
import enum
import os
import posixpath
import re
import socket
import sys
import unicodedata
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any

import psutil

from .basic import MAX_INTEGER
from .environment import user_is_admin as _user_is_admin
from .plugin import segment_plugin
from .segment import Segment, string_width, truncate
from .themes import ShellInfo, SymbolTemplate, Theme

ELLIPSIS = "\u2026"

ModuleFunction = Callable[[Any], list[Segment]]

_INT_TEXT = re.compile(r"[+-]?[0-9A-Za-z_]+")


class Alignment(enum.Enum):
    """Which side of the terminal a prompt is anchored to."""

    LEFT = "left"
    RIGHT = "right"


def detect_shell(shell_exe: str) -> str:
    """Shell name ("bash", "zsh" or "bare") from the path of its executable."""
    name = posixpath.basename(shell_exe)
    if "bash" in name:
        return "bash"
    if "zsh" in name:
        return "zsh"
    return "bare"


def _parse_int(text: str) -> int:
    """Parse an integer with an optional 0x/0o/0b prefix or a leading-zero octal."""
    if not _INT_TEXT.fullmatch(text):
        raise ValueError(f"invalid number {text!r}")
    sign = -1 if text.startswith("-") else 1
    body = text.lstrip("+-")
    if body.lower().startswith(("0x", "0o", "0b")):
        return sign * int(body, 0)
    if "_" in body:
        raise ValueError(f"invalid number {text!r}")
    if len(body) > 1 and body.startswith("0"):
        return sign * int(body[1:], 8)
    return sign * int(body, 10)


def term_width() -> int:
    """Width of the terminal on stdin, else $COLUMNS, else 0."""
    try:
        return os.get_terminal_size(sys.stdin.fileno()).columns
    except (OSError, ValueError, AttributeError):
        pass
    columns = os.environ.get("COLUMNS")
    if columns is None:
        return 0
    try:
        return _parse_int(columns)
    except ValueError:
        return 0


def _apply_template(template: str, value: str) -> str:
    """Substitute ``value`` for the first %s of ``template``; %% is a percent sign."""
    out: list[str] = []
    used = False
    i = 0
    while i < len(template):
        char = template[i]
        if char == "%" and i + 1 < len(template):
            verb = template[i + 1]
            if verb == "%":
                out.append("%")
                i += 2
                continue
            if verb == "s":
                out.append("%!s(MISSING)" if used else value)
                used = True
                i += 2
                continue
        out.append(char)
        i += 1
    if not used:
        out.append(f"%!(EXTRA string={value})")
    return "".join(out)


def _truncated_division(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return -quotient if (numerator < 0) != (denominator < 0) else quotient


def _current_user() -> tuple[str, str]:
    """Login name and home directory of the current user."""
    home = os.path.expanduser("~")
    if sys.platform == "win32":
        name = os.environ.get("USERNAME", "")
        domain = os.environ.get("USERDOMAIN", "")
        return (f"{domain}\\{name}" if domain and name else name), home
    try:
        import pwd

        entry = pwd.getpwuid(os.getuid())
    except (ImportError, KeyError):
        return os.environ.get("USER", ""), home
    return entry.pw_name, entry.pw_dir


def _parent_shell_exe() -> str:
    try:
        return psutil.Process(os.getppid()).exe()
    except (psutil.Error, OSError):
        return ""


def _lowest_priority(row: list[Segment], wanted: Callable[[Segment], bool]) -> int | None:
    """Index of the first segment with the lowest priority among those wanted."""
    best: int | None = None
    lowest = MAX_INTEGER
    for idx, segment in enumerate(row):
        if wanted(segment) and segment.priority < lowest:
            lowest = segment.priority
            best = idx
    return best


class Powerline:
    """A prompt: its rows of segments and how to draw them for a shell."""

    def __init__(
        self,
        cfg: Any,
        cwd: str,
        align: Alignment = Alignment.LEFT,
        modules: Mapping[str, ModuleFunction] | None = None,
    ) -> None:
        self.cfg = cfg
        self.cwd = cwd
        self.align = align
        self._registry: Mapping[str, ModuleFunction] = modules or {}

        login, self.home_dir = _current_user()
        self.hostname = socket.gethostname()
        prefix = self.hostname + os.sep
        self.username = login[len(prefix) :] if login.startswith(prefix) else login
        if cfg.trim_ad_domain:
            parts = self.username.split("\\", 1)
            if len(parts) > 1:
                self.username = parts[1]
        self.user_is_admin = _user_is_admin()

        self.theme: Theme = cfg.themes.get(cfg.theme, Theme())
        if cfg.shell == "autodetect":
            shell_exe = _parent_shell_exe() or os.environ.get("SHELL", "")
            cfg = copy.copy(cfg)
            cfg.shell = detect_shell(shell_exe)
        self.shell: ShellInfo = cfg.shells.get(cfg.shell, ShellInfo())
        self.reset = _apply_template(self.shell.color_template, "[0m")
        self.symbols: SymbolTemplate = cfg.modes.get(cfg.mode, SymbolTemplate())
        count = len(cfg.priority)
        self.priorities = {name: count - idx for idx, name in enumerate(cfg.priority)}
        self.ignore_repos = {repo for repo in cfg.ignore_repos if repo != ""}
        self.segments: list[list[Segment]] = [[]]
        self.right_powerline: Powerline | None = None

        if align is Alignment.LEFT:
            mods = list(cfg.modules)
            if cfg.modules_right:
                if self.supports_right_modules():
                    self.right_powerline = Powerline(cfg, cwd, Alignment.RIGHT, self._registry)
                else:
                    mods.extend(cfg.modules_right)
        else:
            mods = list(cfg.modules_right)
        self._init_segments(mods)

    def _run_module(self, name: str) -> list[Segment]:
        function = self._registry.get(name)
        if function is not None:
            return function(self)
        segments = segment_plugin(self, name)
        if segments is None:
            print(f"Module not found: {name}", file=sys.stderr)
            return []
        return segments

    def _init_segments(self, mods: list[str]) -> None:
        if not mods:
            return
        with ThreadPoolExecutor(max_workers=len(mods)) as executor:
            results = list(executor.map(self._run_module, mods))
        for segments in results:
            for segment in segments:
                self.append_segment(segment.name, segment)

    def color(self, prefix: str, code: int) -> str:
        """Escape sequence for a 256-colour code, or the reset sequence."""
        if code == self.theme.reset:
            return self.reset
        return _apply_template(self.shell.color_template, f"[{prefix};5;{code}m")

    def fg_color(self, code: int) -> str:
        """Foreground colour sequence, bold if the theme asks for it."""
        return self.color("1;38" if self.theme.bold_foreground else "38", code)

    def bg_color(self, code: int) -> str:
        """Background colour sequence."""
        return self.color("48", code)

    def append_segment(self, origin: str, segment: Segment) -> None:
        """Fill in defaults for ``segment`` and add it to the current row."""
        segment = replace(segment)
        if segment.foreground == segment.background == 0:
            segment.background = self.theme.default_bg
            segment.foreground = self.theme.default_fg
        if segment.separator == "":
            segment.separator = (
                self.symbols.separator_reverse
                if self.is_right_prompt()
                else self.symbols.separator
            )
        if segment.separator_foreground == 0:
            segment.separator_foreground = segment.background
        segment.priority += self.priorities.get(origin, 0)
        segment.width = segment.compute_width(self.cfg.condensed)
        if segment.new_line:
            self.new_row()
        else:
            self.segments[-1].append(segment)

    def new_row(self) -> None:
        """Start a new row unless the current one is still empty."""
        if self.segments[-1]:
            self.segments.append([])

    def truncate_row(self, row_num: int) -> None:
        """Shorten, then drop, low-priority segments until the row fits."""
        max_length = _truncated_division(term_width() * self.cfg.max_width_percentage, 100)
        row = list(self.segments[row_num])
        if max_length > 0:
            length = sum(segment.width for segment in row)
            limit = self.cfg.truncate_segment_width
            if length > max_length and limit > 0:
                while length > max_length:
                    idx = _lowest_priority(row, lambda s: s.width > limit)
                    if idx is None:
                        break
                    original = row[idx]
                    shortened = replace(
                        original,
                        content=truncate(
                            original.content,
                            limit - string_width(original.separator) - 3,
                            ELLIPSIS,
                        ),
                    )
                    shortened.width = shortened.compute_width(self.cfg.condensed)
                    if shortened.width >= original.width:
                        break
                    row[idx] = shortened
                    length += shortened.width - original.width
            while length > max_length:
                idx = _lowest_priority(row, lambda s: True)
                if idx is None:
                    break
                length -= row.pop(idx).width
        self.segments[row_num] = row

    def num_east_asian_runes(self, content: str) -> int:
        """Characters of East Asian ambiguous width, when that option is on."""
        if not self.cfg.east_asian_width:
            return 0
        return sum(1 for char in content if unicodedata.east_asian_width(char) == "A")

    def draw_row(self, row_num: int) -> str:
        """Render one row of segments."""
        row = self.segments[row_num]
        right = self.is_right_prompt()
        pad = "" if self.cfg.condensed else " "
        parts: list[str] = []
        east_asian = 0

        if right:
            parts.append(" ")
        for idx, segment in enumerate(row):
            if segment.hide_separators:
                parts.append(segment.content)
                continue
            separator_background = ""
            if right:
                separator_background = (
                    self.reset if idx == 0 else self.bg_color(row[idx - 1].background)
                )
                parts += [
                    separator_background,
                    self.fg_color(segment.separator_foreground),
                    segment.separator,
                ]
            elif idx >= len(row) - 1:
                if not self.has_right_modules() or self.supports_right_modules():
                    separator_background = self.reset
                elif row_num >= len(self.segments) - 1:
                    first = self.right_powerline.segments[0][0]
                    separator_background = self.bg_color(first.background)
            else:
                separator_background = self.bg_color(row[idx + 1].background)

            parts += [
                self.fg_color(segment.foreground),
                self.bg_color(segment.background),
                pad,
                segment.content,
                pad,
            ]
            east_asian += self.num_east_asian_runes(segment.content)
            if not right:
                parts += [
                    separator_background,
                    self.fg_color(segment.separator_foreground),
                    segment.separator,
                ]
            parts.append(self.reset)

        if not right or not self.has_right_modules():
            parts.append(" ")
        if not right:
            parts.append(" " * east_asian)
        return "".join(parts)

    def draw(self) -> str:
        """Render the whole prompt, including any right-hand prompt."""
        shell = self.shell
        out = ""
        if self.cfg.eval:
            if self.align is Alignment.LEFT:
                out += shell.eval_prompt_prefix
            elif self.supports_right_modules():
                out += shell.eval_prompt_right_prefix

        last = len(self.segments) - 1
        for row_num in range(len(self.segments)):
            self.truncate_row(row_num)
            out += self.draw_row(row_num)
            if row_num < last:
                out += "\n"

        if self.cfg.prompt_on_new_line:
            if self.cfg.prev_error == 0 or self.cfg.static_prompt_indicator:
                foreground, background = self.theme.cmd_passed_fg, self.theme.cmd_passed_bg
            else:
                foreground, background = self.theme.cmd_failed_fg, self.theme.cmd_failed_bg
            out += "".join(
                [
                    "\n",
                    self.fg_color(foreground),
                    self.bg_color(background),
                    shell.root_indicator,
                    self.reset,
                    self.fg_color(background),
                    self.symbols.separator,
                    self.reset,
                    " ",
                ]
            )

        if self.cfg.eval:
            if self.align is Alignment.LEFT:
                out += shell.eval_prompt_suffix
                if self.supports_right_modules():
                    out += "\n"
                    if not self.has_right_modules():
                        out += shell.eval_prompt_right_prefix + shell.eval_prompt_right_suffix
            elif self.supports_right_modules():
                out = out[:-1] + shell.eval_prompt_right_suffix
            if self.has_right_modules():
                out += self.right_powerline.draw()
        return out

    def has_right_modules(self) -> bool:
        """Whether a right-hand prompt exists and has segments."""
        return self.right_powerline is not None and bool(self.right_powerline.segments[0])

    def supports_right_modules(self) -> bool:
        """Whether the shell can show a right-hand prompt."""
        return (
            self.shell.eval_prompt_right_prefix != ""
            or self.shell.eval_prompt_right_suffix != ""
        )

    def is_right_prompt(self) -> bool:
        """Whether this prompt is drawn on the right-hand side."""
        return self.align is Alignment.RIGHT and self.supports_right_modules()