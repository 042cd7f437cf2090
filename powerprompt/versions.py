"""Segments for language version managers: goenv, rbenv, rvm and node."""

from __future__ import annotations

import json
import os
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .environment import home_env_name
from .segment import Segment

GO_VERSION_FILE = ".go-version"
GOENV_GLOBAL_VERSION_FILE = "/.goenv/version"
RUBY_VERSION_FILE = ".ruby-version"
RBENV_GLOBAL_VERSION_FILE = "/.rbenv/version"
PACKAGE_FILE = "./package.json"


def _command_output(*command: str) -> str | None:
    """Standard output of ``command``, or None if it cannot run or fails."""
    try:
        completed = subprocess.run(
            list(command), capture_output=True, stdin=subprocess.DEVNULL
        )
    except OSError:
        return None
    if completed.returncode != 0:
        return None
    return completed.stdout.decode("utf-8", errors="replace")


def _read_stripped(path: str) -> str | None:
    try:
        return Path(path).read_bytes().decode("utf-8", errors="replace").strip()
    except OSError:
        return None


def _home() -> str:
    return os.environ.get(home_env_name(), "")


def find_version_file(start: str, filename: str) -> str | None:
    """Stripped contents of the first ``filename`` found from ``start`` upwards.

    The filesystem root itself is not searched. Returns None if no file is found.
    """
    directory = start
    while directory != "/":
        content = _read_stripped(os.path.join(directory, filename))
        if content is not None:
            return content
        parent = os.path.dirname(directory)
        if parent == directory:
            break
        directory = parent
    return None


def _version_in_tree(filename: str) -> str | None:
    try:
        start = os.getcwd()
    except OSError:
        return None
    return find_version_file(start, filename)


def _env_version(variable: str) -> str | None:
    value = os.environ.get(variable, "")
    return value or None


def _goenv_output() -> str | None:
    out = _command_output("goenv", "version")
    if out is None:
        return None
    items = out.split(" ")
    if len(items) > 1:
        return items[0]
    return None


def _first_word_of(*command: str) -> Callable[[], str | None]:
    def lookup() -> str | None:
        out = _command_output(*command)
        return None if out is None else out.split(" ")[0]

    return lookup


def segment_goenv(p: Any) -> list[Segment]:
    """Go version selected through goenv, shown when it differs from the global version."""
    global_version = _read_stripped(_home() + GOENV_GLOBAL_VERSION_FILE) or ""
    lookups: tuple[Callable[[], str | None], ...] = (
        lambda: _env_version("GOENV_VERSION"),
        lambda: _version_in_tree(GO_VERSION_FILE),
        _goenv_output,
    )
    for lookup in lookups:
        version = lookup()
        if version is not None and version != global_version:
            return [
                Segment(
                    name="goenv",
                    content=version,
                    foreground=p.theme.goenv_fg,
                    background=p.theme.goenv_bg,
                )
            ]
    return []


def _first_found(lookups: tuple[Callable[[], str | None], ...]) -> str | None:
    for lookup in lookups:
        version = lookup()
        if version is not None:
            return version
    return None


def segment_rbenv(p: Any) -> list[Segment]:
    """The Ruby version chosen by rbenv."""
    version = _first_found(
        (
            lambda: _env_version("RBENV_VERSION"),
            lambda: _version_in_tree(RUBY_VERSION_FILE),
            lambda: _read_stripped(_home() + RBENV_GLOBAL_VERSION_FILE),
            _first_word_of("rbenv", "version"),
        )
    )
    if version is None:
        return []
    return [
        Segment(
            name="rbenv",
            content=version,
            foreground=p.theme.time_fg,
            background=p.theme.time_bg,
        )
    ]


def _gemset_from_env() -> str:
    parts = os.environ.get("GEM_HOME", "").split("@")
    return parts[1] if len(parts) > 1 else ""


def segment_rvm(p: Any) -> list[Segment]:
    """The Ruby version and gemset chosen by RVM."""
    version = _first_found(
        (
            lambda: _env_version("RUBY_VERSION"),
            lambda: _version_in_tree(RUBY_VERSION_FILE),
            _first_word_of("rvm", "current"),
        )
    )
    if version is None:
        return []

    components = version.split("-")
    if len(components) > 1:
        version = components[1]

    if len(version.split("@")) < 2:
        gemset = _gemset_from_env()
        if gemset:
            version = f"{version}@{gemset}"

    return [
        Segment(
            name="rvm",
            content=f"{p.symbols.rvm_indicator} {version}",
            foreground=p.theme.rvm_fg,
            background=p.theme.rvm_bg,
        )
    ]


def node_version() -> str:
    """Output of ``node --version`` without its newline, or "" on failure."""
    out = _command_output("node", "--version")
    if out is None:
        return ""
    return out[:-1] if out.endswith("\n") else out


def package_version(path: str = PACKAGE_FILE) -> str:
    """The stripped ``version`` field of a package.json file, or ""."""
    candidate = Path(path)
    try:
        if candidate.is_dir():
            return ""
        data = json.loads(candidate.read_bytes())
    except (OSError, ValueError):
        return ""
    if data is None:
        return ""
    if not isinstance(data, dict):
        return ""
    version = ""
    for key, value in data.items():
        if key.lower() != "version" or value is None:
            continue
        if not isinstance(value, str):
            return ""
        version = value
    return version.strip()


def segment_node(p: Any) -> list[Segment]:
    """The node version and the version of the package in the current directory."""
    segments: list[Segment] = []
    node = node_version()
    package = package_version()
    if node:
        segments.append(
            Segment(
                name="node",
                content=f"{p.symbols.node_indicator} {node}",
                foreground=p.theme.node_version_fg,
                background=p.theme.node_version_bg,
            )
        )
    if package:
        segments.append(
            Segment(
                name="node-segment",
                content=f"{package} {p.symbols.node_indicator}",
                foreground=p.theme.node_fg,
                background=p.theme.node_bg,
            )
        )
    return segments