"""Colour themes, symbol sets and shell descriptions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any, TypeVar

_ACRONYMS = {"ssh", "aws", "gcp", "wsl", "tf"}

_R = TypeVar("_R")


def _go_name(field_name: str) -> str:
    return "".join(
        part.upper() if part in _ACRONYMS else part.capitalize()
        for part in field_name.split("_")
    )


def _uint8(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
        raise ValueError(f"{name!r} expects an integer between 0 and 255")
    return value


def _coerce(name: str, current: Any, value: Any) -> Any:
    if value is None:
        return {} if isinstance(current, dict) else current
    if isinstance(current, bool):
        if not isinstance(value, bool):
            raise ValueError(f"{name!r} expects a boolean")
        return value
    if isinstance(current, str):
        if not isinstance(value, str):
            raise ValueError(f"{name!r} expects a string")
        return value
    if isinstance(current, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{name!r} expects a number")
        return float(value)
    if isinstance(current, int):
        return _uint8(name, value)
    if not isinstance(value, Mapping):
        raise ValueError(f"{name!r} expects a JSON object")
    merged = dict(current)
    for key, item in value.items():
        text = str(key)
        if not (text.isascii() and text.isdigit()):
            raise ValueError(f"{name!r} has a non-numeric key {text!r}")
        merged[_uint8(name, int(text))] = _uint8(name, item)
    return merged


def _overlay(record: _R, data: Any) -> _R:
    if data is None:
        return record
    if not isinstance(data, Mapping):
        raise ValueError(f"{type(record).__name__} must be a JSON object")
    by_key = {f.name.replace("_", ""): f.name for f in fields(record)}
    changes: dict[str, Any] = {}
    for key, value in data.items():
        name = by_key.get(str(key).lower())
        if name is None:
            continue
        current = changes.get(name, getattr(record, name))
        changes[name] = _coerce(name, current, value)
    return replace(record, **changes)


def _record_to_json(record: Any) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if isinstance(value, dict):
            value = {str(k): v for k, v in value.items()}
        result[_go_name(f.name)] = value
    return result


@dataclass(frozen=True)
class SymbolTemplate:
    """Characters used for separators and indicators."""

    lock: str = ""
    network: str = ""
    network_alternate: str = ""
    separator: str = ""
    separator_thin: str = ""
    separator_reverse: str = ""
    separator_reverse_thin: str = ""

    repo_detached: str = ""
    repo_branch: str = ""
    repo_ahead: str = ""
    repo_behind: str = ""
    repo_staged: str = ""
    repo_not_staged: str = ""
    repo_untracked: str = ""
    repo_conflicted: str = ""
    repo_stashed: str = ""

    venv_indicator: str = ""
    node_indicator: str = ""
    rvm_indicator: str = ""

    def updated(self, data: Any) -> "SymbolTemplate":
        """Return a copy with the fields present in ``data`` replaced."""
        return _overlay(self, data)


@dataclass(frozen=True)
class Theme:
    """Colour codes (256-colour palette) for every segment."""

    bold_foreground: bool = False

    reset: int = 0

    default_fg: int = 0
    default_bg: int = 0

    username_fg: int = 0
    username_bg: int = 0
    username_root_bg: int = 0

    hostname_fg: int = 0
    hostname_bg: int = 0

    hostname_colorized_fg_map: dict[int, int] = field(default_factory=dict)

    home_special_display: bool = False
    home_fg: int = 0
    home_bg: int = 0
    alias_fg: int = 0
    alias_bg: int = 0
    path_fg: int = 0
    path_bg: int = 0
    cwd_fg: int = 0
    separator_fg: int = 0

    readonly_fg: int = 0
    readonly_bg: int = 0

    ssh_fg: int = 0
    ssh_bg: int = 0

    docker_machine_fg: int = 0
    docker_machine_bg: int = 0

    kube_cluster_fg: int = 0
    kube_cluster_bg: int = 0
    kube_namespace_fg: int = 0
    kube_namespace_bg: int = 0

    wsl_machine_fg: int = 0
    wsl_machine_bg: int = 0

    dot_env_fg: int = 0
    dot_env_bg: int = 0

    aws_fg: int = 0
    aws_bg: int = 0

    repo_clean_fg: int = 0
    repo_clean_bg: int = 0
    repo_dirty_fg: int = 0
    repo_dirty_bg: int = 0

    jobs_fg: int = 0
    jobs_bg: int = 0

    cmd_passed_fg: int = 0
    cmd_passed_bg: int = 0
    cmd_failed_fg: int = 0
    cmd_failed_bg: int = 0

    svn_changes_fg: int = 0
    svn_changes_bg: int = 0

    gcp_fg: int = 0
    gcp_bg: int = 0

    git_ahead_fg: int = 0
    git_ahead_bg: int = 0
    git_behind_fg: int = 0
    git_behind_bg: int = 0
    git_staged_fg: int = 0
    git_staged_bg: int = 0
    git_not_staged_fg: int = 0
    git_not_staged_bg: int = 0
    git_untracked_fg: int = 0
    git_untracked_bg: int = 0
    git_conflicted_fg: int = 0
    git_conflicted_bg: int = 0
    git_stashed_fg: int = 0
    git_stashed_bg: int = 0

    goenv_fg: int = 0
    goenv_bg: int = 0

    virtual_env_fg: int = 0
    virtual_env_bg: int = 0

    virtual_go_fg: int = 0
    virtual_go_bg: int = 0

    perlbrew_fg: int = 0
    perlbrew_bg: int = 0

    pl_env_fg: int = 0
    pl_env_bg: int = 0

    tf_ws_fg: int = 0
    tf_ws_bg: int = 0

    time_fg: int = 0
    time_bg: int = 0

    shell_var_fg: int = 0
    shell_var_bg: int = 0

    sh_env_fg: int = 0
    sh_env_bg: int = 0

    node_fg: int = 0
    node_bg: int = 0
    node_version_fg: int = 0
    node_version_bg: int = 0

    rvm_fg: int = 0
    rvm_bg: int = 0

    load_fg: int = 0
    load_bg: int = 0
    load_high_bg: int = 0
    load_avg_value: int = 0
    load_threshold_bad: float = 0.0

    nix_shell_fg: int = 0
    nix_shell_bg: int = 0

    duration_fg: int = 0
    duration_bg: int = 0

    vi_mode_command_fg: int = 0
    vi_mode_command_bg: int = 0
    vi_mode_insert_fg: int = 0
    vi_mode_insert_bg: int = 0

    def updated(self, data: Any) -> "Theme":
        """Return a copy with the fields present in ``data`` replaced."""
        return _overlay(self, data)


@dataclass(frozen=True)
class ShellInfo:
    """How a shell wants colours, escapes and eval output written."""

    root_indicator: str = ""
    color_template: str = ""
    escaped_dollar: str = ""
    escaped_backtick: str = ""
    escaped_backslash: str = ""
    eval_prompt_prefix: str = ""
    eval_prompt_suffix: str = ""
    eval_prompt_right_prefix: str = ""
    eval_prompt_right_suffix: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "ShellInfo":
        """Build a shell description from a JSON object."""
        return _overlay(cls(), data)