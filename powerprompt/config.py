"""User configuration, read from and written to a JSON file."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import MISSING, dataclass, field, fields
from pathlib import Path
from typing import Any

from .themes import ShellInfo, SymbolTemplate, Theme, _record_to_json

_RECORD_MAPS = ("modes", "shells", "themes")


def _key(name: str, default: Any = MISSING, factory: Any = MISSING) -> Any:
    return field(default=default, default_factory=factory, metadata={"json": name})


def config_path() -> Path:
    """Location of the configuration file in the user's home directory."""
    return Path.home() / ".config" / "powerprompt" / "config.json"


def _merge(name: str, current: dict, value: Any, convert: Callable[[Any], Any]) -> dict:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"{name!r} expects a JSON object")
    merged = dict(current)
    for key, item in value.items():
        merged[str(key)] = convert(item)
    return merged


def _alias_value(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("'path-aliases' values must be strings")
    return value


@dataclass
class Config:
    """Settings that control which segments are shown and how."""

    cwd_mode: str = _key("cwd-mode", "")
    cwd_max_depth: int = _key("cwd-max-depth", 0)
    cwd_max_dir_size: int = _key("cwd-max-dir-size", 0)
    colorize_hostname: bool = _key("colorize-hostname", False)
    hostname_only_if_ssh: bool = _key("hostname-only-if-ssh", False)
    ssh_alternate_icon: bool = _key("alternate-ssh-icon", False)
    east_asian_width: bool = _key("east-asian-width", False)
    prompt_on_new_line: bool = _key("newline", False)
    static_prompt_indicator: bool = _key("static-prompt-indicator", False)
    venv_name_size_limit: int = _key("venv-name-size-limit", 0)
    jobs: int = 0
    git_assume_unchanged_size: int = _key("git-assume-unchanged-size", 0)
    git_disable_stats: list[str] = _key("git-disable-stats", factory=list)
    git_mode: str = _key("git-mode", "")
    mode: str = _key("mode", "")
    theme: str = _key("theme", "")
    shell: str = _key("shell", "")
    modules: list[str] = _key("modules", factory=list)
    modules_right: list[str] = _key("modules-right", factory=list)
    priority: list[str] = _key("priority", factory=list)
    max_width_percentage: int = _key("max-width-percentage", 0)
    truncate_segment_width: int = _key("truncate-segment-width", 0)
    prev_error: int = 0
    numeric_exit_codes: bool = _key("numeric-exit-codes", False)
    ignore_repos: list[str] = _key("ignore-repos", factory=list)
    shorten_gke_names: bool = _key("shorten-gke-names", False)
    shorten_eks_names: bool = _key("shorten-eks-names", False)
    shorten_openshift_names: bool = _key("shorten-openshift-names", False)
    shell_var: str = _key("shell-var", "")
    shell_var_no_warn_empty: bool = _key("shell-var-no-warn-empty", False)
    trim_ad_domain: bool = _key("trim-ad-domain", False)
    path_aliases: dict[str, str] = _key("path-aliases", factory=dict)
    duration: str = ""
    duration_min: str = _key("duration-min", "")
    duration_low_precision: bool = _key("duration-low-precision", False)
    eval: bool = _key("eval", False)
    condensed: bool = _key("condensed", False)
    ignore_warnings: bool = _key("ignore-warnings", False)
    modes: dict[str, SymbolTemplate] = _key("modes", factory=dict)
    shells: dict[str, ShellInfo] = _key("shells", factory=dict)
    themes: dict[str, Theme] = _key("themes", factory=dict)
    time: str = ""
    vi_mode: str = _key("vi-mode", "")

    def update_from_dict(self, data: Any) -> None:
        """Apply the settings of a decoded JSON object to this configuration.

        Themes and modes given in ``data`` are laid over the theme and mode
        this configuration selects when the call begins.
        """
        if not isinstance(data, Mapping):
            raise ValueError("configuration must be a JSON object")
        base_theme = self.themes.get(self.theme, Theme())
        base_symbols = self.modes.get(self.mode, SymbolTemplate())
        by_key = {f.metadata["json"]: f.name for f in fields(self) if "json" in f.metadata}
        for key, value in data.items():
            name = by_key.get(str(key).lower())
            if name is None:
                continue
            setattr(self, name, self._decode(name, value, base_theme, base_symbols))

    def _decode(
        self, name: str, value: Any, base_theme: Theme, base_symbols: SymbolTemplate
    ) -> Any:
        current = getattr(self, name)
        if name == "themes":
            return _merge(name, current, value, base_theme.updated)
        if name == "modes":
            return _merge(name, current, value, base_symbols.updated)
        if name == "shells":
            return _merge(name, current, value, ShellInfo.from_dict)
        if name == "path_aliases":
            return _merge(name, current, value, _alias_value)
        if isinstance(current, list):
            if value is None:
                return []
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ValueError(f"{name!r} expects a list of strings")
            return list(value)
        if value is None:
            return current
        if isinstance(current, bool):
            if not isinstance(value, bool):
                raise ValueError(f"{name!r} expects a boolean")
            return value
        if isinstance(current, int):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name!r} expects an integer")
            return value
        if not isinstance(value, str):
            raise ValueError(f"{name!r} expects a string")
        return value

    def to_dict(self) -> dict[str, Any]:
        """The configuration as a JSON-ready object, keyed by file names."""
        result: dict[str, Any] = {}
        for f in fields(self):
            key = f.metadata.get("json")
            if key is None:
                continue
            value = getattr(self, f.name)
            if f.name in _RECORD_MAPS:
                value = {n: _record_to_json(r) for n, r in value.items()}
            elif isinstance(value, (list, dict)):
                value = type(value)(value)
            result[key] = value
        return result

    def load(self, path: str | Path | None = None) -> None:
        """Read settings from ``path``; a missing or unreadable file is ignored."""
        target = Path(path) if path is not None else config_path()
        try:
            text = target.read_text(encoding="utf-8")
        except OSError:
            return
        self.update_from_dict(json.loads(text))

    def save(self, path: str | Path | None = None) -> None:
        """Write settings to ``path``, leaving out themes, modes and shells."""
        target = Path(path) if path is not None else config_path()
        data = self.to_dict()
        for name in _RECORD_MAPS:
            data[name] = {}
        target.write_text(json.dumps(data, indent=4, ensure_ascii=False), encoding="utf-8")