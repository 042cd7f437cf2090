"""Segments that report on environment variables and files around the shell."""

from __future__ import annotations

import json
import os
import posixpath
import sys
from datetime import datetime
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import psutil

from .cwd import escape_variables
from .environment import warn
from .segment import Segment


def _segment(name: str, content: str, foreground: int, background: int) -> list[Segment]:
    return [Segment(name=name, content=content, foreground=foreground, background=background)]


def _base(path: str, separators: str) -> str:
    """Last element of ``path``; "." for an empty path, a separator for the root."""
    if path == "":
        return "."
    stripped = path.rstrip(separators)
    if stripped == "":
        return separators[0]
    cut = max(stripped.rfind(sep) for sep in separators)
    return stripped[cut + 1 :]


def _file_base(path: str) -> str:
    return _base(path, os.sep + (os.altsep or ""))


def _url_host(text: str) -> str:
    try:
        netloc = urlsplit(text).netloc
    except ValueError:
        return ""
    return netloc.rpartition("@")[2]


def segment_aws(p: Any) -> list[Segment]:
    """The active AWS profile and, if set, its default region."""
    profile = os.environ.get("AWS_PROFILE", "")
    region = os.environ.get("AWS_DEFAULT_REGION", "")
    if profile == "":
        return []
    suffix = f" ({region})" if region else ""
    return _segment("aws", profile + suffix, p.theme.aws_fg, p.theme.aws_bg)


def segment_direnv(p: Any) -> list[Segment]:
    """The directory whose direnv configuration is loaded."""
    content = os.environ.get("DIRENV_DIR", "")
    if content == "":
        return []
    trimmed = content[1:] if content.startswith("-") else content
    content = "~" if trimmed == p.home_dir else _file_base(content)
    return _segment("direnv", content, p.theme.dot_env_fg, p.theme.dot_env_bg)


def segment_docker(p: Any) -> list[Segment]:
    """The docker machine name or the host of DOCKER_HOST."""
    machine = os.environ.get("DOCKER_MACHINE_NAME", "")
    host = os.environ.get("DOCKER_HOST", "")
    docker = ""
    if machine != "":
        docker = machine
    elif host != " ":
        docker = _url_host(host)
    if docker == "":
        return []
    return _segment("docker", docker, p.theme.docker_machine_fg, p.theme.docker_machine_bg)


def _docker_current_context(config_file: Path) -> str:
    try:
        data = json.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return ""
    if not isinstance(data, dict):
        return ""
    current = ""
    for key, value in data.items():
        if key.lower() != "currentcontext":
            continue
        if value is None:
            continue
        if not isinstance(value, str):
            return ""
        current = value
    return current


def segment_docker_context(p: Any) -> list[Segment]:
    """The docker context in use, unless it is the default one."""
    context = "default"
    home = os.environ.get("HOME", "")
    docker_dir = Path(home) / ".docker"
    env_context = os.environ.get("DOCKER_CONTEXT", "")

    if env_context != "":
        context = env_context
    elif (docker_dir / "contexts").is_dir():
        current = _docker_current_context(docker_dir / "config.json")
        if current != "":
            context = current

    if context == "default":
        return []
    return _segment("docker-context", "\U0001f433" + context, p.theme.pl_env_fg, p.theme.pl_env_bg)


def segment_dotenv(p: Any) -> list[Segment]:
    """A marker shown when the current directory holds a .env or .envrc file."""
    for name in (".env", ".envrc"):
        candidate = Path(name)
        if candidate.exists() and not candidate.is_dir():
            return _segment("dotenv", "\u2235", p.theme.dot_env_fg, p.theme.dot_env_bg)
    return []


def segment_nix_shell(p: Any) -> list[Segment]:
    """A marker shown inside a nix shell."""
    if os.environ.get("IN_NIX_SHELL", "") == "":
        return []
    return _segment("nix-shell", "\uf313", p.theme.nix_shell_fg, p.theme.nix_shell_bg)


def segment_perlbrew(p: Any) -> list[Segment]:
    """The perl selected through perlbrew."""
    env = os.environ.get("PERLBREW_PERL", "")
    if env == "":
        return []
    return _segment("perlbrew", _base(env, "/"), p.theme.perlbrew_fg, p.theme.perlbrew_bg)


def segment_plenv(p: Any) -> list[Segment]:
    """The perl version selected through plenv."""
    env = os.environ.get("PLENV_VERSION", "")
    if env == "":
        return []
    return _segment("plenv", env, p.theme.pl_env_fg, p.theme.pl_env_bg)


def segment_shell_var(p: Any) -> list[Segment]:
    """The value of the configured shell variable."""
    name = p.cfg.shell_var
    value = os.environ.get(name) if name else None
    if value is None:
        if name != "":
            warn(f"Shell variable {name} does not exist.", p.cfg.ignore_warnings)
        return []
    if value == "":
        if not p.cfg.shell_var_no_warn_empty:
            warn(f"Shell variable {name} is empty.", p.cfg.ignore_warnings)
        return []
    return _segment("shell-var", value, p.theme.shell_var_fg, p.theme.shell_var_bg)


def segment_shenv(p: Any) -> list[Segment]:
    """The shell version selected through shenv."""
    env = os.environ.get("SHENV_VERSION", "")
    if env == "":
        return []
    return _segment("shenv", env, p.theme.sh_env_fg, p.theme.sh_env_bg)


def segment_ssh(p: Any) -> list[Segment]:
    """A network icon shown over SSH connections."""
    if os.environ.get("SSH_CLIENT", "") == "":
        return []
    icon = p.symbols.network_alternate if p.cfg.ssh_alternate_icon else p.symbols.network
    return _segment("ssh", icon, p.theme.ssh_fg, p.theme.ssh_bg)


def segment_virtual_go(p: Any) -> list[Segment]:
    """The active VirtualGo workspace."""
    env = os.environ.get("VIRTUALGO", "")
    if env == "":
        return []
    return _segment("vgo", env, p.theme.virtual_go_fg, p.theme.virtual_go_bg)


def segment_vi_mode(p: Any) -> list[Segment]:
    """"C" in vi command mode, "I" otherwise."""
    mode = p.cfg.vi_mode
    if mode == "":
        warn("'--vi-mode' is not set.", p.cfg.ignore_warnings)
        return []
    if mode == "vicmd":
        return _segment("vi-mode", "C", p.theme.vi_mode_command_fg, p.theme.vi_mode_command_bg)
    return _segment("vi-mode", "I", p.theme.vi_mode_insert_fg, p.theme.vi_mode_insert_bg)


def segment_wsl(p: Any) -> list[Segment]:
    """The WSL distribution name."""
    distro = os.environ.get("WSL_DISTRO_NAME", "")
    host = os.environ.get("NAME", "")
    wsl = ""
    if distro != "":
        wsl = distro
    elif host != " ":
        wsl = _url_host(host)
    if wsl == "":
        return []
    return _segment("WSL", wsl, p.theme.wsl_machine_fg, p.theme.wsl_machine_bg)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'`":
        return value[1:-1]
    return value


def _pyvenv_prompt(path: str) -> str:
    """The ``prompt`` key of the default section of a pyvenv.cfg file."""
    text = Path(path).read_text(encoding="utf-8")
    prompt = ""
    for raw in text.splitlines():
        line = raw.strip().lstrip("\ufeff")
        if not line or line[0] in "#;":
            continue
        if line.startswith("["):
            break
        cuts = [i for i in (line.find("="), line.find(":")) if i >= 0]
        if not cuts:
            raise ValueError(f"no key-value delimiter in {line!r}")
        cut = min(cuts)
        key, value = line[:cut].strip(), line[cut + 1 :].strip()
        if key == "prompt":
            prompt = _unquote(value)
    return prompt


def segment_virtual_env(p: Any) -> list[Segment]:
    """The active Python virtual environment or conda environment."""
    env = os.environ.get("VIRTUAL_ENV", "")
    if env != "":
        try:
            env = _pyvenv_prompt(os.path.join(env, "pyvenv.cfg"))
        except (OSError, ValueError):
            pass
    for variable in ("CONDA_ENV_PATH", "CONDA_DEFAULT_ENV", "PYENV_VERSION"):
        if env != "":
            break
        env = os.environ.get(variable, "")
    if env == "":
        return []
    name = _base(env, "/")
    limit = p.cfg.venv_name_size_limit
    if limit > 0 and len(name.encode("utf-8")) > limit:
        name = p.symbols.venv_indicator
    return _segment(
        "venv", escape_variables(p, name), p.theme.virtual_env_fg, p.theme.virtual_env_bg
    )


_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_ZONES = ("070000", "07:00:00", "0700", "07:00", "07")


def _starts_lower(text: str) -> bool:
    return bool(text) and "a" <= text[0] <= "z"


def _match_element(layout: str, i: int) -> tuple[str, int] | None:
    rest = layout[i:]
    c = rest[0]
    if c == "J" and rest.startswith("Jan"):
        if rest.startswith("January"):
            return "January", 7
        if not _starts_lower(rest[3:]):
            return "Jan", 3
    elif c == "M":
        if rest.startswith("Mon"):
            if rest.startswith("Monday"):
                return "Monday", 6
            if not _starts_lower(rest[3:]):
                return "Mon", 3
        if rest.startswith("MST"):
            return "MST", 3
    elif c == "0":
        if len(rest) >= 2 and "1" <= rest[1] <= "6":
            return rest[:2], 2
        if rest.startswith("002"):
            return "002", 3
    elif c == "1":
        return ("15", 2) if rest.startswith("15") else ("1", 1)
    elif c == "2":
        return ("2006", 4) if rest.startswith("2006") else ("2", 1)
    elif c == "_":
        if rest.startswith("_2"):
            # "_2006" is a literal underscore followed by the year.
            return None if rest.startswith("_2006") else ("_2", 2)
        if rest.startswith("__2"):
            return "__2", 3
    elif c in "345":
        return c, 1
    elif c == "P" and rest.startswith("PM"):
        return "PM", 2
    elif c == "p" and rest.startswith("pm"):
        return "pm", 2
    elif c in "-Z":
        for zone in _ZONES:
            if rest.startswith(c + zone):
                return c + zone, len(zone) + 1
    elif c in ".," and len(rest) > 1 and rest[1] in "09":
        j = 1
        while j < len(rest) and rest[j] == rest[1]:
            j += 1
        if not (j < len(rest) and "0" <= rest[j] <= "9"):
            return rest[:j], j
    return None


def _format_zone(token: str, offset: int) -> str:
    if token[0] == "Z" and offset == 0:
        return "Z"
    zone = abs(offset) // 60 * (-1 if offset < 0 else 1)
    abs_offset = offset
    sign = "+"
    if zone < 0:
        sign, zone, abs_offset = "-", -zone, -offset
    body = token[1:]
    sep = ":" if ":" in body else ""
    out = f"{sign}{zone // 60:02d}"
    if body != "07":
        out += f"{sep}{zone % 60:02d}"
    if len(body) in (6, 8):
        out += f"{sep}{abs_offset % 60:02d}"
    return out


def _format_fraction(token: str, nanos: int) -> str:
    digits = min(len(token) - 1, 9)
    text = f"{nanos:09d}"[:digits]
    if token[1] == "9":
        text = text.rstrip("0")
        if text == "":
            return ""
    return token[0] + text


def _render(token: str, moment: datetime, offset: int) -> str:
    hour12 = moment.hour % 12 or 12
    simple = {
        "January": lambda: _MONTHS[moment.month - 1],
        "Jan": lambda: _MONTHS[moment.month - 1][:3],
        "Monday": lambda: _DAYS[moment.weekday()],
        "Mon": lambda: _DAYS[moment.weekday()][:3],
        "1": lambda: str(moment.month),
        "01": lambda: f"{moment.month:02d}",
        "2": lambda: str(moment.day),
        "_2": lambda: f"{moment.day:2d}",
        "02": lambda: f"{moment.day:02d}",
        "__2": lambda: f"{moment.timetuple().tm_yday:3d}",
        "002": lambda: f"{moment.timetuple().tm_yday:03d}",
        "15": lambda: f"{moment.hour:02d}",
        "3": lambda: str(hour12),
        "03": lambda: f"{hour12:02d}",
        "4": lambda: str(moment.minute),
        "04": lambda: f"{moment.minute:02d}",
        "5": lambda: str(moment.second),
        "05": lambda: f"{moment.second:02d}",
        "2006": lambda: f"{moment.year:04d}",
        "06": lambda: f"{moment.year % 100:02d}",
        "PM": lambda: "PM" if moment.hour >= 12 else "AM",
        "pm": lambda: "pm" if moment.hour >= 12 else "am",
    }
    if token in simple:
        return simple[token]()
    if token == "MST":
        name = moment.tzname() or ""
        if name:
            return name
        zone = abs(offset) // 60
        sign = "-" if offset < 0 and zone else "+"
        return f"{sign}{zone // 60:02d}{zone % 60:02d}"
    if token[0] in "-Z":
        return _format_zone(token, offset)
    return _format_fraction(token, moment.microsecond * 1000)


def go_time_format(layout: str, moment: datetime) -> str:
    """Format ``moment`` with a layout written as the reference time
    "Mon Jan 2 15:04:05 MST 2006"."""
    delta = moment.utcoffset()
    offset = int(delta.total_seconds()) if delta is not None else 0
    out: list[str] = []
    i = 0
    while i < len(layout):
        match = _match_element(layout, i)
        if match is None:
            out.append(layout[i])
            i += 1
            continue
        token, length = match
        out.append(_render(token, moment, offset))
        i += length
    return "".join(out)


def segment_time(p: Any) -> list[Segment]:
    """The current time, in the configured layout."""
    content = go_time_format(p.cfg.time.strip(), datetime.now().astimezone())
    return _segment("time", content, p.theme.time_fg, p.theme.time_bg)


def segment_terraform_workspace(p: Any) -> list[Segment]:
    """The terraform workspace of the current directory."""
    workspace_file = Path(".terraform") / "environment"
    try:
        if workspace_file.is_dir():
            return []
        content = workspace_file.read_bytes().decode("utf-8", errors="replace")
    except OSError:
        return []
    return _segment("terraform-workspace", content, p.theme.tf_ws_fg, p.theme.tf_ws_bg)


def _writable(path: str) -> bool:
    if sys.platform == "win32":
        try:
            return bool(os.stat(path).st_mode & 0o002)
        except OSError:
            return False
    return os.access(path, os.W_OK)


def segment_perms(p: Any) -> list[Segment]:
    """A lock shown when the current directory is not writable."""
    if _writable(p.cwd):
        return []
    return _segment("perms", p.symbols.lock, p.theme.readonly_fg, p.theme.readonly_bg)


def segment_load(p: Any) -> list[Segment]:
    """The five-minute load average, highlighted when the system is busy."""
    cpus = os.cpu_count() or 1
    try:
        load1, load5, load15 = psutil.getloadavg()
    except (OSError, RuntimeError):
        return []
    theme = p.theme
    load = {1: load1, 15: load15}.get(theme.load_avg_value, load5)
    background = theme.load_high_bg if load > cpus * theme.load_threshold_bad else theme.load_bg
    return _segment("load", f"{load5:.2f}", theme.load_fg, background)