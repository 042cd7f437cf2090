"""Google Cloud segment: the active gcloud project."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Any

from .environment import home_env_name
from .segment import Segment

_CORE_HEADER = "\n[core]\n"


def cloud_config_dir() -> str:
    """Directory that holds the gcloud configuration; raises OSError if home is unknown."""
    home = os.environ.get(home_env_name(), "")
    if home == "":
        raise OSError(f"${home_env_name()} is not defined")
    if sys.platform != "win32":
        home += "/.config"
    return home + "/gcloud"


def active_gcloud_config(config_dir: str) -> str:
    """Name of the active gcloud configuration; raises OSError if unreadable."""
    active = Path(config_dir + "/active_config")
    if active.is_dir():
        return "default"
    name = active.read_bytes().decode("utf-8", errors="replace").strip()
    return name or "default"


def gcp_project_from_file(config_dir: str) -> str:
    """Project of the active configuration's [core] section, or "".

    Raises OSError when a file cannot be read and ValueError when the
    configuration has no [core] section.
    """
    config_path = Path(config_dir + "/configurations/config_" + active_gcloud_config(config_dir))
    if config_path.is_dir():
        raise IsADirectoryError(f"{config_path} is a directory")
    text = "\n" + config_path.read_bytes().decode("utf-8", errors="replace")

    start = text.find(_CORE_HEADER)
    if start == -1:
        raise ValueError(f"could not find [core] section in {config_path}")
    section = text[start + len(_CORE_HEADER) :]
    end = section.find("\n[")
    if end != -1:
        section = section[:end]

    for line in section.split("\n"):
        parts = line.split("=")
        if len(parts) == 2 and parts[0].strip() == "project":
            return parts[1].strip()
    return ""


def gcp_project_from_gcloud() -> str:
    """Ask gcloud for the current project; raises if gcloud fails."""
    completed = subprocess.run(
        ["gcloud", "config", "list", "project", "--format", "value(core.project)"],
        capture_output=True,
        stdin=subprocess.DEVNULL,
    )
    if completed.returncode != 0:
        raise subprocess.CalledProcessError(
            completed.returncode, completed.args, completed.stdout, completed.stderr
        )
    out = completed.stdout.decode("utf-8", errors="replace")
    return out[:-1] if out.endswith("\n") else out


def gcp_project() -> str:
    """The current project, from the configuration files or else from gcloud."""
    try:
        return gcp_project_from_file(cloud_config_dir())
    except (OSError, ValueError):
        return gcp_project_from_gcloud()


def segment_gcp(p: Any) -> list[Segment]:
    """The active gcloud project; errors finding it are raised."""
    project = gcp_project()
    if project == "":
        return []
    return [
        Segment(name="gcp", content=project, foreground=p.theme.gcp_fg, background=p.theme.gcp_bg)
    ]