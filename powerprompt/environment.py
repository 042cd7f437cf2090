"""Facts about the user's environment, and warnings to stderr."""

from __future__ import annotations

import os
import sys


def home_env_name() -> str:
    """Name of the environment variable that holds the home directory."""
    return "USERPROFILE" if sys.platform == "win32" else "HOME"


def _windows_user_is_admin() -> bool:
    # The system profile directory can only be listed by administrators.
    root = os.environ.get("SystemRoot", r"C:\Windows")
    try:
        os.listdir(os.path.join(root, "System32", "config", "systemprofile"))
    except OSError:
        return False
    return True


def user_is_admin() -> bool:
    """Whether the current user has administrator (root) rights."""
    if sys.platform == "win32":
        return _windows_user_is_admin()
    return os.getuid() == 0


def warn(message: str, ignore_warnings: bool = False) -> None:
    """Write a warning to stderr unless warnings are ignored."""
    if ignore_warnings:
        return
    print("[powerprompt]" + message, end="", file=sys.stderr)