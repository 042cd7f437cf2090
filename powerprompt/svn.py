"""Subversion segment: repository path and working-copy statistics."""

from __future__ import annotations

import subprocess
from typing import Any

from .git import RepoStats
from .segment import Segment

_COMMAND_ERRORS = (OSError, subprocess.SubprocessError)


def _run_svn(*args: str) -> str:
    completed = subprocess.run(
        ["svn", *args], capture_output=True, stdin=subprocess.DEVNULL
    )
    if completed.returncode != 0:
        raise subprocess.CalledProcessError(
            completed.returncode, completed.args, completed.stdout, completed.stderr
        )
    return completed.stdout.decode("utf-8", errors="replace")


def parse_svn_info(text: str) -> dict[str, str]:
    """Key/value pairs of ``svn info`` output."""
    lines = text.split("\n")
    if len(lines) <= 1:
        return {}
    info: dict[str, str] = {}
    for line in lines:
        items = line.split(": ")
        if len(items) >= 2:
            info[items[0]] = items[1]
    return info


def parse_svn_status(text: str) -> tuple[RepoStats, int]:
    """Counts from ``svn status -u`` output.

    Returns the statistics and the number of status columns that report
    some other, uncounted modification.
    """
    stats = RepoStats()
    other = 0
    lines = text.split("\n")
    if len(lines) <= 1:
        return stats, other
    for line in lines:
        if len(line) < 9:
            continue
        first = line[0]
        if first == "?":
            stats.untracked += 1
        elif first == "C":
            stats.conflicted += 1
        elif first in ("A", "D", "M"):
            stats.not_staged += 1
        elif first != " ":
            other += 1

        second = line[1]
        if second == "C":
            stats.conflicted += 1
        elif second == "M":
            stats.not_staged += 1
        elif second != " ":
            other += 1

        other += sum(1 for column in line[2:8] if column != " ")

        if line[8] == "*":
            stats.behind += 1
        elif line[8] != " ":
            other += 1
    return stats, other


def segment_subversion(p: Any) -> list[Segment]:
    """The repository-relative URL and the working-copy counts."""
    try:
        info = parse_svn_info(_run_svn("info"))
    except _COMMAND_ERRORS:
        return []

    if p.ignore_repos and (
        info.get("URL", "") in p.ignore_repos or info.get("Relative URL", "") in p.ignore_repos
    ):
        return []

    try:
        stats, other = parse_svn_status(_run_svn("status", "-u"))
    except _COMMAND_ERRORS:
        stats, other = RepoStats(), 0

    if stats.dirty() or other > 0:
        foreground, background = p.theme.repo_dirty_fg, p.theme.repo_dirty_bg
    else:
        foreground, background = p.theme.repo_clean_fg, p.theme.repo_clean_bg

    head = Segment(
        name="svn-branch",
        content=info.get("Relative URL", ""),
        foreground=foreground,
        background=background,
    )
    return [head, *stats.segments(p, "svn-status")]