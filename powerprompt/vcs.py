"""Bazaar, Fossil and Mercurial segments: branch name and a dirty marker."""

from __future__ import annotations

import subprocess
from typing import Any, NamedTuple

from .segment import Segment


class WorkingCopyStatus(NamedTuple):
    """Kinds of change found in a working copy."""

    modified: bool = False
    untracked: bool = False
    missing: bool = False

    @property
    def dirty(self) -> bool:
        """Whether any kind of change was found."""
        return self.modified or self.untracked or self.missing


def _run(*command: str) -> tuple[str, bool]:
    """Standard output of ``command`` and whether it succeeded."""
    try:
        completed = subprocess.run(
            list(command), capture_output=True, stdin=subprocess.DEVNULL
        )
    except OSError:
        return "", False
    return completed.stdout.decode("utf-8", errors="replace"), completed.returncode == 0


def _first_line(text: str) -> str:
    return text.split("\n", 1)[0]


def parse_bzr_status(output: str) -> WorkingCopyStatus:
    """Classify the lines of ``bzr status`` output."""
    modified = untracked = missing = False
    for line in output.split("\n"):
        if line == "":
            continue
        if line == "unknown:":
            untracked = True
        elif line == "missing:":
            missing = True
        else:
            modified = True
    return WorkingCopyStatus(modified, untracked, missing)


def parse_fossil_status(output: str) -> WorkingCopyStatus:
    """Classify the lines of ``fossil changes --differ`` output."""
    modified = untracked = missing = False
    for line in output.split("\n"):
        if line == "":
            continue
        if line.startswith("EXTRA"):
            untracked = True
        elif line.startswith("MISSING"):
            missing = True
        else:
            modified = True
    return WorkingCopyStatus(modified, untracked, missing)


def parse_hg_status(output: str) -> WorkingCopyStatus:
    """Classify the lines of ``hg status`` output."""
    modified = untracked = missing = False
    for line in output.split("\n"):
        if line == "":
            continue
        if line[0] == "?":
            untracked = True
        elif line[0] == "!":
            missing = True
        else:
            modified = True
    return WorkingCopyStatus(modified, untracked, missing)


def _branch_segment(
    p: Any, name: str, branch: str, status: WorkingCopyStatus, extra: str
) -> list[Segment]:
    if status.dirty:
        return [
            Segment(
                name=name,
                content=f"{branch} {extra}",
                foreground=p.theme.repo_dirty_fg,
                background=p.theme.repo_dirty_bg,
            )
        ]
    return [
        Segment(
            name=name,
            content=branch,
            foreground=p.theme.repo_clean_fg,
            background=p.theme.repo_clean_bg,
        )
    ]


def _bzr_like_extra(status: WorkingCopyStatus) -> str:
    extra = ""
    if status.untracked:
        extra += "+"
    if status.missing:
        extra += "!"
    if status.untracked:
        extra += "?"
    return extra


def segment_bzr(p: Any) -> list[Segment]:
    """The Bazaar branch nickname, marked when the tree is dirty."""
    out, _ = _run("bzr", "nick")
    branch = _first_line(out)
    if branch == "":
        return []
    text, ok = _run("bzr", "status")
    status = parse_bzr_status(text) if ok else WorkingCopyStatus()
    return _branch_segment(p, "bzr", branch, status, _bzr_like_extra(status))


def segment_fossil(p: Any) -> list[Segment]:
    """The Fossil branch, marked when the checkout is dirty."""
    out, _ = _run("fossil", "branch", "current")
    branch = _first_line(out)
    if branch == "":
        return []
    text, ok = _run("fossil", "changes", "--differ")
    status = parse_fossil_status(text) if ok else WorkingCopyStatus()
    return _branch_segment(p, "fossil", branch, status, _bzr_like_extra(status))


def segment_hg(p: Any) -> list[Segment]:
    """The Mercurial branch, marked when the working directory is dirty."""
    out, _ = _run("hg", "branch")
    branch = _first_line(out)
    if branch == "":
        return []
    text, ok = _run("hg", "status")
    status = parse_hg_status(text) if ok else WorkingCopyStatus()
    extra = ("+" if status.untracked else "") + ("!" if status.missing else "")
    return _branch_segment(p, "hg", branch, status, extra)