"""Git segments: branch name and working-tree statistics."""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass
from typing import Any

from .environment import home_env_name
from .segment import Segment

_COMMAND_ERRORS = (OSError, subprocess.SubprocessError)

_NON_SPACE = r"[^\t\n\f\r ]"
_BRANCH_PATTERN = re.compile(
    rf"## (?P<local>{_NON_SPACE}+?)"
    rf"(\.{{3}}(?P<remote>{_NON_SPACE}+?)"
    r"( \[(ahead (?P<ahead>[0-9]+)(, )?)?(behind (?P<behind>[0-9]+))?\])?)?"
)

_CONFLICT_CODES = frozenset({"DD", "AU", "UD", "UA", "DU", "AA", "UU"})

# Field, symbol attribute and theme colour prefix, in display order.
_STAT_ORDER = (
    ("ahead", "repo_ahead", "git_ahead"),
    ("behind", "repo_behind", "git_behind"),
    ("staged", "repo_staged", "git_staged"),
    ("not_staged", "repo_not_staged", "git_not_staged"),
    ("untracked", "repo_untracked", "git_untracked"),
    ("conflicted", "repo_conflicted", "git_conflicted"),
    ("stashed", "repo_stashed", "git_stashed"),
)

_DISABLE_NAMES = {
    "ahead": "ahead",
    "behind": "behind",
    "staged": "staged",
    "notStaged": "not_staged",
    "untracked": "untracked",
    "conflicted": "conflicted",
    "stashed": "stashed",
}

_INT32_MAX = 2**31 - 1


@dataclass
class RepoStats:
    """Counts of changes in a working copy and relative to its upstream."""

    ahead: int = 0
    behind: int = 0
    untracked: int = 0
    not_staged: int = 0
    staged: int = 0
    conflicted: int = 0
    stashed: int = 0

    def dirty(self) -> bool:
        """Whether the working copy has local changes."""
        return self.untracked + self.not_staged + self.staged + self.conflicted > 0

    def any(self) -> bool:
        """Whether any count is non-zero."""
        return any(getattr(self, name) > 0 for name, _, _ in _STAT_ORDER)

    def segments(self, p: Any, name: str = "git-status") -> list[Segment]:
        """One segment per non-zero count, coloured by the theme."""
        result = []
        for field_name, symbol, colour in _STAT_ORDER:
            count = getattr(self, field_name)
            if count > 0:
                result.append(
                    Segment(
                        name=name,
                        content=f"{count}{getattr(p.symbols, symbol)}",
                        foreground=getattr(p.theme, colour + "_fg"),
                        background=getattr(p.theme, colour + "_bg"),
                    )
                )
        return result

    def symbols(self, p: Any) -> str:
        """The counts as a string of symbols, in the configured git mode."""
        return "".join(
            repo_stats_symbol(getattr(self, field_name), getattr(p.symbols, symbol), p.cfg.git_mode)
            for field_name, symbol, _ in _STAT_ORDER
        )


def repo_stats_symbol(n_changes: int, symbol: str, git_mode: str) -> str:
    """The symbol for one count; compact mode prefixes the number."""
    if n_changes <= 0:
        return ""
    if git_mode == "compact":
        return f" {n_changes}{symbol}"
    return symbol


def parse_branch_info(status: list[str]) -> dict[str, str]:
    """Named parts of the ``## branch...remote [ahead N, behind M]`` header.

    Returns an empty dict when the header does not match; groups that took
    no part in the match map to an empty string.
    """
    if not status:
        return {}
    match = _BRANCH_PATTERN.fullmatch(status[0])
    if match is None:
        return {}
    return {name: value or "" for name, value in match.groupdict().items()}


def parse_git_stats(status: list[str]) -> RepoStats:
    """Count the entries of ``git status --porcelain`` output (header excluded)."""
    stats = RepoStats()
    for line in status[1:]:
        if len(line) <= 2:
            continue
        code = line[:2]
        if code == "??":
            stats.untracked += 1
        elif code in _CONFLICT_CODES:
            stats.conflicted += 1
        else:
            if code[0] != " ":
                stats.staged += 1
            if code[1] != " ":
                stats.not_staged += 1
    return stats


def _git_env() -> dict[str, str]:
    home_var = home_env_name()
    return {
        "LANG": "C",
        home_var: os.environ.get(home_var, ""),
        "PATH": os.environ.get("PATH", ""),
    }


def run_git_command(*args: str) -> str:
    """Run git with ``args`` in a minimal environment and return its output.

    Raises OSError when git cannot be started and
    subprocess.CalledProcessError when it exits with a failure.
    """
    completed = subprocess.run(
        ["git", *args],
        capture_output=True,
        stdin=subprocess.DEVNULL,
        env=_git_env(),
    )
    if completed.returncode != 0:
        raise subprocess.CalledProcessError(
            completed.returncode, completed.args, completed.stdout, completed.stderr
        )
    return completed.stdout.decode("utf-8", errors="replace")


def git_detached_branch(p: Any) -> str:
    """Name for a detached HEAD: its short hash, else the symbolic ref."""
    try:
        out = run_git_command("--no-optional-locks", "rev-parse", "--short", "HEAD")
    except _COMMAND_ERRORS:
        try:
            out = run_git_command("--no-optional-locks", "symbolic-ref", "--short", "HEAD")
        except _COMMAND_ERRORS:
            return "Error"
        return out.split("\n", 1)[0]
    return f"{p.symbols.repo_detached} {out.split(chr(10), 1)[0]}"


def repo_root() -> str:
    """Top-level directory of the repository around the working directory."""
    return run_git_command("--no-optional-locks", "rev-parse", "--show-toplevel").strip()


def index_size(root: str) -> int:
    """Size in bytes of the git index below ``root``; raises OSError."""
    return os.stat(os.path.join(root, ".git", "index")).st_size


def _count(text: str) -> int:
    if not text:
        return 0
    return min(int(text), _INT32_MAX)


def segment_git(p: Any) -> list[Segment]:
    """The branch and, depending on the git mode, its change counts."""
    try:
        root = repo_root()
    except _COMMAND_ERRORS:
        return []
    if p.ignore_repos and root in p.ignore_repos:
        return []

    args = ["--no-optional-locks", "status", "--porcelain", "-b", "--ignore-submodules"]
    limit = p.cfg.git_assume_unchanged_size
    if limit > 0:
        try:
            size = index_size(p.cwd)
        except OSError:
            size = 0
        if size > limit * 1024:
            args.append("-uno")

    try:
        out = run_git_command(*args)
    except _COMMAND_ERRORS:
        return []

    status = out.split("\n")
    stats = parse_git_stats(status)
    info = parse_branch_info(status)
    if info.get("local"):
        stats.ahead = _count(info.get("ahead", ""))
        stats.behind = _count(info.get("behind", ""))
        branch = info["local"]
    else:
        branch = git_detached_branch(p)

    if p.symbols.repo_branch:
        branch = f"{p.symbols.repo_branch} {branch}"

    if stats.dirty():
        foreground, background = p.theme.repo_dirty_fg, p.theme.repo_dirty_bg
    else:
        foreground, background = p.theme.repo_clean_fg, p.theme.repo_clean_bg

    head = Segment(name="git-branch", content=branch, foreground=foreground, background=background)

    stash_enabled = True
    for stat in p.cfg.git_disable_stats:
        field_name = _DISABLE_NAMES.get(stat)
        if field_name is None:
            continue
        setattr(stats, field_name, 0)
        if field_name == "stashed":
            stash_enabled = False

    if stash_enabled:
        try:
            stash = run_git_command("--no-optional-locks", "rev-list", "-g", "refs/stash")
        except _COMMAND_ERRORS:
            pass
        else:
            stats.stashed = stash.count("\n")

    mode = p.cfg.git_mode
    if mode == "simple":
        if stats.any():
            head.content += " " + stats.symbols(p)
        return [head]
    if mode == "compact":
        if stats.any():
            head.content += stats.symbols(p)
        return [head]
    return [head, *stats.segments(p)]


def segment_git_lite(p: Any) -> list[Segment]:
    """The branch name alone, without querying the working tree."""
    if p.ignore_repos:
        try:
            root = repo_root()
        except _COMMAND_ERRORS:
            return []
        if root in p.ignore_repos:
            return []

    try:
        out = run_git_command("--no-optional-locks", "rev-parse", "--abbrev-ref", "HEAD")
    except _COMMAND_ERRORS:
        return []

    status = out.strip()
    branch = git_detached_branch(p) if status == "HEAD" else status
    if p.cfg.git_mode != "compact" and p.symbols.repo_branch:
        branch = f"{p.symbols.repo_branch} {branch}"

    return [
        Segment(
            name="git-branch",
            content=branch,
            foreground=p.theme.repo_clean_fg,
            background=p.theme.repo_clean_bg,
        )
    ]