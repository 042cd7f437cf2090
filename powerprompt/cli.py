"""Command-line entry point: read options and configuration, print the prompt."""

from __future__ import annotations

import argparse
import json
import os
import re
import sys
from pathlib import Path

from . import basic, cwd, envsegments, git, gcp, kube, svn, vcs, versions
from .config import Config, config_path
from .environment import warn
from .plugin import PLUGIN_PREFIX
from .renderer import Alignment, Powerline
from .themes import SymbolTemplate, Theme

MODULES = {
    "aws": envsegments.segment_aws,
    "bzr": vcs.segment_bzr,
    "cwd": cwd.segment_cwd,
    "direnv": envsegments.segment_direnv,
    "docker": envsegments.segment_docker,
    "docker-context": envsegments.segment_docker_context,
    "dotenv": envsegments.segment_dotenv,
    "duration": basic.segment_duration,
    "exit": basic.segment_exit_code,
    "fossil": vcs.segment_fossil,
    "gcp": gcp.segment_gcp,
    "git": git.segment_git,
    "gitlite": git.segment_git_lite,
    "goenv": versions.segment_goenv,
    "hg": vcs.segment_hg,
    "svn": svn.segment_subversion,
    "host": basic.segment_host,
    "jobs": basic.segment_jobs,
    "kube": kube.segment_kube,
    "load": envsegments.segment_load,
    "newline": basic.segment_newline,
    "perlbrew": envsegments.segment_perlbrew,
    "plenv": envsegments.segment_plenv,
    "perms": envsegments.segment_perms,
    "rbenv": versions.segment_rbenv,
    "root": basic.segment_root,
    "rvm": versions.segment_rvm,
    "shell-var": envsegments.segment_shell_var,
    "shenv": envsegments.segment_shenv,
    "ssh": envsegments.segment_ssh,
    "termtitle": basic.segment_term_title,
    "terraform-workspace": envsegments.segment_terraform_workspace,
    "time": envsegments.segment_time,
    "node": versions.segment_node,
    "user": basic.segment_user,
    "venv": envsegments.segment_virtual_env,
    "vgo": envsegments.segment_virtual_go,
    "vi-mode": envsegments.segment_vi_mode,
    "wsl": envsegments.segment_wsl,
    "nix-shell": envsegments.segment_nix_shell,
}

_MODULE_CHOICES = "(valid choices: " + ", ".join(sorted(MODULES)) + ")"
_PLUGIN_NOTE = (
    f"Unrecognized modules are run as '{PLUGIN_PREFIX}MODULE' executable plugins that print "
    "a (possibly empty) JSON list of segment objects."
)

_STR, _INT, _BOOL, _LIST, _ALIASES = "str", "int", "bool", "list", "aliases"

# Flag name, configuration attribute, kind, help text.
_FLAGS = (
    ("cwd-mode", "cwd_mode", _STR,
     "How to display the current directory (valid choices: fancy, semifancy, plain, dironly)"),
    ("cwd-max-depth", "cwd_max_depth", _INT, "Maximum number of directories to show in path"),
    ("cwd-max-dir-size", "cwd_max_dir_size", _INT,
     "Maximum number of letters displayed for each directory in the path"),
    ("colorize-hostname", "colorize_hostname", _BOOL,
     "Colorize the hostname based on a hash of itself, or use the PLGO_HOSTNAMEFG and "
     "PLGO_HOSTNAMEBG env vars (both need to be set)."),
    ("hostname-only-if-ssh", "hostname_only_if_ssh", _BOOL, "Show hostname only for SSH connections"),
    ("alternate-ssh-icon", "ssh_alternate_icon", _BOOL,
     "Show the older, original icon for SSH connections"),
    ("east-asian-width", "east_asian_width", _BOOL, "Use East Asian Ambiguous Widths"),
    ("newline", "prompt_on_new_line", _BOOL, "Show the prompt on a new line"),
    ("static-prompt-indicator", "static_prompt_indicator", _BOOL,
     "Always show the prompt indicator with the default color, never with the error color"),
    ("venv-name-size-limit", "venv_name_size_limit", _INT,
     "Show indicator instead of virtualenv name if name is longer than this limit "
     "(0 is unlimited)"),
    ("jobs", "jobs", _INT, "Number of jobs currently running"),
    ("git-assume-unchanged-size", "git_assume_unchanged_size", _INT,
     "Disable checking for changed/edited files in git repositories where the index is "
     "larger than this size (in KB), improves performance"),
    ("git-disable-stats", "git_disable_stats", _LIST,
     "Comma-separated list to disable individual git statuses (valid choices: ahead, "
     "behind, staged, notStaged, untracked, conflicted, stashed)"),
    ("git-mode", "git_mode", _STR,
     "How to display git status (valid choices: fancy, compact, simple)"),
    ("mode", "mode", _STR,
     "The characters used to make separators between segments. "
     "(valid choices: patched, compatible, flat)"),
    ("theme", "theme", _STR,
     "Set this to the theme you want to use (valid choices: default, low-contrast, gruvbox, "
     "solarized-dark16, solarized-light16)"),
    ("shell", "shell", _STR,
     "Set this to your shell type (valid choices: autodetect, bare, bash, zsh)"),
    ("modules", "modules", _LIST,
     f"The list of modules to load, separated by ',' {_MODULE_CHOICES} {_PLUGIN_NOTE}"),
    ("modules-right", "modules_right", _LIST,
     "The list of modules to load anchored to the right, for shells that support it, "
     f"separated by ',' {_MODULE_CHOICES} {_PLUGIN_NOTE}"),
    ("priority", "priority", _LIST,
     "Segments sorted by priority, if not enough space exists, the least priorized segments "
     f"are removed first. Separate with ',' {_MODULE_CHOICES}"),
    ("max-width", "max_width_percentage", _INT,
     "Maximum width of the shell that the prompt may use, in percent. "
     "Setting this to 0 disables the shrinking subsystem."),
    ("truncate-segment-width", "truncate_segment_width", _INT,
     "Maximum width of a segment, segments longer than this will be shortened if space is "
     "limited. Setting this to 0 disables it."),
    ("error", "prev_error", _INT, "Exit code of previously executed command"),
    ("numeric-exit-codes", "numeric_exit_codes", _BOOL, "Shows numeric exit codes for errors."),
    ("ignore-repos", "ignore_repos", _LIST,
     "A list of git repos to ignore. Separate with ','. "
     "Repos are identified by their root directory."),
    ("shorten-gke-names", "shorten_gke_names", _BOOL, "Shortens names for GKE Kube clusters."),
    ("shorten-eks-names", "shorten_eks_names", _BOOL, "Shortens names for EKS Kube clusters."),
    ("shorten-openshift-names", "shorten_openshift_names", _BOOL,
     "Shortens names for Openshift Kube clusters."),
    ("shell-var", "shell_var", _STR, "A shell variable to add to the segments."),
    ("shell-var-no-warn-empty", "shell_var_no_warn_empty", _BOOL,
     "Disables warning for empty shell variable."),
    ("trim-ad-domain", "trim_ad_domain", _BOOL, "Trim the Domainname from the AD username."),
    ("path-aliases", "path_aliases", _ALIASES,
     "One or more aliases from a path to a short name. Separate with ','. "
     "Specify these as key/value pairs like foo/bar/baz=FBB. Use '~' for your home dir."),
    ("duration", "duration", _STR, "The elapsed clock-time of the previous command"),
    ("time", "time", _STR,
     "The layout of the time, written as the reference time 'Mon Jan 2 15:04:05 MST 2006'."),
    ("duration-min", "duration_min", _STR,
     "The minimal time a command has to take before the duration segment is shown"),
    ("duration-low-precision", "duration_low_precision", _BOOL,
     "Use low precision timing for duration with milliseconds as maximum resolution"),
    ("eval", "eval", _BOOL, "Output prompt in 'eval' format."),
    ("condensed", "condensed", _BOOL, "Remove spacing between segments"),
    ("ignore-warnings", "ignore_warnings", _BOOL,
     "Ignores all warnings regarding unset or broken variables"),
    ("vi-mode", "vi_mode", _STR, "The current vi-mode (eg. KEYMAP for zsh) for vi-mode module"),
)

_LIST_ATTRS = frozenset(attr for _, attr, kind, _ in _FLAGS if kind == _LIST)

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})
_OCTAL = re.compile(r"0[0-7]+")


def _parse_bool(text: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value {text!r}")


def _parse_int(text: str) -> int:
    sign = -1 if text.startswith("-") else 1
    body = text[1:] if text[:1] in "+-" else text
    try:
        if _OCTAL.fullmatch(body):
            return sign * int(body, 8)
        return sign * int(body, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value {text!r}") from None


def build_parser() -> argparse.ArgumentParser:
    """The option parser; options that are not given are absent from the result."""
    parser = argparse.ArgumentParser(
        prog="powerprompt",
        description="Print a shell prompt built from segments.",
        argument_default=argparse.SUPPRESS,
        allow_abbrev=False,
    )
    for name, attr, kind, help_text in _FLAGS:
        options = {"dest": attr, "help": help_text}
        if kind == _BOOL:
            options.update(nargs="?", const=True, type=_parse_bool, metavar="BOOL")
        elif kind == _INT:
            options.update(type=_parse_int)
        parser.add_argument(f"-{name}", f"--{name}", **options)
    return parser


def _apply_options(cfg: Config, options: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    for attr, value in vars(options).items():
        if attr in _LIST_ATTRS:
            value = value.split(",")
        elif attr == "path_aliases":
            aliases = dict(cfg.path_aliases or {})
            for pair in value.split(","):
                key, sep, alias = pair.partition("=")
                if not sep:
                    parser.error(f"path alias {pair!r} is not of the form path=NAME")
                aliases[key] = alias
            value = aliases
        setattr(cfg, attr, value)


def _valid_cwd(ignore_warnings: bool) -> str:
    try:
        current = os.getcwd()
    except OSError:
        current = os.environ.get("PWD")
        if current is None:
            warn("Your current directory is invalid.", ignore_warnings)
            print("> ", end="", file=sys.stderr)
            raise SystemExit(1)

    parts = current.split(os.sep)
    up = current
    while parts and not os.path.exists(up):
        parts.pop()
        up = os.sep.join(parts)
    if up != current:
        warn("Your current directory is invalid. Lowest valid directory: " + up, ignore_warnings)
    return current


def get_valid_cwd() -> str:
    """The working directory, falling back to $PWD when it no longer exists."""
    return _valid_cwd(False)


def _load_json_file(path: str) -> object | None:
    """Parsed contents of ``path``, None if unreadable; raises ValueError on bad JSON."""
    try:
        text = Path(path).read_bytes()
    except OSError:
        return None
    return json.loads(text)


def _load_custom_theme(cfg: Config, defaults: Config) -> None:
    try:
        data = _load_json_file(cfg.theme)
        if data is None:
            return
        base = cfg.themes.get(defaults.theme, Theme())
        cfg.themes[cfg.theme] = base.updated(data)
    except (ValueError, TypeError) as exc:
        print("Error reading theme", file=sys.stderr)
        print(exc, file=sys.stderr)


def _load_custom_mode(cfg: Config, defaults: Config) -> None:
    try:
        data = _load_json_file(cfg.mode)
        if data is None:
            return
        base = cfg.modes.get(defaults.mode, SymbolTemplate())
        cfg.modes[cfg.mode] = base.updated(data)
    except (ValueError, TypeError) as exc:
        print("Error reading mode", file=sys.stderr)
        print(exc, file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Parse options, merge them over the configuration file and print the prompt."""
    parser = build_parser()
    options = parser.parse_args(argv)

    defaults = Config()
    cfg = Config()
    try:
        cfg.load(config_path())
    except FileNotFoundError:
        pass
    except (OSError, ValueError, TypeError) as exc:
        print("Error loading config", file=sys.stderr)
        print(exc, file=sys.stderr)

    _apply_options(cfg, options, parser)

    if cfg.theme.endswith(".json"):
        _load_custom_theme(cfg, defaults)
    if cfg.mode.endswith(".json"):
        _load_custom_mode(cfg, defaults)

    prompt = Powerline(cfg, _valid_cwd(cfg.ignore_warnings), Alignment.LEFT, MODULES)
    if prompt.supports_right_modules() and prompt.has_right_modules() and not cfg.eval:
        raise SystemExit("Flag '-modules-right' requires '-eval' mode.")

    print(prompt.draw(), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())