# powerprompt

A powerline-style prompt for your shell. Each time it runs, it gathers information from
your environment and prints it as a coloured row of segments. That information includes
the working directory and the status of git, mercurial, subversion, bazaar or fossil. It
also covers virtualenv and conda, the kubernetes context, AWS, GCP and docker, and the exit
code and duration of the last command, among others.

## Installation

```sh
pip install powerprompt
```

This installs the `powerprompt` command.

## What is not included

powerprompt ships **no built-in themes, symbol sets or shell descriptions**. A fresh
configuration is empty: no modules, no theme, no shell escapes. Without a configuration
file or options, the command prints an empty prompt. Before it is useful, you define the
following in the configuration file described below:

- at least one shell under `shells`,
- at least one theme under `themes`,
- at least one symbol set under `modes`,
- the `modules` to show.

Theme names such as `default` or `gruvbox` appear in the `-theme` help text. They mean
nothing unless your configuration defines them.

## Configuration file

Settings are read from `~/.config/powerprompt/config.json` when that file exists. A file
that is missing or cannot be read is ignored. If the file is present but is not valid
JSON, the command reports "Error loading config" on stderr. Command-line options take
precedence over the file.

The keys are the option names: `"cwd-mode"`, `"cwd-max-depth"`, `"modules"`,
`"modules-right"`, `"priority"`, `"theme"`, `"mode"`, `"shell"`, `"git-mode"`,
`"max-width-percentage"`, `"truncate-segment-width"`, `"path-aliases"` and so on. Three
options are taken only from the command line and never from the file: `-jobs`, `-error`,
`-duration` and `-time`.

The maps `shells`, `themes` and `modes` hold named records. Their field names are matched
without regard to case or underscores, so `ColorTemplate`, `colortemplate` and
`color_template` are all the same field. Themes and modes given in the file are laid over
the theme and mode selected when the file is read.

A minimal example for bash:

```json
{
    "shell": "bash",
    "theme": "mine",
    "mode": "plain",
    "modules": ["user", "host", "cwd", "git", "exit", "root"],
    "priority": ["root", "cwd", "user", "host", "git", "exit"],
    "shells": {
        "bash": {
            "ColorTemplate": "\\[\\e%s\\]",
            "RootIndicator": "\\$",
            "EscapedDollar": "\\$",
            "EscapedBacktick": "\\`",
            "EscapedBackslash": "\\\\"
        }
    },
    "modes": {
        "plain": {
            "Separator": ">",
            "SeparatorThin": "|",
            "SeparatorReverse": "<",
            "SeparatorReverseThin": "|",
            "RepoBranch": "",
            "RepoDetached": "@",
            "RepoAhead": "^",
            "RepoBehind": "v",
            "RepoStaged": "+",
            "RepoNotStaged": "*",
            "RepoUntracked": "?",
            "RepoConflicted": "!",
            "RepoStashed": "$",
            "Lock": "RO",
            "Network": "SSH"
        }
    },
    "themes": {
        "mine": {
            "Reset": 255,
            "DefaultFg": 250, "DefaultBg": 240,
            "UsernameFg": 250, "UsernameBg": 240, "UsernameRootBg": 124,
            "HostnameFg": 250, "HostnameBg": 238,
            "PathFg": 250, "PathBg": 237, "CwdFg": 254, "SeparatorFg": 244,
            "RepoCleanFg": 0, "RepoCleanBg": 148, "RepoDirtyFg": 15, "RepoDirtyBg": 161,
            "CmdPassedFg": 15, "CmdPassedBg": 236, "CmdFailedFg": 15, "CmdFailedBg": 161
        }
    }
}
```

Colour codes are entries of the 256-colour palette (0–255). A colour equal to the theme's
`Reset` value is drawn as a reset.

A shell's `ColorTemplate` receives the escape sequence in place of its `%s`. Write `%%` for
a literal percent sign, as zsh templates such as `"%%{\u001b%s%%}"` need. For `-eval`
output, a shell record also takes `EvalPromptPrefix` and `EvalPromptSuffix`. For a
right-hand prompt it takes `EvalPromptRightPrefix` and `EvalPromptRightSuffix`. A shell
with a non-empty right prefix or suffix supports right-aligned modules.

The library call `Config.save(path)` writes the settings back as JSON. The `themes`,
`modes` and `shells` maps are written empty.

## Shell setup

### bash

```sh
function _update_ps1() {
    PS1="$(powerprompt -error $? -jobs $(jobs -p | wc -l))"
}
if [ "$TERM" != "linux" ]; then
    PROMPT_COMMAND="_update_ps1; $PROMPT_COMMAND"
fi
```

### zsh

```sh
function powerline_precmd() {
    eval "$(powerprompt -error $? -jobs ${${(%):%j}:-0} -eval -shell zsh)"
}
precmd_functions+=(powerline_precmd)
```

Right-aligned segments set through `-modules-right` need two things. The shell record must
support a right prompt, and the command must be given `-eval`; otherwise it exits with an
error. For a shell without right-prompt support, the right modules are added at the end of
the left prompt.

## Options

Options take one dash or two (`-theme` or `--theme`). A boolean option given alone means
true, or it takes a value such as `true`, `false`, `1` or `0`. Integer options accept
`0x`, `0o` and `0b` prefixes, and a leading `0` for octal. Run `powerprompt -h` for the
full list. The most used options are:

| Option | Meaning |
| --- | --- |
| `-modules` | Comma-separated list of segments to show, left to right |
| `-modules-right` | Segments anchored to the right (needs `-eval`) |
| `-priority` | Segments in order of importance; the least important are dropped first when space runs out |
| `-theme` | A theme name from the configuration, or the path of a JSON theme file |
| `-mode` | A symbol set name from the configuration, or the path of a JSON file |
| `-shell` | A shell name from the configuration; `autodetect` picks `bash`, `zsh` or `bare` from the parent process |
| `-cwd-mode` | `fancy`, `semifancy`, `plain` or `dironly` |
| `-cwd-max-depth` | Maximum number of directories shown |
| `-git-mode` | `fancy`, `compact` or `simple` |
| `-max-width` | Percentage of the terminal width the prompt may use; 0 disables shrinking |
| `-truncate-segment-width` | Segments wider than this are shortened first when space runs out |
| `-newline` | Put the cursor on a line of its own |
| `-error` | Exit code of the previous command |
| `-duration` | Seconds the previous command took, for the `duration` module |
| `-time` | Layout for the `time` module, written as the reference time `Mon Jan 2 15:04:05 MST 2006` |
| `-path-aliases` | Short names for paths, e.g. `~/src/work=W` |
| `-ignore-warnings` | Do not print warnings to stderr |

A `-theme` or `-mode` value ending in `.json` is read as a file. Its fields are laid over
the theme or symbol set named by an empty name in the configuration, if there is one, and
otherwise over an all-zero record.

The built-in modules are `aws`, `bzr`, `cwd`, `direnv`, `docker`, `docker-context`,
`dotenv`, `duration`, `exit`, `fossil`, `gcp`, `git`, `gitlite`, `goenv`, `hg`, `host`,
`jobs`, `kube`, `load`, `newline`, `nix-shell`, `node`, `perlbrew`, `perms`, `plenv`,
`rbenv`, `root`, `rvm`, `shell-var`, `shenv`, `ssh`, `svn`, `termtitle`,
`terraform-workspace`, `time`, `user`, `venv`, `vgo`, `vi-mode` and `wsl`. The `newline`
module starts a new row of the prompt.

## Plugins

A module name that is not built in runs the executable `powerprompt-NAME` found on `PATH`.
That executable prints a JSON list of segment objects, for example:

```json
[{"Name": "weather", "Content": "sunny", "Foreground": 15, "Background": 33}]
```

Field names are matched without regard to case. If the executable cannot be run or fails,
"Module not found" is printed on stderr. If it runs but prints something other than a
valid list, no segments are shown.

## Using it as a library

```python
from powerprompt.cli import MODULES
from powerprompt.config import Config
from powerprompt.renderer import Alignment, Powerline
from powerprompt.themes import ShellInfo

cfg = Config()
cfg.shell = "bare"
cfg.shells["bare"] = ShellInfo(color_template="\x1b%s", root_indicator="$")
cfg.modules = ["user", "cwd", "exit"]
prompt = Powerline(cfg, "/tmp", Alignment.LEFT, MODULES)
print(prompt.draw())
```

`Powerline` runs only the module functions in the mapping it is given. Any other module name
is treated as a plugin. Each segment is a `powerprompt.segment.Segment`, and a module
function takes the `Powerline` and returns a list of them.