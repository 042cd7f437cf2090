import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace

import psutil
import pytest

from powerprompt import envsegments as es
from powerprompt.config import Config
from powerprompt.themes import ShellInfo, SymbolTemplate, Theme

THEME = Theme(
    aws_fg=11, aws_bg=12, dot_env_fg=13, dot_env_bg=14,
    docker_machine_fg=15, docker_machine_bg=16, pl_env_fg=17, pl_env_bg=18,
    nix_shell_fg=19, nix_shell_bg=20, perlbrew_fg=21, perlbrew_bg=22,
    shell_var_fg=23, shell_var_bg=24, sh_env_fg=25, sh_env_bg=26,
    ssh_fg=27, ssh_bg=28, virtual_go_fg=29, virtual_go_bg=30,
    vi_mode_command_fg=31, vi_mode_command_bg=32, vi_mode_insert_fg=33, vi_mode_insert_bg=34,
    wsl_machine_fg=35, wsl_machine_bg=36, virtual_env_fg=37, virtual_env_bg=38,
    time_fg=39, time_bg=40, tf_ws_fg=41, tf_ws_bg=42, readonly_fg=43, readonly_bg=44,
    load_fg=45, load_bg=46, load_high_bg=47, load_avg_value=5, load_threshold_bad=1.0,
)
SYMBOLS = SymbolTemplate(lock="L", network="N", network_alternate="A", venv_indicator="V")
SHELL = ShellInfo(escaped_dollar="\\$", escaped_backtick="\\`", escaped_backslash="\\\\")

REFERENCE = datetime(2006, 1, 2, 15, 4, 5, 123456, tzinfo=timezone(timedelta(hours=-7), "MST"))
LATER = datetime(2021, 12, 25, 9, 7, 3, tzinfo=timezone.utc)


def make_p(cwd="/tmp", **cfg):
    return SimpleNamespace(
        cfg=Config(**cfg), theme=THEME, symbols=SYMBOLS, shell=SHELL,
        cwd=str(cwd), home_dir="/home/tester", hostname="box", username="tester",
    )


def clear(monkeypatch, *names):
    for name in names:
        monkeypatch.delenv(name, raising=False)


def test_aws_without_profile(monkeypatch):
    clear(monkeypatch, "AWS_PROFILE", "AWS_DEFAULT_REGION")
    assert es.segment_aws(make_p()) == []


def test_aws_with_region(monkeypatch):
    monkeypatch.setenv("AWS_PROFILE", "dev")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")
    [seg] = es.segment_aws(make_p())
    assert (seg.name, seg.content) == ("aws", "dev (eu-west-1)")
    assert (seg.foreground, seg.background) == (THEME.aws_fg, THEME.aws_bg)


def test_aws_profile_only(monkeypatch):
    monkeypatch.setenv("AWS_PROFILE", "dev")
    clear(monkeypatch, "AWS_DEFAULT_REGION")
    assert es.segment_aws(make_p())[0].content == "dev"


def test_direnv(monkeypatch):
    clear(monkeypatch, "DIRENV_DIR")
    assert es.segment_direnv(make_p()) == []
    monkeypatch.setenv("DIRENV_DIR", "-/home/tester")
    assert es.segment_direnv(make_p())[0].content == "~"
    monkeypatch.setenv("DIRENV_DIR", os.sep.join(["", "srv", "projects", "app"]))
    [seg] = es.segment_direnv(make_p())
    assert (seg.name, seg.content, seg.foreground) == ("direnv", "app", THEME.dot_env_fg)


def test_docker_machine_name_wins(monkeypatch):
    monkeypatch.setenv("DOCKER_MACHINE_NAME", "devbox")
    monkeypatch.setenv("DOCKER_HOST", "tcp://10.0.0.5:2376")
    [seg] = es.segment_docker(make_p())
    assert (seg.name, seg.content) == ("docker", "devbox")


def test_docker_host_url(monkeypatch):
    clear(monkeypatch, "DOCKER_MACHINE_NAME")
    monkeypatch.setenv("DOCKER_HOST", "tcp://10.0.0.5:2376")
    assert es.segment_docker(make_p())[0].content == "10.0.0.5:2376"


def test_docker_nothing(monkeypatch):
    clear(monkeypatch, "DOCKER_MACHINE_NAME", "DOCKER_HOST")
    assert es.segment_docker(make_p()) == []


def test_docker_context_env(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("DOCKER_CONTEXT", "remote")
    [seg] = es.segment_docker_context(make_p())
    assert (seg.name, seg.content) == ("docker-context", "\U0001f433remote")
    monkeypatch.setenv("DOCKER_CONTEXT", "default")
    assert es.segment_docker_context(make_p()) == []


def test_docker_context_from_config(monkeypatch, tmp_path):
    clear(monkeypatch, "DOCKER_CONTEXT")
    monkeypatch.setenv("HOME", str(tmp_path))
    docker = tmp_path / ".docker"
    (docker / "contexts").mkdir(parents=True)
    (docker / "config.json").write_text('{"currentContext": "staging"}')
    assert es.segment_docker_context(make_p())[0].content == "\U0001f433staging"


def test_docker_context_needs_contexts_dir(monkeypatch, tmp_path):
    clear(monkeypatch, "DOCKER_CONTEXT")
    monkeypatch.setenv("HOME", str(tmp_path))
    (tmp_path / ".docker").mkdir()
    (tmp_path / ".docker" / "config.json").write_text('{"currentContext": "staging"}')
    assert es.segment_docker_context(make_p()) == []


def test_dotenv(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    assert es.segment_dotenv(make_p()) == []
    (tmp_path / ".env").mkdir()
    assert es.segment_dotenv(make_p()) == []
    (tmp_path / ".envrc").write_text("export X=1\n")
    [seg] = es.segment_dotenv(make_p())
    assert (seg.name, seg.content) == ("dotenv", "\u2235")


def test_nix_shell(monkeypatch):
    clear(monkeypatch, "IN_NIX_SHELL")
    assert es.segment_nix_shell(make_p()) == []
    monkeypatch.setenv("IN_NIX_SHELL", "impure")
    [seg] = es.segment_nix_shell(make_p())
    assert (seg.content, seg.background) == ("\uf313", THEME.nix_shell_bg)


def test_perlbrew_uses_base_name(monkeypatch):
    monkeypatch.setenv("PERLBREW_PERL", "/opt/perl5/perls/perl-5.36.0")
    [seg] = es.segment_perlbrew(make_p())
    assert (seg.name, seg.content) == ("perlbrew", "perl-5.36.0")


@pytest.mark.parametrize(
    "func, variable, name, fg",
    [
        (es.segment_plenv, "PLENV_VERSION", "plenv", THEME.pl_env_fg),
        (es.segment_shenv, "SHENV_VERSION", "shenv", THEME.sh_env_fg),
        (es.segment_virtual_go, "VIRTUALGO", "vgo", THEME.virtual_go_fg),
    ],
)
def test_plain_variable_segments(monkeypatch, func, variable, name, fg):
    clear(monkeypatch, variable)
    assert func(make_p()) == []
    monkeypatch.setenv(variable, "v1.2")
    [seg] = func(make_p())
    assert (seg.name, seg.content, seg.foreground) == (name, "v1.2", fg)


def test_shell_var_present(monkeypatch):
    monkeypatch.setenv("MY_VAR", "hello")
    [seg] = es.segment_shell_var(make_p(shell_var="MY_VAR"))
    assert (seg.name, seg.content) == ("shell-var", "hello")


def test_shell_var_missing_warns(monkeypatch, capsys):
    clear(monkeypatch, "MY_VAR")
    assert es.segment_shell_var(make_p(shell_var="MY_VAR")) == []
    assert "MY_VAR does not exist." in capsys.readouterr().err


def test_shell_var_empty(monkeypatch, capsys):
    monkeypatch.setenv("MY_VAR", "")
    assert es.segment_shell_var(make_p(shell_var="MY_VAR")) == []
    assert "MY_VAR is empty." in capsys.readouterr().err
    assert es.segment_shell_var(make_p(shell_var="MY_VAR", shell_var_no_warn_empty=True)) == []
    assert capsys.readouterr().err == ""


def test_shell_var_ignored_warnings(monkeypatch, capsys):
    clear(monkeypatch, "MY_VAR")
    assert es.segment_shell_var(make_p(shell_var="MY_VAR", ignore_warnings=True)) == []
    assert capsys.readouterr().err == ""


def test_ssh_icons(monkeypatch):
    clear(monkeypatch, "SSH_CLIENT")
    assert es.segment_ssh(make_p()) == []
    monkeypatch.setenv("SSH_CLIENT", "10.0.0.1 5000 22")
    assert es.segment_ssh(make_p())[0].content == SYMBOLS.network
    assert es.segment_ssh(make_p(ssh_alternate_icon=True))[0].content == SYMBOLS.network_alternate


def test_vi_mode(capsys):
    [cmd] = es.segment_vi_mode(make_p(vi_mode="vicmd"))
    assert (cmd.content, cmd.foreground) == ("C", THEME.vi_mode_command_fg)
    [ins] = es.segment_vi_mode(make_p(vi_mode="viins"))
    assert (ins.content, ins.foreground) == ("I", THEME.vi_mode_insert_fg)
    assert es.segment_vi_mode(make_p()) == []
    assert "'--vi-mode' is not set." in capsys.readouterr().err


def test_wsl(monkeypatch):
    monkeypatch.setenv("WSL_DISTRO_NAME", "Ubuntu")
    [seg] = es.segment_wsl(make_p())
    assert (seg.name, seg.content) == ("WSL", "Ubuntu")
    clear(monkeypatch, "WSL_DISTRO_NAME")
    monkeypatch.setenv("NAME", "http://winhost:80/")
    assert es.segment_wsl(make_p())[0].content == "winhost:80"
    clear(monkeypatch, "NAME")
    assert es.segment_wsl(make_p()) == []


VENV_VARS = ("VIRTUAL_ENV", "CONDA_ENV_PATH", "CONDA_DEFAULT_ENV", "PYENV_VERSION")


def test_virtual_env_prompt_from_cfg(monkeypatch, tmp_path):
    clear(monkeypatch, *VENV_VARS)
    venv = tmp_path / "proj-env"
    venv.mkdir()
    (venv / "pyvenv.cfg").write_text("home = /usr/bin\nprompt = 'shiny'\n")
    monkeypatch.setenv("VIRTUAL_ENV", str(venv))
    [seg] = es.segment_virtual_env(make_p())
    assert (seg.name, seg.content) == ("venv", "shiny")


def test_virtual_env_without_cfg_uses_path(monkeypatch):
    clear(monkeypatch, *VENV_VARS)
    monkeypatch.setenv("VIRTUAL_ENV", "/nonexistent/envs/proj-env")
    assert es.segment_virtual_env(make_p())[0].content == "proj-env"


def test_virtual_env_cfg_without_prompt_falls_through(monkeypatch, tmp_path):
    clear(monkeypatch, *VENV_VARS)
    (tmp_path / "pyvenv.cfg").write_text("home = /usr/bin\n")
    monkeypatch.setenv("VIRTUAL_ENV", str(tmp_path))
    assert es.segment_virtual_env(make_p()) == []
    monkeypatch.setenv("CONDA_DEFAULT_ENV", "base")
    assert es.segment_virtual_env(make_p())[0].content == "base"


def test_virtual_env_limit_and_escape(monkeypatch):
    clear(monkeypatch, *VENV_VARS)
    monkeypatch.setenv("PYENV_VERSION", "a$b")
    assert es.segment_virtual_env(make_p())[0].content == "a\\$b"
    assert es.segment_virtual_env(make_p(venv_name_size_limit=2))[0].content == "V"


@pytest.mark.parametrize(
    "layout, expected",
    [
        ("2006-01-02T15:04:05Z07:00", "2006-01-02T15:04:05-07:00"),
        ("Mon Jan _2 15:04:05 MST 2006", "Mon Jan  2 15:04:05 MST 2006"),
        ("3:04PM", "3:04PM"),
        ("15:04:05.000", "15:04:05.123"),
        ("January Monday 06 002", "January Monday 06 002"),
        ("-0700 -07", "-0700 -07"),
    ],
)
def test_go_time_format_reference(layout, expected):
    assert es.go_time_format(layout, REFERENCE) == expected


def test_go_time_format_other_moment():
    assert es.go_time_format("15:04:05", LATER) == "09:07:03"
    assert es.go_time_format("Z07:00", LATER) == "Z"
    assert es.go_time_format("Monk", LATER) == "Monk"
    assert es.go_time_format(".999", LATER) == ""


def test_segment_time(monkeypatch):
    [seg] = es.segment_time(make_p(time="  Hello  "))
    assert (seg.name, seg.content, seg.foreground) == ("time", "Hello", THEME.time_fg)
    year = es.segment_time(make_p(time="2006"))[0].content
    assert year.isdigit() and len(year) == 4


def test_terraform_workspace(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    assert es.segment_terraform_workspace(make_p()) == []
    (tmp_path / ".terraform").mkdir()
    (tmp_path / ".terraform" / "environment").write_text("staging\n")
    [seg] = es.segment_terraform_workspace(make_p())
    assert (seg.name, seg.content) == ("terraform-workspace", "staging\n")


def test_perms(tmp_path):
    assert es.segment_perms(make_p(cwd=tmp_path)) == []
    [seg] = es.segment_perms(make_p(cwd=tmp_path / "missing"))
    assert (seg.name, seg.content, seg.background) == ("perms", "L", THEME.readonly_bg)


def test_load_high(monkeypatch):
    monkeypatch.setattr(psutil, "getloadavg", lambda: (0.5, 3.0, 0.1))
    monkeypatch.setattr(os, "cpu_count", lambda: 2)
    [seg] = es.segment_load(make_p())
    assert (seg.name, seg.content, seg.background) == ("load", "3.00", THEME.load_high_bg)


def test_load_avg_value_selects_threshold_only(monkeypatch):
    monkeypatch.setattr(psutil, "getloadavg", lambda: (0.5, 9.0, 0.1))
    monkeypatch.setattr(os, "cpu_count", lambda: 2)
    p = make_p()
    p.theme = Theme(load_bg=46, load_high_bg=47, load_avg_value=1, load_threshold_bad=1.0)
    [seg] = es.segment_load(p)
    assert (seg.content, seg.background) == ("9.00", 46)


def test_load_unavailable(monkeypatch):
    def fail():
        raise OSError("no load")

    monkeypatch.setattr(psutil, "getloadavg", fail)
    assert es.segment_load(make_p()) == []