import sys

import pytest

from powerprompt.exitcodes import signal_names


def test_linux_names():
    names = signal_names("linux")
    assert names[0x09] == "SIGKILL"
    assert names[0x0A] == "SIGUSR1"
    assert names[0x10] == "SIGSTKFLT"


def test_darwin_names():
    names = signal_names("darwin")
    assert names[0x1D] == "SIGINFO"
    assert names[0x1F] == "SIGUSR2"
    assert 0x20 not in names


def test_versioned_platform_strings():
    assert signal_names("freebsd13")[0x21] == "SIGLIBRT"
    assert signal_names("sunos5")[0x28] == "SIGJVM2"
    assert signal_names("openbsd7")[0x20] == "SIGTHR"


def test_bsd_variants_differ_where_source_does():
    assert signal_names("dragonfly")[0x22] == "SIGCKPTEXIT"
    assert 0x1E not in signal_names("dragonfly")
    assert signal_names("netbsd")[0x20] == "SIGPWR"


def test_windows_has_no_names():
    assert dict(signal_names("win32")) == {}
    assert dict(signal_names("windows")) == {}


def test_unknown_platform_has_no_names():
    assert dict(signal_names("plan9")) == {}


def test_default_is_running_platform():
    assert dict(signal_names()) == dict(signal_names(sys.platform))


def test_tables_are_read_only():
    names = signal_names("linux")
    with pytest.raises(TypeError):
        names[0x09] = "changed"
    assert signal_names("linux")[0x09] == "SIGKILL"