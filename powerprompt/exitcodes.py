"""Names of the signals that terminated a process, per platform."""

from __future__ import annotations

import re
import sys
from collections.abc import Mapping
from types import MappingProxyType

# Signal names in numbering order; the first name of each list is signal 1
# unless a start number is given.
_BSD_BASE = """
    HUP INT QUIT ILL TRAP ABRT EMT FPE KILL BUS SEGV SYS PIPE ALRM TERM
    URG STOP TSTP CONT CHLD TTIN TTOU IO XCPU XFSZ VTALRM PROF WINCH INFO
"""

_LINUX_ORDER = """
    HUP INT QUIT ILL TRAP ABRT BUS FPE KILL USR1 SEGV USR2 PIPE ALRM TERM
    STKFLT CHLD CONT STOP TSTP TTIN TTOU URG XCPU XFSZ VTALRM PROF WINCH
    IO PWR SYS
"""

_SOLARIS_ORDER = """
    HUP INT QUIT ILL TRAP ABRT EMT FPE KILL BUS SEGV SYS PIPE ALRM TERM
    USR1 USR2 CHLD PWR WINCH URG IO STOP TSTP CONT TTIN TTOU VTALRM PROF
    XCPU XFSZ WAITING LWP FREEZE THAW CANCEL LOST XRES JVM1 JVM2
"""


def _numbered(names: str, start: int = 1) -> dict[int, str]:
    """Map consecutive signal numbers from ``start`` to ``SIG``-prefixed names."""
    return {number: f"SIG{name}" for number, name in enumerate(names.split(), start)}


_BSD = _numbered(_BSD_BASE)
_USER_SIGNALS = _numbered("USR1 USR2", start=30)


def _frozen(*parts: dict[int, str]) -> Mapping[int, str]:
    merged: dict[int, str] = {}
    for part in parts:
        merged.update(part)
    return MappingProxyType(merged)


_TABLES: dict[str, Mapping[int, str]] = {
    "darwin": _frozen(_BSD, _USER_SIGNALS),
    "dragonfly": _frozen(_BSD, _numbered("THR CKPT CKPTEXIT", start=32)),
    "freebsd": _frozen(_BSD, _USER_SIGNALS, _numbered("THR LIBRT", start=32)),
    "linux": _frozen(_numbered(_LINUX_ORDER)),
    "netbsd": _frozen(_BSD, _USER_SIGNALS, _numbered("PWR", start=32)),
    "openbsd": _frozen(_BSD, _USER_SIGNALS, _numbered("THR", start=32)),
    "solaris": _frozen(_numbered(_SOLARIS_ORDER)),
    # Named signals are not reported on Windows.
    "windows": MappingProxyType({}),
}

_ALIASES = {"sunos": "solaris", "win": "windows", "cygwin": "windows"}


def signal_names(platform: str | None = None) -> Mapping[int, str]:
    """Signal numbers and names for ``platform`` (default: the running one).

    Accepts ``sys.platform`` style values such as ``freebsd13`` or ``sunos5``;
    an unknown platform has no names.
    """
    name = (platform if platform is not None else sys.platform).lower()
    name = re.sub(r"\d+$", "", name)
    name = _ALIASES.get(name, name)
    return _TABLES.get(name, MappingProxyType({}))