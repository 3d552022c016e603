# src/fibengine/runtime.py
"""
Per-context runtime: the active profile and the debug flag.

Profiles are nested tables (ENGINE, DEVICE, BENCH, FORMATTING, OUTPUT,
BEHAVIOUR); code reads single values with CFG("DEVICE.MAX_LENGTH", 150)
and never holds on to the Settings object itself.
"""
from __future__ import annotations

import sys
from contextvars import ContextVar
from dataclasses import dataclass, field
from importlib.util import find_spec
from typing import Any

from colorama import Fore, Style


@dataclass
class Runtime:
    profile_name: str = "default"
    settings: dict[str, Any] = field(default_factory=dict)
    debug: bool = False  # [debug] lines and full tracebacks

    def apply(self, settings: Any) -> None:
        """Install a config.Settings (or a plain nested dict, as tests pass)."""
        if isinstance(settings, dict):
            self.profile_name = "custom"
            cfg = settings
        else:
            self.profile_name = settings.name or "default"
            cfg = settings.as_dict()
        self.settings = {section: dict(values) if isinstance(values, dict) else values
                         for section, values in cfg.items()}

        # BEHAVIOUR.DEBUG in the profile switches debug on; --debug can only add to it
        dbg = self.get("BEHAVIOUR.DEBUG", None)
        if isinstance(dbg, bool):
            self.debug = self.debug or dbg

    def get(self, key: str, default: Any = None) -> Any:
        """
        Dotted lookup, one level per dot: 'ENGINE.CAPACITY' reads the CAPACITY
        key of the [ENGINE] table. A missing section or key gives `default`.
        """
        if not key:
            return default
        cur: Any = self.settings
        for part in key.split("."):
            if not isinstance(cur, dict) or part not in cur:
                return default
            cur = cur[part]
        return cur


# --- Context management ---

_current_runtime: ContextVar[Runtime | None] = ContextVar("fibengine_runtime", default=None)


def current() -> Runtime:
    rt = _current_runtime.get()
    if rt is None:
        rt = Runtime()
        _current_runtime.set(rt)
    return rt


def APPLY(settings: Any) -> None:
    current().apply(settings)


def CFG(key: str, default: Any = None) -> Any:
    return current().get(key, default)


def reset() -> None:
    """Drop the runtime of the current context (fresh defaults on next use)."""
    _current_runtime.set(None)


def debug_log(msg: str) -> None:
    """One '[debug]' line on stderr when debug mode is on."""
    if current().debug:
        print(f"{Style.DIM}[debug]{Style.RESET_ALL} {msg}", file=sys.stderr)


# ---- Dependency check --------------------------------------------------------

def ensure_runtime_deps(strict: bool = True) -> bool:
    """
    Verify the reference libraries used by `verify` are available.
    If strict=True, prints a friendly error and returns False when missing.
    """
    required = ("gmpy2", "sympy")
    missing = [name for name in required if find_spec(name) is None]

    if not missing:
        return True

    msg = (
        f"{Fore.RED}{Style.BRIGHT}\nMissing dependencies:{Style.RESET_ALL} "
        + ", ".join(missing)
        + "\nInstall with: "
        + f"{Fore.YELLOW}pip install " + " ".join(missing) + f"{Style.RESET_ALL}"
    )
    print(msg)
    return not strict
