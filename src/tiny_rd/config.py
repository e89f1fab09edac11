from __future__ import annotations

import os as _os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_MAX_DEPTH = 150
INT_MAX = 2**31 - 1

_TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str, environ: Optional[Mapping[str, str]] = None) -> bool:
    """True if the env var is set to a truthy string."""
    env = _os.environ if environ is None else environ
    return env.get(name, "").strip().lower() in _TRUTHY


def env_int(name: str, default: int, environ: Optional[Mapping[str, str]] = None) -> int:
    env = _os.environ if environ is None else environ
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass
class ParseOptions:
    """Knobs shared by the parser, the CLI and the REPL."""

    trace_scan: bool = False
    echo_source: bool = False
    max_depth: int = DEFAULT_MAX_DEPTH
    int_max: int = INT_MAX

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> ParseOptions:
        return cls(
            trace_scan=env_flag("TINY_TRACE_SCAN", environ),
            echo_source=env_flag("TINY_ECHO_SOURCE", environ),
            max_depth=env_int("TINY_MAX_DEPTH", DEFAULT_MAX_DEPTH, environ),
            int_max=env_int("TINY_INT_MAX", INT_MAX, environ),
        )
