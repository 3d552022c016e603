# src/fibengine/fmt.py
from __future__ import annotations

import re

from fibengine.bignum import BigNumber

# Single source of truth for ANSI stripping
ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


class BufferTooSmallError(ValueError):
    """The decimal string plus its NUL terminator does not fit the buffer."""

    def __init__(self, needed: int, size: int):
        self.needed = needed
        self.size = size
        super().__init__(f"buffer of {size} bytes cannot hold {needed} bytes")


def format_decimal(bn: BigNumber) -> str:
    """
    Render a BigNumber most-significant digit first.
    Never emits a leading '0' except for the value zero itself.
    """
    return "".join(chr(48 + d) for d in reversed(bn.digits))


def format_into(bn: BigNumber, size: int) -> bytes:
    """
    Bounded-buffer rendering: ASCII digits followed by NUL padding up to
    `size` bytes. Raises BufferTooSmallError instead of truncating.
    """
    text = format_decimal(bn).encode("ascii")
    needed = len(text) + 1
    if size < needed:
        raise BufferTooSmallError(needed, size)
    return text + b"\x00" * (size - len(text))


def abbr_digits(s: str, head: int = 10, tail: int = 10, threshold: int = 35, ellipsis: str = "…") -> str:
    """Abbreviate a long digit string as first<head>…last<tail>."""
    if len(s) <= threshold or head + tail >= len(s):
        return s
    return f"{s[:head]}{ellipsis}{s[-tail:]}"


def format_duration(seconds: float) -> str:
    """ms if <1s; s with millis if <60s; else mm:ss.mmm (and hh:mm:ss.mmm if ≥1h)."""
    MAX_SECONDS = 60
    if seconds < 1:
        ms = round(seconds * 1000)
        return f"{ms} ms"
    if seconds < MAX_SECONDS:
        return f"{seconds:.3f} s"
    m, s = divmod(seconds, MAX_SECONDS)
    if m < MAX_SECONDS:
        return f"{int(m)}:{s:06.3f}"
    h, m = divmod(int(m), MAX_SECONDS)
    return f"{h}:{m:02d}:{s:06.3f}"


def format_ns(ns: float) -> str:
    """Human scale for per-call timings: ns, µs, ms, then format_duration."""
    if ns < 1_000:
        return f"{ns:.0f} ns"
    if ns < 1_000_000:
        return f"{ns / 1_000:.2f} µs"
    if ns < 1_000_000_000:
        return f"{ns / 1_000_000:.2f} ms"
    return format_duration(ns / 1e9)


def strip_ansi(s: str | None) -> str:
    return ANSI_RE.sub("", s or "")


def visible_len(s: str | None) -> int:
    """Length as seen on screen (ANSI colour codes excluded)."""
    return len(strip_ansi(s))
