# src/fibengine/engine.py
"""
compute(k, algorithm) -> BigNumber

The boundary the hosts (CLI, device session, benchmarks) call. It validates
the index against K_max, resolves the capacity policy and dispatches to the
selected strategy. The algorithm is always an explicit argument; nothing here
keeps state between calls, so concurrent callers never interfere.

Timing is left to the caller.
"""

from __future__ import annotations

from typing import Any

from fibengine.bignum import BigNumber
from fibengine.registry import Algorithm, get_strategy
from fibengine.runtime import CFG, debug_log
from fibengine.strategies import ComputeStats, WindowOverflowError
from fibengine.utility import UserInputError, fib_digit_bound

DEFAULT_MAX_INDEX = 150

# index 92 is the largest whose value still fits a signed 64-bit word
MAX_INDEX_INT64 = 92

_AUTO = object()


class IndexOutOfRangeError(UserInputError, ValueError):
    def __init__(self, k: Any, max_index: int):
        self.k = k
        self.max_index = max_index
        super().__init__(f"Index {k} is out of range (0 ≤ k ≤ {max_index}).")


def configured_max_index() -> int:
    return int(CFG("ENGINE.MAX_INDEX", DEFAULT_MAX_INDEX))


def capacity_for_index(k: int) -> int:
    """
    Digit capacity that fits every intermediate of every strategy up to index k.
    The largest intermediate is F(k+1) (the trailing b of fast doubling).
    """
    return fib_digit_bound(k + 1)


def resolve_capacity(setting: Any, max_index: int) -> int | None:
    """Map an ENGINE.CAPACITY value to a digit count (None = growable)."""
    if setting is None or (isinstance(setting, str) and setting.lower() == "auto"):
        return capacity_for_index(max_index)
    if isinstance(setting, str) and setting.lower() == "growable":
        return None
    if isinstance(setting, int) and not isinstance(setting, bool) and setting >= 1:
        return setting
    raise UserInputError(f"Invalid capacity setting: {setting!r}")


def default_algorithm() -> Algorithm:
    return Algorithm.parse(CFG("ENGINE.DEFAULT_ALGORITHM", Algorithm.FAST_DOUBLING_CLZ))


def validate_index(k: Any, max_index: int) -> int:
    if isinstance(k, bool) or not isinstance(k, int):
        raise UserInputError(f"Index must be an integer, got {type(k).__name__}.")
    if k < 0 or k > max_index:
        raise IndexOutOfRangeError(k, max_index)
    return k


def compute(
    k: int,
    algorithm: Algorithm | int | str,
    *,
    max_index: int | None = None,
    capacity: Any = _AUTO,
    stats: ComputeStats | None = None,
) -> BigNumber:
    """
    Return F(k) computed with `algorithm`.

    max_index: K_max; defaults to the profile's ENGINE.MAX_INDEX (150).
    capacity:  digit bound for every value; defaults to the profile's
               ENGINE.CAPACITY ("auto" = sized from max_index). Pass None
               for growable digits.
    stats:     optional ComputeStats filled in with operation counts.
    """
    kmax = configured_max_index() if max_index is None else int(max_index)
    validate_index(k, kmax)

    if capacity is _AUTO:
        cap = resolve_capacity(CFG("ENGINE.CAPACITY", "auto"), kmax)
    else:
        cap = capacity

    info = get_strategy(algorithm)
    debug_log(f"compute k={k} algorithm={info.algorithm.slug} capacity={cap}")
    try:
        return info.func(k, capacity=cap, stats=stats)
    except WindowOverflowError as e:
        raise UserInputError(f"{info.label}: {e}") from None
