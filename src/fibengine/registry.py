# src/fibengine/registry.py
from __future__ import annotations

import re
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum

from fibengine.utility import UserInputError


class Algorithm(IntEnum):
    """Strategy selector. Values are the byte codes of the device write protocol."""
    LINEAR_DP = 0
    FAST_DOUBLING = 1
    FAST_DOUBLING_CLZ = 2

    @property
    def slug(self) -> str:
        return self.name.lower().replace("_", "-")

    @classmethod
    def parse(cls, value: Algorithm | int | str) -> Algorithm:
        """Accept a member, its numeric code, its name or a short alias."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                raise UserInputError(f"Unknown algorithm code: {value}") from None
        if isinstance(value, str):
            key = _to_token(value)
            if key.isdigit():
                return cls.parse(int(key))
            if key in _ALIASES:
                return _ALIASES[key]
        raise UserInputError(
            f"Unknown algorithm: {value!r} (choose from {', '.join(a.slug for a in cls)})"
        )


def _to_token(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "_", str(name)).upper().strip("_")


_ALIASES: dict[str, Algorithm] = {
    "LINEAR_DP": Algorithm.LINEAR_DP,
    "DP": Algorithm.LINEAR_DP,
    "LINEAR": Algorithm.LINEAR_DP,
    "FAST_DOUBLING": Algorithm.FAST_DOUBLING,
    "DOUBLING": Algorithm.FAST_DOUBLING,
    "DOUBLE": Algorithm.FAST_DOUBLING,
    "FD": Algorithm.FAST_DOUBLING,
    "FAST_DOUBLING_CLZ": Algorithm.FAST_DOUBLING_CLZ,
    "DOUBLING_CLZ": Algorithm.FAST_DOUBLING_CLZ,
    "DOUBLE_CLZ": Algorithm.FAST_DOUBLING_CLZ,
    "CLZ": Algorithm.FAST_DOUBLING_CLZ,
}


@dataclass(frozen=True)
class StrategyInfo:
    algorithm: Algorithm
    label: str
    description: str
    func: Callable


_STRATEGIES: OrderedDict[Algorithm, StrategyInfo] = OrderedDict()


# ---------- Decorator (tags and records the function) ----------


def strategy(*, algorithm: Algorithm, label: str, description: str = ""):
    def deco(fn: Callable):
        fn.__is_strategy__ = True
        fn.algorithm = algorithm
        fn.label = label
        fn.description = description
        _STRATEGIES[algorithm] = StrategyInfo(algorithm, label, description, fn)
        return fn
    return deco


def _ensure_loaded() -> None:
    # strategies register themselves on import
    if not _STRATEGIES:
        import fibengine.strategies  # noqa: F401, PLC0415


def get_strategy(algorithm: Algorithm | int | str) -> StrategyInfo:
    _ensure_loaded()
    algo = Algorithm.parse(algorithm)
    try:
        return _STRATEGIES[algo]
    except KeyError:
        raise UserInputError(f"No strategy registered for {algo.slug}") from None


def all_strategies() -> list[StrategyInfo]:
    _ensure_loaded()
    return [_STRATEGIES[a] for a in Algorithm if a in _STRATEGIES]
