from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("fibengine")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .bignum import (
    BigNumber,
    BigNumberContractError,
    CapacityExceededError,
    add,
    compare,
    init,
    mul,
    sub,
)
from .engine import IndexOutOfRangeError, capacity_for_index, compute
from .fmt import format_decimal
from .registry import Algorithm
from .runtime import APPLY, CFG
from .strategies import ComputeStats

__all__ = [
    "APPLY",
    "CFG",
    "Algorithm",
    "BigNumber",
    "BigNumberContractError",
    "CapacityExceededError",
    "ComputeStats",
    "IndexOutOfRangeError",
    "__version__",
    "add",
    "capacity_for_index",
    "compare",
    "compute",
    "format_decimal",
    "init",
    "mul",
    "sub",
]
