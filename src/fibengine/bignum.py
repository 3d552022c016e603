# src/fibengine/bignum.py
"""
Decimal-digit big numbers.

A BigNumber stores one decimal digit per cell, least significant first.
Values are immutable: add/sub/mul always build a new result, so an operand
is never aliased with the output of the same call.

Capacity is the maximum number of digits a value (and anything computed
from it) may hold. None means the digit sequence grows without bound.
Exceeding a fixed capacity raises CapacityExceededError; nothing is ever
truncated.
"""

from __future__ import annotations

from dataclasses import dataclass, field

BASE = 10


class CapacityExceededError(ArithmeticError):
    """A result needs more digits than the operands' capacity allows."""

    def __init__(self, required: int, capacity: int, op: str = "result"):
        self.required = required
        self.capacity = capacity
        self.op = op
        super().__init__(f"{op} needs {required} digits, capacity is {capacity}")


class BigNumberContractError(AssertionError):
    """A caller broke an operation's precondition (e.g. sub with a < b)."""


@dataclass(frozen=True)
class BigNumber:
    # little-endian digits; len(digits) is the significant digit count
    digits: tuple[int, ...]
    capacity: int | None = field(default=None, compare=False)

    def __post_init__(self):
        d = self.digits
        if not d:
            raise ValueError("BigNumber needs at least one digit")
        if any(isinstance(x, bool) or not isinstance(x, int) or not 0 <= x < BASE for x in d):
            raise ValueError(f"BigNumber digits must be ints in 0..{BASE - 1}, got {d!r}")
        if len(d) > 1 and d[-1] == 0:
            raise ValueError(f"BigNumber has a most-significant zero: {d!r}")
        if self.capacity is not None and len(d) > self.capacity:
            raise CapacityExceededError(len(d), self.capacity, "BigNumber")

    @property
    def num_digits(self) -> int:
        return len(self.digits)

    def is_zero(self) -> bool:
        return self.digits == (0,)

    def __len__(self) -> int:
        return len(self.digits)

    def __int__(self) -> int:
        v = 0
        for d in reversed(self.digits):
            v = v * BASE + d
        return v

    def __str__(self) -> str:
        return "".join(str(d) for d in reversed(self.digits))

    def __repr__(self) -> str:
        cap = "growable" if self.capacity is None else self.capacity
        return f"BigNumber({self}, capacity={cap})"

    # operator sugar; the module functions are the real implementation
    def __add__(self, other: BigNumber) -> BigNumber:
        return add(self, other)

    def __sub__(self, other: BigNumber) -> BigNumber:
        return sub(self, other)

    def __mul__(self, other: BigNumber) -> BigNumber:
        return mul(self, other)

    def __lt__(self, other: BigNumber) -> bool:
        return compare(self, other) < 0

    def __le__(self, other: BigNumber) -> bool:
        return compare(self, other) <= 0

    def __gt__(self, other: BigNumber) -> bool:
        return compare(self, other) > 0

    def __ge__(self, other: BigNumber) -> bool:
        return compare(self, other) >= 0


# --- Internals ---------------------------------------------------------------

def _join_capacity(a: BigNumber, b: BigNumber) -> int | None:
    caps = [c for c in (a.capacity, b.capacity) if c is not None]
    return min(caps) if caps else None


def _finish(cells: list[int], capacity: int | None, op: str) -> BigNumber:
    """Trim most-significant zeros, enforce capacity, freeze."""
    n = len(cells)
    while n > 1 and cells[n - 1] == 0:
        n -= 1
    if n == 0:
        cells, n = [0], 1
    if capacity is not None and n > capacity:
        raise CapacityExceededError(n, capacity, op)
    return BigNumber(tuple(cells[:n]), capacity)


# --- Public API --------------------------------------------------------------

def init(value: int, capacity: int | None = None) -> BigNumber:
    """Build a BigNumber from a non-negative Python int."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"init() expects a non-negative int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"BigNumber cannot hold negative values ({value})")
    if capacity is not None and capacity < 1:
        raise ValueError(f"capacity must be >= 1 or None, got {capacity}")

    cells: list[int] = []
    v = value
    while True:
        v, r = divmod(v, BASE)
        cells.append(r)
        if v == 0:
            break
    return _finish(cells, capacity, "init")


def compare(a: BigNumber, b: BigNumber) -> int:
    """Return -1, 0 or 1 as a <, ==, > b."""
    if len(a.digits) != len(b.digits):
        return -1 if len(a.digits) < len(b.digits) else 1
    for da, db in zip(reversed(a.digits), reversed(b.digits)):
        if da != db:
            return -1 if da < db else 1
    return 0


def add(a: BigNumber, b: BigNumber) -> BigNumber:
    """Schoolbook addition with carry propagation."""
    x, y = a.digits, b.digits
    if len(x) < len(y):
        x, y = y, x
    out: list[int] = []
    carry = 0
    for i, dx in enumerate(x):
        s = dx + (y[i] if i < len(y) else 0) + carry
        carry, digit = divmod(s, BASE)
        out.append(digit)
    if carry:
        out.append(carry)
    return _finish(out, _join_capacity(a, b), "add")


def sub(a: BigNumber, b: BigNumber) -> BigNumber:
    """
    Schoolbook subtraction with borrow propagation.

    Precondition: a >= b. Breaking it raises BigNumberContractError; there is
    no wrapped or negative result.
    """
    if compare(a, b) < 0:
        raise BigNumberContractError(f"sub() requires minuend >= subtrahend ({a} < {b})")
    y = b.digits
    out: list[int] = []
    borrow = 0
    for i, dx in enumerate(a.digits):
        d = dx - (y[i] if i < len(y) else 0) - borrow
        if d < 0:
            d += BASE
            borrow = 1
        else:
            borrow = 0
        out.append(d)
    return _finish(out, _join_capacity(a, b), "sub")


def mul(a: BigNumber, b: BigNumber) -> BigNumber:
    """Schoolbook multiplication, O(len(a) * len(b))."""
    cap = _join_capacity(a, b)
    if a.is_zero() or b.is_zero():
        return BigNumber((0,), cap)

    x, y = a.digits, b.digits
    out = [0] * (len(x) + len(y))
    for i, dx in enumerate(x):
        if dx == 0:
            continue
        carry = 0
        for j, dy in enumerate(y):
            cur = out[i + j] + dx * dy + carry
            carry, out[i + j] = divmod(cur, BASE)
        k = i + len(y)
        while carry:
            cur = out[k] + carry
            carry, out[k] = divmod(cur, BASE)
            k += 1
    return _finish(out, cap, "mul")
