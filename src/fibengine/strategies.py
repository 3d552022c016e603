# src/fibengine/strategies.py
"""
Fibonacci strategies over BigNumber.

Every strategy is a pure function k -> F(k). Nothing is cached between
calls, so the cost of each call stays directly measurable.

Fast doubling uses
    F(2n)   = F(n) * (2*F(n+1) - F(n))
    F(2n+1) = F(n+1)^2 + F(n)^2
and walks the bits of k from the most significant one down. The fixed
window and the CLZ variant share one loop and differ only in the bit the
scan starts at.
"""

from __future__ import annotations

from dataclasses import dataclass

from fibengine import bignum
from fibengine.bignum import BigNumber
from fibengine.registry import Algorithm, strategy

FIXED_WINDOW_BITS = 32


@dataclass
class ComputeStats:
    """Per-call counters filled in by a strategy when passed as stats=."""
    iterations: int = 0
    additions: int = 0
    subtractions: int = 0
    multiplications: int = 0

    @property
    def operations(self) -> int:
        return self.additions + self.subtractions + self.multiplications


class WindowOverflowError(ValueError):
    """Index has set bits above the fixed scan window."""


def _stats(stats: ComputeStats | None) -> ComputeStats:
    return stats if stats is not None else ComputeStats()


@strategy(
    algorithm=Algorithm.LINEAR_DP,
    label="Linear DP",
    description="F(i) = F(i-1) + F(i-2) for i = 2..k; k-1 additions.",
)
def fib_linear_dp(k: int, *, capacity: int | None = None, stats: ComputeStats | None = None) -> BigNumber:
    st = _stats(stats)
    prev = bignum.init(0, capacity)
    cur = bignum.init(1, capacity)
    if k == 0:
        return prev
    for _ in range(2, k + 1):
        prev, cur = cur, bignum.add(cur, prev)
        st.additions += 1
        st.iterations += 1
    return cur


def scan_start(k: int, *, use_clz: bool) -> int:
    """Highest bit position the doubling loop visits (-1 means no iterations)."""
    if use_clz:
        return k.bit_length() - 1
    if k.bit_length() > FIXED_WINDOW_BITS:
        raise WindowOverflowError(
            f"index {k} does not fit the {FIXED_WINDOW_BITS}-bit scan window"
        )
    return FIXED_WINDOW_BITS - 1


def fast_doubling(
    k: int,
    *,
    use_clz: bool,
    capacity: int | None = None,
    stats: ComputeStats | None = None,
) -> BigNumber:
    st = _stats(stats)
    a = bignum.init(0, capacity)
    b = bignum.init(1, capacity)
    if k == 0:
        return a

    for i in range(scan_start(k, use_clz=use_clz), -1, -1):
        # (a, b) = (F(n), F(n+1)) -> (F(2n), F(2n+1))
        two_b = bignum.add(b, b)
        t1 = bignum.mul(a, bignum.sub(two_b, a))
        t2 = bignum.add(bignum.mul(a, a), bignum.mul(b, b))
        a, b = t1, t2
        st.additions += 2
        st.subtractions += 1
        st.multiplications += 3
        if (k >> i) & 1:
            a, b = b, bignum.add(a, b)
            st.additions += 1
        st.iterations += 1
    return a


@strategy(
    algorithm=Algorithm.FAST_DOUBLING,
    label="Fast doubling",
    description=f"Doubling recurrence over a fixed {FIXED_WINDOW_BITS}-bit window.",
)
def fib_fast_doubling(k: int, *, capacity: int | None = None, stats: ComputeStats | None = None) -> BigNumber:
    return fast_doubling(k, use_clz=False, capacity=capacity, stats=stats)


@strategy(
    algorithm=Algorithm.FAST_DOUBLING_CLZ,
    label="Fast doubling (CLZ)",
    description="Doubling recurrence starting at the highest set bit of k.",
)
def fib_fast_doubling_clz(k: int, *, capacity: int | None = None, stats: ComputeStats | None = None) -> BigNumber:
    return fast_doubling(k, use_clz=True, capacity=capacity, stats=stats)
