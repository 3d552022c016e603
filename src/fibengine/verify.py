# src/fibengine/verify.py
from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import gmpy2
import sympy

from fibengine import bignum, engine
from fibengine.fmt import format_decimal
from fibengine.progress import Progress
from fibengine.registry import Algorithm
from fibengine.utility import UserInputError


def _ref_gmpy2(k: int) -> int:
    return int(gmpy2.fib(k))


def _ref_sympy(k: int) -> int:
    return int(sympy.fibonacci(k))


REFERENCES: dict[str, Callable[[int], int]] = {
    "gmpy2": _ref_gmpy2,
    "sympy": _ref_sympy,
}


@dataclass
class Mismatch:
    k: int
    algorithm: Algorithm | None    # None for checks that are not per-algorithm
    check: str                     # "reference" | "recurrence" | "format"
    expected: str
    got: str


@dataclass
class VerifyReport:
    max_index: int
    reference: str
    algorithms: list[Algorithm]
    checked: int = 0
    mismatches: list[Mismatch] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.mismatches


def verify(
    max_index: int | None = None,
    algorithms: Sequence[Algorithm | int | str] | None = None,
    *,
    reference: str = "gmpy2",
    progress: bool = False,
) -> VerifyReport:
    """
    Cross-check every strategy for k = 0..max_index:
      - value equals the reference library's F(k)
      - F(k) == F(k-1) + F(k-2) using bignum.add (k >= 2)
      - the decimal string is canonical
    """
    kmax = engine.configured_max_index() if max_index is None else int(max_index)
    if kmax < 0:
        raise UserInputError(f"max index must be >= 0, got {kmax}")
    try:
        ref = REFERENCES[reference]
    except KeyError:
        raise UserInputError(f"Unknown reference: {reference!r} (choose from {', '.join(REFERENCES)})") from None

    algos = [Algorithm.parse(a) for a in (algorithms or list(Algorithm))]
    report = VerifyReport(kmax, reference, algos)
    bar = Progress(len(algos) * (kmax + 1), enabled=progress)

    for ai, algo in enumerate(algos):
        prev2 = prev1 = None
        for k in range(kmax + 1):
            got = engine.compute(k, algo, max_index=kmax)
            text = format_decimal(got)
            want = str(ref(k))
            report.checked += 1

            if text != want:
                report.mismatches.append(Mismatch(k, algo, "reference", want, text))
            if len(text) > 1 and text[0] == "0":
                report.mismatches.append(Mismatch(k, algo, "format", text.lstrip("0") or "0", text))
            if prev2 is not None and bignum.add(prev1, prev2) != got:
                report.mismatches.append(
                    Mismatch(k, algo, "recurrence", format_decimal(bignum.add(prev1, prev2)), text)
                )
            prev2, prev1 = prev1, got
            bar.update(ai * (kmax + 1) + k + 1, f"{algo.slug} k={k}")
    bar.done()
    return report
