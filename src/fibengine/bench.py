# src/fibengine/bench.py
"""
Per-index timing sweeps.

Each sample times exactly one compute() call (or one device read, which
times compute() internally). Results are never cached, so repeated samples
repeat the full work.
"""

from __future__ import annotations

import csv
import os
import statistics
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from fibengine import engine
from fibengine.device import FibDevice
from fibengine.progress import Progress
from fibengine.registry import Algorithm
from fibengine.runtime import CFG, debug_log
from fibengine.strategies import ComputeStats

CSV_FIELDS = ("k", "algorithm", "best_ns", "mean_ns", "median_ns", "iterations", "operations", "digits")


@dataclass
class BenchRow:
    k: int
    algorithm: Algorithm
    samples_ns: list[int] = field(default_factory=list)
    iterations: int = 0
    operations: int = 0
    digits: int = 0

    @property
    def best_ns(self) -> int:
        return min(self.samples_ns)

    @property
    def mean_ns(self) -> float:
        return statistics.fmean(self.samples_ns)

    @property
    def median_ns(self) -> float:
        return statistics.median(self.samples_ns)


def _sample_direct(k: int, algo: Algorithm, kmax: int) -> tuple[int, ComputeStats, int]:
    st = ComputeStats()
    start = time.perf_counter_ns()
    result = engine.compute(k, algo, max_index=kmax, stats=st)
    elapsed = time.perf_counter_ns() - start
    return elapsed, st, result.num_digits


def run_benchmark(
    indices: Iterable[int],
    algorithms: Sequence[Algorithm | int | str] | None = None,
    *,
    repeat: int | None = None,
    via_device: bool = False,
    max_index: int | None = None,
    progress: bool = False,
    on_row: Callable[[BenchRow], None] | None = None,
) -> list[BenchRow]:
    """
    Time every (index, algorithm) pair `repeat` times.

    via_device=True goes through a FibDevice session (write selector, lseek,
    read) and records the elapsed time the session reports, the way a
    user-space client timing the device would.
    """
    ks = list(indices)
    algos = [Algorithm.parse(a) for a in (algorithms or list(Algorithm))]
    reps = int(CFG("BENCH.REPEAT", 5)) if repeat is None else int(repeat)
    if reps < 1:
        raise ValueError(f"repeat must be >= 1, got {reps}")
    kmax = max(ks, default=0) if max_index is None else int(max_index)
    for k in ks:
        engine.validate_index(k, kmax)

    rows: list[BenchRow] = []
    bar = Progress(len(ks) * len(algos), enabled=progress)
    done = 0
    debug_log(f"bench: {len(ks)} indices x {len(algos)} algorithms x {reps} repeats")

    device = FibDevice(max_length=kmax) if via_device else None
    for algo in algos:
        session = device.open() if device else None
        try:
            if session:
                session.write(bytes([int(algo)]))
            for k in ks:
                row = BenchRow(k, algo)
                # counters come from one instrumented direct call
                _, st, nd = _sample_direct(k, algo, kmax)
                row.iterations, row.operations, row.digits = st.iterations, st.operations, nd
                for _ in range(reps):
                    if session:
                        session.lseek(k, os.SEEK_SET)
                        row.samples_ns.append(session.read(nd + 1).elapsed_ns)
                    else:
                        row.samples_ns.append(_sample_direct(k, algo, kmax)[0])
                rows.append(row)
                if on_row:
                    on_row(row)
                done += 1
                bar.update(done, f"{algo.slug} k={k}")
        finally:
            if session:
                session.release()
    bar.done()
    return rows


def write_csv(rows: Iterable[BenchRow], path: str) -> int:
    """Write rows to `path` (one line per index/algorithm). Returns rows written."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    count = 0
    with open(path, "w", encoding="utf-8", newline="") as fh:
        w = csv.writer(fh)
        w.writerow(CSV_FIELDS)
        for r in rows:
            w.writerow([r.k, r.algorithm.slug, r.best_ns, f"{r.mean_ns:.1f}", f"{r.median_ns:.1f}",
                        r.iterations, r.operations, r.digits])
            count += 1
    return count
