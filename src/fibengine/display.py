# src/fibengine/display.py
from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass

from colorama import Fore, Style

from fibengine.bench import BenchRow
from fibengine.config import list_profiles_with_descriptions, read_current_profile
from fibengine.engine import MAX_INDEX_INT64, configured_max_index, resolve_capacity
from fibengine.fmt import abbr_digits, format_ns, visible_len
from fibengine.output_manager import OutputManager
from fibengine.registry import Algorithm, all_strategies
from fibengine.runtime import CFG
from fibengine.runtime import current as _rt_current
from fibengine.strategies import ComputeStats
from fibengine.utility import get_terminal_width
from fibengine.verify import VerifyReport

ALIGN_WIDTH = 22  # label column


@dataclass
class TimedResult:
    algorithm: Algorithm
    digits: str
    elapsed_ns: int
    stats: ComputeStats


def _label(text: str) -> str:
    return f"{Fore.CYAN}{text:<{ALIGN_WIDTH}}{Style.RESET_ALL}"


def _shorten(digits: str) -> str:
    head = int(CFG("FORMATTING.NUM_ABBR_HEAD", 20))
    tail = int(CFG("FORMATTING.NUM_ABBR_TAIL", 20))
    thr = int(CFG("FORMATTING.NUM_ABBR_THRESHOLD", 60))
    ell = CFG("FORMATTING.ELLIPSIS", "…")
    return abbr_digits(digits, head, tail, thr, ell)


def _emit(om: OutputManager | None, line: str = "") -> None:
    if om is None:
        print(line)
    else:
        om.write(line)


def print_result(k: int, results: Sequence[TimedResult], show_details: bool = True, om=None) -> None:
    """F(k) once, then one timing line per algorithm."""
    if not results:
        return
    digits = results[0].digits
    full = not show_details or len(digits) <= get_terminal_width() - ALIGN_WIDTH - 2

    _emit(om)
    _emit(om, f"{_label(f'F({k})')}{Fore.YELLOW}{Style.BRIGHT}{digits if full else _shorten(digits)}{Style.RESET_ALL}")
    if show_details:
        _emit(om, f"{_label('Digits')}{len(digits)}")
        if k == MAX_INDEX_INT64:
            _emit(om, f"{_label('Note')}{Style.DIM}largest index that fits a signed 64-bit word{Style.RESET_ALL}")

    for r in results:
        if r.digits != digits:
            _emit(om, f"{Fore.RED}{Style.BRIGHT}MISMATCH{Style.RESET_ALL} {r.algorithm.slug}: {_shorten(r.digits)}")
        line = f"{_label(r.algorithm.slug)}{format_ns(r.elapsed_ns):>12}"
        if show_details:
            st = r.stats
            line += (f"  {Style.DIM}iterations={st.iterations} add={st.additions} "
                     f"sub={st.subtractions} mul={st.multiplications}{Style.RESET_ALL}")
        _emit(om, line)


def print_bench_table(rows: Sequence[BenchRow], om=None) -> None:
    if not rows:
        _emit(om, "No benchmark rows.")
        return
    algos = list(dict.fromkeys(r.algorithm for r in rows))
    by_key = {(r.k, r.algorithm): r for r in rows}
    ks = sorted({r.k for r in rows})

    header = f"{'k':>6}  " + "  ".join(f"{a.slug:>20}" for a in algos)
    _emit(om, f"{Style.BRIGHT}{header}{Style.RESET_ALL}")
    _emit(om, "-" * visible_len(header))
    for k in ks:
        cells = []
        best = min(by_key[(k, a)].best_ns for a in algos if (k, a) in by_key)
        for a in algos:
            r = by_key.get((k, a))
            if r is None:
                cells.append(f"{'-':>20}")
                continue
            cell = f"{format_ns(r.best_ns):>20}"
            if r.best_ns == best and len(algos) > 1:
                cell = f"{Fore.GREEN}{cell}{Style.RESET_ALL}"
            cells.append(cell)
        _emit(om, f"{k:>6}  " + "  ".join(cells))


def print_verify_report(report: VerifyReport, om=None) -> None:
    algos = ", ".join(a.slug for a in report.algorithms)
    _emit(om, f"{_label('Checked')}{report.checked} values, k = 0..{report.max_index} ({algos})")
    _emit(om, f"{_label('Reference')}{report.reference}")
    if report.ok:
        _emit(om, f"{Fore.GREEN}{Style.BRIGHT}OK{Style.RESET_ALL} all strategies agree with the reference")
        return
    _emit(om, f"{Fore.RED}{Style.BRIGHT}{len(report.mismatches)} mismatch(es){Style.RESET_ALL}")
    for m in report.mismatches[:20]:
        who = m.algorithm.slug if m.algorithm is not None else "-"
        _emit(om, f"  k={m.k:<6} {who:<20} {m.check:<11} expected {_shorten(m.expected)} got {_shorten(m.got)}")


def show_algorithm_list() -> None:
    print(f"\n{Style.BRIGHT}Algorithms{Style.RESET_ALL} (code, name, description):")
    for info in all_strategies():
        print(f"  {int(info.algorithm)}  {Fore.YELLOW}{info.algorithm.slug:<20}{Style.RESET_ALL} {info.description}")


def print_profiles_with_descriptions() -> None:
    pairs = list_profiles_with_descriptions()
    if not pairs:
        print("\nAvailable profiles: (none)")
        return

    current = read_current_profile()
    lines = []
    for name, desc in pairs:
        mark = "→" if current and name == current else " "
        lines.append(f"{mark} {name:13} — {desc}")
    print("\nAvailable profiles:\n  " + "\n  ".join(lines))


def print_history(items) -> None:
    if not items:
        print("History is empty.")
        return
    for item in items:
        ts = time.strftime("%H:%M:%S", time.localtime(item.timestamp))
        print(f"{ts}  k={item.k:<8} algorithm={item.algorithm.slug:<20} {format_ns(item.elapsed_ns)}")


def show_intro_help() -> None:
    kmax = configured_max_index()
    rt = _rt_current()
    cap = resolve_capacity(CFG("ENGINE.CAPACITY", "auto"), kmax)
    cap_text = "growable" if cap is None else f"{cap} digits"
    lines = [
        "",
        f"{Fore.GREEN}Fibonacci engine{Style.RESET_ALL}",
        "-" * 72,
        "Exact Fibonacci numbers on decimal-digit big numbers, timed per strategy.",
        "",
        f"{Fore.YELLOW}Profile:{Style.RESET_ALL} {rt.profile_name}   "
        f"max index {kmax}, capacity {cap_text}",
        "",
        f"{Fore.MAGENTA + Style.BRIGHT}Usage in interactive mode:{Style.RESET_ALL}",
        " • Enter an index k to compute F(k) with the current algorithm.",
        "   Underscores and commas are allowed as thousand separators.",
        "",
        " • Valid commands are:",
        "   algo <name>|all      to select dp, fd, clz or all three.",
        "   bench [max]          to time every algorithm for k = 0..max.",
        "   verify [max]         to cross-check all algorithms against gmpy2.",
        "   list                 to list the algorithms.",
        "   debug on|off|status  to switch debug mode on, off or show current status.",
        "   hist                 to show a history of computed indices.",
        "   p                    to show a list of available profiles.",
        "   h or help            to show this help.",
        "   q or quit            to quit.",
        "",
        " • Enter a profile name to switch to that profile.",
        "",
    ]
    print("\n".join(lines))
