# src/fibengine/cli.py

"""
Fibonacci engine - exact Fibonacci numbers and strategy timings

Description:
    Computes F(k) on decimal-digit big numbers with linear DP, fast doubling
    and fast doubling with a CLZ-bounded bit scan, and reports how long each
    strategy took. Also runs benchmark sweeps and verification against
    gmpy2 / sympy.

usage: see fibengine -h
"""

from __future__ import annotations

import argparse
import faulthandler
import os
import sys
import textwrap
import threading
import time
import traceback
from importlib.resources import files as pkg_files
from typing import NamedTuple

from colorama import Fore, Style
from colorama import init as colorama_init

from fibengine import __version__ as _ver
from fibengine import config as CONFIG
from fibengine import engine
from fibengine.bench import run_benchmark, write_csv
from fibengine.display import (
    TimedResult,
    print_bench_table,
    print_history,
    print_profiles_with_descriptions,
    print_result,
    print_verify_report,
    show_algorithm_list,
    show_intro_help,
)
from fibengine.fmt import format_decimal
from fibengine.output_manager import OutputManager, resolve_output_path
from fibengine.registry import Algorithm
from fibengine.runtime import APPLY, CFG, debug_log, ensure_runtime_deps
from fibengine.runtime import current as _rt_current
from fibengine.strategies import ComputeStats
from fibengine.utility import (
    UserInputError,
    clear_screen,
    flatten_dotted,
    parse_index,
    typename,
    validate_output_setting,
)
from fibengine.verify import verify
from fibengine.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir

COMMANDS = {"init", "list", "where", "active", "bench", "verify", "profiles"}


# In memory session history
class HistoryItem(NamedTuple):
    k: int
    algorithm: Algorithm
    elapsed_ns: int
    timestamp: float


_HISTORY: list[HistoryItem] = []


def add_to_history(k: int, algorithm: Algorithm, elapsed_ns: int) -> None:
    _HISTORY.append(HistoryItem(k=k, algorithm=algorithm, elapsed_ns=elapsed_ns, timestamp=time.time()))


def get_history() -> list[HistoryItem]:
    return list(_HISTORY)


def clear_history() -> None:
    _HISTORY.clear()


def _install_loud_error_handlers(debug: bool) -> None:
    if not debug:
        return
    faulthandler.enable()

    def _excepthook(exc_type, exc, tb):
        sys.stderr.write("\n[UNCAUGHT EXCEPTION]\n")
        traceback.print_exception(exc_type, exc, tb, file=sys.stderr)
        sys.stderr.flush()
    sys.excepthook = _excepthook

    def _thread_excepthook(args):
        sys.stderr.write("\n[UNCAUGHT THREAD EXCEPTION]\n")
        traceback.print_exception(args.exc_type, args.exc_value, args.exc_traceback, file=sys.stderr)
        sys.stderr.flush()
    threading.excepthook = _thread_excepthook


def _print_user_error(msg: str) -> None:
    """Uniform, one-line friendly error."""
    prefix = f"{Fore.RED}Error:{Style.RESET_ALL}"
    if not (msg.startswith("Invalid input:") or msg.startswith("Error:")):
        msg = f"{prefix} {msg}"
    print(msg, file=sys.stderr)


def _resolve_inputs(items: list[str]) -> tuple[str | None, int | None]:
    """Return (profile_or_command, index) based on the first two positionals.

    Rules:
      - If one item parses as an index -> index; else -> profile/command
      - If two items:
          * first numeric, second not -> (None, index)
          * first not, second numeric -> (word, index)
          * both numeric -> take the first as index
          * neither numeric -> (word, None)
    """
    if not items:
        return None, None

    if len(items) == 1:
        k = parse_index(items[0])
        return (None, k) if k is not None else (items[0], None)

    a, b = items[0], items[1]
    ka, kb = parse_index(a), parse_index(b)
    if ka is not None:
        return None, ka
    if kb is not None:
        return a, kb
    return a, None


def _select_algorithms(algo: str | None, run_all: bool) -> list[Algorithm]:
    if run_all or (algo or "").strip().lower() == "all":
        return list(Algorithm)
    if algo:
        return [Algorithm.parse(algo)]
    return [engine.default_algorithm()]


def compute_timed(k: int, algorithms: list[Algorithm]) -> list[TimedResult]:
    """Run every algorithm once for k; the timer wraps compute() only."""
    out: list[TimedResult] = []
    for algo in algorithms:
        st = ComputeStats()
        start = time.perf_counter_ns()
        value = engine.compute(k, algo, stats=st)
        elapsed = time.perf_counter_ns() - start
        out.append(TimedResult(algo, format_decimal(value), elapsed, st))
        debug_log(f"{algo.slug}: k={k} {elapsed} ns, {st.operations} bignum ops")
    return out


# ---- argparse ----
def _build_parser() -> argparse.ArgumentParser:

    epilog = textwrap.dedent("""\
    commands:
      bench
          Time every algorithm for k = 0..--max (default BENCH.MAX_INDEX).
          --csv writes the rows to a CSV file in the workspace.

      verify
          Cross-check all algorithms against gmpy2 (or --reference sympy)
          for k = 0..--max.

      init
          Create workspace folders and copy packaged sample profiles if missing.

      init overwrite
          Meant for developers. Requires environment variable FIBENGINE_DEV=1.

      list
          List the algorithms.

      profiles
          List the available profiles.

      active
          Show the active profile.

      where
          Show the workspace and package paths.
    """)

    p = argparse.ArgumentParser(
        prog="fibengine",
        description="Fibonacci engine — exact Fibonacci numbers and strategy timings",
        usage=(
            "fibengine [[profile] [index]] [--algo ALGO | --all] [--output OUTPUT] [--quiet] [--no-details] [--debug]\n"
            "       fibengine [profile] bench [--max N] [--repeat R] [--csv FILE] [--via-device]\n"
            "       fibengine [profile] verify [--max N] [--reference gmpy2|sympy]\n"
            "       fibengine -h | --help"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    p.add_argument("items", nargs="*", metavar="[[profile] index]",
                   help="optional profile name or command followed by an index")
    p.add_argument("--algo", default=None, help="dp | fd | clz | all (default: profile ENGINE.DEFAULT_ALGORITHM)")
    p.add_argument("--all", action="store_true", help="Run all three algorithms")
    p.add_argument("--max", type=int, default=None, help="Largest index for bench/verify")
    p.add_argument("--repeat", type=int, default=None, help="Samples per index for bench")
    p.add_argument("--csv", default=None, help="bench: write results to this CSV file")
    p.add_argument("--via-device", action="store_true", help="bench: time reads through a device session")
    p.add_argument("--reference", default="gmpy2", choices=("gmpy2", "sympy"), help="verify: reference library")
    p.add_argument("--output", default=None, help="Write results to a file (also prints unless --quiet)")
    p.add_argument("--quiet", action="store_true", help="Suppress live progress and summary output")
    p.add_argument("--no-details", action="store_true", help="Omit digit counts and operation counters")
    p.add_argument("--debug", action="store_true", help="Show internal trace info and full tracebacks")
    p.add_argument("--version", action="version", version=f"%(prog)s {_ver}")
    return p


def main(argv=None) -> int:
    """Thin wrapper: catch friendly errors, hide tracebacks unless debug."""
    try:
        return _main_impl(argv)
    except UserInputError as e:
        _print_user_error(str(e))
        return 2
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return 130
    except Exception as e:
        if "--debug" in (argv if argv is not None else sys.argv):
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return 1


def _apply_profile(name: str, debug: bool) -> str:
    """Load and install a profile; falls back to 'default' if it is missing."""
    if not CONFIG.has_profile(name):
        name = "default"
    selected = CONFIG.load_settings(name)
    APPLY(selected)
    if debug:
        _rt_current().debug = True
        print(f"[debug] active profile: {selected.name}", file=sys.stderr)
        if selected._source:
            print(f"[debug] profile file: {selected._source}", file=sys.stderr)
        flat = flatten_dotted(selected.as_dict())
        for k in sorted(flat, key=str.lower):
            v = CFG(k)
            print(f"        {k:.<40} {v!r} ({typename(v)})", file=sys.stderr)
        print(file=sys.stderr)
    return selected.name


def _run_bench(args, om: OutputManager) -> int:
    kmax = args.max if args.max is not None else int(CFG("BENCH.MAX_INDEX", 150))
    engine.validate_index(kmax, engine.configured_max_index())
    algos = _select_algorithms(args.algo, args.all or not args.algo)
    rows = run_benchmark(
        range(kmax + 1),
        algos,
        repeat=args.repeat,
        via_device=args.via_device,
        max_index=engine.configured_max_index(),
        progress=not args.quiet,
    )
    print_bench_table(rows, om=om)
    if args.csv:
        path = resolve_output_path(validate_output_setting(args.csv), workspace_dir())
        n = write_csv(rows, path)
        om.write(f"\nWrote {n} rows to {path}")
    return 0


def _run_verify(args, om: OutputManager) -> int:
    kmax = args.max if args.max is not None else engine.configured_max_index()
    engine.validate_index(kmax, engine.configured_max_index())
    algos = _select_algorithms(args.algo, args.all or not args.algo)
    report = verify(kmax, algos, reference=args.reference, progress=not args.quiet)
    print_verify_report(report, om=om)
    return 0 if report.ok else 1


# ---- main ----
def _main_impl(argv=None) -> int:

    colorama_init(autoreset=True)

    parser = _build_parser()
    args = parser.parse_args(argv)
    rt = _rt_current()
    rt.debug = bool(args.debug)

    _install_loud_error_handlers(args.debug)

    if args.all and args.algo:
        parser.error("--all and --algo are mutually exclusive")

    if not ensure_runtime_deps(strict=True):
        return 1

    ws, seeded, copied = ensure_workspace_seeded()
    if seeded:
        debug_log(f"seeded {copied} profile(s) into {ws}")

    word, k = _resolve_inputs(args.items)
    command = word.lower() if word and word.lower() in COMMANDS else None
    profile = None if command else word
    # "fibengine large bench": profile first, command second
    if command is None and len(args.items) >= 2 and args.items[1].lower() in COMMANDS:
        command = args.items[1].lower()

    if command == "active":
        print(f"Active profile: {CONFIG.read_current_profile() or 'default'}")
        return 0
    if command == "init":
        if len(args.items) >= 2 and args.items[1] == "overwrite":
            if os.environ.get("FIBENGINE_DEV") != "1":
                print("Refusing to overwrite: set FIBENGINE_DEV=1 to enable developer overwrite.")
                return 2
            ws, copied = seed_workspace(overwrite=True)
            print(f"Workspace ready at: {ws} (overwrote existing files)")
        else:
            ws, _, copied = ensure_workspace_seeded()
            print(f"Workspace ready at: {ws}")
        print(f"Copied -> profiles: {copied}")
        return 0
    if command == "list":
        show_algorithm_list()
        return 0
    if command == "profiles":
        print_profiles_with_descriptions()
        return 0
    if command == "where":
        print(f"Workspace: {workspace_dir()}")
        print(f"Package:   {pkg_files('fibengine')}")
        return 0

    # Choose profile: explicit → last-used → default
    if profile and not CONFIG.has_profile(profile):
        print(f"Unknown profile: '{profile}'")
        print("Available profiles:", ", ".join(CONFIG.list_all_profiles()))
        return 2
    profile_name = profile or CONFIG.read_current_profile() or "default"
    profile_name = _apply_profile(profile_name, args.debug)

    try:
        cli_target = validate_output_setting(args.output)
    except ValueError as e:
        print(f"Fatal error in --output: {e}", file=sys.stderr)
        return 1

    def make_output_manager(tag=None) -> OutputManager:
        target = cli_target if cli_target is not None else (CFG("OUTPUT.OUTPUT_FILE", "") or None)
        return OutputManager(output_file=target, quiet=args.quiet, index=tag)

    if command in {"bench", "verify"}:
        if k is not None and args.max is None:
            args.max = k
        om = make_output_manager(command)
        try:
            return _run_bench(args, om) if command == "bench" else _run_verify(args, om)
        finally:
            om.close()

    algorithms = _select_algorithms(args.algo, args.all)

    # --- one-shot index path ---
    if k is not None:
        om = make_output_manager(k)
        try:
            results = compute_timed(k, algorithms)
            print_result(k, results, show_details=not args.no_details, om=om)
        finally:
            om.close()
        return 0

    return _repl(profile_name, algorithms, args, make_output_manager)


def _repl(profile_name: str, algorithms: list[Algorithm], args, make_output_manager) -> int:
    if not _rt_current().debug:
        clear_screen()
    print(f"{Fore.YELLOW}{Style.BRIGHT}Fibonacci engine v{_ver}{Style.RESET_ALL}")

    current_profile = profile_name
    while True:
        try:
            algos_txt = "all" if len(algorithms) > 1 else algorithms[0].slug
            prompt = (f"\nProfile: {current_profile}, algorithm: {algos_txt} — "
                      "Enter an index, command or profile (h=Help, q=Quit): ")
            user_input = input(prompt).strip()
            low = user_input.lower()
            parts = low.split()

            if low in {"", "q", "quit"}:
                break

            if low in {"h", "help"}:
                show_intro_help()
                continue

            if low in {"p", "profiles"}:
                print_profiles_with_descriptions()
                continue

            if low == "list":
                show_algorithm_list()
                continue

            if low in {"hist", "history"}:
                print_history(get_history())
                continue

            if parts[0] == "algo":
                if len(parts) == 1:
                    print(f"Algorithm: {algos_txt}")
                else:
                    algorithms = _select_algorithms(parts[1], False)
                    print(f"Algorithm set to {'all' if len(algorithms) > 1 else algorithms[0].slug}.")
                continue

            if parts[0] in {"bench", "verify"}:
                if len(parts) > 1:
                    mx = parse_index(parts[1])
                    if mx is None:
                        print(f"Usage: {parts[0].upper()} [max]")
                        continue
                    args.max = mx
                om = make_output_manager(parts[0])
                try:
                    if parts[0] == "bench":
                        _run_bench(args, om)
                    else:
                        _run_verify(args, om)
                finally:
                    om.close()
                continue

            if parts[0] == "debug":
                rt = _rt_current()
                if len(parts) == 1 or parts[1] == "status":
                    print(f"Debug is currently {'ON' if rt.debug else 'OFF'}.")
                elif parts[1] == "on":
                    rt.debug = True
                    print("Debug mode enabled for this session.")
                elif parts[1] == "off":
                    rt.debug = False
                    print("Debug mode disabled for this session.")
                else:
                    print("Usage: DEBUG [on|off|status]")
                continue

            k = parse_index(user_input)
            if k is not None:
                om = make_output_manager(k)
                try:
                    results = compute_timed(k, algorithms)
                    print_result(k, results, show_details=not args.no_details, om=om)
                    for r in results:
                        add_to_history(k, r.algorithm, r.elapsed_ns)
                finally:
                    om.close()
                continue

            if CONFIG.has_profile(user_input):
                current_profile = _apply_profile(user_input, _rt_current().debug)
                CONFIG.write_current_profile(user_input)
                print(f"Applied profile: {current_profile}")
                continue

            print(f"{Fore.RED}Invalid input: {Style.RESET_ALL}'{user_input}'. Type H for help.")
        except UserInputError as e:
            msg = str(e)
            prefix = f"{Fore.RED}Invalid input:{Style.RESET_ALL}"
            msg = msg.replace("Invalid input:", prefix, 1) if msg.startswith("Invalid input:") else f"{prefix} {msg}"
            print(msg, file=sys.stderr)
        except (EOFError, KeyboardInterrupt):
            print()
            break
        except Exception as e:
            if _rt_current().debug:
                traceback.print_exc()
            else:
                _print_user_error(f"{e.__class__.__name__}: {e}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
