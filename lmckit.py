#!/usr/bin/env python3
"""
lmckit - Little Minion Computer Toolkit
=======================================

One CLI for the whole pipeline:
    lmckit assemble - Assemble LMC source to a program file
    lmckit execute  - Run a program file interactively
    lmckit batch    - Run a program file against a batch of test cases

Usage:
    python lmckit.py [-v] [-d] [--max-cycles N] <command> [options]
    python lmckit.py --help
    python lmckit.py <command> --help

Examples:
    python lmckit.py assemble programs/add.asm add.txt
    python lmckit.py execute add.txt
    python lmckit.py -v batch add.txt programs/add.tests
    python lmckit.py -d --log-file logs/run.log execute add.txt
"""

import argparse
import logging
import sys
import os

# Allow running from project root without installing
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from lmc import __version__
from lmc.assembler import Assembler, AssemblerError
from lmc.batch import BatchFormatError, read_batch, run_batch
from lmc.config import DEFAULT_MAX_CYCLES
from lmc.log_setup import setup_logging
from lmc.program_io import ProgramFormatError, read_program, read_source, write_program
from lmc.vm import LMC, LMCError

log = logging.getLogger("lmc.cli")


def cycle_budget(text: str) -> int:
    """argparse type for --max-cycles: an integer of at least 1."""
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lmckit",
        description="Little Minion Computer toolkit - assemble, execute, batch-test",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  assemble   Assemble LMC source to a program file
  execute    Run a program file (IN reads from stdin)
  batch      Run a program file against a batch descriptor
""",
    )
    parser.add_argument("--version", action="version", version=f"lmckit {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log progress (INFO) to stderr")
    parser.add_argument("-d", "--debug", action="store_true",
                        help="Log every label, word and instruction (DEBUG) to stderr")
    parser.add_argument("--max-cycles", type=cycle_budget, default=DEFAULT_MAX_CYCLES,
                        help=f"Fetch-execute cycle budget (default: {DEFAULT_MAX_CYCLES})")
    parser.add_argument("--log-file", default=None,
                        help="Also write a DEBUG log to this file")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── assemble ─────────────────────────────────────────────────────────
    p_asm = sub.add_parser("assemble", help="Assemble LMC source to a program file")
    p_asm.add_argument("input", help="Input .asm file")
    p_asm.add_argument("output", help="Output program file (one word per line)")

    # ── execute ──────────────────────────────────────────────────────────
    p_exe = sub.add_parser("execute", help="Run a program file")
    p_exe.add_argument("program", help="Program file (one word per line, or comma-separated)")

    # ── batch ────────────────────────────────────────────────────────────
    p_bat = sub.add_parser("batch", help="Run a program file against test cases")
    p_bat.add_argument("program", help="Program file")
    p_bat.add_argument("tests", help="Batch descriptor (name;inputs;expected;iterations)")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    setup_logging(verbose=args.verbose, debug=args.debug, log_file=args.log_file)

    handler = COMMANDS[args.command]
    try:
        return handler(args)
    except AssemblerError as e:
        print(f"Assembly error: {e}", file=sys.stderr)
    except (ProgramFormatError, BatchFormatError) as e:
        print(f"Format error: {e}", file=sys.stderr)
    except LMCError as e:
        print(f"Execution error: {e}", file=sys.stderr)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
    return 1


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

def cmd_assemble(args):
    source = read_source(args.input)
    words = Assembler().assemble(source)
    write_program(args.output, words)
    print(f"Assembled {len(words)} words -> {args.output}")
    return 0


def cmd_execute(args):
    vm = LMC(max_cycles=args.max_cycles)
    vm.load_program(read_program(args.program))
    vm.execute()
    return 0


def cmd_batch(args):
    cases = read_batch(args.tests)
    vm = LMC(max_cycles=args.max_cycles, quiet=True)
    vm.load_program(read_program(args.program))
    report = run_batch(vm, cases)

    for result in report.results:
        output = "---" if result["output"] is None else f"{result['output']:03d}"
        line = f"{result['status']:<5} {result['case']}"
        if result["iteration"]:
            line += f" #{result['iteration']}"
        line += f"  output={output}"
        if result["message"]:
            line += f"  ({result['message']})"
        print(line)
    print(f"{report.passed} passed, {report.failed} failed, {report.skipped} skipped")
    return 0 if report.ok else 1


COMMANDS = {
    "assemble": cmd_assemble,
    "execute": cmd_execute,
    "batch": cmd_batch,
}


if __name__ == "__main__":
    sys.exit(main())
