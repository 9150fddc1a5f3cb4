#!/usr/bin/env python3
"""
Command line entry point for the stack VM.

    stackvm run program.svm [--trace]
    stackvm disasm program.svm

Exit status: 0 when the program halts, 1 when it faults or its output is
closed early, 2 when the source cannot be read or assembled, 130 on Ctrl+C.
"""

import argparse
import sys
from typing import List, Optional

import structlog

from .assembler import assemble_file
from .config import (
    DEFAULT_LOG_FORMAT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_TRACE,
    EXIT_BAD_INPUT,
    EXIT_FAULTED,
    EXIT_HALTED,
    EXIT_INTERRUPTED,
    LOG_FORMATS,
    LOG_LEVELS,
)
from .core.program import Program
from .disassembler import disassemble
from .engine import Engine
from .errors import AssemblyError, InvalidProgramError
from .logging_config import configure_logging

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stackvm", description="Run stack VM programs")
    parser.add_argument(
        "--log-level",
        default=DEFAULT_LOG_LEVEL,
        choices=LOG_LEVELS,
        type=str.upper,
        help=f"Logging level (default: {DEFAULT_LOG_LEVEL})",
    )
    parser.add_argument(
        "--log-format",
        default=DEFAULT_LOG_FORMAT,
        choices=LOG_FORMATS,
        help=f"Log renderer (default: {DEFAULT_LOG_FORMAT})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Assemble and execute a program")
    run_parser.add_argument("source_file", help="Path to the program source")
    run_parser.add_argument(
        "--trace",
        action="store_true",
        default=DEFAULT_TRACE,
        help="Log every executed instruction (implies --log-level DEBUG)",
    )

    disasm_parser = subparsers.add_parser("disasm", help="Print the resolved instruction listing")
    disasm_parser.add_argument("source_file", help="Path to the program source")
    return parser


def cmd_run(args: argparse.Namespace, program: Program) -> int:
    engine = Engine(program, stdout=sys.stdout, trace=args.trace)
    result = engine.run()
    sys.stdout.flush()

    if result.faulted:
        print(f"\nError: {result.fault}", file=sys.stderr)
        return EXIT_FAULTED
    return EXIT_HALTED


def cmd_disasm(args: argparse.Namespace, program: Program) -> int:
    for line in disassemble(program):
        print(line)
    return EXIT_HALTED


COMMANDS = {
    "run": cmd_run,
    "disasm": cmd_disasm,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    log_level = "DEBUG" if getattr(args, "trace", False) else args.log_level
    configure_logging(log_level, args.log_format)

    try:
        program = assemble_file(args.source_file)
    except (AssemblyError, InvalidProgramError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT
    except OSError as e:
        logger.error("Could not read program", path=args.source_file, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT

    try:
        return COMMANDS[args.command](args, program)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except BrokenPipeError:
        # Reader went away, e.g. piped into head
        logger.warning("Output closed before the command finished", command=args.command)
        return EXIT_FAULTED


if __name__ == "__main__":
    sys.exit(main())
