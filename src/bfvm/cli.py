"""bfvm command line interface.

Usage:
    bfvm programs/hello.bf
    bfvm programs/reverse.bf --input "stressed" --eof 0
    bfvm programs/hello.bf --trace --max-steps 5000

Exit status:
    0  program ran to completion
    1  file could not be read, translation failed, or execution faulted
    2  usage error (including a missing PROGRAM argument)
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .engine import DEFAULT_TAPE_SIZE, ExecutionEngine
from .errors import ExecutionError, ParseError
from .ports import BytesSource, StreamSink, StreamSource

logger = logging.getLogger("bfvm")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bfvm",
        description="Run a program for the eight-op byte-tape language",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run a program, reading input from stdin
    bfvm programs/hello.bf

    # Supply input inline instead of stdin
    bfvm programs/reverse.bf --input "stressed" --eof 0

    # Print the full execution trace to stderr
    bfvm programs/hello.bf --trace
        """
    )

    parser.add_argument(
        "program",
        type=str,
        help="Path to program source file"
    )
    parser.add_argument(
        "--tape-size",
        type=int,
        default=DEFAULT_TAPE_SIZE,
        help=f"Number of tape cells. Default: {DEFAULT_TAPE_SIZE}"
    )
    parser.add_argument(
        "--input", "-i",
        type=str,
        help="Program input as text (read from stdin when omitted)"
    )
    parser.add_argument(
        "--eof",
        choices=["error", "0", "255"],
        default="error",
        help="What ',' reads once input is exhausted. Default: error"
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Abort after this many steps (default: unlimited)"
    )
    parser.add_argument(
        "--trace", "-t",
        action="store_true",
        help="Print full execution trace to stderr"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v, -vv)"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log errors"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"bfvm {__version__}"
    )
    return parser


def setup_logging(verbose: int, quiet: bool) -> None:
    """Configure logging onto stderr; stdout carries program output only."""
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger("bfvm")
    root.handlers[:] = [handler]
    root.setLevel(level)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.tape_size <= 0:
        parser.error("--tape-size must be positive")
    if args.max_steps is not None and args.max_steps < 0:
        parser.error("--max-steps must be non-negative")

    setup_logging(args.verbose, args.quiet)

    program_path = Path(args.program)
    try:
        source = program_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: cannot read program file {args.program}: {e}", file=sys.stderr)
        return 1
    logger.info("loaded program: %s (%d chars)", program_path, len(source))

    eof = None if args.eof == "error" else int(args.eof)
    sink = StreamSink(sys.stdout.buffer)
    if args.input is not None:
        source_port = BytesSource(args.input.encode("utf-8"), eof=eof)
    else:
        source_port = StreamSource(sys.stdin.buffer, flush_before_read=sink, eof=eof)

    try:
        engine = ExecutionEngine.from_source(
            source,
            tape_size=args.tape_size,
            sink=sink,
            source=source_port,
            record_trace=args.trace,
        )
    except ParseError as e:
        print(f"Error: {args.program}: {e}", file=sys.stderr)
        return 1

    status = 0
    try:
        engine.run(max_steps=args.max_steps)
    except ExecutionError as e:
        print(f"Execution error: {e}", file=sys.stderr)
        status = 1
    finally:
        try:
            sink.flush()
        except OSError as e:
            print(f"Error: cannot flush output: {e}", file=sys.stderr)
            status = 1

    if args.trace:
        engine.print_trace(file=sys.stderr)

    logger.info("finished after %d steps", engine.get_step_count())
    return status


if __name__ == "__main__":
    sys.exit(main())
