"""
Command line driver for heapinspect.

Usage:
    heapinspect heap.json
    heapinspect -d -s --duplicates-threshold 10 heap.json
    heapinspect -s -o report.txt heap.json
"""

from __future__ import annotations

import argparse
import contextlib
import enum
import logging
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from heapinspect import __version__
from heapinspect.duplicates import DEFAULT_THRESHOLD as DUPLICATES_THRESHOLD
from heapinspect.duplicates import DuplicateStringsInspector
from heapinspect.errors import InspectionError
from heapinspect.inspection import validate_threshold
from heapinspect.selfrefs import DEFAULT_THRESHOLD as SELF_REFERENCES_THRESHOLD
from heapinspect.selfrefs import SelfReferencingObjectsInspector
from heapinspect.snapshot import load_snapshot


if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import TextIO

    from heapinspect.graph import HeapGraph


_logger = logging.getLogger(__name__)

PROG = "heapinspect"
DEBUG_ENV = "HEAPINSPECT_DEBUG"


class InspectionKind(enum.Enum):
    """Inspections selectable from the command line, in run order."""

    DUPLICATE_STRINGS = "duplicate-strings"
    SELF_REFERENCES = "self-references"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Inspect a heap snapshot for duplicate strings and self-referencing objects",
    )
    parser.add_argument("snapshot", type=Path, help="Heap snapshot document (JSON)")
    parser.add_argument(
        "-d",
        "--duplicate-strings",
        action="store_true",
        help="Report duplicate strings (default when no inspection is selected)",
    )
    parser.add_argument(
        "-s",
        "--self-references",
        action="store_true",
        help="Report objects referencing themselves",
    )
    parser.add_argument(
        "--duplicates-threshold",
        type=int,
        default=DUPLICATES_THRESHOLD,
        metavar="N",
        help=f"Minimum duplicate count to report (default: {DUPLICATES_THRESHOLD})",
    )
    parser.add_argument(
        "--self-references-threshold",
        type=int,
        default=SELF_REFERENCES_THRESHOLD,
        metavar="N",
        help=f"Minimum self reference count to report (default: {SELF_REFERENCES_THRESHOLD})",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write the report to a file instead of stdout",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def selected_inspections(args: argparse.Namespace) -> list[InspectionKind]:
    selected = []
    if args.duplicate_strings:
        selected.append(InspectionKind.DUPLICATE_STRINGS)
    if args.self_references:
        selected.append(InspectionKind.SELF_REFERENCES)
    return selected or [InspectionKind.DUPLICATE_STRINGS]


def run_inspections(
    graph: HeapGraph,
    inspections: Sequence[InspectionKind],
    out: TextIO,
    duplicates_threshold: int = DUPLICATES_THRESHOLD,
    self_references_threshold: int = SELF_REFERENCES_THRESHOLD,
) -> None:
    """
    Run the selected inspections one after another over ``graph``.

    Every inspector is constructed before any of them runs, so a bad
    threshold is reported before any output is produced.
    """
    inspectors = []
    for inspection in inspections:
        if inspection is InspectionKind.DUPLICATE_STRINGS:
            inspectors.append(DuplicateStringsInspector(graph, out, duplicates_threshold))
        elif inspection is InspectionKind.SELF_REFERENCES:
            inspectors.append(SelfReferencingObjectsInspector(graph, out, self_references_threshold))

    for inspector in inspectors:
        _logger.debug("Running %s", type(inspector).__name__)
        inspector.inspect()


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose or os.environ.get(DEBUG_ENV) else logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format=f"[{PROG}] %(levelname)s: %(message)s",
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    if argv is None:
        argv = sys.argv[1:]

    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    # Checked up front so a bad threshold never leaves an empty -o file behind
    try:
        validate_threshold(args.duplicates_threshold)
        validate_threshold(args.self_references_threshold)
    except InspectionError as e:
        print(f"{PROG}: error: {e}", file=sys.stderr)
        return 1

    try:
        graph = load_snapshot(args.snapshot)
    except FileNotFoundError:
        print(f"{PROG}: error: snapshot file not found: {args.snapshot}", file=sys.stderr)
        return 1
    except (InspectionError, OSError) as e:
        print(f"{PROG}: error: {e}", file=sys.stderr)
        return 1

    try:
        with contextlib.ExitStack() as stack:
            if args.output is not None:
                out = stack.enter_context(open(args.output, "w", encoding="utf-8", newline=""))
            else:
                out = sys.stdout
            run_inspections(
                graph,
                selected_inspections(args),
                out,
                duplicates_threshold=args.duplicates_threshold,
                self_references_threshold=args.self_references_threshold,
            )
    except (InspectionError, OSError) as e:
        print(f"{PROG}: error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
