"""
Report rendering for heapinspect inspections.

Every report has the same shape:

    <SEPARATOR><InspectorName> inspection<SEPARATOR>
    <finding><SEPARATOR>        (zero or more)

or, when nothing reaches the threshold, a single fallback line in place of the
findings. Findings are written in the frequency table's insertion order.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Callable


if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import TextIO


SEPARATOR = os.linesep


def format_header(inspector: str) -> str:
    """Header line naming the inspector."""
    return f"{SEPARATOR}{inspector} inspection{SEPARATOR}"


def qualifying(table: Mapping[str, int], threshold: int) -> list[tuple[str, int]]:
    """Entries whose count reaches ``threshold``, in table order."""
    return [(key, count) for key, count in table.items() if count >= threshold]


def render_report(
    out: TextIO,
    inspector: str,
    table: Mapping[str, int],
    threshold: int,
    format_finding: Callable[[str, int], str],
    fallback: str,
) -> int:
    """
    Write a complete report to ``out``.

    Args:
        out: Text sink; write errors propagate as OSError.
        inspector: Name shown in the header.
        table: Frequency table, key -> count.
        threshold: Minimum count for an entry to be reported.
        format_finding: Formats one (key, count) entry as a line.
        fallback: Line written when no entry qualifies.

    Returns:
        Number of finding lines written.
    """
    findings = qualifying(table, threshold)

    out.write(format_header(inspector))
    for key, count in findings:
        out.write(format_finding(key, count))
        out.write(SEPARATOR)
    if not findings:
        out.write(fallback)
        out.write(SEPARATOR)

    return len(findings)


__all__ = [
    "SEPARATOR",
    "format_header",
    "qualifying",
    "render_report",
]
