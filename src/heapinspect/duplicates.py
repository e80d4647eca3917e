"""
heapinspect.duplicates - Duplicate string detection

Counts how often each distinct string content occurs in a heap and reports
the contents duplicated at least ``threshold`` times.

Example:
    >>> inspector = DuplicateStringsInspector(graph, sys.stdout, threshold=10)
    >>> inspector.inspect()

    DuplicateStringInspector inspection
    "application/json" : 412 times
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Callable, Optional

from heapinspect.errors import UnrecognizedDataError
from heapinspect.graph import InstanceRef
from heapinspect.inspection import InspectionState, owned_sink, require, validate_threshold
from heapinspect.output import render_report


if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import TextIO

    from heapinspect.graph import HeapGraph


_logger = logging.getLogger(__name__)


INSPECTOR_NAME = "DuplicateStringInspector"
NO_FINDINGS = "No significant amounts of duplicates found"
DEFAULT_THRESHOLD = 100

STRING_CLASS = "java.lang.String"

# java.lang.String.coder values for compact strings
LATIN1 = 0
UTF16 = 1

_MAX_CODE_UNIT = 0xFFFF


# ============================================================================
# Decoding
# ============================================================================

def decode_char_codes(codes: Sequence[int]) -> Optional[str]:
    """
    Decode UTF-16 code units into a string.

    Surrogate pairs are combined; lone surrogates become U+FFFD. Returns None
    if any element is not a valid code unit.

    >>> decode_char_codes([115, 116, 114, 105, 110, 103])
    'string'
    """
    units = []
    for code in codes:
        if isinstance(code, bool) or not isinstance(code, int) or not 0 <= code <= _MAX_CODE_UNIT:
            return None
        units.append(code)
    raw = "".join(map(chr, units))
    return raw.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "replace")


def decode_latin1_bytes(data: Sequence[int]) -> Optional[str]:
    """Decode a LATIN1 compact string; signed byte values are masked to 0-255."""
    try:
        return bytes(b & 0xFF for b in data).decode("latin-1")
    except TypeError:
        return None


def decode_utf16_bytes(data: Sequence[int]) -> Optional[str]:
    """Decode a UTF16 compact string (little-endian byte pairs)."""
    if len(data) % 2:
        return None
    try:
        masked = [b & 0xFF for b in data]
    except TypeError:
        return None
    units = [masked[i] | (masked[i + 1] << 8) for i in range(0, len(masked), 2)]
    return decode_char_codes(units)


def decode_java_string(graph: HeapGraph, ref: InstanceRef) -> Optional[str]:
    """
    Decode a ``java.lang.String`` instance.

    Handles both layouts: a char[] ``value`` (pre-compact strings) and a
    byte[] ``value`` with a ``coder`` field. Returns None when the instance
    does not have a recognizable shape.
    """
    backing = graph.field_value(ref, "value")
    if not isinstance(backing, InstanceRef):
        return None

    items = graph.array_items(backing)
    if items is None:
        return None

    element_type = graph.class_of(backing).name
    if element_type == "char[]":
        return decode_char_codes(items)
    if element_type == "byte[]":
        coder = graph.field_value(ref, "coder")
        if coder == LATIN1:
            return decode_latin1_bytes(items)
        if coder == UTF16:
            return decode_utf16_bytes(items)
    return None


# Class name -> decoder for each string shape the inspector understands
STRING_DECODERS: dict[str, Callable[[HeapGraph, InstanceRef], Optional[str]]] = {
    STRING_CLASS: decode_java_string,
}


def classify_and_decode(graph: HeapGraph, ref: InstanceRef, class_name: str) -> Optional[str]:
    """Decode ``ref`` if its class is a known string shape, else return None."""
    decoder = STRING_DECODERS.get(class_name)
    if decoder is None:
        return None
    return decoder(graph, ref)


# ============================================================================
# Inspector
# ============================================================================

class DuplicateStringsInspector:
    """
    Finds duplicate strings in a heap.

    The inspector is single-shot: ``inspect()`` may be called once, after
    which a fresh inspector is needed for another run.

    Args:
        graph: Heap graph to inspect. Never mutated.
        out: Text sink the report is written to.
        threshold: Minimum number of occurrences for a string to be reported.
        close_sink: Close ``out`` once the report is written.

    Raises:
        MissingCollaboratorError: If ``graph`` or ``out`` is None.
        InvalidConfigurationError: If ``threshold`` is negative.
    """

    def __init__(
        self,
        graph: HeapGraph,
        out: TextIO,
        threshold: int = DEFAULT_THRESHOLD,
        *,
        close_sink: bool = False,
    ):
        self._graph = require(graph, "graph")
        self._out = require(out, "out")
        self._threshold = validate_threshold(threshold)
        self._close_sink = close_sink
        self._state = InspectionState.CREATED

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def state(self) -> InspectionState:
        return self._state

    def inspect(self) -> None:
        """
        Count string contents across the heap, then write the report.

        Raises:
            RuntimeError: If this inspector has already been used.
            ReportWriteError: If writing the report fails.
        """
        if self._state is not InspectionState.CREATED:
            raise RuntimeError("Inspector already used")

        self._state = InspectionState.TRAVERSING
        try:
            with owned_sink(self._out, close=self._close_sink) as out:
                frequencies = self._count_strings()
                self._state = InspectionState.RENDERING
                render_report(
                    out,
                    INSPECTOR_NAME,
                    frequencies,
                    self._threshold,
                    _format_finding,
                    NO_FINDINGS,
                )
        except BaseException:
            self._state = InspectionState.FAILED
            raise
        self._state = InspectionState.SUCCEEDED

    def _count_strings(self) -> Counter[str]:
        frequencies: Counter[str] = Counter()
        visited = 0
        skipped = 0

        for ref in self._graph.iter_instances():
            visited += 1
            try:
                class_name = self._graph.class_of(ref).name
                content = classify_and_decode(self._graph, ref, class_name)
            except UnrecognizedDataError as e:
                skipped += 1
                _logger.debug("Skipping instance %s: %s", ref.instance_id, e)
                continue

            if content is None:
                if class_name in STRING_DECODERS:
                    skipped += 1
                    _logger.debug("Skipping undecodable string instance %s", ref.instance_id)
                continue

            frequencies[content] += 1

        _logger.debug(
            "Visited %d instances, %d distinct strings, %d skipped",
            visited,
            len(frequencies),
            skipped,
        )
        return frequencies


def _format_finding(content: str, count: int) -> str:
    return f'"{content}" : {count} times'


__all__ = [
    "DuplicateStringsInspector",
    "DEFAULT_THRESHOLD",
    "STRING_DECODERS",
    "classify_and_decode",
    "decode_char_codes",
    "decode_java_string",
]
