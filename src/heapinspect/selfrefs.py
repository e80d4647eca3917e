"""
heapinspect.selfrefs - Self-referencing object detection

Finds instances holding a reference to themselves in one of their fields and
reports, per class, how many such self references exist. Each self reference
is attributed to the class that declares the field, so a field inherited by
many subclasses is reported once, under its declaring class.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

from heapinspect.errors import UnrecognizedDataError
from heapinspect.graph import InstanceRef
from heapinspect.inspection import InspectionState, owned_sink, require, validate_threshold
from heapinspect.output import render_report


if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import TextIO

    from heapinspect.graph import ClassDescriptor, HeapGraph


_logger = logging.getLogger(__name__)


INSPECTOR_NAME = "SelfReferencingObjectsInspector"
NO_FINDINGS = "No significant amounts of self referencing objects found"
DEFAULT_THRESHOLD = 1


def class_chain(graph: HeapGraph, cls: ClassDescriptor) -> Iterator[ClassDescriptor]:
    """Yield ``cls`` and then its superclasses, stopping on a repeated class."""
    seen: set[str] = set()
    current: ClassDescriptor | None = cls
    while current is not None and current.name not in seen:
        seen.add(current.name)
        yield current
        current = graph.superclass_of(current)


class SelfReferencingObjectsInspector:
    """
    Counts self references per declaring class.

    Only reference-typed fields are examined. Single-shot, like every
    inspector.

    Args:
        graph: Heap graph to inspect. Never mutated.
        out: Text sink the report is written to.
        threshold: Minimum number of self references for a class to be reported.
        close_sink: Close ``out`` once the report is written.
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
        Count self references across the heap, then write the report.

        Raises:
            RuntimeError: If this inspector has already been used.
            ReportWriteError: If writing the report fails.
        """
        if self._state is not InspectionState.CREATED:
            raise RuntimeError("Inspector already used")

        self._state = InspectionState.TRAVERSING
        try:
            with owned_sink(self._out, close=self._close_sink) as out:
                self_references = self._count_self_references()
                self._state = InspectionState.RENDERING
                render_report(
                    out,
                    INSPECTOR_NAME,
                    self_references,
                    self._threshold,
                    _format_finding,
                    NO_FINDINGS,
                )
        except BaseException:
            self._state = InspectionState.FAILED
            raise
        self._state = InspectionState.SUCCEEDED

    def _count_self_references(self) -> Counter[str]:
        self_references: Counter[str] = Counter()
        visited = 0
        skipped = 0

        for ref in self._graph.iter_instances():
            visited += 1
            try:
                runtime_class = self._graph.class_of(ref)
            except UnrecognizedDataError as e:
                skipped += 1
                _logger.debug("Skipping instance %s: %s", ref.instance_id, e)
                continue

            # Field values are read by name; a subclass field shadows the superclass one
            examined: set[str] = set()
            for cls in class_chain(self._graph, runtime_class):
                for field in self._graph.declared_fields(cls):
                    if field.name in examined:
                        continue
                    examined.add(field.name)
                    if not field.is_reference:
                        continue
                    try:
                        value = self._graph.field_value(ref, field.name)
                    except UnrecognizedDataError as e:
                        _logger.debug("Skipping field %s.%s: %s", cls.name, field.name, e)
                        continue
                    if isinstance(value, InstanceRef) and self._graph.same_instance(value, ref):
                        self_references[field.declaring_class] += 1

        _logger.debug(
            "Visited %d instances, %d classes with self references, %d skipped",
            visited,
            len(self_references),
            skipped,
        )
        return self_references


def _format_finding(class_name: str, count: int) -> str:
    return f'"{class_name}" class has {count} self references'


__all__ = [
    "SelfReferencingObjectsInspector",
    "DEFAULT_THRESHOLD",
    "class_chain",
]
