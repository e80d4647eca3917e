"""
heapinspect - Heap snapshot inspections for common memory anti-patterns.

Two inspections are provided:
- DuplicateStringsInspector: string contents duplicated across the heap
- SelfReferencingObjectsInspector: objects holding a reference to themselves

Example usage:
    >>> import sys
    >>> import heapinspect
    >>> graph = heapinspect.load_snapshot("heap.json")
    >>> heapinspect.DuplicateStringsInspector(graph, sys.stdout, threshold=10).inspect()
    >>> heapinspect.SelfReferencingObjectsInspector(graph, sys.stdout).inspect()
"""

from __future__ import annotations

__version__ = "0.1.0"

from heapinspect.duplicates import DuplicateStringsInspector
from heapinspect.errors import (
    InspectionError,
    InvalidConfigurationError,
    MissingCollaboratorError,
    ReportWriteError,
    SnapshotFormatError,
    UnrecognizedDataError,
)
from heapinspect.graph import ClassDescriptor, FieldDescriptor, HeapGraph, InstanceRef
from heapinspect.inspection import Inspection, InspectionState
from heapinspect.output import SEPARATOR, format_header
from heapinspect.selfrefs import SelfReferencingObjectsInspector
from heapinspect.snapshot import SnapshotGraph, load_snapshot


__all__ = [
    "__version__",
    # Inspectors
    "DuplicateStringsInspector",
    "SelfReferencingObjectsInspector",
    "Inspection",
    "InspectionState",
    # Heap graph
    "HeapGraph",
    "InstanceRef",
    "ClassDescriptor",
    "FieldDescriptor",
    "SnapshotGraph",
    "load_snapshot",
    # Rendering
    "SEPARATOR",
    "format_header",
    # Errors
    "InspectionError",
    "InvalidConfigurationError",
    "MissingCollaboratorError",
    "ReportWriteError",
    "SnapshotFormatError",
    "UnrecognizedDataError",
]
