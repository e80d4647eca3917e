"""
Exceptions raised by heapinspect.

Configuration errors are raised when an inspector is constructed, before any
traversal. Data errors raised by a graph provider are absorbed per instance by
the inspectors. Only report write failures abort a running inspection.
"""

from __future__ import annotations


class InspectionError(Exception):
    """Base class for all heapinspect errors."""


class InvalidConfigurationError(InspectionError, ValueError):
    """An inspector was configured with an invalid value (e.g. a negative threshold)."""


class MissingCollaboratorError(InspectionError, TypeError):
    """A required collaborator (heap graph or output sink) was not supplied."""


class ReportWriteError(InspectionError):
    """Writing the inspection report to its sink failed."""


class UnrecognizedDataError(InspectionError):
    """Per-instance heap data has a shape the reader does not understand."""


class SnapshotFormatError(InspectionError):
    """A snapshot document is structurally invalid and cannot be loaded."""


__all__ = [
    "InspectionError",
    "InvalidConfigurationError",
    "MissingCollaboratorError",
    "ReportWriteError",
    "UnrecognizedDataError",
    "SnapshotFormatError",
]
