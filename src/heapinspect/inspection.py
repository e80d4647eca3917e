"""
Shared inspection contract.

Each inspector is an independent class exposing ``inspect()``. What they share
lives here as plain functions: threshold and collaborator validation, the
lifecycle states, and scoped ownership of the output sink.
"""

from __future__ import annotations

import contextlib
import enum
import logging
from typing import TYPE_CHECKING, Protocol

from heapinspect.errors import (
    InvalidConfigurationError,
    MissingCollaboratorError,
    ReportWriteError,
)


if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import TextIO


_logger = logging.getLogger(__name__)


class InspectionState(enum.Enum):
    """Lifecycle of a single-shot inspector."""

    CREATED = "created"
    TRAVERSING = "traversing"
    RENDERING = "rendering"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Inspection(Protocol):
    """An inspection walks a heap graph once and writes a report."""

    def inspect(self) -> None:
        """Traverse the graph, then render the report to the configured sink."""
        ...


def validate_threshold(threshold: int) -> int:
    """
    Check that a threshold is a non-negative integer.

    Raises:
        InvalidConfigurationError: If the threshold is negative or not an int.
    """
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise InvalidConfigurationError(
            f"threshold must be an integer, got {type(threshold).__name__}"
        )
    if threshold < 0:
        raise InvalidConfigurationError(f"threshold must be >= 0, got {threshold}")
    return threshold


def require(value, name: str):
    """Return ``value``, raising MissingCollaboratorError if it is None."""
    if value is None:
        raise MissingCollaboratorError(f"{name} must not be None")
    return value


@contextlib.contextmanager
def owned_sink(out: TextIO, close: bool = False) -> Iterator[TextIO]:
    """
    Hold a report sink for the duration of one inspection.

    On exit, on every path, the sink is flushed and, if ``close`` is set,
    closed. I/O failures inside the block or during release are re-raised as
    ReportWriteError. A release failure never masks an error already raised
    inside the block.
    """
    try:
        yield out
    except OSError as e:
        _release(out, close, suppress=True)
        raise ReportWriteError(
            f"I/O exception occurred while writing the inspection message: {e}"
        ) from e
    except BaseException:
        _release(out, close, suppress=True)
        raise
    else:
        try:
            _release(out, close, suppress=False)
        except OSError as e:
            raise ReportWriteError(f"I/O exception occurred while releasing the sink: {e}") from e


def _release(out: TextIO, close: bool, suppress: bool) -> None:
    try:
        out.flush()
    except (OSError, ValueError):
        if not suppress:
            raise
        _logger.debug("Flushing report sink failed during error handling", exc_info=True)
    finally:
        if close:
            try:
                out.close()
            except OSError:
                if not suppress:
                    raise
                _logger.debug("Closing report sink failed during error handling", exc_info=True)


__all__ = [
    "Inspection",
    "InspectionState",
    "validate_threshold",
    "require",
    "owned_sink",
]
