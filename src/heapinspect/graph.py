"""
Read-only heap graph contract.

Inspectors never touch a dump format directly. They walk a heap graph through
the small ``HeapGraph`` protocol below, which any provider can implement.
``heapinspect.snapshot.SnapshotGraph`` is the in-memory provider shipped with
the package.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol


if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence


OBJECT_TYPE = "object"

# Primitive type names a field or array element may have
BASIC_TYPES = frozenset({
    "boolean",
    "char",
    "float",
    "double",
    "byte",
    "short",
    "int",
    "long",
})


@dataclass(frozen=True)
class InstanceRef:
    """Opaque identity of one node in the heap graph."""

    instance_id: int


@dataclass(frozen=True)
class FieldDescriptor:
    """A field declared on a class."""

    name: str
    declaring_class: str
    type: str = OBJECT_TYPE

    @property
    def is_reference(self) -> bool:
        """True if values of this field may point at another instance."""
        return self.type == OBJECT_TYPE


@dataclass(frozen=True)
class ClassDescriptor:
    """A class with the fields declared directly on it (inherited fields excluded)."""

    name: str
    fields: tuple[FieldDescriptor, ...] = ()
    super_name: str | None = None


class HeapGraph(Protocol):
    """Queries an inspector may run against a heap graph.

    The graph is treated as immutable for the duration of an inspection.
    Providers raise ``UnrecognizedDataError`` for references or records they
    cannot resolve.
    """

    def iter_instances(self) -> Iterator[InstanceRef]:
        """Lazily enumerate every instance, arrays included."""
        ...

    def class_of(self, ref: InstanceRef) -> ClassDescriptor:
        """Resolve the runtime class of an instance."""
        ...

    def superclass_of(self, cls: ClassDescriptor) -> ClassDescriptor | None:
        """Resolve the direct superclass, or None at the root of the hierarchy."""
        ...

    def declared_fields(self, cls: ClassDescriptor) -> Sequence[FieldDescriptor]:
        """Fields declared directly on ``cls``."""
        ...

    def field_value(self, ref: InstanceRef, name: str) -> Any:
        """Current value of a field: a primitive, an ``InstanceRef`` or None."""
        ...

    def same_instance(self, a: InstanceRef, b: InstanceRef) -> bool:
        """Identity comparison of two instances."""
        ...

    def array_items(self, ref: InstanceRef) -> Sequence[int] | None:
        """Elements of a primitive array, or None if ``ref`` is not one."""
        ...


__all__ = [
    "OBJECT_TYPE",
    "BASIC_TYPES",
    "InstanceRef",
    "FieldDescriptor",
    "ClassDescriptor",
    "HeapGraph",
]
