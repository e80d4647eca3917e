"""
heapinspect.snapshot - In-memory heap graph

``SnapshotGraph`` holds an already-decoded heap snapshot and implements the
``HeapGraph`` protocol on top of it. Graphs are built either programmatically
or from a JSON snapshot document.

Document format:

    {
      "classes":   [{"name": "a.Node", "super": "java.lang.Object",
                     "fields": [{"name": "next", "type": "object"}]}],
      "instances": [{"id": 1, "class": "a.Node", "fields": {"next": {"ref": 1}}}],
      "arrays":    [{"id": 2, "type": "char", "values": [104, 105]}]
    }

Example:
    >>> graph = load_snapshot("heap.json")
    >>> DuplicateStringsInspector(graph, sys.stdout).inspect()
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Union

from heapinspect.errors import SnapshotFormatError, UnrecognizedDataError
from heapinspect.graph import BASIC_TYPES, OBJECT_TYPE, ClassDescriptor, FieldDescriptor, InstanceRef


if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence


_logger = logging.getLogger(__name__)


# ============================================================================
# Records
# ============================================================================

@dataclass
class _InstanceRecord:
    class_name: str
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class _ArrayRecord:
    element_type: str
    values: list[int] = field(default_factory=list)

    @property
    def class_name(self) -> str:
        return f"{self.element_type}[]"


# ============================================================================
# Graph
# ============================================================================

class SnapshotGraph:
    """
    Heap graph held entirely in memory.

    Instances and primitive arrays share one id space and are enumerated in
    the order they were added. Array classes (``char[]``, ``byte[]``, ...) are
    synthesized on demand and declare no fields.
    """

    def __init__(self) -> None:
        self._classes: dict[str, ClassDescriptor] = {}
        self._records: dict[int, _InstanceRecord | _ArrayRecord] = {}

    # --- Building ---

    def add_class(
        self,
        name: str,
        fields: Mapping[str, str] | Sequence[str] = (),
        super_name: str | None = None,
    ) -> ClassDescriptor:
        """
        Register a class.

        Args:
            name: Fully-qualified class name.
            fields: Declared fields, either as ``{name: type}`` or as a
                    sequence of names (all reference-typed).
            super_name: Name of the direct superclass, if any.

        Raises:
            SnapshotFormatError: If the class is already registered or a
                field type is unknown.
        """
        if name in self._classes:
            raise SnapshotFormatError(f"Duplicate class: {name}")

        if isinstance(fields, (list, tuple)):
            fields = {field_name: OBJECT_TYPE for field_name in fields}

        descriptors = []
        for field_name, field_type in fields.items():
            if field_type != OBJECT_TYPE and field_type not in BASIC_TYPES:
                raise SnapshotFormatError(
                    f"Unknown type {field_type!r} for field {name}.{field_name}"
                )
            descriptors.append(FieldDescriptor(field_name, name, field_type))

        cls = ClassDescriptor(name=name, fields=tuple(descriptors), super_name=super_name)
        self._classes[name] = cls
        return cls

    def add_instance(
        self,
        instance_id: int,
        class_name: str,
        fields: Mapping[str, Any] | None = None,
    ) -> InstanceRef:
        """Register an instance of ``class_name`` with the given field values."""
        self._check_new_id(instance_id)
        self._records[instance_id] = _InstanceRecord(class_name, dict(fields or {}))
        return InstanceRef(instance_id)

    def add_array(self, instance_id: int, element_type: str, values: Sequence[int]) -> InstanceRef:
        """Register a primitive array."""
        self._check_new_id(instance_id)
        if element_type not in BASIC_TYPES:
            raise SnapshotFormatError(f"Unknown array element type: {element_type!r}")
        self._records[instance_id] = _ArrayRecord(element_type, list(values))
        return InstanceRef(instance_id)

    def add_string(self, instance_id: int, array_id: int, content: str) -> InstanceRef:
        """Register a ``java.lang.String`` backed by a char[] holding ``content``."""
        if "java.lang.String" not in self._classes:
            self.add_class(
                "java.lang.String",
                {"value": OBJECT_TYPE, "hash": "int"},
                super_name="java.lang.Object",
            )
        codes = list(content.encode("utf-16-le"))
        units = [codes[i] | (codes[i + 1] << 8) for i in range(0, len(codes), 2)]
        backing = self.add_array(array_id, "char", units)
        return self.add_instance(instance_id, "java.lang.String", {"value": backing, "hash": 0})

    def _check_new_id(self, instance_id: int) -> None:
        if not isinstance(instance_id, int) or isinstance(instance_id, bool):
            raise SnapshotFormatError(f"Instance id must be an integer, got {instance_id!r}")
        if instance_id in self._records:
            raise SnapshotFormatError(f"Duplicate instance id: {instance_id}")

    # --- HeapGraph protocol ---

    def iter_instances(self) -> Iterator[InstanceRef]:
        return (InstanceRef(instance_id) for instance_id in list(self._records))

    def class_of(self, ref: InstanceRef) -> ClassDescriptor:
        record = self._record(ref)
        name = record.class_name
        cls = self._classes.get(name)
        if cls is not None:
            return cls
        if isinstance(record, _ArrayRecord):
            return ClassDescriptor(name=name, super_name="java.lang.Object")
        raise UnrecognizedDataError(f"Instance {ref.instance_id} has unknown class {name}")

    def superclass_of(self, cls: ClassDescriptor) -> ClassDescriptor | None:
        if cls.super_name is None:
            return None
        return self._classes.get(cls.super_name)

    def declared_fields(self, cls: ClassDescriptor) -> Sequence[FieldDescriptor]:
        return cls.fields

    def field_value(self, ref: InstanceRef, name: str) -> Any:
        record = self._record(ref)
        if not isinstance(record, _InstanceRecord):
            raise UnrecognizedDataError(f"Instance {ref.instance_id} is an array, it has no fields")
        try:
            value = record.fields[name]
        except KeyError:
            raise UnrecognizedDataError(
                f"Instance {ref.instance_id} has no value for field {name}"
            ) from None
        if isinstance(value, InstanceRef) and value.instance_id not in self._records:
            raise UnrecognizedDataError(
                f"Field {name} of instance {ref.instance_id} points to unknown instance "
                f"{value.instance_id}"
            )
        return value

    def same_instance(self, a: InstanceRef, b: InstanceRef) -> bool:
        return a.instance_id == b.instance_id

    def array_items(self, ref: InstanceRef) -> Sequence[int] | None:
        record = self._record(ref)
        if isinstance(record, _ArrayRecord):
            return record.values
        return None

    def _record(self, ref: InstanceRef) -> _InstanceRecord | _ArrayRecord:
        try:
            return self._records[ref.instance_id]
        except KeyError:
            raise UnrecognizedDataError(f"Unknown instance: {ref.instance_id}") from None

    # --- Introspection ---

    @property
    def instance_count(self) -> int:
        """Number of instances, arrays included."""
        return len(self._records)

    @property
    def class_count(self) -> int:
        """Number of registered (non-array) classes."""
        return len(self._classes)

    # --- Serialization ---

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SnapshotGraph:
        """
        Build a graph from a snapshot document.

        Raises:
            SnapshotFormatError: If the document is structurally invalid.
        """
        if not isinstance(data, dict):
            raise SnapshotFormatError("Snapshot document must be a JSON object")

        graph = cls()
        try:
            for entry in data.get("classes", []):
                fields = {f["name"]: f.get("type", OBJECT_TYPE) for f in entry.get("fields", [])}
                graph.add_class(entry["name"], fields, super_name=entry.get("super"))

            for entry in data.get("arrays", []):
                graph.add_array(entry["id"], entry["type"], entry.get("values", []))

            for entry in data.get("instances", []):
                fields = {
                    name: _decode_value(value)
                    for name, value in entry.get("fields", {}).items()
                }
                graph.add_instance(entry["id"], entry["class"], fields)
        except (KeyError, TypeError, AttributeError) as e:
            raise SnapshotFormatError(f"Malformed snapshot entry: {e!r}") from e

        _logger.debug(
            "Loaded snapshot with %d classes and %d instances",
            graph.class_count,
            graph.instance_count,
        )
        return graph

    def to_dict(self) -> dict[str, Any]:
        """Convert to a snapshot document."""
        classes = [
            {
                "name": c.name,
                "super": c.super_name,
                "fields": [{"name": f.name, "type": f.type} for f in c.fields],
            }
            for c in self._classes.values()
        ]
        instances = []
        arrays = []
        for instance_id, record in self._records.items():
            if isinstance(record, _ArrayRecord):
                arrays.append({
                    "id": instance_id,
                    "type": record.element_type,
                    "values": list(record.values),
                })
            else:
                instances.append({
                    "id": instance_id,
                    "class": record.class_name,
                    "fields": {
                        name: _encode_value(value) for name, value in record.fields.items()
                    },
                })
        return {"classes": classes, "instances": instances, "arrays": arrays}

    def save(self, path: Union[str, Path]) -> None:
        """Save the graph as a JSON snapshot document."""
        path = Path(path)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)


def _decode_value(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) != {"ref"}:
            raise SnapshotFormatError(f"Unsupported field value: {value!r}")
        target = value["ref"]
        if not isinstance(target, int) or isinstance(target, bool):
            raise SnapshotFormatError(f"Reference target must be an integer id, got {target!r}")
        return InstanceRef(target)
    return value


def _encode_value(value: Any) -> Any:
    if isinstance(value, InstanceRef):
        return {"ref": value.instance_id}
    return value


def load_snapshot(path: Union[str, Path]) -> SnapshotGraph:
    """
    Load a heap graph from a JSON snapshot document.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        SnapshotFormatError: If the file is not a valid snapshot document.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SnapshotFormatError(f"{path} is not a valid JSON document: {e}") from e
    return SnapshotGraph.from_dict(data)


__all__ = [
    "SnapshotGraph",
    "load_snapshot",
]
