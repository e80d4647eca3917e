"""Tests for the in-memory snapshot graph."""

import json

import pytest

from heapinspect.errors import SnapshotFormatError, UnrecognizedDataError
from heapinspect.graph import ClassDescriptor, FieldDescriptor, InstanceRef
from heapinspect.snapshot import SnapshotGraph, load_snapshot


DOCUMENT = {
    "classes": [
        {"name": "java.lang.Object", "super": None, "fields": []},
        {
            "name": "java.lang.String",
            "super": "java.lang.Object",
            "fields": [{"name": "value", "type": "object"}, {"name": "hash", "type": "int"}],
        },
        {"name": "a.Node", "super": "java.lang.Object", "fields": [{"name": "next"}]},
    ],
    "arrays": [{"id": 10, "type": "char", "values": [104, 105]}],
    "instances": [
        {"id": 1, "class": "java.lang.String", "fields": {"value": {"ref": 10}, "hash": 0}},
        {"id": 2, "class": "a.Node", "fields": {"next": {"ref": 2}}},
    ],
}


class TestGraphQueries:
    def test_iteration_order_and_identity(self):
        graph = SnapshotGraph.from_dict(DOCUMENT)
        refs = list(graph.iter_instances())

        assert refs == [InstanceRef(10), InstanceRef(1), InstanceRef(2)]
        assert graph.same_instance(refs[2], InstanceRef(2))
        assert not graph.same_instance(refs[0], refs[1])

    def test_class_and_fields(self):
        graph = SnapshotGraph.from_dict(DOCUMENT)
        node = graph.class_of(InstanceRef(2))

        assert node.name == "a.Node"
        assert list(graph.declared_fields(node)) == [FieldDescriptor("next", "a.Node", "object")]
        assert graph.superclass_of(node).name == "java.lang.Object"
        assert graph.superclass_of(graph.superclass_of(node)) is None

    def test_field_values(self):
        graph = SnapshotGraph.from_dict(DOCUMENT)

        assert graph.field_value(InstanceRef(1), "value") == InstanceRef(10)
        assert graph.field_value(InstanceRef(1), "hash") == 0
        assert graph.field_value(InstanceRef(2), "next") == InstanceRef(2)

    def test_arrays(self):
        graph = SnapshotGraph.from_dict(DOCUMENT)

        assert graph.array_items(InstanceRef(10)) == [104, 105]
        assert graph.array_items(InstanceRef(1)) is None
        array_class = graph.class_of(InstanceRef(10))
        assert array_class == ClassDescriptor("char[]", super_name="java.lang.Object")
        assert graph.declared_fields(array_class) == ()

    def test_unknown_data(self):
        graph = SnapshotGraph.from_dict(DOCUMENT)

        with pytest.raises(UnrecognizedDataError):
            graph.class_of(InstanceRef(999))
        with pytest.raises(UnrecognizedDataError):
            graph.field_value(InstanceRef(2), "missing")
        with pytest.raises(UnrecognizedDataError):
            graph.field_value(InstanceRef(10), "value")

    def test_add_string(self):
        graph = SnapshotGraph()
        ref = graph.add_string(1, 2, "hé")

        assert graph.class_of(ref).name == "java.lang.String"
        assert graph.array_items(graph.field_value(ref, "value")) == [104, 233]


class TestBuilderValidation:
    def test_duplicate_id(self):
        graph = SnapshotGraph()
        graph.add_instance(1, "x.Y")
        with pytest.raises(SnapshotFormatError):
            graph.add_array(1, "char", [])

    def test_duplicate_class(self):
        graph = SnapshotGraph()
        graph.add_class("x.Y")
        with pytest.raises(SnapshotFormatError):
            graph.add_class("x.Y")

    def test_unknown_types(self):
        graph = SnapshotGraph()
        with pytest.raises(SnapshotFormatError):
            graph.add_class("x.Y", {"f": "pointer"})
        with pytest.raises(SnapshotFormatError):
            graph.add_array(1, "object", [])

    def test_non_integer_id(self):
        with pytest.raises(SnapshotFormatError):
            SnapshotGraph().add_instance("1", "x.Y")

    @pytest.mark.parametrize("target", [[1], "1", 1.0, True, None, {"ref": 1}])
    def test_non_integer_reference(self, target):
        document = {"instances": [{"id": 1, "class": "x.Y", "fields": {"f": {"ref": target}}}]}
        with pytest.raises(SnapshotFormatError):
            SnapshotGraph.from_dict(document)


class TestDocuments:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "heap.json"
        SnapshotGraph.from_dict(DOCUMENT).save(path)

        reloaded = load_snapshot(path)

        assert reloaded.instance_count == 3
        assert reloaded.class_count == 3
        assert reloaded.field_value(InstanceRef(2), "next") == InstanceRef(2)

    @pytest.mark.parametrize(
        "document",
        [
            [],
            {"instances": [{"class": "x.Y"}]},
            {"instances": [{"id": 1, "class": "x.Y", "fields": {"f": {"id": 2}}}]},
            {"classes": [{"fields": []}]},
            {"arrays": [{"id": 1}]},
        ],
    )
    def test_malformed_documents(self, document):
        with pytest.raises(SnapshotFormatError):
            SnapshotGraph.from_dict(document)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "heap.json"
        path.write_text("{not json")
        with pytest.raises(SnapshotFormatError):
            load_snapshot(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_snapshot(tmp_path / "absent.json")

    def test_document_is_plain_json(self):
        data = SnapshotGraph.from_dict(DOCUMENT).to_dict()
        assert json.loads(json.dumps(data))["instances"][1]["fields"] == {"next": {"ref": 2}}
