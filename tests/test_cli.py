"""Tests for the heapinspect command line driver."""

import io
import json

import pytest

from heapinspect.cli import InspectionKind, build_parser, main, run_inspections, selected_inspections
from heapinspect.errors import InvalidConfigurationError
from heapinspect.graph import InstanceRef
from heapinspect.output import SEPARATOR


@pytest.fixture
def snapshot_path(tmp_path, graph):
    """Snapshot file with duplicated strings and one self-referencing node."""
    for i in range(3):
        graph.add_string(10 + i, 20 + i, "dup")
    graph.add_instance(1, "com.example.Node", {"next": InstanceRef(1), "size": 0})

    path = tmp_path / "heap.json"
    graph.save(path)
    return path


def test_no_arguments_prints_usage(capsys):
    assert main([]) == 0
    captured = capsys.readouterr()
    assert "usage:" in captured.out
    assert "DuplicateStringInspector inspection" not in captured.out


def test_help_flag_exits_cleanly(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--help"])
    assert exc_info.value.code == 0
    assert "usage:" in capsys.readouterr().out


def test_default_selection():
    args = build_parser().parse_args(["heap.json"])
    assert selected_inspections(args) == [InspectionKind.DUPLICATE_STRINGS]


def test_selection_order_is_fixed():
    args = build_parser().parse_args(["-s", "-d", "heap.json"])
    assert selected_inspections(args) == [InspectionKind.DUPLICATE_STRINGS, InspectionKind.SELF_REFERENCES]


def test_runs_selected_inspections(snapshot_path, capsys, expected_report):
    assert main(["-d", "-s", "--duplicates-threshold", "3", str(snapshot_path)]) == 0

    out = capsys.readouterr().out
    assert out == expected_report(
        "DuplicateStringInspector", '"dup" : 3 times'
    ) + expected_report(
        "SelfReferencingObjectsInspector", '"com.example.Node" class has 1 self references'
    )


def test_default_threshold_hides_small_counts(snapshot_path, capsys, expected_report):
    assert main([str(snapshot_path)]) == 0
    assert capsys.readouterr().out == expected_report(
        "DuplicateStringInspector", "No significant amounts of duplicates found"
    )


def test_output_file(snapshot_path, tmp_path, capsys):
    report = tmp_path / "report.txt"

    assert main(["-s", "-o", str(report), str(snapshot_path)]) == 0

    assert capsys.readouterr().out == ""
    with open(report, encoding="utf-8", newline="") as f:
        content = f.read()
    assert content.startswith(SEPARATOR + "SelfReferencingObjectsInspector inspection" + SEPARATOR)


def test_missing_snapshot(tmp_path, capsys):
    assert main([str(tmp_path / "absent.json")]) == 1
    assert "snapshot file not found" in capsys.readouterr().err


def test_invalid_snapshot(tmp_path, capsys):
    path = tmp_path / "heap.json"
    path.write_text("[]")
    assert main([str(path)]) == 1
    assert "heapinspect: error:" in capsys.readouterr().err


def test_negative_threshold_reported_before_output(snapshot_path, capsys):
    code = main(["-d", "-s", "--self-references-threshold", "-1", str(snapshot_path)])

    captured = capsys.readouterr()
    assert code == 1
    assert captured.out == ""
    assert "threshold must be >= 0" in captured.err


def test_run_inspections_validates_first(empty_graph):
    out = io.StringIO()
    with pytest.raises(InvalidConfigurationError):
        run_inspections(
            empty_graph,
            [InspectionKind.DUPLICATE_STRINGS, InspectionKind.SELF_REFERENCES],
            out,
            self_references_threshold=-5,
        )
    assert out.getvalue() == ""


def test_negative_threshold_leaves_no_output_file(snapshot_path, tmp_path, capsys):
    report = tmp_path / "report.txt"

    code = main(["-d", "--duplicates-threshold", "-3", "-o", str(report), str(snapshot_path)])

    assert code == 1
    assert not report.exists()
    assert "threshold must be >= 0" in capsys.readouterr().err


def test_non_integer_reference_reported(tmp_path, capsys):
    path = tmp_path / "heap.json"
    path.write_text(
        json.dumps({
            "classes": [{"name": "A", "fields": [{"name": "next"}]}],
            "instances": [{"id": 1, "class": "A", "fields": {"next": {"ref": [1]}}}],
        })
    )

    assert main(["-s", str(path)]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "heapinspect: error:" in captured.err
