"""Pytest configuration and fixtures for heapinspect tests."""

import io

import pytest


@pytest.fixture
def sink():
    """In-memory report sink."""
    return io.StringIO()


@pytest.fixture
def empty_graph():
    """Heap graph without any instance."""
    from heapinspect.snapshot import SnapshotGraph

    return SnapshotGraph()


@pytest.fixture
def graph():
    """Heap graph with java.lang.Object and a few plain classes registered."""
    from heapinspect.snapshot import SnapshotGraph

    graph = SnapshotGraph()
    graph.add_class("java.lang.Object")
    graph.add_class("java.lang.String", {"value": "object", "hash": "int"}, "java.lang.Object")
    graph.add_class("com.example.Node", {"next": "object", "size": "int"}, "java.lang.Object")
    graph.add_class("com.example.LinkedNode", {"prev": "object"}, "com.example.Node")
    return graph


def _expected_report(name, *lines):
    from heapinspect.output import SEPARATOR

    return SEPARATOR + name + " inspection" + SEPARATOR + "".join(line + SEPARATOR for line in lines)


@pytest.fixture
def expected_report():
    """Build the exact text of a report from its inspector name and lines."""
    return _expected_report
