#!/usr/bin/env python3
"""Example: Basic Heap Inspection

Builds a small heap graph in memory, runs both inspections over it, and
saves the graph as a snapshot document usable with the ``heapinspect`` CLI.
"""

import sys


def main():
    print("Basic Heap Inspection Example")
    print("=" * 40)

    from heapinspect import (
        DuplicateStringsInspector,
        InstanceRef,
        SelfReferencingObjectsInspector,
        SnapshotGraph,
    )

    # Build a heap with repeated strings and a few self-referencing nodes
    print("\n1. Building heap graph...")
    graph = SnapshotGraph()
    graph.add_class("java.lang.Object")
    graph.add_class("com.example.Node", {"next": "object", "size": "int"}, "java.lang.Object")

    next_id = 1
    for i in range(250):
        content = "application/json" if i % 2 else f"item_{i}"
        graph.add_string(next_id, next_id + 1, content)
        next_id += 2

    for i in range(5):
        graph.add_instance(next_id, "com.example.Node", {"next": InstanceRef(next_id), "size": i})
        next_id += 1

    print(f"   {graph.instance_count} instances, {graph.class_count} classes")

    # Run inspections one after another, each with a fresh inspector
    print("2. Running inspections...")
    DuplicateStringsInspector(graph, sys.stdout, threshold=100).inspect()
    SelfReferencingObjectsInspector(graph, sys.stdout).inspect()

    # Optional: save for the command line tool
    # graph.save("heap.json")
    # then: heapinspect -d -s heap.json

    print("\nDone!")


if __name__ == "__main__":
    main()
