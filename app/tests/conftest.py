"""
Shared test fixtures for the mesh/nodal analyzer test suite.

All fixtures build pure-Python CircuitGraph objects.
"""

import sys
from pathlib import Path

# Ensure app/ is on sys.path so bare imports (models, simulation, controllers)
# work when running individual test files (e.g., python -m pytest app/tests/unit/test_foo.py).
_app_dir = str(Path(__file__).resolve().parent.parent)
if _app_dir not in sys.path:
    sys.path.insert(0, _app_dir)

import pytest
from models.circuit import CircuitGraph


def make_graph(nodes, branches, reference=None):
    """Helper to build a CircuitGraph from (id, from, to, kind, value) tuples."""
    graph = CircuitGraph()
    for node_id in nodes:
        graph.add_node(node_id)
    for branch_id, from_node, to_node, kind, value in branches:
        graph.add_branch(branch_id, from_node, to_node, kind, value)
    if reference is not None:
        graph.set_reference(reference)
    return graph


@pytest.fixture
def divider_circuit():
    """
    V1 (10 V) from node 1 to ground, R1 = R2 = 1k in series to ground.

        1 --R1-- 2 --R2-- 0
        1 --V1---------- 0
    """
    return make_graph(
        ["0", "1", "2"],
        [
            ("V1", "1", "0", "V", 10.0),
            ("R1", "1", "2", "R", 1000.0),
            ("R2", "2", "0", "R", 1000.0),
        ],
    )


@pytest.fixture
def sample_circuit():
    """
    The default sample circuit: a floating 10 V source between nodes 1
    and 2, each loaded to ground.

        R1: 1 -> 0, 100 Ω
        R2: 2 -> 0, 200 Ω
        V1: 1 -> 2, 10 V
    """
    return make_graph(
        ["0", "1", "2"],
        [
            ("R1", "1", "0", "R", 100.0),
            ("R2", "2", "0", "R", 200.0),
            ("V1", "1", "2", "V", 10.0),
        ],
    )


@pytest.fixture
def two_mesh_circuit():
    """
    Two-loop circuit sharing R3.

        1 --R1-- 2 --R2-- 3
        |        |        |
        V1       R3       V2
        |        |        |
        0 ------ 0 ------ 0
    """
    return make_graph(
        ["0", "1", "2", "3"],
        [
            ("V1", "1", "0", "V", 12.0),
            ("R1", "1", "2", "R", 100.0),
            ("R3", "2", "0", "R", 300.0),
            ("R2", "2", "3", "R", 200.0),
            ("V2", "3", "0", "V", 5.0),
        ],
    )


@pytest.fixture
def current_source_circuit():
    """
    1 mA current source pushing current into node 1 through a 1k resistor.

        I1: 0 -> 1, 1 mA
        R1: 1 -> 0, 1k
    """
    return make_graph(
        ["0", "1"],
        [
            ("I1", "0", "1", "I", 0.001),
            ("R1", "1", "0", "R", 1000.0),
        ],
    )


@pytest.fixture
def bridge_circuit():
    """
    Wheatstone bridge with a detector resistor R5 across nodes 2-3.

        V1: 1 -> 0, 10 V
        R1: 1 -> 2, R2: 1 -> 3, R3: 2 -> 0, R4: 3 -> 0, R5: 2 -> 3
    """
    return make_graph(
        ["0", "1", "2", "3"],
        [
            ("V1", "1", "0", "V", 10.0),
            ("R1", "1", "2", "R", 100.0),
            ("R2", "1", "3", "R", 220.0),
            ("R3", "2", "0", "R", 330.0),
            ("R4", "3", "0", "R", 470.0),
            ("R5", "2", "3", "R", 1000.0),
        ],
    )
