"""Tests for simulation/cycle_basis.py: fundamental cycles of the circuit graph."""

import pytest
from models.branch import BranchData
from models.circuit import DanglingReferenceError
from simulation.cycle_basis import BACKWARD, FORWARD, find_fundamental_cycles, find_graph_cycles
from simulation.nodal_analysis import solve_nodal
from tests.conftest import make_graph


def _expected_count(graph):
    return graph.branch_count - graph.node_count + len(graph.connected_components())


def _walk_is_closed(graph, cycle):
    """Follow the cycle's branches from nodes[0] and check it returns there."""
    position = cycle.nodes[0]
    for branch_id, sign in cycle.branches:
        br = graph.branch(branch_id)
        start, end = (br.from_node, br.to_node) if sign == FORWARD else (br.to_node, br.from_node)
        if start != position:
            return False
        position = end
    return position == cycle.nodes[0]


class TestCycleCount:
    @pytest.mark.parametrize(
        "fixture, expected",
        [
            ("divider_circuit", 1),
            ("sample_circuit", 1),
            ("two_mesh_circuit", 2),
            ("current_source_circuit", 1),
            ("bridge_circuit", 3),
        ],
    )
    def test_count_matches_cycle_space_dimension(self, fixture, expected, request):
        graph = request.getfixturevalue(fixture)
        basis = find_graph_cycles(graph)
        assert len(basis) == expected
        assert len(basis) == _expected_count(graph)

    def test_tree_has_no_cycles(self):
        graph = make_graph(
            ["0", "1", "2", "3"],
            [("R1", "1", "0", "R", 1), ("R2", "2", "1", "R", 1), ("R3", "3", "1", "R", 1)],
        )
        basis = find_graph_cycles(graph)
        assert basis.cycles == []
        assert sorted(basis.tree_branches) == ["R1", "R2", "R3"]

    def test_disconnected_graph(self, caplog):
        graph = make_graph(
            ["0", "1", "2", "3", "4"],
            [
                ("R1", "1", "0", "R", 1),
                ("R2", "1", "0", "R", 1),
                ("R3", "2", "3", "R", 1),
            ],
        )
        with caplog.at_level("WARNING"):
            basis = find_graph_cycles(graph)
        assert basis.component_count == 3
        assert not basis.is_connected
        assert len(basis) == _expected_count(graph) == 1
        assert "disconnected" in caplog.text

    def test_empty(self):
        basis = find_fundamental_cycles([], [])
        assert len(basis) == 0
        assert basis.component_count == 0


class TestCycleShape:
    def test_walk_starts_at_chord_from_node(self, sample_circuit):
        basis = find_graph_cycles(sample_circuit)
        cycle = basis.cycles[0]
        # R1 and R2 form the DFS tree from node 0; V1 (1 -> 2) is the chord
        assert cycle.closing_branch == "V1"
        assert cycle.nodes == ["1", "0", "2"]
        assert cycle.branches == [("R1", FORWARD), ("R2", BACKWARD), ("V1", BACKWARD)]

    @pytest.mark.parametrize("fixture", ["two_mesh_circuit", "bridge_circuit"])
    def test_every_cycle_is_a_closed_walk(self, fixture, request):
        graph = request.getfixturevalue(fixture)
        for cycle in find_graph_cycles(graph):
            assert _walk_is_closed(graph, cycle)
            assert cycle.branches[-1][0] == cycle.closing_branch

    def test_self_loop(self):
        graph = make_graph(["0", "1"], [("R1", "1", "0", "R", 1), ("R2", "1", "1", "R", 1)])
        basis = find_graph_cycles(graph)
        assert len(basis) == 1
        cycle = basis.cycles[0]
        assert cycle.nodes == ["1"]
        assert cycle.branches == [("R2", FORWARD)]

    def test_parallel_branches_are_distinguished(self):
        graph = make_graph(["0", "1"], [("R1", "1", "0", "R", 1), ("R2", "1", "0", "R", 2)])
        cycle = find_graph_cycles(graph).cycles[0]
        assert cycle.branch_ids() == ["R1", "R2"]
        assert cycle.orientation("R1") == FORWARD
        assert cycle.orientation("R2") == BACKWARD
        assert cycle.orientation("R9") == 0

    def test_to_dict(self, sample_circuit):
        data = find_graph_cycles(sample_circuit).cycles[0].to_dict()
        assert data["closing_branch"] == "V1"
        assert data["branches"][0] == ["R1", 1]


class TestKirchhoffVoltageLaw:
    @pytest.mark.parametrize(
        "fixture", ["divider_circuit", "sample_circuit", "two_mesh_circuit", "bridge_circuit"]
    )
    def test_kvl_around_every_cycle(self, fixture, request):
        graph = request.getfixturevalue(fixture)
        solution = solve_nodal(graph)
        for cycle in find_graph_cycles(graph):
            total = 0.0
            for branch_id, sign in cycle.branches:
                total += sign * solution.branch_voltage(graph, branch_id)
            assert abs(total) < 1e-9


class TestErrors:
    def test_unknown_endpoint_raises(self):
        branches = [BranchData("R1", "1", "missing", "R", 1)]
        with pytest.raises(DanglingReferenceError, match="missing"):
            find_fundamental_cycles(["1"], branches)
