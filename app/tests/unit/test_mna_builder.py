"""Tests for simulation/mna_builder.py: MNA matrix stamping."""

import math

import numpy as np
import pytest
from simulation.mna_builder import InvalidComponentWarning, build_mna_system
from tests.conftest import make_graph


class TestStamps:
    def test_resistor_stamp(self):
        graph = make_graph(["0", "1", "2"], [("R1", "1", "2", "R", 4.0)])
        system = build_mna_system(graph)
        assert system.node_order == ["1", "2"]
        expected = np.array([[0.25, -0.25], [-0.25, 0.25]])
        assert np.allclose(system.matrix, expected)

    def test_resistor_to_reference_only_touches_diagonal(self):
        graph = make_graph(["0", "1"], [("R1", "1", "0", "R", 2.0)])
        system = build_mna_system(graph)
        assert system.matrix.tolist() == [[0.5]]
        assert system.rhs.tolist() == [0.0]

    def test_current_source_stamp(self):
        graph = make_graph(
            ["0", "1", "2"],
            [("R1", "1", "2", "R", 1.0), ("I1", "1", "2", "I", 3.0)],
        )
        system = build_mna_system(graph)
        # Current leaves 'from' and enters 'to'
        assert system.rhs.tolist() == [-3.0, 3.0]

    def test_voltage_source_stamp(self, divider_circuit):
        system = build_mna_system(divider_circuit)
        assert system.node_order == ["1", "2"]
        assert system.source_order == ["V1"]
        assert system.size == 3
        # V1: 1 -> 0 (reference): only the node-1 entries are stamped
        assert system.matrix[0, 2] == 1.0
        assert system.matrix[2, 0] == 1.0
        assert system.matrix[1, 2] == 0.0
        assert system.rhs[2] == 10.0

    def test_floating_voltage_source_stamp(self, sample_circuit):
        system = build_mna_system(sample_circuit)
        n = len(system.node_order)
        a, b = system.node_order.index("1"), system.node_order.index("2")
        assert system.matrix[a, n] == 1.0
        assert system.matrix[b, n] == -1.0
        assert system.matrix[n, a] == 1.0
        assert system.matrix[n, b] == -1.0

    def test_matrix_is_symmetric(self, bridge_circuit):
        system = build_mna_system(bridge_circuit)
        assert np.allclose(system.matrix, system.matrix.T)

    def test_builder_does_not_modify_graph(self, divider_circuit):
        before = divider_circuit.to_dict()
        build_mna_system(divider_circuit)
        assert divider_circuit.to_dict() == before


class TestReferenceAndFloatingNodes:
    def test_reference_excluded_from_unknowns(self, divider_circuit):
        system = build_mna_system(divider_circuit)
        assert system.reference == "0"
        assert "0" not in system.node_order

    def test_isolated_node_is_floating(self):
        graph = make_graph(["0", "1", "9"], [("R1", "1", "0", "R", 10.0)])
        system = build_mna_system(graph)
        assert system.node_order == ["1"]
        assert system.floating_nodes == ["9"]

    def test_self_loop_only_node_is_floating(self):
        graph = make_graph(["0", "1"], [("R1", "1", "1", "R", 10.0)])
        system = build_mna_system(graph)
        assert system.floating_nodes == ["1"]
        assert system.is_trivial

    def test_empty_circuit_is_trivial(self):
        system = build_mna_system(make_graph(["0"], []))
        assert system.is_trivial
        assert system.matrix.shape == (0, 0)


class TestInvalidComponents:
    @pytest.mark.parametrize("value", [0.0, -10.0, float("inf"), float("nan")])
    def test_invalid_resistor_is_skipped(self, value):
        graph = make_graph(
            ["0", "1"],
            [("R1", "1", "0", "R", 10.0), ("R2", "1", "0", "R", value)],
        )
        system = build_mna_system(graph)
        assert system.skipped_branches == ["R2"]
        assert system.matrix.tolist() == [[0.1]]
        assert len(system.warnings) == 1
        warning = system.warnings[0]
        assert isinstance(warning, InvalidComponentWarning)
        assert warning.branch_id == "R2"

    def test_invalid_resistor_is_logged(self, caplog):
        graph = make_graph(["0", "1"], [("R1", "1", "0", "R", 0.0)])
        with caplog.at_level("WARNING"):
            build_mna_system(graph)
        assert "R1" in caplog.text

    def test_non_finite_source_is_zeroed(self):
        graph = make_graph(
            ["0", "1"],
            [("R1", "1", "0", "R", 10.0), ("V1", "1", "0", "V", float("nan"))],
        )
        system = build_mna_system(graph)
        assert system.source_order == ["V1"]
        assert system.source_values["V1"] == 0.0
        assert not any(math.isnan(v) for v in system.rhs)
        assert system.warnings[0].branch_id == "V1"
        assert system.skipped_branches == []
