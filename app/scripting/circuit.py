"""
Circuit: high-level scripting API for programmatic circuit manipulation.

Wraps the existing model/controller/simulation layers behind a
user-friendly interface.
"""

import json
from pathlib import Path
from typing import Optional, Union

from controllers.analysis_controller import AnalysisController, AnalysisResult
from controllers.circuit_controller import CircuitController
from controllers.file_controller import read_circuit_file
from models.branch import BranchData, BranchKind
from models.circuit import CircuitGraph
from simulation.csv_exporter import export_history, export_operating_point, write_csv
from simulation.cycle_basis import CycleBasis, find_graph_cycles
from simulation.settings import SolverSettings


class Circuit:
    """A scriptable circuit that can be built, solved, and saved programmatically.

    Wraps CircuitGraph, CircuitController, and AnalysisController to provide
    a clean API for headless circuit workflows.

    Args:
        model: An existing CircuitGraph to wrap. If None, creates an empty circuit.
        settings: Solver settings. If None, the defaults are used.
    """

    def __init__(self, model: Optional[CircuitGraph] = None,
                 settings: Optional[SolverSettings] = None):
        self._model = model if model is not None else CircuitGraph()
        self._controller = CircuitController(self._model)
        self._analysis = AnalysisController(self._model, self._controller, settings)

    # --- Factory methods ---

    @classmethod
    def load(cls, path: Union[str, Path],
             settings: Optional[SolverSettings] = None) -> "Circuit":
        """Load a circuit from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist.
            json.JSONDecodeError: If the file is not valid JSON.
            ValueError: If the JSON structure is invalid.
        """
        return cls(read_circuit_file(path), settings)

    @classmethod
    def sample(cls) -> "Circuit":
        """The built-in three-node sample circuit."""
        circuit = cls()
        circuit._controller.reset_to_sample()
        return circuit

    # --- Node operations ---

    def add_node(self, node_id=None) -> str:
        """Add a node and return its id (the next free integer if none is given)."""
        return self._controller.add_node(node_id).node_id

    def add_nodes(self, *node_ids) -> list[str]:
        """Add several nodes at once."""
        return [self.add_node(node_id) for node_id in node_ids]

    def remove_node(self, node_id) -> list[str]:
        """Remove a node. Returns the ids of the branches removed with it."""
        return [b.branch_id for b in self._controller.remove_node(node_id)]

    def set_reference(self, node_id) -> None:
        """Choose the 0 V reference node (None for automatic)."""
        self._controller.set_reference(node_id)

    # --- Branch operations ---

    def _add(self, kind: BranchKind, from_node, to_node, value, branch_id) -> str:
        for node_id in (from_node, to_node):
            if not self._model.has_node(node_id):
                self._controller.add_node(node_id)
        return self._controller.add_branch(kind, from_node, to_node, value, branch_id).branch_id

    def add_resistor(self, from_node, to_node, value=None, branch_id=None) -> str:
        """Add a resistor (ohms, or an SI string like "4.7k").

        Missing endpoint nodes are created. Returns the branch id (e.g. "R1").
        """
        return self._add(BranchKind.RESISTOR, from_node, to_node, value, branch_id)

    def add_voltage_source(self, from_node, to_node, value=None, branch_id=None) -> str:
        """Add a voltage source with V(from) - V(to) = value."""
        return self._add(BranchKind.VOLTAGE_SOURCE, from_node, to_node, value, branch_id)

    def add_current_source(self, from_node, to_node, value=None, branch_id=None) -> str:
        """Add a current source pushing ``value`` amps from ``from_node`` to ``to_node``."""
        return self._add(BranchKind.CURRENT_SOURCE, from_node, to_node, value, branch_id)

    def remove_branch(self, branch_id: str) -> None:
        self._controller.remove_branch(branch_id)

    def update_value(self, branch_id: str, value) -> None:
        """Update a branch's value (e.g. 220 or "2.2k")."""
        self._controller.update_branch_value(branch_id, value)

    # --- Analysis ---

    def solve(self, method: str = "nodal") -> AnalysisResult:
        """Solve the circuit.

        Args:
            method: "nodal" or "mesh". Mesh also reports mesh currents when
                the circuit supports them and falls back to nodal results
                otherwise.

        Returns:
            An AnalysisResult. Solver failures are reported through
            ``result.success`` and ``result.error`` rather than raised.

        Raises:
            ValueError: If the method is not recognized.
        """
        return self._analysis.run_analysis(method)

    def validate(self) -> AnalysisResult:
        """Validate the circuit without solving it."""
        return self._analysis.validate_circuit()

    def cycles(self) -> CycleBasis:
        """Fundamental cycle basis of the circuit graph."""
        return find_graph_cycles(self._model)

    # --- Persistence ---

    def save(self, path: Union[str, Path]) -> None:
        """Save the circuit to a JSON file.

        Args:
            path: Destination file path.
        """
        Path(path).write_text(json.dumps(self._model.to_dict(), indent=2))

    def to_csv(self, path: Union[str, Path], result: Optional[AnalysisResult] = None) -> None:
        """Export a solve result to a CSV file.

        Args:
            path: Destination CSV file path.
            result: A successful AnalysisResult. If None, the circuit is
                solved with the current method first.

        Raises:
            ValueError: If the result is a failure.
        """
        if result is None:
            result = self._analysis.run_analysis()
        if not result.success:
            raise ValueError(f"Cannot export failed result: {result.error}")
        write_csv(
            export_operating_point(
                result.node_voltages,
                result.branch_currents,
                result.mesh_currents,
                precision=self._analysis.settings.csv_precision,
            ),
            path,
        )

    def history_to_csv(self, path: Union[str, Path]) -> None:
        """Export every solve made through this circuit to a CSV file."""
        write_csv(export_history(self._analysis.history, self._analysis.settings.csv_precision), path)

    # --- Properties ---

    @property
    def nodes(self) -> list[str]:
        return self._model.nodes()

    @property
    def branches(self) -> list[BranchData]:
        return self._model.branches()

    @property
    def reference(self) -> Optional[str]:
        return self._model.reference

    @property
    def history(self):
        """The SolveHistory of this circuit's solves."""
        return self._analysis.history

    @property
    def model(self) -> CircuitGraph:
        """Direct access to the underlying CircuitGraph."""
        return self._model
