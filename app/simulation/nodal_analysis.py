"""
simulation/nodal_analysis.py

Runs one static MNA solve and reads node voltages and branch currents
back out of the solution vector.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from models.circuit import CircuitGraph

from .linear_solver import PIVOT_EPSILON, solve
from .mna_builder import InvalidComponentWarning, LinearSystem, build_mna_system

logger = logging.getLogger(__name__)


@dataclass
class NodalSolution:
    """Result of a nodal (MNA) solve."""

    reference: Optional[str]
    node_voltages: dict[str, float] = field(default_factory=dict)
    branch_currents: dict[str, float] = field(default_factory=dict)
    source_currents: dict[str, float] = field(default_factory=dict)
    warnings: list[InvalidComponentWarning] = field(default_factory=list)
    system: Optional[LinearSystem] = None

    def branch_voltage(self, graph: CircuitGraph, branch_id: str) -> float:
        """V(from) - V(to) for a branch of ``graph``."""
        br = graph.branch(branch_id)
        return self.node_voltages[br.from_node] - self.node_voltages[br.to_node]

    def kcl_residuals(self, graph: CircuitGraph) -> dict[str, float]:
        """Net current leaving each non-reference node (0 when KCL holds)."""
        residuals = {node_id: 0.0 for node_id in graph.nodes()}
        for br in graph.branches():
            current = self.branch_currents.get(br.branch_id, 0.0)
            residuals[br.from_node] += current
            residuals[br.to_node] -= current
        residuals.pop(self.reference, None)
        return residuals


def solve_nodal(graph: CircuitGraph, epsilon: float = PIVOT_EPSILON) -> NodalSolution:
    """
    Solve ``graph`` by Modified Nodal Analysis.

    Raises:
        SingularMatrixError: the circuit has no unique solution.
    """
    system = build_mna_system(graph)

    if system.is_trivial:
        x = np.zeros(0)
    else:
        x = solve(system.matrix, system.rhs, epsilon=epsilon)

    n = len(system.node_order)
    node_voltages = {node_id: 0.0 for node_id in graph.nodes()}
    for i, node_id in enumerate(system.node_order):
        node_voltages[node_id] = float(x[i])

    source_currents = {
        branch_id: float(x[n + k]) for k, branch_id in enumerate(system.source_order)
    }

    skipped = set(system.skipped_branches)
    branch_currents = {}
    for br in graph.branches():
        if br.branch_id in skipped:
            branch_currents[br.branch_id] = 0.0
        elif br.is_resistor:
            va = node_voltages[br.from_node]
            vb = node_voltages[br.to_node]
            branch_currents[br.branch_id] = (va - vb) / br.value
        elif br.is_current_source:
            branch_currents[br.branch_id] = system.source_values[br.branch_id]
        else:
            branch_currents[br.branch_id] = source_currents[br.branch_id]

    logger.debug("Nodal solve complete: %d unknown(s)", system.size)

    return NodalSolution(
        reference=system.reference,
        node_voltages=node_voltages,
        branch_currents=branch_currents,
        source_currents=source_currents,
        warnings=list(system.warnings),
        system=system,
    )
