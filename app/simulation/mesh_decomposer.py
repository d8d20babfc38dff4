"""
simulation/mesh_decomposer.py

Expresses solved branch currents as a superposition of mesh (loop)
currents over a fundamental cycle basis.

With C the branch×cycle incidence matrix (+1 / -1 / 0 by traversal
direction), the mesh currents m are the least-squares solution of
C·m ≈ i_branch, found from the normal equations

    (Cᵀ·C) · m = Cᵀ · i_branch

and solved with the same Gaussian-elimination routine as the MNA system.
The fit is exact for circuits made only of resistors and voltage
sources; independent current sources are refused.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from models.branch import BranchKind
from models.circuit import CircuitGraph

from .cycle_basis import Cycle, CycleBasis, find_graph_cycles
from .linear_solver import PIVOT_EPSILON, solve

logger = logging.getLogger(__name__)


class UnsupportedTopologyError(ValueError):
    """Mesh decomposition is not defined for this circuit."""


@dataclass
class MeshSolution:
    """Mesh currents aligned with ``cycles``, plus the incidence used to get them."""

    cycles: list[Cycle]
    mesh_currents: list[float]
    branch_order: list[str]
    incidence: np.ndarray
    reconstructed_currents: dict[str, float] = field(default_factory=dict)

    def max_reconstruction_error(self, branch_currents: dict[str, float]) -> float:
        """Largest |i_branch - (C·m)_branch| over all branches."""
        if not self.branch_order:
            return 0.0
        return max(
            abs(branch_currents.get(bid, 0.0) - self.reconstructed_currents[bid])
            for bid in self.branch_order
        )


def build_incidence_matrix(branch_ids: list[str], cycles: list[Cycle]) -> np.ndarray:
    """
    Branch×cycle incidence matrix.

    Entry (b, k) is +1 if cycle k traverses branch b along its from->to
    direction, -1 if against it and 0 if the cycle does not use it.
    """
    row = {bid: i for i, bid in enumerate(branch_ids)}
    incidence = np.zeros((len(branch_ids), len(cycles)))
    for k, cycle in enumerate(cycles):
        for bid, sign in cycle.branches:
            if bid not in row:
                raise ValueError(f"Cycle {k} uses branch {bid}, which is not in the branch list")
            incidence[row[bid], k] = sign
    return incidence


def decompose_mesh_currents(
    graph: CircuitGraph,
    branch_currents: dict[str, float],
    basis: Optional[CycleBasis] = None,
    epsilon: float = PIVOT_EPSILON,
) -> MeshSolution:
    """
    Fit one mesh current per fundamental cycle to ``branch_currents``.

    Raises:
        UnsupportedTopologyError: the circuit has a current source, or no cycles.
        SingularMatrixError: the normal equations have no unique solution.
    """
    if graph.has_kind(BranchKind.CURRENT_SOURCE):
        raise UnsupportedTopologyError(
            "Mesh currents are not defined for circuits with independent current sources"
        )

    if basis is None:
        basis = find_graph_cycles(graph)
    if not basis.cycles:
        detail = " (graph is disconnected)" if not basis.is_connected else ""
        raise UnsupportedTopologyError(f"Circuit has no independent loops{detail}")

    branch_order = [b.branch_id for b in graph.branches()]
    incidence = build_incidence_matrix(branch_order, basis.cycles)
    currents = np.array([branch_currents.get(bid, 0.0) for bid in branch_order])

    normal_matrix = incidence.T @ incidence
    normal_rhs = incidence.T @ currents
    mesh = solve(normal_matrix, normal_rhs, epsilon=epsilon)

    reconstructed = incidence @ mesh
    logger.debug("Decomposed %d branch current(s) into %d mesh current(s)", len(branch_order), len(mesh))

    return MeshSolution(
        cycles=list(basis.cycles),
        mesh_currents=[float(v) for v in mesh],
        branch_order=branch_order,
        incidence=incidence,
        reconstructed_currents={bid: float(v) for bid, v in zip(branch_order, reconstructed)},
    )
