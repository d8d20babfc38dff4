"""
simulation/mna_builder.py

Assembles the Modified Nodal Analysis system for a resistive circuit:

    | G   B | |V|   |I_inj|
    | Bᵀ  0 | |J| = |E    |

G is the N×N conductance matrix over the non-reference nodes, B the N×M
incidence of the voltage sources, I_inj the current-source injections
and E the source voltages. J holds the voltage-source currents, positive
when flowing from the source's ``from`` node to its ``to`` node through
the source.

Invalid branches are skipped with an ``InvalidComponentWarning`` instead
of aborting the build, so a circuit being edited live still solves.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from models.circuit import CircuitGraph

logger = logging.getLogger(__name__)


class InvalidComponentWarning(UserWarning):
    """A branch was skipped (or neutralised) because its value is unusable."""

    def __init__(self, branch_id: str, value: float, reason: str):
        super().__init__(f"{branch_id}: {reason} (value={value})")
        self.branch_id = branch_id
        self.value = value
        self.reason = reason


@dataclass
class LinearSystem:
    """An assembled MNA system plus the bookkeeping needed to read it back."""

    matrix: np.ndarray
    rhs: np.ndarray
    reference: Optional[str]
    node_order: list[str] = field(default_factory=list)
    source_order: list[str] = field(default_factory=list)
    floating_nodes: list[str] = field(default_factory=list)
    skipped_branches: list[str] = field(default_factory=list)
    source_values: dict[str, float] = field(default_factory=dict)
    warnings: list[InvalidComponentWarning] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.node_order) + len(self.source_order)

    @property
    def is_trivial(self) -> bool:
        """No unknowns at all: every node sits at 0 V."""
        return self.size == 0


def build_mna_system(graph: CircuitGraph) -> LinearSystem:
    """Build the MNA system for ``graph``. Pure function; the graph is not modified."""
    reference = graph.reference
    branches = graph.branches()

    warnings: list[InvalidComponentWarning] = []
    skipped: list[str] = []
    source_values: dict[str, float] = {}
    active = []

    for br in branches:
        if br.is_resistor and not br.has_valid_value():
            warning = InvalidComponentWarning(
                br.branch_id, br.value, "resistance must be a finite value greater than zero; branch skipped"
            )
            logger.warning("Skipping %s", warning)
            warnings.append(warning)
            skipped.append(br.branch_id)
            continue
        if not br.is_resistor:
            value = br.value
            if not math.isfinite(value):
                warning = InvalidComponentWarning(
                    br.branch_id, value, "source value is not a finite number; treated as 0"
                )
                logger.warning("Neutralising %s", warning)
                warnings.append(warning)
                value = 0.0
            source_values[br.branch_id] = value
        active.append(br)

    # Nodes with no active (non self-loop) branch carry no equation: report them at 0 V
    touched: set[str] = set()
    for br in active:
        if not br.is_self_loop:
            touched.add(br.from_node)
            touched.add(br.to_node)

    node_order = []
    floating = []
    for node_id in graph.nodes():
        if node_id == reference:
            continue
        if node_id in touched:
            node_order.append(node_id)
        else:
            floating.append(node_id)

    sources = [br for br in active if br.is_voltage_source]
    source_order = [br.branch_id for br in sources]

    n = len(node_order)
    m = len(sources)
    size = n + m

    matrix = np.zeros((size, size))
    rhs = np.zeros(size)

    index = {node_id: i for i, node_id in enumerate(node_order)}

    for br in active:
        a = index.get(br.from_node, -1)
        b = index.get(br.to_node, -1)

        if br.is_resistor:
            g = 1.0 / br.value
            if a >= 0:
                matrix[a, a] += g
            if b >= 0:
                matrix[b, b] += g
            if a >= 0 and b >= 0:
                matrix[a, b] -= g
                matrix[b, a] -= g

        elif br.is_current_source:
            current = source_values[br.branch_id]
            # Leaves 'from', enters 'to'
            if a >= 0:
                rhs[a] -= current
            if b >= 0:
                rhs[b] += current

    for k, br in enumerate(sources):
        a = index.get(br.from_node, -1)
        b = index.get(br.to_node, -1)
        row = n + k
        if a >= 0:
            matrix[a, row] += 1.0
            matrix[row, a] += 1.0
        if b >= 0:
            matrix[b, row] -= 1.0
            matrix[row, b] -= 1.0
        rhs[row] = source_values[br.branch_id]

    logger.debug(
        "Built MNA system: %d node unknown(s), %d voltage source(s), reference=%s, floating=%s",
        n, m, reference, floating,
    )

    return LinearSystem(
        matrix=matrix,
        rhs=rhs,
        reference=reference,
        node_order=node_order,
        source_order=source_order,
        floating_nodes=floating,
        skipped_branches=skipped,
        source_values=source_values,
        warnings=warnings,
    )
