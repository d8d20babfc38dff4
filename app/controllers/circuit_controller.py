"""
CircuitController - Orchestrates node and branch CRUD operations.

This module contains no I/O. It manages the CircuitGraph and notifies
views of changes through an observer pattern.
"""

import logging
from typing import Any, Callable, Optional

from models.branch import DEFAULT_VALUES, BranchData, BranchKind
from models.circuit import CircuitGraph
from models.node import NodeData

logger = logging.getLogger(__name__)

# The sample circuit a fresh editor starts from:
# a 10 V source between nodes 1 and 2, each node loaded to ground.
SAMPLE_CIRCUIT = {
    "nodes": ["0", "1", "2"],
    "branches": [
        {"id": "R1", "from": "1", "to": "0", "type": "R", "value": 100},
        {"id": "R2", "from": "2", "to": "0", "type": "R", "value": 200},
        {"id": "V1", "from": "1", "to": "2", "type": "V", "value": 10},
    ],
}


class CircuitController:
    """
    Controller for circuit node and branch operations.

    Manages the CircuitGraph and notifies registered observers when
    the graph changes. Views register callbacks to stay in sync.

    Observer events:
        node_added (NodeData) - A new node was added
        node_removed (str) - A node was removed (by ID)
        branch_added (BranchData) - A new branch was added
        branch_removed (str) - A branch was removed (by ID)
        branch_updated (BranchData) - A branch's endpoints, kind or value changed
        reference_changed (str | None) - The reference node changed
        circuit_cleared (None) - The entire circuit was cleared
        model_loaded (None) - Circuit loaded from file or sample
        model_saved (None) - Circuit saved to file
        analysis_started (None) - A solve began
        analysis_completed (AnalysisResult) - A solve finished
    """

    def __init__(self, model: Optional[CircuitGraph] = None):
        self.model = model if model is not None else CircuitGraph()
        self._observers: list[Callable[[str, Any], None]] = []

    def add_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Register a callback for model change events."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Unregister a previously registered callback."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, event: str, data: Any) -> None:
        """Notify all observers of a model change."""
        for observer in self._observers:
            try:
                observer(event, data)
            except (TypeError, AttributeError, RuntimeError, ValueError, KeyError) as e:
                logger.error("Error notifying observer of %s: %s", event, e)

    # --- Id generation ---

    def next_node_id(self) -> str:
        """Smallest non-negative integer id not yet used by a node."""
        n = 0
        while self.model.has_node(str(n)):
            n += 1
        return str(n)

    def next_branch_id(self, kind) -> str:
        """First free id of the form R1, R2, ... (V1..., I1...) for ``kind``."""
        prefix = BranchKind.parse(kind).value
        n = 1
        while self.model.has_branch(f"{prefix}{n}"):
            n += 1
        return f"{prefix}{n}"

    # --- Node operations ---

    def add_node(self, node_id=None) -> NodeData:
        """
        Add a node to the circuit.

        Without an explicit id the next free integer id is used.
        """
        if node_id is None:
            node_id = self.next_node_id()
        node = self.model.add_node(node_id)
        self._notify('node_added', node)
        return node

    def remove_node(self, node_id) -> list[BranchData]:
        """
        Remove a node and every branch connected to it.

        A ``branch_removed`` event is sent for each cascaded branch before
        ``node_removed``.
        """
        removed = self.model.remove_node(node_id)
        for branch in removed:
            self._notify('branch_removed', branch.branch_id)
        self._notify('node_removed', str(node_id))
        return removed

    def set_reference(self, node_id) -> None:
        """Pin the reference node (None restores automatic resolution)."""
        self.model.set_reference(node_id)
        self._notify('reference_changed', self.model.reference)

    # --- Branch operations ---

    def add_branch(self, kind, from_node, to_node, value=None,
                   branch_id=None) -> BranchData:
        """
        Create and add a new branch.

        Generates a unique ID (R1, R2, V1, etc.) unless one is given, and
        uses the kind's default value when ``value`` is None.

        Returns:
            The newly created BranchData.
        """
        kind = BranchKind.parse(kind)
        if branch_id is None:
            branch_id = self.next_branch_id(kind)
        if value is None:
            value = DEFAULT_VALUES[kind]
        branch = self.model.add_branch(branch_id, from_node, to_node, kind, value)
        self._notify('branch_added', branch)
        return branch

    def remove_branch(self, branch_id) -> BranchData:
        """Remove a branch by id."""
        branch = self.model.remove_branch(branch_id)
        self._notify('branch_removed', branch.branch_id)
        return branch

    def update_branch(self, branch_id, **changes) -> BranchData:
        """Update a branch's endpoints, kind or value."""
        branch = self.model.update_branch(branch_id, **changes)
        self._notify('branch_updated', branch)
        return branch

    def update_branch_value(self, branch_id, value) -> BranchData:
        """Update a branch's value (float or SI string like "4.7k")."""
        return self.update_branch(branch_id, value=value)

    # --- Circuit operations ---

    def clear_circuit(self) -> None:
        """Clear the entire circuit."""
        self.model.clear()
        self._notify('circuit_cleared', None)

    def load_circuit(self, data: dict) -> None:
        """
        Replace the circuit with a deserialized one.

        The data is loaded into a scratch graph first so a bad file leaves
        the current circuit untouched.
        """
        CircuitGraph.from_dict(data)
        self.model.load_dict(data)
        self._notify('model_loaded', None)

    def reset_to_sample(self) -> None:
        """Replace the circuit with the built-in three-node sample circuit."""
        self.load_circuit(SAMPLE_CIRCUIT)
