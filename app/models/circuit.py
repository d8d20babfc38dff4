"""
CircuitGraph - Central data store for circuit topology.

Nodes and branches live in flat arenas addressed by stable integer
handles. A map from external string id to handle is kept only at the
model boundary, so the solver layers can work purely with indices.

Removing an entry leaves a tombstone (None) in its arena slot; handles of
the remaining entries never shift.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

from .branch import BranchData, BranchKind
from .node import REFERENCE_NAMES, NodeData, is_reference_name

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("from_node", "to_node", "kind", "value")


class DuplicateIdError(ValueError):
    """A node or branch with the same id already exists."""


class DanglingReferenceError(LookupError):
    """An id refers to a node or branch that does not exist."""

    def __str__(self) -> str:
        # LookupError would otherwise repr() the message like KeyError does
        return str(self.args[0]) if self.args else ""


@dataclass
class CircuitGraph:
    """
    Central data store holding the node/branch graph of a circuit.

    Mutators enforce the model invariants and raise ``DuplicateIdError`` or
    ``DanglingReferenceError`` instead of silently dropping data.
    """

    _nodes: list[Optional[NodeData]] = field(default_factory=list)
    _branches: list[Optional[BranchData]] = field(default_factory=list)
    _node_handles: dict[str, int] = field(default_factory=dict)
    _branch_handles: dict[str, int] = field(default_factory=dict)

    # Explicitly chosen reference node (None = resolve by name / order)
    _explicit_reference: Optional[str] = None

    reference_names: tuple[str, ...] = REFERENCE_NAMES

    # --- Queries ---

    def nodes(self) -> list[str]:
        """Live node ids in insertion order."""
        return [n.node_id for n in self._nodes if n is not None]

    def node_data(self) -> list[NodeData]:
        """Live NodeData objects in insertion order."""
        return [n for n in self._nodes if n is not None]

    def branches(self) -> list[BranchData]:
        """Live branches in insertion order."""
        return [b for b in self._branches if b is not None]

    def node(self, node_id) -> NodeData:
        return self._nodes[self.node_handle(node_id)]

    def branch(self, branch_id) -> BranchData:
        return self._branches[self.branch_handle(branch_id)]

    def node_handle(self, node_id) -> int:
        """Return the stable arena handle for a node id."""
        try:
            return self._node_handles[str(node_id)]
        except KeyError:
            raise DanglingReferenceError(f"Unknown node '{node_id}'") from None

    def branch_handle(self, branch_id) -> int:
        """Return the stable arena handle for a branch id."""
        try:
            return self._branch_handles[str(branch_id)]
        except KeyError:
            raise DanglingReferenceError(f"Unknown branch '{branch_id}'") from None

    def has_node(self, node_id) -> bool:
        return str(node_id) in self._node_handles

    def has_branch(self, branch_id) -> bool:
        return str(branch_id) in self._branch_handles

    def incident_branches(self, node_id) -> list[BranchData]:
        """All branches touching ``node_id`` (self-loops included once)."""
        node_id = str(node_id)
        self.node_handle(node_id)
        return [b for b in self.branches() if b.connects_node(node_id)]

    def has_kind(self, kind: BranchKind) -> bool:
        return any(b.kind is kind for b in self.branches())

    @property
    def node_count(self) -> int:
        return len(self._node_handles)

    @property
    def branch_count(self) -> int:
        return len(self._branch_handles)

    def is_empty(self) -> bool:
        return not self._node_handles

    # --- Reference node ---

    @property
    def reference(self) -> Optional[str]:
        """
        The 0 V reference node.

        An explicit choice (``set_reference``) wins; otherwise the first node
        named "0" or "GND"; otherwise the first node in insertion order.
        """
        if self._explicit_reference is not None and self.has_node(self._explicit_reference):
            return self._explicit_reference
        live = self.nodes()
        for node_id in live:
            if is_reference_name(node_id, self.reference_names):
                return node_id
        return live[0] if live else None

    def set_reference(self, node_id) -> None:
        """Pin the reference to ``node_id`` (None restores automatic resolution)."""
        if node_id is not None:
            node_id = str(node_id)
            self.node_handle(node_id)
        self._explicit_reference = node_id
        self._sync_reference_flags()

    def set_reference_names(self, names) -> None:
        """Change which node names resolve as the reference and refresh the flags."""
        self.reference_names = tuple(names)
        self._sync_reference_flags()

    def _sync_reference_flags(self) -> None:
        ref = self.reference
        for node in self.node_data():
            node.is_reference = node.node_id == ref

    # --- Node operations ---

    def add_node(self, node_id) -> NodeData:
        """Add a node to the circuit."""
        node_id = str(node_id)
        if node_id in self._node_handles:
            raise DuplicateIdError(f"Node '{node_id}' already exists")
        node = NodeData(node_id=node_id, handle=len(self._nodes))
        self._nodes.append(node)
        self._node_handles[node_id] = node.handle
        self._sync_reference_flags()
        return node

    def remove_node(self, node_id) -> list[BranchData]:
        """
        Remove a node.

        Side effect: every branch incident to the node is removed as well.
        The removed branches are returned so callers can report or undo them.
        """
        node_id = str(node_id)
        handle = self.node_handle(node_id)

        removed = [b for b in self.branches() if b.connects_node(node_id)]
        for branch in removed:
            self._drop_branch(branch.branch_id)

        self._nodes[handle] = None
        del self._node_handles[node_id]
        if self._explicit_reference == node_id:
            self._explicit_reference = None
        self._sync_reference_flags()

        if removed:
            logger.debug(
                "Removed node %s and %d incident branch(es): %s",
                node_id, len(removed), ", ".join(b.branch_id for b in removed),
            )
        return removed

    # --- Branch operations ---

    def add_branch(self, branch_id, from_node, to_node, kind, value) -> BranchData:
        """Add a branch between two existing nodes."""
        branch_id = str(branch_id)
        if branch_id in self._branch_handles:
            raise DuplicateIdError(f"Branch '{branch_id}' already exists")
        self.node_handle(from_node)
        self.node_handle(to_node)

        branch = BranchData(
            branch_id=branch_id,
            from_node=from_node,
            to_node=to_node,
            kind=kind,
            value=value,
        )
        self._branch_handles[branch_id] = len(self._branches)
        self._branches.append(branch)
        return branch

    def remove_branch(self, branch_id) -> BranchData:
        """Remove a branch by id and return it."""
        return self._drop_branch(str(branch_id))

    def _drop_branch(self, branch_id: str) -> BranchData:
        handle = self.branch_handle(branch_id)
        branch = self._branches[handle]
        self._branches[handle] = None
        del self._branch_handles[branch_id]
        return branch

    def update_branch(self, branch_id, **changes) -> BranchData:
        """
        Update fields of an existing branch.

        Accepted fields: from_node, to_node, kind, value. All changes are
        validated before any of them is applied.
        """
        branch = self.branch(branch_id)
        unknown = set(changes) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update branch field(s): {', '.join(sorted(unknown))}")

        for endpoint in ("from_node", "to_node"):
            if endpoint in changes:
                self.node_handle(changes[endpoint])

        updated = BranchData(
            branch_id=branch.branch_id,
            from_node=changes.get("from_node", branch.from_node),
            to_node=changes.get("to_node", branch.to_node),
            kind=changes.get("kind", branch.kind),
            value=changes.get("value", branch.value),
        )
        self._branches[self.branch_handle(branch_id)] = updated
        return updated

    # --- Graph operations ---

    def connected_components(self) -> list[list[str]]:
        """Group node ids into connected components (each in node order)."""
        adjacency: dict[str, set[str]] = {n: set() for n in self.nodes()}
        for b in self.branches():
            adjacency[b.from_node].add(b.to_node)
            adjacency[b.to_node].add(b.from_node)

        order = {n: i for i, n in enumerate(self.nodes())}
        seen: set[str] = set()
        components = []
        for start in self.nodes():
            if start in seen:
                continue
            seen.add(start)
            queue = deque([start])
            members = []
            while queue:
                current = queue.popleft()
                members.append(current)
                for neighbour in adjacency[current]:
                    if neighbour not in seen:
                        seen.add(neighbour)
                        queue.append(neighbour)
            components.append(sorted(members, key=order.__getitem__))
        return components

    # --- Circuit operations ---

    def clear(self) -> None:
        """Clear all circuit data."""
        self._nodes.clear()
        self._branches.clear()
        self._node_handles.clear()
        self._branch_handles.clear()
        self._explicit_reference = None

    def copy(self) -> "CircuitGraph":
        """Independent deep copy (handles are compacted)."""
        graph = CircuitGraph(reference_names=self.reference_names)
        graph.load_dict(self.to_dict())
        return graph

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Serialize circuit to dictionary (circuit file format)."""
        data = {
            "nodes": self.nodes(),
            "branches": [b.to_dict() for b in self.branches()],
        }
        if self._explicit_reference is not None:
            data["reference"] = self._explicit_reference
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CircuitGraph":
        """
        Deserialize circuit from dictionary.

        Branch endpoints must name listed nodes; ids must be unique.
        """
        graph = cls()
        graph.load_dict(data)
        return graph

    def load_dict(self, data: dict) -> None:
        """Replace this graph's contents with a deserialized circuit."""
        self.clear()
        for node_id in data.get("nodes", []):
            self.add_node(node_id)
        for branch_data in data.get("branches", []):
            branch = BranchData.from_dict(branch_data)
            self.add_branch(
                branch.branch_id, branch.from_node, branch.to_node, branch.kind, branch.value
            )
        if data.get("reference") is not None:
            self.set_reference(data["reference"])
