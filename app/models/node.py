"""
NodeData - Pure Python data model for electrical nodes.

A node is a point of common potential in the circuit. Its voltage is
assigned only by the solver; the model only stores identity and the
reference flag.
"""

from dataclasses import dataclass

# Node names that are recognised as the 0 V reference (compared case-insensitively)
REFERENCE_NAMES = ("0", "GND")


def is_reference_name(node_id, names=REFERENCE_NAMES) -> bool:
    """Return True if ``node_id`` is one of the conventional ground names."""
    text = str(node_id).strip().upper()
    return any(text == name.upper() for name in names)


@dataclass
class NodeData:
    """
    Pure Python data class representing an electrical node.

    ``handle`` is the node's stable index in the owning graph's arena.
    It never changes for the lifetime of the node, even when other nodes
    are removed.
    """

    node_id: str
    handle: int = -1

    # Whether this node is the 0 V reference (kept in sync by CircuitGraph)
    is_reference: bool = False

    def __post_init__(self):
        self.node_id = str(self.node_id)

    def get_label(self) -> str:
        """Display label; the reference node is suffixed with "(ref)"."""
        if self.is_reference:
            return f"{self.node_id} (ref)"
        return self.node_id

    def __repr__(self) -> str:
        return f"NodeData({self.get_label()}, handle={self.handle})"
