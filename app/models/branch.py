"""
BranchData - Pure Python data model for two-terminal circuit branches.

A branch connects an ordered pair of nodes. The ``from_node -> to_node``
direction defines the sign convention for the branch voltage
(V(from) - V(to)) and the branch current (positive when flowing from
``from_node`` to ``to_node``).

Branch kinds use single-letter codes as canonical identifiers:
'R' (resistor, ohms), 'V' (voltage source, volts), 'I' (current source, amps)
"""

import math
from dataclasses import dataclass
from enum import Enum

from .format_utils import parse_value_or_nan


class BranchKind(Enum):
    """Kinds of two-terminal elements supported by the solver."""

    RESISTOR = "R"
    VOLTAGE_SOURCE = "V"
    CURRENT_SOURCE = "I"

    @classmethod
    def parse(cls, kind) -> "BranchKind":
        """Accept a BranchKind, a code ('R', 'v') or a display name ('Voltage Source')."""
        if isinstance(kind, cls):
            return kind
        text = str(kind).strip()
        for member in cls:
            if text.upper() == member.value or text.lower() == BRANCH_DISPLAY_NAMES[member].lower():
                return member
        raise ValueError(f"Unknown branch type '{kind}'. Valid types: R, V, I")

    @property
    def unit(self) -> str:
        return BRANCH_UNITS[self]


BRANCH_DISPLAY_NAMES = {
    BranchKind.RESISTOR: "Resistor",
    BranchKind.VOLTAGE_SOURCE: "Voltage Source",
    BranchKind.CURRENT_SOURCE: "Current Source",
}

BRANCH_UNITS = {
    BranchKind.RESISTOR: "Ω",
    BranchKind.VOLTAGE_SOURCE: "V",
    BranchKind.CURRENT_SOURCE: "A",
}

# Default values per branch kind (used by the controller when adding branches)
DEFAULT_VALUES = {
    BranchKind.RESISTOR: 100.0,
    BranchKind.VOLTAGE_SOURCE: 10.0,
    BranchKind.CURRENT_SOURCE: 0.01,
}


@dataclass
class BranchData:
    """
    Pure Python data class representing a circuit branch.

    ``value`` is always stored as a float. SI-prefixed strings ("1k", "4.7m")
    are parsed on construction; anything unparseable becomes NaN and is
    reported by the MNA builder rather than rejected here.
    """

    branch_id: str
    from_node: str
    to_node: str
    kind: BranchKind
    value: float

    def __post_init__(self):
        self.branch_id = str(self.branch_id)
        self.from_node = str(self.from_node)
        self.to_node = str(self.to_node)
        self.kind = BranchKind.parse(self.kind)
        self.value = parse_value_or_nan(self.value)

    @property
    def is_resistor(self) -> bool:
        return self.kind is BranchKind.RESISTOR

    @property
    def is_voltage_source(self) -> bool:
        return self.kind is BranchKind.VOLTAGE_SOURCE

    @property
    def is_current_source(self) -> bool:
        return self.kind is BranchKind.CURRENT_SOURCE

    @property
    def is_self_loop(self) -> bool:
        return self.from_node == self.to_node

    def has_valid_value(self) -> bool:
        """Resistors need a finite value > 0; sources need a finite value."""
        if not math.isfinite(self.value):
            return False
        if self.is_resistor:
            return self.value > 0
        return True

    def connects_node(self, node_id: str) -> bool:
        """Check if this branch touches the given node."""
        node_id = str(node_id)
        return self.from_node == node_id or self.to_node == node_id

    def other_node(self, node_id: str) -> str:
        """Return the endpoint opposite ``node_id``."""
        node_id = str(node_id)
        if node_id == self.from_node:
            return self.to_node
        if node_id == self.to_node:
            return self.from_node
        raise ValueError(f"Branch {self.branch_id} does not touch node {node_id}")

    def to_dict(self) -> dict:
        """Serialize branch to dictionary (circuit file format)."""
        return {
            "id": self.branch_id,
            "from": self.from_node,
            "to": self.to_node,
            "type": self.kind.value,
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BranchData":
        """Deserialize branch from dictionary."""
        return cls(
            branch_id=data["id"],
            from_node=data["from"],
            to_node=data["to"],
            kind=data["type"],
            value=data["value"],
        )

    def __repr__(self) -> str:
        return (
            f"BranchData({self.branch_id}: {self.from_node}->{self.to_node}, "
            f"{self.kind.value}={self.value})"
        )
