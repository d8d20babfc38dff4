"""
Pure Python data models for the mesh & nodal solver.

This package holds the circuit graph (nodes and branches) and nothing
else: no solver logic and no I/O beyond dict (de)serialization.
"""

from .branch import BRANCH_DISPLAY_NAMES, DEFAULT_VALUES, BranchData, BranchKind
from .circuit import CircuitGraph, DanglingReferenceError, DuplicateIdError
from .node import REFERENCE_NAMES, NodeData

__all__ = [
    "CircuitGraph",
    "BranchData",
    "BranchKind",
    "BRANCH_DISPLAY_NAMES",
    "DEFAULT_VALUES",
    "NodeData",
    "REFERENCE_NAMES",
    "DuplicateIdError",
    "DanglingReferenceError",
]
