"""
simulation/diagnostics.py

Turns typed solver errors into student-friendly explanations with
likely causes and suggestions. Nothing here is retried: every solve is
a one-shot, caller-triggered operation.
"""

from dataclasses import dataclass
from enum import Enum

from models.circuit import DanglingReferenceError, DuplicateIdError

from .linear_solver import SingularMatrixError
from .mesh_decomposer import UnsupportedTopologyError


class ErrorCategory(Enum):
    """Categories of solve failures."""

    SINGULAR_MATRIX = "singular_matrix"
    UNSUPPORTED_TOPOLOGY = "unsupported_topology"
    DANGLING_REFERENCE = "dangling_reference"
    DUPLICATE_ID = "duplicate_id"
    UNKNOWN = "unknown"


# Checked in order; the first matching exception type wins
_ERROR_TYPES: list[tuple[type, ErrorCategory]] = [
    (SingularMatrixError, ErrorCategory.SINGULAR_MATRIX),
    (UnsupportedTopologyError, ErrorCategory.UNSUPPORTED_TOPOLOGY),
    (DanglingReferenceError, ErrorCategory.DANGLING_REFERENCE),
    (DuplicateIdError, ErrorCategory.DUPLICATE_ID),
]


@dataclass
class ErrorDiagnosis:
    """Structured diagnosis of a solve failure."""

    category: ErrorCategory
    message: str
    causes: list[str]
    suggestions: list[str]


_DIAGNOSES: dict[ErrorCategory, ErrorDiagnosis] = {
    ErrorCategory.SINGULAR_MATRIX: ErrorDiagnosis(
        category=ErrorCategory.SINGULAR_MATRIX,
        message="Circuit has no solution; check grounding and sources.",
        causes=[
            "Part of the circuit has no path to the reference (ground) node",
            "Two voltage sources are connected in parallel with different values",
            "A loop made only of voltage sources",
            "A current source has no path for its current to flow",
        ],
        suggestions=[
            "Connect every part of the circuit to the reference node (\"0\" or \"GND\")",
            "Make sure no two voltage sources are directly in parallel",
            "Put a resistor in series with voltage-source loops",
            "Give every current source a resistive return path",
        ],
    ),
    ErrorCategory.UNSUPPORTED_TOPOLOGY: ErrorDiagnosis(
        category=ErrorCategory.UNSUPPORTED_TOPOLOGY,
        message="Mesh currents could not be computed for this circuit; nodal results are shown instead.",
        causes=[
            "The circuit contains an independent current source",
            "The circuit has no closed loops",
        ],
        suggestions=[
            "Use nodal analysis for circuits with current sources",
            "Add branches that close a loop to get mesh currents",
        ],
    ),
    ErrorCategory.DANGLING_REFERENCE: ErrorDiagnosis(
        category=ErrorCategory.DANGLING_REFERENCE,
        message="A branch or command refers to a node or branch that does not exist.",
        causes=[
            "The node was removed (removing a node also removes its branches)",
            "A typo in a node or branch id",
        ],
        suggestions=[
            "Add the node before adding branches that use it",
            "Check node and branch ids for typos",
        ],
    ),
    ErrorCategory.DUPLICATE_ID: ErrorDiagnosis(
        category=ErrorCategory.DUPLICATE_ID,
        message="Two nodes or two branches share the same id.",
        causes=["An id was reused when adding a node or branch"],
        suggestions=["Give every node and every branch a unique id"],
    ),
    ErrorCategory.UNKNOWN: ErrorDiagnosis(
        category=ErrorCategory.UNKNOWN,
        message="The solve failed for an unexpected reason.",
        causes=[],
        suggestions=[
            "Check the circuit definition for mistakes",
            "Try a simpler circuit to isolate the problem",
        ],
    ),
}


def classify_error(error: BaseException) -> ErrorCategory:
    """Classify a solver exception."""
    for error_type, category in _ERROR_TYPES:
        if isinstance(error, error_type):
            return category
    return ErrorCategory.UNKNOWN


def diagnose_error(error: BaseException) -> ErrorDiagnosis:
    """Classify and return a full diagnosis for a solve failure."""
    return _DIAGNOSES[classify_error(error)]


def format_user_message(diagnosis: ErrorDiagnosis, detail: str = "") -> str:
    """Build a student-friendly error message string.

    *detail* (typically ``str(error)``) is appended when given.
    """
    parts = [diagnosis.message]
    if detail:
        parts.append(f"Details: {detail}")

    if diagnosis.causes:
        parts.append("\nCommon causes:")
        for cause in diagnosis.causes:
            parts.append(f"  - {cause}")

    if diagnosis.suggestions:
        parts.append("\nSuggestions:")
        for suggestion in diagnosis.suggestions:
            parts.append(f"  - {suggestion}")

    return "\n".join(parts)
