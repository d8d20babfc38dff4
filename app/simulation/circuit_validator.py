"""
simulation/circuit_validator.py

Pre-solve circuit validation. Only an empty circuit blocks a solve;
everything else is reported as a warning and left for the solver to
accept or reject.
"""

from models.branch import BranchKind
from models.circuit import CircuitGraph


def validate_circuit(graph: CircuitGraph, method: str = "nodal"):
    """
    Validate circuit before solving.

    Args:
        graph: the circuit to check
        method: "nodal" or "mesh"

    Returns:
        (is_valid, errors, warnings) where:
            is_valid: bool, False if any errors found
            errors: list[str], problems that block the solve
            warnings: list[str], non-blocking issues
    """
    errors = []
    warnings = []

    # 1. Circuit must have nodes
    if graph.is_empty():
        errors.append("Circuit has no nodes. Add at least one node to solve.")
        return False, errors, warnings

    branches = graph.branches()
    reference = graph.reference

    if not branches:
        warnings.append("Circuit has no branches. Every node will be reported at 0 V.")

    # 2. Component values
    for br in branches:
        if br.has_valid_value():
            continue
        if br.kind is BranchKind.RESISTOR:
            warnings.append(
                f"{br.branch_id} (Resistor) has invalid resistance {br.value}; "
                f"it will be left out of the solve."
            )
        else:
            warnings.append(f"{br.branch_id} has a non-finite value {br.value}; it will be treated as 0.")

    # 3. Self-loops
    for br in branches:
        if br.is_self_loop:
            warnings.append(f"{br.branch_id} connects node {br.from_node} to itself.")

    # 4. Isolated nodes and parts of the circuit without a path to the reference
    for component in graph.connected_components():
        if reference in component:
            continue
        if len(component) == 1 and not graph.incident_branches(component[0]):
            warnings.append(f"Node {component[0]} has no branches; it will be reported at 0 V.")
        else:
            warnings.append(
                f"Nodes {', '.join(component)} have no path to reference node {reference}. "
                f"The circuit may have no unique solution."
            )

    # 5. Sources
    if branches and not any(not br.is_resistor for br in branches):
        warnings.append(
            "Circuit has no voltage or current sources. All voltages and currents will be zero."
        )

    # 6. Method-specific checks
    if method == "mesh" and graph.has_kind(BranchKind.CURRENT_SOURCE):
        warnings.append(
            "Mesh analysis does not support current sources; only nodal results will be reported."
        )

    is_valid = len(errors) == 0
    return is_valid, errors, warnings
