"""
simulation/power_calculator.py

Calculates the power absorbed by each branch from solved node voltages
and branch currents.
"""

import logging

logger = logging.getLogger(__name__)


def calculate_power(branches, node_voltages, branch_currents):
    """Calculate the power absorbed by each branch.

    Uses the passive sign convention along the branch direction:
    ``P = (V(from) - V(to)) * I(from->to)``.

    Args:
        branches: list of BranchData from the circuit model
        node_voltages: dict mapping node id to voltage (float)
        branch_currents: dict mapping branch id to current (float)

    Returns:
        dict mapping branch_id to power in watts (float).
        Positive = absorbing (resistors), negative = supplying.
        Branches missing a voltage or current are omitted.
    """
    if not node_voltages:
        return {}

    power = {}
    for br in branches:
        try:
            v_across = node_voltages[br.from_node] - node_voltages[br.to_node]
            power[br.branch_id] = v_across * branch_currents[br.branch_id]
        except KeyError as e:
            logger.debug("Could not calculate power for %s: missing %s", br.branch_id, e)

    return power


def total_power(power_dict):
    """Sum of all branch powers. Should net close to 0 for a valid circuit."""
    return sum(power_dict.values())


def is_power_balanced(power_dict, tolerance=1e-9):
    """True if absorbed and supplied power cancel within *tolerance*.

    The tolerance is scaled by the largest single branch power so large
    circuits are not held to an absolute threshold.
    """
    if not power_dict:
        return True
    scale = max(1.0, max(abs(p) for p in power_dict.values()))
    return abs(total_power(power_dict)) <= tolerance * scale
