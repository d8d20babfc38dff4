"""
simulation/csv_exporter.py

Export solve results and solve history to CSV format.
Functions return CSV text; writing it to disk is a separate step.
"""

import csv
import io
from datetime import datetime

CSV_PRECISION = 9


def _round(value, precision=CSV_PRECISION):
    if value is None:
        return ""
    return round(float(value), precision)


def _write_metadata(writer, analysis_type, circuit_name=""):
    writer.writerow(["# Analysis Type", analysis_type])
    writer.writerow(["# Date", datetime.now().strftime("%Y-%m-%d %H:%M:%S")])
    if circuit_name:
        writer.writerow(["# Circuit", circuit_name])
    writer.writerow([])


def export_operating_point(
    node_voltages,
    branch_currents=None,
    mesh_currents=None,
    circuit_name="",
    precision=CSV_PRECISION,
):
    """
    Export one solve's results to a CSV string.

    Args:
        node_voltages: dict mapping node id -> voltage (float)
        branch_currents: optional dict mapping branch id -> current (float)
        mesh_currents: optional list of mesh currents, one per cycle
        circuit_name: optional circuit filename
        precision: decimal places kept for every value

    Returns:
        str: CSV content
    """
    output = io.StringIO()
    writer = csv.writer(output)

    _write_metadata(writer, "Operating Point", circuit_name)

    writer.writerow(["Node", "Voltage (V)"])
    for node, voltage in node_voltages.items():
        writer.writerow([node, _round(voltage, precision)])

    if branch_currents:
        writer.writerow([])
        writer.writerow(["Branch", "Current (A)"])
        for branch, current in branch_currents.items():
            writer.writerow([branch, _round(current, precision)])

    if mesh_currents:
        writer.writerow([])
        writer.writerow(["Mesh", "Current (A)"])
        for k, current in enumerate(mesh_currents, start=1):
            writer.writerow([f"M{k}", _round(current, precision)])

    return output.getvalue()


def history_headers(node_ids, branch_ids):
    """Column headers for a history export: t, timestamp, V(node)..., I(branch)..."""
    return (
        ["t", "timestamp"]
        + [f"V({node})" for node in node_ids]
        + [f"I({branch})" for branch in branch_ids]
    )


def export_history(history, precision=CSV_PRECISION):
    """
    Export a SolveHistory to a CSV string.

    One row per sample, oldest first. Quantities a sample does not have
    (e.g. a node added after it was recorded) are left blank.

    Args:
        history: SolveHistory (or any iterable of HistorySample)
        precision: decimal places kept for every value

    Returns:
        str: CSV content (header row only when the history is empty)
    """
    samples = list(history)
    node_ids: dict[str, None] = {}
    branch_ids: dict[str, None] = {}
    for sample in samples:
        for node in sample.node_voltages:
            node_ids.setdefault(node, None)
        for branch in sample.branch_currents:
            branch_ids.setdefault(branch, None)

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(history_headers(list(node_ids), list(branch_ids)))

    for sample in samples:
        row = [sample.t, sample.timestamp.isoformat()]
        row.extend(_round(sample.node_voltages.get(node), precision) for node in node_ids)
        row.extend(_round(sample.branch_currents.get(branch), precision) for branch in branch_ids)
        writer.writerow(row)

    return output.getvalue()


def write_csv(csv_content, filepath):
    """
    Write CSV content string to a file.

    Args:
        csv_content: str from one of the export_* functions
        filepath: path to write to
    """
    with open(filepath, "w", newline="") as f:
        f.write(csv_content)
