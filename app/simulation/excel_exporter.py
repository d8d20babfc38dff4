"""
simulation/excel_exporter.py

Export solve results and solve history to Excel (.xlsx) format.

Every workbook opens on a "Summary" sheet; each table after it gets its
own sheet with a styled header row.
"""

from datetime import datetime

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")


def _summary_sheet(wb, method, circuit_name="", rows=()):
    """Turn the workbook's default sheet into a label/value summary."""
    ws = wb.active
    ws.title = "Summary"
    ws.append(["Circuit Report Summary"])
    ws["A1"].font = Font(bold=True, size=14)
    ws.append([])

    entries = [("Analysis Method", method), ("Date", datetime.now().strftime("%Y-%m-%d %H:%M:%S"))]
    if circuit_name:
        entries.append(("Circuit", circuit_name))
    entries.extend(rows)
    for label, value in entries:
        ws.append([label, value])
        ws.cell(row=ws.max_row, column=1).font = Font(bold=True)

    ws.column_dimensions["A"].width = 18
    ws.column_dimensions["B"].width = 30
    return ws


def _table_sheet(wb, title, headers, rows, widths=15):
    """Append a sheet holding one table. widths is one number or one per column."""
    ws = wb.create_sheet(title)
    ws.append(list(headers))
    for cell in ws[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center")
    for row in rows:
        ws.append(list(row))

    if isinstance(widths, (int, float)):
        widths = [widths] * len(headers)
    for col, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col)].width = width
    return ws


def _signed_branches(cycle):
    return " ".join(f"{'+' if sign > 0 else '-'}{bid}" for bid, sign in cycle.branches)


def export_to_excel(result, filepath, circuit_name=""):
    """Export one analysis result to an Excel workbook.

    Args:
        result: AnalysisResult (anything with method, node_voltages,
                branch_currents, mesh_currents, cycles and warnings)
        filepath: path to write the .xlsx file
        circuit_name: optional circuit filename for metadata
    """
    status = [("Status", "OK" if result.success else "FAILED")]
    if getattr(result, "error", ""):
        status.append(("Error", result.error))
    if getattr(result, "mesh_error", ""):
        status.append(("Mesh", result.mesh_error))
    status.extend(("Warning", w) for w in getattr(result, "warnings", []))

    wb = Workbook()
    _summary_sheet(wb, result.method, circuit_name, status)
    _table_sheet(wb, "Node Voltages", ["Node", "Voltage (V)"], result.node_voltages.items(), [20, 15])
    _table_sheet(wb, "Branch Currents", ["Branch", "Current (A)"], result.branch_currents.items(), [20, 15])

    if result.mesh_currents is not None:
        cycles = result.cycles or []
        mesh_rows = [
            (f"M{k + 1}", current, _signed_branches(cycles[k]) if k < len(cycles) else "")
            for k, current in enumerate(result.mesh_currents)
        ]
        _table_sheet(wb, "Mesh Currents", ["Mesh", "Current (A)", "Branches"], mesh_rows, [10, 15, 40])

    wb.save(filepath)


def export_history_to_excel(history, filepath, circuit_name=""):
    """Export a SolveHistory to an Excel workbook with one row per sample."""
    node_ids = history.node_ids()
    branch_ids = history.branch_ids()
    headers = ["t", "timestamp", "method"]
    headers += [f"V({n}) (V)" for n in node_ids]
    headers += [f"I({b}) (A)" for b in branch_ids]

    rows = (
        [s.t, s.timestamp.strftime("%Y-%m-%d %H:%M:%S"), s.method]
        + [s.node_voltages.get(n) for n in node_ids]
        + [s.branch_currents.get(b) for b in branch_ids]
        for s in history
    )

    wb = Workbook()
    _summary_sheet(wb, "History", circuit_name, [("Samples", len(history))])
    _table_sheet(wb, "History", headers, rows)
    wb.save(filepath)
