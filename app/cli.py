"""
Command-line interface for the mesh/nodal analyzer.

Solve circuits, validate them, list their loops and export results.

Usage::

    python -m cli solve circuit.json
    python -m cli solve circuit.json --method mesh --format csv --output results.csv
    python -m cli validate circuit.json
    python -m cli cycles circuit.json
    python -m cli export circuit.json --format xlsx --output results.xlsx
    python -m cli batch circuits/ --output-dir results/
"""

import argparse
import glob
import json
import logging
import sys
from pathlib import Path

from controllers.analysis_controller import AnalysisController
from controllers.circuit_controller import CircuitController
from controllers.file_controller import read_circuit_file
from controllers.settings_manager import SettingsManager
from models.circuit import CircuitGraph
from models.format_utils import format_value
from simulation.csv_exporter import export_operating_point
from simulation.cycle_basis import find_graph_cycles
from simulation.settings import ANALYSIS_METHODS, SolverSettings


def try_load_circuit(filepath: str) -> tuple[CircuitGraph | None, str]:
    """Load and validate a circuit JSON file without exiting.

    Returns:
        (graph, "") on success, or (None, error_message) on failure.
    """
    path = Path(filepath)
    if not path.exists():
        return None, f"file not found: {filepath}"

    try:
        return read_circuit_file(path), ""
    except json.JSONDecodeError as e:
        return None, f"invalid JSON in {filepath}: {e}"
    except (ValueError, LookupError) as e:
        return None, f"invalid circuit file: {e}"
    except OSError as e:
        return None, f"could not read {filepath}: {e}"


def load_circuit(filepath: str) -> CircuitGraph:
    """Load and validate a circuit JSON file.

    Raises:
        SystemExit: On file read or validation errors.
    """
    graph, error = try_load_circuit(filepath)
    if graph is None:
        print(f"Error: {error}", file=sys.stderr)
        sys.exit(1)
    return graph


def _load_settings(args: argparse.Namespace) -> SolverSettings:
    settings_file = getattr(args, "settings", None)
    if settings_file:
        return SettingsManager(Path(settings_file)).settings
    return SolverSettings()


def _analyze(graph: CircuitGraph, args: argparse.Namespace):
    settings = _load_settings(args)
    controller = CircuitController(graph)
    analysis = AnalysisController(graph, controller, settings)
    return analysis.run_analysis(args.method or settings.default_method), settings


def cmd_solve(args: argparse.Namespace) -> int:
    """Solve a circuit and output results."""
    graph = load_circuit(args.circuit)
    result, settings = _analyze(graph, args)

    if not result.success:
        print(f"Solve failed: {result.error}", file=sys.stderr)
        for err in result.errors:
            print(f"  - {err}", file=sys.stderr)
        return 1

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    _emit(_format_result(result, args.format, Path(args.circuit).stem, settings.csv_precision), args.output)
    return 0


def _emit(text: str, output: str | None, what: str = "Results") -> None:
    """Print text, or write it to output and say so on stderr."""
    if not output:
        print(text)
        return
    Path(output).write_text(text)
    print(f"{what} written to {output}", file=sys.stderr)


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a circuit without solving."""
    graph = load_circuit(args.circuit)
    analysis = AnalysisController(graph, settings=_load_settings(args))

    result = analysis.validate_circuit(args.method)

    if result.success:
        print(f"Circuit is valid: {args.circuit}")
        for warning in result.warnings:
            print(f"  Warning: {warning}")
        return 0
    else:
        print(f"Circuit has errors: {args.circuit}", file=sys.stderr)
        for err in result.errors:
            print(f"  - {err}", file=sys.stderr)
        return 1


def cmd_cycles(args: argparse.Namespace) -> int:
    """List the fundamental cycles of a circuit."""
    graph = load_circuit(args.circuit)
    basis = find_graph_cycles(graph)

    if args.format == "json":
        print(json.dumps(
            {
                "cycles": [c.to_dict() for c in basis.cycles],
                "tree_branches": basis.tree_branches,
                "component_count": basis.component_count,
            },
            indent=2,
        ))
        return 0

    print(f"{len(basis)} independent loop(s), {basis.component_count} connected component(s)")
    for k, cycle in enumerate(basis.cycles, start=1):
        path = " -> ".join(cycle.nodes + cycle.nodes[:1])
        branches = " ".join(f"{'+' if sign > 0 else '-'}{bid}" for bid, sign in cycle.branches)
        print(f"  M{k}: {path}   [{branches}]")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Solve a circuit and export the results to a file."""
    graph = load_circuit(args.circuit)
    fmt = args.format

    if fmt == "json" and not args.solve:
        _emit(json.dumps(graph.to_dict(), indent=2), args.output, "JSON")
        return 0

    if fmt == "xlsx" and not args.output:
        print("Error: --output is required for xlsx export", file=sys.stderr)
        return 1

    result, settings = _analyze(graph, args)
    if not result.success:
        print(f"Solve failed: {result.error}", file=sys.stderr)
        return 1

    if fmt == "xlsx":
        from simulation.excel_exporter import export_to_excel

        export_to_excel(result, args.output, Path(args.circuit).stem)
        print(f"Workbook written to {args.output}", file=sys.stderr)
        return 0

    _emit(_format_result(result, fmt, Path(args.circuit).stem, settings.csv_precision), args.output)
    return 0


def _format_result(result, fmt: str, circuit_name: str = "", precision: int = 9) -> str:
    """Format an analysis result as text."""
    if fmt == "csv":
        return export_operating_point(
            result.node_voltages, result.branch_currents, result.mesh_currents, circuit_name, precision
        )
    elif fmt == "text":
        return _result_to_text(result)
    else:
        return json.dumps(result.to_dict(), indent=2, default=str)


def _result_to_text(result) -> str:
    lines = [f"Method: {result.method}   Reference: {result.reference}", "", "Node voltages:"]
    for node, voltage in result.node_voltages.items():
        lines.append(f"  V({node}) = {format_value(voltage, 'V')}")
    lines.append("")
    lines.append("Branch currents:")
    for branch, current in result.branch_currents.items():
        lines.append(f"  I({branch}) = {format_value(current, 'A')}")
    if result.mesh_currents is not None:
        lines.append("")
        lines.append("Mesh currents:")
        for k, current in enumerate(result.mesh_currents, start=1):
            lines.append(f"  M{k} = {format_value(current, 'A')}")
    return "\n".join(lines)


def _batch_files(pattern: str) -> list[Path] | None:
    """Circuit files named by a directory or glob pattern, or None if neither."""
    path = Path(pattern)
    if path.is_dir():
        return sorted(path.glob("*.json"))
    if any(ch in pattern for ch in "*?["):
        return sorted(Path(p) for p in glob.glob(pattern))
    return None


def _solve_file(filepath: Path, args: argparse.Namespace, output_dir: Path | None) -> tuple[str, str]:
    """Solve one batch entry. Returns (status, details)."""
    graph, error = try_load_circuit(str(filepath))
    if graph is None:
        return "LOAD_ERROR", error

    result, settings = _analyze(graph, args)
    if not result.success:
        return "FAIL", (result.error or "").partition("\n")[0]

    if output_dir is not None:
        suffix = ".csv" if args.format == "csv" else ".json"
        target = output_dir / (filepath.stem + suffix)
        target.write_text(_format_result(result, args.format, filepath.stem, settings.csv_precision))
    return "OK", result.method


def cmd_batch(args: argparse.Namespace) -> int:
    """Solve every circuit file in a directory or glob pattern."""
    files = _batch_files(args.path)
    if files is None:
        print(f"Error: {args.path} is not a directory or glob pattern", file=sys.stderr)
        return 1
    if not files:
        print(f"No .json circuit files found matching: {args.path}", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir) if args.output_dir else None
    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)

    rows = []
    for filepath in files:
        status, details = _solve_file(filepath, args, output_dir)
        rows.append((filepath.name, status, details))
        if status != "OK" and args.fail_fast:
            break

    print()
    print(f"{'File':<40} {'Status':<12} Details")
    print("-" * 70)
    for name, status, details in rows:
        print(f"{name:<40} {status:<12} {details}")

    passed = sum(1 for _, status, _ in rows if status == "OK")
    failed = len(rows) - passed
    print(f"\n{passed}/{len(rows)} succeeded, {failed} failed")
    return 1 if failed else 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="mesh-nodal",
        description="Mesh and nodal analysis of linear resistive circuits from the command line.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--settings", help="Path to a solver settings JSON file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_method(p):
        p.add_argument("--method", "-m", choices=list(ANALYSIS_METHODS), help="Analysis method (default: nodal)")

    # solve
    solve_parser = subparsers.add_parser("solve", help="Solve a circuit and output results")
    solve_parser.add_argument("circuit", help="Path to circuit JSON file")
    add_method(solve_parser)
    solve_parser.add_argument(
        "--format", choices=["json", "csv", "text"], default="json", help="Output format (default: json)"
    )
    solve_parser.add_argument("--output", "-o", help="Write results to file instead of stdout")

    # validate
    val_parser = subparsers.add_parser("validate", help="Check circuit for problems without solving")
    val_parser.add_argument("circuit", help="Path to circuit JSON file")
    add_method(val_parser)

    # cycles
    cyc_parser = subparsers.add_parser("cycles", help="List the fundamental loops of a circuit")
    cyc_parser.add_argument("circuit", help="Path to circuit JSON file")
    cyc_parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format (default: text)")

    # export
    exp_parser = subparsers.add_parser("export", help="Export results (or the circuit) in the specified format")
    exp_parser.add_argument("circuit", help="Path to circuit JSON file")
    add_method(exp_parser)
    exp_parser.add_argument(
        "--format", "-f", choices=["csv", "xlsx", "json"], default="csv", help="Export format (default: csv)"
    )
    exp_parser.add_argument(
        "--solve", action="store_true", help="With --format json, export solve results instead of the circuit"
    )
    exp_parser.add_argument("--output", "-o", help="Write output to file instead of stdout")

    # batch
    batch_parser = subparsers.add_parser("batch", help="Solve multiple circuit files")
    batch_parser.add_argument("path", help="Directory or glob pattern matching circuit JSON files")
    add_method(batch_parser)
    batch_parser.add_argument(
        "--format", choices=["json", "csv"], default="json", help="Output format for per-file results (default: json)"
    )
    batch_parser.add_argument("--output-dir", help="Write per-file results to this directory")
    batch_parser.add_argument("--fail-fast", action="store_true", help="Stop on first error")

    return parser


def main(argv=None) -> int:
    """CLI entry point. Returns exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handlers = {
        "solve": cmd_solve,
        "validate": cmd_validate,
        "cycles": cmd_cycles,
        "export": cmd_export,
        "batch": cmd_batch,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
