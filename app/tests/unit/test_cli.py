"""Tests for the command-line interface (app/cli.py)."""

import csv
import io
import json
import re
from pathlib import Path

import pytest
from cli import build_parser, cmd_batch, cmd_validate, load_circuit, main, try_load_circuit
from controllers.circuit_controller import SAMPLE_CIRCUIT
from models.circuit import CircuitGraph
from openpyxl import load_workbook

DIVIDER = {
    "nodes": ["0", "1", "2"],
    "branches": [
        {"id": "V1", "from": "1", "to": "0", "type": "V", "value": 10},
        {"id": "R1", "from": "1", "to": "2", "type": "R", "value": "1k"},
        {"id": "R2", "from": "2", "to": "0", "type": "R", "value": "1k"},
    ],
}

SINGULAR = {
    "nodes": ["0", "1"],
    "branches": [
        {"id": "V1", "from": "1", "to": "0", "type": "V", "value": 5},
        {"id": "V2", "from": "1", "to": "0", "type": "V", "value": 3},
    ],
}


def _write(path: Path, data) -> str:
    path.write_text(json.dumps(data))
    return str(path)


@pytest.fixture
def voltage_divider(tmp_path):
    """Create a valid voltage divider circuit file."""
    return _write(tmp_path / "voltage_divider.json", DIVIDER)


@pytest.fixture
def empty_circuit(tmp_path):
    """Create a circuit file with no nodes."""
    return _write(tmp_path / "empty.json", {"nodes": [], "branches": []})


class TestLoadCircuit:
    def test_load_valid(self, voltage_divider):
        graph = load_circuit(voltage_divider)
        assert isinstance(graph, CircuitGraph)
        assert graph.node_count == 3
        assert graph.branch_count == 3

    def test_load_nonexistent(self):
        with pytest.raises(SystemExit):
            load_circuit("/nonexistent/file.json")

    def test_load_invalid_json(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        with pytest.raises(SystemExit):
            load_circuit(str(bad))

    def test_load_invalid_structure(self, tmp_path):
        path = _write(tmp_path / "bad.json", {"nodes": ["0"]})
        with pytest.raises(SystemExit):
            load_circuit(path)


class TestTryLoadCircuit:
    def test_success(self, voltage_divider):
        graph, error = try_load_circuit(voltage_divider)
        assert graph is not None
        assert error == ""

    def test_nonexistent(self):
        graph, error = try_load_circuit("/nonexistent/file.json")
        assert graph is None
        assert "not found" in error

    def test_invalid_json(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{")
        graph, error = try_load_circuit(str(bad))
        assert graph is None
        assert "invalid JSON" in error

    def test_unknown_node(self, tmp_path):
        data = {"nodes": ["0"], "branches": [{"id": "R1", "from": "0", "to": "9", "type": "R", "value": 1}]}
        graph, error = try_load_circuit(_write(tmp_path / "c.json", data))
        assert graph is None
        assert "invalid circuit file" in error


class TestSolveCommand:
    def test_json_output(self, voltage_divider, capsys):
        assert main(["solve", voltage_divider]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["success"] is True
        assert data["node_voltages"]["2"] == pytest.approx(5.0)
        assert data["mesh_currents"] is None

    def test_mesh_method(self, voltage_divider, capsys):
        assert main(["solve", voltage_divider, "--method", "mesh"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["method"] == "mesh"
        assert len(data["mesh_currents"]) == 1

    def test_csv_output(self, voltage_divider, capsys):
        assert main(["solve", voltage_divider, "--format", "csv"]) == 0
        rows = list(csv.reader(io.StringIO(capsys.readouterr().out)))
        assert ["# Circuit", "voltage_divider"] in rows
        assert ["2", "5.0"] in rows

    def test_text_output(self, voltage_divider, capsys):
        assert main(["solve", voltage_divider, "--format", "text"]) == 0
        out = capsys.readouterr().out
        assert re.search(r"V\(2\) = 5(\.00)? V", out)
        assert re.search(r"I\(R1\) = 5(\.00)? mA", out)

    def test_output_to_file(self, voltage_divider, tmp_path):
        out = tmp_path / "result.json"
        assert main(["solve", voltage_divider, "-o", str(out)]) == 0
        assert json.loads(out.read_text())["success"] is True

    def test_singular_circuit(self, tmp_path, capsys):
        path = _write(tmp_path / "singular.json", SINGULAR)
        assert main(["solve", path]) == 1
        assert "no solution" in capsys.readouterr().err

    def test_empty_circuit(self, empty_circuit, capsys):
        assert main(["solve", empty_circuit]) == 1
        assert "no nodes" in capsys.readouterr().err

    def test_mesh_fallback_warns(self, tmp_path, capsys):
        data = {
            "nodes": ["0", "1"],
            "branches": [
                {"id": "I1", "from": "0", "to": "1", "type": "I", "value": "1m"},
                {"id": "R1", "from": "1", "to": "0", "type": "R", "value": "1k"},
            ],
        }
        assert main(["solve", _write(tmp_path / "c.json", data), "-m", "mesh"]) == 0
        captured = capsys.readouterr()
        assert "Warning:" in captured.err
        assert json.loads(captured.out)["mesh_error"]

    def test_settings_file(self, voltage_divider, tmp_path, capsys):
        settings = _write(tmp_path / "settings.json", {"default_method": "mesh", "csv_precision": 2})
        assert main(["--settings", settings, "solve", voltage_divider]) == 0
        assert json.loads(capsys.readouterr().out)["method"] == "mesh"


class TestValidateCommand:
    def test_valid_circuit(self, voltage_divider):
        args = build_parser().parse_args(["validate", voltage_divider])
        assert cmd_validate(args) == 0

    def test_empty_circuit_fails_validation(self, empty_circuit):
        args = build_parser().parse_args(["validate", empty_circuit])
        assert cmd_validate(args) == 1

    def test_via_main(self, voltage_divider, capsys):
        assert main(["validate", voltage_divider]) == 0
        assert "Circuit is valid" in capsys.readouterr().out

    def test_warnings_printed(self, tmp_path, capsys):
        data = {"nodes": ["0", "1"], "branches": [{"id": "R1", "from": "1", "to": "0", "type": "R", "value": 1}]}
        assert main(["validate", _write(tmp_path / "c.json", data)]) == 0
        assert "no voltage or current sources" in capsys.readouterr().out


class TestCyclesCommand:
    def test_text(self, tmp_path, capsys):
        path = _write(tmp_path / "sample.json", SAMPLE_CIRCUIT)
        assert main(["cycles", path]) == 0
        out = capsys.readouterr().out
        assert "1 independent loop(s)" in out
        assert "M1: 1 -> 0 -> 2 -> 1" in out
        assert "+R1 -R2 -V1" in out

    def test_json(self, tmp_path, capsys):
        path = _write(tmp_path / "sample.json", SAMPLE_CIRCUIT)
        assert main(["cycles", path, "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["cycles"][0]["closing_branch"] == "V1"
        assert sorted(data["tree_branches"]) == ["R1", "R2"]
        assert data["component_count"] == 1


class TestExportCommand:
    def test_csv_to_stdout(self, voltage_divider, capsys):
        assert main(["export", voltage_divider]) == 0
        assert "Voltage (V)" in capsys.readouterr().out

    def test_csv_to_file(self, voltage_divider, tmp_path):
        out = tmp_path / "out.csv"
        assert main(["export", voltage_divider, "-o", str(out)]) == 0
        assert "Branch,Current (A)" in out.read_text()

    def test_json_exports_circuit(self, voltage_divider, capsys):
        assert main(["export", voltage_divider, "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["nodes"] == ["0", "1", "2"]
        assert data["branches"][1]["value"] == 1000.0

    def test_json_with_solve(self, voltage_divider, capsys):
        assert main(["export", voltage_divider, "--format", "json", "--solve"]) == 0
        assert json.loads(capsys.readouterr().out)["success"] is True

    def test_xlsx(self, voltage_divider, tmp_path):
        out = tmp_path / "out.xlsx"
        assert main(["export", voltage_divider, "-f", "xlsx", "-o", str(out), "-m", "mesh"]) == 0
        assert "Mesh Currents" in load_workbook(str(out)).sheetnames

    def test_xlsx_requires_output(self, voltage_divider, capsys):
        assert main(["export", voltage_divider, "-f", "xlsx"]) == 1
        assert "--output is required" in capsys.readouterr().err


class TestParser:
    def test_no_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    @pytest.mark.parametrize("command", ["solve", "validate", "cycles", "export"])
    def test_requires_circuit(self, command):
        with pytest.raises(SystemExit):
            build_parser().parse_args([command])

    def test_unknown_method(self, voltage_divider):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["solve", voltage_divider, "--method", "transient"])

    def test_batch_requires_path(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["batch"])


class TestBatchCommand:
    @pytest.fixture
    def circuit_dir(self, tmp_path):
        d = tmp_path / "circuits"
        d.mkdir()
        _write(d / "divider.json", DIVIDER)
        _write(d / "sample.json", SAMPLE_CIRCUIT)
        return d

    @pytest.fixture
    def mixed_dir(self, circuit_dir):
        _write(circuit_dir / "a_singular.json", SINGULAR)
        (circuit_dir / "b_broken.json").write_text("{")
        return circuit_dir

    def test_batch_directory(self, circuit_dir, capsys):
        args = build_parser().parse_args(["batch", str(circuit_dir)])
        assert cmd_batch(args) == 0
        out = capsys.readouterr().out
        assert "divider.json" in out
        assert "2/2 succeeded" in out

    def test_batch_with_output_dir(self, circuit_dir, tmp_path):
        out_dir = tmp_path / "results"
        assert main(["batch", str(circuit_dir), "--output-dir", str(out_dir)]) == 0
        assert sorted(p.name for p in out_dir.iterdir()) == ["divider.json", "sample.json"]

    def test_batch_csv_format(self, circuit_dir, tmp_path):
        out_dir = tmp_path / "results"
        assert main(["batch", str(circuit_dir), "--output-dir", str(out_dir), "--format", "csv"]) == 0
        assert (out_dir / "divider.csv").exists()

    def test_batch_mixed_results(self, mixed_dir, capsys):
        assert main(["batch", str(mixed_dir)]) == 1
        out = capsys.readouterr().out
        assert "FAIL" in out
        assert "LOAD_ERROR" in out
        assert "2/4 succeeded, 2 failed" in out

    def test_batch_fail_fast(self, mixed_dir, capsys):
        assert main(["batch", str(mixed_dir), "--fail-fast"]) == 1
        assert "0/1 succeeded" in capsys.readouterr().out

    def test_batch_empty_dir(self, tmp_path, capsys):
        empty = tmp_path / "empty"
        empty.mkdir()
        assert main(["batch", str(empty)]) == 1
        assert "No .json circuit files" in capsys.readouterr().err

    def test_batch_glob_pattern(self, circuit_dir, capsys):
        assert main(["batch", str(circuit_dir / "d*.json")]) == 0
        assert "1/1 succeeded" in capsys.readouterr().out

    def test_batch_not_a_directory(self, voltage_divider, capsys):
        assert main(["batch", voltage_divider]) == 1
