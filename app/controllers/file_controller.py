"""
FileController - Handles circuit file I/O.

Circuits are stored as JSON:

    {"nodes": ["0", "1"],
     "branches": [{"id": "R1", "from": "1", "to": "0", "type": "R", "value": 100}],
     "reference": "0"}            # optional

File dialog interaction is the responsibility of the caller.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from models.branch import BranchKind
from models.circuit import CircuitGraph

logger = logging.getLogger(__name__)



def validate_circuit_data(data) -> None:
    """
    Validate JSON structure before loading.

    Raises ValueError with a descriptive message if anything is wrong.
    """
    if not isinstance(data, dict):
        raise ValueError("File does not contain a valid circuit object.")

    if "nodes" not in data or not isinstance(data["nodes"], list):
        raise ValueError("Missing or invalid 'nodes' list.")
    if "branches" not in data or not isinstance(data["branches"], list):
        raise ValueError("Missing or invalid 'branches' list.")

    node_ids = set()
    for i, node_id in enumerate(data["nodes"]):
        if not isinstance(node_id, (str, int)) or isinstance(node_id, bool):
            raise ValueError(f"Node #{i + 1} must be a string or integer id.")
        if str(node_id) in node_ids:
            raise ValueError(f"Node '{node_id}' is listed more than once.")
        node_ids.add(str(node_id))

    branch_ids = set()
    for i, branch in enumerate(data["branches"]):
        if not isinstance(branch, dict):
            raise ValueError(f"Branch #{i + 1} is not an object.")
        for key in ("id", "from", "to", "type", "value"):
            if key not in branch:
                raise ValueError(f"Branch #{i + 1} is missing required field '{key}'.")
        if str(branch["id"]) in branch_ids:
            raise ValueError(f"Branch '{branch['id']}' is listed more than once.")
        branch_ids.add(str(branch["id"]))
        for end in ("from", "to"):
            if str(branch[end]) not in node_ids:
                raise ValueError(f"Branch '{branch['id']}' references unknown node '{branch[end]}'.")
        try:
            BranchKind.parse(branch["type"])
        except ValueError:
            raise ValueError(f"Branch '{branch['id']}' has unknown type '{branch['type']}'.") from None

    reference = data.get("reference")
    if reference is not None and str(reference) not in node_ids:
        raise ValueError(f"Reference node '{reference}' is not in the node list.")


def read_circuit_file(filepath) -> CircuitGraph:
    """
    Read and validate a circuit file into a new CircuitGraph.

    Raises:
        json.JSONDecodeError: If file is not valid JSON.
        ValueError: If file structure is invalid.
        OSError: If the file cannot be read.
    """
    with open(filepath, "r") as f:
        data = json.load(f)
    validate_circuit_data(data)
    return CircuitGraph.from_dict(data)


def _write_json(path: Path, data: dict) -> None:
    path.write_text(json.dumps(data, indent=2))


class FileController:
    """
    Owns the link between the in-memory circuit and files on disk.

    Tracks the file the circuit was last saved to or opened from, so
    callers can offer quick-save. Nothing is written except the file the
    caller names.
    """

    def __init__(self, model: Optional[CircuitGraph] = None, circuit_ctrl=None):
        self.model = model if model is not None else CircuitGraph()
        self.circuit_ctrl = circuit_ctrl
        self.current_file: Optional[Path] = None

    def _emit(self, event: str) -> None:
        if self.circuit_ctrl:
            self.circuit_ctrl._notify(event, None)

    def new_circuit(self) -> None:
        """Start over with an empty, unsaved circuit."""
        self.model.clear()
        self.current_file = None
        self._emit("circuit_cleared")

    def save_circuit(self, filepath) -> None:
        """
        Write the circuit to ``filepath`` and make it the current file.

        Raises:
            OSError: If the file cannot be written.
        """
        filepath = Path(filepath)
        _write_json(filepath, self.model.to_dict())
        self.current_file = filepath
        logger.debug("Saved circuit to %s", filepath)
        self._emit("model_saved")

    def load_circuit(self, filepath) -> None:
        """
        Replace the circuit with the contents of ``filepath``.

        The file is parsed and validated completely before the model is
        touched, and the model object itself is kept so observers stay
        attached.

        Raises:
            json.JSONDecodeError: If file is not valid JSON.
            ValueError: If file structure is invalid.
            OSError: If the file cannot be read.
        """
        filepath = Path(filepath)
        loaded = read_circuit_file(filepath)
        self.model.load_dict(loaded.to_dict())
        self.current_file = filepath
        logger.debug("Loaded circuit from %s", filepath)
        self._emit("model_loaded")

    def has_file(self) -> bool:
        """True once the circuit has been saved to or loaded from a file."""
        return self.current_file is not None
