"""
Controllers for the mesh/nodal analyzer.

Controllers sit between the circuit graph and anything that presents it
(CLI, scripting API, tests). Listeners subscribe through CircuitController.
"""

from .analysis_controller import AnalysisController, AnalysisResult
from .circuit_controller import CircuitController
from .file_controller import FileController, validate_circuit_data
from .settings_manager import SettingsManager

__all__ = [
    "AnalysisController",
    "AnalysisResult",
    "CircuitController",
    "FileController",
    "SettingsManager",
    "validate_circuit_data",
]
