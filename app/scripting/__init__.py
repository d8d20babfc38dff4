"""
Headless scripting API for building circuits and running nodal or mesh analysis.

Usage::

    from scripting import Circuit

    circuit = Circuit()
    circuit.add_voltage_source("1", "0", "10V")
    circuit.add_resistor("1", "2", "1k")
    circuit.add_resistor("2", "0", "1k")

    result = circuit.solve("mesh")
    print(result.node_voltages, result.mesh_currents)

    circuit.save("my_circuit.json")
"""

# AnalysisResult is what Circuit.solve() returns
from controllers.analysis_controller import AnalysisResult
from scripting.circuit import Circuit

__all__ = ["Circuit", "AnalysisResult"]
