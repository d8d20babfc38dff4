"""
AnalysisController - Orchestrates the solve pipeline.

This module does no I/O. It coordinates method selection, circuit
validation, the nodal (MNA) solve and the optional mesh decomposition,
and turns solver errors into AnalysisResult values.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from models.circuit import CircuitGraph
from simulation.circuit_validator import validate_circuit
from simulation.cycle_basis import Cycle, find_fundamental_cycles
from simulation.diagnostics import diagnose_error, format_user_message
from simulation.linear_solver import SingularMatrixError
from simulation.mesh_decomposer import UnsupportedTopologyError, decompose_mesh_currents
from simulation.nodal_analysis import solve_nodal
from simulation.power_calculator import calculate_power
from simulation.result_history import SolveHistory
from simulation.settings import ANALYSIS_METHODS, SolverSettings

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Result of one analysis run."""

    success: bool
    method: str = "nodal"
    reference: Optional[str] = None
    node_voltages: dict[str, float] = field(default_factory=dict)
    branch_currents: dict[str, float] = field(default_factory=dict)
    mesh_currents: Optional[list[float]] = None
    cycles: list[Cycle] = field(default_factory=list)
    power: dict[str, float] = field(default_factory=dict)
    skipped_branches: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str = ""
    error_type: str = ""
    mesh_error: str = ""

    def to_dict(self) -> dict:
        """JSON-friendly view of the result."""
        return {
            "success": self.success,
            "method": self.method,
            "reference": self.reference,
            "node_voltages": dict(self.node_voltages),
            "branch_currents": dict(self.branch_currents),
            "mesh_currents": list(self.mesh_currents) if self.mesh_currents is not None else None,
            "cycles": [c.to_dict() for c in self.cycles],
            "power": dict(self.power),
            "skipped_branches": list(self.skipped_branches),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "error": self.error,
            "error_type": self.error_type,
            "mesh_error": self.mesh_error,
        }


class AnalysisController:
    """
    Controller for the solve pipeline.

    Coordinates: validate -> MNA solve -> (mesh) cycle basis + decomposition
    """

    def __init__(
        self,
        model: Optional[CircuitGraph] = None,
        circuit_ctrl=None,
        settings: Optional[SolverSettings] = None,
        history: Optional[SolveHistory] = None,
    ):
        self.model = model if model is not None else CircuitGraph()
        self.circuit_ctrl = circuit_ctrl
        self.settings = settings or SolverSettings()
        self.model.set_reference_names(self.settings.reference_names)
        self.history = history if history is not None else SolveHistory(self.settings.history_size)
        self.method = self.settings.default_method

    def set_method(self, method: str) -> None:
        """Select "nodal" or "mesh" for subsequent runs."""
        if method not in ANALYSIS_METHODS:
            raise ValueError(
                f"Unknown analysis method '{method}'. Valid methods: {', '.join(ANALYSIS_METHODS)}"
            )
        self.method = method

    def validate_circuit(self, method: Optional[str] = None) -> AnalysisResult:
        """
        Validate the circuit before solving.

        Returns an AnalysisResult with success=False and errors if invalid.
        """
        method = method or self.method
        is_valid, errors, warnings = validate_circuit(self.model, method)
        return AnalysisResult(
            success=is_valid,
            method=method,
            errors=errors,
            warnings=warnings,
            error="; ".join(errors) if errors else "",
        )

    def _finish(self, result: AnalysisResult) -> AnalysisResult:
        self.history.record(
            method=result.method,
            success=result.success,
            node_voltages=result.node_voltages,
            branch_currents=result.branch_currents,
            mesh_currents=result.mesh_currents,
        )
        if self.circuit_ctrl:
            self.circuit_ctrl._notify("analysis_completed", result)
        return result

    def run_analysis(self, method: Optional[str] = None) -> AnalysisResult:
        """
        Run one analysis of the current circuit.

        Steps: validate -> nodal solve -> (mesh only) cycles + decomposition.
        A mesh failure keeps the nodal results and is reported in
        ``mesh_error``; a nodal failure gives ``success=False``.
        """
        if method is not None:
            self.set_method(method)
        method = self.method

        if self.circuit_ctrl:
            self.circuit_ctrl._notify("analysis_started", None)

        # 1. Validate
        validation = self.validate_circuit(method)
        if not validation.success:
            if self.circuit_ctrl:
                self.circuit_ctrl._notify("analysis_completed", validation)
            return validation

        warnings = list(validation.warnings)

        # 2. Nodal solve
        try:
            solution = solve_nodal(self.model, epsilon=self.settings.pivot_epsilon)
        except SingularMatrixError as e:
            logger.info("Nodal solve failed: %s", e)
            diagnosis = diagnose_error(e)
            return self._finish(
                AnalysisResult(
                    success=False,
                    method=method,
                    reference=self.model.reference,
                    warnings=warnings,
                    error=format_user_message(diagnosis, str(e)),
                    error_type=type(e).__name__,
                )
            )

        skipped = set(solution.system.skipped_branches)
        active = [b for b in self.model.branches() if b.branch_id not in skipped]
        basis = find_fundamental_cycles(self.model.nodes(), active)

        result = AnalysisResult(
            success=True,
            method=method,
            reference=solution.reference,
            node_voltages=solution.node_voltages,
            branch_currents=solution.branch_currents,
            cycles=list(basis.cycles),
            power=calculate_power(self.model.branches(), solution.node_voltages, solution.branch_currents),
            skipped_branches=list(solution.system.skipped_branches),
            warnings=warnings,
        )

        residuals = solution.kcl_residuals(self.model)
        worst = max(residuals, key=lambda node: abs(residuals[node]), default=None)
        if worst is not None and abs(residuals[worst]) > self.settings.kcl_tolerance:
            logger.warning("KCL residual %.3g A at node %s", residuals[worst], worst)
            result.warnings.append(
                f"Currents at node {worst} balance only to within {abs(residuals[worst]):.3g} A."
            )

        # 3. Mesh decomposition (falls back to the nodal results)
        if method == "mesh":
            try:
                mesh = decompose_mesh_currents(
                    self.model,
                    solution.branch_currents,
                    basis=basis,
                    epsilon=self.settings.pivot_epsilon,
                )
            except (UnsupportedTopologyError, SingularMatrixError) as e:
                logger.warning("Mesh decomposition unavailable: %s", e)
                result.mesh_error = str(e)
                result.warnings.append(f"Mesh currents unavailable ({e}); showing nodal results.")
            else:
                result.mesh_currents = mesh.mesh_currents
                mismatch = mesh.max_reconstruction_error(solution.branch_currents)
                if mismatch > self.settings.agreement_tolerance:
                    result.warnings.append(
                        f"Mesh currents reproduce branch currents only to within {mismatch:.3g} A."
                    )

        logger.debug("Analysis complete: method=%s, %d node(s)", method, len(result.node_voltages))
        return self._finish(result)
