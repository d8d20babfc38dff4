from .cycle_basis import Cycle, CycleBasis, find_fundamental_cycles, find_graph_cycles
from .linear_solver import PIVOT_EPSILON, SingularMatrixError, solve
from .mesh_decomposer import MeshSolution, UnsupportedTopologyError, decompose_mesh_currents
from .mna_builder import InvalidComponentWarning, LinearSystem, build_mna_system
from .nodal_analysis import NodalSolution, solve_nodal
from .settings import ANALYSIS_METHODS, SolverSettings

__all__ = [
    'ANALYSIS_METHODS',
    'Cycle',
    'CycleBasis',
    'InvalidComponentWarning',
    'LinearSystem',
    'MeshSolution',
    'NodalSolution',
    'PIVOT_EPSILON',
    'SingularMatrixError',
    'SolverSettings',
    'UnsupportedTopologyError',
    'build_mna_system',
    'decompose_mesh_currents',
    'find_fundamental_cycles',
    'find_graph_cycles',
    'solve',
    'solve_nodal',
]
