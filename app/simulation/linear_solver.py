"""
simulation/linear_solver.py

Dense Gaussian elimination with partial pivoting for A·x = b.

This is the one linear-solve primitive used by the whole package: the MNA
solve and the mesh least-squares normal equations both go through
``solve``. It has exactly two outcomes: a complete, finite solution
vector, or ``SingularMatrixError``. No partially computed vector is ever
returned.
"""

import logging
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)

# Absolute pivot magnitude below which the matrix is treated as singular
PIVOT_EPSILON = 1e-12


class SingularMatrixError(np.linalg.LinAlgError):
    """The system has no unique solution (floating node, shorted sources, ...)."""

    def __init__(self, message: str, column: Optional[int] = None):
        super().__init__(message)
        self.column = column


def solve(matrix, rhs, epsilon: float = PIVOT_EPSILON) -> np.ndarray:
    """
    Solve ``matrix @ x = rhs``.

    Args:
        matrix: square (n, n) array-like. Not modified.
        rhs: length-n array-like. Not modified.
        epsilon: absolute pivot threshold.

    Returns:
        The solution vector as a float64 array of length n.

    Raises:
        SingularMatrixError: if a pivot falls below ``epsilon`` or any
            intermediate value becomes non-finite.
        ValueError: if the shapes are inconsistent.
    """
    a = np.array(matrix, dtype=float)
    b = np.array(rhs, dtype=float)

    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise ValueError(f"Matrix must be square, got shape {a.shape}")
    n = a.shape[0]
    if b.shape != (n,):
        raise ValueError(f"Right-hand side must have shape ({n},), got {b.shape}")
    if n == 0:
        return np.zeros(0)
    if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
        raise SingularMatrixError("System contains non-finite entries")

    # Augmented matrix [A | b]
    m = np.hstack([a, b.reshape(n, 1)])

    for k in range(n):
        pivot_row = k + int(np.argmax(np.abs(m[k:, k])))
        pivot = abs(m[pivot_row, k])
        if pivot < epsilon:
            logger.debug("Pivot %.3e in column %d below epsilon %.1e", pivot, k, epsilon)
            raise SingularMatrixError(
                f"Matrix is singular (pivot {pivot:.3e} in column {k})", column=k
            )
        if pivot_row != k:
            m[[k, pivot_row]] = m[[pivot_row, k]]

        factors = m[k + 1:, k] / m[k, k]
        m[k + 1:, k:] -= np.outer(factors, m[k, k:])
        m[k + 1:, k] = 0.0

        if not np.all(np.isfinite(m[k:])):
            raise SingularMatrixError(f"Elimination overflowed in column {k}", column=k)

    x = np.zeros(n)
    for i in range(n - 1, -1, -1):
        s = m[i, n] - np.dot(m[i, i + 1:n], x[i + 1:])
        x[i] = s / m[i, i]
        if not np.isfinite(x[i]):
            raise SingularMatrixError(f"Back substitution produced a non-finite value in row {i}", column=i)

    return x


def residual_norm(matrix, rhs, solution) -> float:
    """Infinity norm of ``matrix @ solution - rhs``."""
    a = np.asarray(matrix, dtype=float)
    if a.size == 0:
        return 0.0
    return float(np.max(np.abs(a @ np.asarray(solution, dtype=float) - np.asarray(rhs, dtype=float))))
