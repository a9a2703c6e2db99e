# aerostruct/kernel/solve.py
"""Linear solves with constraints, singularity detection, and the Newton driver."""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np
import scipy.linalg

from .dof import DimensionMismatchError

logger = logging.getLogger(__name__)


class SingularSystemError(RuntimeError):
    """Raised when an AIC or stiffness matrix is singular or ill-conditioned."""
    pass


class ConvergenceError(RuntimeError):
    """
    Raised when the Newton iteration hits its iteration limit.

    The last iterate and its residual norm are kept for diagnostics; they
    are never meant to be used as a solution.
    """

    def __init__(self, message: str, x: np.ndarray, residual_norm: float, iterations: int):
        super().__init__(message)
        self.x = x
        self.residual_norm = residual_norm
        self.iterations = iterations


def apply_constraints(
    K: np.ndarray,
    F: np.ndarray,
    fixed_dofs: List[int]
) -> tuple[np.ndarray, np.ndarray]:
    """
    Zero constrained rows/columns of K and put 1 on their diagonal.

    Unlike the partitioned solve in solve_linear(), this keeps the system
    size unchanged, which is what the coupled residual needs: the state
    vector always carries all 6 DOFs of every node, and the constrained
    ones are driven to exactly zero by the identity rows.

    Returns:
        K_c: Constrained stiffness matrix (copy)
        F_c: Load vector with zeros at constrained DOFs (copy)
    """
    fixed = np.array(sorted(set(fixed_dofs)), dtype=int)
    K_c = np.array(K, copy=True)
    F_c = np.array(F, copy=True)
    K_c[fixed, :] = 0.0
    K_c[:, fixed] = 0.0
    K_c[fixed, fixed] = 1.0
    F_c[fixed] = 0.0
    return K_c, F_c


def solve_linear(
    K: np.ndarray,
    F: np.ndarray,
    fixed_dofs: list[int],
    cond_limit: float = 1e12
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Solve K·d = F with fixed boundary conditions via partitioning.

    Args:
        K: Global stiffness matrix (ndof x ndof)
        F: Global load vector (ndof,)
        fixed_dofs: List of constrained DOF indices (displacement = 0)
        cond_limit: Max condition number before raising SingularSystemError

    Returns:
        d: Displacement vector (ndof,)
        R: Reaction vector (ndof,)
        free: Array of free DOF indices

    Raises:
        SingularSystemError: If rigid-body modes remain (cond > cond_limit)
    """
    ndof = K.shape[0]

    fixed = set(fixed_dofs)
    free = np.array([i for i in range(ndof) if i not in fixed], dtype=int)

    Kff = K[np.ix_(free, free)]
    Ff = F[free]

    cond = np.linalg.cond(Kff)
    if not np.isfinite(cond) or cond > cond_limit:
        raise SingularSystemError(
            f"Unstable structure (cond={cond:.2e}). Check constraints. Need cond < {cond_limit:.0e}."
        )

    df = scipy.linalg.solve(Kff, Ff, assume_a="sym")

    d = np.zeros(ndof, dtype=df.dtype)
    d[free] = df

    # Reactions: R = K·d - F
    R = K @ d - F

    return d, R, free


def solve_dense(
    A: np.ndarray,
    b: np.ndarray,
    cond_limit: Optional[float] = None,
    name: str = "system"
) -> np.ndarray:
    """
    Direct LU solve of a general dense system.

    Used for the AIC system and for Newton steps. When cond_limit is given
    the condition number is checked first, otherwise only exact
    singularity (a zero pivot) is reported.
    """
    if A.ndim != 2 or A.shape[0] != A.shape[1] or A.shape[0] != b.shape[0]:
        raise DimensionMismatchError(
            f"Cannot solve {name}: matrix {A.shape} with right-hand side {b.shape}"
        )

    if cond_limit is not None:
        cond = np.linalg.cond(A)
        if not np.isfinite(cond) or cond > cond_limit:
            raise SingularSystemError(f"Singular {name} (cond={cond:.2e}).")

    try:
        lu, piv = scipy.linalg.lu_factor(A, check_finite=True)
    except (ValueError, scipy.linalg.LinAlgError) as e:
        raise SingularSystemError(f"Cannot factorize {name}: {e}") from e

    if np.any(np.diag(lu) == 0.0):
        raise SingularSystemError(f"Singular {name}: zero pivot in LU factorization.")

    return scipy.linalg.lu_solve((lu, piv), b)


@dataclass
class NewtonResult:
    """Converged Newton iterate with its convergence history."""
    x: np.ndarray
    residual_norm: float
    iterations: int
    history: List[float] = field(default_factory=list)


def newton_solve(
    residual: Callable[[np.ndarray], np.ndarray],
    jacobian: Callable[[np.ndarray], np.ndarray],
    x0: np.ndarray,
    tol: float = 1e-9,
    max_iter: int = 20
) -> NewtonResult:
    """
    Newton iteration on a square nonlinear system R(x) = 0.

        x ← x − J(x)⁻¹ R(x)

    until ‖R(x)‖₂ < tol (absolute).

    Args:
        residual: Pure function of the state vector
        jacobian: Function returning dR/dx at the state, shape (M, M)
        x0: Initial guess (M,)
        tol: Absolute tolerance on the residual norm
        max_iter: Maximum number of Newton steps

    Returns:
        NewtonResult with the converged state

    Raises:
        ConvergenceError: If max_iter steps are taken without meeting tol,
            or the residual becomes non-finite
        SingularSystemError: If a Jacobian is singular
    """
    x = np.array(x0, dtype=float, copy=True)
    history = []

    for iteration in range(max_iter + 1):
        R = residual(x)
        r_norm = float(np.linalg.norm(R))
        history.append(r_norm)
        logger.info(f"Newton iteration {iteration}: |R| = {r_norm:.6e}")

        if not np.isfinite(r_norm):
            raise ConvergenceError(
                f"Newton iteration diverged at step {iteration} (non-finite residual).",
                x, r_norm, iteration
            )

        if r_norm < tol:
            return NewtonResult(x, r_norm, iteration, history)

        if iteration == max_iter:
            break

        J = jacobian(x)
        dx = solve_dense(J, R, name="Newton Jacobian")
        x = x - dx

    raise ConvergenceError(
        f"Newton iteration did not converge after {max_iter} iterations. "
        f"Final residual: {r_norm:.2e}, tolerance: {tol:.2e}",
        x, r_norm, max_iter
    )
