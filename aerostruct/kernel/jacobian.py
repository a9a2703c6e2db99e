# aerostruct/kernel/jacobian.py
"""
JACOBIANS OF PURE RESIDUAL FUNCTIONS
====================================

The coupled residual is a pure function of the state vector, so its
Jacobian can be obtained without differentiating each block by hand.

Two methods are provided:

COMPLEX STEP (default):
    J[:, k] = Im(R(x + i·h·e_k)) / h,   h = 1e-30

    No subtractive cancellation, so the derivative is exact to machine
    precision. It requires every operation in R to be complex-safe
    (no abs(), no np.linalg.norm(), no real-only casts), which the VLM,
    beam and transfer code respect.

FORWARD FINITE DIFFERENCE:
    J[:, k] = (R(x + h_k e_k) − R(x)) / h_k,   h_k = h·max(1, |x_k|)

    Works on any residual, at the cost of O(h) truncation error.

Both cost one residual evaluation per state entry.
"""

import numpy as np
from typing import Callable

Residual = Callable[[np.ndarray], np.ndarray]


def complex_step_jacobian(fun: Residual, x: np.ndarray, h: float = 1e-30) -> np.ndarray:
    """Jacobian of fun at x by complex-step differentiation."""
    x = np.asarray(x, dtype=float)
    n = x.shape[0]
    columns = []
    for k in range(n):
        xc = x.astype(complex)
        xc[k] += 1j * h
        columns.append(np.imag(fun(xc)) / h)
    return np.column_stack(columns)


def finite_difference_jacobian(fun: Residual, x: np.ndarray, h: float = 1e-7) -> np.ndarray:
    """Jacobian of fun at x by forward finite differences."""
    x = np.asarray(x, dtype=float)
    R0 = np.asarray(fun(x), dtype=float)
    J = np.zeros((R0.shape[0], x.shape[0]))
    for k in range(x.shape[0]):
        step = h * max(1.0, abs(x[k]))
        xp = x.copy()
        xp[k] += step
        J[:, k] = (np.asarray(fun(xp), dtype=float) - R0) / step
    return J


JACOBIAN_METHODS = {
    "complex_step": complex_step_jacobian,
    "finite_difference": finite_difference_jacobian,
}


def jacobian(fun: Residual, x: np.ndarray, method: str = "complex_step") -> np.ndarray:
    """Dispatch to one of JACOBIAN_METHODS by name."""
    try:
        method_func = JACOBIAN_METHODS[method]
    except KeyError:
        raise ValueError(
            f"Unknown Jacobian method '{method}'. Choose one of {sorted(JACOBIAN_METHODS)}."
        )
    return method_func(fun, x)
