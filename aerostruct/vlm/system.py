# aerostruct/vlm/system.py
"""
VORTEX-LATTICE LINEAR SYSTEM
============================

For N horseshoes with collocation points rᵢ and normals nᵢ, flow
tangency at every collocation point reads

    Σⱼ AIC[i, j] Γⱼ = RHS[i]

    AIC[i, j] = v_j(rᵢ) · nᵢ          normal velocity at i per unit Γ of horseshoe j
    RHS[i]    = −(V∞ − Ω × rᵢ) · nᵢ   freestream plus body rotation

Row and column order both follow the horseshoe order: surfaces
concatenated, each flattened row-major from its (n_chord, n_span) grid.

VLMSystem owns the scratch buffers (AIC, RHS, circulations). They are
allocated once for a given size and overwritten by every assemble() call,
which is what a coupled iteration wants when the geometry moves each step.
assemble_system() is the allocation-free pure version used inside
differentiated residuals.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from .singularities import horseshoe_velocity
from ..kernel.dof import DimensionMismatchError
from ..kernel.solve import solve_dense

logger = logging.getLogger(__name__)


def influence_matrix(r1, r2, points, normals, direction, core_size: float = 0.0) -> np.ndarray:
    """(N, N) aerodynamic influence coefficients."""
    V = horseshoe_velocity(points, r1, r2, direction, core_size)
    return np.einsum("mnk,mk->mn", V, normals)


def boundary_condition(points, normals, velocity, omega) -> np.ndarray:
    """RHS[i] = −(V∞ − Ω × rᵢ) · nᵢ"""
    local = velocity[None, :] - np.cross(np.broadcast_to(omega, points.shape), points)
    return -np.sum(local * normals, axis=-1)


def _check_counts(r1, r2, points, normals):
    n = r1.shape[0]
    for name, arr in (("r2", r2), ("collocation points", points), ("normals", normals)):
        if arr.shape != (n, 3):
            raise DimensionMismatchError(
                f"Got {arr.shape} {name} for {n} horseshoes; expected ({n}, 3)"
            )


def assemble_system(r1, r2, points, normals, velocity, omega, core_size: float = 0.0):
    """
    Pure assembly of (AIC, RHS).

    Parameters:
    -----------
    r1, r2 : (N, 3) bound-leg endpoints
    points : (N, 3) collocation points
    normals : (N, 3) unit normals
    velocity : (3,) freestream velocity in body axes
    omega : (3,) body angular rates
    core_size : finite-core radius of the filaments
    """
    _check_counts(r1, r2, points, normals)
    speed = np.sqrt(np.sum(velocity * velocity))
    direction = velocity / speed
    AIC = influence_matrix(r1, r2, points, normals, direction, core_size)
    RHS = boundary_condition(points, normals, velocity, omega)
    return AIC, RHS


def stack_horseshoes(grids: Sequence[Tuple[np.ndarray, ...]]):
    """
    Concatenate per-surface horseshoe grids into (N, 3) arrays.

    `grids` holds one (r1, r2, collocation, normals) tuple per surface, as
    returned by horseshoe_arrays().
    """
    return tuple(
        np.concatenate([g[k].reshape(-1, 3) for g in grids], axis=0)
        for k in range(4)
    )


class VLMSystem:
    """
    Pre-allocated vortex-lattice system.

    Usage:
    ------
        system = VLMSystem(n_panels=50)
        system.assemble(r1, r2, points, normals, velocity, omega, core_size)
        gamma = system.solve()
        grids = system.reshape(gamma, [(5, 10)])
    """

    def __init__(self, n_panels: int, dtype=float):
        self.n_panels = int(n_panels)
        self.AIC = np.zeros((self.n_panels, self.n_panels), dtype=dtype)
        self.RHS = np.zeros(self.n_panels, dtype=dtype)
        self.circulations = np.zeros(self.n_panels, dtype=dtype)

    def assemble(self, r1, r2, points, normals, velocity, omega, core_size: float = 0.0):
        """Overwrite AIC and RHS in place for the given geometry and flight condition."""
        if r1.shape[0] != self.n_panels:
            raise DimensionMismatchError(
                f"System allocated for {self.n_panels} horseshoes, got {r1.shape[0]}"
            )
        AIC, RHS = assemble_system(r1, r2, points, normals, velocity, omega, core_size)
        self.AIC[...] = AIC
        self.RHS[...] = RHS
        logger.debug(f"Assembled AIC for {self.n_panels} horseshoes")
        return self.AIC, self.RHS

    def solve(self, cond_limit: float = None) -> np.ndarray:
        """
        Solve AIC · Γ = RHS.

        Raises:
            SingularSystemError: for degenerate or duplicated panels
        """
        self.circulations[...] = solve_dense(self.AIC, self.RHS, cond_limit, name="AIC system")
        return self.circulations

    def residual(self, circulations: np.ndarray) -> np.ndarray:
        """AIC · Γ − RHS"""
        if circulations.shape != (self.n_panels,):
            raise DimensionMismatchError(
                f"Expected {self.n_panels} circulations, got shape {circulations.shape}"
            )
        return self.AIC @ circulations - self.RHS

    def reshape(self, circulations: np.ndarray, shapes: Sequence[Tuple[int, int]]) -> List[np.ndarray]:
        """Split a flat circulation vector back into per-surface (n_chord, n_span) grids."""
        return split_by_shapes(circulations, shapes)


def split_by_shapes(values: np.ndarray, shapes: Sequence[Tuple[int, int]]) -> List[np.ndarray]:
    """
    Split the leading axis of `values` into per-surface grids.

    Works for (N,) circulations and (N, 3) vectors alike.
    """
    sizes = [nc * ns for nc, ns in shapes]
    if sum(sizes) != values.shape[0]:
        raise DimensionMismatchError(
            f"Cannot split {values.shape[0]} entries into grids {list(shapes)} "
            f"({sum(sizes)} panels)"
        )
    out = []
    start = 0
    for (nc, ns), size in zip(shapes, sizes):
        out.append(values[start:start + size].reshape((nc, ns) + values.shape[1:]))
        start += size
    return out
