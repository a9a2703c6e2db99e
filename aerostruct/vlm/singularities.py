# aerostruct/vlm/singularities.py
"""
BIOT–SAVART KERNELS FOR HORSESHOE VORTICES
==========================================

PURPOSE:
--------
Velocity induced at field points by straight vortex filaments of unit
circulation. Everything is vectorized over (points × filaments): the
returned arrays have shape (M, N, 3) for M field points and N horseshoes.

FINITE SEGMENT (bound leg r1 → r2), with a = P − r1, b = P − r2:

    V = Γ/4π · (a × b)(|a| + |b|) / ( |a||b|(|a||b| + a·b) + (ε|r2 − r1|)² )

SEMI-INFINITE LEG starting at r and running along unit vector u, a = P − r:

    V = Γ/4π · (u × a) / ( |a|(|a| − u·a) + ε² )

The trailing leg at r2 runs from r2 to infinity; the one at r1 runs from
infinity into r1, so its sign is reversed.

FINITE CORE:
------------
The ε terms keep the kernels bounded when a field point approaches a
filament. On the filament itself the numerators vanish, so the induced
velocity goes to zero instead of blowing up. ε is SolverConfig.core_size.

All arithmetic is analytic (no abs, no np.linalg.norm), so complex-step
derivatives through these kernels are exact.
"""

import numpy as np

from ..geometry import vector_norm

FOUR_PI = 4.0 * np.pi


def _dot(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.sum(a * b, axis=-1)


def bound_leg_velocity(points, r1, r2, core_size: float = 0.0) -> np.ndarray:
    """
    Velocity at `points` (M, 3) from unit bound legs r1 → r2 (N, 3).

    Returns (M, N, 3).
    """
    a = points[:, None, :] - r1[None, :, :]
    b = points[:, None, :] - r2[None, :, :]
    na = vector_norm(a)
    nb = vector_norm(b)
    length_sq = _dot(r2 - r1, r2 - r1)[None, :]

    den = na * nb * (na * nb + _dot(a, b)) + core_size ** 2 * length_sq
    factor = (na + nb) / (FOUR_PI * den)
    return np.cross(a, b) * factor[..., None]


def semi_infinite_velocity(points, start, direction, core_size: float = 0.0) -> np.ndarray:
    """
    Velocity at `points` (M, 3) from unit filaments leaving `start` (N, 3)
    along the unit vector `direction` (3,) to infinity.

    Returns (M, N, 3).
    """
    a = points[:, None, :] - start[None, :, :]
    na = vector_norm(a)
    u = np.broadcast_to(direction, a.shape)

    den = na * (na - _dot(u, a)) + core_size ** 2
    return np.cross(u, a) / (FOUR_PI * den)[..., None]


def trailing_legs_velocity(points, r1, r2, direction, core_size: float = 0.0) -> np.ndarray:
    """Both trailing legs of unit horseshoes: out of r2 minus out of r1."""
    return (semi_infinite_velocity(points, r2, direction, core_size)
            - semi_infinite_velocity(points, r1, direction, core_size))


def horseshoe_velocity(points, r1, r2, direction, core_size: float = 0.0) -> np.ndarray:
    """
    Influence tensor of unit horseshoes: bound leg plus both trailing legs.

    Parameters:
    -----------
    points : (M, 3) field points
    r1, r2 : (N, 3) bound-leg endpoints
    direction : (3,) unit vector of the trailing legs
    core_size : finite-core radius

    Returns:
    --------
    (M, N, 3) velocity at point m per unit circulation of horseshoe n
    """
    return (bound_leg_velocity(points, r1, r2, core_size)
            + trailing_legs_velocity(points, r1, r2, direction, core_size))


def induced_velocity(points, r1, r2, circulations, direction, core_size: float = 0.0,
                     trailing_only: bool = False) -> np.ndarray:
    """
    Velocity induced at `points` by horseshoes of strength `circulations`.

    With trailing_only=True the bound legs are left out; this is the
    velocity the Kutta–Joukowski force uses at the bound-leg midpoints.

    Returns (M, 3).
    """
    kernel = trailing_legs_velocity(points, r1, r2, direction, core_size)
    if not trailing_only:
        kernel = kernel + bound_leg_velocity(points, r1, r2, core_size)
    return np.einsum("mnk,n->mk", kernel, circulations)
