# aerostruct/vlm/forces.py
"""
FORCE RECOVERY: NEAR FIELD AND FAR FIELD
========================================

NEAR FIELD (Kutta–Joukowski on every bound leg):

    Fᵢ = ρ Γᵢ (V∞ − Ω × mᵢ + V_ind(mᵢ)) × lᵢ

at the bound-leg midpoint mᵢ, with lᵢ = r2 − r1. V_ind is induced by the
trailing legs of every horseshoe, the panel's own included. Bound legs
are left out.

FAR FIELD (Trefftz plane):

The wake is projected onto a plane normal to V∞ (wind axes, x dropped).
Each spanwise strip leaves a pair of trailing vortices at its trailing-edge
endpoints q1, q2 with the chordwise sum of circulations Γ. In the plane
they are 2D point vortices, and with

    Δs = |q2 − q1|,   n = x̂ × (q2 − q1)/Δs,   w = induced velocity at strip centres

    D = −ρ/2 Σ Γ Δs (w · n)
    Y =  ρU Σ Γ Δs n_y
    L =  ρU Σ Γ Δs n_z

The far field is the better estimate of induced drag. Near- and far-field
results are kept side by side; small differences between them are expected.
"""

from typing import Sequence

import numpy as np

from .freestream import body_to_wind
from .singularities import induced_velocity


def bound_midpoints(r1: np.ndarray, r2: np.ndarray) -> np.ndarray:
    return 0.5 * (r1 + r2)


def nearfield_forces(circulations, r1, r2, velocity, omega, density, core_size: float = 0.0) -> np.ndarray:
    """
    Kutta–Joukowski force on every horseshoe.

    Parameters:
    -----------
    circulations : (N,)
    r1, r2 : (N, 3) bound-leg endpoints
    velocity : (3,) freestream in body axes
    omega : (3,) body rates
    density : ρ

    Returns:
    --------
    (N, 3) forces in body axes
    """
    midpoints = bound_midpoints(r1, r2)
    speed = np.sqrt(np.sum(velocity * velocity))
    direction = velocity / speed

    V_ind = induced_velocity(midpoints, r1, r2, circulations, direction, core_size,
                             trailing_only=True)
    V_rot = -np.cross(np.broadcast_to(omega, midpoints.shape), midpoints)
    V = velocity[None, :] + V_rot + V_ind

    return density * circulations[:, None] * np.cross(V, r2 - r1)


def nearfield_moments(forces, points, location) -> np.ndarray:
    """(N, 3) moments of forces applied at points, about location."""
    return np.cross(points - np.asarray(location)[None, :], forces)


def trefftz_geometry(r1_grid, r2_grid, alpha, beta):
    """
    Trailing-edge trace of one surface in the Trefftz plane.

    Takes the last chordwise row of bound-leg endpoints, rotates it to wind
    axes and drops the streamwise coordinate.

    Returns:
    --------
    q1, q2 : (n_span, 2) (y, z) wind-axis endpoints of each strip
    """
    q1 = body_to_wind(r1_grid[-1], alpha, beta)[:, 1:]
    q2 = body_to_wind(r2_grid[-1], alpha, beta)[:, 1:]
    return q1, q2


def trefftz_velocity(points, q1, q2, strengths) -> np.ndarray:
    """
    2D velocity in the Trefftz plane induced at `points` (M, 2) by
    vortex pairs (−Γ at q1, +Γ at q2).
    """
    def kernel(q):
        d = points[:, None, :] - q[None, :, :]
        r_sq = np.sum(d * d, axis=-1)
        # x̂ × (dy, dz) = (−dz, dy)
        return np.stack([-d[..., 1], d[..., 0]], axis=-1) / r_sq[..., None]

    K = (kernel(q2) - kernel(q1)) / (2.0 * np.pi)
    return np.einsum("mnk,n->mk", K, strengths)


def farfield_forces(circulation_grids: Sequence[np.ndarray], r1_grids: Sequence[np.ndarray],
                    r2_grids: Sequence[np.ndarray], speed, alpha, beta, density,
                    per_surface: bool = False):
    """
    Trefftz-plane (drag, side force, lift) in wind axes.

    All surfaces are traced together, since each wake induces velocity on
    the others. With per_surface=True a list with one (3,) array per surface
    is returned instead of the total; the entries still include the
    velocity induced by the other wakes.
    """
    q1 = []
    q2 = []
    strengths = []
    counts = []
    for gamma, r1, r2 in zip(circulation_grids, r1_grids, r2_grids):
        a, b = trefftz_geometry(r1, r2, alpha, beta)
        q1.append(a)
        q2.append(b)
        strengths.append(np.sum(gamma, axis=0))
        counts.append(a.shape[0])
    q1 = np.concatenate(q1, axis=0)
    q2 = np.concatenate(q2, axis=0)
    gamma = np.concatenate(strengths)

    strips = trefftz_strip_forces(q1, q2, gamma, speed, density)
    if not per_surface:
        return np.sum(strips, axis=0)
    bounds = np.cumsum([0] + counts)
    return [np.sum(strips[start:stop], axis=0) for start, stop in zip(bounds[:-1], bounds[1:])]


def trefftz_strip_forces(q1, q2, gamma, speed, density) -> np.ndarray:
    """(n_strips, 3) drag, side force and lift of each Trefftz-plane strip."""
    s = q2 - q1
    ds = np.sqrt(np.sum(s * s, axis=-1))
    t = s / ds[:, None]
    normals = np.stack([-t[:, 1], t[:, 0]], axis=-1)
    centers = 0.5 * (q1 + q2)

    w = trefftz_velocity(centers, q1, q2, gamma)
    drag = -0.5 * density * gamma * ds * np.sum(w * normals, axis=-1)
    side = density * speed * gamma * ds * normals[:, 0]
    lift = density * speed * gamma * ds * normals[:, 1]
    return np.stack([drag, side, lift], axis=-1)
