# aerostruct/vlm/analysis.py
"""
AERODYNAMIC CASE ANALYSIS
=========================

Runs one rigid vortex-lattice case over a set of surfaces and reports:

- per-surface circulation grids, panel forces and moments
- near-field coefficients  [CD, CY, CL, Cl, Cm, Cn]  (wind axes)
- far-field coefficients   [CDi, CY, CL]             (Trefftz plane)

plus two derived analyses:

- stability_derivatives(): ∂(near-field coefficients)/∂(α, β, p̂, q̂, r̂)
  by complex step through the whole case, including the linear solve
- spanwise_loading(): sectional lift coefficient per spanwise strip

Near-field and far-field numbers are reported together on purpose; they
are independent estimates and their difference is a useful mesh check.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np

from .forces import farfield_forces, nearfield_forces, nearfield_moments, bound_midpoints
from .freestream import (
    DEG,
    Freestream,
    References,
    body_to_wind,
    dynamic_pressure,
    force_coefficients,
    moment_coefficients,
    rates_from_coefficients,
    stability_flip,
)
from .panels import horseshoe_arrays, panel_normals
from .system import VLMSystem, stack_horseshoes, split_by_shapes
from ..config import DEFAULT_CONFIG, SolverConfig
from ..geometry import Surface, local_chords

logger = logging.getLogger(__name__)


@dataclass
class SurfaceResult:
    """Aerodynamic results of one surface."""
    name: str
    circulations: np.ndarray   # (n_chord, n_span)
    centers: np.ndarray        # (n_chord, n_span, 3) bound-leg midpoints
    forces: np.ndarray         # (n_chord, n_span, 3) body axes
    moments: np.ndarray        # (n_chord, n_span, 3) about refs.location
    nearfield: np.ndarray      # (6,)
    farfield: np.ndarray       # (3,)


@dataclass
class CaseResult:
    """Aerodynamic results of a whole case."""
    surfaces: Dict[str, SurfaceResult]
    nearfield: np.ndarray
    farfield: np.ndarray

    def __getitem__(self, name: str) -> SurfaceResult:
        return self.surfaces[name]

    @property
    def CL(self):
        return self.nearfield[2]

    @property
    def CDi(self):
        return self.farfield[0]


def nearfield_coefficients(force: np.ndarray, moment: np.ndarray, freestream: Freestream,
                           refs: References) -> np.ndarray:
    """
    [CD, CY, CL, Cl, Cm, Cn] from body-axis resultants.

    Forces are rotated to wind axes as they are. Moments are first put in
    flight-mechanics signs with stability_flip().
    """
    F = body_to_wind(force, freestream.alpha, freestream.beta)
    M = body_to_wind(stability_flip(moment), freestream.alpha, freestream.beta)
    return np.concatenate([
        force_coefficients(F, freestream.speed, refs),
        moment_coefficients(M, freestream.speed, refs),
    ])


def solve_case(surfaces: Sequence[Surface], freestream: Freestream, refs: References,
               config: SolverConfig = DEFAULT_CONFIG) -> CaseResult:
    """
    Solve the vortex-lattice system of rigid surfaces and recover forces.

    Parameters:
    -----------
    surfaces : sequence of Surface
        Mirrored surfaces are reflected before solving. Boundary-condition
        normals come from the camber mesh when one is given.
    freestream : Freestream
    refs : References
    config : SolverConfig
        core_size and aic_cond_limit are used

    Returns:
    --------
    CaseResult

    Raises:
    -------
    SingularSystemError
        If the AIC matrix is singular (e.g., duplicated panels)
    """
    names = [s.name for s in surfaces]
    grids = [horseshoe_arrays(s.full_mesh(), panel_normals(s.full_camber())) for s in surfaces]
    shapes = [g[0].shape[:2] for g in grids]
    r1, r2, points, normals = stack_horseshoes(grids)

    velocity = freestream.velocity
    omega = np.asarray(freestream.omega)
    dtype = np.result_type(velocity, omega, r1)

    system = VLMSystem(r1.shape[0], dtype=dtype)
    system.assemble(r1, r2, points, normals, velocity, omega, config.core_size)
    # The condition number is not analytic; skip the check under complex step.
    cond_limit = config.aic_cond_limit if not np.iscomplexobj(system.AIC) else None
    gamma = np.array(system.solve(cond_limit), copy=True)

    forces = nearfield_forces(gamma, r1, r2, velocity, omega, refs.density, config.core_size)
    centers = bound_midpoints(r1, r2)
    moments = nearfield_moments(forces, centers, refs.location)

    gamma_grids = split_by_shapes(gamma, shapes)
    force_grids = split_by_shapes(forces, shapes)
    moment_grids = split_by_shapes(moments, shapes)
    center_grids = split_by_shapes(centers, shapes)

    ff_surfaces = farfield_forces(
        gamma_grids, [g[0] for g in grids], [g[1] for g in grids],
        freestream.speed, freestream.alpha, freestream.beta, refs.density,
        per_surface=True,
    )

    results = {}
    for k, name in enumerate(names):
        F = np.sum(force_grids[k].reshape(-1, 3), axis=0)
        M = np.sum(moment_grids[k].reshape(-1, 3), axis=0)
        results[name] = SurfaceResult(
            name=name,
            circulations=gamma_grids[k],
            centers=center_grids[k],
            forces=force_grids[k],
            moments=moment_grids[k],
            nearfield=nearfield_coefficients(F, M, freestream, refs),
            farfield=force_coefficients(ff_surfaces[k], freestream.speed, refs),
        )

    nearfield = nearfield_coefficients(np.sum(forces, axis=0), np.sum(moments, axis=0), freestream, refs)
    farfield = force_coefficients(np.sum(ff_surfaces, axis=0), freestream.speed, refs)

    if not np.iscomplexobj(nearfield):
        logger.info(
            f"VLM case α={freestream.alpha:.3f}°, β={freestream.beta:.3f}°: "
            f"CL={nearfield[2]:.5f}, CDi(ff)={farfield[0]:.6f}"
        )
    return CaseResult(results, nearfield, farfield)


STABILITY_VARIABLES = ("alpha", "beta", "p", "q", "r")


def stability_derivatives(surfaces: Sequence[Surface], freestream: Freestream, refs: References,
                          config: SolverConfig = DEFAULT_CONFIG, h: float = 1e-20) -> Dict[str, np.ndarray]:
    """
    Derivatives of the total near-field coefficients.

    Angles are differentiated per radian and rates with respect to the
    non-dimensional p̂ = pb/2U, q̂ = qc/2U, r̂ = rb/2U.

    Returns:
    --------
    dict variable → (6,) array of ∂[CD, CY, CL, Cl, Cm, Cn]/∂variable
    """
    omega = np.asarray(freestream.omega, dtype=float)
    derivatives = {}

    for variable in STABILITY_VARIABLES:
        if variable == "alpha":
            fs = Freestream(freestream.speed, freestream.alpha + 1j * h / DEG, freestream.beta, omega)
        elif variable == "beta":
            fs = Freestream(freestream.speed, freestream.alpha, freestream.beta + 1j * h / DEG, omega)
        else:
            rates = np.zeros(3, dtype=complex)
            rates["pqr".index(variable)] = 1j * h
            fs = Freestream(freestream.speed, freestream.alpha, freestream.beta,
                            omega + rates_from_coefficients(rates, freestream.speed, refs))
        result = solve_case(surfaces, fs, refs, config)
        derivatives[variable] = np.imag(result.nearfield) / h

    return derivatives


def spanwise_loading(result: SurfaceResult, surface: Surface, freestream: Freestream,
                     refs: References):
    """
    Sectional lift coefficient of each spanwise strip.

    Returns:
    --------
    y : (n_span,) strip centres
    cl : (n_span,) lift per unit span / (q · local chord)
    """
    mesh = surface.full_mesh()
    strip_force = np.sum(result.forces, axis=0)
    lift = body_to_wind(strip_force, freestream.alpha, freestream.beta)[:, 2]

    le = mesh[0]
    d = le[1:] - le[:-1]
    width = np.sqrt(d[:, 1] ** 2 + d[:, 2] ** 2)
    chords = local_chords(mesh)
    chord = 0.5 * (chords[1:] + chords[:-1])

    y = 0.5 * (le[1:, 1] + le[:-1, 1])
    cl = lift / (dynamic_pressure(refs.density, freestream.speed) * chord * width)
    return y, cl
