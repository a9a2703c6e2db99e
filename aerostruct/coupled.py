# aerostruct/coupled.py
"""
COUPLED AEROSTRUCTURAL PROBLEM
==============================

PURPOSE:
--------
Solve the vortex lattice and the spar together, so that the circulations
satisfy flow tangency on the DEFORMED wing and the deflections are in
equilibrium with the loads produced by those circulations.

STATE VECTOR (see kernel.dof.StateLayout):

    x = [ Γ (all surfaces) | δ (6 per beam node, all surfaces) | α ]

RESIDUAL R(x), evaluated from scratch on every call:

    1. split x into Γ, δ and α
    2. deform every mesh with its beam displacements, rebuild horseshoes
    3. aerodynamic block:  AIC(δ) Γ − RHS(δ, α)
    4. near-field forces → beam loads on the deflected nodes
       structural block:  K δ − f(Γ, δ)       (clamped rows pinned to δ = 0)
    5. trim block:        L − n W             when a weight is given
                          α − α₀              otherwise, so the layout never changes

The Jacobian of the WHOLE residual is taken at once (complex step by
default, finite differences as a fallback) because aerodynamic loads
depend on deflections and deflections on loads; Newton then solves the
joint system instead of alternating between disciplines.

R is a pure function of x: no buffers are reused across calls, nothing
is cached between iterations, and every operation is complex-safe.

USAGE:
------
    wing = AerostructuralSurface(Surface("wing", mesh), ALUMINIUM_7075,
                                 radius=0.05, thickness=0.002)
    problem = AerostructuralProblem([wing], Freestream(speed=50, alpha=5), refs)
    result = solve_aerostructural(problem)
    result["wing"].displacements[:, 2]      # vertical deflection per node
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .beam.assembly import assemble_block_stiffness, load_vector, solve_beam
from .beam.model import BeamModel
from .beam.post import ks_failure, structural_weight, von_mises_stresses
from .catalog import Material
from .config import DEFAULT_CONFIG, SolverConfig
from .geometry import Surface, beam_nodes
from .kernel.dof import StateLayout
from .kernel.jacobian import jacobian
from .kernel.solve import apply_constraints, newton_solve
from .transfer import compute_loads, transfer_displacements
from .vlm.analysis import nearfield_coefficients, solve_case
from .vlm.forces import bound_midpoints, farfield_forces, nearfield_forces, nearfield_moments
from .vlm.freestream import Freestream, References, body_to_wind, force_coefficients
from .vlm.panels import horseshoe_arrays, panel_normals
from .vlm.system import assemble_system, split_by_shapes, stack_horseshoes

logger = logging.getLogger(__name__)


def centre_nodes(nodes: np.ndarray) -> Tuple[int, ...]:
    """Nodes nearest the symmetry plane; two when they straddle it."""
    y = np.real(nodes[:, 1])
    distance = np.abs(y)
    nearest = np.flatnonzero(np.isclose(distance, np.min(distance), rtol=1e-9, atol=1e-12))
    if nearest.size == 2 and y[nearest[0]] * y[nearest[1]] < 0.0:
        return int(nearest[0]), int(nearest[1])
    return (int(nearest[0]),)


@dataclass(frozen=True)
class AerostructuralSurface:
    """
    A lifting surface together with its spar.

    Parameters:
    -----------
    surface : Surface
        Aerodynamic geometry; mirrored surfaces get a full-span spar
    material : Material
    radius, thickness : float or array of shape (n_span,)
        Tube section, uniform or one per element
    constrained_nodes : tuple of int, optional
        Clamped beam nodes. By default the node closest to y = 0, or both
        centre nodes when an odd panel count leaves none on the plane.
    """
    surface: Surface
    material: Material
    radius: object
    thickness: object
    constrained_nodes: Optional[Tuple[int, ...]] = None

    @property
    def name(self) -> str:
        return self.surface.name

    def beam_model(self, ratio: float) -> BeamModel:
        nodes = beam_nodes(self.surface.full_mesh(), ratio)
        n_elements = nodes.shape[0] - 1
        radii = np.broadcast_to(np.asarray(self.radius, dtype=float), (n_elements,))
        thicknesses = np.broadcast_to(np.asarray(self.thickness, dtype=float), (n_elements,))
        constrained = self.constrained_nodes
        if constrained is None:
            constrained = centre_nodes(nodes)
        return BeamModel.from_sections(nodes, radii, thicknesses, self.material, constrained)


@dataclass
class CoupledSurfaceResult:
    """Converged state of one surface."""
    name: str
    circulations: np.ndarray   # (n_chord, n_span)
    mesh: np.ndarray           # deformed (n_chord + 1, n_span + 1, 3)
    forces: np.ndarray         # (n_chord, n_span, 3) body axes
    loads: np.ndarray          # (n_nodes, 6) beam loads
    displacements: np.ndarray  # (n_nodes, 6)
    stresses: np.ndarray       # (n_elements, 2) von Mises
    failure: float             # KS aggregate, ≤ 0 is safe
    structural_weight: float   # N
    nearfield: np.ndarray      # (6,)
    farfield: np.ndarray       # (3,)

    @property
    def tip_deflection(self) -> float:
        """Largest vertical displacement magnitude, signed."""
        w = self.displacements[:, 2]
        return float(w[np.argmax(np.abs(w))])


@dataclass
class AerostructuralResult:
    """Converged coupled solution."""
    x: np.ndarray
    alpha: float
    surfaces: Dict[str, CoupledSurfaceResult]
    nearfield: np.ndarray
    farfield: np.ndarray
    lift: float
    load_factor: Optional[float]
    residual_norm: float
    iterations: int
    history: List[float] = field(default_factory=list)

    def __getitem__(self, name: str) -> CoupledSurfaceResult:
        return self.surfaces[name]

    @property
    def CL(self) -> float:
        return float(self.nearfield[2])


class AerostructuralProblem:
    """
    Everything needed to evaluate the coupled residual of one analysis run.

    The problem holds only undeformed geometry and constant matrices; it is
    never mutated by residual evaluations, so several problems can coexist.

    Parameters:
    -----------
    components : sequence of AerostructuralSurface
    freestream : Freestream
        Its alpha is the initial guess and, without a weight, the fixed value
    refs : References
    weight : float, optional
        Aircraft weight (N). When given, α is trimmed so that L = n W.
    load_factor : float
        n in the trim equation
    config : SolverConfig
    """

    def __init__(
        self,
        components: Sequence[AerostructuralSurface],
        freestream: Freestream,
        refs: References,
        weight: Optional[float] = None,
        load_factor: float = 1.0,
        config: SolverConfig = DEFAULT_CONFIG,
    ):
        if len(components) == 0:
            raise ValueError("An aerostructural problem needs at least one surface")
        if weight is not None and weight <= 0:
            raise ValueError(f"Weight must be positive, got {weight}")

        self.components = list(components)
        self.freestream = freestream
        self.refs = refs
        self.weight = weight
        self.load_factor = load_factor
        self.config = config

        self.meshes = [c.surface.full_mesh() for c in self.components]
        self.cambers = [c.surface.full_camber() for c in self.components]
        self.models = [c.beam_model(config.beam_ratio) for c in self.components]
        self.shapes = [(m.shape[0] - 1, m.shape[1] - 1) for m in self.meshes]

        # All spars in one block-diagonal system, constant for a linear structure
        K, self.fixed = assemble_block_stiffness(self.models)
        self.stiffness, _ = apply_constraints(K, np.zeros(K.shape[0]), self.fixed)

        self.layout = StateLayout.build(
            names=[c.name for c in self.components],
            panel_shapes=self.shapes,
            node_counts=[model.n_nodes for model in self.models],
        )

    @property
    def names(self) -> List[str]:
        return list(self.layout.names)

    def _evaluate(self, x: np.ndarray) -> dict:
        """Deformed geometry, aerodynamic system and forces at state x."""
        gammas, disps, alpha = self.layout.split(x)
        fs = self.freestream.with_alpha(alpha)
        velocity = fs.velocity
        omega = np.asarray(fs.omega)

        meshes = []
        grids = []
        for name, mesh, camber, model in zip(self.names, self.meshes, self.cambers, self.models):
            deformed = transfer_displacements(disps[name], model.nodes, mesh)
            # The camber mesh rides on the same spar motion
            normals = panel_normals(transfer_displacements(disps[name], model.nodes, camber))
            meshes.append(deformed)
            grids.append(horseshoe_arrays(deformed, normals))
        r1, r2, points, normals = stack_horseshoes(grids)

        gamma = x[self.layout.aerodynamic_slice]
        AIC, RHS = assemble_system(r1, r2, points, normals, velocity, omega, self.config.core_size)
        forces = nearfield_forces(gamma, r1, r2, velocity, omega, self.refs.density, self.config.core_size)
        centers = bound_midpoints(r1, r2)

        force_grids = split_by_shapes(forces, self.shapes)
        center_grids = split_by_shapes(centers, self.shapes)
        loads = []
        for name, model, f, c in zip(self.names, self.models, force_grids, center_grids):
            deflected_nodes = model.nodes + disps[name][:, :3]
            loads.append(compute_loads(c, f, deflected_nodes))

        return dict(
            freestream=fs, alpha=alpha, gammas=gammas, displacements=disps,
            meshes=meshes, grids=grids, gamma=gamma, AIC=AIC, RHS=RHS,
            forces=forces, centers=centers, force_grids=force_grids, loads=loads,
        )

    def total_lift(self, state: dict):
        fs = state["freestream"]
        F = body_to_wind(np.sum(state["forces"], axis=0), fs.alpha, fs.beta)
        return F[2]

    def residual(self, x: np.ndarray) -> np.ndarray:
        """
        Coupled residual; zero at the aerostructural solution.

        Pure in x and analytic, so it accepts complex states.
        """
        state = self._evaluate(x)

        R_aero = state["AIC"] @ state["gamma"] - state["RHS"]

        F = np.concatenate([
            load_vector(loads, model.n_nodes) for loads, model in zip(state["loads"], self.models)
        ])
        F[self.fixed] = 0.0
        R_struct = self.stiffness @ x[self.layout.structural_slice] - F

        if self.weight is not None:
            R_trim = self.total_lift(state) - self.load_factor * self.weight
        else:
            R_trim = state["alpha"] - self.freestream.alpha

        return np.concatenate([R_aero, R_struct, np.atleast_1d(R_trim)])

    def jacobian(self, x: np.ndarray) -> np.ndarray:
        return jacobian(self.residual, x, method=self.config.jacobian)

    def initial_guess(self) -> np.ndarray:
        """
        Rigid aerodynamic solution followed by one linear beam solve.

        This is already the exact solution when the structure is rigid.
        """
        surfaces = [c.surface for c in self.components]
        case = solve_case(surfaces, self.freestream, self.refs, self.config)

        gammas = {}
        disps = {}
        for name, model in zip(self.names, self.models):
            result = case[name]
            gammas[name] = result.circulations
            loads = compute_loads(result.centers, result.forces, model.nodes)
            disps[name], _ = solve_beam(model, loads, cond_limit=self.config.stiffness_cond_limit)

        return self.layout.join(gammas, disps, self.freestream.alpha)

    def result(self, x: np.ndarray, residual_norm: float = 0.0, iterations: int = 0,
               history: Optional[List[float]] = None) -> AerostructuralResult:
        """Assemble everything a downstream report needs at state x."""
        state = self._evaluate(x)
        fs = state["freestream"]

        moments = nearfield_moments(state["forces"], state["centers"], self.refs.location)
        moment_grids = split_by_shapes(moments, self.shapes)
        ff_surfaces = farfield_forces(
            [state["gammas"][n] for n in self.names],
            [g[0] for g in state["grids"]], [g[1] for g in state["grids"]],
            fs.speed, fs.alpha, fs.beta, self.refs.density, per_surface=True,
        )

        surfaces = {}
        for k, (name, model) in enumerate(zip(self.names, self.models)):
            d = np.array(state["displacements"][name], copy=True)
            stresses = von_mises_stresses(model, d)
            F = np.sum(state["force_grids"][k].reshape(-1, 3), axis=0)
            M = np.sum(moment_grids[k].reshape(-1, 3), axis=0)
            surfaces[name] = CoupledSurfaceResult(
                name=name,
                circulations=np.array(state["gammas"][name], copy=True),
                mesh=state["meshes"][k],
                forces=state["force_grids"][k],
                loads=state["loads"][k],
                displacements=d,
                stresses=stresses,
                failure=ks_failure(stresses, model.material.yield_stress, self.config.ks_rho),
                structural_weight=structural_weight(model),
                nearfield=nearfield_coefficients(F, M, fs, self.refs),
                farfield=force_coefficients(ff_surfaces[k], fs.speed, self.refs),
            )

        nearfield = nearfield_coefficients(
            np.sum(state["forces"], axis=0), np.sum(moments, axis=0), fs, self.refs
        )
        farfield = force_coefficients(np.sum(ff_surfaces, axis=0), fs.speed, self.refs)
        lift = float(self.total_lift(state))

        return AerostructuralResult(
            x=np.array(x, copy=True),
            alpha=float(state["alpha"]),
            surfaces=surfaces,
            nearfield=nearfield,
            farfield=farfield,
            lift=lift,
            load_factor=lift / self.weight if self.weight is not None else None,
            residual_norm=residual_norm,
            iterations=iterations,
            history=list(history or []),
        )


def solve_aerostructural(problem: AerostructuralProblem,
                         x0: Optional[np.ndarray] = None) -> AerostructuralResult:
    """
    Newton solve of the coupled residual.

    Parameters:
    -----------
    problem : AerostructuralProblem
    x0 : np.ndarray, optional
        Initial state; defaults to problem.initial_guess()

    Returns:
    --------
    AerostructuralResult

    Raises:
    -------
    ConvergenceError
        If config.max_iterations Newton steps do not reach config.tolerance;
        the exception carries the last iterate and its residual norm
    SingularSystemError
        If the rigid AIC, the beam stiffness or a Newton Jacobian is singular
    """
    config = problem.config
    if x0 is None:
        x0 = problem.initial_guess()
    else:
        x0 = np.asarray(x0, dtype=float)
        problem.layout.check(x0)

    logger.info(
        f"Aerostructural solve: {problem.layout.n_panels} panels, "
        f"{problem.layout.n_structural} structural DOFs, Jacobian by {config.jacobian}"
    )
    newton = newton_solve(
        problem.residual, problem.jacobian, x0,
        tol=config.tolerance, max_iter=config.max_iterations,
    )
    return problem.result(newton.x, newton.residual_norm, newton.iterations, newton.history)
