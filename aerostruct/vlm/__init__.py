# aerostruct/vlm - Vortex-lattice aerodynamics
"""
VORTEX LATTICE METHOD
=====================

Horseshoe vortices on a corner-point mesh, solved for the circulations that
make the flow tangent at every collocation point.

    mesh → horseshoe_arrays() → assemble_system() → solve → forces

Modules:
- panels:        panel and horseshoe geometry
- singularities: Biot–Savart kernels with finite core
- freestream:    flight condition, references, axis transforms
- system:        AIC / RHS assembly and the pre-allocated VLMSystem
- forces:        Kutta–Joukowski near field and Trefftz-plane far field
- analysis:      solve_case(), stability derivatives, spanwise loading
"""

from .panels import (
    Panel,
    Horseshoe,
    make_panels,
    make_horseshoes,
    horseshoe_arrays,
    panel_area,
    panel_normal,
    panel_normals,
    midpoint,
    reflect_panel,
    wetted_area,
)
from .singularities import (
    bound_leg_velocity,
    semi_infinite_velocity,
    trailing_legs_velocity,
    horseshoe_velocity,
    induced_velocity,
)
from .freestream import (
    Freestream,
    References,
    dynamic_pressure,
    body_to_stability,
    stability_to_wind,
    body_to_wind,
    stability_flip,
    force_coefficients,
    moment_coefficients,
    rate_coefficients,
)
from .system import VLMSystem, assemble_system, influence_matrix, boundary_condition, stack_horseshoes
from .forces import nearfield_forces, nearfield_moments, farfield_forces, bound_midpoints
from .analysis import (
    CaseResult,
    SurfaceResult,
    solve_case,
    stability_derivatives,
    spanwise_loading,
    nearfield_coefficients,
)

__all__ = [
    'Panel', 'Horseshoe', 'make_panels', 'make_horseshoes', 'horseshoe_arrays',
    'panel_area', 'panel_normal', 'panel_normals', 'midpoint', 'reflect_panel', 'wetted_area',
    'bound_leg_velocity', 'semi_infinite_velocity', 'trailing_legs_velocity',
    'horseshoe_velocity', 'induced_velocity',
    'Freestream', 'References', 'dynamic_pressure',
    'body_to_stability', 'stability_to_wind', 'body_to_wind', 'stability_flip',
    'force_coefficients', 'moment_coefficients', 'rate_coefficients',
    'VLMSystem', 'assemble_system', 'influence_matrix', 'boundary_condition', 'stack_horseshoes',
    'nearfield_forces', 'nearfield_moments', 'farfield_forces', 'bound_midpoints',
    'CaseResult', 'SurfaceResult', 'solve_case', 'stability_derivatives',
    'spanwise_loading', 'nearfield_coefficients',
]
