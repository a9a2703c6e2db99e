# aerostruct - Coupled vortex-lattice / spatial-beam analysis
"""
AEROSTRUCT: Aerostructural Analysis of Lifting Surfaces
=======================================================

This package provides:
- Vortex-lattice aerodynamics (near-field and Trefftz-plane forces,
  stability derivatives)
- 6-DOF tubular beam finite elements for wing spars
- Load and displacement transfer between the two meshes
- A joint Newton solve of the coupled residual, with optional trim

ARCHITECTURE:
-------------
    kernel/         Discipline-agnostic core (DOF/state indexing, assembly,
                    solves, Jacobians, Newton)
    config.py       SolverConfig passed to every analysis
    catalog.py      Spar materials
    geometry.py     Surface, mirroring, simple meshes, beam nodes
    vlm/            Vortex lattice method
    beam/           Spatial beam structures
    transfer.py     Aero loads → beam, beam deflections → aero mesh
    coupled.py      AerostructuralProblem and solve_aerostructural()
"""

import logging

from .kernel import (
    DOFManager,
    StateLayout,
    DimensionMismatchError,
    SingularSystemError,
    ConvergenceError,
)
from .config import SolverConfig, DEFAULT_CONFIG
from .catalog import Material, ALUMINIUM_7075, STEEL_4130, CARBON_TUBE
from .geometry import Surface, rectangular_mesh, reflect_xz, beam_nodes
from .vlm import Freestream, References, solve_case, stability_derivatives
from .beam import Tube, BeamModel, solve_beam
from .transfer import compute_loads, transfer_displacements
from .coupled import (
    AerostructuralSurface,
    AerostructuralProblem,
    AerostructuralResult,
    solve_aerostructural,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
