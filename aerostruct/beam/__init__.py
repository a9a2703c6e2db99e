# aerostruct/beam - Spatial tube-beam finite elements
"""
SPATIAL BEAM STRUCTURES
=======================

6-DOF Euler–Bernoulli tube elements for wing spars:

- model:    Tube section, BeamElement, BeamModel
- elements: 12×12 local stiffness, local frame, Tᵀ K T
- assembly: global stiffness, constraints, solve_beam()
- post:     end forces, von Mises stress, KS failure, weight, energy
"""

from .model import Tube, BeamElement, BeamModel
from .elements import tube_local_stiffness, element_frame, beam_transform, tube_global_stiffness
from .assembly import (
    assemble_beam_stiffness,
    assemble_block_stiffness,
    beam_fixed_dofs,
    load_vector,
    solve_beam,
)
from .post import (
    element_end_forces,
    von_mises_stresses,
    ks_failure,
    structural_weight,
    strain_energy,
)

__all__ = [
    'Tube', 'BeamElement', 'BeamModel',
    'tube_local_stiffness', 'element_frame', 'beam_transform', 'tube_global_stiffness',
    'assemble_beam_stiffness', 'assemble_block_stiffness', 'beam_fixed_dofs',
    'load_vector', 'solve_beam',
    'element_end_forces', 'von_mises_stresses', 'ks_failure',
    'structural_weight', 'strain_energy',
]
