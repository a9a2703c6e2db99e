# aerostruct/beam/assembly.py
"""
BEAM SYSTEM ASSEMBLY AND SOLVE
==============================

Turns a BeamModel into K·d = F and solves it.

    K = Σ_e  scatter(K_e^global)           element e → rows/cols [6e : 6e+12)
    F = nodal (Fx, Fy, Fz, Mx, My, Mz) per node, flattened

Clamped nodes remove all 6 of their DOFs. Without at least one clamped
node a free beam keeps its 6 rigid-body modes and the solve raises
SingularSystemError.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from .elements import tube_global_stiffness
from .model import BeamModel
from ..kernel.assemble import assemble_global_K, block_diagonal
from ..kernel.dof import DOF_3D_FRAME, DimensionMismatchError
from ..kernel.solve import solve_linear

logger = logging.getLogger(__name__)


def assemble_beam_stiffness(model: BeamModel) -> np.ndarray:
    """(6n, 6n) global stiffness of a beam, unconstrained."""
    contributions = []
    for e in model.elements:
        ke = tube_global_stiffness(model.material, e.tube, model.nodes[e.ni], model.nodes[e.nj])
        contributions.append((DOF_3D_FRAME.element_dof_map([e.ni, e.nj]), ke))
    logger.debug(f"Assembled beam stiffness: {model.n_nodes} nodes, {len(contributions)} elements")
    return assemble_global_K(DOF_3D_FRAME.ndof(model.n_nodes), contributions)


def beam_fixed_dofs(model: BeamModel) -> List[int]:
    return DOF_3D_FRAME.fixed_dofs(model.constrained_nodes)


def assemble_block_stiffness(models: Sequence[BeamModel]) -> Tuple[np.ndarray, List[int]]:
    """
    Block-diagonal stiffness of several independent members.

    Returns:
    --------
    K : (Σ 6nᵢ, Σ 6nᵢ) block-diagonal matrix
    fixed : constrained DOF indices, offset into the combined numbering
    """
    blocks = []
    fixed = []
    offset = 0
    for model in models:
        blocks.append(assemble_beam_stiffness(model))
        fixed.extend(offset + d for d in beam_fixed_dofs(model))
        offset += DOF_3D_FRAME.ndof(model.n_nodes)
    return block_diagonal(blocks), fixed


def load_vector(loads: np.ndarray, n_nodes: int) -> np.ndarray:
    """
    Flatten an (n, 6) array of nodal forces and moments.

    Raises:
    -------
    DimensionMismatchError
        If loads is not (n_nodes, 6)
    """
    loads = np.asarray(loads)
    if loads.shape != (n_nodes, 6):
        raise DimensionMismatchError(
            f"Beam loads have shape {loads.shape}, expected ({n_nodes}, 6)"
        )
    return loads.reshape(-1)


def solve_beam(model: BeamModel, loads: np.ndarray, cond_limit: float = 1e14):
    """
    Static deflection of a clamped beam.

    Parameters:
    -----------
    model : BeamModel
    loads : (n, 6) nodal forces and moments in global axes
    cond_limit : maximum condition number of the reduced stiffness

    Returns:
    --------
    displacements : (n, 6) translations and rotations
    reactions : (n, 6) support reactions (zero at free nodes)

    Raises:
    -------
    SingularSystemError
        If rigid-body modes remain (no or too few constraints)
    """
    K = assemble_beam_stiffness(model)
    F = load_vector(loads, model.n_nodes)
    d, R, _ = solve_linear(K, F, beam_fixed_dofs(model), cond_limit=cond_limit)
    return d.reshape(-1, 6), R.reshape(-1, 6)
