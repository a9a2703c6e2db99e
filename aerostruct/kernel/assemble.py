# aerostruct/kernel/assemble.py
"""
ASSEMBLY: Global Matrix Assembly
================================

Element blocks are scattered into one square matrix by their DOF maps.
Nothing here knows what an element is; a contribution is just a
(dof_map, ke) pair.

For a spar of 6-DOF nodes each contribution is 12×12. Neighbouring
elements share a node, so element i occupies rows/cols [6i : 6i+12) and
the 6×6 block of the shared node sums both sides.

Independent spars (wing, horizontal tail, vertical tail) never touch one
another. block_diagonal() stacks their matrices into the structural
system of the whole configuration.

Complex contributions produce a complex matrix, so complex-step
perturbations survive assembly.
"""

import numpy as np
from scipy.linalg import block_diag
from typing import List, Sequence, Tuple

from .dof import DimensionMismatchError


def assemble_global_K(
    ndof: int,
    contributions: List[Tuple[List[int], np.ndarray]]
) -> np.ndarray:
    """
    Sum element stiffness blocks into an (ndof, ndof) matrix.

        K[dof_map, dof_map] += ke      for every (dof_map, ke)

    Parameters:
    -----------
    ndof : int
        Size of the assembled system (6 × n_nodes for a spar)

    contributions : List[Tuple[List[int], np.ndarray]]
        One (dof_map, ke) per element, ke square with side len(dof_map)

    Returns:
    --------
    np.ndarray
        Singular until supports are imposed (free-free spar).
    """
    dtype = np.result_type(float, *[ke for _, ke in contributions]) if contributions else float
    K = np.zeros((ndof, ndof), dtype=dtype)

    for dof_map, ke in contributions:
        idx = np.asarray(dof_map, dtype=int)
        if ke.shape != (idx.size, idx.size):
            raise DimensionMismatchError(
                f"Stiffness block {ke.shape} cannot be scattered through {idx.size} DOFs"
            )
        K[np.ix_(idx, idx)] += ke

    return K


def block_diagonal(matrices: Sequence[np.ndarray]) -> np.ndarray:
    """Block-diagonal union of independent members' stiffness matrices."""
    if len(matrices) == 0:
        return np.zeros((0, 0))
    return block_diag(*matrices)
