# aerostruct/transfer.py
"""
LOAD AND DISPLACEMENT TRANSFER
==============================

The aerodynamic mesh and the beam do not share points. Spanwise station j
of the mesh is tied to beam node j, so a surface with n_span strips has
n_span + 1 beam nodes and each strip j is bounded by nodes j and j + 1.

AERO → STRUCTURE (compute_loads):

    For every panel force f at its centre c in strip j, half goes to each
    bounding node together with the moment it produces about that node:

        node j:     F += f/2,   M += (c − x_j)     × f/2
        node j+1:   F += f/2,   M += (c − x_{j+1}) × f/2

    Interior nodes collect halves from both neighbouring strips. Total
    force is conserved exactly, and so is the total moment about any point.

STRUCTURE → AERO (transfer_displacements):

    Cross-sections are rigid. With translation u_j and small rotation θ_j
    at node x_j, every mesh point x on station j moves to

        x' = x + u_j + S(θ_j) (x − x_j),     S(θ) v = θ × v

    Zero deflection returns the mesh unchanged.

Both directions are written with plain array arithmetic so that complex
perturbations of the state pass straight through.
"""

import numpy as np

from .kernel.dof import DimensionMismatchError


def rotation_generator(theta: np.ndarray) -> np.ndarray:
    """
    Skew-symmetric small-rotation matrix of (…, 3) rotation vectors.

        S(θ) = [[  0, −θz,  θy],
                [ θz,   0, −θx],
                [−θy,  θx,   0]]
    """
    theta = np.asarray(theta)
    tx, ty, tz = theta[..., 0], theta[..., 1], theta[..., 2]
    zero = np.zeros_like(tx)
    return np.stack([
        np.stack([zero, -tz, ty], axis=-1),
        np.stack([tz, zero, -tx], axis=-1),
        np.stack([-ty, tx, zero], axis=-1),
    ], axis=-2)


def compute_loads(aero_centers: np.ndarray, aero_forces: np.ndarray, beam_nodes: np.ndarray) -> np.ndarray:
    """
    Lump panel forces onto beam nodes.

    Parameters:
    -----------
    aero_centers : (n_chord, n_span, 3)
        Points where the forces act (bound-leg midpoints)
    aero_forces : (n_chord, n_span, 3)
        Panel forces
    beam_nodes : (n_span + 1, 3)

    Returns:
    --------
    (n_span + 1, 6) nodal [Fx, Fy, Fz, Mx, My, Mz]
    """
    n_chord, n_span = aero_forces.shape[:2]
    if aero_centers.shape != aero_forces.shape or beam_nodes.shape != (n_span + 1, 3):
        raise DimensionMismatchError(
            f"Cannot transfer forces {aero_forces.shape} at centres {aero_centers.shape} "
            f"onto {beam_nodes.shape} beam nodes; expected ({n_span + 1}, 3) nodes"
        )

    half = 0.5 * aero_forces
    strip_half = np.sum(half, axis=0)

    inboard = np.sum(np.cross(aero_centers - beam_nodes[None, :-1], half), axis=0)
    outboard = np.sum(np.cross(aero_centers - beam_nodes[None, 1:], half), axis=0)

    dtype = np.result_type(aero_forces, aero_centers, beam_nodes)
    loads = np.zeros((n_span + 1, 6), dtype=dtype)
    loads[:-1, :3] += strip_half
    loads[1:, :3] += strip_half
    loads[:-1, 3:] += inboard
    loads[1:, 3:] += outboard
    return loads


def transfer_displacements(displacements: np.ndarray, beam_nodes: np.ndarray, mesh: np.ndarray) -> np.ndarray:
    """
    Deform an aerodynamic mesh with beam translations and rotations.

    Parameters:
    -----------
    displacements : (n_span + 1, 6)
        [ux, uy, uz, rx, ry, rz] per beam node
    beam_nodes : (n_span + 1, 3)
        Undeformed node positions
    mesh : (n_chord + 1, n_span + 1, 3)
        Undeformed mesh

    Returns:
    --------
    (n_chord + 1, n_span + 1, 3) deformed mesh (a new array)
    """
    n_nodes = mesh.shape[1]
    if displacements.shape != (n_nodes, 6) or beam_nodes.shape != (n_nodes, 3):
        raise DimensionMismatchError(
            f"Mesh has {n_nodes} spanwise stations but got displacements {displacements.shape} "
            f"and beam nodes {beam_nodes.shape}"
        )

    u = displacements[:, :3]
    S = rotation_generator(displacements[:, 3:])
    arm = mesh - beam_nodes[None, :, :]
    return mesh + u[None, :, :] + np.einsum("jab,ijb->ija", S, arm)
