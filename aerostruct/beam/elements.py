# aerostruct/beam/elements.py
"""
SPATIAL TUBE ELEMENT: 12×12 Stiffness and Transformation
========================================================

PURPOSE:
--------
Local stiffness of an Euler–Bernoulli tube element, its orientation in
space, and the congruence transform into global axes.

LOCAL STIFFNESS:
----------------
DOF order per node: [u, v, w, θx, θy, θz], node i first, then node j.

    axial:       EA/L
    torsion:     GJ/L
    bending xy:  12EIz/L³, 6EIz/L², 4EIz/L, 2EIz/L   (v, θz)
    bending xz:  12EIy/L³, 6EIy/L², 4EIy/L, 2EIy/L   (w, θy)

The xz-plane terms carry opposite signs on the 6EI/L² couplings because a
positive θy lowers w along +x. For a straight prismatic tube in principal
axes there is no coupling between the four groups.

LOCAL FRAME:
------------
    x_loc = (xj − xi) / L
    y_loc = unit(x_loc × ref),   ref = global x (global z if x_loc ∥ x)
    z_loc = x_loc × y_loc

R = [x_loc; y_loc; z_loc] maps global vectors to local ones, and

    T = blockdiag(R, R, R, R),    K_global = Tᵀ K_local T

The resulting element matrix is symmetric, positive semi-definite, and
has exactly 6 zero eigenvalues: the rigid-body modes of a free element.
"""

from typing import Tuple

import numpy as np
from scipy.linalg import block_diag

from .model import Tube
from ..catalog import Material


def tube_local_stiffness(material: Material, tube: Tube, L: float) -> np.ndarray:
    """
    12×12 local stiffness matrix of a tube element.

    Parameters:
    -----------
    material : Material
        Supplies E and G
    tube : Tube
        Supplies A, Iy, Iz, J
    L : float
        Element length (m)

    Returns:
    --------
    np.ndarray
        (12, 12) symmetric matrix in local axes

    Raises:
    -------
    ValueError
        If L is not positive
    """
    if L <= 0.0:
        raise ValueError(f"Element length must be positive, got {L}")

    E, G = material.E, material.G
    A, Iy, Iz, J = tube.A, tube.Iy, tube.Iz, tube.J

    k = np.zeros((12, 12))

    # Axial
    k[0, 0] = k[6, 6] = E * A / L
    k[0, 6] = -E * A / L

    # Torsion
    k[3, 3] = k[9, 9] = G * J / L
    k[3, 9] = -G * J / L

    # Bending in the local xy plane: v, θz
    c1, c2, c3, c4 = 12 * E * Iz / L**3, 6 * E * Iz / L**2, 4 * E * Iz / L, 2 * E * Iz / L
    k[1, 1] = k[7, 7] = c1
    k[1, 7] = -c1
    k[1, 5] = k[1, 11] = c2
    k[5, 7] = k[7, 11] = -c2
    k[5, 5] = k[11, 11] = c3
    k[5, 11] = c4

    # Bending in the local xz plane: w, θy
    c1, c2, c3, c4 = 12 * E * Iy / L**3, 6 * E * Iy / L**2, 4 * E * Iy / L, 2 * E * Iy / L
    k[2, 2] = k[8, 8] = c1
    k[2, 8] = -c1
    k[2, 4] = k[2, 10] = -c2
    k[4, 8] = k[8, 10] = c2
    k[4, 4] = k[10, 10] = c3
    k[4, 10] = c4

    # Mirror the upper triangle
    return np.triu(k) + np.triu(k, 1).T


def element_frame(xi: np.ndarray, xj: np.ndarray) -> Tuple[float, np.ndarray]:
    """
    Length and 3×3 rotation (global → local) of the element xi → xj.

    Raises:
    -------
    ValueError
        If the two nodes coincide
    """
    d = np.asarray(xj, dtype=float) - np.asarray(xi, dtype=float)
    L = float(np.sqrt(d @ d))
    if L <= 0.0:
        raise ValueError(f"Element has zero length (both nodes at {tuple(xi)})")

    x_loc = d / L
    ref = np.array([1.0, 0.0, 0.0])
    if abs(x_loc @ ref) > 0.99:
        ref = np.array([0.0, 0.0, 1.0])

    y_loc = np.cross(x_loc, ref)
    y_loc /= np.sqrt(y_loc @ y_loc)
    z_loc = np.cross(x_loc, y_loc)

    return L, np.vstack([x_loc, y_loc, z_loc])


def beam_transform(R: np.ndarray) -> np.ndarray:
    """12×12 block rotation T = blockdiag(R, R, R, R)."""
    return block_diag(R, R, R, R)


def tube_global_stiffness(material: Material, tube: Tube, xi: np.ndarray, xj: np.ndarray) -> np.ndarray:
    """Element stiffness in global axes, K_global = Tᵀ K_local T."""
    L, R = element_frame(xi, xj)
    T = beam_transform(R)
    return T.T @ tube_local_stiffness(material, tube, L) @ T
