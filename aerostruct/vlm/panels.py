# aerostruct/vlm/panels.py
"""
PANELS AND HORSESHOE VORTICES
=============================

PURPOSE:
--------
Cut a corner-point mesh into quadrilateral panels and place one horseshoe
vortex on each.

PANEL WINDING:
--------------
For the cell between chordwise rows i, i+1 and spanwise stations j, j+1:

    p1 = mesh[i,   j  ]   leading edge,  inboard (left)
    p2 = mesh[i+1, j  ]   trailing edge, inboard
    p3 = mesh[i+1, j+1]   trailing edge, outboard (right)
    p4 = mesh[i,   j+1]   leading edge,  outboard

    p1 ─────── p4        (flow →  downward in this sketch)
    │           │
    │   r1 ━━━ r2  ← bound leg at 1/4 chord
    │     ×     │   ← collocation point at 3/4 chord, mid-span
    │           │
    p2 ─────── p3

The area and normal use the two diagonals, which tolerates mild warp:

    n ∝ (p3 − p1) × (p4 − p2),    area = ½ |(p3 − p1) × (p4 − p2)|

HORSESHOE:
----------
The bound leg runs r1 → r2 along the quarter chord; two trailing legs leave
r1 and r2 in the freestream direction and extend to infinity. The
1/4 – 3/4 placement satisfies the flat-plate boundary condition to first
order (the classical vortex-lattice choice).

The Panel/Horseshoe dataclasses are convenient for inspecting single cells;
the solver itself consumes the stacked arrays from horseshoe_arrays().
No validation of degenerate grids is done here.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..geometry import vector_norm
from ..kernel.dof import DimensionMismatchError


@dataclass(frozen=True)
class Panel:
    """Quadrilateral panel with corners in the winding order above."""
    p1: np.ndarray
    p2: np.ndarray
    p3: np.ndarray
    p4: np.ndarray


@dataclass(frozen=True)
class Horseshoe:
    """
    Bound leg r1 → r2, collocation point and unit normal of one panel.

    Trailing legs are not stored: they are the rays from r1 and r2 along
    the freestream direction, which is a property of the flight condition
    rather than of the geometry.
    """
    r1: np.ndarray
    r2: np.ndarray
    collocation: np.ndarray
    normal: np.ndarray

    @property
    def bound_vector(self) -> np.ndarray:
        return self.r2 - self.r1

    @property
    def bound_center(self) -> np.ndarray:
        return 0.5 * (self.r1 + self.r2)


def _corners(mesh: np.ndarray):
    return mesh[:-1, :-1], mesh[1:, :-1], mesh[1:, 1:], mesh[:-1, 1:]


def make_panels(mesh: np.ndarray) -> np.ndarray:
    """(n_chord, n_span) object array of Panel, one per mesh cell."""
    p1, p2, p3, p4 = _corners(np.asarray(mesh))
    n_chord, n_span = p1.shape[:2]
    panels = np.empty((n_chord, n_span), dtype=object)
    for i in range(n_chord):
        for j in range(n_span):
            panels[i, j] = Panel(p1[i, j], p2[i, j], p3[i, j], p4[i, j])
    return panels


def panel_area(panel: Panel) -> float:
    d1 = panel.p3 - panel.p1
    d2 = panel.p4 - panel.p2
    return 0.5 * vector_norm(np.cross(d1, d2))


def panel_normal(panel: Panel) -> np.ndarray:
    n = np.cross(panel.p3 - panel.p1, panel.p4 - panel.p2)
    return n / vector_norm(n)


def midpoint(panel: Panel) -> np.ndarray:
    """Average of the four corners."""
    return 0.25 * (panel.p1 + panel.p2 + panel.p3 + panel.p4)


def reflect_panel(panel: Panel) -> Panel:
    """Mirror image about the xz plane, with inboard and outboard swapped."""
    def flip(p):
        return p * np.array([1.0, -1.0, 1.0])
    return Panel(flip(panel.p4), flip(panel.p3), flip(panel.p2), flip(panel.p1))


def wetted_area(mesh: np.ndarray) -> float:
    """Sum of panel areas (one side of the surface)."""
    p1, p2, p3, p4 = _corners(np.asarray(mesh))
    return float(np.sum(0.5 * vector_norm(np.cross(p3 - p1, p4 - p2))))


def panel_normals(mesh: np.ndarray) -> np.ndarray:
    """(n_chord, n_span, 3) unit normals of every panel."""
    p1, p2, p3, p4 = _corners(mesh)
    n = np.cross(p3 - p1, p4 - p2)
    return n / vector_norm(n)[..., None]


def horseshoe_arrays(mesh: np.ndarray, normals: Optional[np.ndarray] = None):
    """
    Vectorized horseshoe geometry of a whole mesh.

    Parameters:
    -----------
    mesh : np.ndarray
        (n_chord + 1, n_span + 1, 3) corner points, real or complex
    normals : np.ndarray, optional
        (n_chord, n_span, 3) normals to use for the boundary condition.
        Pass the normals of a cambered mesh here while the horseshoes sit
        on the flat chord mesh; by default the panel normals are used.

    Returns:
    --------
    r1, r2, collocation, normals : np.ndarray
        Each (n_chord, n_span, 3)
    """
    p1, p2, p3, p4 = _corners(mesh)

    r1 = p1 + 0.25 * (p2 - p1)
    r2 = p4 + 0.25 * (p3 - p4)
    collocation = 0.5 * ((p1 + 0.75 * (p2 - p1)) + (p4 + 0.75 * (p3 - p4)))

    if normals is None:
        normals = panel_normals(mesh)
    elif np.shape(normals) != r1.shape:
        raise DimensionMismatchError(
            f"Got normals of shape {np.shape(normals)} for a panel grid of shape {r1.shape}"
        )

    return r1, r2, collocation, normals


def make_horseshoes(mesh: np.ndarray, normals: Optional[np.ndarray] = None) -> np.ndarray:
    """(n_chord, n_span) object array of Horseshoe."""
    r1, r2, colloc, normals = horseshoe_arrays(np.asarray(mesh), normals)
    n_chord, n_span = r1.shape[:2]
    horseshoes = np.empty((n_chord, n_span), dtype=object)
    for i in range(n_chord):
        for j in range(n_span):
            horseshoes[i, j] = Horseshoe(r1[i, j], r2[i, j], colloc[i, j], normals[i, j])
    return horseshoes
