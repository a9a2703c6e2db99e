# aerostruct/geometry.py
"""
LIFTING-SURFACE GEOMETRY
========================

PURPOSE:
--------
Everything downstream works on corner-point grids:

    mesh.shape == (n_chord + 1, n_span + 1, 3)

with the chordwise index first (leading edge at row 0, trailing edge at
row -1) and the spanwise index increasing from the left tip to the right
tip. Panels, horseshoes and circulations are (n_chord, n_span) grids cut
from that mesh.

This module provides:
- Surface: a mesh, a `mirror` flag and an optional camber mesh. A mirrored
  surface stores only the right half (span index starting on the y = 0
  plane) and is reflected once, generically, by reflect_xz().
- rectangular_mesh(): a minimal flat mesh builder used by analyses and tests.
  Real wing geometry (airfoils, twist, sweep) comes from outside the package.
- beam_nodes(): the spar locus, a fixed fraction of the local chord behind
  the leading edge.
- Reference quantities (projected area, span, mean aerodynamic chord).

COMPLEX-SAFE ARITHMETIC:
------------------------
Geometry is re-evaluated on deformed meshes inside the coupled residual,
which is differentiated by complex step. Norms are therefore written as
sqrt(sum(v*v)) instead of abs() or np.linalg.norm().
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np


def vector_norm(v: np.ndarray) -> np.ndarray:
    """Euclidean norm over the last axis, analytic in the components."""
    return np.sqrt(np.sum(v * v, axis=-1))


def reflect_xz(mesh: np.ndarray) -> np.ndarray:
    """
    Mirror a mesh about the xz symmetry plane.

    y is negated and the spanwise order reversed, so the reflected grid
    still runs from left to right and its panels keep the same normal
    orientation as the input.
    """
    reflected = np.array(mesh[:, ::-1, :], copy=True)
    reflected[..., 1] *= -1.0
    return reflected


@dataclass(frozen=True)
class Surface:
    """
    A named lifting surface.

    Parameters:
    -----------
    name : str
        Identifier used to key results (e.g., "wing", "htail")

    mesh : np.ndarray
        (n_chord + 1, n_span + 1, 3) corner points. When `mirror` is True
        this is the right half only and mesh[:, 0] must lie on y = 0.

    mirror : bool
        Reflect about the xz plane to obtain the full surface.

    camber : np.ndarray, optional
        Camber-line corner points with the same shape as `mesh`. Horseshoes
        stay on the chord mesh; only the boundary-condition normals are
        taken from the camber panels.
    """
    name: str
    mesh: np.ndarray
    mirror: bool = False
    camber: Optional[np.ndarray] = None

    def __post_init__(self):
        mesh = np.asarray(self.mesh)
        if mesh.ndim != 3 or mesh.shape[2] != 3 or mesh.shape[0] < 2 or mesh.shape[1] < 2:
            raise ValueError(
                f"Surface '{self.name}' mesh must have shape (n_chord+1, n_span+1, 3), got {mesh.shape}"
            )
        if self.camber is not None and np.shape(self.camber) != mesh.shape:
            raise ValueError(
                f"Surface '{self.name}' camber mesh has shape {np.shape(self.camber)}, "
                f"expected {mesh.shape} like the chord mesh"
            )

    def full_mesh(self) -> np.ndarray:
        """Corner points of the whole surface, left tip to right tip."""
        return self._full(self.mesh)

    def full_camber(self) -> np.ndarray:
        """Camber corner points of the whole surface, the chord mesh when flat."""
        return self._full(self.mesh if self.camber is None else self.camber)

    def _full(self, mesh) -> np.ndarray:
        mesh = np.asarray(mesh)
        if not self.mirror:
            return mesh
        return np.concatenate([reflect_xz(mesh)[:, :-1, :], mesh], axis=1)

    @property
    def panel_shape(self):
        mesh = self.full_mesh()
        return (mesh.shape[0] - 1, mesh.shape[1] - 1)


def rectangular_mesh(
    span: float,
    chord: float,
    n_span: int,
    n_chord: int,
    spacing: str = "uniform",
    half: bool = False,
    offset=(0.0, 0.0, 0.0),
) -> np.ndarray:
    """
    Flat, untwisted rectangular mesh in the xy plane.

    Parameters:
    -----------
    span : float
        Full tip-to-tip span (m)
    chord : float
        Chord (m); the leading edge sits on x = offset[0]
    n_span, n_chord : int
        Panel counts. With half=True, n_span panels cover one half.
    spacing : str
        "uniform" or "cosine" (spanwise clustering towards the tips)
    half : bool
        Return only the right half (y from 0 to span/2), for mirrored surfaces
    offset : 3-sequence
        Translation applied to every point

    Returns:
    --------
    np.ndarray
        (n_chord + 1, n_span + 1, 3)
    """
    if span <= 0 or chord <= 0:
        raise ValueError(f"Span and chord must be positive, got span={span}, chord={chord}")
    if n_span < 1 or n_chord < 1:
        raise ValueError(f"Need at least one panel in each direction, got {n_chord}x{n_span}")

    if spacing == "uniform":
        eta = np.linspace(0.0, 1.0, n_span + 1)
    elif spacing == "cosine":
        eta = 0.5 * (1.0 - np.cos(np.linspace(0.0, np.pi, n_span + 1)))
    else:
        raise ValueError(f"Unknown spacing '{spacing}'. Use 'uniform' or 'cosine'.")

    if half:
        if spacing == "cosine":
            # Cluster at the tip only
            eta = np.sin(np.linspace(0.0, 0.5 * np.pi, n_span + 1))
        y = 0.5 * span * eta
    else:
        y = span * (eta - 0.5)

    x = np.linspace(0.0, chord, n_chord + 1)

    mesh = np.zeros((n_chord + 1, n_span + 1, 3))
    mesh[:, :, 0] = x[:, None]
    mesh[:, :, 1] = y[None, :]
    mesh += np.asarray(offset, dtype=float)
    return mesh


def beam_nodes(mesh: np.ndarray, ratio: float = 0.35) -> np.ndarray:
    """
    Spar nodes at `ratio` of the local chord behind the leading edge.

    One node per spanwise mesh station, so n_span + 1 nodes and n_span
    elements. Works on deformed (complex) meshes as well.
    """
    if not 0.0 <= ratio <= 1.0:
        raise ValueError(f"Beam chord ratio must lie in [0, 1], got {ratio}")
    return (1.0 - ratio) * mesh[0] + ratio * mesh[-1]


def local_chords(mesh: np.ndarray) -> np.ndarray:
    """Leading-to-trailing-edge distance at each spanwise station."""
    return vector_norm(mesh[-1] - mesh[0])


def projected_area(mesh: np.ndarray) -> float:
    """Planform area projected on the xy plane."""
    xy = np.array(mesh[..., :2])
    d1 = xy[1:, 1:] - xy[:-1, :-1]
    d2 = xy[:-1, 1:] - xy[1:, :-1]
    cross = d1[..., 0] * d2[..., 1] - d1[..., 1] * d2[..., 0]
    return 0.5 * float(np.sum(np.abs(cross)))


def reference_span(mesh: np.ndarray) -> float:
    """Tip-to-tip extent along y."""
    y = np.real(mesh[0, :, 1])
    return float(np.max(y) - np.min(y))


def mean_aerodynamic_chord(mesh: np.ndarray) -> float:
    """
    Mean aerodynamic chord, trapezoidal integration of c² over span.

        MAC = ∫ c² dy / ∫ c dy
    """
    c = np.real(local_chords(mesh))
    y = np.real(mesh[0, :, 1])
    dy = np.abs(np.diff(y))
    c_sq = 0.5 * (c[1:] ** 2 + c[:-1] ** 2)
    c_lin = 0.5 * (c[1:] + c[:-1])
    return float(np.sum(c_sq * dy) / np.sum(c_lin * dy))
