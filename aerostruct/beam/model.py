# aerostruct/beam/model.py
"""
SPATIAL BEAM MODEL: Tube, BeamElement and BeamModel
===================================================

PURPOSE:
--------
The wing spar is idealized as a chain of straight, thin-walled circular
tubes. Each node of the chain has 6 DOFs:

    ux, uy, uz   translations
    rx, ry, rz   small rotations

so an element connecting two nodes has a 12×12 stiffness matrix.

ENGINEERING CONTEXT:
--------------------
A circular tube has the same bending stiffness about every transverse axis
(Iy = Iz), which is why the orientation of an element's local y/z axes is
arbitrary as long as they are orthogonal to the element axis.

Section properties from outer radius r_o and wall thickness t
(inner radius r_i = r_o − t):

    A = π (r_o² − r_i²)
    I = π/4 (r_o⁴ − r_i⁴)       (Iy = Iz)
    J = π/2 (r_o⁴ − r_i⁴)       (polar)
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from ..catalog import Material


@dataclass(frozen=True)
class Tube:
    """
    Thin-walled circular tube cross-section.

    Parameters:
    -----------
    radius : float
        Outer radius r_o (m)

    thickness : float
        Wall thickness t (m); 0 < t ≤ r_o (t = r_o is a solid rod)

    Examples:
    ---------
    >>> round(Tube(radius=0.05, thickness=0.002).A, 6)
    0.000616
    """
    radius: float
    thickness: float

    def __post_init__(self):
        if self.radius <= 0:
            raise ValueError(f"Tube radius must be positive, got {self.radius}")
        if not 0 < self.thickness <= self.radius:
            raise ValueError(
                f"Tube thickness must lie in (0, radius={self.radius}], got {self.thickness}"
            )

    @property
    def inner_radius(self) -> float:
        return self.radius - self.thickness

    @property
    def A(self) -> float:
        return np.pi * (self.radius ** 2 - self.inner_radius ** 2)

    @property
    def Iy(self) -> float:
        return np.pi / 4.0 * (self.radius ** 4 - self.inner_radius ** 4)

    @property
    def Iz(self) -> float:
        return self.Iy

    @property
    def J(self) -> float:
        return np.pi / 2.0 * (self.radius ** 4 - self.inner_radius ** 4)


@dataclass(frozen=True)
class BeamElement:
    """
    A tube element connecting nodes ni → nj.

    The direction ni → nj defines the local x axis; it affects sign
    conventions of end forces but not the stiffness.
    """
    id: int
    ni: int
    nj: int
    tube: Tube


@dataclass
class BeamModel:
    """
    A chain of tube elements along a set of nodes.

    Parameters:
    -----------
    nodes : np.ndarray
        (n, 3) node coordinates (m)

    tubes : sequence of Tube
        One section per element (n − 1 of them)

    material : Material
        Same material for all elements

    constrained_nodes : tuple of int
        Nodes with all 6 DOFs clamped (e.g. the wing root)
    """
    nodes: np.ndarray
    tubes: Sequence[Tube]
    material: Material
    constrained_nodes: Tuple[int, ...] = ()

    def __post_init__(self):
        self.nodes = np.asarray(self.nodes, dtype=float)
        if self.nodes.ndim != 2 or self.nodes.shape[1] != 3:
            raise ValueError(f"Beam nodes must have shape (n, 3), got {self.nodes.shape}")
        self.tubes = list(self.tubes)
        if len(self.tubes) != self.n_nodes - 1:
            raise ValueError(
                f"Need {self.n_nodes - 1} tube sections for {self.n_nodes} nodes, got {len(self.tubes)}"
            )
        self.constrained_nodes = tuple(int(n) for n in self.constrained_nodes)
        for n in self.constrained_nodes:
            if not 0 <= n < self.n_nodes:
                raise ValueError(f"Constrained node {n} outside 0..{self.n_nodes - 1}")

    @classmethod
    def uniform(cls, nodes, radius: float, thickness: float, material: Material,
                constrained_nodes=()) -> "BeamModel":
        """Same tube section on every element."""
        nodes = np.asarray(nodes, dtype=float)
        tube = Tube(radius, thickness)
        return cls(nodes, [tube] * (nodes.shape[0] - 1), material, tuple(constrained_nodes))

    @classmethod
    def from_sections(cls, nodes, radii, thicknesses, material: Material,
                      constrained_nodes=()) -> "BeamModel":
        """One (radius, thickness) pair per element."""
        tubes = [Tube(float(r), float(t)) for r, t in zip(radii, thicknesses)]
        return cls(nodes, tubes, material, tuple(constrained_nodes))

    @property
    def n_nodes(self) -> int:
        return self.nodes.shape[0]

    @property
    def elements(self) -> List[BeamElement]:
        return [BeamElement(k, k, k + 1, tube) for k, tube in enumerate(self.tubes)]

    def element_lengths(self) -> np.ndarray:
        d = self.nodes[1:] - self.nodes[:-1]
        return np.sqrt(np.sum(d * d, axis=-1))
